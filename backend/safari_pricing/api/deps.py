"""Shared API dependencies and error mapping"""
from functools import lru_cache

from fastapi import HTTPException

from safari_pricing.core.config import settings
from safari_pricing.core.errors import (
    PricingError,
    PricingValidationError,
    DuplicatePriceError,
    StoreUnavailableError,
    NotFoundError,
)
from safari_pricing.services.local_store import LocalStore, JsonFileStore

STATUS_CODES = {
    PricingValidationError: 422,
    DuplicatePriceError: 409,
    NotFoundError: 404,
    StoreUnavailableError: 503,
}


@lru_cache()
def get_local_store() -> LocalStore:
    return JsonFileStore(settings.LOCAL_STORE_DIR)


def http_error(exc: PricingError) -> HTTPException:
    """HTTPException for a service error, detail = {'error', 'message', ...}"""
    status_code = STATUS_CODES.get(type(exc), 400)
    detail = exc.to_detail()
    if isinstance(exc, StoreUnavailableError):
        detail["message"] = f"{exc.message}. Please try again."
    return HTTPException(status_code=status_code, detail=detail)
