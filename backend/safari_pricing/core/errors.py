"""Pricing error taxonomy

Services raise these; the API layer turns them into HTTP responses.
"""
from typing import List, Optional


class PricingError(Exception):
    """Base class carrying a user-facing message"""
    error_code = "pricing_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class PricingValidationError(PricingError):
    """Missing dimension or invalid amount, raised before any store call"""
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_detail(self) -> dict:
        detail = super().to_detail()
        if self.field:
            detail["field"] = self.field
        return detail


class DuplicatePriceError(PricingError):
    """Exact duplicate price detected at submit time"""
    error_code = "duplicate_price"

    def __init__(self, message: str, conflicts: Optional[List[str]] = None):
        super().__init__(message)
        self.conflicts = conflicts or []

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["conflicts"] = self.conflicts
        return detail


class StoreUnavailableError(PricingError):
    """Backing store failed; the caller may try again"""
    error_code = "store_unavailable"


class NotFoundError(PricingError):
    error_code = "not_found"
