"""Health endpoint"""
from fastapi import APIRouter

from safari_pricing.core.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}
