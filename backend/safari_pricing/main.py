"""Safari Pricing - FastAPI Backend"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware

from safari_pricing.api import health, reference, park_pricing, quotes
from safari_pricing.core.config import settings
from safari_pricing.core.database import engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup - initialize database
    from safari_pricing.core.database import init_db
    await init_db()

    # Seed reference data
    if settings.SEED_ON_STARTUP:
        from safari_pricing.services.seed_service import seed_data
        await seed_data()

    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Safari Pricing API",
    description="National park entry pricing and quote composition",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(reference.router, prefix="/api/v1/reference", tags=["Reference"])
app.include_router(park_pricing.router, prefix="/api/v1/park-pricing", tags=["Park Pricing"])
app.include_router(quotes.router, prefix="/api/v1/quotes", tags=["Quotes"])
