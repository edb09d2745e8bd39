"""
Social Aura — FastAPI application entry point.

Configures logging, the app, middleware, and registers all API routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aura import __version__
from aura.api import decryption, matches
from aura.config import settings
from aura.ledger.base import get_ledger
from aura.matching.decryption import DecryptionChallenge

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: one decryption challenge per server session
    ledger_address = await get_ledger().get_address()
    app.state.challenge = DecryptionChallenge.create(ledger_address, settings.CHAIN_ID)
    logger.info("Decryption challenge issued for ledger %s", ledger_address)

    yield

    # Shutdown: close connections
    from aura.redis_client import redis
    await redis.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Private social matching over encrypted compatibility scores.",
    version=__version__,
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(matches.router, prefix="/api/v1/matches", tags=["Matches"])
app.include_router(decryption.router, prefix="/api/v1", tags=["Decryption"])


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
        "ledger_available": await get_ledger().is_available(),
    }
