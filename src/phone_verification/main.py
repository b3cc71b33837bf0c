"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from phone_verification.api.router import router as verification_router
from phone_verification.config import settings
from phone_verification.database.engine import init_db
from phone_verification.services.sweeper import run_expiry_sweeper
from phone_verification.services.verification_service import get_verification_service

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    try:
        await init_db()
        logger.info("Database initialised")
    except Exception:
        logger.exception("Database unavailable at startup, codes will be kept in memory")

    if settings.expose_debug_code:
        logger.warning("EXPOSE_DEBUG_CODE is on — never enable this in production")

    service = get_verification_service()
    sweeper = asyncio.create_task(
        run_expiry_sweeper(service.code_store, settings.sweep_interval_seconds)
    )
    yield
    logger.info("Shutting down %s …", settings.app_name)
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper


app = FastAPI(
    title=settings.app_name,
    description="Phone number verification codes with database and in-memory storage",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(verification_router)


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name}


def run() -> None:
    """Serve the app with uvicorn (``phone-verification`` console script)."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="debug" if settings.debug else "info")
