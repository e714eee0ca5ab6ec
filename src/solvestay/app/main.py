"""FastAPI application entry point for the SolveStay marketplace API."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from solvestay.app.config import get_settings
from solvestay.app.errors import register_exception_handlers
from solvestay.domain.schemas import HealthResponse
from solvestay.infra.database import async_session, init_db
from solvestay.services.subscription_monitor import (
    deactivate_expired_subscriptions,
    warn_expiring_subscriptions,
)

logger = logging.getLogger(__name__)


async def subscription_monitor_loop():
    """Run subscription expiry jobs every 15 minutes."""
    while True:
        try:
            async with async_session() as db:
                await warn_expiring_subscriptions(db)
                expired_count = await deactivate_expired_subscriptions(db)
                if expired_count:
                    logger.info("Subscription monitor: deactivated %d subscriptions", expired_count)
        except Exception as e:
            logger.error("Subscription monitor error: %s", e)
        await asyncio.sleep(15 * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database and start background jobs."""
    await init_db()
    monitor = asyncio.create_task(subscription_monitor_loop())
    yield
    monitor.cancel()
    with suppress(asyncio.CancelledError):
        await monitor


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="SolveStay Marketplace API",
    lifespan=lifespan,
    debug=settings.debug,
)

register_exception_handlers(app)

# CORS middleware: allow all origins in debug mode for LAN/IP access
_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from solvestay.app.routes.auth import router as auth_router
from solvestay.app.routes.admin import router as admin_router
from solvestay.app.routes.properties import router as properties_router
from solvestay.app.routes.favorites import router as favorites_router
from solvestay.app.routes.contacts import router as contacts_router
from solvestay.app.routes.chats import router as chats_router
from solvestay.app.routes.messages import router as messages_router
from solvestay.app.routes.payments import router as payments_router, subscriptions_router
from solvestay.app.routes.uploads import router as uploads_router
from solvestay.app.routes.verification import router as verification_router
from solvestay.app.routes.visits import router as visits_router
from solvestay.app.routes.notifications import router as notifications_router
from solvestay.app.routes.dashboard import router as dashboard_router
from solvestay.app.routes.ws import router as ws_router

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(properties_router)
app.include_router(favorites_router)
app.include_router(contacts_router)
app.include_router(chats_router)
app.include_router(messages_router)
app.include_router(payments_router)
app.include_router(subscriptions_router)
app.include_router(uploads_router)
app.include_router(verification_router)
app.include_router(visits_router)
app.include_router(notifications_router)
app.include_router(dashboard_router)
app.include_router(ws_router)

# Static file mount for stored objects (property images, verification documents)
_storage_dir = Path(settings.uploads_dir)
_storage_dir.mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=str(_storage_dir)), name="storage")


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "solvestay"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "solvestay.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
