"""
FastAPI Main Application
Weekly sales entry sessions over the dashboard backend
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restaurant_ops import __version__
from restaurant_ops.api.routes import health, weekly_entry
from restaurant_ops.config import settings
from restaurant_ops.core.logging import setup_logging
from restaurant_ops.infrastructure.dashboard_api.client import DashboardApiClient
from restaurant_ops.services.entry_session_service import EntrySessionService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Creates the session registry on startup and closes every session on shutdown
    """
    logger.info("=" * 60)
    logger.info("🚀 Starting Restaurant Ops weekly entry service")
    logger.info("=" * 60)

    app.state.entry_sessions = EntrySessionService(DashboardApiClient)
    logger.info("✅ Dashboard backend: %s", settings.DASHBOARD_API_BASE_URL)
    logger.info("✅ API Server: http://%s:%s", settings.API_HOST, settings.API_PORT)

    yield

    logger.info("🛑 Closing %d open entry session(s)...", len(app.state.entry_sessions))
    app.state.entry_sessions.close_all()
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="Restaurant Ops - Weekly Sales Entry",
    description="Weekly sales data entry with confirmation gates and category summaries",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(weekly_entry.router, prefix="/api/v1/weekly-entry", tags=["Weekly Sales Entry"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "restaurant_ops.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
