"""CF Monitor — FastAPI Application Entry Point.

Polls the Cloudflare GraphQL Analytics API and serves the latest snapshot.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cfmonitor.config import IS_SERVERLESS
from cfmonitor.database import init_db
from cfmonitor.scheduler.jobs import start_scheduler, stop_scheduler
from cfmonitor.api.analytics_routes import router as analytics_router
from cfmonitor.api.deps import get_accounts
from cfmonitor.core.logging import get_logger

logger = get_logger("main")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 CF Monitor starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    # Missing or invalid account config is fatal
    get_accounts()
    init_db()
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("CF Monitor shut down")


app = FastAPI(
    title="CF Monitor",
    description="Cloudflare analytics dashboard backend — polls the GraphQL Analytics API and serves periodic snapshots.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analytics_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "cfmonitor",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
