"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from app.config import settings
from app.core.logging_config import setup_logging
from app.database import init_db, close_db, engine
from app.middleware.correlation import CorrelationIdMiddleware
from app.middleware.errors import setup_exception_handlers
from app.middleware.metrics import MetricsMiddleware, setup_metrics
from app.api.v1 import attachments, projects, tasks
from app.services.event_service import build_event_notifier
from app.services.storage_service import StorageService, create_s3_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    await init_db()
    app.state.storage = StorageService(create_s3_client(settings), settings.S3_BUCKET_NAME)
    app.state.notifier = build_event_notifier(settings)
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    # Shutdown
    await app.state.notifier.drain()
    app.state.notifier.close()
    app.state.storage.close()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-Id"],
)
app.add_middleware(MetricsMiddleware)
# Added last so it runs first and every other layer sees the id
app.add_middleware(CorrelationIdMiddleware)

setup_exception_handlers(app)
setup_metrics(app)

# Include routers
app.include_router(
    projects.router, prefix=f"{settings.API_V1_PREFIX}/projects", tags=["projects"]
)
app.include_router(tasks.router, prefix=f"{settings.API_V1_PREFIX}/tasks", tags=["tasks"])
app.include_router(
    attachments.router,
    prefix=f"{settings.API_V1_PREFIX}/attachments",
    tags=["attachments"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    health_status = {
        "ok": True,
        "service": settings.SERVICE_NAME,
        "ts": datetime.now(timezone.utc).isoformat(),
        "checks": {"database": "unknown"},
    }

    try:
        async with engine.begin() as conn:
            await conn.execute(select(1))
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        health_status["checks"]["database"] = f"error: {str(e)}"
        health_status["ok"] = False

    return health_status


def run() -> None:
    """Serve the application; logging is configured by the lifespan."""
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, log_config=None)
