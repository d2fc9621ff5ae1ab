"""
MindCare AI - Main FastAPI Application
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .api import auth_router, chat_router, mood_router, activity_router
from .api.dependencies import get_configured_llm_provider, init_services
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .storage.local_storage import LocalStorage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    setup_logging(settings)

    storage = LocalStorage(settings.local_storage_path)
    init_services(storage, llm_provider=get_configured_llm_provider())

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="AI therapy chat, mood tracking and activity logging backend",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(mood_router)
app.include_router(activity_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mindcare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
