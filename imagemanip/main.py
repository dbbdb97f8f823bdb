"""
imagemanip - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imagemanip import __version__
from imagemanip.api.exceptions import register_exception_handlers
from imagemanip.api.routers import image, system
from imagemanip.config import configure_logging, get_settings
from imagemanip.core.exceptions import InvalidFont
from imagemanip.core.image.opencv_backend import OpenCVBackend, load_font

# Get configuration
settings = get_settings()

# Configure logging
configure_logging(settings)
logger = logging.getLogger(__name__)

# Suppress watchfiles debug messages
logging.getLogger("watchfiles").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting imagemanip server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    try:
        load_font(settings.text.font, settings.text.size)
    except InvalidFont as e:
        logger.error(f"Default text font unusable: {e}")
        raise
    logger.info(f"Text font: {settings.text.font or '<bundled>'} ({settings.text.size}px)")

    app.state.backend = OpenCVBackend()
    app.state.settings = settings
    app.state.config = settings.to_dict()

    yield

    logger.info("Server shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="imagemanip",
    description="Layout and compositing engine for raster images",
    version=__version__,
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(image.router, prefix="/api/image", tags=["Image"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


# Root endpoint
@app.get("/")
def root():
    return {
        "name": "imagemanip",
        "status": "running",
        "version": __version__,
        "endpoints": {
            "image": "/api/image",
            "system": "/api/system",
            "docs": "/docs",
        },
    }


# Health check endpoint
@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "services": {
            "backend": getattr(app.state, "backend", None) is not None,
        },
    }


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "imagemanip.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level="info",
    )


if __name__ == "__main__":
    run()
