"""
Shared FastAPI dependencies for imagemanip.
"""

import logging

from fastapi import Depends, HTTPException, Request

from imagemanip.config import Settings
from imagemanip.core.image.backend import RasterBackend
from imagemanip.services.image_service import ImageService

logger = logging.getLogger(__name__)


def get_backend(request: Request) -> RasterBackend:
    """
    Get the raster backend from app state.

    Raises:
        HTTPException: If the backend was not initialized
    """
    try:
        return request.app.state.backend
    except AttributeError as e:
        logger.error(f"Backend not initialized in app state: {e}")
        raise HTTPException(status_code=500, detail="Internal server error: backend not initialized")


def get_app_settings(request: Request) -> Settings:
    """Get settings from app state."""
    try:
        return request.app.state.settings
    except AttributeError as e:
        logger.error(f"Settings not initialized in app state: {e}")
        raise HTTPException(status_code=500, detail="Internal server error: settings not initialized")


def get_image_service(
    backend: RasterBackend = Depends(get_backend),
    settings: Settings = Depends(get_app_settings),
) -> ImageService:
    """
    Get image service instance.

    Args:
        backend: Raster backend dependency
        settings: Settings dependency

    Returns:
        ImageService instance
    """
    return ImageService(backend=backend, settings=settings)
