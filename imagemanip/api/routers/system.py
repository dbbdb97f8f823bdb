"""
System API Router - Capabilities and process status
"""

import logging
import time
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends

from imagemanip import __version__
from imagemanip.api.dependencies import get_app_settings
from imagemanip.api.exceptions import safe_endpoint
from imagemanip.core.constants import ImageConstants
from imagemanip.core.enums import Alignment, FilterType, FlipMode
from imagemanip.services.image_service import ImageService
from imagemanip.utils.enum_converter import convert_enums_to_strings, enum_values

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/info")
@safe_endpoint
def get_info(settings=Depends(get_app_settings)) -> dict:
    """Supported formats, operations and the default overlay styles"""
    return {
        "version": __version__,
        "formats": enum_values(ImageConstants.SUPPORTED_TYPES),
        "alpha_formats": enum_values(ImageConstants.ALPHA_TYPES),
        "operations": sorted(list(ImageService.OPERATIONS) + ["convert", "filter", "watermark"]),
        "filters": enum_values(FilterType),
        "flip_modes": enum_values(FlipMode),
        "alignments": [a.name.lower() for a in Alignment],
        "defaults": {
            "quality": settings.image.default_quality,
            "text": convert_enums_to_strings(settings.text.model_dump()),
            "watermark": convert_enums_to_strings(settings.watermark.model_dump()),
        },
    }


@router.get("/status")
@safe_endpoint
def get_status() -> dict:
    """Process uptime and memory usage"""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()

    return {
        "status": "healthy",
        "uptime": time.time() - START_TIME,
        "memory_usage": {
            "process_mb": memory_info.rss / 1024 / 1024,
            "system_percent": virtual_memory.percent,
            "available_mb": virtual_memory.available / 1024 / 1024,
        },
    }


@router.get("/health")
def health_check() -> dict:
    """Simple health check"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
