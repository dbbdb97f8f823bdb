"""
Image API Router - Inspection and processing pipelines
"""

import logging

from fastapi import APIRouter, Depends

from imagemanip.api.dependencies import get_image_service
from imagemanip.api.exceptions import safe_endpoint
from imagemanip.schemas.image import ImageInfoRequest, ImageInfoResponse, ProcessRequest, ProcessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/info")
@safe_endpoint
def image_info(request: ImageInfoRequest, image_service=Depends(get_image_service)) -> ImageInfoResponse:
    """Report dimensions, type and mime of a base64 image."""
    return image_service.inspect(request.image)


@router.post("/process")
@safe_endpoint
def process_image(request: ProcessRequest, image_service=Depends(get_image_service)) -> ProcessResponse:
    """
    Run an ordered list of operations on one image.

    Each operation is {"op": name, "params": {...}} where params are the
    keyword arguments of the matching ImageSession method, e.g.
    {"op": "resize", "params": {"width": 200, "height": 100}}.
    Special cases: filter takes {"type", "args"}, watermark takes a base64
    "image" plus style options, convert takes {"type"}.

    Args:
        request: Source image, operations and output options
        image_service: Image service dependency

    Returns:
        ProcessResponse with the encoded result and per-step dimensions
    """
    return image_service.process(request)
