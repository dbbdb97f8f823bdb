"""
Image processing API models.

This module contains models for the HTTP layer:
- Image inspection requests and responses
- Operation pipelines (ordered list of session operations)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ImageInfoRequest(BaseModel):
    """Request to inspect an encoded image"""

    image: str = Field(..., description="Base64 encoded image (data URL prefix allowed)")


class ImageInfoResponse(BaseModel):
    """Dimensions and format of an image"""

    width: int
    height: int
    type: str
    mime: str
    supports_alpha: bool


class Operation(BaseModel):
    """One step of a processing pipeline"""

    op: str = Field(..., description="Operation name, e.g. resize, crop, rotate, text, watermark")
    params: Dict[str, Any] = Field(default_factory=dict, description="Keyword arguments of the operation")


class ProcessRequest(BaseModel):
    """Request to run operations on an image"""

    image: str = Field(..., description="Base64 encoded source image")
    operations: List[Operation] = Field(
        default_factory=list,
        description="Operations applied in order (at most api.max_operations)",
    )
    output_format: Optional[str] = Field(
        default=None, description="jpeg, png, gif or webp (defaults to the source format)"
    )
    quality: Optional[int] = Field(default=None, ge=0, le=100, description="Encoding quality")


class OperationResult(BaseModel):
    """Outcome of one pipeline step"""

    op: str
    width: int
    height: int
    placement: Optional[Dict[str, Any]] = Field(
        default=None, description="Resolved placement for text and watermark steps"
    )


class ProcessResponse(BaseModel):
    """Processed image and per-step results"""

    success: bool
    image: str = Field(..., description="Base64 encoded result")
    width: int
    height: int
    type: str
    mime: str
    steps: List[OperationResult] = Field(default_factory=list)
    processing_time_ms: float
