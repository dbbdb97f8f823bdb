"""
Schemas Package

Pydantic models shared across layers:
- common: colors, sizes, rectangles, resolved placements
- styles: alignment, text and watermark styles
- image: HTTP request and response payloads
"""

from .common import RGB, FormatInfo, Point, Rect, Size, TextBox, TextPlacement, WatermarkPlacement
from .image import (
    ImageInfoRequest,
    ImageInfoResponse,
    Operation,
    OperationResult,
    ProcessRequest,
    ProcessResponse,
)
from .styles import AlignmentSpec, TextStyle, WatermarkStyle

__all__ = [
    "RGB",
    "FormatInfo",
    "Point",
    "Rect",
    "Size",
    "TextBox",
    "TextPlacement",
    "WatermarkPlacement",
    "ImageInfoRequest",
    "ImageInfoResponse",
    "Operation",
    "OperationResult",
    "ProcessRequest",
    "ProcessResponse",
    "AlignmentSpec",
    "TextStyle",
    "WatermarkStyle",
]
