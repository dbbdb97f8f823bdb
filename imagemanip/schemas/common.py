"""
Common data structures shared across layers: colors, sizes, points,
rectangles and resolved placements.
"""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from imagemanip.core.constants import ImageConstants
from imagemanip.core.enums import ImageType


class RGB(BaseModel):
    """Opaque 8-bit color."""

    red: int = Field(..., ge=0, le=255)
    green: int = Field(..., ge=0, le=255)
    blue: int = Field(..., ge=0, le=255)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    def as_bgr(self) -> Tuple[int, int, int]:
        """Channel order used by OpenCV buffers."""
        return (self.blue, self.green, self.red)

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


class Size(BaseModel):
    """Width/height pair in pixels."""

    width: int
    height: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)


class Point(BaseModel):
    """Integer pixel coordinate (may be negative before clipping)."""

    x: int
    y: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)


class Rect(BaseModel):
    """
    Rectangle in pixel space.

    Width and height may be negative on a source rectangle to express
    mirrored reads (see RasterBackend.resample).
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate."""
        return self.y + self.height

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_size(cls, size: Size) -> "Rect":
        return cls(x=0, y=0, width=size.width, height=size.height)


class FormatInfo(BaseModel):
    """Type, mime and transparency capability of an image."""

    type: ImageType = ImageType.UNKNOWN
    mime: str = ImageConstants.DEFAULT_MIME
    supports_alpha: bool = False
    extension: Optional[str] = None

    @classmethod
    def for_type(cls, image_type: ImageType, mime: Optional[str] = None) -> "FormatInfo":
        return cls(
            type=image_type,
            mime=mime or ImageConstants.MIME_TYPES.get(image_type, ImageConstants.DEFAULT_MIME),
            supports_alpha=image_type in ImageConstants.ALPHA_TYPES,
            extension=ImageConstants.EXTENSIONS.get(image_type),
        )


class TextBox(BaseModel):
    """Glyph bounding box of a rendered string: width and height above baseline."""

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    def as_size(self) -> Size:
        return Size(width=self.width, height=self.height)


class TextPlacement(BaseModel):
    """Resolved text position (baseline origin) and optional background box."""

    x: int
    y: int
    width: int
    height: int
    background: Optional[Rect] = None


class WatermarkPlacement(BaseModel):
    """Resolved watermark box and backend opacity (0-100)."""

    x: int
    y: int
    width: int
    height: int
    opacity: int
