"""
Geometric calculations for image layout.

Pure functions, no pixel access:
- hex_to_rgb / coerce_color: color parsing
- proportional_scale: aspect-preserving fit into a target box
- check_dimensions: positive integer width and height
- center_crop_box: centered crop origin with axis clamping
- crop_resize_source_box: legacy soft pre-crop used by resize(crop=True)
- normalize_opacity / png_compression_level: backend scale conversions
"""

import math
from typing import Any

from imagemanip.core.constants import ImageConstants, WatermarkDefaults
from imagemanip.core.exceptions import InvalidColorFormat, InvalidDimensions
from imagemanip.schemas.common import RGB, Point, Size

HEX_DIGITS = set("0123456789abcdefABCDEF")


def hex_to_rgb(value: str) -> RGB:
    """
    Convert a hex color string to RGB.

    Args:
        value: "#rrggbb", "rrggbb", "#rgb" or "rgb"

    Returns:
        RGB color

    Raises:
        InvalidColorFormat: If the string is not 3 or 6 hex digits

    Example:
        >>> hex_to_rgb("#fff") == hex_to_rgb("#ffffff")
        True
    """
    if not isinstance(value, str):
        raise InvalidColorFormat(value)

    digits = value.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6 or not set(digits) <= HEX_DIGITS:
        raise InvalidColorFormat(value)

    return RGB(
        red=int(digits[0:2], 16),
        green=int(digits[2:4], 16),
        blue=int(digits[4:6], 16),
    )


def coerce_color(value: Any) -> RGB:
    """Accept a hex string, RGB model, (r, g, b) sequence or {red, green, blue} dict."""
    if isinstance(value, RGB):
        return value
    if isinstance(value, str):
        return hex_to_rgb(value)
    if isinstance(value, dict):
        try:
            return RGB(**value)
        except (TypeError, ValueError) as e:
            raise InvalidColorFormat(value) from e
    if isinstance(value, (tuple, list)) and len(value) == 3:
        try:
            return RGB(red=value[0], green=value[1], blue=value[2])
        except ValueError as e:
            raise InvalidColorFormat(value) from e
    raise InvalidColorFormat(value)


def proportional_scale(src_width: int, src_height: int, target_width: int, target_height: int) -> Size:
    """
    Fit a source box into a target box preserving the source aspect ratio.

    If the target is relatively wider than the source, the height binds;
    otherwise the width binds. The non-binding dimension is truncated.

    Example:
        >>> proportional_scale(100, 100, 50, 100)
        Size(width=50, height=50)
    """
    ratio = src_width / src_height
    if (target_width / target_height) > ratio:
        return Size(width=int(target_height * ratio), height=int(target_height))
    return Size(width=int(target_width), height=int(target_width / ratio))


def check_dimensions(width: Any, height: Any) -> None:
    """Raise InvalidDimensions unless both values are positive ints (bools excluded)."""
    for value in (width, height):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidDimensions(width, height)


def _clamp_axis(origin: int, src_dim: int, crop_dim: int) -> int:
    if origin < 0:
        return 0
    if origin > src_dim - crop_dim:
        return src_dim - crop_dim
    return origin


def center_crop_box(
    src_width: int,
    src_height: int,
    crop_width: int,
    crop_height: int,
    offset_x: int = 0,
    offset_y: int = 0,
) -> Point:
    """
    Compute the top-left origin of a crop centered on the source.

    The origin is shifted by the offsets and clamped into
    [0, src - crop] on each axis, lower bound first. When the crop is larger
    than the source a negative origin clamps to 0, while a positive offset
    that pushes it past src - crop yields that negative bound. The backend
    rejects either box.
    """
    x = math.ceil((src_width / 2 - crop_width / 2) + offset_x)
    y = math.ceil((src_height / 2 - crop_height / 2) + offset_y)
    return Point(
        x=_clamp_axis(x, src_width, crop_width),
        y=_clamp_axis(y, src_height, crop_height),
    )


def crop_resize_source_box(src_width: int, src_height: int, width: int, height: int) -> Size:
    """
    Source region read by resize(crop=True).

    The wider axis (height for square sources) is shrunk by the absolute
    difference between source and target aspect ratios, anchored at the
    top-left corner. This approximates a crop; it is not a centered crop.
    """
    delta = abs(src_width / src_height - width / height)
    if src_width > src_height:
        return Size(width=max(1, math.ceil(src_width - src_width * delta)), height=src_height)
    return Size(width=src_width, height=max(1, math.ceil(src_height - src_height * delta)))


def normalize_opacity(value: float) -> int:
    """
    Convert an opacity to the backend 0-100 scale.

    Values in [0, 1] are fractions; larger values are taken as percentages
    and capped at 100; negative values clamp to 0.
    """
    if 0 <= value <= 1:
        return int(round(value * 100))
    if value < 0:
        return 0
    return int(min(value, WatermarkDefaults.MAX_OPACITY_PERCENT))


def png_compression_level(quality: int) -> int:
    """Map a 0-100 quality onto zlib level 9..0 (higher quality, less compression)."""
    quality = max(0, min(quality, ImageConstants.MAX_QUALITY))
    quality = min(quality, ImageConstants.PNG_QUALITY_CAP)
    return ImageConstants.PNG_MAX_COMPRESSION - math.ceil(quality / 10)
