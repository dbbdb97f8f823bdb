"""
Buffer-producing transforms.

Every transform takes the current handle and returns a new one; the caller
swaps it in and releases the old buffer. A buffer staged by a transform that
fails is released before the error propagates, so the input handle is always
left intact.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List

from imagemanip.core.constants import DrawingConstants, ImageConstants
from imagemanip.core.enums import FilterType, FlipMode
from imagemanip.core.exceptions import (
    BackendFailure,
    CropFailed,
    InvalidDimensions,
    InvalidFilter,
    InvalidRotation,
    InvalidStyleOption,
    TransformFailed,
)
from imagemanip.core.image.backend import RasterBackend, RasterHandle
from imagemanip.core.image.geometry import (
    center_crop_box,
    check_dimensions,
    coerce_color,
    crop_resize_source_box,
    proportional_scale,
)
from imagemanip.schemas.common import Rect, Size
from imagemanip.utils.enum_converter import parse_enum

logger = logging.getLogger(__name__)


class TransformEngine:
    """Geometric and pixel transforms issued against a RasterBackend."""

    def __init__(self, backend: RasterBackend):
        self.backend = backend

    @contextmanager
    def staging(self, operation: str) -> Iterator[List[RasterHandle]]:
        """
        Scope for buffers built by one transform.

        Handles appended to the yielded list are released if the block raises.
        Backend failures are re-raised as TransformFailed.
        """
        staged: List[RasterHandle] = []
        try:
            yield staged
        except TransformFailed:
            self._discard(staged)
            raise
        except BackendFailure as e:
            self._discard(staged)
            logger.error(f"{operation} failed: {e}")
            raise TransformFailed(operation, e.message) from e
        except Exception:
            self._discard(staged)
            raise

    def _discard(self, staged: List[RasterHandle]) -> None:
        for handle in staged:
            self.backend.release(handle)

    def clone(self, handle: RasterHandle, staged: List[RasterHandle]) -> RasterHandle:
        """Copy handle into a new buffer registered with staged."""
        copy = self.backend.crop(handle, Rect.from_size(handle.size))
        staged.append(copy)
        return copy

    def _resample_into(self, handle: RasterHandle, operation: str, target: Size, src_rect: Rect) -> RasterHandle:
        with self.staging(operation) as staged:
            dst = self.backend.create_buffer(target.width, target.height, handle.has_alpha)
            staged.append(dst)
            self.backend.resample(dst, handle, Rect.from_size(target), src_rect)
        logger.debug(
            f"{operation}: {handle.width}x{handle.height} -> {target.width}x{target.height} "
            f"from {src_rect.to_dict()}"
        )
        return dst

    # Resizing

    def resize(self, handle: RasterHandle, width: int, height: int, crop: bool = False) -> RasterHandle:
        """
        Resize to fit (width, height).

        With crop=False the aspect ratio is kept and the result fits inside the
        box. With crop=True the output is exactly (width, height), read from a
        source region shrunk along the wider axis by the aspect difference.
        """
        check_dimensions(width, height)

        if crop:
            source = crop_resize_source_box(handle.width, handle.height, width, height)
            target = Size(width=width, height=height)
        else:
            source = handle.size
            fitted = proportional_scale(handle.width, handle.height, width, height)
            target = Size(width=max(1, fitted.width), height=max(1, fitted.height))

        return self._resample_into(handle, "resize", target, Rect.from_size(source))

    def strict_resize(self, handle: RasterHandle, width: int, height: int) -> RasterHandle:
        """Resize to exactly (width, height) without keeping the aspect ratio."""
        check_dimensions(width, height)
        return self._resample_into(
            handle, "strict_resize", Size(width=width, height=height), Rect.from_size(handle.size)
        )

    def resize_to_height(self, handle: RasterHandle, height: int) -> RasterHandle:
        check_dimensions(handle.width, height)
        width = int(handle.width * (height / handle.height))
        return self.resize(handle, max(1, width), height)

    def resize_to_width(self, handle: RasterHandle, width: int) -> RasterHandle:
        check_dimensions(width, handle.height)
        height = int(handle.height * (width / handle.width))
        return self.resize(handle, width, max(1, height))

    def resize_scale(self, handle: RasterHandle, percent: float) -> RasterHandle:
        """Scale both sides by percent (100 keeps the size)."""
        if isinstance(percent, bool) or not isinstance(percent, (int, float)) or percent <= 0:
            raise InvalidDimensions(percent, percent)
        width = int(handle.width * (percent / 100))
        height = int(handle.height * (percent / 100))
        return self.resize(handle, max(1, width), max(1, height))

    # Geometry

    def crop(self, handle: RasterHandle, width: int, height: int, offset_x: int = 0, offset_y: int = 0) -> RasterHandle:
        """
        Crop a (width, height) box centered on the image, shifted by the offsets.

        Raises:
            CropFailed: If the box does not fit inside the image
        """
        check_dimensions(width, height)
        origin = center_crop_box(handle.width, handle.height, width, height, offset_x, offset_y)
        rect = Rect(x=origin.x, y=origin.y, width=width, height=height)

        try:
            result = self.backend.crop(handle, rect)
        except BackendFailure as e:
            logger.error(f"Crop failed: {e}")
            raise CropFailed(e.message) from e

        logger.debug(f"crop: {handle.width}x{handle.height} -> {rect.to_dict()}")
        return result

    @staticmethod
    def parse_rotation(degrees: Any) -> int:
        """Accept 90, 180 or 270 (int, integral float or numeric string)."""
        if isinstance(degrees, bool):
            raise InvalidRotation(degrees)
        try:
            value = float(degrees)
        except (TypeError, ValueError) as e:
            raise InvalidRotation(degrees) from e
        if not value.is_integer() or int(value) not in ImageConstants.ROTATION_ANGLES:
            raise InvalidRotation(degrees)
        return int(value)

    def rotate(self, handle: RasterHandle, degrees: Any) -> RasterHandle:
        """
        Rotate counter-clockwise by 90, 180 or 270 degrees.

        The result always carries an alpha channel, whatever the source format.
        """
        angle = self.parse_rotation(degrees)
        with self.staging("rotate") as staged:
            dst = self.backend.rotate(handle, angle)
            staged.append(dst)
            self.backend.enable_alpha(dst)
        logger.debug(f"rotate {angle}: {handle.width}x{handle.height} -> {dst.width}x{dst.height}")
        return dst

    def flip(self, handle: RasterHandle, mode: Any) -> RasterHandle:
        """Mirror vertically, horizontally or both via a reversed-source resample."""
        mode = FlipMode.parse(mode)
        width, height = handle.width, handle.height

        if mode is FlipMode.VERTICAL:
            src_rect = Rect(x=0, y=height - 1, width=width, height=-height)
        elif mode is FlipMode.HORIZONTAL:
            src_rect = Rect(x=width - 1, y=0, width=-width, height=height)
        else:
            src_rect = Rect(x=width - 1, y=height - 1, width=-width, height=-height)

        return self._resample_into(handle, f"flip {mode.value}", handle.size, src_rect)

    # Drawing

    def frame(self, handle: RasterHandle, thickness: int, color: Any = DrawingConstants.DEFAULT_COLOR) -> RasterHandle:
        """Draw `thickness` nested 1px rectangles along the edges."""
        if isinstance(thickness, bool) or not isinstance(thickness, int) or thickness < 0:
            raise InvalidStyleOption(f"Frame thickness must be a non-negative integer, got {thickness!r}")
        rgb = coerce_color(color)

        with self.staging("frame") as staged:
            dst = self.clone(handle, staged)
            x1, y1, x2, y2 = 0, 0, dst.width - 1, dst.height - 1
            for _ in range(thickness):
                self.backend.draw_rectangle(dst, x1, y1, x2, y2, rgb)
                x1, y1, x2, y2 = x1 + 1, y1 + 1, x2 - 1, y2 - 1
        return dst

    def fill(self, handle: RasterHandle, color: Any = DrawingConstants.DEFAULT_COLOR) -> RasterHandle:
        rgb = coerce_color(color)
        with self.staging("fill") as staged:
            dst = self.clone(handle, staged)
            self.backend.fill(dst, rgb)
        return dst

    def color_to_transparent(self, handle: RasterHandle, color: Any) -> RasterHandle:
        rgb = coerce_color(color)
        with self.staging("color_to_transparent") as staged:
            dst = self.clone(handle, staged)
            self.backend.color_to_transparent(dst, rgb)
        logger.debug(f"color_to_transparent: {rgb.to_hex()}")
        return dst

    def filter(self, handle: RasterHandle, kind: Any, *args: Any) -> RasterHandle:
        """
        Apply a pixel filter.

        Raises:
            InvalidFilter: Unknown filter name or bad arguments
        """
        filter_type = parse_enum(kind, FilterType)
        if filter_type is None:
            raise InvalidFilter(kind)

        with self.staging(f"filter {filter_type.value}") as staged:
            dst = self.clone(handle, staged)
            self.backend.apply_filter(dst, filter_type, *args)
        return dst

