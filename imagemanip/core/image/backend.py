"""
Raster backend contract.

The layout engine never touches pixels directly: it computes boxes and
offsets and asks a RasterBackend to allocate, resample, draw and blend.
RasterHandle is the opaque buffer reference passed back and forth.
"""

import itertools
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, NamedTuple, Optional, Union

import numpy as np

from imagemanip.core.constants import ErrorMessages
from imagemanip.core.enums import FilterType, ImageType
from imagemanip.core.exceptions import ResourceStateError
from imagemanip.schemas.common import RGB, Rect, Size, TextBox

_handle_ids = itertools.count(1)


class RasterHandle:
    """
    Opaque reference to a decoded pixel buffer.

    The payload is a uint8 NumPy array in OpenCV channel order, BGR
    (H, W, 3) or BGRA (H, W, 4). Once released, any pixel access raises
    ResourceStateError.
    """

    __slots__ = ("id", "_pixels")

    def __init__(self, pixels: np.ndarray):
        self.id = next(_handle_ids)
        self._pixels: Optional[np.ndarray] = pixels

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise ResourceStateError(ErrorMessages.BUFFER_RELEASED)
        return self._pixels

    @pixels.setter
    def pixels(self, value: np.ndarray) -> None:
        if self._pixels is None:
            raise ResourceStateError(ErrorMessages.BUFFER_RELEASED)
        self._pixels = value

    @property
    def released(self) -> bool:
        return self._pixels is None

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def has_alpha(self) -> bool:
        return self.pixels.shape[2] == 4

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)

    def release(self) -> None:
        self._pixels = None

    def __repr__(self) -> str:
        if self.released:
            return f"RasterHandle(id={self.id}, released)"
        return (
            f"RasterHandle(id={self.id}, {self.width}x{self.height}, "
            f"alpha={self.has_alpha})"
        )


class DecodedImage(NamedTuple):
    """Result of decoding an image file."""

    handle: RasterHandle
    width: int
    height: int
    image_type: ImageType
    mime: str


class RasterBackend(ABC):
    """Pixel-level primitives consumed by the layout engine."""

    @abstractmethod
    def decode(self, path: Union[str, Path]) -> DecodedImage:
        """Decode an image file; UnreadableImage if missing or unparseable."""

    @abstractmethod
    def decode_bytes(self, data: bytes, source: str = "<bytes>") -> DecodedImage:
        """Decode an in-memory image."""

    @abstractmethod
    def create_buffer(
        self, width: int, height: int, alpha: bool, background: Optional[RGB] = None
    ) -> RasterHandle:
        """Allocate a buffer; alpha buffers without background start transparent."""

    @abstractmethod
    def resample(self, dst: RasterHandle, src: RasterHandle, dst_rect: Rect, src_rect: Rect) -> None:
        """Copy src_rect of src into dst_rect of dst, scaling as needed."""

    @abstractmethod
    def crop(self, src: RasterHandle, rect: Rect) -> RasterHandle:
        """Extract rect into a new buffer; BackendCropFailed if out of bounds."""

    @abstractmethod
    def rotate(self, src: RasterHandle, degrees: int) -> RasterHandle:
        """Rotate counter-clockwise into a new buffer; BackendRotateFailed on error."""

    @abstractmethod
    def measure_text(self, font: Optional[str], size: int, angle: float, text: str) -> TextBox:
        """Bounding box of text rendered at a baseline origin."""

    @abstractmethod
    def draw_text(
        self,
        dst: RasterHandle,
        x: int,
        y: int,
        color: RGB,
        font: Optional[str],
        size: int,
        angle: float,
        text: str,
    ) -> None:
        """Draw text with its baseline origin at (x, y)."""

    @abstractmethod
    def merge_blend(
        self,
        dst: RasterHandle,
        src: RasterHandle,
        x: int,
        y: int,
        width: int,
        height: int,
        opacity: int,
    ) -> None:
        """Blend the top-left width x height of src onto dst at (x, y), opacity 0-100."""

    @abstractmethod
    def encode(self, handle: RasterHandle, image_type: ImageType, path: Union[str, Path], quality: int) -> bool:
        """Write the buffer to path; returns success."""

    @abstractmethod
    def encode_bytes(self, handle: RasterHandle, image_type: ImageType, quality: int) -> bytes:
        """Encode the buffer in memory; EncodeFailed on error."""

    @abstractmethod
    def fill(self, dst: RasterHandle, color: RGB) -> None:
        """Paint the whole buffer with an opaque color."""

    @abstractmethod
    def draw_rectangle(self, dst: RasterHandle, x1: int, y1: int, x2: int, y2: int, color: RGB) -> None:
        """Draw a 1px rectangle outline between two inclusive corners."""

    @abstractmethod
    def fill_rectangle(self, dst: RasterHandle, x1: int, y1: int, x2: int, y2: int, color: RGB) -> None:
        """Draw a filled rectangle between two inclusive corners."""

    @abstractmethod
    def color_to_transparent(self, dst: RasterHandle, color: RGB) -> None:
        """Make every pixel of exactly this color fully transparent."""

    @abstractmethod
    def enable_alpha(self, dst: RasterHandle) -> None:
        """Give the buffer an alpha channel (opaque) if it has none."""

    @abstractmethod
    def apply_filter(self, dst: RasterHandle, kind: FilterType, *args: Any) -> None:
        """Apply a pixel filter in place."""

    def release(self, handle: Optional[RasterHandle]) -> None:
        """Release a buffer; releasing twice or None is a no-op."""
        if handle is not None and not handle.released:
            handle.release()
