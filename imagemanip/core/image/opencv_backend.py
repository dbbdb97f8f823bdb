"""
NumPy / OpenCV raster backend.

Pixel buffers are NumPy arrays in OpenCV channel order. OpenCV does the
resampling, drawing and filtering; Pillow handles codecs and TrueType glyphs.
"""

import io
import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from imagemanip.core.constants import ErrorMessages, FilterDefaults, ImageConstants
from imagemanip.core.enums import FilterType, ImageType
from imagemanip.core.exceptions import (
    BackendFailure,
    BackendRotateFailed,
    EncodeFailed,
    InvalidCropDimensions,
    InvalidFilter,
    InvalidFont,
    InvalidImageType,
    UnreadableImage,
)
from imagemanip.core.image.backend import DecodedImage, RasterBackend, RasterHandle
from imagemanip.core.image.converters import ImageConverters
from imagemanip.core.image.geometry import check_dimensions, png_compression_level
from imagemanip.schemas.common import RGB, Rect, TextBox

logger = logging.getLogger(__name__)

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@lru_cache(maxsize=32)
def load_font(font: Optional[str], size: int) -> FontType:
    """
    Load a TrueType font, or Pillow's bundled default when font is None.

    Raises:
        InvalidFont: If the font file cannot be opened
    """
    try:
        if font is None:
            return ImageFont.load_default(size=size)
        return ImageFont.truetype(font, size)
    except OSError as e:
        raise InvalidFont(font, str(e)) from e


def _ink(color: RGB, channels: int) -> Tuple[int, ...]:
    """Color tuple in buffer channel order (opaque when the buffer has alpha)."""
    if channels == 4:
        return color.as_bgr() + (255,)
    return color.as_bgr()


class OpenCVBackend(RasterBackend):
    """RasterBackend implementation on NumPy arrays."""

    def __init__(self, downscale_interpolation: int = cv2.INTER_AREA, upscale_interpolation: int = cv2.INTER_LINEAR):
        """
        Initialize backend.

        Args:
            downscale_interpolation: OpenCV interpolation used when shrinking
            upscale_interpolation: OpenCV interpolation used when enlarging
        """
        self.downscale_interpolation = downscale_interpolation
        self.upscale_interpolation = upscale_interpolation

    # Codecs

    def decode(self, path: Union[str, Path]) -> DecodedImage:
        path = Path(path)
        if not path.is_file():
            raise UnreadableImage(path, "not found")
        return self.decode_bytes(path.read_bytes(), source=str(path))

    def decode_bytes(self, data: bytes, source: str = "<bytes>") -> DecodedImage:
        try:
            with Image.open(io.BytesIO(data)) as pil_image:
                pil_image.load()
                image_type = ImageConstants.PIL_FORMATS.get(pil_image.format or "", ImageType.UNKNOWN)
                mime = Image.MIME.get(pil_image.format or "") or ImageConstants.DEFAULT_MIME
                pixels = ImageConverters.pil_to_numpy(pil_image)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.error(f"Failed to decode image {source}: {e}")
            raise UnreadableImage(source, ErrorMessages.DECODE_FAILED.format(error=e)) from e

        if image_type is ImageType.UNKNOWN:
            raise UnreadableImage(source, ErrorMessages.UNSUPPORTED_FORMAT)

        if image_type in ImageConstants.ALPHA_TYPES:
            pixels = ImageConverters.match_channels(pixels, 4)

        handle = RasterHandle(np.ascontiguousarray(pixels))
        logger.debug(f"Decoded {source}: {handle.width}x{handle.height} {image_type.value}")
        return DecodedImage(handle, handle.width, handle.height, image_type, mime)

    def encode(self, handle: RasterHandle, image_type: ImageType, path: Union[str, Path], quality: int) -> bool:
        try:
            data = self.encode_bytes(handle, image_type, quality)
            Path(path).write_bytes(data)
        except (EncodeFailed, OSError) as e:
            logger.error(f"Failed to write {path}: {e}")
            return False
        return True

    def encode_bytes(self, handle: RasterHandle, image_type: ImageType, quality: int) -> bytes:
        quality = max(0, min(int(quality), ImageConstants.MAX_QUALITY))
        pixels = handle.pixels

        if image_type is ImageType.JPEG:
            pixels = ImageConverters.flatten_alpha(pixels, ImageConstants.JPEG_FLATTEN_BACKGROUND)
            save_kwargs = {"format": "JPEG", "quality": quality}
        elif image_type is ImageType.PNG:
            save_kwargs = {"format": "PNG", "compress_level": png_compression_level(quality)}
        elif image_type is ImageType.GIF:
            save_kwargs = {"format": "GIF"}
        elif image_type is ImageType.WEBP:
            save_kwargs = {"format": "WEBP", "quality": quality}
        else:
            raise InvalidImageType(image_type)

        buffer = io.BytesIO()
        try:
            ImageConverters.numpy_to_pil(pixels).save(buffer, **save_kwargs)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeFailed(ErrorMessages.ENCODE_FAILED.format(image_type=image_type.value, error=e)) from e
        return buffer.getvalue()

    # Buffers

    def create_buffer(self, width: int, height: int, alpha: bool, background: Optional[RGB] = None) -> RasterHandle:
        check_dimensions(width, height)

        channels = 4 if alpha else 3
        pixels = np.zeros((height, width, channels), dtype=np.uint8)
        if background is not None:
            pixels[:] = _ink(background, channels)
        elif alpha:
            r, g, b, a = ImageConstants.TRANSPARENT_FILL
            pixels[:] = (b, g, r, a)
        return RasterHandle(pixels)

    def resample(self, dst: RasterHandle, src: RasterHandle, dst_rect: Rect, src_rect: Rect) -> None:
        """
        Copy and scale a source rectangle into a destination rectangle.

        A negative source width (height) reads columns (rows) backwards from
        src_rect.x (src_rect.y) inclusive, which mirrors the image.
        """
        src_px = src.pixels
        if src_rect.width >= 0:
            x0, x1 = src_rect.x, src_rect.x2
        else:
            x0, x1 = src_rect.x2 + 1, src_rect.x + 1
        if src_rect.height >= 0:
            y0, y1 = src_rect.y, src_rect.y2
        else:
            y0, y1 = src_rect.y2 + 1, src_rect.y + 1

        if x0 < 0 or y0 < 0 or x1 > src.width or y1 > src.height or x1 <= x0 or y1 <= y0:
            raise BackendFailure(f"Resample source {src_rect.to_dict()} outside {src.width}x{src.height}")
        if dst_rect.width <= 0 or dst_rect.height <= 0:
            raise BackendFailure(f"Resample target {dst_rect.to_dict()} is empty")

        region = src_px[y0:y1, x0:x1]
        if src_rect.width < 0:
            region = region[:, ::-1]
        if src_rect.height < 0:
            region = region[::-1]

        shrinking = dst_rect.width * dst_rect.height < region.shape[0] * region.shape[1]
        interpolation = self.downscale_interpolation if shrinking else self.upscale_interpolation
        try:
            scaled = cv2.resize(
                np.ascontiguousarray(region),
                (dst_rect.width, dst_rect.height),
                interpolation=interpolation,
            )
        except cv2.error as e:
            raise BackendFailure(f"Resample failed: {e}") from e

        scaled = ImageConverters.match_channels(scaled, dst.pixels.shape[2])
        self._paste(dst, scaled, dst_rect.x, dst_rect.y)

    @staticmethod
    def _paste(dst: RasterHandle, image: np.ndarray, x: int, y: int) -> None:
        """Overwrite dst with image at (x, y), clipped to dst bounds."""
        x0, y0 = max(x, 0), max(y, 0)
        x1 = min(x + image.shape[1], dst.width)
        y1 = min(y + image.shape[0], dst.height)
        if x1 <= x0 or y1 <= y0:
            return
        dst.pixels[y0:y1, x0:x1] = image[y0 - y : y1 - y, x0 - x : x1 - x]

    def crop(self, src: RasterHandle, rect: Rect) -> RasterHandle:
        if (
            rect.width <= 0
            or rect.height <= 0
            or rect.x < 0
            or rect.y < 0
            or rect.x2 > src.width
            or rect.y2 > src.height
        ):
            raise InvalidCropDimensions(rect.x, rect.y, rect.width, rect.height, (src.width, src.height))
        return RasterHandle(src.pixels[rect.y : rect.y2, rect.x : rect.x2].copy())

    def rotate(self, src: RasterHandle, degrees: int) -> RasterHandle:
        if degrees % 90 != 0:
            raise BackendRotateFailed(f"Cannot rotate by {degrees} degrees without resampling")
        # np.rot90 turns counter-clockwise, matching the usual image convention
        rotated = np.rot90(src.pixels, k=(degrees // 90) % 4)
        return RasterHandle(np.ascontiguousarray(rotated))

    def enable_alpha(self, dst: RasterHandle) -> None:
        if not dst.has_alpha:
            dst.pixels = ImageConverters.ensure_bgra(dst.pixels)

    # Text

    def measure_text(self, font: Optional[str], size: int, angle: float, text: str) -> TextBox:
        """
        Measure text drawn from a baseline origin.

        Width and height are the extents of the glyph box, rotated
        counter-clockwise by angle when it is non-zero.
        """
        font_obj = load_font(font, size)
        left, top, right, bottom = font_obj.getbbox(text, anchor="ls")
        if not angle:
            return TextBox(width=int(right - left), height=int(bottom - top))

        theta = math.radians(angle)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        xs, ys = [], []
        for px in (left, right):
            for py in (top, bottom):
                xs.append(px * cos_t + py * sin_t)
                ys.append(-px * sin_t + py * cos_t)
        return TextBox(
            width=int(math.ceil(max(xs) - min(xs))),
            height=int(math.ceil(max(ys) - min(ys))),
        )

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
        font_obj = load_font(font, size)
        pil_image = ImageConverters.numpy_to_pil(dst.pixels)
        fill = color.as_tuple() + ((255,) if pil_image.mode == "RGBA" else ())

        if not angle:
            ImageDraw.Draw(pil_image).text((x, y), text, fill=fill, font=font_obj, anchor="ls")
        else:
            # Render on a square layer centered on the baseline origin, then
            # rotate around that origin so it lands on (x, y).
            left, top, right, bottom = font_obj.getbbox(text, anchor="ls")
            radius = int(math.ceil(max(math.hypot(px, py) for px in (left, right) for py in (top, bottom)))) + 2
            layer = Image.new("RGBA", (2 * radius, 2 * radius), (0, 0, 0, 0))
            ImageDraw.Draw(layer).text(
                (radius, radius), text, fill=color.as_tuple() + (255,), font=font_obj, anchor="ls"
            )
            rotated = layer.rotate(angle, resample=Image.Resampling.BICUBIC, center=(radius, radius))
            pil_image.paste(rotated, (x - radius, y - radius), rotated)

        dst.pixels = ImageConverters.pil_to_numpy(pil_image)

    # Compositing

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
        """
        Blend src onto dst at opacity percent.

        Source alpha, when present, scales the opacity per pixel. The box is
        clipped to the destination; off-canvas parts are dropped.
        """
        patch = src.pixels[:height, :width]
        h, w = patch.shape[:2]
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + w, dst.width), min(y + h, dst.height)
        if x1 <= x0 or y1 <= y0:
            logger.debug(f"Blend box ({x}, {y}, {w}x{h}) is outside the canvas")
            return

        patch = patch[y0 - y : y1 - y, x0 - x : x1 - x]
        factor = max(0, min(int(opacity), 100)) / 100.0
        if patch.shape[2] == 4:
            alpha = patch[:, :, 3:4].astype(np.float32) / 255.0 * factor
        else:
            alpha = np.full(patch.shape[:2] + (1,), factor, dtype=np.float32)

        roi = dst.pixels[y0:y1, x0:x1].astype(np.float32)
        roi[:, :, :3] = patch[:, :, :3].astype(np.float32) * alpha + roi[:, :, :3] * (1.0 - alpha)
        if roi.shape[2] == 4:
            roi[:, :, 3:4] = 255.0 * alpha + roi[:, :, 3:4] * (1.0 - alpha)
        dst.pixels[y0:y1, x0:x1] = np.clip(roi + 0.5, 0, 255).astype(np.uint8)

    # Drawing

    def fill(self, dst: RasterHandle, color: RGB) -> None:
        dst.pixels[:] = _ink(color, dst.pixels.shape[2])

    def draw_rectangle(self, dst: RasterHandle, x1: int, y1: int, x2: int, y2: int, color: RGB) -> None:
        cv2.rectangle(dst.pixels, (int(x1), int(y1)), (int(x2), int(y2)), _ink(color, dst.pixels.shape[2]), 1)

    def fill_rectangle(self, dst: RasterHandle, x1: int, y1: int, x2: int, y2: int, color: RGB) -> None:
        cv2.rectangle(
            dst.pixels,
            (int(x1), int(y1)),
            (int(x2), int(y2)),
            _ink(color, dst.pixels.shape[2]),
            cv2.FILLED,
        )

    def color_to_transparent(self, dst: RasterHandle, color: RGB) -> None:
        pixels = ImageConverters.ensure_bgra(dst.pixels)
        mask = np.all(pixels[:, :, :3] == np.array(color.as_bgr(), dtype=np.uint8), axis=2)
        pixels[mask, 3] = 0
        dst.pixels = pixels

    # Filters

    def apply_filter(self, dst: RasterHandle, kind: FilterType, *args: Any) -> None:
        pixels = dst.pixels
        bgr = np.ascontiguousarray(pixels[:, :, :3])
        alpha = pixels[:, :, 3:] if pixels.shape[2] == 4 else None

        try:
            out = self._filter_bgr(bgr, kind, args)
        except cv2.error as e:
            raise BackendFailure(f"Filter {kind.value} failed: {e}") from e

        if alpha is not None:
            out = np.dstack([out, alpha])
        dst.pixels = np.ascontiguousarray(out)

    @staticmethod
    def _arg(kind: FilterType, args: tuple, index: int, default: Any = None) -> float:
        if index < len(args):
            try:
                return float(args[index])
            except (TypeError, ValueError) as e:
                raise InvalidFilter(kind.value, f"argument {args[index]!r} is not a number") from e
        if default is None:
            raise InvalidFilter(kind.value, f"requires at least {index + 1} argument(s)")
        return float(default)

    def _filter_bgr(self, bgr: np.ndarray, kind: FilterType, args: tuple) -> np.ndarray:
        if kind is FilterType.GRAYSCALE:
            gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)
            return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)

        if kind is FilterType.NEGATE:
            return cv2.bitwise_not(bgr)

        if kind is FilterType.BRIGHTNESS:
            low, high = FilterDefaults.BRIGHTNESS_RANGE
            level = max(low, min(high, int(self._arg(kind, args, 0))))
            return np.clip(bgr.astype(np.int16) + level, 0, 255).astype(np.uint8)

        if kind is FilterType.CONTRAST:
            # Negative levels increase contrast, positive levels reduce it
            low, high = FilterDefaults.CONTRAST_RANGE
            level = max(low, min(high, self._arg(kind, args, 0)))
            factor = ((100.0 - level) / 100.0) ** 2
            out = ((bgr.astype(np.float32) / 255.0 - 0.5) * factor + 0.5) * 255.0
            return np.clip(out + 0.5, 0, 255).astype(np.uint8)

        if kind is FilterType.COLORIZE:
            red = self._arg(kind, args, 0)
            green = self._arg(kind, args, 1)
            blue = self._arg(kind, args, 2)
            shift = np.array([blue, green, red], dtype=np.int16)
            return np.clip(bgr.astype(np.int16) + shift, 0, 255).astype(np.uint8)

        if kind is FilterType.EDGE_DETECT:
            kernel = np.array([[-1, 0, -1], [0, 4, 0], [-1, 0, -1]], dtype=np.float32)
            return cv2.filter2D(bgr, -1, kernel, delta=127)

        if kind is FilterType.EMBOSS:
            kernel = np.array([[1.5, 0, 0], [0, 0, 0], [0, 0, -1.5]], dtype=np.float32)
            return cv2.filter2D(bgr, -1, kernel, delta=127)

        if kind is FilterType.GAUSSIAN_BLUR:
            k = FilterDefaults.GAUSSIAN_KERNEL
            return cv2.GaussianBlur(bgr, (k, k), 0)

        if kind is FilterType.SELECTIVE_BLUR:
            return cv2.bilateralFilter(
                bgr,
                FilterDefaults.BILATERAL_D,
                FilterDefaults.BILATERAL_SIGMA_COLOR,
                FilterDefaults.BILATERAL_SIGMA_SPACE,
            )

        if kind is FilterType.MEAN_REMOVAL:
            kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]], dtype=np.float32)
            return cv2.filter2D(bgr, -1, kernel)

        if kind is FilterType.SMOOTH:
            weight = self._arg(kind, args, 0, FilterDefaults.SMOOTH_WEIGHT)
            if weight + 8 == 0:
                raise InvalidFilter(kind.value, "weight must not be -8")
            kernel = np.ones((3, 3), dtype=np.float32)
            kernel[1, 1] = weight
            return cv2.filter2D(bgr, -1, kernel / (weight + 8))

        if kind is FilterType.PIXELATE:
            block = int(self._arg(kind, args, 0, FilterDefaults.PIXELATE_BLOCK))
            if block < 1:
                raise InvalidFilter(kind.value, "block size must be positive")
            h, w = bgr.shape[:2]
            small = cv2.resize(
                bgr, (max(1, w // block), max(1, h // block)), interpolation=cv2.INTER_AREA
            )
            return cv2.resize(small, (w, h), interpolation=cv2.INTER_NEAREST)

        raise InvalidFilter(kind)
