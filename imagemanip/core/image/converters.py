"""
Image format conversion utilities.

Handles conversions between the buffer representations:
- NumPy arrays (OpenCV BGR / BGRA order), the RasterHandle payload
- PIL Images (RGB / RGBA), used for codecs and glyph rendering
- Base64 encoded strings, used by the HTTP API
"""

import base64
import binascii
import logging

import cv2
import numpy as np
from PIL import Image

from imagemanip.core.constants import ErrorMessages
from imagemanip.core.exceptions import UnreadableImage

logger = logging.getLogger(__name__)


class ImageConverters:
    """Utilities for converting between image formats."""

    @staticmethod
    def numpy_to_pil(image: np.ndarray) -> Image.Image:
        """
        Convert NumPy array (OpenCV format) to PIL Image.

        Args:
            image: NumPy array in BGR or BGRA format

        Returns:
            PIL Image in RGB or RGBA mode
        """
        if image.ndim == 3 and image.shape[2] == 4:
            return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA))
        if image.ndim == 3 and image.shape[2] == 3:
            return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        return Image.fromarray(image)

    @staticmethod
    def pil_to_numpy(image: Image.Image) -> np.ndarray:
        """
        Convert PIL Image to a BGR or BGRA NumPy array.

        Images with transparency become BGRA, everything else BGR.
        """
        if image.mode in ("RGBA", "LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        ):
            rgba = np.array(image.convert("RGBA"))
            return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)

        rgb = np.array(image.convert("RGB"))
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)

    @staticmethod
    def ensure_bgra(image: np.ndarray) -> np.ndarray:
        """Return a BGRA copy (opaque alpha added when missing)."""
        if image.shape[2] == 4:
            return image.copy()
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)

    @staticmethod
    def ensure_bgr(image: np.ndarray) -> np.ndarray:
        """Return a BGR copy (alpha dropped when present)."""
        if image.shape[2] == 3:
            return image.copy()
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    @staticmethod
    def match_channels(image: np.ndarray, channels: int) -> np.ndarray:
        """Convert between BGR and BGRA so the array has the given channel count."""
        if image.shape[2] == channels:
            return image
        if channels == 4:
            return ImageConverters.ensure_bgra(image)
        return ImageConverters.ensure_bgr(image)

    @staticmethod
    def flatten_alpha(image: np.ndarray, background=(255, 255, 255)) -> np.ndarray:
        """
        Composite a BGRA image onto an opaque background color (RGB tuple).

        Returns a BGR array; BGR input is returned unchanged.
        """
        if image.shape[2] == 3:
            return image
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        bg = np.empty_like(image[:, :, :3], dtype=np.float32)
        bg[:] = (background[2], background[1], background[0])
        out = image[:, :, :3].astype(np.float32) * alpha + bg * (1.0 - alpha)
        return np.clip(out + 0.5, 0, 255).astype(np.uint8)

    @staticmethod
    def to_base64(data: bytes) -> str:
        """Encode raw image bytes to a base64 string."""
        return base64.b64encode(data).decode("utf-8")

    @staticmethod
    def from_base64(base64_string: str) -> bytes:
        """
        Decode a base64 payload (data-URL prefixes are stripped).

        Raises:
            UnreadableImage: If the payload is not valid base64
        """
        if "," in base64_string and base64_string.lstrip().startswith("data:"):
            base64_string = base64_string.split(",", 1)[1]
        try:
            return base64.b64decode(base64_string, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Failed to decode base64 image: {e}")
            raise UnreadableImage("<base64>", ErrorMessages.INVALID_BASE64.format(error=e)) from e
