"""
Centralized enums for image manipulation.

Integer codes of Alignment and FlipMode follow the legacy numeric
constants so existing configuration keeps working.
"""

from enum import Enum, IntEnum
from typing import Any

from imagemanip.core.exceptions import InvalidFlipMode, InvalidImageType, UnknownAlignment


class Alignment(IntEnum):
    """Nine-point anchor grid plus NONE (treated as LEFT_TOP)."""

    NONE = 0
    LEFT_TOP = 1
    CENTER_TOP = 2
    RIGHT_TOP = 3
    LEFT_CENTER = 4
    CENTER_CENTER = 5
    RIGHT_CENTER = 6
    LEFT_BOTTOM = 7
    CENTER_BOTTOM = 8
    RIGHT_BOTTOM = 9

    @property
    def horizontal(self) -> str:
        if self is Alignment.NONE:
            return "left"
        return self.name.split("_")[0].lower()

    @property
    def vertical(self) -> str:
        if self is Alignment.NONE:
            return "top"
        return self.name.split("_")[1].lower()

    @classmethod
    def parse(cls, value: Any) -> "Alignment":
        """
        Parse an anchor from an enum, integer code or name.

        Accepts "center-bottom", "center_bottom", "CENTER_BOTTOM" and
        "center bottom" spellings.

        Raises:
            UnknownAlignment: If the value does not name an anchor
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise UnknownAlignment(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as e:
                raise UnknownAlignment(value) from e
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_").replace(" ", "_")
            if key.isdigit():
                return cls.parse(int(key))
            try:
                return cls[key]
            except KeyError as e:
                raise UnknownAlignment(value) from e
        raise UnknownAlignment(value)


class FlipMode(str, Enum):
    """Mirror axis for flip operations."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    BOTH = "both"

    @classmethod
    def parse(cls, value: Any) -> "FlipMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            codes = {1: cls.VERTICAL, 2: cls.HORIZONTAL, 3: cls.BOTH}
            if value in codes:
                return codes[value]
            raise InvalidFlipMode(value)
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError as e:
                raise InvalidFlipMode(value) from e
        raise InvalidFlipMode(value)


class ImageType(str, Enum):
    """Raster file formats handled by the session."""

    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ImageType":
        """Parse a format name or extension ("jpg", ".png", "WEBP")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().lstrip(".")
            if key == "jpg":
                key = "jpeg"
            try:
                return cls(key)
            except ValueError as e:
                raise InvalidImageType(value) from e
        raise InvalidImageType(value)


class FilterType(str, Enum):
    """Pixel filters applied in place to the current buffer."""

    GRAYSCALE = "grayscale"
    NEGATE = "negate"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    COLORIZE = "colorize"
    EDGE_DETECT = "edge_detect"
    EMBOSS = "emboss"
    GAUSSIAN_BLUR = "gaussian_blur"
    SELECTIVE_BLUR = "selective_blur"
    MEAN_REMOVAL = "mean_removal"
    SMOOTH = "smooth"
    PIXELATE = "pixelate"
