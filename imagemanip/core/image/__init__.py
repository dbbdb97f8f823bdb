"""
Raster layer: buffer handles, backend contract, concrete backend and
pure geometry helpers.
"""

from .backend import DecodedImage, RasterBackend, RasterHandle
from .converters import ImageConverters
from .geometry import (
    center_crop_box,
    coerce_color,
    crop_resize_source_box,
    hex_to_rgb,
    normalize_opacity,
    png_compression_level,
    proportional_scale,
)
from .opencv_backend import OpenCVBackend

__all__ = [
    "DecodedImage",
    "RasterBackend",
    "RasterHandle",
    "ImageConverters",
    "OpenCVBackend",
    "center_crop_box",
    "coerce_color",
    "crop_resize_source_box",
    "hex_to_rgb",
    "normalize_opacity",
    "png_compression_level",
    "proportional_scale",
]
