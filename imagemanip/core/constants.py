"""
Constants and configuration values for the image manipulation engine.
Centralizes all magic numbers and configuration constants.
"""

from imagemanip.core.enums import Alignment, ImageType


# Image Format Constants
class ImageConstants:
    """Constants related to image formats and encoding."""

    SUPPORTED_TYPES = (ImageType.JPEG, ImageType.PNG, ImageType.GIF, ImageType.WEBP)
    ALPHA_TYPES = (ImageType.PNG, ImageType.WEBP)

    MIME_TYPES = {
        ImageType.JPEG: "image/jpeg",
        ImageType.PNG: "image/png",
        ImageType.GIF: "image/gif",
        ImageType.WEBP: "image/webp",
    }
    DEFAULT_MIME = "image/jpeg"

    EXTENSIONS = {
        ImageType.JPEG: "jpeg",
        ImageType.PNG: "png",
        ImageType.GIF: "gif",
        ImageType.WEBP: "webp",
    }

    # Pillow format names
    PIL_FORMATS = {
        "JPEG": ImageType.JPEG,
        "MPO": ImageType.JPEG,
        "PNG": ImageType.PNG,
        "GIF": ImageType.GIF,
        "WEBP": ImageType.WEBP,
    }

    # Encoding
    DEFAULT_QUALITY = 90
    MAX_QUALITY = 100
    PNG_QUALITY_CAP = 90
    PNG_MAX_COMPRESSION = 9

    # Canvas fill for alpha formats created without a background (transparent white)
    TRANSPARENT_FILL = (255, 255, 255, 0)
    JPEG_FLATTEN_BACKGROUND = (255, 255, 255)

    ROTATION_ANGLES = (90, 180, 270)


# Placement Constants
class PlacementDefaults:
    """Margins shared by text and watermark placement."""

    MARGIN = 5


# Text Overlay Constants
class TextDefaults:
    """Default text overlay style."""

    FONT = None  # Pillow's bundled default font
    SIZE = 18
    ANGLE = 0.0
    OFFSET_X = 0
    OFFSET_Y = 0
    ALIGN = Alignment.CENTER_BOTTOM
    COLOR = "#000000"
    SHADOW = False
    SHADOW_COLOR = "#808080"
    BACKGROUND = None
    PADDING_X = 0
    PADDING_Y = 0

    SHADOW_OFFSET = 1


# Watermark Constants
class WatermarkDefaults:
    """Default watermark placement."""

    ALIGN = Alignment.RIGHT_BOTTOM
    OPACITY = 1.0
    MAX_OPACITY_PERCENT = 100


# Frame / Fill Constants
class DrawingConstants:
    """Constants for drawing operations."""

    DEFAULT_COLOR = "#000000"


# Filter Default Parameters
class FilterDefaults:
    """Default arguments for pixel filters."""

    BRIGHTNESS_RANGE = (-255, 255)
    CONTRAST_RANGE = (-100, 100)
    GAUSSIAN_KERNEL = 3
    BILATERAL_D = 5
    BILATERAL_SIGMA_COLOR = 50.0
    BILATERAL_SIGMA_SPACE = 50.0
    SMOOTH_WEIGHT = 1.0
    PIXELATE_BLOCK = 8


# System Constants
class SystemConstants:
    """Constants for system operations."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ENV_PREFIX = "IMAGEMANIP_"


# API Constants
class APIConstants:
    """Constants for API endpoints."""

    DEFAULT_HOST = "0.0.0.0"
    DEFAULT_PORT = 8000
    MAX_UPLOAD_SIZE_MB = 50
    MAX_OPERATIONS = 50


# Error Messages
class ErrorMessages:
    """Standard error messages."""

    NO_SOURCE_PATH = "No source path: the image was created in memory"
    NO_TARGET_PATH = "No target path given and the image has no source path"
    COPY_FAILED = "The copy operation failed: {error}"
    MOVE_FAILED = "The move operation failed: {error}"
    ENCODE_FAILED = "Failed to encode {image_type} image: {error}"
    DECODE_FAILED = "The image could not be resolved: {error}"
    UNSUPPORTED_FORMAT = "You can manipulate only jpeg, gif, png, webp files"
    BUFFER_RELEASED = "Image buffer has been released"
    INVALID_BASE64 = "Invalid base64 image payload: {error}"
