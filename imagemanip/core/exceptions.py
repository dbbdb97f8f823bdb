"""
Exception hierarchy for image manipulation.

Three families:
- InputValidationError: rejected before any buffer is touched
- BackendFailure: a raster primitive failed; the previous buffer is kept
- ResourceStateError: no active buffer to operate on
"""

from typing import Any, Optional


class ImageManipulationError(Exception):
    """Base class for all errors raised by imagemanip."""

    error_type = "image_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Input validation


class InputValidationError(ImageManipulationError, ValueError):
    error_type = "input_validation"


class InvalidColorFormat(InputValidationError):
    def __init__(self, value: Any):
        super().__init__(
            f"Invalid color {value!r}: the HEX code must be 3 or 6 characters",
            {"value": value},
        )


class InvalidRotation(InputValidationError):
    def __init__(self, degrees: Any):
        super().__init__(
            f"Invalid rotation {degrees!r}: you can only rotate 90, 180 or 270 degrees",
            {"degrees": degrees},
        )


class InvalidFlipMode(InputValidationError):
    def __init__(self, mode: Any):
        super().__init__(
            f"Invalid flip mode {mode!r}: use vertical, horizontal or both",
            {"mode": mode},
        )


class UnknownAlignment(InputValidationError):
    def __init__(self, alignment: Any):
        super().__init__(f"Alignment not understood: {alignment!r}", {"alignment": alignment})


class UnreadableImage(InputValidationError):
    def __init__(self, source: Any, reason: str = "not found"):
        super().__init__(f"Image {source} could not be read: {reason}", {"source": str(source)})


class InvalidImageType(InputValidationError):
    def __init__(self, image_type: Any):
        super().__init__(
            f"Unsupported image type {image_type!r}: only jpeg, png, gif or webp",
            {"image_type": str(image_type)},
        )


class InvalidDimensions(InputValidationError):
    def __init__(self, width: Any, height: Any):
        super().__init__(
            f"Invalid dimensions {width}x{height}: width and height must be positive",
            {"width": width, "height": height},
        )


class InvalidFilter(InputValidationError):
    def __init__(self, name: Any, reason: str = "unknown filter"):
        super().__init__(f"Invalid filter {name!r}: {reason}", {"filter": str(name)})


class InvalidStyleOption(InputValidationError):
    pass


class InvalidOperation(InputValidationError):
    def __init__(self, operation: Any):
        super().__init__(f"Unknown operation: {operation!r}", {"operation": operation})


class InvalidFont(InputValidationError):
    def __init__(self, font: Any, reason: str):
        super().__init__(f"Font {font!r} could not be loaded: {reason}", {"font": str(font)})


# Backend failures


class BackendFailure(ImageManipulationError, RuntimeError):
    error_type = "backend_failure"


class BackendCropFailed(BackendFailure):
    pass


class InvalidCropDimensions(BackendCropFailed):
    def __init__(self, x: int, y: int, width: int, height: int, bounds: tuple):
        super().__init__(
            f"Crop box ({x}, {y}, {width}x{height}) is outside image bounds "
            f"{bounds[0]}x{bounds[1]}",
            {"x": x, "y": y, "width": width, "height": height},
        )


class BackendRotateFailed(BackendFailure):
    pass


class EncodeFailed(BackendFailure):
    pass


class FileOperationFailed(BackendFailure):
    pass


class TransformFailed(BackendFailure):
    def __init__(self, operation: str, reason: Any):
        super().__init__(f"{operation} failed: {reason}", {"operation": operation})


class CropFailed(TransformFailed):
    def __init__(self, reason: Any):
        super().__init__("crop", reason)


# Resource state


class ResourceStateError(ImageManipulationError, RuntimeError):
    error_type = "resource_state"

    def __init__(self, message: str = "No active image buffer; load or create an image first"):
        super().__init__(message)
