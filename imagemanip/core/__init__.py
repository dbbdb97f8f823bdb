"""
Core modules for imagemanip.

Leaf modules (enums, exceptions) are re-exported here; the session, engine
and compositor live in their own modules and are imported from there.
"""

from .enums import Alignment, FilterType, FlipMode, ImageType
from .exceptions import (
    BackendFailure,
    CropFailed,
    ImageManipulationError,
    InputValidationError,
    InvalidColorFormat,
    InvalidFlipMode,
    InvalidRotation,
    ResourceStateError,
    TransformFailed,
    UnknownAlignment,
)

__all__ = [
    "Alignment",
    "FilterType",
    "FlipMode",
    "ImageType",
    "BackendFailure",
    "CropFailed",
    "ImageManipulationError",
    "InputValidationError",
    "InvalidColorFormat",
    "InvalidFlipMode",
    "InvalidRotation",
    "ResourceStateError",
    "TransformFailed",
    "UnknownAlignment",
]
