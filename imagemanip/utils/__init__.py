"""
Utility modules for core functionality.

Modules:
- enum_converter: Enum parsing and conversion
- params_processor: Style merging and parameter validation
"""

from .enum_converter import convert_enums_to_strings, enum_values, normalize_name, parse_enum
from .params_processor import build_params, canonical_keys, merge_params, merge_style

__all__ = [
    "convert_enums_to_strings",
    "enum_values",
    "normalize_name",
    "parse_enum",
    "build_params",
    "canonical_keys",
    "merge_params",
    "merge_style",
]
