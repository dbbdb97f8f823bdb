"""
Enum conversion utilities.

Loose name parsing for string enums ("Edge-Detect", "edge detect" and
"EDGE_DETECT" all name FilterType.EDGE_DETECT) and conversion of enum-bearing
structures to plain JSON values.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


def normalize_name(value: str) -> str:
    """Lowercase and turn spaces and hyphens into underscores."""
    return value.strip().lower().replace("-", "_").replace(" ", "_")


def parse_enum(value: Any, enum_class: Type[E], default: Optional[E] = None) -> Optional[E]:
    """
    Parse a value into a string enum member.

    Returns default when value is not a member or a name of one.

    Example:
        >>> parse_enum("Gaussian Blur", FilterType)
        <FilterType.GAUSSIAN_BLUR: 'gaussian_blur'>
    """
    if isinstance(value, enum_class):
        return value
    if not isinstance(value, str):
        return default
    try:
        return enum_class(normalize_name(value))
    except ValueError:
        return default


def enum_values(members: Iterable[Enum]) -> List[Any]:
    """Plain values of the given members, in order."""
    return [member.value for member in members]


def convert_enums_to_strings(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert all enum values in a dictionary to plain values (recursively).

    Used when exposing style defaults as JSON.
    """
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = convert_enums_to_strings(value)
        elif isinstance(value, Enum):
            result[key] = value.value
        else:
            result[key] = value
    return result
