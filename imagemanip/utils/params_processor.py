"""
Parameter processing utilities.

Handles merging of per-call style overrides over session defaults and
translation of pydantic validation failures into imagemanip errors.
"""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ValidationError

from imagemanip.core.exceptions import ImageManipulationError, InvalidStyleOption

T = TypeVar("T", bound=BaseModel)


def merge_params(base_params: Dict[str, Any], override_params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two parameter dictionaries.

    Override params take precedence over base params.

    Example:
        >>> merge_params({"size": 18, "shadow": False}, {"size": 24})
        {'size': 24, 'shadow': False}
    """
    result = base_params.copy()
    result.update(override_params)
    return result


def canonical_keys(params_class: Type[BaseModel], params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rename alias keys ("x", "left", "position") to field names.

    Unknown keys are passed through so the model can reject them.
    """
    aliases: Dict[str, str] = {}
    for name, field in params_class.model_fields.items():
        alias = field.validation_alias
        if isinstance(alias, AliasChoices):
            for choice in alias.choices:
                if isinstance(choice, str):
                    aliases[choice] = name
        elif isinstance(alias, str):
            aliases[alias] = name
    return {aliases.get(key, key): value for key, value in params.items()}


def build_params(params_class: Type[T], data: Dict[str, Any]) -> T:
    """
    Validate a parameter dict into a model.

    Raises:
        ImageManipulationError: The original error raised by a field validator
            (e.g. InvalidColorFormat, UnknownAlignment)
        InvalidStyleOption: For any other validation failure
    """
    try:
        return params_class.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            original = (error.get("ctx") or {}).get("error")
            if isinstance(original, ImageManipulationError):
                raise original from e
        raise InvalidStyleOption(f"Invalid {params_class.__name__}: {e}") from e


def merge_style(defaults: T, style: Optional[T] = None, **overrides: Any) -> T:
    """
    Resolve the effective style for one call.

    Layers, lowest precedence first: session defaults, an explicit style
    instance (only the fields it sets), keyword overrides.

    Example:
        >>> merge_style(TextStyle(), size=24, x=3).offset_x
        3
    """
    params_class = type(defaults)
    data = defaults.model_dump()
    if style is not None:
        data = merge_params(data, style.model_dump(exclude_unset=True))
    data = merge_params(data, canonical_keys(params_class, overrides))
    return build_params(params_class, data)
