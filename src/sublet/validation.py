"""Helpers for turning pydantic validation failures into InvalidInput."""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import InvalidInput


ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()) if p != "__root__")
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def parse_model(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    """
    Validate raw caller input into ``model``.

    Raises:
        InvalidInput: With every validation problem joined into one message
    """
    if not isinstance(data, Mapping):
        raise InvalidInput("Request body must be an object")
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidInput(format_validation_error(e)) from e
