"""Helpers for turning raw payloads into validated models."""

from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from marketplace.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_errors(error: PydanticValidationError) -> str:
    """Flatten pydantic errors into a single readable message.

    Example:
        "bid_amount: Input should be greater than 0; estimated_duration.unit: ..."
    """
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        messages.append(f"{location}: {detail.get('msg')}" if location else detail.get("msg", ""))
    return "; ".join(messages)


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Validate data against model_cls.

    Args:
        model_cls: Pydantic model to validate against.
        data: Model instance or raw mapping.

    Returns:
        Validated model instance.

    Raises:
        ValidationError: If data is malformed.
    """
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, dict):
        raise ValidationError(f"Expected an object for {model_cls.__name__}")
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as error:
        raise ValidationError(format_validation_errors(error)) from error
