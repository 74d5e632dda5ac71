"""
Field validators and validation error helpers.

Each validator takes a ``Field`` and returns ``None`` when the value is
accepted or a ``FieldError`` describing the first problem found. Validators
are combined with ``chain``, which stops at the first failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


@dataclass(frozen=True)
class Field:
    name: str
    value: Any = None


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


Validator = Callable[[Field], Optional[FieldError]]


class ValidationError(Exception):
    """Raised by controllers when request data does not pass its validator chain."""

    status_code = 400

    def __init__(self, errors: Iterable[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors) or "Validation failed")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def required(field: Field) -> Optional[FieldError]:
    if _is_empty(field.value):
        return FieldError(field.name, f"{field.name} is required")
    return None


def min_length(length: int) -> Validator:
    """Build a validator rejecting values shorter than ``length`` characters."""

    def validator(field: Field) -> Optional[FieldError]:
        if _is_empty(field.value):
            return None
        if len(str(field.value)) < length:
            return FieldError(field.name, f"{field.name} must be at least {length} characters")
        return None

    return validator


def email(field: Field) -> Optional[FieldError]:
    if _is_empty(field.value):
        return None
    if not isinstance(field.value, str) or not EMAIL_PATTERN.fullmatch(field.value.strip()):
        return FieldError(field.name, f"{field.name} must be a valid email address")
    return None


def chain(*steps: tuple[Validator, Field]) -> Optional[FieldError]:
    """Run ``(validator, field)`` pairs in order and return the first failure, if any."""
    for validator, field in steps:
        result = validator(field)
        if result is not None:
            return result
    return None


def create_validation_errors(*errors: FieldError) -> ValidationError:
    return ValidationError(errors)


def create_validation_error_message(field: str, message: str) -> ValidationError:
    return ValidationError([FieldError(field, message)])
