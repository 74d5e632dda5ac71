"""Request view-models: the fields each operation reads from a JSON body."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


@dataclass
class ViewModel:
    """
    Builds itself from a JSON body; unknown keys are ignored, missing ones stay None.
    Every field is a string, so values of any other JSON type are dropped to None
    and left for the validators to reject.
    """

    # attribute name -> JSON key, when they differ
    _aliases = {}

    @classmethod
    def from_body(cls, body: Any):
        data: Mapping[str, Any] = body if isinstance(body, Mapping) else {}
        values = {}
        for item in fields(cls):
            key = cls._aliases.get(item.name, item.name)
            value = data.get(key)
            values[item.name] = value if isinstance(value, str) else None
        return cls(**values)


@dataclass
class CreateUserViewModel(ViewModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


@dataclass
class LoginViewModel(ViewModel):
    email_or_username: Optional[str] = None
    password: Optional[str] = None

    _aliases = {"email_or_username": "emailOrUsername"}


@dataclass
class ForgotPasswordViewModel(ViewModel):
    email: Optional[str] = None


@dataclass
class ChangeForgottenPasswordViewModel(ViewModel):
    email: Optional[str] = None
    code: Optional[str] = None
    password: Optional[str] = None


@dataclass
class NewsletterMemberViewModel(ViewModel):
    email: Optional[str] = None
