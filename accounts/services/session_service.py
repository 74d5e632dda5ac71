"""Login sessions: issuing bearer tokens and resolving the acting user."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Request
from sqlalchemy.orm import Session

from accounts.core.config import get_settings
from accounts.core.errors import ServiceError
from accounts.core.security import new_token
from accounts.repositories.sql_repository import SQLRepository

SESSION_COOKIE_NAME = "session"


class AuthenticationRequiredError(ServiceError):
    status_code = 401


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def issue_session(repository: SQLRepository, user_id: int) -> tuple[str, datetime]:
    """Create a new session token for ``user_id``. The caller commits."""
    token = new_token()
    settings = get_settings()
    ttl = max(60, settings.session_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    repository.create_user_session(user_id, token, expires_at)
    return token, expires_at


def session_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


class SessionUserContext:
    """Resolves the id of the user acting on a request from its session token."""

    def current_user_id(self, request: Request, session: Session) -> int:
        token = session_token(request)
        if not token:
            raise AuthenticationRequiredError("Authentication required")
        repository = SQLRepository(session)
        entity = repository.get_user_session(token)
        if not entity:
            raise AuthenticationRequiredError("Authentication required")
        if as_utc(entity.expires_at) < datetime.now(timezone.utc):
            repository.delete_user_session(token)
            session.commit()
            raise AuthenticationRequiredError("Session expired")
        return entity.user_id
