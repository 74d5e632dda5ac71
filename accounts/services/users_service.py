"""
Account lifecycle use cases: registration, login, password recovery,
email verification and newsletter membership.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from accounts.core.config import get_settings
from accounts.core.errors import ServiceError
from accounts.core.security import hash_password, needs_rehash, new_token, verify_password
from accounts.db.models import User
from accounts.repositories.sql_repository import SQLRepository
from accounts.services.session_service import as_utc, issue_session

logger = logging.getLogger(__name__)


class AccountExistsError(ServiceError):
    status_code = 409


class InvalidCredentialsError(ServiceError):
    status_code = 401


class UserNotFoundError(ServiceError):
    status_code = 404


class TokenInvalidError(ServiceError):
    status_code = 400


def _isoformat(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "emailVerified": user.email_verified_at is not None,
        "createdAt": _isoformat(user.created_at),
    }


class UsersService:
    """Every method receives the request-scoped session and commits its own changes."""

    # -------------------------------------- registration --------------------------------------
    def create_user(self, session: Session, email: str, username: str, password: str) -> dict:
        repository = SQLRepository(session)
        raw_email = (email or "").strip().lower()
        raw_username = (username or "").strip()
        if repository.get_user_by_email(raw_email):
            raise AccountExistsError("Email is already registered", field="email")
        if repository.get_user_by_username(raw_username):
            raise AccountExistsError("Username is already taken", field="username")
        email_code = new_token(24)
        try:
            user = repository.add_user(raw_username, raw_email, hash_password(password), email_code)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise AccountExistsError("Username or email is already registered") from exc
        logger.info("Created user %s (id=%s)", raw_username, user.id)
        return {**user_payload(user), "emailCode": email_code}

    def does_username_and_email_exist(self, session: Session, email: str, username: str) -> dict:
        repository = SQLRepository(session)
        return {
            "emailExists": bool(email) and repository.get_user_by_email(email) is not None,
            "usernameExists": bool(username) and repository.get_user_by_username(username) is not None,
        }

    # -------------------------------------- login --------------------------------------
    def login(self, session: Session, email_or_username: str, password: str) -> dict:
        repository = SQLRepository(session)
        user = repository.get_user_by_email_or_username(email_or_username)
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        if needs_rehash(user.password_hash):
            repository.update_user_password(user, hash_password(password))
        token, expires_at = issue_session(repository, user.id)
        session.commit()
        logger.info("User %s logged in", user.id)
        return {"token": token, "expiresAt": expires_at.isoformat(), "user": user_payload(user)}

    def get_user_by_id(self, session: Session, user_id: int) -> dict:
        user = SQLRepository(session).get_user(user_id)
        if not user:
            raise UserNotFoundError("User not found")
        return user_payload(user)

    # -------------------------------------- password reset --------------------------------------
    def _reset_code_expired(self, created_at: datetime | None) -> bool:
        ttl = get_settings().password_reset_ttl
        if ttl <= 0:
            return False
        created = as_utc(created_at)
        if created is None:
            return True
        return created + timedelta(seconds=ttl) < datetime.now(timezone.utc)

    def forgot_password(self, session: Session, email: str, code: str) -> dict:
        repository = SQLRepository(session)
        user = repository.get_user_by_email(email)
        if not user:
            raise UserNotFoundError("No account is registered with this email", field="email")
        repository.set_reset_code(user, code)
        session.commit()
        logger.info("Issued password reset code for user %s", user.id)
        return {"email": user.email}

    def change_forgotten_password(self, session: Session, email: str, code: str, password: str) -> dict:
        repository = SQLRepository(session)
        user = repository.get_user_by_email(email)
        if not user or not user.reset_code or user.reset_code != (code or "").strip():
            raise TokenInvalidError("Invalid or expired code", field="code")
        if self._reset_code_expired(user.reset_code_created_at):
            repository.set_reset_code(user, None)
            session.commit()
            raise TokenInvalidError("Invalid or expired code", field="code")
        repository.update_user_password(user, hash_password(password))
        repository.set_reset_code(user, None)
        repository.delete_user_sessions(user.id)
        session.commit()
        logger.info("Password changed for user %s", user.id)
        return user_payload(user)

    # -------------------------------------- verification --------------------------------------
    def verify_email(self, session: Session, user_id: int, code: str) -> dict:
        repository = SQLRepository(session)
        user = repository.get_user(user_id)
        if not user:
            raise UserNotFoundError("User not found")
        if not user.email_code or user.email_code != str(code).strip():
            raise TokenInvalidError("Invalid email code", field="code")
        repository.set_user_verified(user)
        session.commit()
        logger.info("Verified email for user %s", user.id)
        return user_payload(user)

    # -------------------------------------- newsletter --------------------------------------
    def create_newsletter_member(self, session: Session, email: str) -> dict:
        repository = SQLRepository(session)
        address = (email or "").strip().lower()
        if not repository.get_newsletter_member(address):
            repository.add_newsletter_member(address)
            session.commit()
        return {"email": address, "subscribed": True}

    def delete_newsletter_member(self, session: Session, email: str) -> dict:
        repository = SQLRepository(session)
        address = (email or "").strip().lower()
        repository.delete_newsletter_member(address)
        session.commit()
        return {"email": address, "subscribed": False}
