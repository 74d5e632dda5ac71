"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from accounts.db.models import NewsletterMember, User, UserSession


class SQLRepository:
    """CRUD helpers over a caller-supplied session. Callers own the commit."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == (email or "").strip().lower())
        return self.session.execute(stmt).scalar_one_or_none()

    def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.username) == (username or "").strip().lower())
        return self.session.execute(stmt).scalars().first()

    def get_user_by_email_or_username(self, value: str) -> Optional[User]:
        needle = (value or "").strip().lower()
        stmt = select(User).where(or_(User.email == needle, func.lower(User.username) == needle))
        return self.session.execute(stmt).scalars().first()

    def add_user(self, username: str, email: str, password_hash: str, email_code: str) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            email_code=email_code,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        self.session.flush()
        return user

    def update_user_password(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        user.updated_at = datetime.now(timezone.utc)
        self.session.flush()

    def set_reset_code(self, user: User, code: Optional[str]) -> None:
        now = datetime.now(timezone.utc)
        user.reset_code = code
        user.reset_code_created_at = now if code else None
        user.updated_at = now
        self.session.flush()

    def set_user_verified(self, user: User) -> None:
        now = datetime.now(timezone.utc)
        user.email_verified_at = now
        user.email_code = None
        user.updated_at = now
        self.session.flush()

    # -------------------------- sessions --------------------------
    def create_user_session(self, user_id: int, token: str, expires_at: datetime) -> UserSession:
        entity = UserSession(token=token, user_id=user_id, expires_at=expires_at)
        self.session.add(entity)
        self.session.flush()
        return entity

    def get_user_session(self, token: str) -> Optional[UserSession]:
        return self.session.get(UserSession, token)

    def delete_user_session(self, token: str) -> None:
        stmt = delete(UserSession).where(UserSession.token == token).execution_options(synchronize_session="fetch")
        self.session.execute(stmt)

    def delete_user_sessions(self, user_id: int) -> None:
        stmt = delete(UserSession).where(UserSession.user_id == user_id).execution_options(synchronize_session="fetch")
        self.session.execute(stmt)

    # -------------------------- newsletter --------------------------
    def get_newsletter_member(self, email: str) -> Optional[NewsletterMember]:
        return self.session.get(NewsletterMember, email)

    def add_newsletter_member(self, email: str) -> NewsletterMember:
        entity = NewsletterMember(email=email, created_at=datetime.now(timezone.utc))
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete_newsletter_member(self, email: str) -> None:
        stmt = delete(NewsletterMember).where(NewsletterMember.email == email).execution_options(synchronize_session="fetch")
        self.session.execute(stmt)
