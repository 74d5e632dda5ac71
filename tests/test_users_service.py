from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from argon2 import PasswordHasher

from accounts.core.security import verify_password
from accounts.db.models import NewsletterMember, User, UserSession
from accounts.services.users_service import (
    AccountExistsError,
    InvalidCredentialsError,
    TokenInvalidError,
    UserNotFoundError,
    UsersService,
)


@pytest.fixture()
def svc():
    return UsersService()


@pytest.fixture()
def bob(svc, db_session):
    return svc.create_user(db_session, "Bob@X.com", "bob", "secret1")


def test_create_user_hashes_password_and_returns_email_code(svc, db_session, bob):
    assert bob["email"] == "bob@x.com"
    assert bob["username"] == "bob"
    assert bob["emailVerified"] is False
    assert bob["emailCode"]

    user = db_session.get(User, bob["id"])
    assert user.password_hash != "secret1"
    assert verify_password("secret1", user.password_hash)
    assert user.email_code == bob["emailCode"]


def test_create_user_rejects_duplicate_email(svc, db_session, bob):
    with pytest.raises(AccountExistsError) as exc:
        svc.create_user(db_session, "bob@x.com", "other", "secret1")
    assert exc.value.field == "email"
    assert exc.value.status_code == 409


def test_create_user_rejects_duplicate_username_case_insensitive(svc, db_session, bob):
    with pytest.raises(AccountExistsError) as exc:
        svc.create_user(db_session, "other@x.com", "BOB", "secret1")
    assert exc.value.field == "username"


def test_does_username_and_email_exist(svc, db_session, bob):
    assert svc.does_username_and_email_exist(db_session, "bob@x.com", "nobody") == {
        "emailExists": True,
        "usernameExists": False,
    }
    assert svc.does_username_and_email_exist(db_session, "", "Bob") == {
        "emailExists": False,
        "usernameExists": True,
    }


@pytest.mark.parametrize("identifier", ["bob", "BOB", "bob@x.com", " Bob@X.com "])
def test_login_by_email_or_username_issues_session(svc, db_session, bob, identifier):
    result = svc.login(db_session, identifier, "secret1")

    assert result["user"]["id"] == bob["id"]
    assert "emailCode" not in result["user"]
    entity = db_session.get(UserSession, result["token"])
    assert entity is not None
    assert entity.user_id == bob["id"]


@pytest.mark.parametrize("identifier, password", [("bob", "wrong-pass"), ("nobody", "secret1")])
def test_login_rejects_bad_credentials(svc, db_session, bob, identifier, password):
    with pytest.raises(InvalidCredentialsError):
        svc.login(db_session, identifier, password)


def test_login_upgrades_outdated_hash(svc, db_session, bob):
    user = db_session.get(User, bob["id"])
    user.password_hash = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash("secret1")
    db_session.commit()
    old_hash = user.password_hash

    svc.login(db_session, "bob", "secret1")

    db_session.refresh(user)
    assert user.password_hash != old_hash
    assert verify_password("secret1", user.password_hash)


def test_get_user_by_id(svc, db_session, bob):
    assert svc.get_user_by_id(db_session, bob["id"])["username"] == "bob"
    with pytest.raises(UserNotFoundError):
        svc.get_user_by_id(db_session, 999)


def test_forgot_and_change_password_flow(svc, db_session, bob):
    login = svc.login(db_session, "bob", "secret1")

    assert svc.forgot_password(db_session, "BOB@x.com", "code-1") == {"email": "bob@x.com"}
    result = svc.change_forgotten_password(db_session, "bob@x.com", "code-1", "brand-new")

    assert result["id"] == bob["id"]
    user = db_session.get(User, bob["id"])
    assert verify_password("brand-new", user.password_hash)
    assert user.reset_code is None
    # existing sessions are revoked with the old password
    assert db_session.get(UserSession, login["token"]) is None
    with pytest.raises(TokenInvalidError):
        svc.change_forgotten_password(db_session, "bob@x.com", "code-1", "again-new")


def test_forgot_password_unknown_email(svc, db_session):
    with pytest.raises(UserNotFoundError):
        svc.forgot_password(db_session, "ghost@x.com", "code")


def test_change_forgotten_password_rejects_wrong_code(svc, db_session, bob):
    svc.forgot_password(db_session, "bob@x.com", "code-1")
    with pytest.raises(TokenInvalidError) as exc:
        svc.change_forgotten_password(db_session, "bob@x.com", "code-2", "brand-new")
    assert exc.value.field == "code"


def test_change_forgotten_password_rejects_expired_code(svc, db_session, bob):
    svc.forgot_password(db_session, "bob@x.com", "code-1")
    user = db_session.get(User, bob["id"])
    user.reset_code_created_at = datetime.now(timezone.utc) - timedelta(seconds=86400 + 5)
    db_session.commit()

    with pytest.raises(TokenInvalidError):
        svc.change_forgotten_password(db_session, "bob@x.com", "code-1", "brand-new")
    db_session.refresh(user)
    assert user.reset_code is None


def test_verify_email(svc, db_session, bob):
    with pytest.raises(TokenInvalidError):
        svc.verify_email(db_session, bob["id"], "wrong")

    result = svc.verify_email(db_session, bob["id"], bob["emailCode"])

    assert result["emailVerified"] is True
    assert db_session.get(User, bob["id"]).email_code is None
    with pytest.raises(TokenInvalidError):
        svc.verify_email(db_session, bob["id"], bob["emailCode"])


def test_newsletter_membership_is_idempotent(svc, db_session):
    assert svc.create_newsletter_member(db_session, "News@X.com") == {"email": "news@x.com", "subscribed": True}
    assert svc.create_newsletter_member(db_session, "news@x.com") == {"email": "news@x.com", "subscribed": True}
    assert db_session.get(NewsletterMember, "news@x.com") is not None

    assert svc.delete_newsletter_member(db_session, "news@x.com") == {"email": "news@x.com", "subscribed": False}
    assert svc.delete_newsletter_member(db_session, "news@x.com") == {"email": "news@x.com", "subscribed": False}
    assert db_session.get(NewsletterMember, "news@x.com") is None


def test_reset_code_lifetime_follows_current_settings(svc, db_session, bob, settings_env):
    svc.forgot_password(db_session, "bob@x.com", "code-1")
    user = db_session.get(User, bob["id"])
    user.reset_code_created_at = datetime.now(timezone.utc) - timedelta(seconds=120)
    db_session.commit()

    # service was built before the TTL changed
    settings_env(PASSWORD_RESET_TTL=60)

    with pytest.raises(TokenInvalidError):
        svc.change_forgotten_password(db_session, "bob@x.com", "code-1", "brand-new")
