from __future__ import annotations

import smtplib

from accounts.core import mailer
from accounts.core.emailer import Emailer


def test_welcome_email_links_to_verify_page(outbox, settings_env):
    settings_env(PUBLIC_BASE_URL="https://accounts.example/")

    assert Emailer().welcome_email("bob@x.com", "bob", "abc 123") is True

    message = outbox[0]
    assert message["to"] == "bob@x.com"
    assert "https://accounts.example/verify/abc%20123" in message["text"]
    assert "Welcome, bob!" in message["html"]


def test_forgot_password_email_carries_email_and_code(outbox, settings_env):
    settings_env(PUBLIC_BASE_URL="https://accounts.example")

    Emailer().forgot_password_email("bob+1@x.com", "code-1")

    text = outbox[0]["text"]
    assert "https://accounts.example/change-forgotten-password?email=bob%2B1%40x.com&code=code-1" in text


def test_send_email_without_smtp_config_returns_false(settings_env, monkeypatch):
    for key in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
        monkeypatch.delenv(key, raising=False)
    settings_env()

    assert mailer.send_email("s", "bob@x.com", "<p>hi</p>") is False


def test_send_email_reports_delivery_failure(settings_env, monkeypatch):
    settings_env(SMTP_HOST="smtp.example", SMTP_PORT=587, SMTP_USER="u", SMTP_PASSWORD="p", SMTP_FROM="noreply@example")

    class BrokenSMTP:
        def __init__(self, *args, **kwargs):
            raise smtplib.SMTPConnectError(421, "unavailable")

    monkeypatch.setattr(mailer.smtplib, "SMTP", BrokenSMTP)

    assert mailer.send_email("s", "bob@x.com", "<p>hi</p>") is False
