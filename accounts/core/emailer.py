"""Transactional emails sent after account lifecycle operations."""

from __future__ import annotations

import html
from urllib.parse import quote, urlencode

from .mailer import send_email
from .utils import absolute_url


class Emailer:
    """Builds welcome and password recovery messages and hands them to the mailer."""

    def _button_html(self, url: str, label: str, prompt: str, greeting: str = "Hi!") -> str:
        safe_url = html.escape(url)
        return f"""
        <p>{html.escape(greeting)}</p>
        <p>{prompt}</p>
        <p><a href="{safe_url}" style="background:#0ea5e9;color:#fff;padding:12px 18px;border-radius:8px;text-decoration:none;">{label}</a></p>
        <p>If the button does not work, copy and paste this link into your browser:</p>
        <p><a href="{safe_url}">{safe_url}</a></p>
        """

    def welcome_email(self, email: str, username: str, code: str) -> bool:
        verify_url = absolute_url(f"/verify/{quote(code or '', safe='')}")
        html_body = self._button_html(
            verify_url,
            "Verify my email",
            "Thanks for signing up. Please confirm your email address:",
            greeting=f"Welcome, {username}!",
        )
        return send_email("Welcome! Please verify your email", email, html_body, f"Verify your email: {verify_url}")

    def forgot_password_email(self, email: str, code: str) -> bool:
        query = urlencode({"email": email, "code": code})
        reset_url = absolute_url(f"/change-forgotten-password?{query}")
        html_body = self._button_html(
            reset_url,
            "Reset password",
            "We received a request to reset your password. If it was not you, ignore this message.",
        )
        return send_email("Reset your password", email, html_body, f"Use this link to reset your password: {reset_url}")
