from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Make the accounts package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accounts.app import app  # noqa: E402
from accounts.core import config as core_config  # noqa: E402
from accounts.core import emailer as emailer_module  # noqa: E402
from accounts.core.rate_limiter import reset_rate_limits  # noqa: E402
from accounts.db import models  # noqa: E402
from accounts.db.session import get_db_session  # noqa: E402


@pytest.fixture()
def engine():
    """In-memory SQLite shared by every session of a single test (StaticPool)."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    models.Base.metadata.create_all(bind=test_engine)
    yield test_engine
    models.Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def db_session(engine):
    with Session(engine, future=True) as session:
        yield session


@pytest.fixture()
def settings_env(monkeypatch):
    """Set env vars and rebuild the cached Settings; cache is cleared again on teardown."""

    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        core_config.get_settings.cache_clear()
        return core_config.get_settings()

    yield _apply
    core_config.get_settings.cache_clear()


@pytest.fixture()
def outbox(monkeypatch):
    """Capture outgoing emails instead of talking to SMTP."""
    sent = []

    def _fake_send(subject, to_email, html_body, text_body=None):
        sent.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return True

    monkeypatch.setattr(emailer_module, "send_email", _fake_send)
    return sent


@pytest.fixture()
def client(engine, outbox):
    def _override_session():
        with Session(engine, future=True) as session:
            yield session

    reset_rate_limits()
    app.dependency_overrides[get_db_session] = _override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    reset_rate_limits()
