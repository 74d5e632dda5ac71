"""Create the users, sessions and newsletter tables on DATABASE_URL (``python -m accounts.db.create_tables``)."""
from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers the models on Base.metadata

logger = logging.getLogger(__name__)


def create_all(engine: Engine | None = None) -> list[str]:
    """Create missing tables and return the names known to the metadata."""
    target = engine or get_engine()
    Base.metadata.create_all(bind=target)
    return sorted(Base.metadata.tables)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        tables = create_all()
        logger.info("Database ready: %s", ", ".join(tables))
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
