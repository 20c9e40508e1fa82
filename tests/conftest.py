"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.db.models import Base, StoreZone


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so env changes made by a test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db() -> Session:
    """Create in-memory SQLite database for testing.

    StaticPool keeps a single connection so TestClient worker threads see
    the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    session = Session(engine)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def zoned_store(db: Session) -> str:
    """Store "lehua" split into 1F and 2F."""
    db.add_all(
        [
            StoreZone(id="lehua_1f", store_id="lehua", zone_code="1F", zone_name="一樓", sort_order=1),
            StoreZone(id="lehua_2f", store_id="lehua", zone_code="2F", zone_name="二樓", sort_order=2),
        ]
    )
    db.commit()
    return "lehua"
