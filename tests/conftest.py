from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base
from app.services.catalog_service import get_catalog
from app.services.conversation_service import SupportAssistant
from app.services.dedup_service import Deduplicator
from app.services.result import Result

FIXED_NOW = datetime(2026, 3, 14, 9, 26, 53)


class FakeSender:
    """Stands in for whatsapp_service.send_text and records every call."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result or Result.success({"messages": [{"id": "wamid.reply"}]})

    def __call__(self, to, text):
        self.calls.append((to, text))
        return self.result


class FakeMonotonic:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Real SQLAlchemy session on an in-memory SQLite database."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog():
    return get_catalog()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def assistant(catalog, sender, monotonic):
    return SupportAssistant(
        catalog,
        deduplicator=Deduplicator(clock=monotonic),
        send=sender,
        clock=lambda: FIXED_NOW,
    )
