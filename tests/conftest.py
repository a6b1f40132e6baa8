"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = os.environ.get("DATABASE_URL") or "sqlite://"
os.environ["APPLICATION_URL"] = "http://board.example.com/"
os.environ["APPLICATION_LANGUAGE"] = "en_US"
os.environ.pop("SMTP_HOST", None)

from taskboard.logging_config import configure_logging

configure_logging()

from taskboard.database import Base, get_db
from taskboard.main import app
from taskboard.services.app_config import ApplicationConfig
from taskboard.services.email_client import get_email_client
from taskboard.services.notification_service import NotificationService
from taskboard.services.translator import Translator
from tests.factories import FakeEmailClient


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def translator() -> Translator:
    return Translator(default_locale="en_US")


@pytest.fixture
def app_config(db_session, translator) -> ApplicationConfig:
    return ApplicationConfig(db_session, translator=translator)


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def notification_service(db_session, email_client, translator) -> NotificationService:
    return NotificationService(db_session, email_client=email_client, translator=translator)


@pytest.fixture
def test_client(db_session, email_client) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client bound to the test database and fake mailer."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_client] = lambda: email_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
