# tests/conftest.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import DEFAULT_ASSEMBLIES, Settings
from app.db import Base, get_db
from app.dependencies import get_app_settings, get_narrator
from app.main import app
from app.services.narrative import NarrativeUnavailable


class FailingNarrator:
    """Behaves like an unreachable text service."""

    def __init__(self):
        self.calls = 0

    def complete(self, prompt, **kwargs):
        self.calls += 1
        raise NarrativeUnavailable("upstream down")

    def complete_json(self, prompt, **kwargs):
        self.calls += 1
        raise NarrativeUnavailable("upstream down")


class CannedNarrator:
    """Returns fixed text and remembers the prompts it was given."""

    def __init__(self, text="AI NARRATIVE", data=None):
        self.text = text
        self.data = data or {"executive_summary": "Written by the model."}
        self.prompts = []

    def complete(self, prompt, **kwargs):
        self.prompts.append(prompt)
        return self.text

    def complete_json(self, prompt, **kwargs):
        self.prompts.append(prompt)
        return dict(self.data)


@pytest.fixture()
def settings():
    return Settings(
        database_url="sqlite://",
        openai_api_key=None,
        openai_model="test-model",
        openai_timeout=1.0,
        assemblies=list(DEFAULT_ASSEMBLIES),
        attendance_overlap_ratio=0.75,
        admin_email="admin@example.org",
        admin_password="s3cret",
    )


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def narrator():
    return FailingNarrator()


@pytest.fixture()
def client(session_factory, settings, narrator):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_narrator] = lambda: narrator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def post_report(client):
    """POST a service report and return the response."""

    def _post(assembly, month, rows, service_type="sunday", submitted_by="Secretary"):
        return client.post(
            "/api/sunday-service-reports",
            json={
                "assembly": assembly,
                "submittedBy": submitted_by,
                "month": month,
                "records": rows,
                "serviceType": service_type,
            },
        )

    return _post


@pytest.fixture()
def canned(client):
    """Swap in a narrator that always answers."""
    stub = CannedNarrator()
    app.dependency_overrides[get_narrator] = lambda: stub
    return stub


class BrokenNarrator:
    """Fails below the client layer, the way a dropped connection does."""

    def complete(self, prompt, **kwargs):
        raise ConnectionError("socket closed")

    def complete_json(self, prompt, **kwargs):
        raise ConnectionError("socket closed")


@pytest.fixture()
def broken(client):
    app.dependency_overrides[get_narrator] = lambda: BrokenNarrator()
