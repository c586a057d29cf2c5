"""
Shared FastAPI dependency helpers.

`get_db` (re-exported from app.db) provides a SQLAlchemy session to each
request and closes it afterward. `get_narrator` provides the text-generation
client used by the narrative report endpoints; tests override it with a stub.
"""

from app.config import Settings, get_settings
from app.db import get_db  # noqa: F401
from app.services.narrative import NarrativeClient


def get_app_settings() -> Settings:
    return get_settings()


def get_narrator() -> NarrativeClient:
    """Build a narrative client from the current settings."""
    settings = get_settings()
    return NarrativeClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
