# app/api/system.py
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import APP_VERSION, Settings
from app.dependencies import get_app_settings, get_db

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]  # "psycopg2"
    return scheme


@router.get("/health")
def health(db: Session = Depends(get_db), settings: Settings = Depends(get_app_settings)):
    """Liveness check with a lightweight DB probe and local time."""
    now_local = datetime.now(ZoneInfo(settings.tz)).isoformat()

    store = {"status": "ok", "driver": _db_driver_from_url(settings.database_url)}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        store["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": settings.tz, "now": now_local},
        "db": store,
        "narratives": "enabled" if settings.openai_api_key else "fallback-only",
    }


@router.get("/version")
def version(settings: Settings = Depends(get_app_settings)):
    """Minimal runtime info; confirms DB driver for the UI."""
    return {
        "app": "District Returns Backend",
        "version": APP_VERSION,
        "db_driver": _db_driver_from_url(settings.database_url),
        "tz": settings.tz,
    }
