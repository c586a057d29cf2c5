# app/config.py
"""Runtime settings read from the environment (.env is loaded by app.db)."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# District roster used when ASSEMBLIES is not set.
DEFAULT_ASSEMBLIES: List[str] = [
    "EMMANUEL",
    "GOSPEL CENTRE",
    "GLORY TABERNACLE",
    "HOUSE OF PRAYER",
    "PEACE SANCTUARY",
    "REDEMPTION",
    "SALVATION",
    "VICTORY",
    "ZION",
]

APP_VERSION = "0.1.0"

DEFAULT_OVERLAP_RATIO = 0.75


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _roster_from_env() -> List[str]:
    raw = os.getenv("ASSEMBLIES")
    if not raw:
        return list(DEFAULT_ASSEMBLIES)
    names = [" ".join(part.split()).upper() for part in raw.split(",")]
    return [n for n in names if n]


@dataclass(frozen=True)
class Settings:
    database_url: str
    openai_api_key: Optional[str]
    openai_model: str
    openai_timeout: float
    assemblies: List[str] = field(default_factory=list)
    # Share of the smaller of (main, SBS) attendance assumed to have attended both.
    # An estimate, not a measured figure.
    attendance_overlap_ratio: float = DEFAULT_OVERLAP_RATIO
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    district_name: str = "GOFAMINT Akowonjo District, Region 28"
    district_location: str = "Lagos, Nigeria"
    tz: str = "Africa/Lagos"


def get_settings() -> Settings:
    ratio = _env_float("ATTENDANCE_OVERLAP_RATIO", DEFAULT_OVERLAP_RATIO)
    ratio = min(max(ratio, 0.0), 1.0)
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./district_returns.db"),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4.1"),
        openai_timeout=_env_float("OPENAI_TIMEOUT", 60.0),
        assemblies=_roster_from_env(),
        attendance_overlap_ratio=ratio,
        admin_email=os.getenv("ADMIN_EMAIL") or None,
        admin_password=os.getenv("ADMIN_PASSWORD") or None,
        district_name=os.getenv("DISTRICT_NAME", "GOFAMINT Akowonjo District, Region 28"),
        district_location=os.getenv("DISTRICT_LOCATION", "Lagos, Nigeria"),
        tz=os.getenv("TZ", "Africa/Lagos"),
    )
