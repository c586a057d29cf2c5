# backend/scripts/seed_district_data.py
"""
Seed sample district returns (Sunday, midweek and special service reports plus
tithe sheets) for every roster assembly over a run of months.

Writes go through the same cleaning and create-or-replace path as the API, so
re-running for the same months replaces documents instead of duplicating them.

Usage (from repo root):
  python backend/scripts/seed_district_data.py --from November-2025 --months 3 --dry-run
  python backend/scripts/seed_district_data.py --from November-2025 --months 3 \
      --db-url sqlite:///./district_returns.db
"""
from __future__ import annotations

import argparse
import json
import os
import random
import subprocess
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

# -----------------------------------------------------------------------------
# Paths & import setup (so "import app" works regardless of CWD)
# -----------------------------------------------------------------------------
HERE = Path(__file__).resolve()
BACKEND_ROOT = HERE.parents[1]          # .../backend

if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------
parser = argparse.ArgumentParser(description="Seed sample district returns.")
parser.add_argument("--from", dest="period_from", required=True, help='Most recent period, e.g. "November-2025"')
parser.add_argument("--months", dest="months", type=int, default=3, help="How many months back to seed")
parser.add_argument("--db-url", dest="db_url", help="SQLAlchemy URL (defaults to DATABASE_URL)")
parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Generate and print, write nothing")
parser.add_argument("--seed", dest="rng_seed", type=int, default=42)
parser.add_argument("--no-migrate", dest="no_migrate", action="store_true", help="Skip Alembic migrations")

MEMBER_NAMES = [
    "Adebayo", "Chinedu", "Funke", "Ngozi", "Tunde", "Bisi", "Emeka", "Kemi",
    "Segun", "Yetunde", "Ifeanyi", "Folake", "Dapo", "Amaka", "Gbenga", "Ronke",
]
SPECIAL_SERVICES = ["Harvest Thanksgiving", "Youth Week", "Crusade", "Watch Night"]


def _alembic_upgrade_head(target_url: str) -> None:
    env = os.environ.copy()
    env["DATABASE_URL"] = target_url
    env["PYTHONPATH"] = f"{BACKEND_ROOT}{os.pathsep}{env.get('PYTHONPATH', '')}"
    cmd = ["alembic", "-c", str(BACKEND_ROOT / "alembic.ini"), "upgrade", "head"]
    print("[alembic]", " ".join(cmd))
    subprocess.check_call(cmd, cwd=str(BACKEND_ROOT), env=env)


# -----------------------------------------------------------------------------
# Row generators (raw, as a form would submit them)
# -----------------------------------------------------------------------------
def _sunday_rows(rng: random.Random, size: float) -> List[Dict[str, Any]]:
    rows = []
    for week in range(1, 5):
        main = int(rng.gauss(120, 25) * size)
        rows.append(
            {
                "week": f"Week {week}",
                "attendance": max(main, 0),
                "sbsAttendance": max(int(main * rng.uniform(0.3, 0.6)), 0),
                "visitors": rng.randint(0, 8),
                "tithes": round(rng.uniform(40_000, 90_000) * size, -2),
                "offerings": round(rng.uniform(15_000, 30_000) * size, -2),
                "specialOfferings": round(rng.uniform(0, 10_000), -2),
                "thanksgiving": rng.choice([0, 0, 5_000, 12_000]),
                "vigil": rng.choice([0, 2_500]) if week == 4 else 0,
                "districtSupport": 2_000,
            }
        )
    return rows


def _midweek_rows(rng: random.Random, size: float) -> List[Dict[str, Any]]:
    return [
        {
            "day": day,
            "attendance": int(rng.gauss(45, 10) * size),
            "offering": round(rng.uniform(3_000, 9_000) * size, -2),
        }
        for _ in range(4)
        for day in ("tuesday", "thursday")
    ]


def _special_rows(rng: random.Random, size: float) -> List[Dict[str, Any]]:
    if rng.random() < 0.6:
        return []
    return [
        {
            "serviceName": rng.choice(SPECIAL_SERVICES),
            "attendance": int(rng.gauss(200, 40) * size),
            "offering": round(rng.uniform(30_000, 120_000) * size, -2),
        }
    ]


def _tithe_rows(rng: random.Random, assembly: str) -> List[Dict[str, Any]]:
    prefix = "".join(w[0] for w in assembly.split())[:3]
    rows = []
    for i, name in enumerate(rng.sample(MEMBER_NAMES, 10), 1):
        # some members skip a month entirely
        paying = rng.random() > 0.2
        row = {"name": name, "titheNumber": f"{prefix}{i:03d}"}
        for w in range(1, 6):
            row[f"week{w}"] = round(rng.uniform(1_000, 8_000), -2) if paying and rng.random() > 0.3 else 0
        rows.append(row)
    return rows


# -----------------------------------------------------------------------------
# Seed
# -----------------------------------------------------------------------------
def run_seed(args) -> Dict[str, Any]:
    from app.config import get_settings
    from app.db import SessionLocal
    from app.models import SERVICE_MODELS, ServiceType, TitheRecord
    from app.services.periods import format_period, normalize_period, parse_period, previous_periods
    from app.services.records import NoValidRecords, clean_rows, clean_tithe_rows, save_report

    rng = random.Random(args.rng_seed)
    settings = get_settings()

    latest = normalize_period(args.period_from)
    parsed = parse_period(latest)
    if parsed is None:
        raise SystemExit(f"--from must look like 'November-2025', got {args.period_from!r}")
    year, _ = parsed
    earlier = previous_periods(latest.split("-")[0], year, max(args.months - 1, 0))
    periods = [latest] + [format_period(m, y) for m, y in earlier]

    # a stable relative size per assembly
    sizes = {a: rng.uniform(0.5, 1.6) for a in settings.assemblies}
    written: Counter = Counter()
    income = 0.0

    db = None if args.dry_run else SessionLocal()
    try:
        for period in periods:
            for assembly in settings.assemblies:
                size = sizes[assembly]
                generated = {
                    ServiceType.SUNDAY: _sunday_rows(rng, size),
                    ServiceType.MIDWEEK: _midweek_rows(rng, size),
                    ServiceType.SPECIAL: _special_rows(rng, size),
                }
                for st, raw in generated.items():
                    try:
                        rows = clean_rows(st.value, raw, period)
                    except NoValidRecords:
                        continue
                    income += sum(r.get("total", r.get("offering", 0)) for r in rows)
                    written[st.value] += 1
                    if db is not None:
                        save_report(
                            db, SERVICE_MODELS[st],
                            assembly=assembly, month=period, submitted_by="Seed Script", records=rows,
                        )

                tithes = clean_tithe_rows(_tithe_rows(rng, assembly))
                written["tithe"] += 1
                if db is not None:
                    save_report(
                        db, TitheRecord,
                        assembly=assembly, month=period, submitted_by="Seed Script", records=tithes,
                    )
    finally:
        if db is not None:
            db.close()

    return {
        "periods": periods,
        "assemblies": len(settings.assemblies),
        "documents": dict(written),
        "service_income_estimate": round(income, 2),
        "dry_run": bool(args.dry_run),
    }


def main():
    args = parser.parse_args()
    if args.months < 1:
        raise SystemExit("--months must be at least 1")

    if args.db_url:
        # app.db reads DATABASE_URL at import time
        os.environ["DATABASE_URL"] = args.db_url
    target_url = os.getenv("DATABASE_URL", "sqlite:///./district_returns.db")
    print(f"→ Target DB: {target_url}")

    if not args.dry_run and not args.no_migrate:
        _alembic_upgrade_head(target_url)

    summary = run_seed(args)
    print("\n=== SEED SUMMARY ===")
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
