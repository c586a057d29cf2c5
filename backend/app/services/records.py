# app/services/records.py
"""Write-side cleaning and create-or-replace persistence of report documents."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Submission
from app.services.aggregation import (
    OFFERING_CELL_FIELDS,
    SUNDAY_ATTENDANCE_FIELDS,
    SUNDAY_MONEY_FIELDS,
    WEEK_FIELDS,
    num,
    offering_row_total,
    sunday_totals,
    tithe_row_total,
)
from app.services.periods import normalize_assembly, normalize_period, sunday_for_week

logger = logging.getLogger(__name__)


class NoValidRecords(ValueError):
    """Every submitted row was empty."""


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


# ─────────────────────────────────────────────────────────────────────────────
# Row cleaning (drop empty rows, coerce numbers, compute derived totals)
# ─────────────────────────────────────────────────────────────────────────────

def clean_sunday_row(row: Dict[str, Any], period: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {"week": _text(row.get("week")) or "Week 1"}
    out["date"] = _text(row.get("date")) or sunday_for_week(out["week"], period) or ""
    for f in SUNDAY_ATTENDANCE_FIELDS + SUNDAY_MONEY_FIELDS:
        out[f] = num(row.get(f))
    out.update(sunday_totals(out))
    return out


def clean_sunday_rows(rows: List[Dict[str, Any]], period: str) -> List[Dict[str, Any]]:
    kept = [
        r for r in rows
        if any(num(r.get(f)) > 0 for f in SUNDAY_ATTENDANCE_FIELDS + SUNDAY_MONEY_FIELDS)
    ]
    return [clean_sunday_row(r, period) for r in kept]


def clean_midweek_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for r in rows:
        attendance, offering = num(r.get("attendance")), num(r.get("offering"))
        if attendance <= 0 and offering <= 0:
            continue
        out.append(
            {
                "date": _text(r.get("date")),
                # tuesday/thursday expected; other labels are kept as given
                "day": _text(r.get("day")).lower(),
                "attendance": attendance,
                "offering": offering,
                "total": offering,
            }
        )
    return out


def clean_special_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for r in rows:
        attendance, offering = num(r.get("attendance")), num(r.get("offering"))
        name = _text(r.get("serviceName"))
        if attendance <= 0 and offering <= 0 and not name:
            continue
        out.append(
            {
                "serviceName": name or "Unnamed Service",
                "date": _text(r.get("date")),
                "attendance": attendance,
                "offering": offering,
            }
        )
    return out


def clean_tithe_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for r in rows:
        name, number = _text(r.get("name")), _text(r.get("titheNumber"))
        weeks = {w: num(r.get(w)) for w in WEEK_FIELDS}
        if not name and not number and not any(v > 0 for v in weeks.values()):
            continue
        row = {"name": name, "titheNumber": number, **weeks}
        row["total"] = tithe_row_total(row)
        out.append(row)
    return out


def clean_offering_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for r in rows:
        row = {f: num(r.get(f)) for f in OFFERING_CELL_FIELDS + ("amount",)}
        if not any(v > 0 for v in row.values()):
            continue
        row["total"] = offering_row_total(row)
        out.append(row)
    return out


def clean_financial_rows(rows: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], Dict[str, float]]:
    out = []
    for r in rows:
        description, category = _text(r.get("description")), _text(r.get("category"))
        kind, amount = _text(r.get("type")).lower(), num(r.get("amount"))
        if not description and not category and not kind and amount <= 0:
            continue
        out.append(
            {
                "date": _text(r.get("date")),
                "description": description,
                "category": category,
                "type": kind if kind in ("income", "expense") else "income",
                "amount": amount,
                "paymentMethod": _text(r.get("paymentMethod")) or None,
                "reference": _text(r.get("reference")) or None,
            }
        )
    income = sum(r["amount"] for r in out if r["type"] == "income")
    expense = sum(r["amount"] for r in out if r["type"] == "expense")
    return out, {"income": income, "expense": expense, "net": income - expense}


def submission_entry_total(entry: Dict[str, Any]) -> float:
    return sum(
        num(entry.get(f))
        for f in ("tithe", "offeringGeneral", "offeringSpecial", "welfare", "missionaryFund")
    )


def clean_rows(service_type: str, rows: List[Dict[str, Any]], period: str) -> List[Dict[str, Any]]:
    """Dispatch by service type; raises NoValidRecords when nothing is left."""
    if service_type == "midweek":
        kept = clean_midweek_rows(rows)
    elif service_type == "special":
        kept = clean_special_rows(rows)
    else:
        kept = clean_sunday_rows(rows, period)
    if not kept:
        raise NoValidRecords("No valid records to save")
    return kept


# ─────────────────────────────────────────────────────────────────────────────
# Document views
# ─────────────────────────────────────────────────────────────────────────────

def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def as_document(obj: Any, service_type: Optional[str] = None) -> Dict[str, Any]:
    """camelCase dict of a stored document, as returned by the API."""
    doc: Dict[str, Any] = {
        "id": obj.id,
        "assembly": obj.assembly,
        "submittedBy": getattr(obj, "submitted_by", "") or "",
        "month": obj.month,
        "records": list(obj.records or []),
        "createdAt": _iso(obj.created_at),
        "updatedAt": _iso(obj.updated_at),
    }
    if hasattr(obj, "type"):
        doc["type"] = obj.type
    if hasattr(obj, "totals"):
        doc["totals"] = dict(obj.totals or {})
    if service_type:
        doc["serviceType"] = service_type
    return doc


def empty_document(assembly: str, month: str, **extra: Any) -> Dict[str, Any]:
    return {
        "id": None,
        "assembly": normalize_assembly(assembly),
        "submittedBy": "",
        "month": normalize_period(month),
        "records": [],
        "createdAt": None,
        "updatedAt": None,
        **extra,
    }


def refresh_sunday_totals(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Recompute derived Sunday totals so stale stored values are never shown."""
    records = []
    for rec in doc.get("records") or []:
        rec = dict(rec)
        rec.update(sunday_totals(rec))
        records.append(rec)
    return {**doc, "records": records}


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────

def _key_clause(model: Type[Any], key: Dict[str, Any]):
    return and_(*[getattr(model, k) == v for k, v in key.items()])


def get_document(db: Session, model: Type[Any], **key: Any) -> Optional[Any]:
    stmt = select(model).where(_key_clause(model, key)).order_by(model.created_at.desc(), model.id.desc())
    return db.execute(stmt).scalars().first()


def _apply(obj: Any, values: Dict[str, Any]) -> None:
    for k, v in values.items():
        setattr(obj, k, v)
    obj.updated_at = datetime.now(timezone.utc)


def upsert_document(
    db: Session, model: Type[Any], key: Dict[str, Any], values: Dict[str, Any]
) -> Tuple[Any, bool]:
    """Create-or-replace the row identified by ``key``.

    Returns ``(row, created)``. A concurrent insert of the same key is
    retried once as an update.
    """
    existing = get_document(db, model, **key)
    if existing is not None:
        _apply(existing, values)
        db.commit()
        db.refresh(existing)
        return existing, False

    obj = model(**key, **values)
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_document(db, model, **key)
        if existing is None:
            raise
        logger.info("upsert race on %s %s; replacing", model.__tablename__, key)
        _apply(existing, values)
        db.commit()
        db.refresh(existing)
        return existing, False
    db.refresh(obj)
    return obj, True


def save_report(
    db: Session,
    model: Type[Any],
    *,
    assembly: str,
    month: str,
    submitted_by: str,
    records: List[Dict[str, Any]],
    **extra: Any,
) -> Tuple[Any, bool]:
    """Persist already-cleaned rows under the canonical (assembly, period) key."""
    key = {"assembly": normalize_assembly(assembly), "month": normalize_period(month)}
    if "type" in extra:
        # offering sheets are keyed per offering type as well
        key["type"] = _text(extra.pop("type"))
    obj, created = upsert_document(
        db, model, key, {"submitted_by": submitted_by.strip(), "records": records, **extra}
    )
    logger.info(
        "%s %s assembly=%s month=%s rows=%d",
        "created" if created else "replaced",
        model.__tablename__,
        obj.assembly,
        obj.month,
        len(records),
    )
    return obj, created


def save_submission(
    db: Session, *, assembly: str, month: int, year: int, entries: List[Dict[str, Any]]
) -> Tuple[Submission, bool]:
    cleaned = []
    for e in entries:
        e = dict(e)
        e["total"] = submission_entry_total(e)
        cleaned.append(e)
    key = {"assembly": normalize_assembly(assembly), "month": int(month), "year": int(year)}
    obj, created = upsert_document(db, Submission, key, {"entries": cleaned})
    logger.info(
        "%s submission assembly=%s %s/%s entries=%d",
        "created" if created else "replaced",
        obj.assembly,
        obj.month,
        obj.year,
        len(cleaned),
    )
    return obj, created
