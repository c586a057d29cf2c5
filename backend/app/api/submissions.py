# app/api/submissions.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.models import Submission
from app.schemas.reports import SaveResult, SubmissionCreate
from app.services.aggregation import num
from app.services.periods import normalize_assembly
from app.services.records import save_submission

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


def _entry_date(entry: dict) -> Optional[date]:
    raw = str(entry.get("date") or "")[:10]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _flat_entry(entry: dict) -> dict:
    d = _entry_date(entry)
    return {
        "week": entry.get("week") or "",
        "date": d.isoformat() if d else "",
        "tithe": num(entry.get("tithe")),
        "offeringGeneral": num(entry.get("offeringGeneral")),
        "offeringSpecial": num(entry.get("offeringSpecial")),
        "welfare": num(entry.get("welfare")),
        "missionaryFund": num(entry.get("missionaryFund")),
        "total": num(entry.get("total")),
        "remarks": entry.get("remarks") or "",
    }


@router.post("", response_model=SaveResult, status_code=status.HTTP_201_CREATED)
def create_submission(payload: SubmissionCreate, db: Session = Depends(get_db)):
    entries = [e.model_dump(by_alias=True) for e in payload.entries]
    obj, created = save_submission(
        db, assembly=payload.assembly, month=payload.month, year=payload.year, entries=entries
    )
    return SaveResult(
        message="Submission saved successfully" if created else "Submission updated successfully",
        created=created,
        data={
            "id": obj.id,
            "assembly": obj.assembly,
            "month": obj.month,
            "year": obj.year,
            "entries": list(obj.entries or []),
        },
    )


@router.get("")
def list_submissions(
    assembly: str = Query(..., min_length=1),
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Entries of every submission of an assembly, optionally limited to an inclusive date range."""
    stmt = (
        select(Submission)
        .where(Submission.assembly == normalize_assembly(assembly))
        .order_by(Submission.year.asc(), Submission.month.asc())
    )
    out = []
    for sub in db.execute(stmt).scalars().all():
        for entry in sub.entries or []:
            if start and end:
                d = _entry_date(entry)
                if d is None or not (start <= d <= end):
                    continue
            out.append(_flat_entry(entry))
    return out
