# app/api/offerings.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.models import OfferingRecord
from app.schemas.reports import OfferingSubmission, SaveResult
from app.services.aggregation import OFFERING_CELL_FIELDS
from app.services.periods import normalize_assembly, normalize_period
from app.services.records import as_document, clean_offering_rows, get_document, save_report

router = APIRouter(prefix="/api/offerings", tags=["Offerings"])

BLANK_ROWS = 5


def _blank_row() -> dict:
    return {**dict.fromkeys(OFFERING_CELL_FIELDS, 0.0), "amount": 0.0, "total": 0.0}


@router.post("", response_model=SaveResult)
def submit_offerings(payload: OfferingSubmission, db: Session = Depends(get_db)):
    rows = clean_offering_rows(payload.records)
    if not rows:
        raise HTTPException(status_code=400, detail="No valid records to save")

    obj, created = save_report(
        db,
        OfferingRecord,
        assembly=payload.assembly,
        month=normalize_period(payload.month),
        submitted_by=payload.submitted_by,
        records=rows,
        type=payload.type,
    )
    return SaveResult(
        message=f"{len(rows)} record(s) saved successfully",
        created=created,
        data=as_document(obj),
    )


@router.get("")
def get_offerings(
    assembly: str = Query(..., min_length=1),
    type: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Rows of the (assembly, month, type) sheet; five blank rows when nothing is stored."""
    obj = get_document(
        db,
        OfferingRecord,
        assembly=normalize_assembly(assembly),
        month=normalize_period(month),
        type=type.strip(),
    )
    if obj is None:
        return {"records": [_blank_row() for _ in range(BLANK_ROWS)]}
    return {"records": list(obj.records or [])}
