# app/api/financial_records.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.models import FinancialRecord
from app.schemas.reports import FinancialSubmission, SaveResult
from app.services.periods import normalize_assembly, normalize_period
from app.services.records import (
    as_document,
    clean_financial_rows,
    empty_document,
    get_document,
    save_report,
)

router = APIRouter(prefix="/api/financial-records", tags=["Financial Records"])


@router.post("", response_model=SaveResult)
def submit_financial_records(payload: FinancialSubmission, db: Session = Depends(get_db)):
    rows, totals = clean_financial_rows(payload.records)
    if not rows:
        raise HTTPException(status_code=400, detail="No valid records to save")

    obj, created = save_report(
        db,
        FinancialRecord,
        assembly=payload.assembly,
        month=normalize_period(payload.month),
        submitted_by=payload.submitted_by,
        records=rows,
        totals=totals,
    )
    return SaveResult(
        message=f"{len(rows)} financial record(s) saved",
        created=created,
        data=as_document(obj),
    )


@router.get("")
def get_financial_records(
    assembly: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    obj = get_document(
        db, FinancialRecord, assembly=normalize_assembly(assembly), month=normalize_period(month)
    )
    if obj is None:
        return empty_document(assembly, month, totals={"income": 0.0, "expense": 0.0, "net": 0.0})
    return as_document(obj)
