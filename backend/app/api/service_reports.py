# app/api/service_reports.py
from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.models import SERVICE_MODELS, ServiceType
from app.schemas.reports import ReportSubmission, SaveResult
from app.services.periods import normalize_assembly, normalize_period
from app.services.records import (
    NoValidRecords,
    as_document,
    clean_rows,
    empty_document,
    get_document,
    refresh_sunday_totals,
    save_report,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sunday-service-reports", tags=["Service Reports"])

_LABELS = {"sunday": "Sunday service", "midweek": "Midweek service", "special": "Special service"}


@router.post("", response_model=SaveResult)
def submit_service_report(payload: ReportSubmission, db: Session = Depends(get_db)):
    """Create or replace the (assembly, month) report for one service type."""
    period = normalize_period(payload.month)
    try:
        rows = clean_rows(payload.service_type, payload.records, period)
    except NoValidRecords as e:
        raise HTTPException(status_code=400, detail=str(e))

    model = SERVICE_MODELS[ServiceType(payload.service_type)]
    obj, created = save_report(
        db,
        model,
        assembly=payload.assembly,
        month=period,
        submitted_by=payload.submitted_by,
        records=rows,
    )
    verb = "saved" if created else "updated"
    return SaveResult(
        message=f"{_LABELS[payload.service_type]} report {verb} successfully",
        created=created,
        data=as_document(obj, payload.service_type),
    )


@router.get("")
def get_service_report(
    assembly: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1, description='Period, e.g. "November-2025"'),
    service_type: Literal["sunday", "midweek", "special"] = Query("sunday", alias="serviceType"),
    db: Session = Depends(get_db),
):
    """The stored report for (assembly, month), or an empty document when none exists."""
    model = SERVICE_MODELS[ServiceType(service_type)]
    obj = get_document(db, model, assembly=normalize_assembly(assembly), month=normalize_period(month))
    if obj is None:
        return empty_document(assembly, month, serviceType=service_type)

    doc = as_document(obj, service_type)
    if service_type == "sunday":
        doc = refresh_sunday_totals(doc)
    return doc
