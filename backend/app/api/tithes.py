# app/api/tithes.py
from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import Settings
from app.dependencies import get_app_settings, get_db
from app.models import TitheRecord
from app.schemas.reports import ReportSubmission, SaveResult
from app.services import aggregation as agg
from app.services.filters import ReportFilter, count_reports, select_reports
from app.services.periods import format_period, normalize_assembly, normalize_period, period_sort_key
from app.services.records import as_document, clean_tithe_rows, get_document, save_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tithes", tags=["Tithes"])
admin_router = APIRouter(prefix="/api/admin/tithes", tags=["Admin"])


# ---------- helpers ----------
def _members(docs) -> list[dict]:
    """Distinct members (by tithe number, else name) across tithe sheets."""
    seen: dict[str, dict] = {}
    for doc in docs:
        for rec in doc.get("records") or []:
            number = str(rec.get("titheNumber") or "").strip()
            name = str(rec.get("name") or "").strip()
            key = number or name.lower()
            if key and key not in seen:
                seen[key] = {"name": name, "titheNumber": number}
    return sorted(seen.values(), key=lambda m: m["name"].lower())


# ---------- /api/tithes ----------
@router.post("", response_model=SaveResult)
def submit_tithes(payload: ReportSubmission, db: Session = Depends(get_db)):
    rows = clean_tithe_rows(payload.records)
    if not rows:
        raise HTTPException(status_code=400, detail="No valid records to save")

    obj, created = save_report(
        db,
        TitheRecord,
        assembly=payload.assembly,
        month=normalize_period(payload.month),
        submitted_by=payload.submitted_by,
        records=rows,
    )
    return SaveResult(
        message="Tithe records saved successfully" if created else "Tithe records updated successfully",
        created=created,
        data=as_document(obj),
    )


@router.get("")
def list_tithes(
    assembly: Optional[str] = None,
    month: Optional[str] = Query(None, description='Period, e.g. "November-2025"'),
    id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    stmt = select(TitheRecord)
    if assembly and assembly.strip().lower() != "all":
        stmt = stmt.where(TitheRecord.assembly == normalize_assembly(assembly))
    if month:
        stmt = stmt.where(TitheRecord.month == normalize_period(month))
    if id is not None:
        stmt = stmt.where(TitheRecord.id == id)
    stmt = stmt.order_by(TitheRecord.created_at.desc(), TitheRecord.id.desc()).limit(50)

    data = [as_document(r) for r in db.execute(stmt).scalars().all()]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/{assembly}")
def assembly_tithes(
    assembly: str,
    month: Optional[str] = None,
    year: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Every tithe sheet of one assembly, the sheet for month/year if given, and its member list."""
    name = normalize_assembly(assembly)
    docs = [as_document(r) for r in select_reports(db, TitheRecord, ReportFilter(assembly=name))]
    docs.sort(key=lambda d: period_sort_key(d["month"]), reverse=True)

    sheet = None
    if month and year:
        obj = get_document(db, TitheRecord, assembly=name, month=format_period(month, year))
        sheet = as_document(obj) if obj else None

    return {
        "success": True,
        "assembly": name,
        "tithe": sheet,
        "tithers": _members(docs),
        "records": docs,
        "summary": agg.tithe_summary(docs),
    }


# ---------- /api/admin/tithes ----------
@admin_router.get("")
def admin_list_tithes(
    assembly: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    flt = ReportFilter(assembly=assembly, month=month, year=year)
    total_count = count_reports(db, TitheRecord, flt)
    page_rows = select_reports(db, TitheRecord, flt, skip=(page - 1) * limit, limit=limit)

    # summary covers the whole filtered set, not just the page
    all_docs = [as_document(r) for r in select_reports(db, TitheRecord, flt)]
    summary = {
        "totalTitheAmount": sum(agg.tithe_row_total(rec) for d in all_docs for rec in d["records"]),
        "totalRecords": sum(len(d["records"]) for d in all_docs),
        "totalAssemblies": len({d["assembly"] for d in all_docs}),
        "totalSubmitters": len({d["submittedBy"] for d in all_docs}),
    }

    assemblies = sorted(db.execute(select(TitheRecord.assembly).distinct()).scalars().all())
    months = sorted(db.execute(select(TitheRecord.month).distinct()).scalars().all(), key=period_sort_key)

    return {
        "success": True,
        "data": {
            "records": [as_document(r) for r in page_rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "totalCount": total_count,
                "totalPages": math.ceil(total_count / limit),
                "hasNextPage": page * limit < total_count,
                "hasPrevPage": page > 1,
            },
            "summary": summary,
            "filters": {"assemblies": assemblies, "months": months},
        },
    }


@admin_router.get("/summary")
def admin_tithe_summary(
    month: Optional[str] = None,
    year: Optional[str] = None,
    assembly: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    flt = ReportFilter(assembly=assembly, month=month, year=year)
    docs = [as_document(r) for r in select_reports(db, TitheRecord, flt)]
    roster = [flt.assembly] if flt.assembly else settings.assemblies
    stats = agg.tithe_statistics(docs, roster)
    return {"success": True, "data": stats, "filters": flt.as_dict()}


@admin_router.delete("/{record_id}")
def admin_delete_tithe(record_id: int, db: Session = Depends(get_db)):
    obj = db.get(TitheRecord, record_id)
    if obj is None:
        raise HTTPException(status_code=404, detail="Record not found")
    assembly, month = obj.assembly, obj.month
    db.delete(obj)
    db.commit()
    logger.info("deleted tithe record id=%s assembly=%s month=%s", record_id, assembly, month)
    return {"success": True, "message": "Record deleted successfully", "deletedId": record_id}
