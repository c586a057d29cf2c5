# app/api/admin_reports.py
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config import Settings
from app.dependencies import get_app_settings, get_db
from app.models import SundayServiceReport
from app.services import aggregation as agg
from app.services.filters import ReportFilter
from app.services.periods import current_period, normalize_assembly
from app.services.records import refresh_sunday_totals
from app.services.reports import load_documents, load_service_documents

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


# ---------- helpers ----------
def _filter(
    assembly: Optional[str],
    month: Optional[str],
    year: Optional[str],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service_type: Optional[str] = None,
) -> ReportFilter:
    return ReportFilter(
        assembly=assembly,
        month=month,
        year=year,
        start_date=start_date,
        end_date=end_date,
        service_type=service_type,
    )


def _detailed_report(doc: Dict[str, Any], ratio: float) -> Dict[str, Any]:
    """One report of the detailed listing; Sunday rows carry their corrected attendance."""
    if doc.get("serviceType") == "sunday":
        doc = refresh_sunday_totals(doc)
        records = []
        for rec in doc["records"]:
            unique, overlap = agg.unique_attendance(rec.get("attendance"), rec.get("sbsAttendance"), ratio)
            records.append(
                {
                    **rec,
                    "correctedAttendance": unique,
                    "attendanceWithVisitors": unique + agg.num(rec.get("visitors")),
                    "estimatedOverlap": overlap,
                }
            )
        doc = {**doc, "records": records}
    totals = agg.document_totals(doc, ratio)
    return {
        **doc,
        "totalIncome": totals["income"],
        "totalAttendance": totals["attendance"],
        "rawAttendance": totals["raw"],
    }


# ---------- /api/admin/financial-reports ----------
@router.get("/financial-reports")
def admin_financial_reports(
    assembly: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    ratio = settings.attendance_overlap_ratio
    flt = _filter(assembly, month, year, start_date, end_date)
    docs = load_documents(db, SundayServiceReport, flt, "sunday")
    logger.info("admin financial report filters=%s reports=%d", flt.as_dict(), len(docs))

    per_assembly = agg.by_assembly(docs, ratio)
    offerings = agg.sunday_offering_summary(docs)
    attendance = agg.attendance_summary(docs, ratio)
    total_income = sum(a["totalIncome"] for a in per_assembly)

    data = {
        "titheSummary": agg.sunday_tithe_weeks(docs),
        "offeringSummary": offerings,
        "sundayServiceSummary": attendance,
        "monthlyTrends": [
            {
                "month": p["month"],
                "income": p["income"],
                "tithe": p["tithes"],
                "offering": p["income"] - p["tithes"],
                "attendance": p["attendance"],
            }
            for p in agg.by_period(docs, ratio)
        ],
        "assemblyPerformance": [
            {
                "assembly": a["assembly"],
                "income": a["totalIncome"],
                "tithe": a["totalTithes"],
                "offering": a["totalIncome"] - a["totalTithes"],
                "attendance": a["totalAttendance"],
                "records": a["recordCount"],
                # no previous-period baseline in a filtered listing
                "growth": None,
                "efficiency": a["incomePerAttendee"],
            }
            for a in per_assembly
        ],
        "rawData": docs,
    }
    summary = {
        "totalIncome": total_income,
        "totalTithe": sum(a["totalTithes"] for a in per_assembly),
        "totalOffering": offerings["totalOffering"],
        "totalAttendance": attendance["attendanceWithVisitors"],
        "rawAttendance": attendance["totalAttendance"],
        "totalSBSAttendance": attendance["sbsAttendance"],
        "totalVisitors": attendance["visitors"],
        "incomeGrowth": None,
        "attendanceGrowth": None,
        "averagePerAssembly": round(agg.safe_div(total_income, len(per_assembly))),
        "topPerformingAssembly": per_assembly[0]["assembly"] if per_assembly else "N/A",
    }
    per_status = agg.assembly_status(settings.assemblies, docs, current_period(settings.tz), ratio)
    return {"success": True, "data": data, "summary": summary, "perAssembly": per_status}


# ---------- /api/admin/reports/detailed ----------
@router.get("/reports/detailed")
def detailed_reports(
    assembly: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    service_type: Optional[str] = Query("all", alias="serviceType"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    ratio = settings.attendance_overlap_ratio
    flt = _filter(assembly, month, year, service_type=service_type)
    docs = load_service_documents(db, flt)

    total = len(docs)
    start = (page - 1) * limit
    page_docs = docs[start:start + limit]

    summary = agg.service_summary(docs, ratio)
    return {
        "success": True,
        "data": {
            "reports": [_detailed_report(d, ratio) for d in page_docs],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
            "summary": summary,
            "attendanceOverlapRatio": ratio,
        },
    }


@router.get("/reports/detailed.csv")
def detailed_reports_csv(
    assembly: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    service_type: Optional[str] = Query("all", alias="serviceType"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    ratio = settings.attendance_overlap_ratio
    docs = load_service_documents(db, _filter(assembly, month, year, service_type=service_type))

    cols = (
        ["report_id", "service_type", "assembly", "month", "submitted_by", "week", "date", "day", "service_name"]
        + list(agg.SUNDAY_ATTENDANCE_FIELDS)
        + list(agg.SUNDAY_MONEY_FIELDS)
        + ["offering", "income", "raw_attendance", "corrected_attendance", "attendance_with_visitors"]
    )

    def esc(val):
        if val is None:
            return ""
        s = str(val)
        if any(c in s for c in [",", '"', "\n", "\r"]):
            s = '"' + s.replace('"', '""') + '"'
        return s

    def row_iter():
        yield ",".join(cols) + "\n"
        for doc in docs:
            st = doc["serviceType"]
            for rec in doc["records"]:
                row = [
                    doc["id"],
                    st,
                    doc["assembly"],
                    doc["month"],
                    doc["submittedBy"],
                    rec.get("week", ""),
                    rec.get("date", ""),
                    rec.get("day", ""),
                    rec.get("serviceName", ""),
                ]
                row += [agg.num(rec.get(f)) for f in agg.SUNDAY_ATTENDANCE_FIELDS + agg.SUNDAY_MONEY_FIELDS]
                row += [
                    agg.num(rec.get("offering")),
                    agg.record_income(rec, st),
                    agg.record_raw_attendance(rec, st),
                    agg.record_corrected_attendance(rec, st, ratio),
                    agg.record_attendance(rec, st, ratio),
                ]
                yield ",".join(esc(v) for v in row) + "\n"

    return StreamingResponse(
        row_iter(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="detailed_reports.csv"'},
    )


# ---------- /api/admin/dashboard ----------
@router.get("/dashboard")
def dashboard(
    assembly: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    ratio = settings.attendance_overlap_ratio
    flt = _filter(assembly, month, year)
    docs = load_service_documents(db, flt)
    summary = agg.service_summary(docs, ratio)

    recent = [
        {
            "id": i,
            "user": d["submittedBy"] or "Unknown User",
            "action": f"submitted {d['serviceType']} service report for",
            "target": d["assembly"],
            "month": d["month"],
            "time": d["createdAt"],
            "avatar": (d["submittedBy"][:1] or "U").upper(),
        }
        for i, d in enumerate(docs[:5])
    ]

    return {
        "success": True,
        "data": {
            "totalAssemblies": summary["totalAssemblies"],
            "rosterAssemblies": len(settings.assemblies),
            "activeMembers": summary["totalAttendance"],
            "monthlyIncome": summary["totalIncome"],
            "reportsGenerated": summary["totalReports"],
            "totalRecords": summary["totalRecords"],
            "recentActivities": recent,
            "assemblyBreakdown": [
                {
                    "assembly": a["assembly"],
                    "income": a["totalIncome"],
                    "records": a["recordCount"],
                    "attendance": a["totalAttendance"],
                }
                for a in agg.by_assembly(docs, ratio)
            ],
            "monthlyTrends": [{"month": p["month"], "income": p["income"]} for p in agg.by_period(docs, ratio)],
            "summary": summary,
        },
    }


# ---------- /api/admin/assemblies ----------
@router.get("/assemblies")
def assemblies(
    status: Optional[str] = Query(None, description="active | inactive"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Every roster assembly plus any assembly that has reported, with activity figures."""
    ratio = settings.attendance_overlap_ratio
    docs = load_service_documents(db, ReportFilter())

    grouped: Dict[str, List[Dict[str, Any]]] = {normalize_assembly(a): [] for a in settings.assemblies}
    for d in docs:
        grouped.setdefault(d["assembly"], []).append(d)

    out = []
    for name, items in grouped.items():
        summary = agg.service_summary(items, ratio)
        stamps = sorted(d["createdAt"] for d in items if d.get("createdAt"))
        # docs are newest first
        latest = items[0] if items else None
        out.append(
            {
                "name": name,
                "pastor": latest["submittedBy"] if latest else None,
                "members": round(agg.safe_div(summary["totalAttendance"], len(items))),
                "totalIncome": summary["totalIncome"],
                "reportsCount": len(items),
                "totalRecords": summary["totalRecords"],
                "lastReport": stamps[-1] if stamps else None,
                "established": stamps[0] if stamps else None,
                "status": "active" if items else "inactive",
            }
        )

    if status:
        out = [a for a in out if a["status"] == status.strip().lower()]
    out.sort(key=lambda a: a["name"])
    return {"success": True, "data": out}


# ---------- /api/admin/assembly-details ----------
@router.get("/assembly-details")
def assembly_details(
    assembly: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if not assembly or not assembly.strip():
        raise HTTPException(status_code=400, detail="Assembly name required")

    ratio = settings.attendance_overlap_ratio
    flt = _filter(assembly, None, None)
    docs = load_service_documents(db, flt)
    if not docs:
        raise HTTPException(status_code=404, detail="No data found for this assembly")

    summary = agg.service_summary(docs, ratio)
    return {
        "success": True,
        "data": {
            "assembly": flt.assembly,
            "income": summary["totalIncome"],
            "attendance": summary["totalAttendance"],
            "rawAttendance": summary["rawAttendance"],
            "records": summary["totalRecords"],
            "monthlyData": [
                {"month": p["month"], "income": p["income"], "attendance": p["attendance"], "records": p["records"]}
                for p in agg.by_period(docs, ratio)
            ],
            "recentReports": [
                {
                    "month": d["month"],
                    "serviceType": d["serviceType"],
                    "submittedBy": d["submittedBy"],
                    "createdAt": d["createdAt"],
                    "totalRecords": len(d["records"]),
                }
                for d in docs[:5]
            ],
            "summary": summary,
        },
    }
