# app/services/reports.py
"""Read-side queries that feed the aggregation functions."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.models import SERVICE_MODELS, OfferingRecord, ServiceType, TitheRecord
from app.services import aggregation as agg
from app.services.filters import ReportFilter, select_reports
from app.services.periods import format_period, normalize_month_name, previous_periods
from app.services.records import as_document

logger = logging.getLogger(__name__)


def service_types_for(flt: ReportFilter) -> List[ServiceType]:
    """Service types selected by the filter; unknown or missing means all three."""
    if flt.service_type in agg.SERVICE_TYPES:
        return [ServiceType(flt.service_type)]
    return list(ServiceType)


def load_documents(db: Session, model: Any, flt: ReportFilter, service_type: Optional[str] = None) -> List[Dict[str, Any]]:
    return [as_document(obj, service_type) for obj in select_reports(db, model, flt)]


def load_service_documents(db: Session, flt: ReportFilter) -> List[Dict[str, Any]]:
    """Sunday/midweek/special documents matching ``flt``, each tagged with serviceType, newest first."""
    docs: List[Dict[str, Any]] = []
    for st in service_types_for(flt):
        docs.extend(load_documents(db, SERVICE_MODELS[st], flt, st.value))
    docs.sort(key=lambda d: (d.get("createdAt") or "", d.get("id") or 0), reverse=True)
    logger.info("service documents filters=%s matched=%d", flt.as_dict(), len(docs))
    return docs


def load_tithe_documents(db: Session, flt: ReportFilter) -> List[Dict[str, Any]]:
    return load_documents(db, TitheRecord, flt)


def load_offering_documents(db: Session, flt: ReportFilter) -> List[Dict[str, Any]]:
    return load_documents(db, OfferingRecord, flt)


# ─────────────────────────────────────────────────────────────────────────────
# Monthly district report input
# ─────────────────────────────────────────────────────────────────────────────

def _month_figures(per_assembly: Sequence[Dict[str, Any]], name: str, period: str) -> Dict[str, Any]:
    for a in per_assembly:
        if a["assembly"] == name:
            return {
                "month": period,
                "totalIncome": a["totalIncome"],
                "totalAttendance": a["totalAttendance"],
                "totalTithes": a["totalTithes"],
                "reportCount": a["reportCount"],
            }
    return {"month": period, "totalIncome": 0.0, "totalAttendance": 0.0, "totalTithes": 0.0, "reportCount": 0}


def monthly_district_payload(
    db: Session, month: Any, year: Any, roster: Sequence[str], ratio: float
) -> Dict[str, Any]:
    """Per-assembly figures for a month with comparisons against the two months before.

    Raises ValueError when ``month`` is not a recognisable month.
    """
    name = normalize_month_name(month)
    if not name:
        raise ValueError(f"Unrecognised month: {month}")
    period = format_period(name, year)
    previous = [format_period(m, y) for m, y in previous_periods(name, year, 2)]

    def _per_assembly(p: str) -> List[Dict[str, Any]]:
        m, y = p.split("-", 1)
        docs = load_service_documents(db, ReportFilter(month=m, year=y))
        return agg.by_assembly(docs, ratio, roster)

    current = _per_assembly(period)
    prev1 = _per_assembly(previous[0])
    prev2 = _per_assembly(previous[1])

    comparisons = []
    for a in current:
        cur = _month_figures(current, a["assembly"], period)
        p1 = _month_figures(prev1, a["assembly"], previous[0])
        p2 = _month_figures(prev2, a["assembly"], previous[1])
        comparisons.append(
            {
                "assembly": a["assembly"],
                "current": cur,
                "prev1": p1,
                "prev2": p2,
                "change": {
                    "incomeVsPrev1": agg.percent_change(p1["totalIncome"], cur["totalIncome"]),
                    "attendanceVsPrev1": agg.percent_change(p1["totalAttendance"], cur["totalAttendance"]),
                    "tithesVsPrev1": agg.percent_change(p1["totalTithes"], cur["totalTithes"]),
                },
            }
        )

    totals = {
        "totalIncome": sum(a["totalIncome"] for a in current),
        "totalAttendance": sum(a["totalAttendance"] for a in current),
        "rawAttendance": sum(a["rawAttendance"] for a in current),
        "totalTithes": sum(a["totalTithes"] for a in current),
        "estimatedOverlap": sum(a["estimatedOverlap"] for a in current),
        "totalRecords": sum(a["recordCount"] for a in current),
    }
    corrected = sum(a["correctedAttendance"] for a in current)
    totals["attendanceCorrection"] = totals["rawAttendance"] - corrected
    totals["attendanceCorrectionPct"] = round(agg.percent(totals["attendanceCorrection"], totals["rawAttendance"]), 1)
    totals["incomePerAttendee"] = round(agg.safe_div(totals["totalIncome"], totals["totalAttendance"]), 2)

    return {
        "month": period,
        "previousMonths": previous,
        "assemblies": current,
        "comparisons": comparisons,
        "districtTotals": totals,
    }
