# app/api/ai_reports.py
"""Narrative report endpoints.

Each endpoint computes its figures first, then asks the text service to
write about them. Upstream failures are logged and answered with the
deterministic fallback, still as a 200.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple, TypeVar

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import Settings
from app.dependencies import get_app_settings, get_db, get_narrator
from app.schemas.narratives import (
    AssemblyReportRequest,
    DistrictAnalysisRequest,
    FinancialAnalysisRequest,
    MonthlyReportRequest,
)
from app.services import aggregation as agg
from app.services import narrative as nar
from app.services.narrative import NarrativeClient
from app.services.periods import normalize_assembly, normalize_month_name
from app.services.reports import monthly_district_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Narratives"])

T = TypeVar("T")


# ---------- helpers ----------
def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _narrate(what: str, produce: Callable[[], T], fallback: Callable[[], T]) -> Tuple[T, Dict[str, Any]]:
    """Run ``produce``; on any failure of the text service return ``fallback()`` instead."""
    try:
        return produce(), {"source": "ai"}
    except Exception as e:
        logger.warning("%s narrative unavailable (%s); using fallback", what, type(e).__name__)
        logger.debug("%s narrative failure", what, exc_info=True)
        return fallback(), {"source": "fallback", "fallback_reason": f"{type(e).__name__}: {e}"}


def _overlay(computed: Dict[str, Any], supplied: Dict[str, Any]) -> Dict[str, Any]:
    """Figures supplied by the caller win over the recomputed ones for the same key."""
    out = dict(computed)
    for k, v in (supplied or {}).items():
        if k in out and isinstance(out[k], (int, float)):
            out[k] = agg.num(v)
    return out


def _with_completeness(reports: List[Dict[str, Any]], per_assembly: List[Dict[str, Any]]) -> None:
    scores: Dict[str, List[float]] = defaultdict(list)
    for doc in reports:
        scores[normalize_assembly(doc.get("assembly")) or "UNKNOWN"].append(agg.report_completeness(doc))
    for a in per_assembly:
        s = scores.get(a["assembly"], [])
        a["completenessScore"] = agg.safe_div(sum(s), len(s))


# ---------- POST /api/ai/report ----------
@router.post("/api/ai/report")
def assembly_report(
    payload: AssemblyReportRequest,
    narrator: NarrativeClient = Depends(get_narrator),
    settings: Settings = Depends(get_app_settings),
):
    """Narrative audit of one assembly from the reports the caller has loaded."""
    assembly = normalize_assembly(payload.assembly)
    location = payload.location or settings.district_location
    period = payload.period.label() if payload.period else "All Time"
    summary = agg.service_summary(payload.reports, settings.attendance_overlap_ratio)

    report, meta = _narrate(
        "assembly",
        lambda: narrator.complete(
            nar.assembly_prompt(assembly, location, period, summary),
            role=nar.ASSEMBLY_ROLE,
            max_tokens=2000,
        ),
        lambda: nar.assembly_fallback(assembly, location, period, summary),
    )
    return {
        "success": True,
        "report": report,
        "metrics": {
            "totalIncome": summary["totalIncome"],
            "sundayIncome": summary["sundayIncome"],
            "midweekIncome": summary["midweekIncome"],
            "specialIncome": summary["specialIncome"],
            "totalAttendance": summary["totalAttendance"],
            "sundayAttendance": summary["sundayAttendance"],
            "midweekAttendance": summary["midweekAttendance"],
            "rawAttendance": summary["rawAttendance"],
        },
        "generatedAt": _now(),
        "metadata": {**meta, "assembly": assembly, "period": period, "location": location},
    }


# ---------- POST /api/ai/financial-report ----------
@router.post("/api/ai/financial-report")
def financial_report(
    payload: FinancialAnalysisRequest,
    narrator: NarrativeClient = Depends(get_narrator),
    settings: Settings = Depends(get_app_settings),
):
    """Structured analysis of a filtered report set, including a plain-text formatted report."""
    ratio = settings.attendance_overlap_ratio
    summary = _overlay(agg.service_summary(payload.reports, ratio), payload.summary)
    per_assembly = agg.by_assembly(payload.reports, ratio)
    period = nar.period_label(payload.month, str(payload.year) if payload.year else None)
    args = (summary, per_assembly, len(payload.reports), payload.service_type, payload.assembly, period)

    fallback = nar.financial_fallback(*args)
    analysis, meta = _narrate(
        "financial",
        lambda: {
            **fallback,
            **narrator.complete_json(nar.financial_prompt(*args), role=nar.FINANCIAL_ROLE, max_tokens=2500),
        },
        lambda: fallback,
    )
    return {
        "success": True,
        "data": analysis,
        "metadata": {
            **meta,
            "generated_at": _now(),
            "total_reports": len(payload.reports),
            "total_income": summary["totalIncome"],
            "total_attendance": summary["totalAttendance"],
            "assemblies_analyzed": len(per_assembly),
            "period": period,
        },
    }


# ---------- POST /api/admin/ai/financial-report ----------
@router.post("/api/admin/ai/financial-report")
def district_report(
    payload: DistrictAnalysisRequest,
    narrator: NarrativeClient = Depends(get_narrator),
    settings: Settings = Depends(get_app_settings),
):
    """District-wide administrative analysis across every assembly in the report set."""
    if not payload.reports:
        raise HTTPException(status_code=400, detail="No reports data provided")

    ratio = settings.attendance_overlap_ratio
    location = payload.location or settings.district_location
    period = payload.period.label() if payload.period else "All Time"

    summary = _overlay(agg.service_summary(payload.reports, ratio), payload.summary)
    per_assembly = agg.by_assembly(payload.reports, ratio)
    _with_completeness(payload.reports, per_assembly)
    compliance = agg.reporting_compliance(payload.reports, settings.assemblies)
    metrics = nar.district_metrics(
        summary,
        per_assembly,
        compliance,
        agg.income_concentration(per_assembly),
        agg.income_standard_deviation(per_assembly),
    )

    fallback = nar.district_fallback(
        settings.district_name, location, period, summary, per_assembly, metrics, compliance
    )
    role = nar.DISTRICT_ROLE.format(district=settings.district_name, location=location)
    analysis, meta = _narrate(
        "district",
        lambda: {
            **fallback,
            **narrator.complete_json(
                nar.district_prompt(settings.district_name, location, period, summary, per_assembly, metrics),
                role=role,
                max_tokens=4000,
            ),
        },
        lambda: fallback,
    )
    return {
        "success": True,
        "data": analysis,
        "metadata": {
            **meta,
            "generated_at": _now(),
            "district_name": settings.district_name,
            "location": location,
            "period": period,
            "total_assemblies": len(per_assembly),
            "total_reports": len(payload.reports),
            "total_income": summary["totalIncome"],
            "total_attendance": summary["totalAttendance"],
            "reporting_compliance_rate": compliance["overall_compliance_rate"],
        },
    }


# ---------- POST /api/generate/financial-report ----------
@router.post("/api/generate/financial-report")
def monthly_report(
    payload: MonthlyReportRequest,
    db: Session = Depends(get_db),
    narrator: NarrativeClient = Depends(get_narrator),
    settings: Settings = Depends(get_app_settings),
):
    """Markdown district report for a month, read from the store, with month-over-month change."""
    if payload.month in (None, "") or payload.year in (None, ""):
        raise HTTPException(status_code=400, detail="month and year are required")
    if not normalize_month_name(payload.month) or not str(payload.year).strip().isdigit():
        raise HTTPException(status_code=400, detail=f"Invalid month or year: {payload.month} {payload.year}")

    data = monthly_district_payload(
        db, payload.month, payload.year, settings.assemblies, settings.attendance_overlap_ratio
    )
    logger.info("monthly district report %s assemblies=%d", data["month"], len(data["assemblies"]))

    report, meta = _narrate(
        "monthly",
        lambda: narrator.complete(nar.monthly_prompt(data), role=nar.MONTHLY_ROLE, temperature=0.2),
        lambda: nar.monthly_fallback(data),
    )
    return {
        "success": True,
        "month": normalize_month_name(payload.month),
        "year": str(payload.year).strip(),
        "report": report,
        "rawAggregated": data["assemblies"],
        "comparisons": data["comparisons"],
        "districtTotals": data["districtTotals"],
        "previousMonths": data["previousMonths"],
        "attendanceNote": nar.ATTENDANCE_NOTE,
        "metadata": {**meta, "generated_at": _now(), "period": data["month"]},
    }
