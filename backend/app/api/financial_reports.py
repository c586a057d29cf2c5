# app/api/financial_reports.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import Settings
from app.dependencies import get_app_settings, get_db
from app.models import SundayServiceReport
from app.services import aggregation as agg
from app.services.filters import ReportFilter
from app.services.reports import load_documents, load_offering_documents, load_tithe_documents

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/financial-reports", tags=["Reports"])


def sunday_service_summary(sunday_docs, ratio: float) -> dict:
    sums = agg.sum_fields(sunday_docs, agg.SUNDAY_MONEY_FIELDS + agg.SUNDAY_ATTENDANCE_FIELDS)
    attendance = agg.attendance_summary(sunday_docs, ratio)
    return {
        "totalIncome": sum(agg.document_totals(d, ratio)["income"] for d in sunday_docs),
        **sums,
        "correctedAttendance": attendance["correctedAttendance"],
        "attendanceWithVisitors": attendance["attendanceWithVisitors"],
        "estimatedOverlap": attendance["estimatedOverlap"],
    }


@router.get("")
def financial_reports(
    assembly: Optional[str] = Query(None, description='Assembly name or "all"'),
    month: Optional[str] = None,
    year: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Tithe sheets, offering sheets and Sunday reports summarised side by side."""
    ratio = settings.attendance_overlap_ratio
    flt = ReportFilter(assembly=assembly, month=month, year=year)

    tithes = load_tithe_documents(db, flt)
    offerings = load_offering_documents(db, flt)
    sundays = load_documents(db, SundayServiceReport, flt, "sunday")

    tithe_summary = agg.tithe_summary(tithes)
    offering_summary = agg.offering_summary(offerings)
    sunday_summary = sunday_service_summary(sundays, ratio)

    logger.info(
        "financial report filters=%s tithes=%d offerings=%d sunday=%d",
        flt.as_dict(), len(tithes), len(offerings), len(sundays),
    )
    return {
        "success": True,
        "data": {
            "titheSummary": tithe_summary,
            "offeringSummary": offering_summary,
            "sundayServiceSummary": sunday_summary,
            "rawData": {"tithes": tithes, "offerings": offerings, "sundayServices": sundays},
        },
        "summary": {
            "totalIncome": tithe_summary["totalTithe"] + offering_summary["totalOffering"] + sunday_summary["totalIncome"],
            "totalTithe": tithe_summary["totalTithe"],
            "totalOffering": offering_summary["totalOffering"],
            "totalAttendance": sunday_summary["attendance"],
            "totalSBSAttendance": sunday_summary["sbsAttendance"],
            "totalVisitors": sunday_summary["visitors"],
            "correctedAttendance": sunday_summary["correctedAttendance"],
            "attendanceWithVisitors": sunday_summary["attendanceWithVisitors"],
        },
        "filters": flt.as_dict(),
    }
