# backend/app/models/service_reports.py
"""SQLAlchemy models for the monthly service-report documents.

Every report is owned by one (assembly, month) pair and keeps its weekly
rows in the ``records`` JSON column in the order they were submitted.
Derived totals are computed in the service layer, not here.
"""

from __future__ import annotations

import enum

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB

from app.db import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
RecordsJSON = JSON().with_variant(JSONB(), "postgresql")


class ServiceType(str, enum.Enum):
    """Kinds of service a report can describe."""
    SUNDAY = "sunday"
    MIDWEEK = "midweek"
    SPECIAL = "special"


class ReportDocumentMixin:
    """Columns shared by every (assembly, month) document."""

    id = Column(Integer, primary_key=True, index=True)
    assembly = Column(String(120), nullable=False, index=True)
    submitted_by = Column(String(200), nullable=False, default="")

    # Period string, e.g. "November-2025"
    month = Column(String(40), nullable=False, index=True)

    records = Column(RecordsJSON, nullable=False, default=list)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<{type(self).__name__}(id={self.id}, assembly={self.assembly!r}, "
            f"month={self.month!r}, records={len(self.records or [])})>"
        )


class SundayServiceReport(ReportDocumentMixin, Base):
    __tablename__ = "sunday_service_reports"
    __table_args__ = (
        UniqueConstraint("assembly", "month", name="uq_sunday_reports_assembly_month"),
    )


class MidweekServiceReport(ReportDocumentMixin, Base):
    __tablename__ = "midweek_service_reports"
    __table_args__ = (
        UniqueConstraint("assembly", "month", name="uq_midweek_reports_assembly_month"),
    )


class SpecialServiceReport(ReportDocumentMixin, Base):
    __tablename__ = "special_service_reports"
    __table_args__ = (
        UniqueConstraint("assembly", "month", name="uq_special_reports_assembly_month"),
    )


SERVICE_MODELS = {
    ServiceType.SUNDAY: SundayServiceReport,
    ServiceType.MIDWEEK: MidweekServiceReport,
    ServiceType.SPECIAL: SpecialServiceReport,
}
