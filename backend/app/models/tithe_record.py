# backend/app/models/tithe_record.py
"""Monthly tithe sheet of one assembly: one row per member, five weekly cells."""

from __future__ import annotations

from sqlalchemy import UniqueConstraint

from app.db import Base
from app.models.service_reports import ReportDocumentMixin


class TitheRecord(ReportDocumentMixin, Base):
    __tablename__ = "tithe_records"
    __table_args__ = (
        UniqueConstraint("assembly", "month", name="uq_tithe_records_assembly_month"),
    )
