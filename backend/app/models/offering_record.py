# backend/app/models/offering_record.py
"""Offering sheets, one per (assembly, month, offering type)."""

from __future__ import annotations

from sqlalchemy import Column, String, UniqueConstraint

from app.db import Base
from app.models.service_reports import ReportDocumentMixin


class OfferingRecord(ReportDocumentMixin, Base):
    __tablename__ = "offering_records"

    # e.g. "Sunday Service", "Pastor's Welfare"
    type = Column(String(120), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("assembly", "month", "type", name="uq_offering_records_assembly_month_type"),
    )
