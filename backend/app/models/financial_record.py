# backend/app/models/financial_record.py
"""Income/expense ledger of one assembly for one month."""

from __future__ import annotations

from sqlalchemy import Column, UniqueConstraint

from app.db import Base
from app.models.service_reports import RecordsJSON, ReportDocumentMixin


class FinancialRecord(ReportDocumentMixin, Base):
    __tablename__ = "financial_records"

    # {"income": .., "expense": .., "net": ..}; recomputed on every write
    totals = Column(RecordsJSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("assembly", "month", name="uq_financial_records_assembly_month"),
    )
