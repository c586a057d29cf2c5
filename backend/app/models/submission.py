# backend/app/models/submission.py
"""Weekly-entry submissions keyed by numeric month and year.

Kept apart from the service-report documents; the two are not reconciled.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from app.db import Base
from app.models.service_reports import RecordsJSON


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    assembly = Column(String(120), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    entries = Column(RecordsJSON, nullable=False, default=list)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("assembly", "month", "year", name="uq_submissions_assembly_month_year"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Submission(id={self.id}, assembly={self.assembly!r}, {self.month}/{self.year})>"
