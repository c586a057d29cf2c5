# app/services/filters.py
"""Turns report query parameters into SQLAlchemy criteria."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional, Type

from sqlalchemy import and_, func, select, true
from sqlalchemy.orm import Session

from app.services.periods import normalize_assembly, normalize_month_name

_NO_FILTER = ("", "all")


def _opt(value: Any) -> Optional[str]:
    """Blank values and the 'all' sentinel mean no filter."""
    if value is None:
        return None
    s = str(value).strip()
    return None if s.lower() in _NO_FILTER else s


def _like_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _as_start(value: date | datetime) -> datetime:
    return value if isinstance(value, datetime) else datetime.combine(value, time.min)


@dataclass
class ReportFilter:
    assembly: Optional[str] = None
    month: Optional[str] = None
    year: Optional[str] = None
    start_date: Optional[date | datetime] = None
    end_date: Optional[date | datetime] = None
    service_type: Optional[str] = None

    def __post_init__(self) -> None:
        self.assembly = _opt(self.assembly)
        if self.assembly:
            self.assembly = normalize_assembly(self.assembly)
        self.month = _opt(self.month)
        if self.month:
            self.month = normalize_month_name(self.month) or self.month
        self.year = _opt(self.year)
        self.service_type = (_opt(self.service_type) or "").lower() or None

    @property
    def period(self) -> Optional[str]:
        if self.month and self.year:
            return f"{self.month}-{self.year}"
        return None

    def conditions(self, model: Type[Any]) -> List[Any]:
        conds: List[Any] = []
        if self.assembly:
            conds.append(model.assembly == self.assembly)
        if self.period:
            conds.append(model.month == self.period)
        elif self.month:
            conds.append(model.month.like(f"{_like_literal(self.month)}-%", escape="\\"))
        elif self.year:
            conds.append(model.month.like(f"%-{_like_literal(self.year)}", escape="\\"))
        if self.start_date is not None:
            conds.append(model.created_at >= _as_start(self.start_date))
        if self.end_date is not None:
            if isinstance(self.end_date, datetime):
                conds.append(model.created_at <= self.end_date)
            else:
                # a date-only end covers the whole day
                conds.append(model.created_at < _as_start(self.end_date + timedelta(days=1)))
        return conds

    def where(self, model: Type[Any]):
        conds = self.conditions(model)
        return and_(*conds) if conds else true()

    def as_dict(self) -> dict:
        return {
            "assembly": self.assembly,
            "month": self.month,
            "year": self.year,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "serviceType": self.service_type,
        }


def select_reports(
    db: Session,
    model: Type[Any],
    flt: ReportFilter,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Any]:
    stmt = (
        select(model)
        .where(flt.where(model))
        .order_by(model.created_at.desc(), model.id.desc())
        .offset(skip)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def count_reports(db: Session, model: Type[Any], flt: ReportFilter) -> int:
    stmt = select(func.count(model.id)).where(flt.where(model))
    return int(db.execute(stmt).scalar_one())
