# app/schemas/narratives.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PeriodRange(_Body):
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None

    def label(self) -> str:
        if self.from_ and self.to:
            return f"{self.from_} to {self.to}"
        return self.from_ or self.to or "All Time"


class AssemblyReportRequest(_Body):
    assembly: str = Field(min_length=1)
    reports: List[Dict[str, Any]] = Field(default_factory=list)
    period: Optional[PeriodRange] = None
    location: Optional[str] = None


class FinancialAnalysisRequest(_Body):
    reports: List[Dict[str, Any]]
    summary: Dict[str, Any]
    service_type: str = Field("all", alias="serviceType")
    assembly: Optional[str] = None
    month: Optional[str] = None
    year: Optional[Union[str, int]] = None


class DistrictAnalysisRequest(_Body):
    reports: List[Dict[str, Any]] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)
    period: Optional[PeriodRange] = None
    location: Optional[str] = None


class MonthlyReportRequest(_Body):
    month: Optional[Union[str, int]] = None
    year: Optional[Union[str, int]] = None
