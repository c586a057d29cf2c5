# app/schemas/reports.py
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from app.services.aggregation import num

# Any value that is not a finite number becomes 0
Amount = Annotated[float, BeforeValidator(num)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ─────────────────────────────────────────────────────────────────────────────
# Monthly document submissions
# ─────────────────────────────────────────────────────────────────────────────

class ReportSubmission(_CamelModel):
    """Body shared by the Sunday/midweek/special and tithe endpoints."""
    assembly: str = Field(min_length=1)
    submitted_by: str = Field(alias="submittedBy", min_length=1)
    month: str = Field(min_length=1)
    records: List[Dict[str, Any]]
    service_type: Literal["sunday", "midweek", "special"] = Field("sunday", alias="serviceType")

    @field_validator("assembly", "submitted_by", "month")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class OfferingSubmission(ReportSubmission):
    type: str = Field(min_length=1)


class FinancialSubmission(ReportSubmission):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Weekly-entry submissions
# ─────────────────────────────────────────────────────────────────────────────

class SubmissionEntry(_CamelModel):
    week: str = ""
    date: Optional[str] = None
    tithe: Amount = 0
    offering_general: Amount = Field(0, alias="offeringGeneral")
    offering_special: Amount = Field(0, alias="offeringSpecial")
    welfare: Amount = 0
    missionary_fund: Amount = Field(0, alias="missionaryFund")
    remarks: Optional[str] = None


class SubmissionCreate(_CamelModel):
    assembly: str = Field(min_length=1)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    entries: List[SubmissionEntry]


# ─────────────────────────────────────────────────────────────────────────────
# Write responses
# ─────────────────────────────────────────────────────────────────────────────

class SaveResult(BaseModel):
    success: bool = True
    message: str
    created: bool
    data: Dict[str, Any]
