"""Schemas for field report drafts and reads."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fieldreports.models.report import ReportType


class ReportItemDraft(BaseModel):
    """One journey line as submitted by the report form."""

    location: str = Field(default="", max_length=255)
    transportation: str = Field(default="", max_length=128)
    cost: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), description="Journey cost in currency units")

    @property
    def is_complete(self) -> bool:
        return bool(self.location.strip() and self.transportation.strip() and self.cost > 0)


class ReportDraft(BaseModel):
    """Payload used for both report creation and full-record updates."""

    report_type: ReportType | None = Field(default=None, description="Closed report category")
    report_date: date | None = None
    description: str = Field(default="")
    account_number: str = Field(default="", max_length=64)
    account_name: str = Field(default="", max_length=255)
    bank_name: str = Field(default="", max_length=255)
    items: list[ReportItemDraft] = Field(default_factory=list)


class ReportItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location: str
    transportation: str
    cost: Decimal


class ReportRead(BaseModel):
    """Serialized representation of a stored report."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    report_type: ReportType
    report_date: date
    description: str | None
    items: list[ReportItemRead]
    total_cost: Decimal
    account_number: str | None
    account_name: str | None
    bank_name: str | None
    created_at: datetime
    updated_at: datetime


__all__ = [
    "ReportDraft",
    "ReportItemDraft",
    "ReportItemRead",
    "ReportRead",
]
