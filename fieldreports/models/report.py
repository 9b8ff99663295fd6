"""Field report ORM models."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldreports.models.base import Base, TimestampMixin


class ReportType(str, enum.Enum):
    VERIFICATION = "verification"
    RECOVERY = "recovery"
    POST_DISBURSEMENT = "post-disbursement"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Report(TimestampMixin, Base):
    """One submitted field-visit batch and its payee details."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_user_id", "user_id"),
        Index("ix_reports_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    report_type: Mapped[ReportType] = mapped_column(
        SAEnum(ReportType, name="report_type", values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    account_number: Mapped[str | None] = mapped_column(String(64))
    account_name: Mapped[str | None] = mapped_column(String(255))
    bank_name: Mapped[str | None] = mapped_column(String(255))

    owner = relationship("User", back_populates="reports")
    items: Mapped[list["ReportItem"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportItem.position",
    )


class ReportItem(TimestampMixin, Base):
    """A single location visit within a report."""

    __tablename__ = "report_items"
    __table_args__ = (Index("ix_report_items_report_id", "report_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    transportation: Mapped[str] = mapped_column(String(128), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    report: Mapped[Report] = relationship(back_populates="items")


__all__ = ["Report", "ReportItem", "ReportType"]
