"""Report lifecycle: create, update and delete against the database."""
from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from fieldreports.models import Report, ReportItem
from fieldreports.obs import record_report_mutation
from fieldreports.schemas.report import ReportDraft, ReportItemDraft
from fieldreports.services.errors import (
    AuthenticationRequired,
    PersistenceError,
    ReportNotFoundError,
    ReportValidationError,
)

logger = logging.getLogger(__name__)

_ACCOUNT_FIELDS = ("account_number", "account_name", "bank_name")


def validate_draft(draft: ReportDraft) -> list[ReportItemDraft]:
    """Check required fields and return the complete journey items.

    Items with a blank location or transportation, or a non-positive cost,
    are dropped. A draft with no complete items is rejected.
    """

    missing: list[str] = []
    if draft.report_type is None:
        missing.append("report_type")
    if draft.report_date is None:
        missing.append("report_date")
    missing.extend(name for name in _ACCOUNT_FIELDS if not getattr(draft, name).strip())
    if missing:
        raise ReportValidationError(
            "Please fill in all required fields including complete account details", fields=missing
        )

    complete = [item for item in draft.items if item.is_complete]
    if not complete:
        raise ReportValidationError("Please add at least one complete journey record", fields=["items"])
    return complete


def total_cost(items: list[ReportItemDraft]) -> Decimal:
    return sum((Decimal(item.cost) for item in items), Decimal("0")).quantize(Decimal("0.01"))


def _build_items(items: list[ReportItemDraft]) -> list[ReportItem]:
    return [
        ReportItem(
            position=position,
            location=item.location,
            transportation=item.transportation,
            cost=Decimal(item.cost).quantize(Decimal("0.01")),
        )
        for position, item in enumerate(items)
    ]


class ReportLifecycleManager:
    """Coordinates report persistence for one user and mirrors their reports.

    The mirror is rebuilt by a full refetch after every successful mutation and
    left untouched when a mutation fails.
    """

    def __init__(self, session: Session, *, user_id: str | None) -> None:
        self._session = session
        self._user_id = user_id
        self._reports: list[Report] = []

    @property
    def reports(self) -> list[Report]:
        return list(self._reports)

    def _require_user(self) -> str:
        if not self._user_id:
            raise AuthenticationRequired("Please sign in to manage reports")
        return self._user_id

    def list_reports(self) -> list[Report]:
        """Fetch the user's reports, newest first, and refresh the mirror."""

        user_id = self._require_user()
        statement = (
            select(Report)
            .where(Report.user_id == user_id)
            .options(selectinload(Report.items))
            .order_by(Report.created_at.desc())
        )
        try:
            results = list(self._session.scalars(statement).all())
        except SQLAlchemyError as exc:
            logger.error("failed to fetch reports", extra={"user_id": user_id, "error": str(exc)})
            raise PersistenceError("Failed to fetch reports") from exc
        self._reports = results
        return self.reports

    refresh = list_reports

    def get(self, report_id: str) -> Report:
        user_id = self._require_user()
        try:
            report = self._session.get(Report, report_id)
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to fetch report") from exc
        if report is None or report.user_id != user_id:
            raise ReportNotFoundError(f"Report '{report_id}' was not found")
        return report

    def create(self, draft: ReportDraft) -> Report:
        """Persist a report and its items as one unit."""

        user_id = self._require_user()
        items = validate_draft(draft)

        report = Report(
            user_id=user_id,
            report_type=draft.report_type,
            report_date=draft.report_date,
            description=draft.description,
            total_cost=total_cost(items),
            account_number=draft.account_number,
            account_name=draft.account_name,
            bank_name=draft.bank_name,
        )
        try:
            self._session.add(report)
            self._session.flush()
            report.items.extend(_build_items(items))
            self._session.flush()
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            record_report_mutation("create", "error")
            logger.error("failed to create report", extra={"user_id": user_id, "error": str(exc)})
            raise PersistenceError("Failed to create report") from exc

        self._session.refresh(report)
        record_report_mutation("create", "success")
        logger.info("report created", extra={"report_id": report.id, "items": len(items)})
        self.refresh()
        return report

    def update(self, report_id: str, draft: ReportDraft) -> Report:
        """Replace the scalar fields and the entire item set of a report."""

        report = self.get(report_id)
        items = validate_draft(draft)

        try:
            report.report_type = draft.report_type
            report.report_date = draft.report_date
            report.description = draft.description
            report.total_cost = total_cost(items)
            report.account_number = draft.account_number
            report.account_name = draft.account_name
            report.bank_name = draft.bank_name
            report.updated_at = datetime.now(UTC)

            report.items.clear()
            self._session.flush()
            report.items.extend(_build_items(items))
            self._session.flush()
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            record_report_mutation("update", "error")
            logger.error("failed to update report", extra={"report_id": report_id, "error": str(exc)})
            raise PersistenceError("Failed to update report") from exc

        self._session.refresh(report)
        record_report_mutation("update", "success")
        logger.info("report updated", extra={"report_id": report_id, "items": len(items)})
        self.refresh()
        return report

    def delete(self, report_id: str) -> None:
        """Delete a report; its items go with it."""

        report = self.get(report_id)
        try:
            self._session.delete(report)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            record_report_mutation("delete", "error")
            logger.error("failed to delete report", extra={"report_id": report_id, "error": str(exc)})
            raise PersistenceError("Failed to delete report") from exc

        record_report_mutation("delete", "success")
        logger.info("report deleted", extra={"report_id": report_id})
        self.refresh()


__all__ = [
    "ReportLifecycleManager",
    "total_cost",
    "validate_draft",
]
