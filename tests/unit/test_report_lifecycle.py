from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from fieldreports.models import ReportItem, ReportType, User
from fieldreports.schemas import ReportDraft, ReportItemDraft
from fieldreports.services.analytics import transport_patterns
from fieldreports.services.errors import (
    AuthenticationRequired,
    PersistenceError,
    ReportNotFoundError,
    ReportValidationError,
)
from fieldreports.services.reports import ReportLifecycleManager, total_cost, validate_draft


def _create_user(session: Session, email: str = "officer@example.com") -> User:
    user = User(email=email, full_name="Ada Officer", hashed_password="not-a-real-hash")
    session.add(user)
    session.commit()
    return user


def _draft(**overrides: object) -> ReportDraft:
    values: dict[str, object] = {
        "report_type": ReportType.VERIFICATION,
        "report_date": date(2024, 5, 2),
        "description": "Branch verification visits",
        "account_number": "0123456789",
        "account_name": "Ada Officer",
        "bank_name": "First Bank",
        "items": [
            ReportItemDraft(location="A", transportation="Bus", cost=Decimal("500")),
            ReportItemDraft(location="B", transportation="Keke", cost=Decimal("300")),
        ],
    }
    values.update(overrides)
    return ReportDraft(**values)


def test_validate_draft_requires_account_details() -> None:
    with pytest.raises(ReportValidationError) as excinfo:
        validate_draft(_draft(bank_name="  ", report_date=None))

    assert set(excinfo.value.fields) == {"bank_name", "report_date"}


def test_validate_draft_drops_incomplete_items() -> None:
    draft = _draft(
        items=[
            ReportItemDraft(location="A", transportation="Bus", cost=Decimal("500")),
            ReportItemDraft(location="", transportation="Bus", cost=Decimal("100")),
            ReportItemDraft(location="C", transportation="Taxi", cost=Decimal("0")),
        ]
    )

    items = validate_draft(draft)

    assert [item.location for item in items] == ["A"]
    assert total_cost(items) == Decimal("500.00")


def test_validate_draft_rejects_when_no_complete_items() -> None:
    draft = _draft(items=[ReportItemDraft(location="A", transportation=" ", cost=Decimal("10"))])

    with pytest.raises(ReportValidationError, match="at least one complete journey record"):
        validate_draft(draft)


def test_create_persists_report_and_items(db_session: Session) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)

    report = manager.create(_draft())

    assert report.total_cost == Decimal("800.00")
    assert [item.location for item in report.items] == ["A", "B"]
    assert [stored.id for stored in manager.reports] == [report.id]
    patterns = {pattern.location: pattern.visit_count for pattern in transport_patterns(manager.reports)}
    assert patterns == {"A": 1, "B": 1}


def test_list_returns_newest_first(db_session: Session) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)

    first = manager.create(_draft(description="first"))
    second = manager.create(_draft(description="second"))

    assert [report.id for report in manager.list_reports()] == [second.id, first.id]


def test_update_replaces_items_and_total(db_session: Session) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)
    report = manager.create(_draft())

    updated = manager.update(
        report.id,
        _draft(
            report_type=ReportType.RECOVERY,
            items=[ReportItemDraft(location="C", transportation="Okada", cost=Decimal("250.5"))],
        ),
    )

    assert updated.report_type is ReportType.RECOVERY
    assert updated.total_cost == Decimal("250.50")
    assert [item.location for item in updated.items] == ["C"]
    assert db_session.scalar(select(func.count()).select_from(ReportItem)) == 1


def test_delete_removes_items_from_aggregation(db_session: Session) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)
    kept = manager.create(_draft(items=[ReportItemDraft(location="A", transportation="Bus", cost=Decimal("500"))]))
    removed = manager.create(
        _draft(items=[ReportItemDraft(location="Z", transportation="Taxi", cost=Decimal("900"))])
    )

    manager.delete(removed.id)

    assert [report.id for report in manager.reports] == [kept.id]
    assert {pattern.location for pattern in transport_patterns(manager.reports)} == {"A"}
    assert db_session.scalar(select(func.count()).select_from(ReportItem)) == 1


def test_operations_require_identity(db_session: Session) -> None:
    manager = ReportLifecycleManager(db_session, user_id=None)

    with pytest.raises(AuthenticationRequired):
        manager.list_reports()
    with pytest.raises(AuthenticationRequired):
        manager.create(_draft())
    with pytest.raises(AuthenticationRequired):
        manager.delete("missing")


def test_foreign_report_is_not_found(db_session: Session) -> None:
    owner = _create_user(db_session)
    stranger = _create_user(db_session, email="stranger@example.com")
    report = ReportLifecycleManager(db_session, user_id=owner.id).create(_draft())

    manager = ReportLifecycleManager(db_session, user_id=stranger.id)

    with pytest.raises(ReportNotFoundError):
        manager.get(report.id)
    with pytest.raises(ReportNotFoundError):
        manager.update(report.id, _draft())
    assert manager.list_reports() == []


def test_failed_create_leaves_mirror_and_store_unchanged(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)
    existing = manager.create(_draft())

    def _fail() -> None:
        raise OperationalError("INSERT", {}, Exception("connection reset"))

    with monkeypatch.context() as patch:
        patch.setattr(db_session, "commit", _fail)
        with pytest.raises(PersistenceError):
            manager.create(_draft(description="never stored"))

    assert [report.id for report in manager.reports] == [existing.id]
    assert [report.id for report in manager.list_reports()] == [existing.id]


def _fail_item_inserts(session: Session, patch: pytest.MonkeyPatch) -> None:
    real_flush = session.flush

    def _flush(*args: object, **kwargs: object) -> None:
        if any(isinstance(instance, ReportItem) for instance in session.new):
            raise OperationalError("INSERT INTO report_items", {}, Exception("disk full"))
        real_flush(*args, **kwargs)  # type: ignore[arg-type]

    patch.setattr(session, "flush", _flush)


def _stored_items(session: Session) -> list[tuple[str, str]]:
    rows = session.execute(
        select(ReportItem.report_id, ReportItem.location).order_by(ReportItem.report_id, ReportItem.position)
    )
    return [(row.report_id, row.location) for row in rows]


def test_item_insert_failure_during_create_is_rolled_back(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)
    existing = manager.create(_draft())
    items_before = _stored_items(db_session)

    with monkeypatch.context() as patch:
        _fail_item_inserts(db_session, patch)
        with pytest.raises(PersistenceError, match="Failed to create report"):
            manager.create(_draft(description="never stored"))

    assert _stored_items(db_session) == items_before
    assert [report.id for report in manager.reports] == [existing.id]
    assert [report.id for report in manager.list_reports()] == [existing.id]


def test_item_insert_failure_during_update_keeps_original_items(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    user = _create_user(db_session)
    manager = ReportLifecycleManager(db_session, user_id=user.id)
    report = manager.create(_draft())
    items_before = _stored_items(db_session)

    with monkeypatch.context() as patch:
        _fail_item_inserts(db_session, patch)
        with pytest.raises(PersistenceError, match="Failed to update report"):
            manager.update(
                report.id,
                _draft(
                    description="replacement",
                    items=[ReportItemDraft(location="C", transportation="Okada", cost=Decimal("150"))],
                ),
            )

    assert _stored_items(db_session) == items_before
    (mirrored,) = manager.reports
    assert mirrored.id == report.id
    assert [item.location for item in mirrored.items] == ["A", "B"]
    assert mirrored.description == "Branch verification visits"
    assert mirrored.total_cost == Decimal("800")
