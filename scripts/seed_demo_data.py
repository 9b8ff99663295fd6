"""Seed script for a demo field officer and a few visit reports."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from fieldreports.db.session import engine, session_scope
from fieldreports.models import Base, ReportType
from fieldreports.schemas.report import ReportDraft, ReportItemDraft
from fieldreports.services.identity import create_user, find_user_by_email
from fieldreports.services.reports import ReportLifecycleManager

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_EMAIL = "officer@demo.local"
DEMO_PASSWORD = "changeme"

DEMO_REPORTS = [
    (
        ReportType.VERIFICATION,
        date(2024, 1, 8),
        [("Ikeja, Lagos", "Bus", "450"), ("Yaba, Lagos", "Keke", "300")],
    ),
    (
        ReportType.RECOVERY,
        date(2024, 2, 12),
        [("Abuja", "Taxi", "2500"), ("Ikeja, Lagos", "Bus", "500")],
    ),
    (
        ReportType.POST_DISBURSEMENT,
        date(2024, 3, 4),
        [("Kano", "Bus", "1200"), ("Abuja", "Taxi", "2600")],
    ),
]


def seed(session: Session) -> None:
    """Seed the demo officer and their reports."""

    user = find_user_by_email(session, DEMO_EMAIL)
    if user is not None:
        logger.info("User %s already exists", DEMO_EMAIL)
        return

    user = create_user(session, email=DEMO_EMAIL, password=DEMO_PASSWORD, full_name="Demo Officer")
    logger.info("Added user %s", DEMO_EMAIL)

    manager = ReportLifecycleManager(session, user_id=user.id)
    for report_type, report_date, items in DEMO_REPORTS:
        report = manager.create(
            ReportDraft(
                report_type=report_type,
                report_date=report_date,
                description="Demo field visit",
                account_number="0123456789",
                account_name="Demo Officer",
                bank_name="First Bank",
                items=[
                    ReportItemDraft(location=location, transportation=transport, cost=Decimal(cost))
                    for location, transport, cost in items
                ],
            )
        )
        logger.info("Added %s report %s", report_type.value, report.id)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with session_scope() as session:
        seed(session)


if __name__ == "__main__":
    main()
