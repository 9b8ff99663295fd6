"""ORM models package."""
from .base import Base, TimestampMixin
from .report import Report, ReportItem, ReportType
from .user import User

__all__ = [
    "Base",
    "Report",
    "ReportItem",
    "ReportType",
    "TimestampMixin",
    "User",
]
