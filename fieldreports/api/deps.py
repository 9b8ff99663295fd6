"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.orm import Session

from fieldreports.core.config import get_settings
from fieldreports.db.session import SessionLocal
from fieldreports.services.analytics import AnalyticsOptions
from fieldreports.services.inference import InferenceClient, InferenceConfig


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_analytics_options() -> AnalyticsOptions:
    return AnalyticsOptions.from_settings(get_settings())


def get_inference_client() -> Iterator[InferenceClient]:
    client = InferenceClient(InferenceConfig.from_settings(get_settings()))
    try:
        yield client
    finally:
        client.close()


__all__ = ["get_analytics_options", "get_db_session", "get_inference_client"]
