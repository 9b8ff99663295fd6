"""Account storage and password checks for report owners."""
from __future__ import annotations

import logging

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fieldreports.models import User
from fieldreports.services.errors import DuplicateUserError, InvalidCredentialsError, PersistenceError

logger = logging.getLogger(__name__)


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


def _normalise_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(session: Session, email: str) -> User | None:
    statement = select(User).where(func.lower(User.email) == _normalise_email(email))
    return session.scalars(statement).first()


def create_user(session: Session, *, email: str, password: str, full_name: str | None = None) -> User:
    """Register a new account; emails are unique case-insensitively."""

    if find_user_by_email(session, email) is not None:
        raise DuplicateUserError(f"An account already exists for '{email}'")

    user = User(email=_normalise_email(email), full_name=full_name, hashed_password=hash_password(password))
    try:
        session.add(user)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateUserError(f"An account already exists for '{email}'") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError("Failed to create account") from exc

    session.refresh(user)
    logger.info("user registered", extra={"user_id": user.id})
    return user


def authenticate_user(session: Session, *, email: str, password: str) -> User:
    user = find_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError("Invalid credentials")
    return user


__all__ = [
    "authenticate_user",
    "create_user",
    "find_user_by_email",
    "hash_password",
    "verify_password",
]
