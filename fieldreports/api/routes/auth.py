"""Authentication endpoints for issuing JWTs."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Literal
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.orm import Session

from fieldreports.api.deps import get_db_session
from fieldreports.core.config import Settings, get_settings
from fieldreports.models import User
from fieldreports.services.errors import DuplicateUserError, InvalidCredentialsError, PersistenceError
from fieldreports.services.identity import authenticate_user, create_user

router = APIRouter()
security_scheme = HTTPBearer(auto_error=True)
optional_security_scheme = HTTPBearer(auto_error=False)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    full_name: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str | None


class TokenPayload(BaseModel):
    sub: str
    email: str
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    email: str


class RefreshTokenStore:
    """In-memory store tracking active and blacklisted refresh tokens."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._blacklist: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            if token_id in self._blacklist:
                return False
            return self._active.get(subject) == token_id

    def blacklist(self, token_id: str) -> None:
        with self._lock:
            self._blacklist.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._blacklist.clear()


refresh_token_store = RefreshTokenStore()


def _create_token(
    *,
    user: AuthenticatedUser,
    settings: Settings,
    expires_delta: timedelta,
    token_type: Literal["access", "refresh"],
) -> tuple[str, str]:
    now = datetime.now(UTC)
    token_id = uuid4().hex
    payload = {
        "sub": user.user_id,
        "email": user.email,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": token_type,
        "jti": token_id,
    }
    encoded = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded, token_id


def _issue_tokens(*, user: AuthenticatedUser, settings: Settings) -> TokenResponse:
    access_token, _ = _create_token(
        user=user,
        settings=settings,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        token_type="access",
    )
    refresh_token, refresh_id = _create_token(
        user=user,
        settings=settings,
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
        token_type="refresh",
    )
    refresh_token_store.mark_active(user.user_id, refresh_id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    try:
        return TokenPayload(**payload)
    except ValidationError as exc:  # pragma: no cover - validation handles data issues
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


def _authenticate(request: Request, token: str) -> AuthenticatedUser:
    payload = _decode_token(token=token, settings=get_settings())
    if payload.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    request.state.user_id = payload.sub
    return AuthenticatedUser(user_id=payload.sub, email=payload.email)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> AuthenticatedUser:
    return _authenticate(request, credentials.credentials)


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security_scheme),
) -> AuthenticatedUser | None:
    """Like ``get_current_user`` but yields ``None`` when no bearer token is sent."""

    if credentials is None:
        return None
    return _authenticate(request, credentials.credentials)


def _validate_email(email: str) -> None:
    if "@" not in email:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid email address")


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an account and issue tokens",
)
def signup(payload: SignupRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    _validate_email(payload.email)
    try:
        user = create_user(session, email=payload.email, password=payload.password, full_name=payload.full_name)
    except DuplicateUserError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return _issue_tokens(user=AuthenticatedUser(user_id=user.id, email=user.email), settings=get_settings())


@router.post("/login", response_model=TokenResponse, summary="Issue JWT access tokens")
def login(payload: LoginRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    _validate_email(payload.email)
    try:
        user = authenticate_user(session, email=payload.email, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return _issue_tokens(user=AuthenticatedUser(user_id=user.id, email=user.email), settings=get_settings())


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(payload: RefreshRequest) -> TokenResponse:
    settings = get_settings()
    token = _decode_token(token=payload.refresh_token, settings=settings)
    if token.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(token.sub, token.jti):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked")

    refresh_token_store.blacklist(token.jti)
    return _issue_tokens(user=AuthenticatedUser(user_id=token.sub, email=token.email), settings=settings)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Revoke a refresh token")
def logout(payload: RefreshRequest) -> Response:
    token = _decode_token(token=payload.refresh_token, settings=get_settings())
    if token.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    refresh_token_store.blacklist(token.jti)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserRead, summary="Current account")
def me(
    user: AuthenticatedUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> UserRead:
    account = session.get(User, user.user_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account no longer exists")
    return UserRead.model_validate(account)


__all__ = [
    "AuthenticatedUser",
    "RefreshTokenStore",
    "TokenResponse",
    "get_current_user",
    "get_optional_user",
    "refresh_token_store",
    "router",
]
