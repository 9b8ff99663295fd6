"""Report CRUD and PDF export endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from fieldreports.api.deps import get_db_session
from fieldreports.api.routes.auth import AuthenticatedUser, get_optional_user
from fieldreports.core.config import get_settings
from fieldreports.obs import analysis_span, record_export
from fieldreports.schemas import ReportDraft, ReportRead
from fieldreports.services.errors import (
    AuthenticationRequired,
    FieldReportsError,
    PersistenceError,
    ReportNotFoundError,
    ReportValidationError,
)
from fieldreports.services.exports import render_report_pdf, report_pdf_filename
from fieldreports.services.reports import ReportLifecycleManager

router = APIRouter(prefix="/reports")


def get_report_manager(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> ReportLifecycleManager:
    """Lifecycle manager bound to the caller; anonymous callers get ``user_id=None``."""

    return ReportLifecycleManager(session, user_id=user.user_id if user else None)


def to_http_error(exc: FieldReportsError) -> HTTPException:
    """Translate a service error into the matching HTTP response."""

    if isinstance(exc, ReportValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "fields": exc.fields},
        )
    if isinstance(exc, AuthenticationRequired):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, ReportNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=list[ReportRead], summary="List the caller's reports, newest first")
def list_reports(manager: ReportLifecycleManager = Depends(get_report_manager)) -> list[ReportRead]:
    try:
        reports = manager.list_reports()
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc
    return [ReportRead.model_validate(report) for report in reports]


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportDraft,
    manager: ReportLifecycleManager = Depends(get_report_manager),
) -> ReportRead:
    """Create a report with its journey items."""

    try:
        report = manager.create(payload)
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc
    return ReportRead.model_validate(report)


@router.get("/{report_id}", response_model=ReportRead)
def get_report(report_id: str, manager: ReportLifecycleManager = Depends(get_report_manager)) -> ReportRead:
    try:
        report = manager.get(report_id)
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc
    return ReportRead.model_validate(report)


@router.put("/{report_id}", response_model=ReportRead)
def update_report(
    report_id: str,
    payload: ReportDraft,
    manager: ReportLifecycleManager = Depends(get_report_manager),
) -> ReportRead:
    """Replace a report's fields and its full item list."""

    try:
        report = manager.update(report_id, payload)
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc
    return ReportRead.model_validate(report)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(report_id: str, manager: ReportLifecycleManager = Depends(get_report_manager)) -> Response:
    try:
        manager.delete(report_id)
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{report_id}/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
    summary="Download a report as PDF",
)
def download_report_pdf(
    report_id: str,
    manager: ReportLifecycleManager = Depends(get_report_manager),
) -> Response:
    settings = get_settings()
    try:
        report = manager.get(report_id)
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc

    preparer = (report.owner.full_name if report.owner else None) or settings.default_preparer_name
    with analysis_span("export.report_pdf", report_id=report_id):
        content = render_report_pdf(report, preparer=preparer, symbol=settings.currency_symbol)
    record_export("pdf")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_pdf_filename(report)}"'},
    )


__all__ = ["get_report_manager", "router", "to_http_error"]
