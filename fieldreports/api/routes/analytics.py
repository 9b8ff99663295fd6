"""Aggregation, analysis report and inference endpoints.

Every endpoint recomputes from the caller's current reports; nothing is
cached between requests.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from fieldreports.api.deps import get_analytics_options, get_inference_client
from fieldreports.api.routes.reports import get_report_manager, to_http_error
from fieldreports.core.config import get_settings
from fieldreports.models import Report
from fieldreports.obs import analysis_span, record_export
from fieldreports.schemas import (
    AnalysisReportRead,
    AnalysisReportRequest,
    AskRequest,
    AskResponse,
    InsightsRead,
    PredictiveAnalyticsRead,
    RouteAnalysisRead,
    RouteOptimizeRequest,
    RoutePlanRead,
    TransportEfficiencyRead,
    TransportPatternRead,
)
from fieldreports.services import analytics
from fieldreports.services.errors import FieldReportsError
from fieldreports.services.exports import analysis_text_filename, render_analysis_text
from fieldreports.services.inference import AnalysisRequest, InferenceClient
from fieldreports.services.reports import ReportLifecycleManager

router = APIRouter(prefix="/analytics")


def _current_reports(manager: ReportLifecycleManager) -> list[Report]:
    try:
        return manager.list_reports()
    except FieldReportsError as exc:
        raise to_http_error(exc) from exc


@router.get("/patterns", response_model=list[TransportPatternRead], summary="Per-location transport patterns")
def get_transport_patterns(
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> list[TransportPatternRead]:
    reports = _current_reports(manager)
    with analysis_span("analytics.patterns", reports=len(reports)):
        patterns = analytics.transport_patterns(reports, options)
    return [TransportPatternRead.model_validate(pattern) for pattern in patterns]


@router.get("/routes", response_model=RouteAnalysisRead, summary="Frequent routes, plan and coverage")
def get_route_analysis(
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> RouteAnalysisRead:
    reports = _current_reports(manager)
    with analysis_span("analytics.routes", reports=len(reports)):
        result = analytics.route_analysis(reports, options=options)
    return RouteAnalysisRead.model_validate(result)


@router.get("/efficiency", response_model=list[TransportEfficiencyRead], summary="Per-mode transport efficiency")
def get_transport_efficiency(
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> list[TransportEfficiencyRead]:
    reports = _current_reports(manager)
    with analysis_span("analytics.efficiency", reports=len(reports)):
        results = analytics.transport_efficiency(reports, options)
    return [TransportEfficiencyRead.model_validate(result) for result in results]


@router.get("/insights", response_model=InsightsRead, summary="Overall cost and visit insights")
def get_insights(
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> InsightsRead:
    reports = _current_reports(manager)
    with analysis_span("analytics.insights", reports=len(reports)):
        insights = analytics.insights_summary(reports, options=options)
    return InsightsRead.model_validate(insights)


@router.post("/routes/optimize", response_model=RoutePlanRead, summary="Order selected locations by a criterion")
def optimize_route(
    payload: RouteOptimizeRequest,
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> RoutePlanRead:
    reports = _current_reports(manager)
    with analysis_span("analytics.optimize", reports=len(reports), criterion=payload.criterion):
        patterns = analytics.transport_patterns(reports, options)
        plan = analytics.optimize_route(patterns, payload.locations, payload.criterion)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Please select at least one visited location to optimize.",
        )
    return RoutePlanRead.model_validate(plan)


@router.get(
    "/predictions",
    response_model=PredictiveAnalyticsRead | None,
    summary="Growth rate, cost projections and risk locations",
)
def get_predictive_analytics(
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> PredictiveAnalyticsRead | None:
    """Returns ``null`` until at least one report exists."""

    reports = _current_reports(manager)
    with analysis_span("analytics.predictions", reports=len(reports)):
        result = analytics.predictive_analytics(reports, options)
    return PredictiveAnalyticsRead.model_validate(result) if result is not None else None


def _build_report(
    payload: AnalysisReportRequest,
    manager: ReportLifecycleManager,
    options: analytics.AnalyticsOptions,
) -> analytics.AnalysisReport:
    reports = _current_reports(manager)
    with analysis_span("analytics.report", reports=len(reports), analysis_type=payload.analysis_type):
        return analytics.build_analysis_report(reports, payload.analysis_type, options=options)


@router.post("/reports", response_model=AnalysisReportRead, summary="Build a titled analysis report")
def create_analysis_report(
    payload: AnalysisReportRequest,
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> AnalysisReportRead:
    return AnalysisReportRead.model_validate(_build_report(payload, manager, options))


@router.post(
    "/reports/export",
    response_class=Response,
    responses={200: {"content": {"text/plain": {}}}},
    summary="Download an analysis report as text",
)
def export_analysis_report(
    payload: AnalysisReportRequest,
    manager: ReportLifecycleManager = Depends(get_report_manager),
    options: analytics.AnalyticsOptions = Depends(get_analytics_options),
) -> Response:
    analysis = _build_report(payload, manager, options)
    content = render_analysis_text(analysis, symbol=get_settings().currency_symbol)
    record_export("text")
    return Response(
        content=content,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{analysis_text_filename(analysis)}"'},
    )


@router.post("/ask", response_model=AskResponse, summary="Ask a question about the reports")
def ask(
    payload: AskRequest,
    manager: ReportLifecycleManager = Depends(get_report_manager),
    client: InferenceClient = Depends(get_inference_client),
) -> AskResponse:
    """Always answers; without a remote provider, or when it fails, the answer is computed locally."""

    reports = _current_reports(manager)
    request = AnalysisRequest(
        analysis_type=payload.analysis_type,
        focus_areas=list(payload.focus_areas),
        custom_prompt=payload.custom_prompt,
    )
    with analysis_span("analytics.ask", provider=client.config.provider):
        response = client.ask(
            reports, request, question=payload.question, symbol=get_settings().currency_symbol
        )
    return AskResponse.model_validate(response)


__all__ = ["router"]
