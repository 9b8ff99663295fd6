"""Pydantic schemas for request and response bodies."""

from .analytics import (
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
from .report import ReportDraft, ReportItemDraft, ReportItemRead, ReportRead

__all__ = [
    "AnalysisReportRead",
    "AnalysisReportRequest",
    "AskRequest",
    "AskResponse",
    "InsightsRead",
    "PredictiveAnalyticsRead",
    "ReportDraft",
    "ReportItemDraft",
    "ReportItemRead",
    "ReportRead",
    "RouteAnalysisRead",
    "RouteOptimizeRequest",
    "RoutePlanRead",
    "TransportEfficiencyRead",
    "TransportPatternRead",
]
