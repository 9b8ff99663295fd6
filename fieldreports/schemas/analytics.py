"""Schemas exposing aggregation results and analysis requests."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

AnalysisTypeName = Literal["transport", "route", "cost", "efficiency", "comprehensive", "predictive"]


class _ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TransportPatternRead(_ReadModel):
    location: str
    visit_count: int
    total_cost: float
    average_cost: float
    transportation_types: dict[str, int]
    last_visited: date | None
    cost_trend: Literal["increasing", "decreasing", "stable"]
    efficiency: float
    recommendations: list[str]


class FrequentRouteRead(_ReadModel):
    from_location: str
    to_location: str
    frequency: int
    total_cost: float
    average_cost: float
    efficiency: float


class OptimalRouteRead(_ReadModel):
    locations: list[str]
    estimated_cost: float
    estimated_time: str
    efficiency: float


class CoverageAreaRead(_ReadModel):
    visit_count: int
    last_visit: date | None
    average_cost: float
    efficiency: float


class RouteAnalysisRead(_ReadModel):
    frequent_routes: list[FrequentRouteRead]
    optimal_route: OptimalRouteRead
    coverage_map: dict[str, CoverageAreaRead]


class TransportEfficiencyRead(_ReadModel):
    transportation_type: str
    total_usage: int
    total_cost: float
    average_cost: float
    efficiency: float
    recommendations: list[str]
    ai_insights: list[str]


class CostAnalysisRead(_ReadModel):
    total_spent: float
    average_per_visit: float
    monthly_trend: float
    cost_efficiency: Literal["high", "medium", "low"]
    projected_annual_cost: float


class EfficiencyMetricsRead(_ReadModel):
    visits_per_month: float
    average_distance: float
    time_optimization: str
    efficiency_score: float


class PatternSummaryRead(_ReadModel):
    most_frequent_locations: list[str]
    preferred_transport: str
    peak_visiting_hours: list[str]
    seasonal_trends: list[str]
    cost_hotspots: list[str]


class CostForecastRead(_ReadModel):
    next_month: float
    next_quarter: float
    trend: Literal["increasing", "decreasing", "stable"]
    confidence: float


class VisitPredictionsRead(_ReadModel):
    next_month: int
    peak_days: list[str]
    optimal_times: list[str]


class EfficiencyPredictionsRead(_ReadModel):
    potential_savings: float
    optimization_opportunities: list[str]
    risk_factors: list[str]


class PredictiveInsightsRead(_ReadModel):
    cost_forecast: CostForecastRead
    visit_predictions: VisitPredictionsRead
    efficiency_predictions: EfficiencyPredictionsRead


class InsightsRead(_ReadModel):
    summary: str
    recommendations: list[str]
    cost_analysis: CostAnalysisRead
    efficiency_metrics: EfficiencyMetricsRead
    patterns: PatternSummaryRead
    predictive_insights: PredictiveInsightsRead


class DateRangeRead(_ReadModel):
    start: date | None
    end: date | None


class AnalysisReportRead(_ReadModel):
    """Titled analysis snapshot built from the caller's reports."""

    id: str
    title: str
    type: AnalysisTypeName
    insights: InsightsRead
    generated_at: datetime
    date_range: DateRangeRead
    ai_model: str
    confidence: float
    route_analysis: RouteAnalysisRead | None = None
    transport_patterns: list[TransportPatternRead] | None = None


class RouteOptimizeRequest(BaseModel):
    """Locations to order and the criterion to order them by."""

    locations: list[str] = Field(default_factory=list)
    criterion: Literal["cost", "time", "efficiency"] = "cost"


class RoutePlanRead(_ReadModel):
    route: list[str]
    total_cost: float
    estimated_time: str
    efficiency: float
    criterion: Literal["cost", "time", "efficiency"]


class MonthlyBucketRead(_ReadModel):
    month: str
    total_cost: float
    visit_count: int
    average_cost: float


class CostProjectionRead(_ReadModel):
    period: int
    predicted: int
    actual: float


class LocationVisitsRead(_ReadModel):
    location: str
    visits: int


class RiskLocationRead(_ReadModel):
    location: str
    total_cost: float
    visit_count: int
    average_cost: float


class PredictiveAnalyticsRead(_ReadModel):
    monthly_trends: list[MonthlyBucketRead]
    predicted_costs: list[CostProjectionRead]
    growth_rate: float
    predicted_visits: int
    top_locations: list[LocationVisitsRead]
    risk_locations: list[RiskLocationRead]
    current_average_cost: float
    efficiency_score: float


class AnalysisReportRequest(BaseModel):
    analysis_type: AnalysisTypeName = "comprehensive"


class AskRequest(BaseModel):
    """Free-form analysis question forwarded to the inference endpoint."""

    analysis_type: str = Field(default="comprehensive", max_length=64)
    focus_areas: list[str] = Field(default_factory=list)
    custom_prompt: str | None = Field(default=None, max_length=4000)
    question: str | None = Field(default=None, max_length=4000)


class AskResponse(_ReadModel):
    insights: str
    recommendations: list[str]
    predictions: dict[str, Any]
    confidence: float
    model: str


__all__ = [
    "AnalysisReportRead",
    "AnalysisReportRequest",
    "AskRequest",
    "AskResponse",
    "InsightsRead",
    "PredictiveAnalyticsRead",
    "RouteAnalysisRead",
    "RouteOptimizeRequest",
    "RoutePlanRead",
    "TransportEfficiencyRead",
    "TransportPatternRead",
]
