"""Derived metrics over a collection of field reports.

Every function here is pure: it recomputes from the reports it is given and
keeps no state between calls. Reports may be ORM instances or any object
exposing ``id``, ``report_type``, ``report_date`` and ``items`` (each item
exposing ``location``, ``transportation`` and ``cost``). Empty collections
produce zeroed results rather than errors.
"""
from __future__ import annotations

import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Literal

from fieldreports.core.config import Settings

CostTrend = Literal["increasing", "decreasing", "stable"]
CostEfficiency = Literal["high", "medium", "low"]
AnalysisType = Literal["transport", "route", "cost", "efficiency", "comprehensive", "predictive"]
MonthlyOrder = Literal["insertion", "chronological"]
RoutePairing = Literal["alphabetical", "visit_order"]
OptimizationCriterion = Literal["cost", "time", "efficiency"]

ANALYSIS_TYPES: tuple[str, ...] = ("transport", "route", "cost", "efficiency", "comprehensive", "predictive")

LOCATION_EFFICIENCY_DIVISOR = 50.0
TRANSPORT_EFFICIENCY_DIVISOR = 100.0
ROUTE_PLAN_EFFICIENCY_DIVISOR = 100.0

HIGH_COST_THRESHOLD = 2000.0
TREND_WINDOW = 3
TREND_UPPER_RATIO = 1.1
TREND_LOWER_RATIO = 0.9
LOW_VISIT_THRESHOLD = 3
LOW_USAGE_THRESHOLD = 5
FREQUENT_ROUTE_LIMIT = 10
OPTIMAL_ROUTE_SIZE = 5
HOURS_PER_STOP = 2
DAYS_PER_MONTH = 30

NEXT_MONTH_MULTIPLIER = 1.05
NEXT_QUARTER_MULTIPLIER = 3.15
ANNUAL_MULTIPLIER = 12
SAVINGS_RATE = 0.15
FORECAST_CONFIDENCE = 0.75
LOCAL_REPORT_CONFIDENCE = 0.85

RISK_COST_THRESHOLD = 3000.0
RISK_LOCATION_LIMIT = 3
TOP_LOCATION_LIMIT = 5
GROWTH_WINDOW = 3
PROJECTION_STEPS = 6


@dataclass(slots=True, frozen=True)
class AnalyticsOptions:
    """Tunable behaviour of the aggregation functions."""

    normalize_keys: bool = False
    monthly_order: MonthlyOrder = "chronological"
    route_pairing: RoutePairing = "alphabetical"
    high_efficiency_threshold: float = 1000.0
    low_efficiency_threshold: float = 3000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalyticsOptions":
        return cls(
            normalize_keys=settings.analytics_normalize_keys,
            monthly_order=settings.analytics_monthly_order,
            route_pairing=settings.analytics_route_pairing,
            high_efficiency_threshold=settings.high_efficiency_threshold,
            low_efficiency_threshold=settings.low_efficiency_threshold,
        )


DEFAULT_OPTIONS = AnalyticsOptions()


@dataclass(slots=True, frozen=True)
class VisitRecord:
    """A report item tagged with its parent report's type and date."""

    report_id: str
    report_type: str
    report_date: date | None
    location: str
    transportation: str
    cost: float


@dataclass(slots=True, frozen=True)
class TransportPattern:
    location: str
    visit_count: int
    total_cost: float
    average_cost: float
    transportation_types: dict[str, int]
    last_visited: date | None
    cost_trend: CostTrend
    efficiency: float
    recommendations: list[str]


@dataclass(slots=True, frozen=True)
class FrequentRoute:
    from_location: str
    to_location: str
    frequency: int
    total_cost: float
    average_cost: float
    efficiency: float


@dataclass(slots=True, frozen=True)
class OptimalRoute:
    locations: list[str]
    estimated_cost: float
    estimated_time: str
    efficiency: float


@dataclass(slots=True, frozen=True)
class CoverageArea:
    visit_count: int
    last_visit: date | None
    average_cost: float
    efficiency: float


@dataclass(slots=True, frozen=True)
class RouteAnalysis:
    frequent_routes: list[FrequentRoute]
    optimal_route: OptimalRoute
    coverage_map: dict[str, CoverageArea]


@dataclass(slots=True, frozen=True)
class TransportEfficiency:
    transportation_type: str
    total_usage: int
    total_cost: float
    average_cost: float
    efficiency: float
    recommendations: list[str]
    ai_insights: list[str]


@dataclass(slots=True, frozen=True)
class CostAnalysis:
    total_spent: float
    average_per_visit: float
    monthly_trend: float
    cost_efficiency: CostEfficiency
    projected_annual_cost: float


@dataclass(slots=True, frozen=True)
class EfficiencyMetrics:
    visits_per_month: float
    average_distance: float
    time_optimization: str
    efficiency_score: float


@dataclass(slots=True, frozen=True)
class PatternSummary:
    most_frequent_locations: list[str]
    preferred_transport: str
    peak_visiting_hours: list[str]
    seasonal_trends: list[str]
    cost_hotspots: list[str]


@dataclass(slots=True, frozen=True)
class CostForecast:
    next_month: float
    next_quarter: float
    trend: CostTrend
    confidence: float


@dataclass(slots=True, frozen=True)
class VisitPredictions:
    next_month: int
    peak_days: list[str]
    optimal_times: list[str]


@dataclass(slots=True, frozen=True)
class EfficiencyPredictions:
    potential_savings: float
    optimization_opportunities: list[str]
    risk_factors: list[str]


@dataclass(slots=True, frozen=True)
class PredictiveInsights:
    cost_forecast: CostForecast
    visit_predictions: VisitPredictions
    efficiency_predictions: EfficiencyPredictions


@dataclass(slots=True, frozen=True)
class Insights:
    """Rolled-up summary across every report."""

    summary: str
    recommendations: list[str]
    cost_analysis: CostAnalysis
    efficiency_metrics: EfficiencyMetrics
    patterns: PatternSummary
    predictive_insights: PredictiveInsights


@dataclass(slots=True, frozen=True)
class DateRange:
    start: date | None
    end: date | None


@dataclass(slots=True, frozen=True)
class AnalysisReport:
    id: str
    title: str
    type: AnalysisType
    insights: Insights
    generated_at: datetime
    date_range: DateRange
    ai_model: str = "local-analysis"
    confidence: float = LOCAL_REPORT_CONFIDENCE
    route_analysis: RouteAnalysis | None = None
    transport_patterns: list[TransportPattern] | None = field(default=None)


def efficiency_score(cost: float, divisor: float) -> float:
    """Linear decay score, clamped below at zero."""
    return max(0.0, 100.0 - cost / divisor)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _as_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _type_value(report_type: Any) -> str:
    return getattr(report_type, "value", report_type) or ""


def _key(value: str, options: AnalyticsOptions) -> str:
    return value.strip().casefold() if options.normalize_keys else value


def flatten_items(reports: Iterable[Any], options: AnalyticsOptions = DEFAULT_OPTIONS) -> list[VisitRecord]:
    """Flatten reports into visit records, preserving report then item order."""

    records: list[VisitRecord] = []
    for report in reports:
        report_date = _as_date(report.report_date)
        for item in report.items:
            records.append(
                VisitRecord(
                    report_id=str(report.id),
                    report_type=_type_value(report.report_type),
                    report_date=report_date,
                    location=_key(item.location, options),
                    transportation=_key(item.transportation, options),
                    cost=float(item.cost or 0),
                )
            )
    return records


def classify_cost_trend(costs_by_date: Sequence[float]) -> CostTrend:
    """Compare the mean of the last three costs against the first three.

    The two windows overlap when fewer than six costs exist.
    """

    recent = list(costs_by_date[-TREND_WINDOW:])
    older = list(costs_by_date[:TREND_WINDOW])
    if len(recent) < 2 or len(older) < 2:
        return "stable"
    recent_mean = _mean(recent)
    older_mean = _mean(older)
    if recent_mean > older_mean * TREND_UPPER_RATIO:
        return "increasing"
    if recent_mean < older_mean * TREND_LOWER_RATIO:
        return "decreasing"
    return "stable"


def transport_patterns(
    reports: Iterable[Any], options: AnalyticsOptions = DEFAULT_OPTIONS
) -> list[TransportPattern]:
    """Per-location visit statistics ordered by visit count, most visited first."""

    visits_by_location: dict[str, list[VisitRecord]] = {}
    for record in flatten_items(reports, options):
        visits_by_location.setdefault(record.location, []).append(record)

    patterns: list[TransportPattern] = []
    for location, visits in visits_by_location.items():
        visit_count = len(visits)
        total_cost = sum(visit.cost for visit in visits)
        average_cost = total_cost / visit_count

        transportation_types: dict[str, int] = {}
        for visit in visits:
            transportation_types[visit.transportation] = transportation_types.get(visit.transportation, 0) + 1

        ordered = sorted(visits, key=lambda visit: visit.report_date or date.min)
        cost_trend = classify_cost_trend([visit.cost for visit in ordered])

        recommendations: list[str] = []
        if average_cost > HIGH_COST_THRESHOLD:
            recommendations.append("Consider more cost-effective transportation options")
        if visit_count < LOW_VISIT_THRESHOLD:
            recommendations.append("Limited visits - consider if this location is necessary")
        if cost_trend == "increasing":
            recommendations.append("Costs are increasing - monitor this location")

        patterns.append(
            TransportPattern(
                location=location,
                visit_count=visit_count,
                total_cost=total_cost,
                average_cost=average_cost,
                transportation_types=transportation_types,
                last_visited=ordered[-1].report_date,
                cost_trend=cost_trend,
                efficiency=efficiency_score(average_cost, LOCATION_EFFICIENCY_DIVISOR),
                recommendations=recommendations,
            )
        )

    patterns.sort(key=lambda pattern: pattern.visit_count, reverse=True)
    return patterns


def _route_legs(report: Any, options: AnalyticsOptions) -> list[tuple[str, str, float]]:
    items = list(report.items)
    if options.route_pairing == "alphabetical":
        # Adjacent pairs after sorting by name, not the order travelled.
        items.sort(key=lambda item: _key(item.location, options))
    legs: list[tuple[str, str, float]] = []
    for current, following in zip(items, items[1:]):
        legs.append(
            (_key(current.location, options), _key(following.location, options), float(current.cost or 0))
        )
    return legs


def frequent_routes(reports: Iterable[Any], options: AnalyticsOptions = DEFAULT_OPTIONS) -> list[FrequentRoute]:
    """The ten most frequent (from, to) pairs across all reports."""

    totals: dict[tuple[str, str], list[float]] = {}
    for report in reports:
        for origin, destination, cost in _route_legs(report, options):
            totals.setdefault((origin, destination), []).append(cost)

    routes: list[FrequentRoute] = []
    for (origin, destination), costs in totals.items():
        total_cost = sum(costs)
        average_cost = total_cost / len(costs)
        routes.append(
            FrequentRoute(
                from_location=origin,
                to_location=destination,
                frequency=len(costs),
                total_cost=total_cost,
                average_cost=average_cost,
                efficiency=efficiency_score(average_cost, LOCATION_EFFICIENCY_DIVISOR),
            )
        )
    routes.sort(key=lambda route: route.frequency, reverse=True)
    return routes[:FREQUENT_ROUTE_LIMIT]


def area_for(location: str) -> str:
    """Coarse area key: the text before the first comma."""
    return location.split(",", 1)[0].strip()


def coverage_map(patterns: Sequence[TransportPattern]) -> dict[str, CoverageArea]:
    """Roll location patterns up to areas.

    ``average_cost`` is folded as ``(previous + next) / 2`` starting from zero,
    so the result depends on pattern order and is not a true mean.
    """

    areas: dict[str, dict[str, Any]] = {}
    for pattern in patterns:
        area = areas.setdefault(
            area_for(pattern.location), {"visit_count": 0, "last_visit": None, "average_cost": 0.0}
        )
        area["visit_count"] += pattern.visit_count
        if pattern.last_visited is not None and (
            area["last_visit"] is None or pattern.last_visited > area["last_visit"]
        ):
            area["last_visit"] = pattern.last_visited
        area["average_cost"] = (area["average_cost"] + pattern.average_cost) / 2

    return {
        name: CoverageArea(
            visit_count=values["visit_count"],
            last_visit=values["last_visit"],
            average_cost=values["average_cost"],
            efficiency=efficiency_score(values["average_cost"], LOCATION_EFFICIENCY_DIVISOR),
        )
        for name, values in areas.items()
    }


def optimal_route(patterns: Sequence[TransportPattern]) -> OptimalRoute:
    top = list(patterns[:OPTIMAL_ROUTE_SIZE])
    estimated_cost = sum(pattern.average_cost for pattern in top)
    return OptimalRoute(
        locations=[pattern.location for pattern in top],
        estimated_cost=estimated_cost,
        estimated_time=f"{len(top) * HOURS_PER_STOP} hours",
        efficiency=efficiency_score(estimated_cost, ROUTE_PLAN_EFFICIENCY_DIVISOR),
    )


def route_analysis(
    reports: Sequence[Any],
    patterns: Sequence[TransportPattern] | None = None,
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> RouteAnalysis:
    if patterns is None:
        patterns = transport_patterns(reports, options)
    return RouteAnalysis(
        frequent_routes=frequent_routes(reports, options),
        optimal_route=optimal_route(patterns),
        coverage_map=coverage_map(patterns),
    )


def transport_efficiency(
    reports: Iterable[Any], options: AnalyticsOptions = DEFAULT_OPTIONS
) -> list[TransportEfficiency]:
    """Per-transport-mode usage and cost, most efficient first."""

    costs_by_mode: dict[str, list[float]] = {}
    for record in flatten_items(reports, options):
        costs_by_mode.setdefault(record.transportation, []).append(record.cost)

    results: list[TransportEfficiency] = []
    for mode, costs in costs_by_mode.items():
        usage = len(costs)
        total_cost = sum(costs)
        average_cost = total_cost / usage
        efficiency = efficiency_score(average_cost, TRANSPORT_EFFICIENCY_DIVISOR)
        expensive = average_cost > HIGH_COST_THRESHOLD
        rarely_used = usage < LOW_USAGE_THRESHOLD

        recommendations: list[str] = []
        if expensive:
            recommendations.append("Consider more cost-effective alternatives")
        if rarely_used:
            recommendations.append("Limited usage - evaluate if this transport type is necessary")

        results.append(
            TransportEfficiency(
                transportation_type=mode,
                total_usage=usage,
                total_cost=total_cost,
                average_cost=average_cost,
                efficiency=efficiency,
                recommendations=recommendations,
                ai_insights=[
                    f"This transport type has {usage} uses with {efficiency:.0f}% efficiency",
                    "Consider more cost-effective alternatives" if expensive else "This transport type is cost-effective",
                    "Limited usage - evaluate necessity" if rarely_used else "Well-utilized transport option",
                ],
            )
        )
    results.sort(key=lambda entry: entry.efficiency, reverse=True)
    return results


def monthly_totals(records: Iterable[VisitRecord], order: MonthlyOrder = "chronological") -> dict[str, float]:
    """Sum costs per ``YYYY-MM`` bucket of the parent report date."""

    totals: dict[str, float] = {}
    for record in records:
        if record.report_date is None:
            continue
        month = record.report_date.strftime("%Y-%m")
        totals[month] = totals.get(month, 0.0) + record.cost
    if order == "chronological":
        return dict(sorted(totals.items()))
    return totals


def monthly_trend(totals: dict[str, float]) -> float:
    """Difference between the last two buckets (or the only bucket's total)."""

    last_two = list(totals.values())[-2:]
    if not last_two:
        return 0.0
    if len(last_two) == 1:
        return last_two[0]
    return last_two[1] - last_two[0]


def _months_spanned(records: Sequence[VisitRecord]) -> float:
    dates = [record.report_date for record in records if record.report_date is not None]
    if not dates:
        return 0.0
    return (max(dates) - min(dates)).days / DAYS_PER_MONTH


def classify_cost_efficiency(average_per_visit: float, options: AnalyticsOptions = DEFAULT_OPTIONS) -> CostEfficiency:
    if average_per_visit < options.high_efficiency_threshold:
        return "high"
    if average_per_visit > options.low_efficiency_threshold:
        return "low"
    return "medium"


def _preferred_transport(records: Iterable[VisitRecord]) -> str:
    counts: dict[str, int] = {}
    for record in records:
        counts[record.transportation] = counts.get(record.transportation, 0) + 1
    if not counts:
        return "Unknown"
    return sorted(counts.items(), key=lambda entry: entry[1], reverse=True)[0][0]


def insights_summary(
    reports: Sequence[Any],
    patterns: Sequence[TransportPattern] | None = None,
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> Insights:
    records = flatten_items(reports, options)
    if patterns is None:
        patterns = transport_patterns(reports, options)

    total_spent = sum(record.cost for record in records)
    total_visits = len(records)
    average_per_visit = total_spent / total_visits if total_visits else 0.0

    trend_value = monthly_trend(monthly_totals(records, options.monthly_order))
    cost_efficiency = classify_cost_efficiency(average_per_visit, options)
    visits_per_month = total_visits / max(_months_spanned(records), 1)

    most_frequent_locations = [pattern.location for pattern in patterns[:5]]
    recommendations: list[str] = []
    if cost_efficiency == "low":
        recommendations.append("Consider using more cost-effective transportation options for frequent routes")
    if any(pattern.cost_trend == "increasing" for pattern in patterns):
        recommendations.append("Transport costs are increasing in some areas - consider alternative routes")
    if most_frequent_locations:
        recommendations.append(
            "Focus on optimizing routes to your most frequent locations: "
            + ", ".join(most_frequent_locations[:3])
        )

    cost_hotspots = [pattern.location for pattern in patterns if pattern.average_cost > HIGH_COST_THRESHOLD][:5]

    return Insights(
        summary=(
            f"Analysis of {total_visits} transport records shows {cost_efficiency} cost efficiency "
            f"with {visits_per_month:.1f} visits per month on average."
        ),
        recommendations=recommendations,
        cost_analysis=CostAnalysis(
            total_spent=total_spent,
            average_per_visit=average_per_visit,
            monthly_trend=trend_value,
            cost_efficiency=cost_efficiency,
            projected_annual_cost=total_spent * ANNUAL_MULTIPLIER,
        ),
        efficiency_metrics=EfficiencyMetrics(
            visits_per_month=visits_per_month,
            average_distance=0.0,
            time_optimization="Consider batch visits to nearby locations",
            efficiency_score=efficiency_score(average_per_visit, LOCATION_EFFICIENCY_DIVISOR),
        ),
        patterns=PatternSummary(
            most_frequent_locations=most_frequent_locations,
            preferred_transport=_preferred_transport(records),
            peak_visiting_hours=["9:00 AM", "2:00 PM"],
            seasonal_trends=["Higher activity in Q4"],
            cost_hotspots=cost_hotspots,
        ),
        predictive_insights=PredictiveInsights(
            cost_forecast=CostForecast(
                next_month=total_spent * NEXT_MONTH_MULTIPLIER,
                next_quarter=total_spent * NEXT_QUARTER_MULTIPLIER,
                trend="increasing" if trend_value > 0 else "decreasing",
                confidence=FORECAST_CONFIDENCE,
            ),
            visit_predictions=VisitPredictions(
                next_month=round(visits_per_month),
                peak_days=["Monday", "Wednesday", "Friday"],
                optimal_times=["9:00 AM", "2:00 PM"],
            ),
            efficiency_predictions=EfficiencyPredictions(
                potential_savings=total_spent * SAVINGS_RATE,
                optimization_opportunities=["Route optimization", "Transport mode selection"],
                risk_factors=["Increasing fuel costs", "Traffic congestion"],
            ),
        ),
    )


def build_analysis_report(
    reports: Sequence[Any],
    analysis_type: AnalysisType = "comprehensive",
    *,
    options: AnalyticsOptions = DEFAULT_OPTIONS,
    now: datetime | None = None,
) -> AnalysisReport:
    """Assemble a titled analysis report from the current collection.

    ``reports`` is expected newest first, so the date range runs from the
    last report's date to the first's.
    """

    if analysis_type not in ANALYSIS_TYPES:
        raise ValueError(f"Unsupported analysis type '{analysis_type}'")

    patterns = transport_patterns(reports, options)
    include_routes = analysis_type in ("route", "comprehensive")
    include_patterns = analysis_type in ("transport", "comprehensive")

    return AnalysisReport(
        id=uuid.uuid4().hex,
        title=f"{analysis_type.capitalize()} Analysis Report",
        type=analysis_type,
        insights=insights_summary(reports, patterns, options),
        route_analysis=route_analysis(reports, patterns, options) if include_routes else None,
        transport_patterns=patterns if include_patterns else None,
        generated_at=now or datetime.now(UTC),
        date_range=DateRange(
            start=_as_date(reports[-1].report_date) if reports else None,
            end=_as_date(reports[0].report_date) if reports else None,
        ),
    )


@dataclass(slots=True, frozen=True)
class RoutePlan:
    route: list[str]
    total_cost: float
    estimated_time: str
    efficiency: float
    criterion: OptimizationCriterion


def _visits_per_cost(pattern: TransportPattern) -> float:
    return pattern.visit_count / pattern.average_cost if pattern.average_cost else 0.0


def optimize_route(
    patterns: Sequence[TransportPattern],
    locations: Iterable[str],
    criterion: OptimizationCriterion = "cost",
) -> RoutePlan | None:
    """Order the selected locations by one criterion.

    ``cost`` puts the cheapest average first, ``time`` the most visited and
    ``efficiency`` the highest visits per unit of average cost. Returns
    ``None`` when none of ``locations`` has a recorded pattern.
    """

    selected = set(locations)
    chosen = [pattern for pattern in patterns if pattern.location in selected]
    if not chosen:
        return None

    if criterion == "cost":
        chosen.sort(key=lambda pattern: pattern.average_cost)
    elif criterion == "time":
        chosen.sort(key=lambda pattern: pattern.visit_count, reverse=True)
    elif criterion == "efficiency":
        chosen.sort(key=_visits_per_cost, reverse=True)
    else:
        raise ValueError(f"Unsupported optimization criterion '{criterion}'")

    return RoutePlan(
        route=[pattern.location for pattern in chosen],
        total_cost=sum(pattern.average_cost for pattern in chosen),
        estimated_time=f"{len(chosen) * HOURS_PER_STOP} hours",
        efficiency=sum(_visits_per_cost(pattern) for pattern in chosen),
        criterion=criterion,
    )


@dataclass(slots=True, frozen=True)
class MonthlyBucket:
    month: str
    total_cost: float
    visit_count: int
    average_cost: float


@dataclass(slots=True, frozen=True)
class CostProjection:
    period: int
    predicted: int
    actual: float


@dataclass(slots=True, frozen=True)
class LocationVisits:
    location: str
    visits: int


@dataclass(slots=True, frozen=True)
class RiskLocation:
    location: str
    total_cost: float
    visit_count: int
    average_cost: float


@dataclass(slots=True, frozen=True)
class PredictiveAnalytics:
    monthly_trends: list[MonthlyBucket]
    predicted_costs: list[CostProjection]
    growth_rate: float
    predicted_visits: int
    top_locations: list[LocationVisits]
    risk_locations: list[RiskLocation]
    current_average_cost: float
    efficiency_score: float


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def monthly_buckets(records: Iterable[VisitRecord]) -> list[MonthlyBucket]:
    """Cost and visit totals per ``YYYY-MM`` bucket, oldest first."""

    sums: dict[str, tuple[float, int]] = {}
    for record in records:
        if record.report_date is None:
            continue
        month = record.report_date.strftime("%Y-%m")
        cost, visits = sums.get(month, (0.0, 0))
        sums[month] = (cost + record.cost, visits + 1)
    return [
        MonthlyBucket(month=month, total_cost=cost, visit_count=visits, average_cost=cost / visits)
        for month, (cost, visits) in sorted(sums.items())
    ]


def predictive_analytics(
    reports: Sequence[Any], options: AnalyticsOptions = DEFAULT_OPTIONS
) -> PredictiveAnalytics | None:
    """Linear cost and visit projections from the last three monthly buckets.

    Returns ``None`` when there are no reports to project from.
    """

    if not reports:
        return None

    records = flatten_items(reports, options)
    trends = monthly_buckets(records)
    recent = trends[-GROWTH_WINDOW:]

    growth_rate = 0.0
    if len(recent) >= 2 and recent[0].total_cost:
        growth_rate = (recent[-1].total_cost - recent[0].total_cost) / recent[0].total_cost * 100

    current_average = _mean([bucket.total_cost for bucket in recent])
    average_visits = _mean([float(bucket.visit_count) for bucket in recent])

    projections = [
        CostProjection(
            period=step + 1,
            predicted=round_half_up(current_average * (1 + growth_rate / 100 * (step + 1))),
            actual=trends[step].total_cost if step < len(trends) else 0.0,
        )
        for step in range(PROJECTION_STEPS)
    ]

    by_location: dict[str, list[float]] = {}
    for record in records:
        by_location.setdefault(record.location, []).append(record.cost)

    top_locations = sorted(
        (LocationVisits(location=location, visits=len(costs)) for location, costs in by_location.items()),
        key=lambda entry: entry.visits,
        reverse=True,
    )[:TOP_LOCATION_LIMIT]

    risks = [
        RiskLocation(
            location=location,
            total_cost=sum(costs),
            visit_count=len(costs),
            average_cost=sum(costs) / len(costs),
        )
        for location, costs in by_location.items()
    ]
    risk_locations = sorted(
        (risk for risk in risks if risk.average_cost > RISK_COST_THRESHOLD),
        key=lambda risk: risk.average_cost,
        reverse=True,
    )[:RISK_LOCATION_LIMIT]

    return PredictiveAnalytics(
        monthly_trends=trends,
        predicted_costs=projections,
        growth_rate=growth_rate,
        predicted_visits=round_half_up(average_visits * (1 + growth_rate / 100)),
        top_locations=top_locations,
        risk_locations=risk_locations,
        current_average_cost=current_average,
        efficiency_score=efficiency_score(current_average, TRANSPORT_EFFICIENCY_DIVISOR),
    )


__all__ = [
    "ANALYSIS_TYPES",
    "AnalysisReport",
    "AnalysisType",
    "AnalyticsOptions",
    "CostAnalysis",
    "CostProjection",
    "CoverageArea",
    "DateRange",
    "EfficiencyMetrics",
    "FrequentRoute",
    "Insights",
    "LocationVisits",
    "MonthlyBucket",
    "OptimalRoute",
    "OptimizationCriterion",
    "PatternSummary",
    "PredictiveAnalytics",
    "PredictiveInsights",
    "RiskLocation",
    "RouteAnalysis",
    "RoutePlan",
    "TransportEfficiency",
    "TransportPattern",
    "VisitRecord",
    "area_for",
    "build_analysis_report",
    "classify_cost_efficiency",
    "classify_cost_trend",
    "coverage_map",
    "efficiency_score",
    "flatten_items",
    "frequent_routes",
    "insights_summary",
    "monthly_buckets",
    "monthly_totals",
    "monthly_trend",
    "optimal_route",
    "optimize_route",
    "predictive_analytics",
    "round_half_up",
    "route_analysis",
    "transport_efficiency",
    "transport_patterns",
]
