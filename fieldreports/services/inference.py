"""HTTP client for the optional text-generation endpoint.

Configuration is passed in explicitly on every client. Every failure on the
remote side degrades to an answer computed locally, so analysis requests never
fail because the endpoint is unreachable.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from fieldreports.core.config import Settings
from fieldreports.obs import inject_traceparent, record_inference_fallback
from fieldreports.services.analytics import (
    LOCATION_EFFICIENCY_DIVISOR,
    NEXT_MONTH_MULTIPLIER,
    RISK_COST_THRESHOLD,
    SAVINGS_RATE,
    TOP_LOCATION_LIMIT,
    VisitRecord,
    efficiency_score,
    flatten_items,
    monthly_buckets,
    round_half_up,
)
from fieldreports.services.errors import ExternalServiceError
from fieldreports.services.exports import DEFAULT_CURRENCY_SYMBOL, format_currency

logger = logging.getLogger(__name__)

Provider = Literal["deepseek", "free", "local"]

DEEPSEEK_URL = "https://api.deepseek.com/v1/chat/completions"
FREE_URL = "https://api-inference.huggingface.co/models/microsoft/DialoGPT-medium"
SYSTEM_PROMPT = (
    "You are an expert transport and logistics analyst. Provide detailed insights, recommendations, "
    "and predictions based on the data provided. Always respond in a helpful and professional manner."
)

DEEPSEEK_CONFIDENCE = 0.85
FREE_CONFIDENCE = 0.80
FALLBACK_CONFIDENCE = 0.75
FALLBACK_MODEL = "local-fallback"
LOCAL_ANALYSIS_MODEL = "local-analysis"
HIGH_COST_SAVINGS_RATE = 0.3

DEFAULT_RECOMMENDATIONS = [
    "Consider optimizing routes to reduce travel costs",
    "Group visits to nearby locations for efficiency",
    "Monitor transport cost trends regularly",
]
FALLBACK_RECOMMENDATIONS = [
    "Optimize routes to reduce travel costs",
    "Group visits to nearby locations",
    "Monitor transport cost trends",
    "Consider alternative transportation methods",
]
_RECOMMENDATION_LINE = re.compile(r"recommendations?[:\s]+(.*?)(?=\n|$)", re.IGNORECASE)


def _default_predictions() -> dict[str, str]:
    return {"cost_trend": "stable", "efficiency_improvement": "5-10%", "savings_potential": "15-20%"}


@dataclass(slots=True, frozen=True)
class InferenceConfig:
    """Provider settings supplied by the caller for each client."""

    provider: Provider = "local"
    api_key: str = ""
    model: str = "deepseek-chat"
    temperature: float = 0.7
    max_tokens: int = 2000
    base_url: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "InferenceConfig":
        return cls(
            provider=settings.inference_provider,
            api_key=settings.inference_api_key,
            model=settings.inference_model,
            temperature=settings.inference_temperature,
            max_tokens=settings.inference_max_tokens,
            base_url=settings.inference_base_url,
            timeout_seconds=settings.inference_timeout_seconds,
        )

    @property
    def endpoint(self) -> str:
        if self.base_url:
            return self.base_url
        return FREE_URL if self.provider == "free" else DEEPSEEK_URL


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    analysis_type: str = "comprehensive"
    focus_areas: list[str] = field(default_factory=list)
    custom_prompt: str | None = None


@dataclass(slots=True, frozen=True)
class AnalysisResponse:
    insights: str
    recommendations: list[str]
    predictions: dict[str, Any]
    confidence: float
    model: str


def summarize_for_prompt(reports: Sequence[Any], symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Plain-text data summary embedded in every prompt."""

    if not reports:
        return "No reports available for analysis."

    records = flatten_items(reports)
    total_cost = sum(record.cost for record in records)
    average_cost = total_cost / len(records) if records else 0.0
    unique_locations = {record.location for record in records}
    first_date = reports[0].report_date or "N/A"
    last_date = reports[-1].report_date or "N/A"

    return "\n".join(
        [
            f"- Total Reports: {len(reports)}",
            f"- Total Transport Items: {len(records)}",
            f"- Total Cost: {format_currency(total_cost, symbol)}",
            f"- Average Cost per Visit: {symbol}{average_cost:.0f}",
            f"- Unique Locations: {len(unique_locations)}",
            f"- Date Range: {first_date} to {last_date}",
        ]
    )


def build_analysis_prompt(reports: Sequence[Any], request: AnalysisRequest) -> str:
    sections = [
        "Transport Analytics Report",
        "",
        "Data Summary:",
        summarize_for_prompt(reports),
        "",
        f"Analysis Request: {request.analysis_type}",
        f"Focus Areas: {', '.join(request.focus_areas)}",
        "",
        "Please provide:",
        "1. Key insights about transport patterns and efficiency",
        "2. Specific recommendations for cost optimization",
        "3. Predictions for future trends",
        "4. Risk factors and opportunities",
    ]
    if request.custom_prompt:
        sections.extend(["", request.custom_prompt])
    return "\n".join(sections)


def build_predictive_prompt(reports: Sequence[Any]) -> str:
    return "\n".join(
        [
            "Predictive Transport Analytics",
            "",
            summarize_for_prompt(reports),
            "",
            "Please provide predictions for:",
            "1. Cost trends for the next 3 months",
            "2. Optimal visit scheduling",
            "3. Potential savings opportunities",
            "4. Risk factors to monitor",
            "5. Efficiency improvement recommendations",
            "",
            "Focus on actionable insights and specific recommendations.",
        ]
    )


def build_route_prompt(reports: Sequence[Any]) -> str:
    locations = list(dict.fromkeys(record.location for record in flatten_items(reports)))
    return "\n".join(
        [
            "Route Optimization Analysis",
            "",
            f"Available Locations: {', '.join(locations)}",
            "",
            "Please provide:",
            "1. Optimal route suggestions for multiple visits",
            "2. Cost-effective transportation recommendations",
            "3. Time optimization strategies",
            "4. Risk mitigation for travel planning",
            "5. Seasonal considerations for route planning",
            "",
            "Focus on practical, implementable solutions.",
        ]
    )


def build_efficiency_prompt(reports: Sequence[Any]) -> str:
    return "\n".join(
        [
            "Transport Efficiency Analysis",
            "",
            summarize_for_prompt(reports),
            "",
            "Please analyze:",
            "1. Current efficiency metrics",
            "2. Comparison with industry standards",
            "3. Specific improvement opportunities",
            "4. Cost-benefit analysis of optimizations",
            "5. Implementation timeline and priorities",
            "",
            "Provide detailed, actionable recommendations.",
        ]
    )


def extract_recommendations(content: str) -> list[str]:
    """Pull ``Recommendation: ...`` lines out of generated text."""

    found = [match.group(1).strip() for match in _RECOMMENDATION_LINE.finditer(content)]
    found = [item for item in found if item]
    return found or list(DEFAULT_RECOMMENDATIONS)


def local_fallback(error: str | None = None) -> AnalysisResponse:
    message = "AI analysis completed with local processing. For enhanced insights, configure an AI API key."
    if error:
        message = f"{message} (Error: {error})"
    return AnalysisResponse(
        insights=message,
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        predictions=_default_predictions(),
        confidence=FALLBACK_CONFIDENCE,
        model=FALLBACK_MODEL,
    )


def _local(
    insights: str, recommendations: list[str], predictions: dict[str, Any], confidence: float
) -> AnalysisResponse:
    return AnalysisResponse(
        insights=insights,
        recommendations=recommendations,
        predictions=predictions,
        confidence=confidence,
        model=LOCAL_ANALYSIS_MODEL,
    )


def _ranked(counts: dict[str, float], limit: int | None = None) -> list[tuple[str, float]]:
    ranked = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    return ranked if limit is None else ranked[:limit]


def _answer_cost(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    total = sum(record.cost for record in records)
    average = total / len(records)
    location_costs: dict[str, float] = {}
    for record in records:
        location_costs[record.location] = location_costs.get(record.location, 0.0) + record.cost
    expensive = ", ".join(
        f"{location} ({format_currency(cost, symbol)})"
        for location, cost in _ranked(location_costs, TOP_LOCATION_LIMIT)
    )
    return _local(
        f"Based on your data, your total transport cost is {format_currency(total, symbol)} with an average "
        f"of {symbol}{average:.0f} per visit. The most expensive locations are: {expensive}.",
        [
            "Consider grouping visits to expensive locations",
            "Evaluate if all visits to high-cost locations are necessary",
            "Look for more cost-effective transport options",
        ],
        {"cost_trend": "stable", "potential_savings": total * SAVINGS_RATE},
        0.85,
    )


def _answer_efficiency(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    usage: dict[str, list[float]] = {}
    for record in records:
        usage.setdefault(record.transportation, []).append(record.cost)
    averages = [(transport, sum(costs) / len(costs)) for transport, costs in usage.items()]
    scored = sorted(
        ((transport, average, efficiency_score(average, LOCATION_EFFICIENCY_DIVISOR)) for transport, average in averages),
        key=lambda entry: entry[2],
        reverse=True,
    )
    best, best_average, best_score = scored[0]
    worst, _, worst_score = scored[-1]
    return _local(
        f"Your most efficient transport method is {best} with {best_score:.0f}% efficiency "
        f"({symbol}{best_average:.0f} per trip). The least efficient is {worst} with {worst_score:.0f}% efficiency.",
        [
            f"Prioritize using {best} for most trips",
            f"Consider alternatives to {worst}",
            "Group nearby visits to reduce overall costs",
        ],
        {"efficiency_improvement": "10-15%", "savings_potential": "20-25%"},
        0.80,
    )


def _answer_transport(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    counts: dict[str, float] = {}
    for record in records:
        counts[record.transportation] = counts.get(record.transportation, 0) + 1
    preferred, uses = _ranked(counts)[0]
    return _local(
        f"Your preferred transport method is {preferred} with {int(uses)} uses. "
        f"This represents {uses / len(records) * 100:.0f}% of your total trips.",
        [
            "Consider diversifying transport options for better efficiency",
            "Evaluate if your preferred method is always the most cost-effective",
            "Look for opportunities to use more efficient transport for short trips",
        ],
        {"transport_trend": "stable", "optimization_potential": "15-20%"},
        0.75,
    )


def _answer_trend(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    recent = monthly_buckets(records)[-2:]
    direction = "stable"
    if len(recent) == 2:
        direction = "increasing" if recent[1].visit_count > recent[0].visit_count else "decreasing"
    latest = recent[-1].visit_count if recent else 0
    return _local(
        f"Your visit frequency shows a {direction} trend. "
        f"Recent activity shows {latest} visits in the latest period.",
        [
            "Consider if increased activity is sustainable"
            if direction == "increasing"
            else "Look for opportunities to increase visit efficiency",
            "Monitor cost per visit trends",
            "Plan for seasonal variations",
        ],
        {"next_month_visits": round_half_up(latest * 1.1), "trend_direction": direction},
        0.70,
    )


def _answer_predictive(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    average = sum(record.cost for record in records) / len(records)
    next_month = average * NEXT_MONTH_MULTIPLIER
    next_quarter = next_month * 3
    return _local(
        f"Based on current trends, I predict your costs for next month will be around {symbol}{next_month:.0f} "
        f"and {symbol}{next_quarter:.0f} for the quarter.",
        [
            "Monitor actual vs predicted costs closely",
            "Implement cost control measures if predictions exceed budget",
            "Consider seasonal adjustments in your planning",
        ],
        {"next_month": next_month, "next_quarter": next_quarter, "confidence": "75%"},
        0.75,
    )


def _answer_location(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    counts: dict[str, float] = {}
    for record in records:
        counts[record.location] = counts.get(record.location, 0) + 1
    frequent = _ranked(counts, TOP_LOCATION_LIMIT)
    listing = ", ".join(f"{location} ({int(visits)} visits)" for location, visits in frequent)
    return _local(
        f"Your most frequently visited locations are: {listing}.",
        [
            "Consider if all frequent visits are necessary",
            "Look for opportunities to combine visits to nearby locations",
            "Evaluate if some locations could be visited less frequently",
        ],
        {
            "top_locations": [location for location, _ in frequent],
            "visit_optimization": "20-30% potential reduction",
        },
        0.80,
    )


def _answer_risk(records: Sequence[VisitRecord], symbol: str) -> AnalysisResponse:
    high_cost = [record for record in records if record.cost > RISK_COST_THRESHOLD]
    locations = {record.location for record in high_cost}
    return _local(
        f"I've identified {len(high_cost)} high-cost visits (over {format_currency(RISK_COST_THRESHOLD, symbol)}) "
        f"across {len(locations)} locations. "
        f"This represents {len(high_cost) / len(records) * 100:.0f}% of your total visits.",
        [
            "Review necessity of high-cost visits",
            "Consider alternative transport options for expensive routes",
            "Negotiate better rates for frequent high-cost locations",
        ],
        {
            "risk_level": "High" if len(high_cost) > 5 else "Medium",
            "potential_savings": sum(record.cost * HIGH_COST_SAVINGS_RATE for record in high_cost),
        },
        0.85,
    )


_QUESTION_ROUTES: tuple[tuple[tuple[str, ...], Callable[[Sequence[VisitRecord], str], AnalysisResponse]], ...] = (
    (("expensive", "cost"), _answer_cost),
    (("optimize", "efficiency"), _answer_efficiency),
    (("transport", "method"), _answer_transport),
    (("trend", "frequency"), _answer_trend),
    (("predict", "next"), _answer_predictive),
    (("location", "visit"), _answer_location),
    (("risk", "problem"), _answer_risk),
)


def local_answer(
    reports: Sequence[Any], question: str, symbol: str = DEFAULT_CURRENCY_SYMBOL
) -> AnalysisResponse | None:
    """Answer a question from the reports alone, routed by its first matching keyword.

    Returns ``None`` when the question matches no topic or there are no
    journey items to compute from.
    """

    records = flatten_items(reports)
    if not records:
        return None
    lowered = question.lower()
    for keywords, handler in _QUESTION_ROUTES:
        if any(keyword in lowered for keyword in keywords):
            return handler(records, symbol)
    return None


_STATUS_MESSAGES = {
    400: "Invalid request. Please check your configuration.",
    401: "Invalid API key. Please check your API key.",
    429: "Rate limit exceeded. Please try again later.",
}


class InferenceClient:
    """Synchronous wrapper around the configured text-generation API."""

    def __init__(self, config: InferenceConfig, *, client: httpx.Client | None = None) -> None:
        self._config = config
        self._client = client or httpx.Client()
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "InferenceClient":  # pragma: no cover - convenience
        return self

    def __exit__(self, *_args: object) -> None:  # pragma: no cover - convenience
        self.close()

    @property
    def config(self) -> InferenceConfig:
        return self._config

    def _post(self, payload: dict[str, Any]) -> Any:
        headers = inject_traceparent(
            {"Content-Type": "application/json", "Authorization": f"Bearer {self._config.api_key}"}
        )
        try:
            response = self._client.post(
                self._config.endpoint,
                json=payload,
                headers=headers,
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Inference endpoint unreachable: {exc}") from exc

        if response.status_code >= 400:
            message = _STATUS_MESSAGES.get(
                response.status_code, f"API request failed: {response.status_code}"
            )
            raise ExternalServiceError(message)

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError("Invalid response from inference endpoint") from exc

    def _call_deepseek(self, prompt: str) -> AnalysisResponse:
        if not self._config.api_key.startswith("sk-"):
            raise ExternalServiceError('Invalid API key format. API keys should start with "sk-"')

        data = self._post(
            {
                "model": self._config.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": self._config.temperature,
                "max_tokens": self._config.max_tokens,
            }
        )
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceError("Malformed response from inference endpoint") from exc
        if not isinstance(content, str):
            raise ExternalServiceError("Malformed response from inference endpoint")
        if not content:
            raise ExternalServiceError("Empty response from API")

        return AnalysisResponse(
            insights=content,
            recommendations=extract_recommendations(content),
            predictions=_default_predictions(),
            confidence=DEEPSEEK_CONFIDENCE,
            model=self._config.model,
        )

    def _call_free(self, prompt: str) -> AnalysisResponse:
        data = self._post(
            {
                "inputs": f"You are an AI assistant analyzing transport data. {prompt}",
                "parameters": {
                    "max_length": self._config.max_tokens,
                    "temperature": self._config.temperature,
                },
            }
        )
        content = ""
        if isinstance(data, list) and data and isinstance(data[0], dict):
            content = data[0].get("generated_text") or ""
        if not isinstance(content, str):
            raise ExternalServiceError("Malformed response from inference endpoint")
        content = content or "Analysis completed using free AI service."

        return AnalysisResponse(
            insights=content,
            recommendations=extract_recommendations(content),
            predictions=_default_predictions(),
            confidence=FREE_CONFIDENCE,
            model="free-api",
        )

    def complete(self, prompt: str) -> AnalysisResponse:
        """Send ``prompt`` to the configured provider.

        Raises ``ExternalServiceError`` on any failure.
        """

        if self._config.provider == "deepseek":
            return self._call_deepseek(prompt)
        if self._config.provider == "free":
            return self._call_free(prompt)
        raise ExternalServiceError(f"Provider '{self._config.provider}' does not call a remote endpoint")

    def answer(self, prompt: str) -> AnalysisResponse:
        """Like ``complete`` but never raises; failures return the local fallback."""

        if self._config.provider == "local" or not self._config.api_key:
            return local_fallback()
        try:
            return self.complete(prompt)
        except ExternalServiceError as exc:
            logger.warning(
                "inference call failed, using local fallback",
                extra={"provider": self._config.provider, "error": str(exc)},
            )
            record_inference_fallback(self._config.provider)
            return local_fallback(str(exc))

    def analyze(self, reports: Sequence[Any], request: AnalysisRequest) -> AnalysisResponse:
        return self.answer(build_analysis_prompt(reports, request))

    def ask(
        self,
        reports: Sequence[Any],
        request: AnalysisRequest,
        *,
        question: str | None = None,
        symbol: str = DEFAULT_CURRENCY_SYMBOL,
    ) -> AnalysisResponse:
        """Answer a user question, preferring data-driven local answers over the fixed fallback."""

        question = question or request.custom_prompt or ""
        if self._config.provider == "local" or not self._config.api_key:
            return local_answer(reports, question, symbol) or local_fallback()
        try:
            return self.complete(build_analysis_prompt(reports, request))
        except ExternalServiceError as exc:
            logger.warning(
                "inference call failed, answering locally",
                extra={"provider": self._config.provider, "error": str(exc)},
            )
            record_inference_fallback(self._config.provider)
            return local_answer(reports, question, symbol) or local_fallback(str(exc))

    def predictive_insights(self, reports: Sequence[Any]) -> AnalysisResponse:
        return self.answer(build_predictive_prompt(reports))

    def route_optimization(self, reports: Sequence[Any]) -> AnalysisResponse:
        return self.answer(build_route_prompt(reports))

    def efficiency_report(self, reports: Sequence[Any]) -> AnalysisResponse:
        return self.answer(build_efficiency_prompt(reports))


__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "InferenceClient",
    "InferenceConfig",
    "build_analysis_prompt",
    "build_efficiency_prompt",
    "build_predictive_prompt",
    "build_route_prompt",
    "extract_recommendations",
    "local_answer",
    "local_fallback",
    "summarize_for_prompt",
]
