"""PDF and plain-text exports for reports and analysis summaries."""
from __future__ import annotations

import re
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from fieldreports.services.analytics import AnalysisReport

DEFAULT_CURRENCY_SYMBOL = "₦"
_NUMERIC_PREFIX = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_WHITESPACE = re.compile(r"\s+")
_CURRENCY_STEP = Decimal("0.001")


def sanitize_amount(value: Any) -> Decimal:
    """Coerce a cost to ``Decimal``.

    Strings lose every character other than digits and ``.``, then the leading
    number is parsed. Anything unparseable becomes zero.
    """

    if value is None:
        return Decimal("0")
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(re.sub(r"[^\d.]", "", value))
        return Decimal(match.group()) if match else Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def format_currency(value: Any, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """``1234.5`` -> ``"₦1,234.5"``; at most three decimals rounded half up, trailing zeros dropped."""

    amount = sanitize_amount(value).quantize(_CURRENCY_STEP, rounding=ROUND_HALF_UP)
    formatted = f"{amount:,.3f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return f"{symbol}{formatted}"


def _type_label(report_type: Any) -> str:
    value = getattr(report_type, "value", report_type) or ""
    return value[:1].upper() + value[1:]


def _styles() -> dict[str, ParagraphStyle]:
    sheet = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("ReportTitle", parent=sheet["Title"], fontSize=22, alignment=TA_CENTER),
        "subtitle": ParagraphStyle("ReportSubtitle", parent=sheet["Normal"], fontSize=11, alignment=TA_CENTER),
        "heading": ParagraphStyle("BlockHeading", parent=sheet["Heading4"], spaceAfter=4),
        "body": ParagraphStyle("BlockBody", parent=sheet["BodyText"], fontSize=10, leading=15),
        "payment": ParagraphStyle(
            "PaymentLine",
            parent=sheet["Normal"],
            fontName="Helvetica-Bold",
            fontSize=11,
            alignment=TA_CENTER,
            textColor=colors.HexColor("#0c4a6e"),
            spaceAfter=4,
        ),
        "footer": ParagraphStyle(
            "Footer", parent=sheet["Normal"], fontSize=9, alignment=TA_CENTER, textColor=colors.grey
        ),
    }


def _items_table(report: Any, symbol: str) -> Table:
    rows: list[list[str]] = [["Location", "Transport Mode", "Cost"]]
    for item in report.items:
        rows.append([item.location, item.transportation, format_currency(item.cost, symbol)])
    rows.append(["TOTAL", "", format_currency(report.total_cost, symbol)])

    width = A4[0] - 30 * mm
    table = Table(rows, colWidths=[width * 0.34, width * 0.33, width * 0.33], repeatRows=1, hAlign="CENTER")
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 11),
                ("FONTNAME", (0, 1), (-1, -2), "Helvetica"),
                ("FONTSIZE", (0, 1), (-1, -1), 10),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f5f5f5")),
                ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#e8e8e8")),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def render_report_pdf(
    report: Any,
    *,
    preparer: str,
    generated_at: datetime | None = None,
    symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> bytes:
    """Render one report as an A4 PDF and return the document bytes."""

    generated_at = generated_at or datetime.now(UTC)
    styles = _styles()
    buffer = BytesIO()
    document = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"{_type_label(report.report_type)} Report",
    )

    report_date = report.report_date
    if isinstance(report_date, date):
        report_date = report_date.strftime("%d/%m/%Y")

    story: list[Any] = [
        Paragraph(escape(f"{_type_label(report.report_type)} Report"), styles["title"]),
        Paragraph(escape(f"Date: {report_date}"), styles["subtitle"]),
        Paragraph(escape(f"Officer: {preparer}"), styles["subtitle"]),
        Paragraph(escape(f"Type: {getattr(report.report_type, 'value', report.report_type)}"), styles["subtitle"]),
        Paragraph(escape(f"Generated: {generated_at:%d/%m/%Y %H:%M}"), styles["subtitle"]),
        Spacer(1, 8 * mm),
    ]

    if report.description:
        story.extend(
            [
                Paragraph("Description", styles["heading"]),
                Paragraph(escape(report.description).replace("\n", "<br/>"), styles["body"]),
                Spacer(1, 5 * mm),
            ]
        )

    story.extend(
        [
            _items_table(report, symbol),
            Spacer(1, 8 * mm),
            Paragraph("PAYMENT INFORMATION", styles["heading"]),
            Paragraph("Kindly proceed with payment to the account details below:", styles["subtitle"]),
            Spacer(1, 3 * mm),
            Paragraph(escape(f"Account Number: {report.account_number or ''}"), styles["payment"]),
            Paragraph(escape(f"Account Name: {report.account_name or ''}"), styles["payment"]),
            Paragraph(escape(f"Bank Name: {report.bank_name or ''}"), styles["payment"]),
            Spacer(1, 12 * mm),
            Paragraph("This is an official field report generated by the verification system.", styles["footer"]),
        ]
    )

    document.build(story)
    return buffer.getvalue()


def report_pdf_filename(report: Any) -> str:
    report_type = getattr(report.report_type, "value", report.report_type)
    report_date = report.report_date
    if isinstance(report_date, date):
        report_date = report_date.isoformat()
    return f"{report_type}-report-{report_date}.pdf"


def render_analysis_text(analysis: AnalysisReport, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Line-oriented summary of an analysis report for download."""

    insights = analysis.insights
    costs = insights.cost_analysis
    start = analysis.date_range.start or ""
    end = analysis.date_range.end or ""

    lines = [
        "AI TRANSPORT ANALYSIS REPORT",
        analysis.title,
        f"Generated: {analysis.generated_at:%Y-%m-%d %H:%M:%S}",
        f"Date Range: {start} to {end}",
        "",
        "SUMMARY:",
        insights.summary,
        "",
        "COST ANALYSIS:",
        f"- Total Spent: {format_currency(costs.total_spent, symbol)}",
        f"- Average per Visit: {symbol}{costs.average_per_visit:.0f}",
        f"- Monthly Trend: {symbol}{costs.monthly_trend:.0f}",
        f"- Efficiency: {costs.cost_efficiency}",
        "",
        "RECOMMENDATIONS:",
        *(f"• {recommendation}" for recommendation in insights.recommendations),
        "",
        "PATTERNS:",
        f"- Most Frequent Locations: {', '.join(insights.patterns.most_frequent_locations)}",
        f"- Preferred Transport: {insights.patterns.preferred_transport}",
        f"- Visits per Month: {insights.efficiency_metrics.visits_per_month:.1f}",
    ]

    if analysis.route_analysis is not None:
        lines.extend(["", "ROUTE ANALYSIS:"])
        lines.extend(
            f"• {route.from_location} → {route.to_location}: {route.frequency} times "
            f"({symbol}{route.average_cost:.0f} avg)"
            for route in analysis.route_analysis.frequent_routes
        )

    if analysis.transport_patterns is not None:
        lines.extend(["", "TRANSPORT PATTERNS:"])
        lines.extend(
            f"• {pattern.location}: {pattern.visit_count} visits, {symbol}{pattern.average_cost:.0f} avg"
            for pattern in analysis.transport_patterns[:10]
        )

    return "\n".join(lines) + "\n"


def analysis_text_filename(analysis: AnalysisReport, today: date | None = None) -> str:
    today = today or datetime.now(UTC).date()
    return f"{_WHITESPACE.sub('_', analysis.title)}_{today.isoformat()}.txt"


__all__ = [
    "DEFAULT_CURRENCY_SYMBOL",
    "analysis_text_filename",
    "format_currency",
    "render_analysis_text",
    "render_report_pdf",
    "report_pdf_filename",
    "sanitize_amount",
]
