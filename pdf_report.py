#!/usr/bin/env python3
"""
PDF Report Generator
Lays out an analysis result on a single A4 page and paints it with reportlab.

Layout and painting are separate steps. `layout()` produces a list of
positioned text tokens in millimetres measured from the top-left corner;
`render()` draws those tokens onto a canvas and returns the PDF bytes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from analysis_models import AnalysisResult, RiskLevel
from financial_model import DEFAULT_ASSUMPTIONS, ModelAssumptions, calculate_derived_metrics
from report_errors import PageOverflowError
from report_utils import (
    check_report_input,
    format_currency,
    format_integer,
    format_number,
    format_percent,
)

ATTRIBUTION = "Generated by CRE Underwriter AI"

# ZapfDingbats code points for the heavy check mark and heavy ballot X
CHECK_GLYPH = "4"
CROSS_GLYPH = "8"


class Palette:
    """Text colours used in the report, as hex strings."""
    TEXT = "#1F2937"
    MUTED = "#6B7280"
    HEADING = "#1E3A8A"
    GREEN = "#16A34A"
    AMBER = "#D97706"
    RED = "#DC2626"


RISK_COLORS = {
    RiskLevel.LOW: Palette.GREEN,
    RiskLevel.MEDIUM: Palette.AMBER,
    RiskLevel.HIGH: Palette.RED,
}


@dataclass(frozen=True)
class PageGeometry:
    """Page size and spacing in millimetres."""
    width: float = 210.0
    height: float = 297.0
    margin: float = 20.0
    line_height: float = 8.0
    section_gap: float = 4.0
    footer_offset: float = 10.0
    indent: float = 5.0
    column_gap: float = 5.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_bottom(self) -> float:
        return self.height - self.margin

    @property
    def footer_y(self) -> float:
        return self.height - self.footer_offset


@dataclass(frozen=True)
class TextToken:
    """One line of text placed on the page."""
    text: str
    x: float
    y: float
    font: str
    size: float
    color: str
    role: str
    align: str = "left"


@dataclass(frozen=True)
class ColumnCursor:
    """Cursor positions around a two-column section."""
    start_y: float
    left_y: float
    right_y: float

    @property
    def resync_y(self) -> float:
        return max(self.left_y, self.right_y)


@dataclass
class ReportLayout:
    geometry: PageGeometry
    tokens: List[TextToken] = field(default_factory=list)
    columns: Dict[str, ColumnCursor] = field(default_factory=dict)
    end_y: float = 0.0

    @property
    def overflows(self) -> bool:
        """True when body content runs past the bottom margin."""
        return self.end_y > self.geometry.content_bottom

    def by_role(self, role: str) -> List[TextToken]:
        return [token for token in self.tokens if token.role == role]


def wrap_text(text: str, font: str, size: float, width: float) -> List[str]:
    """Split text into lines no wider than width points.

    Breaks at spaces where it can, and inside a word when the word alone is
    wider than the line.
    """
    lines = []
    for line in simpleSplit(text, font, size, width) or [text]:
        while len(line) > 1 and stringWidth(line, font, size) > width:
            cut = len(line) - 1
            while cut > 1 and stringWidth(line[:cut], font, size) > width:
                cut -= 1
            lines.append(line[:cut])
            line = line[cut:]
        lines.append(line)
    return lines


class _LayoutBuilder:
    """Running-cursor text placement."""

    def __init__(self, geometry: PageGeometry):
        self.geometry = geometry
        self.layout = ReportLayout(geometry=geometry)
        self.y = geometry.margin

    def place(self, text: str, x: float, y: float, font: str, size: float, color: str,
              role: str, max_width: Optional[float] = None, align: str = "left") -> float:
        """Emit a text block at y and return the y below it."""
        if max_width is None:
            lines = [text]
        else:
            lines = wrap_text(text, font, size, max_width * mm)

        for i, line in enumerate(lines):
            self.layout.tokens.append(TextToken(
                text=line,
                x=x,
                y=y + i * self.geometry.line_height,
                font=font,
                size=size,
                color=color,
                role=role,
                align=align,
            ))
        return y + self.geometry.line_height * len(lines)

    def line(self, text: str, font: str = "Helvetica", size: float = 11, color: str = Palette.TEXT,
             role: str = "field", indent: float = 0.0, wrap: bool = True):
        g = self.geometry
        max_width = g.content_width - indent if wrap else None
        self.y = self.place(text, g.margin + indent, self.y, font, size, color, role, max_width)

    def heading(self, text: str):
        self.line(text, font="Helvetica-Bold", size=14, color=Palette.HEADING, role="heading", wrap=False)

    def gap(self):
        self.y += self.geometry.section_gap

    def two_columns(self, key: str, left: Sequence[str], right: Sequence[str]) -> ColumnCursor:
        """Place two independent columns from the same start and resync below the longer one."""
        g = self.geometry
        half = g.content_width / 2
        width = half - g.column_gap
        start_y = left_y = right_y = self.y

        for text in left:
            left_y = self.place(text, g.margin, left_y, "Helvetica", 11, Palette.TEXT, "field", width)
        for text in right:
            right_y = self.place(text, g.margin + half, right_y, "Helvetica", 11, Palette.TEXT, "field", width)

        cursor = ColumnCursor(start_y=start_y, left_y=left_y, right_y=right_y)
        self.layout.columns[key] = cursor
        self.y = cursor.resync_y
        return cursor


class PdfReportGenerator:
    """
    Generates the one-page underwriting PDF.

    Sections in order: title, recommendation banner, property information,
    key financial metrics, market data, risk assessment, footer.
    """

    def __init__(self, assumptions: Optional[ModelAssumptions] = None,
                 geometry: Optional[PageGeometry] = None,
                 strict_page_fit: bool = False, debug: bool = False):
        self.debug = debug
        self.assumptions = assumptions or DEFAULT_ASSUMPTIONS
        self.geometry = geometry or PageGeometry()
        self.strict_page_fit = strict_page_fit
        self.logger = self._setup_logger()

    def _setup_logger(self):
        """Set up logging for the PDF report generator."""
        logger = logging.getLogger('PdfReport')
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.debug else logging.INFO)
        return logger

    def layout(self, result: AnalysisResult, generated_on: Optional[date] = None) -> ReportLayout:
        """Compute every text position for the report without drawing anything."""
        check_report_input(result)
        generated_on = generated_on or date.today()
        builder = _LayoutBuilder(self.geometry)

        self._title(builder, generated_on)
        self._banner(builder, result)
        self._property_section(builder, result)
        self._financial_section(builder, result)
        self._market_section(builder, result)
        self._risk_section(builder, result)
        builder.layout.end_y = builder.y
        self._footer(builder)

        layout = builder.layout
        if layout.overflows:
            self.logger.warning(
                f"⚠️ Report content ends at {layout.end_y:.1f}mm, past the "
                f"{self.geometry.content_bottom:.1f}mm limit of a single page"
            )
            if self.strict_page_fit:
                raise PageOverflowError(layout.end_y, self.geometry.content_bottom)

        self.logger.debug(f"📐 Layout complete: {len(layout.tokens)} tokens, ends at {layout.end_y:.1f}mm")
        return layout

    def render(self, result: AnalysisResult, generated_on: Optional[date] = None) -> bytes:
        """Lay out and paint the report; returns the complete PDF bytes."""
        self.logger.info(f"📄 Generating PDF report for {result.property_info.address}")
        layout = self.layout(result, generated_on)
        content = self._paint(layout, title=f"CRE Deal Analysis - {result.property_info.address}")
        self.logger.info(f"✅ PDF report generated ({len(content):,} bytes)")
        return content

    # Sections
    def _title(self, b: _LayoutBuilder, generated_on: date):
        b.line("CRE Deal Analysis Report", font="Helvetica-Bold", size=20,
               color=Palette.HEADING, role="title", wrap=False)
        b.line(f"Generated: {generated_on.strftime('%B %d, %Y')}", size=10,
               color=Palette.MUTED, role="generated", wrap=False)
        b.gap()

    def _banner(self, b: _LayoutBuilder, result: AnalysisResult):
        g = self.geometry
        if result.is_pass:
            color, glyph, label = Palette.GREEN, CHECK_GLYPH, "DEAL APPROVED"
        else:
            color, glyph, label = Palette.RED, CROSS_GLYPH, "DEAL REJECTED"

        b.place(glyph, g.margin, b.y, "ZapfDingbats", 16, color, "banner_glyph")
        b.y = b.place(label, g.margin + 8, b.y, "Helvetica-Bold", 16, color, "banner")
        b.line(f"Confidence Score: {format_percent(result.confidence_score)}",
               color=color, role="banner_detail", wrap=False)
        b.gap()

    def _property_section(self, b: _LayoutBuilder, result: AnalysisResult):
        prop = result.property_info
        b.heading("Property Information")
        b.line(f"Address: {prop.address}")
        b.line(f"Units: {format_integer(prop.units)}")
        b.line(f"Year Built: {prop.year_built}")
        b.line(f"Square Feet: {format_integer(prop.square_feet)}")
        b.line(f"Lot Size: {prop.lot_size}")
        b.gap()

    def _financial_section(self, b: _LayoutBuilder, result: AnalysisResult):
        fin = result.financials
        metrics = calculate_derived_metrics(fin, self.assumptions)
        b.heading("Key Financial Metrics")
        b.two_columns(
            "financial_metrics",
            left=[
                f"Cap Rate: {format_percent(fin.cap_rate)}",
                f"Cash-on-Cash Return: {format_percent(fin.coc_return)}",
                f"DSCR: {format_number(fin.dscr)}",
                f"Net Operating Income: {format_currency(fin.net_operating_income)}",
            ],
            right=[
                f"Purchase Price: {format_currency(fin.purchase_price)}",
                f"Cash Required: {format_currency(fin.cash_required)}",
                f"Loan Amount: {format_currency(round(metrics.loan_amount, 2))}",
                f"Effective Gross Income: {format_currency(round(metrics.effective_gross_income, 2))}",
            ],
        )
        b.gap()

    def _market_section(self, b: _LayoutBuilder, result: AnalysisResult):
        market = result.market_data
        b.heading("Market Data")
        b.two_columns(
            "market_data",
            left=[
                f"Avg Rent PSF: {format_currency(market.avg_rent_psf)}",
                f"Market Cap Rate: {format_percent(market.market_cap_rate)}",
                f"Crime Score: {market.crime_score}",
            ],
            right=[
                f"School Rating: {format_number(market.school_rating)}/10",
                f"Walk Score: {format_number(market.walk_score)}",
                f"Median Income: {format_currency(market.median_income)}",
            ],
        )
        b.gap()

    def _risk_section(self, b: _LayoutBuilder, result: AnalysisResult):
        b.heading("Risk Assessment")
        for risk in result.risk_factors:
            b.line(f"{risk.type.value.upper()} RISK", font="Helvetica-Bold",
                   color=RISK_COLORS[risk.type], role="risk_label", wrap=False)
            b.line(risk.message, size=10, role="risk_message", indent=self.geometry.indent)

    def _footer(self, b: _LayoutBuilder):
        g = self.geometry
        b.place(ATTRIBUTION, g.margin, g.footer_y, "Helvetica-Oblique", 8, Palette.MUTED, "footer")
        b.place("Page 1", g.width - g.margin, g.footer_y, "Helvetica", 8, Palette.MUTED,
                "footer_page", align="right")

    # Painting
    def _paint(self, layout: ReportLayout, title: str) -> bytes:
        g = layout.geometry
        page_size: Tuple[float, float] = (g.width * mm, g.height * mm)

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=page_size, invariant=1)
        pdf.setTitle(title)
        pdf.setAuthor("CRE Underwriter AI")

        for token in layout.tokens:
            pdf.setFont(token.font, token.size)
            pdf.setFillColor(colors.HexColor(token.color))
            x = token.x * mm
            y = page_size[1] - token.y * mm
            if token.align == "right":
                pdf.drawRightString(x, y, token.text)
            else:
                pdf.drawString(x, y, token.text)

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()
