#!/usr/bin/env python3
"""
Excel Report Generator
Renders an analysis result into a three-tab underwriting workbook.
"""

import logging
from datetime import date
from io import BytesIO
from typing import List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils.dataframe import dataframe_to_rows
from openpyxl.worksheet.worksheet import Worksheet

from analysis_models import AnalysisResult
from financial_model import (
    DEFAULT_ASSUMPTIONS,
    EXPENSE_LABELS,
    DerivedMetrics,
    ModelAssumptions,
    calculate_derived_metrics,
)
from report_utils import (
    check_report_input,
    format_currency,
    format_integer,
    format_number,
    format_percent,
)

SHEET_NAMES = ["Summary", "Financial Model", "Risk Analysis"]
RISK_COLUMNS = ["Risk Factor", "Risk Level", "Description"]

CURRENCY_FORMAT = '"$"#,##0'
PERCENT_FORMAT = "0.0%"


def _pct_label(fraction: float) -> str:
    return format_percent(round(fraction * 100, 4))


class ExcelReportGenerator:
    """
    Builds the underwriting workbook.

    Tabs:
        Summary - label/value rows for property, financials, market and recommendation
        Financial Model - assumption-based loan sizing, income and expense grid
        Risk Analysis - one row per risk factor in the order supplied
    """

    def __init__(self, assumptions: Optional[ModelAssumptions] = None, debug: bool = False):
        self.debug = debug
        self.assumptions = assumptions or DEFAULT_ASSUMPTIONS
        self.logger = self._setup_logger()

        self.header_font = Font(bold=True)
        self.title_font = Font(bold=True, size=14)
        self.header_fill = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")

    def _setup_logger(self):
        """Set up logging for the Excel report generator."""
        logger = logging.getLogger('ExcelReport')
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.debug else logging.INFO)
        return logger

    def build_workbook(self, result: AnalysisResult, generated_on: Optional[date] = None) -> Workbook:
        """Assemble all tabs for one analysis result."""
        check_report_input(result)
        generated_on = generated_on or date.today()
        metrics = calculate_derived_metrics(result.financials, self.assumptions)

        wb = Workbook()
        wb.remove(wb.active)  # Remove default sheet

        self._add_summary_sheet(wb, result, generated_on)
        self._add_financial_model_sheet(wb, result, metrics)
        self._add_risk_sheet(wb, result)

        self.logger.debug(f"📑 Workbook assembled with tabs: {wb.sheetnames}")
        return wb

    def render(self, result: AnalysisResult, generated_on: Optional[date] = None) -> bytes:
        """
        Render the workbook to bytes.

        Nothing is returned unless the whole workbook was built and saved,
        so a failure never yields a truncated file.
        """
        self.logger.info(f"📊 Generating Excel report for {result.property_info.address}")
        wb = self.build_workbook(result, generated_on)

        buffer = BytesIO()
        wb.save(buffer)
        content = buffer.getvalue()

        self.logger.info(f"✅ Excel report generated ({len(content):,} bytes)")
        return content

    # Tab builders
    def summary_rows(self, result: AnalysisResult, generated_on: date) -> List[list]:
        """Label/value rows of the Summary tab; empty lists are spacer rows."""
        prop = result.property_info
        fin = result.financials
        market = result.market_data

        return [
            ["CRE Deal Analysis Report", ""],
            ["Generated:", generated_on.strftime("%B %d, %Y")],
            [],
            ["PROPERTY INFORMATION", ""],
            ["Address:", prop.address],
            ["Units:", format_integer(prop.units)],
            ["Year Built:", str(prop.year_built)],
            ["Square Feet:", format_integer(prop.square_feet)],
            ["Lot Size:", prop.lot_size],
            [],
            ["FINANCIAL METRICS", ""],
            ["Gross Rent:", format_currency(fin.gross_rent)],
            ["Net Operating Income:", format_currency(fin.net_operating_income)],
            ["Purchase Price:", format_currency(fin.purchase_price)],
            ["Cash Required:", format_currency(fin.cash_required)],
            ["Cap Rate:", format_percent(fin.cap_rate)],
            ["Cash-on-Cash Return:", format_percent(fin.coc_return)],
            ["DSCR:", format_number(fin.dscr)],
            [],
            ["MARKET DATA", ""],
            ["Avg Rent PSF:", format_currency(market.avg_rent_psf)],
            ["Market Cap Rate:", format_percent(market.market_cap_rate)],
            ["Crime Score:", market.crime_score],
            ["School Rating:", f"{format_number(market.school_rating)}/10"],
            ["Walk Score:", format_number(market.walk_score)],
            ["Median Income:", format_currency(market.median_income)],
            [],
            ["RECOMMENDATION", ""],
            ["Status:", result.recommendation.value.upper()],
            ["Confidence Score:", format_percent(result.confidence_score)],
        ]

    def _add_summary_sheet(self, wb: Workbook, result: AnalysisResult, generated_on: date):
        ws = wb.create_sheet(title="Summary")
        for row in self.summary_rows(result, generated_on):
            ws.append(row)
            if len(row) == 2 and row[1] == "":
                ws.cell(row=ws.max_row, column=1).font = self.header_font

        ws["A1"].font = self.title_font
        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 25

    def _add_financial_model_sheet(self, wb: Workbook, result: AnalysisResult, metrics: DerivedMetrics):
        ws = wb.create_sheet(title="Financial Model")
        fin = result.financials
        a = self.assumptions

        ws.append(["FINANCIAL MODEL", "Amount"])
        self._style_header_row(ws)

        self._append_section(ws, "ACQUISITION")
        self._append_value(ws, "Purchase Price", fin.purchase_price, CURRENCY_FORMAT)
        self._append_value(ws, f"Down Payment ({_pct_label(a.down_payment_pct)})",
                           metrics.down_payment, CURRENCY_FORMAT)
        self._append_value(ws, "Loan Amount", metrics.loan_amount, CURRENCY_FORMAT)
        self._append_value(ws, "Interest Rate", a.interest_rate, PERCENT_FORMAT)
        ws.append(["Loan Term", f"{a.loan_term_years} years"])
        self._append_value(ws, "Annual Debt Service", metrics.annual_debt_service, CURRENCY_FORMAT)

        self._append_section(ws, "INCOME")
        self._append_value(ws, "Gross Rent", fin.gross_rent, CURRENCY_FORMAT)
        self._append_value(ws, f"Vacancy ({_pct_label(a.vacancy_rate)})",
                           -metrics.vacancy_loss, CURRENCY_FORMAT)
        self._append_value(ws, "Effective Gross Income", metrics.effective_gross_income, CURRENCY_FORMAT)

        self._append_section(ws, "OPERATING EXPENSES")
        for name, amount in metrics.expenses.items():
            label = EXPENSE_LABELS.get(name, name.replace("_", " ").title())
            ratio = a.expense_ratios[name]
            self._append_value(ws, f"{label} ({_pct_label(ratio)})",
                               amount, CURRENCY_FORMAT)
        self._append_value(ws, f"Total Operating Expenses ({_pct_label(a.total_expense_ratio)})",
                           metrics.total_operating_expenses, CURRENCY_FORMAT, bold=True)

        # Reported NOI, shown as supplied rather than recomputed from the lines above
        self._append_value(ws, "Net Operating Income (reported)", fin.net_operating_income,
                           CURRENCY_FORMAT, bold=True)

        self._append_section(ws, "RETURN METRICS")
        ws.append(["Cap Rate", format_percent(fin.cap_rate)])
        ws.append(["Cash-on-Cash Return", format_percent(fin.coc_return)])
        ws.append(["DSCR", format_number(fin.dscr)])

        ws.column_dimensions["A"].width = 40
        ws.column_dimensions["B"].width = 20

    def risk_dataframe(self, result: AnalysisResult) -> pd.DataFrame:
        return pd.DataFrame(
            [
                [risk.type.value.capitalize(), risk.type.value.upper(), risk.message]
                for risk in result.risk_factors
            ],
            columns=RISK_COLUMNS,
        )

    def _add_risk_sheet(self, wb: Workbook, result: AnalysisResult):
        ws = wb.create_sheet(title="Risk Analysis")
        for r in dataframe_to_rows(self.risk_dataframe(result), index=False, header=True):
            ws.append(r)
        self._style_header_row(ws)

        for row in ws.iter_rows(min_row=2, min_col=3, max_col=3):
            for cell in row:
                cell.alignment = Alignment(wrap_text=True, vertical="top")

        ws.column_dimensions["A"].width = 15
        ws.column_dimensions["B"].width = 12
        ws.column_dimensions["C"].width = 60

    # Helper methods
    def _style_header_row(self, ws: Worksheet):
        for cell in ws[1]:
            cell.font = self.header_font
            cell.fill = self.header_fill

    def _append_section(self, ws: Worksheet, title: str):
        ws.append([])
        ws.append([title])
        ws.cell(row=ws.max_row, column=1).font = self.header_font

    def _append_value(self, ws: Worksheet, label: str, value: float, number_format: str, bold: bool = False):
        ws.append([label, value])
        cell = ws.cell(row=ws.max_row, column=2)
        cell.number_format = number_format
        if bold:
            ws.cell(row=ws.max_row, column=1).font = self.header_font
            cell.font = self.header_font
