"""Tests for the Excel underwriting workbook."""

from io import BytesIO

import pytest
from openpyxl import load_workbook

from excel_report import SHEET_NAMES, ExcelReportGenerator
from financial_model import ModelAssumptions
from report_errors import MalformedInputError


def _render(result, report_date, generator=None):
    generator = generator or ExcelReportGenerator()
    return load_workbook(BytesIO(generator.render(result, generated_on=report_date)))


def _rows(ws):
    return [tuple(row) for row in ws.iter_rows(values_only=True)]


def _value_for(ws, label):
    for row in ws.iter_rows(values_only=True):
        if row[0] == label:
            return row[1]
    raise AssertionError(f"No row labelled {label!r}")


def test_workbook_has_three_named_sheets(sample_result, report_date):
    wb = _render(sample_result, report_date)
    assert wb.sheetnames == SHEET_NAMES == ["Summary", "Financial Model", "Risk Analysis"]


def test_summary_contains_formatted_values(sample_result, report_date):
    rows = _rows(_render(sample_result, report_date)["Summary"])

    assert ("Generated:", "July 15, 2025") in rows
    assert ("Address:", "123 Sample Street, Austin, TX 78701") in rows
    assert ("Units:", "48") in rows
    assert ("Square Feet:", "52,000") in rows
    assert ("Gross Rent:", "$468,000") in rows
    assert ("Purchase Price:", "$5,850,000") in rows
    assert ("Cap Rate:", "6.2%") in rows
    assert ("Cash-on-Cash Return:", "11.4%") in rows
    assert ("DSCR:", "1.35") in rows
    assert ("Avg Rent PSF:", "$1.85") in rows
    assert ("School Rating:", "8.2/10") in rows
    assert ("Median Income:", "$68,500") in rows
    assert ("Status:", "PASS") in rows
    assert ("Confidence Score:", "87%") in rows


def test_summary_column_widths(sample_result, report_date):
    ws = _render(sample_result, report_date)["Summary"]
    assert ws.column_dimensions["A"].width >= 25
    assert ws.column_dimensions["B"].width >= 20


def test_fail_status_is_upper_cased(failing_result, report_date):
    ws = _render(failing_result, report_date)["Summary"]
    assert _value_for(ws, "Status:") == "FAIL"


def test_financial_model_values(sample_result, report_date):
    ws = _render(sample_result, report_date)["Financial Model"]

    assert _value_for(ws, "Loan Amount") == pytest.approx(4_095_000)
    assert _value_for(ws, "Down Payment (30%)") == pytest.approx(1_755_000)
    assert _value_for(ws, "Interest Rate") == pytest.approx(0.065)
    assert _value_for(ws, "Loan Term") == "30 years"
    assert _value_for(ws, "Effective Gross Income") == pytest.approx(444_600)
    assert _value_for(ws, "Property Management (8%)") == pytest.approx(37_440)
    assert _value_for(ws, "Total Operating Expenses (33%)") == pytest.approx(154_440)
    assert _value_for(ws, "Net Operating Income (reported)") == 350_400
    assert _value_for(ws, "Cap Rate") == "6.2%"
    assert _value_for(ws, "Cash-on-Cash Return") == "11.4%"
    assert _value_for(ws, "DSCR") == "1.35"


def test_financial_model_follows_assumption_overrides(sample_result, report_date):
    generator = ExcelReportGenerator(assumptions=ModelAssumptions(down_payment_pct=0.25))
    ws = _render(sample_result, report_date, generator)["Financial Model"]

    assert _value_for(ws, "Down Payment (25%)") == pytest.approx(1_462_500)
    assert _value_for(ws, "Loan Amount") == pytest.approx(4_387_500)


def test_risk_sheet_rows_follow_input_order(sample_result, report_date):
    ws = _render(sample_result, report_date)["Risk Analysis"]
    rows = _rows(ws)

    assert ws.max_row == len(sample_result.risk_factors) + 1
    assert rows[0] == ("Risk Factor", "Risk Level", "Description")
    assert rows[1:] == [
        ("Low", "LOW", "Property built after minimum year requirement"),
        ("Medium", "MEDIUM", "Slightly below market rent - opportunity for growth"),
        ("Low", "LOW", "Strong school district supports tenant demand"),
    ]


def test_risk_sheet_with_high_risk(failing_result, report_date):
    rows = _rows(_render(failing_result, report_date)["Risk Analysis"])
    assert rows[1] == ("High", "HIGH", "DSCR below lender minimum of 1.25x")
    assert len(rows) == 3


def test_risk_sheet_without_risks_has_only_header(sample_result, report_date):
    result = sample_result.model_copy(update={"risk_factors": []})
    ws = _render(result, report_date)["Risk Analysis"]
    assert ws.max_row == 1


def test_rendering_twice_gives_same_content(sample_result, report_date):
    first = _render(sample_result, report_date)
    second = _render(sample_result, report_date)

    for name in SHEET_NAMES:
        assert _rows(first[name]) == _rows(second[name])


def test_malformed_input_fails_before_rendering(sample_result, report_date):
    market = sample_result.market_data.model_copy(update={"walk_score": float("inf")})
    broken = sample_result.model_copy(update={"market_data": market})

    with pytest.raises(MalformedInputError, match="market_data.walk_score"):
        ExcelReportGenerator().render(broken, generated_on=report_date)
