#!/usr/bin/env python3
"""
Report Utilities
Value formatting, export file naming and input checks shared by both report formats.
"""

import math
import re
from datetime import date
from typing import Iterator, Optional, Tuple

from analysis_models import AnalysisResult
from report_errors import MalformedInputError

REPORT_PREFIX = "CRE_Analysis"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")


def format_number(value: float) -> str:
    """Render a number the way it was supplied: 6.2 -> '6.2', 72.0 -> '72'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_currency(value: float) -> str:
    """Format as currency with thousands separators; cents only when present."""
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def format_percent(value: float) -> str:
    return f"{format_number(value)}%"


def format_integer(value: int) -> str:
    return f"{value:,}"


def sanitize_address(address: str) -> str:
    """Collapse every run of characters outside [A-Za-z0-9] into one underscore."""
    return _UNSAFE_CHARS.sub("_", address or "").strip("_")


def generate_export_filename(address: str, extension: str, on: Optional[date] = None) -> str:
    """
    Build a filesystem-safe export filename.

    Args:
        address: Property address, any characters
        extension: Target extension with or without the leading dot
        on: Date stamped into the name, defaults to today

    Returns:
        e.g. 'CRE_Analysis_123_Sample_Street_Austin_TX_78701_2025-07-15.xlsx'
    """
    stamp = (on or date.today()).isoformat()
    parts = [REPORT_PREFIX, sanitize_address(address), stamp]
    ext = _UNSAFE_CHARS.sub("", extension or "")
    name = "_".join(part for part in parts if part)
    return f"{name}.{ext}" if ext else name


def _numeric_fields(result: AnalysisResult) -> Iterator[Tuple[str, float]]:
    for section in ("property_info", "financials", "market_data"):
        model = getattr(result, section)
        for name in type(model).model_fields:
            value = getattr(model, name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                yield f"{section}.{name}", value
    yield "confidence_score", result.confidence_score


def check_report_input(result: AnalysisResult) -> None:
    """
    Fail fast on values a report cannot render faithfully.

    Raises:
        MalformedInputError: naming the first offending field
    """
    for field_path, value in _numeric_fields(result):
        if not math.isfinite(value):
            raise MalformedInputError(field_path, f"expected a finite number, got {value!r}")

    if not result.property_info.address.strip():
        raise MalformedInputError("property_info.address", "must not be empty")

    for index, risk in enumerate(result.risk_factors):
        if not risk.message.strip():
            raise MalformedInputError(f"risk_factors[{index}].message", "must not be empty")
