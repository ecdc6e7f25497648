#!/usr/bin/env python3
"""
Report Errors
Failure types raised while turning an analysis result into export files.
"""

from typing import Optional


class ReportError(Exception):
    """Base class for report generation failures."""


class MissingResultError(ReportError):
    """An export was requested before any analysis completed."""

    def __init__(self, message: str = "No completed analysis result to export"):
        super().__init__(message)


class MalformedInputError(ReportError):
    """A field of the analysis result violates the renderer input contract."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


class ExportError(ReportError):
    """Building or writing one export artifact failed."""

    LABELS = {
        "spreadsheet": "Spreadsheet",
        "document": "PDF document",
    }

    def __init__(self, export_type: str, message: str, path: Optional[str] = None):
        self.export_type = export_type
        self.path = path
        label = self.LABELS.get(export_type, export_type)
        super().__init__(f"{label} export failed: {message}")


class PageOverflowError(ReportError):
    """Document content runs past the printable area of the single page."""

    def __init__(self, cursor_y: float, limit: float):
        self.cursor_y = cursor_y
        self.limit = limit
        super().__init__(
            f"Report content ends at {cursor_y:.1f} but the page allows {limit:.1f}"
        )
