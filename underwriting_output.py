#!/usr/bin/env python3
"""
Underwriting Output Generator
Produces downloadable Excel and PDF packages from a completed analysis result.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from analysis_models import AnalysisResult
from excel_report import ExcelReportGenerator
from financial_model import DEFAULT_ASSUMPTIONS, ModelAssumptions
from pdf_report import PdfReportGenerator
from report_errors import ExportError, MalformedInputError, MissingResultError, PageOverflowError
from report_utils import generate_export_filename

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class ExportArtifact:
    """A fully rendered export ready to be downloaded or saved."""
    export_type: str  # "spreadsheet" or "document"
    filename: str
    media_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class UnderwritingOutputGenerator:
    """
    Entry point for both export paths.

    Each export is one-shot: the artifact is returned only when rendering
    finished, and failures are reported as ExportError naming the export.
    """

    def __init__(self, assumptions: Optional[ModelAssumptions] = None,
                 strict_page_fit: bool = False, debug: bool = False,
                 today: Callable[[], date] = date.today):
        self.debug = debug
        self.today = today
        self.logger = self._setup_logger()

        assumptions = assumptions or DEFAULT_ASSUMPTIONS
        self.excel = ExcelReportGenerator(assumptions=assumptions, debug=debug)
        self.pdf = PdfReportGenerator(assumptions=assumptions, strict_page_fit=strict_page_fit, debug=debug)

    def _setup_logger(self):
        """Set up logging for the output generator."""
        logger = logging.getLogger('UnderwritingOutput')
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.debug else logging.INFO)
        return logger

    def export_excel(self, result: Optional[AnalysisResult]) -> ExportArtifact:
        """Render the three-tab workbook."""
        return self._export(result, "spreadsheet", "xlsx", XLSX_MEDIA_TYPE, self.excel.render)

    def export_pdf(self, result: Optional[AnalysisResult]) -> ExportArtifact:
        """Render the one-page PDF report."""
        return self._export(result, "document", "pdf", PDF_MEDIA_TYPE, self.pdf.render)

    def _export(self, result: Optional[AnalysisResult], export_type: str, extension: str,
                media_type: str, render: Callable[[AnalysisResult, date], bytes]) -> ExportArtifact:
        if result is None:
            raise MissingResultError()

        today = self.today()
        try:
            content = render(result, today)
        except (MalformedInputError, PageOverflowError):
            raise
        except Exception as e:
            self.logger.error(f"❌ {export_type.title()} export failed: {str(e)}")
            raise ExportError(export_type, str(e)) from e

        filename = generate_export_filename(result.property_info.address, extension, on=today)
        return ExportArtifact(
            export_type=export_type,
            filename=filename,
            media_type=media_type,
            content=content,
        )

    def save(self, artifact: ExportArtifact, output_dir: str = "outputs") -> str:
        """
        Write an artifact into output_dir and return its path.

        The bytes go to a temporary file that is renamed into place, so a
        failed write never leaves a partial export behind.
        """
        target = Path(output_dir) / artifact.filename
        tmp_path = None
        try:
            os.makedirs(output_dir, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=output_dir, prefix=".export-", delete=False) as tmp:
                tmp_path = tmp.name
                tmp.write(artifact.content)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            self.logger.error(f"❌ Could not write {artifact.filename}: {str(e)}")
            raise ExportError(artifact.export_type, str(e), path=str(target)) from e

        self.logger.info(f"💾 Saved {artifact.filename} ({artifact.size:,} bytes) to {output_dir}")
        return str(target)
