#!/usr/bin/env python3
"""
Underwriting Analyzer
Provider interface that turns a property and its uploaded documents into an AnalysisResult.

Report generation depends only on the `AnalysisProvider` protocol, so a real
implementation can replace `SampleAnalysisProvider` without touching exports.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Protocol

from analysis_models import (
    AnalysisResult,
    BuyBoxCriteria,
    Financials,
    MarketData,
    PropertyInfo,
    PropertyInput,
    Recommendation,
    RiskFactor,
    RiskLevel,
)

ACCEPTED_MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
}

SAMPLE_ADDRESS = "123 Sample Street, Austin, TX 78701"


class AnalysisError(Exception):
    """The analysis provider could not produce a result."""


@dataclass(frozen=True)
class UploadedDocument:
    """An uploaded T12 or rent roll, kept as opaque bytes."""
    filename: str
    content: bytes
    media_type: str

    @classmethod
    def from_upload(cls, filename: str, content: bytes) -> "UploadedDocument":
        """Accept PDF or Excel uploads, identified by file extension."""
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in ACCEPTED_MEDIA_TYPES:
            accepted = ", ".join(sorted(ACCEPTED_MEDIA_TYPES))
            raise AnalysisError(f"Unsupported document type '{filename}'. Accepted: {accepted}")
        return cls(filename=filename, content=content, media_type=ACCEPTED_MEDIA_TYPES[ext])

    @property
    def is_pdf(self) -> bool:
        return self.media_type == ACCEPTED_MEDIA_TYPES[".pdf"]


@dataclass(frozen=True)
class AnalysisRequest:
    property_input: PropertyInput
    t12: UploadedDocument
    rent_roll: UploadedDocument
    criteria: BuyBoxCriteria = field(default_factory=BuyBoxCriteria)


class AnalysisProvider(Protocol):
    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Return a result for the request or raise AnalysisError."""
        ...


class SampleAnalysisProvider:
    """
    Returns the fixed sample underwriting after an optional delay.

    Documents and buy-box criteria are accepted but not read; the entered
    address replaces the sample address when one is given.
    """

    def __init__(self, delay_seconds: float = 0.0, debug: bool = False):
        self.delay_seconds = delay_seconds
        self.debug = debug
        self.logger = self._setup_logger()

    def _setup_logger(self):
        """Set up logging for the sample analysis provider."""
        logger = logging.getLogger('UnderwritingAnalyzer')
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.debug else logging.INFO)
        return logger

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        address = request.property_input.address.strip() or SAMPLE_ADDRESS
        self.logger.info(f"🏢 Analyzing {address}")
        self.logger.debug(
            f"📋 Documents: T12={request.t12.filename} ({len(request.t12.content):,} bytes), "
            f"Rent Roll={request.rent_roll.filename} ({len(request.rent_roll.content):,} bytes)"
        )

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        result = sample_analysis_result(address)
        self.logger.info(f"✅ Analysis complete: {result.recommendation.value.upper()} "
                         f"({result.confidence_score}% confidence)")
        return result


def sample_analysis_result(address: str = SAMPLE_ADDRESS) -> AnalysisResult:
    """The fixed 48-unit sample deal."""
    return AnalysisResult(
        property_info=PropertyInfo(
            address=address,
            units=48,
            year_built=1995,
            square_feet=52000,
            lot_size="2.1 acres",
        ),
        financials=Financials(
            gross_rent=468000,
            net_operating_income=350400,
            purchase_price=5850000,
            cap_rate=6.2,
            coc_return=11.4,
            dscr=1.35,
            cash_required=1755000,
        ),
        market_data=MarketData(
            avg_rent_psf=1.85,
            market_cap_rate=5.8,
            crime_score="B+",
            school_rating=8.2,
            walk_score=72,
            median_income=68500,
        ),
        risk_factors=[
            RiskFactor(type=RiskLevel.LOW, message="Property built after minimum year requirement"),
            RiskFactor(type=RiskLevel.MEDIUM, message="Slightly below market rent - opportunity for growth"),
            RiskFactor(type=RiskLevel.LOW, message="Strong school district supports tenant demand"),
        ],
        recommendation=Recommendation.PASS,
        confidence_score=87,
    )
