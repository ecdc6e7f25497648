"""Shared fixtures for the underwriting report tests."""

from datetime import date

import pytest

from analysis_models import AnalysisResult, Recommendation, RiskFactor, RiskLevel
from underwriting_analyzer import sample_analysis_result

REPORT_DATE = date(2025, 7, 15)


@pytest.fixture
def report_date():
    return REPORT_DATE


@pytest.fixture
def sample_result() -> AnalysisResult:
    return sample_analysis_result()


@pytest.fixture
def failing_result(sample_result) -> AnalysisResult:
    return sample_result.model_copy(update={
        "recommendation": Recommendation.FAIL,
        "confidence_score": 64,
        "risk_factors": [
            RiskFactor(type=RiskLevel.HIGH, message="DSCR below lender minimum of 1.25x"),
            RiskFactor(type=RiskLevel.MEDIUM, message="Deferred maintenance noted on roofs and HVAC"),
        ],
    })
