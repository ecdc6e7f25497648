#!/usr/bin/env python3
"""
Analysis Result Models
Structured output of an underwriting run, consumed read-only by the report generators.
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RiskLevel(str, Enum):
    """Ordinal severity of a risk factor."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recommendation(str, Enum):
    """Final underwriting call."""
    PASS = "pass"
    FAIL = "fail"


class AnalysisModel(BaseModel):
    """Frozen model with camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )


class PropertyInfo(AnalysisModel):
    address: str
    units: int = Field(ge=0)
    year_built: int
    square_feet: int = Field(ge=0)
    lot_size: str


class Financials(AnalysisModel):
    # Whole currency units
    gross_rent: float = Field(ge=0)
    net_operating_income: float = Field(ge=0)
    purchase_price: float = Field(ge=0)
    cash_required: float = Field(ge=0)

    # Nominal percentages, e.g. 6.2 means 6.2%
    cap_rate: float
    coc_return: float
    dscr: float = Field(gt=0)


class MarketData(AnalysisModel):
    avg_rent_psf: float
    market_cap_rate: float
    crime_score: str
    school_rating: float
    walk_score: float
    median_income: float = Field(ge=0)


class RiskFactor(AnalysisModel):
    type: RiskLevel
    message: str


class AnalysisResult(AnalysisModel):
    """
    Complete output of one underwriting run.

    The recommendation and the risk factors are set independently by the
    analysis provider; nothing here checks that they agree.
    """
    property_info: PropertyInfo
    financials: Financials
    market_data: MarketData
    risk_factors: Tuple[RiskFactor, ...] = ()
    recommendation: Recommendation
    confidence_score: int

    @property
    def is_pass(self) -> bool:
        return self.recommendation == Recommendation.PASS


class BuyBoxCriteria(AnalysisModel):
    """Investment screening criteria handed to the analysis provider."""
    min_coc_return: float = 8.0
    min_cap_rate: float = 6.0
    max_year_built: int = 1990
    target_hold_period: int = 5


class PropertyInput(AnalysisModel):
    """Property identification entered before an analysis run."""
    address: str = ""
    city: str = ""
    state: str = ""
