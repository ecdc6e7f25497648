#!/usr/bin/env python3
"""
Application Settings
Environment-driven configuration (prefix UNDERWRITER_).
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from financial_model import ModelAssumptions


class AppSettings(BaseSettings):
    # App & logging
    LOG_LEVEL: str = Field(default="INFO")
    DEBUG: bool = Field(default=False)

    # Sample analysis provider
    ANALYSIS_DELAY_SECONDS: float = Field(default=3.0, ge=0)

    # Where exports are written when saved server-side
    EXPORT_DIR: str = Field(default="outputs")

    # Financial model assumptions
    DOWN_PAYMENT_PCT: float = Field(default=0.30, le=1)
    INTEREST_RATE: float = Field(default=0.065, le=1)
    LOAN_TERM_YEARS: int = Field(default=30, gt=0)
    VACANCY_RATE: float = Field(default=0.05, le=1)

    # Single-page PDF: raise instead of warn when content overflows
    STRICT_PAGE_FIT: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="UNDERWRITER_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("DOWN_PAYMENT_PCT", "INTEREST_RATE", "VACANCY_RATE", mode="before")
    @classmethod
    def _to_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        percent = False
        if isinstance(v, str):
            v = v.strip()
            percent = v.endswith("%")
            v = v.rstrip("%").strip()
        try:
            f = float(v)
        except (TypeError, ValueError) as err:
            raise ValueError("rate must be numeric or percent-like") from err
        # Bare numbers above 1 are percents too
        if percent or f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    def model_assumptions(self) -> ModelAssumptions:
        return ModelAssumptions(
            down_payment_pct=self.DOWN_PAYMENT_PCT,
            interest_rate=self.INTEREST_RATE,
            loan_term_years=self.LOAN_TERM_YEARS,
            vacancy_rate=self.VACANCY_RATE,
        )


settings = AppSettings()
