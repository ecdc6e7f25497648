#!/usr/bin/env python3
"""
Financial Model Calculator
Derives loan sizing, effective income and expense line items from an analysis result.

Every figure here is a fixed fraction of gross rent or purchase price. The
expense breakdown is an assumption-based illustration and is not reconciled
against the net operating income reported by the analysis.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

from analysis_models import Financials

DEFAULT_EXPENSE_RATIOS = MappingProxyType({
    "management": 0.08,
    "maintenance": 0.05,
    "taxes": 0.12,
    "insurance": 0.03,
    "utilities": 0.02,
    "other": 0.03,
})

EXPENSE_LABELS = {
    "management": "Property Management",
    "maintenance": "Maintenance & Repairs",
    "taxes": "Property Taxes",
    "insurance": "Insurance",
    "utilities": "Utilities",
    "other": "Other Expenses",
}


@dataclass(frozen=True)
class ModelAssumptions:
    """Presentation constants used to build the financial model."""
    down_payment_pct: float = 0.30
    interest_rate: float = 0.065
    loan_term_years: int = 30
    vacancy_rate: float = 0.05
    expense_ratios: Mapping[str, float] = field(default_factory=lambda: DEFAULT_EXPENSE_RATIOS)

    def __post_init__(self):
        for name in ("down_payment_pct", "interest_rate", "vacancy_rate"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be a fraction between 0 and 1, got {value}")
        if self.loan_term_years < 0:
            raise ValueError(f"loan_term_years must not be negative, got {self.loan_term_years}")
        # Stored read-only
        object.__setattr__(self, "expense_ratios", MappingProxyType(dict(self.expense_ratios)))

    @property
    def loan_to_value(self) -> float:
        return 1 - self.down_payment_pct

    @property
    def total_expense_ratio(self) -> float:
        return sum(self.expense_ratios.values())


DEFAULT_ASSUMPTIONS = ModelAssumptions()


@dataclass(frozen=True)
class DerivedMetrics:
    """Secondary figures shared by the spreadsheet and PDF reports."""
    loan_amount: float
    down_payment: float
    annual_debt_service: float
    vacancy_loss: float
    effective_gross_income: float
    expenses: Dict[str, float]
    total_operating_expenses: float


def loan_amount(purchase_price: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    return purchase_price * assumptions.loan_to_value


def down_payment(purchase_price: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    # Remainder of the price, so loan + down payment always equals the price
    return purchase_price - loan_amount(purchase_price, assumptions)


def effective_gross_income(gross_rent: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    return gross_rent * (1 - assumptions.vacancy_rate)


def vacancy_loss(gross_rent: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    return gross_rent * assumptions.vacancy_rate


def expense_breakdown(gross_rent: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> Dict[str, float]:
    """Operating expense line items, in display order."""
    return {
        name: gross_rent * ratio
        for name, ratio in assumptions.expense_ratios.items()
    }


def total_operating_expenses(gross_rent: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    return sum(expense_breakdown(gross_rent, assumptions).values())


def annual_debt_service(principal: float, assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> float:
    """
    Twelve monthly payments on a fully amortizing loan.

    Args:
        principal: Loan amount
        assumptions: Supplies the annual interest rate and term in years

    Returns:
        Annual debt service, 0.0 for an empty loan or zero term
    """
    years = assumptions.loan_term_years
    if principal <= 0 or years <= 0:
        return 0.0
    num_payments = years * 12
    if assumptions.interest_rate <= 0:
        return principal / num_payments * 12

    monthly_rate = assumptions.interest_rate / 12
    growth = (1 + monthly_rate) ** num_payments
    monthly_payment = principal * monthly_rate * growth / (growth - 1)
    return monthly_payment * 12


def calculate_derived_metrics(financials: Financials,
                              assumptions: ModelAssumptions = DEFAULT_ASSUMPTIONS) -> DerivedMetrics:
    """Compute every derived figure from gross rent and purchase price."""
    gross_rent = financials.gross_rent
    price = financials.purchase_price
    loan = loan_amount(price, assumptions)
    expenses = expense_breakdown(gross_rent, assumptions)

    return DerivedMetrics(
        loan_amount=loan,
        down_payment=down_payment(price, assumptions),
        annual_debt_service=annual_debt_service(loan, assumptions),
        vacancy_loss=vacancy_loss(gross_rent, assumptions),
        effective_gross_income=effective_gross_income(gross_rent, assumptions),
        expenses=expenses,
        total_operating_expenses=sum(expenses.values()),
    )
