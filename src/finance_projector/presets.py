"""Static default parameter sets for the four calculators.

All rate fields are annual fractions stored as Decimal strings (0.125 = 12.5%).
Terms are in years, as a user would enter them.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Union

from .config import PaymentPolicy

CalculatorName = Literal["mortgage", "car-loan", "consumer-loan", "savings"]


@dataclass(frozen=True)
class MortgagePreset:
    property_price: Decimal
    down_payment: Decimal
    term_years: Decimal
    annual_rate: Decimal
    policy: PaymentPolicy
    insurance_rate: Decimal        # on the outstanding balance
    inflation_rate: Decimal
    adjust_for_inflation: bool


@dataclass(frozen=True)
class CarLoanPreset:
    car_price: Decimal
    down_payment: Decimal
    trade_in: Decimal
    term_years: Decimal
    annual_rate: Decimal
    insurance_rate: Decimal        # on the depreciating car value
    include_insurance: bool
    depreciation_rate: Decimal
    inflation_rate: Decimal
    adjust_for_inflation: bool


@dataclass(frozen=True)
class ConsumerLoanPreset:
    loan_amount: Decimal
    term_years: Decimal
    annual_rate: Decimal
    policy: PaymentPolicy
    monthly_fee: Decimal
    insurance_amount: Decimal      # one-time, charged with the first payment
    inflation_rate: Decimal
    adjust_for_inflation: bool


@dataclass(frozen=True)
class SavingsPreset:
    initial_balance: Decimal
    monthly_contribution: Decimal
    term_years: Decimal
    annual_rate: Decimal
    compounding_frequency: int
    inflation_rate: Decimal
    adjust_for_inflation: bool


Preset = Union[MortgagePreset, CarLoanPreset, ConsumerLoanPreset, SavingsPreset]

MORTGAGE = MortgagePreset(
    property_price=Decimal("5000000"),
    down_payment=Decimal("1000000"),
    term_years=Decimal("25"),
    annual_rate=Decimal("0.125"),
    policy="annuity",
    insurance_rate=Decimal("0.005"),
    inflation_rate=Decimal("0.065"),
    adjust_for_inflation=True,
)

CAR_LOAN = CarLoanPreset(
    car_price=Decimal("2000000"),
    down_payment=Decimal("400000"),
    trade_in=Decimal("0"),
    term_years=Decimal("5"),
    annual_rate=Decimal("0.155"),
    insurance_rate=Decimal("0.08"),
    include_insurance=True,
    depreciation_rate=Decimal("0.15"),
    inflation_rate=Decimal("0.065"),
    adjust_for_inflation=True,
)

CONSUMER_LOAN = ConsumerLoanPreset(
    loan_amount=Decimal("500000"),
    term_years=Decimal("3"),
    annual_rate=Decimal("0.185"),
    policy="annuity",
    monthly_fee=Decimal("0"),
    insurance_amount=Decimal("0"),
    inflation_rate=Decimal("0.065"),
    adjust_for_inflation=True,
)

SAVINGS = SavingsPreset(
    initial_balance=Decimal("100000"),
    monthly_contribution=Decimal("10000"),
    term_years=Decimal("10"),
    annual_rate=Decimal("0.08"),
    compounding_frequency=12,
    inflation_rate=Decimal("0.065"),
    adjust_for_inflation=True,
)

_PRESETS: dict[str, Preset] = {
    "mortgage": MORTGAGE,
    "car-loan": CAR_LOAN,
    "consumer-loan": CONSUMER_LOAN,
    "savings": SAVINGS,
}

SUPPORTED_CALCULATORS = frozenset(_PRESETS.keys())


def get_preset(name: str) -> Preset:
    """Return the default parameter set for calculator *name*.

    Raises ValueError for unknown calculator names.
    """
    key = name.lower()
    if key not in _PRESETS:
        raise ValueError(
            f"Unknown calculator '{name}'. "
            f"Supported calculators: {', '.join(sorted(SUPPORTED_CALCULATORS))}"
        )
    return _PRESETS[key]
