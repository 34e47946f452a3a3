"""Parameter resolution: raw user inputs -> engine parameters.

Resolution order, per calculator:
1. Each optional input falls back to the calculator preset if not user-supplied.
2. Percentages are converted to annual fractions (divided by 100).
3. Terms in years are converted to months.
4. Derived amounts (financed principal) are computed from price, down payment
   and trade-in.

A non-positive principal or term is not an error here: it flows through to the
engine, which answers with an empty schedule. Negative amounts, negative rates,
non-finite numbers and unknown option values are rejected with ValueError.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .amortization import LoanParameters
from .config import (
    DEFAULT_EXTRA_PAYMENT_PERIOD, HUNDRED, MONTHS_PER_YEAR, VALID_COMPOUNDING_FREQUENCIES,
    VALID_EXTRA_PAYMENT_MODES, VALID_POLICIES, ZERO,
)
from . import presets
from .savings import SavingsParameters


@dataclass
class MortgageInputs:
    """Raw user-supplied values.  None means 'not provided — use preset default'."""
    property_price: Optional[Decimal] = None
    down_payment: Optional[Decimal] = None
    term_years: Optional[Decimal] = None
    annual_rate_pct: Optional[Decimal] = None
    policy: Optional[str] = None
    insurance_pct: Optional[Decimal] = None
    extra_payment: Decimal = ZERO
    extra_payment_mode: str = "none"
    extra_payment_period: int = DEFAULT_EXTRA_PAYMENT_PERIOD
    inflation_pct: Optional[Decimal] = None
    adjust_for_inflation: Optional[bool] = None


@dataclass
class CarLoanInputs:
    car_price: Optional[Decimal] = None
    down_payment: Optional[Decimal] = None
    trade_in: Optional[Decimal] = None
    term_years: Optional[Decimal] = None
    annual_rate_pct: Optional[Decimal] = None
    insurance_pct: Optional[Decimal] = None
    include_insurance: Optional[bool] = None
    depreciation_pct: Optional[Decimal] = None
    inflation_pct: Optional[Decimal] = None
    adjust_for_inflation: Optional[bool] = None


@dataclass
class ConsumerLoanInputs:
    loan_amount: Optional[Decimal] = None
    term_years: Optional[Decimal] = None
    annual_rate_pct: Optional[Decimal] = None
    policy: Optional[str] = None
    monthly_fee: Optional[Decimal] = None
    insurance_amount: Optional[Decimal] = None
    inflation_pct: Optional[Decimal] = None
    adjust_for_inflation: Optional[bool] = None


@dataclass
class SavingsInputs:
    initial_balance: Optional[Decimal] = None
    monthly_contribution: Optional[Decimal] = None
    target_amount: Optional[Decimal] = None   # set → reverse mode
    term_years: Optional[Decimal] = None
    annual_rate_pct: Optional[Decimal] = None
    compounding_frequency: Optional[int] = None
    inflation_pct: Optional[Decimal] = None
    adjust_for_inflation: Optional[bool] = None
    comparison_rate_pct: Optional[Decimal] = None


@dataclass(frozen=True)
class ResolvedLoan:
    """Engine parameters for a loan plus the purchase figures they came from."""
    params: LoanParameters
    price: Decimal
    down_payment: Decimal
    term_years: Decimal
    sources: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedSavings:
    params: SavingsParameters
    reverse: bool
    sources: dict[str, str] = field(default_factory=dict)


def years_to_months(years: Decimal) -> int:
    return int((Decimal(years) * MONTHS_PER_YEAR).to_integral_value(rounding=ROUND_HALF_UP))


def _opt_fraction(pct: Optional[Decimal]) -> Optional[Decimal]:
    return None if pct is None else pct / HUNDRED


class _Resolver:
    """Picks user values over preset values and records where each came from."""

    def __init__(self) -> None:
        self.sources: dict[str, str] = {}

    def pick(self, user_val, preset_val, name: str):
        if user_val is not None:
            self.sources[name] = "user"
            return user_val
        self.sources[name] = "preset"
        return preset_val


def _check_finite(**values: Optional[Decimal]) -> None:
    for name, value in values.items():
        if value is not None and not value.is_finite():
            raise ValueError(f"{name} must be a finite number (got {value})")


def _check_non_negative(**values: Optional[Decimal]) -> None:
    _check_finite(**values)
    for name, value in values.items():
        if value is not None and value < ZERO:
            raise ValueError(f"{name} must be >= 0 (got {value})")


def _check_policy(policy: str) -> None:
    if policy not in VALID_POLICIES:
        raise ValueError(
            f"Unknown payment policy '{policy}'. "
            f"Valid values: {', '.join(sorted(VALID_POLICIES))}"
        )


def resolve_mortgage(inputs: MortgageInputs) -> ResolvedLoan:
    preset = presets.MORTGAGE
    r = _Resolver()

    price = r.pick(inputs.property_price, preset.property_price, "property_price")
    down_payment = r.pick(inputs.down_payment, preset.down_payment, "down_payment")
    term_years = r.pick(inputs.term_years, preset.term_years, "term_years")
    annual_rate = r.pick(_opt_fraction(inputs.annual_rate_pct), preset.annual_rate, "annual_rate")
    policy = r.pick(inputs.policy, preset.policy, "policy")
    insurance_rate = r.pick(_opt_fraction(inputs.insurance_pct), preset.insurance_rate, "insurance_rate")
    inflation_rate = r.pick(_opt_fraction(inputs.inflation_pct), preset.inflation_rate, "inflation_rate")
    adjust = r.pick(inputs.adjust_for_inflation, preset.adjust_for_inflation, "adjust_for_inflation")

    _check_finite(term_years=term_years)
    _check_non_negative(
        property_price=price, down_payment=down_payment, annual_rate=annual_rate,
        insurance_rate=insurance_rate, inflation_rate=inflation_rate,
        extra_payment=inputs.extra_payment,
    )
    _check_policy(policy)
    if inputs.extra_payment_mode not in VALID_EXTRA_PAYMENT_MODES:
        raise ValueError(
            f"Unknown extra payment mode '{inputs.extra_payment_mode}'. "
            f"Valid values: {', '.join(sorted(VALID_EXTRA_PAYMENT_MODES))}"
        )
    if inputs.extra_payment_period < 1:
        raise ValueError("extra_payment_period must be >= 1")

    params = LoanParameters.from_purchase(
        price,
        down_payment,
        annual_rate=annual_rate,
        term_months=years_to_months(term_years),
        policy=policy,
        insurance_rate=insurance_rate,
        insurance_base="balance",
        extra_payment=inputs.extra_payment,
        extra_payment_mode=inputs.extra_payment_mode,
        extra_payment_period=inputs.extra_payment_period,
        inflation_rate=inflation_rate,
        adjust_for_inflation=adjust,
        # The property is not tracked: insurance follows the loan balance
        asset_value=ZERO,
    )
    return ResolvedLoan(
        params=params,
        price=price,
        down_payment=down_payment,
        term_years=Decimal(term_years),
        sources=r.sources,
    )


def resolve_car_loan(inputs: CarLoanInputs) -> ResolvedLoan:
    preset = presets.CAR_LOAN
    r = _Resolver()

    price = r.pick(inputs.car_price, preset.car_price, "car_price")
    down_payment = r.pick(inputs.down_payment, preset.down_payment, "down_payment")
    trade_in = r.pick(inputs.trade_in, preset.trade_in, "trade_in")
    term_years = r.pick(inputs.term_years, preset.term_years, "term_years")
    annual_rate = r.pick(_opt_fraction(inputs.annual_rate_pct), preset.annual_rate, "annual_rate")
    insurance_rate = r.pick(_opt_fraction(inputs.insurance_pct), preset.insurance_rate, "insurance_rate")
    include_insurance = r.pick(inputs.include_insurance, preset.include_insurance, "include_insurance")
    depreciation_rate = r.pick(
        _opt_fraction(inputs.depreciation_pct), preset.depreciation_rate, "depreciation_rate"
    )
    inflation_rate = r.pick(_opt_fraction(inputs.inflation_pct), preset.inflation_rate, "inflation_rate")
    adjust = r.pick(inputs.adjust_for_inflation, preset.adjust_for_inflation, "adjust_for_inflation")

    _check_finite(term_years=term_years)
    _check_non_negative(
        car_price=price, down_payment=down_payment, trade_in=trade_in, annual_rate=annual_rate,
        insurance_rate=insurance_rate, depreciation_rate=depreciation_rate,
        inflation_rate=inflation_rate,
    )

    params = LoanParameters.from_purchase(
        price,
        down_payment,
        trade_in,
        annual_rate=annual_rate,
        term_months=years_to_months(term_years),
        policy="annuity",
        insurance_rate=insurance_rate if include_insurance else ZERO,
        insurance_base="asset",
        inflation_rate=inflation_rate,
        adjust_for_inflation=adjust,
        depreciation_rate=depreciation_rate,
    )
    return ResolvedLoan(
        params=params,
        price=price,
        down_payment=down_payment,
        term_years=Decimal(term_years),
        sources=r.sources,
    )


def resolve_consumer_loan(inputs: ConsumerLoanInputs) -> ResolvedLoan:
    preset = presets.CONSUMER_LOAN
    r = _Resolver()

    amount = r.pick(inputs.loan_amount, preset.loan_amount, "loan_amount")
    term_years = r.pick(inputs.term_years, preset.term_years, "term_years")
    annual_rate = r.pick(_opt_fraction(inputs.annual_rate_pct), preset.annual_rate, "annual_rate")
    policy = r.pick(inputs.policy, preset.policy, "policy")
    monthly_fee = r.pick(inputs.monthly_fee, preset.monthly_fee, "monthly_fee")
    insurance_amount = r.pick(inputs.insurance_amount, preset.insurance_amount, "insurance_amount")
    inflation_rate = r.pick(_opt_fraction(inputs.inflation_pct), preset.inflation_rate, "inflation_rate")
    adjust = r.pick(inputs.adjust_for_inflation, preset.adjust_for_inflation, "adjust_for_inflation")

    _check_finite(term_years=term_years)
    _check_non_negative(
        loan_amount=amount, annual_rate=annual_rate, monthly_fee=monthly_fee,
        insurance_amount=insurance_amount, inflation_rate=inflation_rate,
    )
    _check_policy(policy)

    params = LoanParameters(
        principal=amount,
        annual_rate=annual_rate,
        term_months=years_to_months(term_years),
        policy=policy,
        monthly_fee=monthly_fee,
        one_time_fee=insurance_amount,
        inflation_rate=inflation_rate,
        adjust_for_inflation=adjust,
    )
    return ResolvedLoan(
        params=params,
        price=amount,
        down_payment=ZERO,
        term_years=Decimal(term_years),
        sources=r.sources,
    )


def resolve_savings(inputs: SavingsInputs) -> ResolvedSavings:
    """Resolve savings inputs; a target amount switches to reverse mode."""
    preset = presets.SAVINGS
    r = _Resolver()

    initial = r.pick(inputs.initial_balance, preset.initial_balance, "initial_balance")
    reverse = inputs.target_amount is not None
    if reverse:
        contribution = ZERO
        r.sources["target_amount"] = "user"
    else:
        contribution = r.pick(
            inputs.monthly_contribution, preset.monthly_contribution, "monthly_contribution"
        )
    term_years = r.pick(inputs.term_years, preset.term_years, "term_years")
    annual_rate = r.pick(_opt_fraction(inputs.annual_rate_pct), preset.annual_rate, "annual_rate")
    frequency = r.pick(
        inputs.compounding_frequency, preset.compounding_frequency, "compounding_frequency"
    )
    inflation_rate = r.pick(_opt_fraction(inputs.inflation_pct), preset.inflation_rate, "inflation_rate")
    adjust = r.pick(inputs.adjust_for_inflation, preset.adjust_for_inflation, "adjust_for_inflation")
    comparison_rate = _opt_fraction(inputs.comparison_rate_pct)
    if comparison_rate is not None:
        r.sources["comparison_rate"] = "user"

    _check_finite(term_years=term_years)
    _check_non_negative(
        initial_balance=initial, monthly_contribution=contribution,
        target_amount=inputs.target_amount, annual_rate=annual_rate,
        inflation_rate=inflation_rate, comparison_rate=comparison_rate,
    )
    if frequency not in VALID_COMPOUNDING_FREQUENCIES:
        raise ValueError(
            f"Unsupported compounding frequency {frequency}. "
            f"Valid values: {', '.join(str(f) for f in sorted(VALID_COMPOUNDING_FREQUENCIES))}"
        )

    params = SavingsParameters(
        initial_balance=initial,
        annual_rate=annual_rate,
        term_years=Decimal(term_years),
        monthly_contribution=contribution,
        target_amount=inputs.target_amount,
        compounding_frequency=frequency,
        inflation_rate=inflation_rate,
        adjust_for_inflation=adjust,
        comparison_rate=comparison_rate,
    )
    return ResolvedSavings(params=params, reverse=reverse, sources=r.sources)
