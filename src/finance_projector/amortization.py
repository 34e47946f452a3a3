"""Amortization engine for mortgages, car loans and consumer loans.

One parametrised loop covers all three calculators; the differences are
expressed as LoanParameters (payment policy, insurance base, fees, extra
payments, asset depreciation) rather than separate implementations.

All monetary values use decimal.Decimal at full precision; rates are annual
fractions (0.12 for 12 %) and are converted to monthly rates here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from .config import (
    BALANCE_EPSILON, DEFAULT_EXTRA_PAYMENT_PERIOD, MONTHS_PER_YEAR, ONE,
    RUNAWAY_GUARD_FACTOR, ZERO, ExtraPaymentMode, InsuranceBase, PaymentPolicy,
)
from .metrics import summarize
from .schedule import PeriodRecord, ScheduleResult, empty_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanParameters:
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    policy: PaymentPolicy = "annuity"
    # Insurance is a yearly rate charged monthly on the balance or on the asset value
    insurance_rate: Decimal = ZERO
    insurance_base: InsuranceBase = "balance"
    monthly_fee: Decimal = ZERO
    one_time_fee: Decimal = ZERO       # charged with the first payment
    extra_payment: Decimal = ZERO
    extra_payment_mode: ExtraPaymentMode = "none"
    extra_payment_period: int = DEFAULT_EXTRA_PAYMENT_PERIOD
    inflation_rate: Decimal = ZERO
    adjust_for_inflation: bool = False
    # Asset tracking (car loans): starting value and yearly depreciation
    asset_value: Decimal = ZERO
    depreciation_rate: Decimal = ZERO

    @classmethod
    def from_purchase(
        cls,
        price: Decimal,
        down_payment: Decimal,
        trade_in: Decimal = ZERO,
        **kwargs,
    ) -> "LoanParameters":
        """Finance a purchase: principal = price - down payment - trade-in.

        The purchase price becomes the tracked asset value.
        """
        kwargs.setdefault("asset_value", price)
        return cls(principal=price - down_payment - trade_in, **kwargs)

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate / MONTHS_PER_YEAR


def compute_annuity_payment(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
) -> Decimal:
    """Return the fixed monthly payment that amortizes *principal* over the term.

    Uses the standard reducing-balance formula:
        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    Special case: if annual_rate == 0, payment = P / n (equal principal split).
    """
    if term_months <= 0:
        raise ValueError("term_months must be > 0")
    if principal < ZERO:
        raise ValueError("principal must be >= 0")

    if annual_rate == ZERO:
        return principal / Decimal(term_months)

    r = annual_rate / MONTHS_PER_YEAR
    factor = (ONE + r) ** term_months
    return principal * r * factor / (factor - ONE)


def _extra_for_period(params: LoanParameters, period: int) -> Decimal:
    if params.extra_payment_mode == "monthly":
        return params.extra_payment
    if params.extra_payment_mode == "lump" and period == params.extra_payment_period:
        return params.extra_payment
    return ZERO


def build_loan_schedule(params: LoanParameters) -> ScheduleResult:
    """Build the month-by-month schedule of a loan.

    Invalid inputs (principal or term not positive) give an empty result.
    The loop stops once the balance is repaid, so a large extra payment ends
    the schedule early. It never runs past RUNAWAY_GUARD_FACTOR x term
    periods; if the balance is still outstanding by then the result is
    returned with ``truncated=True``.
    """
    principal = params.principal
    term = params.term_months
    if principal <= ZERO or term <= 0:
        logger.debug("Empty loan schedule: principal=%s term=%s", principal, term)
        return empty_result("loan")

    r = params.monthly_rate
    insurance_rate = params.insurance_rate / MONTHS_PER_YEAR
    inflation_factor = ONE + params.inflation_rate / MONTHS_PER_YEAR
    depreciation_factor = ONE - params.depreciation_rate / MONTHS_PER_YEAR
    track_asset = params.asset_value > ZERO

    if params.policy == "annuity":
        base_payment = compute_annuity_payment(principal, params.annual_rate, term)
    else:
        base_payment = principal / Decimal(term)  # constant principal component

    records: list[PeriodRecord] = []
    balance = principal
    asset_value = params.asset_value
    limit = term * RUNAWAY_GUARD_FACTOR
    period = 1

    # Period 1 always runs so a sub-cent principal is still repaid
    while (period == 1 or balance > BALANCE_EPSILON) and period <= limit:
        interest = balance * r

        if params.policy == "annuity":
            scheduled = base_payment - interest
        else:
            scheduled = base_payment
        if period >= term:
            # The last scheduled payment clears whatever is left
            scheduled = balance
        scheduled = min(max(scheduled, ZERO), balance)

        insured_value = asset_value if params.insurance_base == "asset" and track_asset else balance
        fees = insured_value * insurance_rate + params.monthly_fee
        if period == 1:
            fees += params.one_time_fee

        extra = _extra_for_period(params, period)
        if extra > ZERO:
            extra = min(extra, balance - scheduled)

        closing = max(ZERO, balance - scheduled - extra)
        if ZERO < closing <= BALANCE_EPSILON:
            scheduled += closing
            closing = ZERO

        total = scheduled + interest + fees + extra

        if track_asset:
            asset_value *= depreciation_factor

        if params.adjust_for_inflation:
            real_value = total / inflation_factor ** (period - 1)
        else:
            real_value = total

        records.append(
            PeriodRecord(
                period=period,
                payment=total,
                principal_component=scheduled,
                interest_component=interest,
                fees_component=fees,
                extra_payment=extra,
                balance=closing,
                real_value=real_value,
                auxiliary=asset_value if track_asset else None,
            )
        )
        balance = closing
        period += 1

    truncated = balance > BALANCE_EPSILON
    if truncated:
        logger.warning(
            "Loan schedule stopped after %d periods with %s still outstanding; "
            "check the parameter combination",
            len(records), balance,
        )
    logger.debug(
        "Built %s loan schedule: %d periods for principal %s", params.policy, len(records), principal
    )
    return summarize(
        "loan",
        records,
        periodic_payment=base_payment,
        truncated=truncated,
    )
