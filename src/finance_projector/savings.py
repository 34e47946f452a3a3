"""Compounding / savings engine — forward accumulation and reverse solve.

Forward mode grows an initial balance with monthly contributions; reverse
mode finds the monthly contribution needed to reach a target and then runs
the forward accumulation with it, so both modes always return the same kind
of schedule.

The schedule has one period per month and each month accrues
``annual_rate / compounding_frequency``, whatever the compounding frequency.
The optional comparison track is a second compounding balance at
``comparison_rate``; it is NOT textbook simple (non-compounding) interest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import (
    DEFAULT_COMPOUNDING_FREQUENCY, MONTHS_PER_YEAR, ONE, SOLVER_MAX_ITERATIONS,
    SOLVER_TOLERANCE, ZERO,
)
from .metrics import summarize
from .schedule import PeriodRecord, ScheduleResult, empty_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavingsParameters:
    initial_balance: Decimal
    annual_rate: Decimal
    term_years: Decimal
    monthly_contribution: Decimal = ZERO
    target_amount: Optional[Decimal] = None     # reverse mode only
    compounding_frequency: int = DEFAULT_COMPOUNDING_FREQUENCY
    inflation_rate: Decimal = ZERO
    adjust_for_inflation: bool = False
    comparison_rate: Optional[Decimal] = None
    # None means: index contributions exactly when adjusting for inflation
    index_contributions: Optional[bool] = None

    @property
    def periods(self) -> int:
        """Number of monthly periods in the horizon."""
        years = Decimal(self.term_years)
        if years <= ZERO:
            return 0
        return int((years * MONTHS_PER_YEAR).to_integral_value(rounding=ROUND_HALF_UP))

    @property
    def periodic_rate(self) -> Decimal:
        if self.compounding_frequency <= 0:
            return ZERO
        return self.annual_rate / Decimal(self.compounding_frequency)

    @property
    def monthly_inflation(self) -> Decimal:
        return self.inflation_rate / MONTHS_PER_YEAR

    @property
    def indexes_contributions(self) -> bool:
        if self.index_contributions is None:
            return self.adjust_for_inflation
        return self.index_contributions


def future_value(
    initial: Decimal,
    contribution: Decimal,
    periodic_rate: Decimal,
    periods: int,
    monthly_inflation: Decimal = ZERO,
) -> Decimal:
    """Balance after *periods* months of accrual and (indexed) contributions."""
    balance = initial
    growth = ONE + monthly_inflation
    for _ in range(periods):
        balance += balance * periodic_rate + contribution
        contribution *= growth
    return balance


def _is_invalid(params: SavingsParameters) -> bool:
    return (
        params.periods <= 0
        or params.compounding_frequency <= 0
        or params.initial_balance < ZERO
        or params.monthly_contribution < ZERO
    )


def build_savings_schedule(params: SavingsParameters) -> ScheduleResult:
    """Forward mode: accumulate contributions and interest month by month."""
    if _is_invalid(params):
        logger.debug("Empty savings schedule for %s", params)
        return empty_result("savings")

    r = params.periodic_rate
    inflation_factor = ONE + params.monthly_inflation
    comparison_r = (
        params.comparison_rate / Decimal(params.compounding_frequency)
        if params.comparison_rate is not None
        else None
    )

    balance = params.initial_balance
    comparison = params.initial_balance if comparison_r is not None else None
    real_contributions = ZERO
    records: list[PeriodRecord] = []

    for period in range(1, params.periods + 1):
        deflator = inflation_factor ** (period - 1)
        contribution = params.monthly_contribution
        if params.indexes_contributions:
            contribution *= deflator

        interest = balance * r
        balance += interest + contribution
        if comparison is not None:
            comparison += comparison * comparison_r + contribution

        if params.adjust_for_inflation:
            real_value = balance / (deflator * inflation_factor)
            real_contributions += contribution / deflator
        else:
            real_value = balance
            real_contributions += contribution

        records.append(
            PeriodRecord(
                period=period,
                payment=contribution,
                principal_component=contribution,
                interest_component=interest,
                fees_component=ZERO,
                extra_payment=ZERO,
                balance=balance,
                real_value=real_value,
                auxiliary=comparison,
            )
        )

    logger.debug("Built savings schedule: %d periods, final balance %s", len(records), balance)
    return summarize(
        "savings",
        records,
        periodic_payment=params.monthly_contribution,
        initial_balance=params.initial_balance,
        real_total=real_contributions,
    )


def _bisect_contribution(need: Decimal, params: SavingsParameters) -> Decimal:
    """Smallest indexed contribution whose accumulation reaches *need*."""
    r = params.periodic_rate
    n = params.periods
    mi = params.monthly_inflation

    low = ZERO
    high = need / Decimal(n)
    # Grow the bracket until it contains the answer
    for _ in range(SOLVER_MAX_ITERATIONS):
        if future_value(ZERO, high, r, n, mi) >= need:
            break
        low, high = high, high * 2

    mid = high
    for _ in range(SOLVER_MAX_ITERATIONS):
        mid = (low + high) / 2
        reached = future_value(ZERO, mid, r, n, mi)
        if abs(reached - need) <= SOLVER_TOLERANCE:
            break
        if reached < need:
            low = mid
        else:
            high = mid
    else:
        logger.warning(
            "Contribution solver stopped after %d iterations without converging (need=%s)",
            SOLVER_MAX_ITERATIONS, need,
        )
    return mid


def required_contribution(params: SavingsParameters) -> Decimal:
    """Monthly contribution needed to reach ``params.target_amount``.

    Returns ZERO when the initial balance alone is enough or the inputs are
    invalid.
    """
    target = params.target_amount
    if target is None or _is_invalid(params) or target <= params.initial_balance:
        return ZERO

    r = params.periodic_rate
    n = params.periods

    if params.adjust_for_inflation:
        target = target * (ONE + params.inflation_rate) ** Decimal(params.term_years)

    fv_initial = params.initial_balance * (ONE + r) ** n
    need = target - fv_initial
    if need <= ZERO:
        return ZERO

    if params.indexes_contributions and params.inflation_rate != ZERO:
        # Indexed contributions are not a level annuity; search instead
        return _bisect_contribution(need, params)

    if r == ZERO:
        return need / Decimal(n)
    return need * r / ((ONE + r) ** n - ONE)


def solve_required_contribution(params: SavingsParameters) -> ScheduleResult:
    """Reverse mode: solve the contribution for the target, then accumulate with it.

    The returned schedule is the forward schedule for the solved contribution
    (``periodic_payment`` holds that contribution). A target at or below the
    initial balance, or a zero horizon, gives an empty result.
    """
    target = params.target_amount
    if target is None or _is_invalid(params) or target <= params.initial_balance:
        logger.debug("Empty reverse savings schedule: target=%s", target)
        return empty_result("savings")

    contribution = required_contribution(params)
    logger.debug("Solved monthly contribution %s for target %s", contribution, target)
    return build_savings_schedule(replace(params, monthly_contribution=contribution))
