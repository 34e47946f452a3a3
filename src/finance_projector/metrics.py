"""Derived metrics — pure reductions over a completed schedule.

Nothing here iterates with its own state: every function reads a
ScheduleResult (or plain figures) and returns summary numbers.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Optional, TYPE_CHECKING

from .config import (
    ADVANTAGE_HIGH, ADVANTAGE_LOW, ADVANTAGE_MEDIUM, HUNDRED,
    INFLATION_SEVERITY_HIGH, INFLATION_SEVERITY_MEDIUM, ONE, ZERO, ScheduleKind,
)
from .schedule import PeriodRecord, ScheduleResult, empty_result

if TYPE_CHECKING:
    from .amortization import LoanParameters


@dataclass(frozen=True)
class CompoundAdvantage:
    compound_total: Decimal
    comparison_total: Decimal
    advantage: Decimal      # compound_total - comparison_total
    percentage: Decimal     # advantage / total contributions, in percent
    level: str              # high / medium / low / minimal


@dataclass(frozen=True)
class InflationSeverity:
    percentage: Decimal
    level: str              # high / medium / low


def _inflation_gap(
    kind: ScheduleKind,
    nominal_total: Decimal,
    real_total: Decimal,
    final_balance: Decimal,
    real_final_balance: Decimal,
) -> Decimal:
    if kind == "loan":
        gap = nominal_total - real_total
    else:
        gap = final_balance - real_final_balance
    return max(gap, ZERO)


def summarize(
    kind: ScheduleKind,
    records: Iterable[PeriodRecord],
    *,
    periodic_payment: Decimal,
    initial_balance: Decimal = ZERO,
    real_total: Optional[Decimal] = None,
    truncated: bool = False,
) -> ScheduleResult:
    """Reduce period records into a ScheduleResult with aggregate totals.

    *initial_balance* and *real_total* are only meaningful for savings, whose
    records carry a deflated balance rather than a deflated cash flow: the
    caller supplies the deflated contributions itself.
    """
    rows = tuple(records)
    if not rows:
        return empty_result(kind)

    nominal_total = sum((r.payment for r in rows), ZERO)
    total_interest = sum((r.interest_component for r in rows), ZERO)
    total_fees = sum((r.fees_component for r in rows), ZERO)
    total_principal = sum((r.principal_component + r.extra_payment for r in rows), ZERO)

    last = rows[-1]
    if kind == "loan":
        real_total = sum((r.real_value for r in rows), ZERO)
        real_final_balance = last.balance
        total_contributions = ZERO
    else:
        if real_total is None:
            real_total = nominal_total
        real_final_balance = last.real_value
        total_contributions = initial_balance + nominal_total

    return ScheduleResult(
        kind=kind,
        records=rows,
        periodic_payment=periodic_payment,
        nominal_total=nominal_total,
        total_interest=total_interest,
        total_fees=total_fees,
        total_principal=total_principal,
        real_total=real_total,
        inflation_impact=_inflation_gap(
            kind, nominal_total, real_total, last.balance, real_final_balance
        ),
        final_balance=last.balance,
        real_final_balance=real_final_balance,
        total_contributions=total_contributions,
        final_auxiliary=last.auxiliary,
        truncated=truncated,
    )


def inflation_impact(result: ScheduleResult) -> Decimal:
    """Purchasing power lost to inflation.

    Loans: nominal total paid minus its deflated value (the "inflation
    savings" of repaying in cheaper money). Savings: final balance minus its
    deflated value. Zero when inflation adjustment is off.
    """
    if result.is_empty:
        return ZERO
    return _inflation_gap(
        result.kind,
        result.nominal_total,
        result.real_total,
        result.final_balance,
        result.real_final_balance,
    )


def effective_rate(result: ScheduleResult, principal: Decimal, term_years: Decimal) -> Decimal:
    """All-in annualised cost in percent, fees and insurance included.

        effective = ((total_paid / principal) - 1) / term_years * 100
    """
    if result.is_empty or principal <= ZERO or term_years <= ZERO:
        return ZERO
    return (result.nominal_total / principal - ONE) / term_years * HUNDRED


def _advantage_level(percentage: Decimal) -> str:
    if percentage >= ADVANTAGE_HIGH:
        return "high"
    if percentage >= ADVANTAGE_MEDIUM:
        return "medium"
    if percentage >= ADVANTAGE_LOW:
        return "low"
    return "minimal"


def compound_advantage(result: ScheduleResult) -> Optional[CompoundAdvantage]:
    """Compare the main track with the comparison track of a savings schedule.

    Returns None when the schedule was built without a comparison rate.
    """
    if result.is_empty or result.final_auxiliary is None:
        return None
    advantage = result.final_balance - result.final_auxiliary
    percentage = (
        advantage / result.total_contributions * HUNDRED
        if result.total_contributions > ZERO
        else ZERO
    )
    return CompoundAdvantage(
        compound_total=result.final_balance,
        comparison_total=result.final_auxiliary,
        advantage=advantage,
        percentage=percentage,
        level=_advantage_level(percentage),
    )


def inflation_severity(result: ScheduleResult) -> InflationSeverity:
    """Share of the final balance (savings) or total paid (loans) lost to inflation."""
    base = result.final_balance if result.kind == "savings" else result.nominal_total
    if base <= ZERO:
        return InflationSeverity(percentage=ZERO, level="low")
    percentage = inflation_impact(result) / base * HUNDRED
    if percentage > INFLATION_SEVERITY_HIGH:
        level = "high"
    elif percentage > INFLATION_SEVERITY_MEDIUM:
        level = "medium"
    else:
        level = "low"
    return InflationSeverity(percentage=percentage, level=level)


def loan_to_value(principal: Decimal, price: Decimal) -> Decimal:
    """Financed amount as a percentage of the list price."""
    if price <= ZERO or principal <= ZERO:
        return ZERO
    return principal / price * HUNDRED


def down_payment_ratio(down_payment: Decimal, price: Decimal) -> Decimal:
    """Down payment as a percentage of the list price."""
    if price <= ZERO or down_payment <= ZERO:
        return ZERO
    return down_payment / price * HUNDRED


def total_cost_of_ownership(result: ScheduleResult, down_payment: Decimal) -> Decimal:
    """Cash spent on an asset minus what it is still worth at the end of the loan."""
    residual = result.final_auxiliary if result.final_auxiliary is not None else ZERO
    return down_payment + result.nominal_total - residual


def early_payment_savings(params: "LoanParameters") -> Decimal:
    """Interest avoided thanks to the configured extra payments."""
    from .amortization import build_loan_schedule

    if params.extra_payment_mode == "none" or params.extra_payment <= ZERO:
        return ZERO
    with_extras = build_loan_schedule(params)
    without_extras = build_loan_schedule(replace(params, extra_payment_mode="none"))
    if with_extras.is_empty or without_extras.is_empty:
        return ZERO
    return max(without_extras.total_interest - with_extras.total_interest, ZERO)
