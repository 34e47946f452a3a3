"""Schedule value types shared by the amortization and savings engines.

All monetary values use decimal.Decimal and are kept at full precision.
Rounding (ROUND_HALF_UP to 2 decimal places) is a presentation concern and
only happens through round_money().
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import CENT, ZERO, ScheduleKind


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PeriodRecord:
    period: int
    payment: Decimal               # nominal cash flow of the period
    principal_component: Decimal   # scheduled principal (loans) / contribution (savings)
    interest_component: Decimal
    fees_component: Decimal        # insurance + fees, always zero for savings
    extra_payment: Decimal         # early repayment on top of the schedule (loans)
    balance: Decimal               # ending balance
    real_value: Decimal            # deflated payment (loans) / deflated balance (savings)
    auxiliary: Optional[Decimal] = None  # asset value (car loans) / comparison balance (savings)


@dataclass(frozen=True)
class ScheduleResult:
    """A complete schedule plus the totals reduced from it.

    For loans ``nominal_total`` is everything paid, ``real_total`` the same
    payments deflated. For savings ``nominal_total`` is the sum of periodic
    contributions, ``real_total`` those contributions deflated, and
    ``total_contributions`` adds the initial balance.

    ``truncated`` is set when the loop was stopped by the runaway guard before
    the balance reached zero; the totals are then not a complete repayment.
    """
    kind: ScheduleKind
    records: tuple[PeriodRecord, ...]
    periodic_payment: Decimal
    nominal_total: Decimal
    total_interest: Decimal
    total_fees: Decimal
    total_principal: Decimal
    real_total: Decimal
    inflation_impact: Decimal
    final_balance: Decimal
    real_final_balance: Decimal
    total_contributions: Decimal = ZERO
    final_auxiliary: Optional[Decimal] = None
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def period_count(self) -> int:
        return len(self.records)

    def balances(self) -> list[Decimal]:
        return [record.balance for record in self.records]


def empty_result(kind: ScheduleKind) -> ScheduleResult:
    """The "no data" result returned for invalid inputs: no records, all zeros."""
    return ScheduleResult(
        kind=kind,
        records=(),
        periodic_payment=ZERO,
        nominal_total=ZERO,
        total_interest=ZERO,
        total_fees=ZERO,
        total_principal=ZERO,
        real_total=ZERO,
        inflation_impact=ZERO,
        final_balance=ZERO,
        real_final_balance=ZERO,
    )
