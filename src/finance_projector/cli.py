"""Command-line front end — click entry point + rich result display.

One subcommand per calculator:
  mortgage, car-loan, consumer-loan, savings (reverse mode with --target).

Every option is optional; anything left out falls back to the calculator
preset. Rates are entered as percentages (12.5 for 12.5%), terms in years.
"""
from __future__ import annotations

import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .amortization import build_loan_schedule
from .config import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV_VAR, VALID_COMPOUNDING_FREQUENCIES, VALID_POLICIES
from .metrics import (
    compound_advantage, down_payment_ratio, early_payment_savings, effective_rate,
    inflation_severity, loan_to_value, total_cost_of_ownership,
)
from .resolver import (
    CarLoanInputs, ConsumerLoanInputs, MortgageInputs, ResolvedLoan, ResolvedSavings,
    SavingsInputs, resolve_car_loan, resolve_consumer_loan, resolve_mortgage, resolve_savings,
)
from .savings import build_savings_schedule, solve_required_contribution
from .schedule import ScheduleResult, round_money

console = Console()
err_console = Console(stderr=True, style="bold red")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# ──────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────────────────────────────────────

def _fmt_money(value: Decimal) -> str:
    return f"{round_money(value):,.2f}"


def _fmt_pct(value: Decimal) -> str:
    """Format a value that is already a percentage."""
    return f"{float(value):.2f}%"


def _fmt_rate(value: Decimal) -> str:
    """Format an annual fraction as a percentage."""
    return f"{float(value) * 100:.2f}%"


def _fmt_months(n: int) -> str:
    years, months = divmod(n, 12)
    if months == 0:
        return f"{n} months ({years} years)"
    return f"{n} months ({years}y {months}m)"


def _parse_decimal(raw: Optional[str], name: str) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        value = Decimal(raw.replace(",", ".").replace(" ", ""))
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        err_console.print(f"Invalid value for --{name}: '{raw}'")
        sys.exit(1)
    return value


# ──────────────────────────────────────────────────────────────────────────────
# Result display
# ──────────────────────────────────────────────────────────────────────────────

def _summary_table() -> Table:
    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")
    return t


def _warn_if_truncated(result: ScheduleResult) -> None:
    if result.truncated:
        console.print(Panel(
            "[bold yellow]Schedule truncated[/bold yellow]\n"
            f"The balance was not repaid within {result.period_count} periods. "
            "The totals below are incomplete; check the parameter combination.",
            expand=False,
        ))


def _show_empty(title: str) -> None:
    console.print(Panel(
        f"[bold]{title}[/bold]\nNo data: the amount to finance and the term must both be positive.",
        expand=False,
    ))


def display_loan(
    title: str,
    resolved: ResolvedLoan,
    result: ScheduleResult,
    *,
    show_ltv: bool = True,
    show_effective_rate: bool = False,
    show_asset: bool = False,
) -> None:
    if result.is_empty:
        _show_empty(title)
        return

    params = resolved.params
    console.print()
    console.print(Panel(
        f"[bold green]{title}[/bold green] — {params.policy} payments, "
        f"{_fmt_rate(params.annual_rate)} over {_fmt_months(params.term_months)}",
        expand=False,
    ))
    _warn_if_truncated(result)

    first = result.records[0]
    t = _summary_table()
    t.add_row("Amount financed", _fmt_money(params.principal))
    if params.policy == "annuity":
        t.add_row("Monthly payment (P+I)", _fmt_money(result.periodic_payment))
    else:
        t.add_row("Constant principal part", _fmt_money(result.periodic_payment))
    t.add_row("First payment (all-in)", _fmt_money(first.payment))
    t.add_row("Payments made", str(result.period_count))
    t.add_row("Total paid", _fmt_money(result.nominal_total))
    t.add_row("Total interest", _fmt_money(result.total_interest))
    t.add_row("Insurance and fees", _fmt_money(result.total_fees))
    if params.adjust_for_inflation:
        t.add_row("Total paid (real terms)", _fmt_money(result.real_total))
        t.add_row("Inflation savings", _fmt_money(result.inflation_impact))
    if params.extra_payment_mode != "none":
        t.add_row("Interest saved by extra payments", _fmt_money(early_payment_savings(params)))
    if show_ltv:
        t.add_row("Loan-to-value", _fmt_pct(loan_to_value(params.principal, resolved.price)))
        t.add_row("Down payment share", _fmt_pct(down_payment_ratio(resolved.down_payment, resolved.price)))
    if show_effective_rate:
        t.add_row(
            "Effective rate (per year)",
            _fmt_pct(effective_rate(result, params.principal, resolved.term_years)),
        )
    if show_asset and result.final_auxiliary is not None:
        t.add_row("Asset value at end", _fmt_money(result.final_auxiliary))
        t.add_row("Total cost of ownership", _fmt_money(total_cost_of_ownership(result, resolved.down_payment)))
    console.print(t)


def display_savings(resolved: ResolvedSavings, result: ScheduleResult) -> None:
    title = "Required Contribution" if resolved.reverse else "Savings Projection"
    if result.is_empty:
        console.print(Panel(
            f"[bold]{title}[/bold]\nNo data: the horizon must be positive"
            + (" and the target above the initial balance." if resolved.reverse else "."),
            expand=False,
        ))
        return

    params = resolved.params
    console.print()
    console.print(Panel(
        f"[bold green]{title}[/bold green] — {_fmt_rate(params.annual_rate)} a year, "
        f"compounded {params.compounding_frequency}x, {_fmt_months(params.periods)}",
        expand=False,
    ))

    t = _summary_table()
    if resolved.reverse:
        t.add_row("Target amount", _fmt_money(params.target_amount))
        t.add_row("Required monthly contribution", _fmt_money(result.periodic_payment))
    else:
        t.add_row("Monthly contribution", _fmt_money(params.monthly_contribution))
    t.add_row("Last contribution", _fmt_money(result.records[-1].payment))
    t.add_row("Final balance", _fmt_money(result.final_balance))
    t.add_row("Total contributions", _fmt_money(result.total_contributions))
    t.add_row("Total interest", _fmt_money(result.total_interest))
    if params.adjust_for_inflation:
        severity = inflation_severity(result)
        t.add_row("Final balance (real terms)", _fmt_money(result.real_final_balance))
        t.add_row("Lost to inflation", f"{_fmt_money(result.inflation_impact)} ({_fmt_pct(severity.percentage)}, {severity.level})")
    advantage = compound_advantage(result)
    if advantage is not None:
        t.add_row("Comparison track balance", _fmt_money(advantage.comparison_total))
        t.add_row("Advantage", f"{_fmt_money(advantage.advantage)} ({_fmt_pct(advantage.percentage)}, {advantage.level})")
    console.print(t)


def display_schedule(result: ScheduleResult) -> None:
    loan = result.kind == "loan"
    t = Table(title="Schedule", box=box.MINIMAL_HEAVY_HEAD)
    columns = (
        ("Period", "Payment", "Principal", "Interest", "Fees", "Extra", "Balance", "Real")
        if loan
        else ("Period", "Contribution", "Interest", "Balance", "Real")
    )
    for col in columns:
        t.add_column(col, justify="right")
    if result.final_auxiliary is not None:
        t.add_column("Asset value" if loan else "Comparison", justify="right")

    for row in result.records:
        if loan:
            cells = [
                str(row.period),
                _fmt_money(row.payment),
                _fmt_money(row.principal_component),
                _fmt_money(row.interest_component),
                _fmt_money(row.fees_component),
                _fmt_money(row.extra_payment),
                _fmt_money(row.balance),
                _fmt_money(row.real_value),
            ]
        else:
            cells = [
                str(row.period),
                _fmt_money(row.payment),
                _fmt_money(row.interest_component),
                _fmt_money(row.balance),
                _fmt_money(row.real_value),
            ]
        if result.final_auxiliary is not None:
            cells.append(_fmt_money(row.auxiliary))
        t.add_row(*cells)
    console.print(t)


# ──────────────────────────────────────────────────────────────────────────────
# Click entry point
# ──────────────────────────────────────────────────────────────────────────────

def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_or_exit(resolve, inputs):
    try:
        return resolve(inputs)
    except ValueError as exc:
        err_console.print(f"Parameter error: {exc}")
        sys.exit(1)


_adjust_option = click.option(
    "--adjust/--no-adjust", "adjust", default=True, show_default=True,
    help="Express cash flows in today's money using the inflation rate",
)
_schedule_option = click.option(
    "--schedule", "show_schedule", is_flag=True, help="Print the period-by-period schedule",
)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=DEFAULT_LOG_LEVEL,
    envvar=LOG_LEVEL_ENV_VAR,
    show_default=True,
    help=f"Logging verbosity (also read from {LOG_LEVEL_ENV_VAR})",
)
def main(log_level: str) -> None:
    """Finance Projector — loan and savings calculators."""
    _configure_logging(log_level)


@main.command()
@click.option("--price", type=str, default=None, help="Property price")
@click.option("--down-payment", type=str, default=None, help="Down payment")
@click.option("--years", type=str, default=None, help="Loan term in years")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--policy", type=click.Choice(sorted(VALID_POLICIES)), default=None, help="Payment policy")
@click.option("--insurance", type=str, default=None, help="Yearly insurance rate on the balance, in percent")
@click.option("--extra-payment", type=str, default=None, help="Extra principal payment")
@click.option("--extra-mode", type=click.Choice(["none", "monthly", "lump"]), default=None,
              help="Pay the extra amount every month or once (default: monthly when an amount is given)")
@click.option("--extra-period", type=int, default=12, show_default=True, help="Period of a lump extra payment")
@click.option("--inflation", type=str, default=None, help="Annual inflation in percent")
@_adjust_option
@_schedule_option
def mortgage(
    price: Optional[str],
    down_payment: Optional[str],
    years: Optional[str],
    rate: Optional[str],
    policy: Optional[str],
    insurance: Optional[str],
    extra_payment: Optional[str],
    extra_mode: Optional[str],
    extra_period: int,
    inflation: Optional[str],
    adjust: bool,
    show_schedule: bool,
) -> None:
    """Mortgage: annuity or differentiated payments with optional extra payments."""
    extra = _parse_decimal(extra_payment, "extra-payment")
    if extra_mode is None:
        extra_mode = "monthly" if extra else "none"
    inputs = MortgageInputs(
        property_price=_parse_decimal(price, "price"),
        down_payment=_parse_decimal(down_payment, "down-payment"),
        term_years=_parse_decimal(years, "years"),
        annual_rate_pct=_parse_decimal(rate, "rate"),
        policy=policy,
        insurance_pct=_parse_decimal(insurance, "insurance"),
        extra_payment=extra or Decimal("0"),
        extra_payment_mode=extra_mode,
        extra_payment_period=extra_period,
        inflation_pct=_parse_decimal(inflation, "inflation"),
        adjust_for_inflation=adjust,
    )
    resolved = _resolve_or_exit(resolve_mortgage, inputs)
    result = build_loan_schedule(resolved.params)
    display_loan("Mortgage", resolved, result)
    if show_schedule and not result.is_empty:
        display_schedule(result)


@main.command("car-loan")
@click.option("--price", type=str, default=None, help="Car price")
@click.option("--down-payment", type=str, default=None, help="Down payment")
@click.option("--trade-in", type=str, default=None, help="Trade-in value of the current car")
@click.option("--years", type=str, default=None, help="Loan term in years")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--insurance", type=str, default=None, help="Yearly insurance rate on the car value, in percent")
@click.option("--with-insurance/--without-insurance", "include_insurance", default=True, show_default=True)
@click.option("--depreciation", type=str, default=None, help="Yearly depreciation in percent")
@click.option("--inflation", type=str, default=None, help="Annual inflation in percent")
@_adjust_option
@_schedule_option
def car_loan(
    price: Optional[str],
    down_payment: Optional[str],
    trade_in: Optional[str],
    years: Optional[str],
    rate: Optional[str],
    insurance: Optional[str],
    include_insurance: bool,
    depreciation: Optional[str],
    inflation: Optional[str],
    adjust: bool,
    show_schedule: bool,
) -> None:
    """Car loan: insurance follows the depreciating car value."""
    inputs = CarLoanInputs(
        car_price=_parse_decimal(price, "price"),
        down_payment=_parse_decimal(down_payment, "down-payment"),
        trade_in=_parse_decimal(trade_in, "trade-in"),
        term_years=_parse_decimal(years, "years"),
        annual_rate_pct=_parse_decimal(rate, "rate"),
        insurance_pct=_parse_decimal(insurance, "insurance"),
        include_insurance=include_insurance,
        depreciation_pct=_parse_decimal(depreciation, "depreciation"),
        inflation_pct=_parse_decimal(inflation, "inflation"),
        adjust_for_inflation=adjust,
    )
    resolved = _resolve_or_exit(resolve_car_loan, inputs)
    result = build_loan_schedule(resolved.params)
    display_loan("Car Loan", resolved, result, show_asset=True)
    if show_schedule and not result.is_empty:
        display_schedule(result)


@main.command("consumer-loan")
@click.option("--amount", type=str, default=None, help="Loan amount")
@click.option("--years", type=str, default=None, help="Loan term in years")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--policy", type=click.Choice(sorted(VALID_POLICIES)), default=None, help="Payment policy")
@click.option("--monthly-fee", type=str, default=None, help="Flat fee added to every payment")
@click.option("--insurance-amount", type=str, default=None, help="One-time insurance charged with the first payment")
@click.option("--inflation", type=str, default=None, help="Annual inflation in percent")
@_adjust_option
@_schedule_option
def consumer_loan(
    amount: Optional[str],
    years: Optional[str],
    rate: Optional[str],
    policy: Optional[str],
    monthly_fee: Optional[str],
    insurance_amount: Optional[str],
    inflation: Optional[str],
    adjust: bool,
    show_schedule: bool,
) -> None:
    """Consumer loan: fees and insurance included in the effective rate."""
    inputs = ConsumerLoanInputs(
        loan_amount=_parse_decimal(amount, "amount"),
        term_years=_parse_decimal(years, "years"),
        annual_rate_pct=_parse_decimal(rate, "rate"),
        policy=policy,
        monthly_fee=_parse_decimal(monthly_fee, "monthly-fee"),
        insurance_amount=_parse_decimal(insurance_amount, "insurance-amount"),
        inflation_pct=_parse_decimal(inflation, "inflation"),
        adjust_for_inflation=adjust,
    )
    resolved = _resolve_or_exit(resolve_consumer_loan, inputs)
    result = build_loan_schedule(resolved.params)
    display_loan("Consumer Loan", resolved, result, show_ltv=False, show_effective_rate=True)
    if show_schedule and not result.is_empty:
        display_schedule(result)


@main.command()
@click.option("--initial", type=str, default=None, help="Initial balance")
@click.option("--contribution", type=str, default=None, help="Monthly contribution")
@click.option("--target", type=str, default=None, help="Target amount (solves for the contribution)")
@click.option("--years", type=str, default=None, help="Horizon in years")
@click.option("--rate", type=str, default=None, help="Annual return in percent")
@click.option("--frequency", type=click.Choice([str(f) for f in sorted(VALID_COMPOUNDING_FREQUENCIES)]),
              default=None, help="Compounding frequency per year")
@click.option("--inflation", type=str, default=None, help="Annual inflation in percent")
@click.option("--compare-rate", type=str, default=None, help="Annual rate of the comparison track, in percent")
@_adjust_option
@_schedule_option
def savings(
    initial: Optional[str],
    contribution: Optional[str],
    target: Optional[str],
    years: Optional[str],
    rate: Optional[str],
    frequency: Optional[str],
    inflation: Optional[str],
    compare_rate: Optional[str],
    adjust: bool,
    show_schedule: bool,
) -> None:
    """Savings: project a balance, or solve the contribution for a target."""
    inputs = SavingsInputs(
        initial_balance=_parse_decimal(initial, "initial"),
        monthly_contribution=_parse_decimal(contribution, "contribution"),
        target_amount=_parse_decimal(target, "target"),
        term_years=_parse_decimal(years, "years"),
        annual_rate_pct=_parse_decimal(rate, "rate"),
        compounding_frequency=int(frequency) if frequency is not None else None,
        inflation_pct=_parse_decimal(inflation, "inflation"),
        adjust_for_inflation=adjust,
        comparison_rate_pct=_parse_decimal(compare_rate, "compare-rate"),
    )
    resolved = _resolve_or_exit(resolve_savings, inputs)
    if resolved.reverse:
        result = solve_required_contribution(resolved.params)
    else:
        result = build_savings_schedule(resolved.params)
    display_savings(resolved, result)
    if show_schedule and not result.is_empty:
        display_schedule(result)
