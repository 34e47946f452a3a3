"""Integration tests for the CLI: options through resolution, engine and display."""
import logging
from decimal import Decimal

import pytest
from click.testing import CliRunner

from finance_projector.amortization import build_loan_schedule
from finance_projector.cli import main
from finance_projector.metrics import effective_rate
from finance_projector.resolver import (
    ConsumerLoanInputs,
    MortgageInputs,
    SavingsInputs,
    resolve_consumer_loan,
    resolve_mortgage,
    resolve_savings,
)
from finance_projector.savings import solve_required_contribution


@pytest.fixture
def runner():
    return CliRunner()


# ──────────────────────────────────────────────────────────────────────────────
# Full pipeline tests (no CLI runner, direct function calls)
# ──────────────────────────────────────────────────────────────────────────────

class TestMortgagePipeline:
    """Preset purchase: 4,000,000 financed over 25 years."""

    def test_payment_and_payoff(self):
        resolved = resolve_mortgage(
            MortgageInputs(annual_rate_pct=Decimal("12"), adjust_for_inflation=False)
        )
        result = build_loan_schedule(resolved.params)
        assert abs(result.periodic_payment - Decimal("42134")) < Decimal("10")
        assert result.period_count == 300
        assert result.final_balance == Decimal("0")

    def test_preset_rate_payment(self):
        # 4,000,000 at the 12.5% preset rate
        resolved = resolve_mortgage(MortgageInputs())
        result = build_loan_schedule(resolved.params)
        assert abs(result.periodic_payment - Decimal("43614.17")) < Decimal("0.01")

    def test_inflation_savings_reported(self):
        resolved = resolve_mortgage(MortgageInputs())
        result = build_loan_schedule(resolved.params)
        assert result.real_total < result.nominal_total
        assert result.inflation_impact > Decimal("0")

    def test_extra_payments_shorten_the_loan(self):
        resolved = resolve_mortgage(
            MortgageInputs(extra_payment=Decimal("20000"), extra_payment_mode="monthly")
        )
        result = build_loan_schedule(resolved.params)
        assert result.period_count < 300


class TestConsumerLoanPipeline:
    def test_fees_raise_effective_rate(self):
        plain = resolve_consumer_loan(ConsumerLoanInputs())
        charged = resolve_consumer_loan(
            ConsumerLoanInputs(monthly_fee=Decimal("1000"), insurance_amount=Decimal("10000"))
        )
        plain_rate = effective_rate(build_loan_schedule(plain.params), plain.params.principal, plain.term_years)
        charged_rate = effective_rate(
            build_loan_schedule(charged.params), charged.params.principal, charged.term_years
        )
        assert charged_rate > plain_rate


class TestSavingsPipeline:
    def test_reverse_solve(self):
        resolved = resolve_savings(
            SavingsInputs(
                initial_balance=Decimal("0"),
                target_amount=Decimal("1000000"),
                annual_rate_pct=Decimal("8"),
                term_years=Decimal("10"),
                adjust_for_inflation=False,
            )
        )
        result = solve_required_contribution(resolved.params)
        assert abs(result.periodic_payment - Decimal("5466")) < Decimal("1")


# ──────────────────────────────────────────────────────────────────────────────
# CLI runner tests
# ──────────────────────────────────────────────────────────────────────────────

class TestHelp:
    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("mortgage", "car-loan", "consumer-loan", "savings"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["mortgage", "car-loan", "consumer-loan", "savings"])
    def test_command_help(self, runner, command):
        result = runner.invoke(main, [command, "--help"])
        assert result.exit_code == 0
        assert "--rate" in result.output


class TestMortgageCommand:
    def test_defaults(self, runner):
        result = runner.invoke(main, ["mortgage"])
        assert result.exit_code == 0, result.output
        assert "Mortgage" in result.output
        assert "Monthly payment" in result.output
        assert "Loan-to-value" in result.output
        assert "80.00%" in result.output

    def test_differentiated(self, runner):
        result = runner.invoke(main, ["mortgage", "--policy", "differentiated", "--no-adjust"])
        assert result.exit_code == 0, result.output
        assert "Constant principal part" in result.output
        assert "Inflation savings" not in result.output

    def test_extra_payment_defaults_to_monthly(self, runner):
        result = runner.invoke(main, ["mortgage", "--extra-payment", "20000"])
        assert result.exit_code == 0, result.output
        assert "Interest saved by extra payments" in result.output

    def test_schedule(self, runner):
        result = runner.invoke(main, ["mortgage", "--years", "1", "--schedule"])
        assert result.exit_code == 0, result.output
        assert "Schedule" in result.output

    def test_empty_schedule(self, runner):
        result = runner.invoke(main, ["mortgage", "--price", "100", "--down-payment", "200"])
        assert result.exit_code == 0, result.output
        assert "No data" in result.output

    def test_decimal_comma_accepted(self, runner):
        result = runner.invoke(main, ["mortgage", "--rate", "12,5"])
        assert result.exit_code == 0, result.output


class TestCarLoanCommand:
    def test_defaults(self, runner):
        result = runner.invoke(main, ["car-loan"])
        assert result.exit_code == 0, result.output
        assert "Car Loan" in result.output
        assert "Asset value at end" in result.output
        assert "Total cost of ownership" in result.output


class TestConsumerLoanCommand:
    def test_effective_rate_shown(self, runner):
        result = runner.invoke(main, ["consumer-loan", "--monthly-fee", "500"])
        assert result.exit_code == 0, result.output
        assert "Effective rate" in result.output
        assert "Loan-to-value" not in result.output


class TestSavingsCommand:
    def test_forward(self, runner):
        result = runner.invoke(main, ["savings", "--compare-rate", "4"])
        assert result.exit_code == 0, result.output
        assert "Savings Projection" in result.output
        assert "Advantage" in result.output

    def test_reverse(self, runner):
        result = runner.invoke(
            main,
            ["savings", "--initial", "0", "--target", "1000000", "--years", "10", "--rate", "8", "--no-adjust"],
        )
        assert result.exit_code == 0, result.output
        assert "Required Contribution" in result.output
        assert "5,466" in result.output

    def test_reverse_target_below_initial(self, runner):
        result = runner.invoke(main, ["savings", "--initial", "5000", "--target", "1000"])
        assert result.exit_code == 0, result.output
        assert "No data" in result.output

    def test_schedule_with_comparison(self, runner):
        result = runner.invoke(main, ["savings", "--years", "1", "--compare-rate", "2", "--schedule"])
        assert result.exit_code == 0, result.output
        assert "Schedule" in result.output


class TestErrors:
    def test_invalid_decimal(self, runner):
        result = runner.invoke(main, ["mortgage", "--price", "abc"])
        assert result.exit_code == 1
        assert "Invalid value for --price" in result.output

    @pytest.mark.parametrize("args,option", [
        (["mortgage", "--rate", "nan"], "--rate"),
        (["savings", "--years", "inf"], "--years"),
        (["car-loan", "--price", "Infinity"], "--price"),
    ])
    def test_non_finite_value(self, runner, args, option):
        result = runner.invoke(main, args)
        assert result.exit_code == 1
        assert not isinstance(result.exception, ArithmeticError)
        assert f"Invalid value for {option}" in result.output

    def test_negative_rate(self, runner):
        result = runner.invoke(main, ["savings", "--rate", "-3"])
        assert result.exit_code == 1
        assert "Parameter error" in result.output

    def test_unknown_policy_rejected_by_click(self, runner):
        result = runner.invoke(main, ["mortgage", "--policy", "balloon"])
        assert result.exit_code == 2


class TestLogging:
    def test_log_level_option(self, runner):
        result = runner.invoke(main, ["--log-level", "DEBUG", "consumer-loan"])
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.DEBUG

    def test_log_level_from_environment(self, runner):
        result = runner.invoke(main, ["savings"], env={"FINANCE_PROJECTOR_LOG_LEVEL": "ERROR"})
        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.ERROR
