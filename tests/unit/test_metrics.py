"""Unit tests for metrics.py"""
from decimal import Decimal

import pytest

from finance_projector.amortization import LoanParameters, build_loan_schedule
from finance_projector.metrics import (
    compound_advantage,
    down_payment_ratio,
    early_payment_savings,
    effective_rate,
    inflation_impact,
    inflation_severity,
    loan_to_value,
    summarize,
    total_cost_of_ownership,
)
from finance_projector.savings import SavingsParameters, build_savings_schedule
from finance_projector.schedule import empty_result

ZERO = Decimal("0")


def _loan(**kwargs) -> LoanParameters:
    base = dict(principal=Decimal("100000"), annual_rate=Decimal("0.12"), term_months=60)
    base.update(kwargs)
    return LoanParameters(**base)


def _savings(**kwargs) -> SavingsParameters:
    base = dict(
        initial_balance=Decimal("100000"),
        annual_rate=Decimal("0.08"),
        term_years=Decimal("10"),
        monthly_contribution=Decimal("10000"),
    )
    base.update(kwargs)
    return SavingsParameters(**base)


class TestSummarize:
    def test_empty_records(self):
        result = summarize("loan", [], periodic_payment=Decimal("100"))
        assert result.is_empty
        assert result.nominal_total == ZERO
        assert result.periodic_payment == ZERO

    def test_loan_totals(self):
        result = build_loan_schedule(_loan())
        assert result.nominal_total == sum(r.payment for r in result.records)
        assert result.total_interest == sum(r.interest_component for r in result.records)
        assert result.real_total == result.nominal_total
        assert result.total_contributions == ZERO


class TestEffectiveRate:
    def test_positive_for_interest_bearing_loan(self):
        result = build_loan_schedule(_loan())
        rate = effective_rate(result, Decimal("100000"), Decimal("5"))
        expected = (result.nominal_total / Decimal("100000") - 1) / 5 * 100
        assert rate == expected
        assert rate > ZERO

    def test_zero_rate_loan(self):
        result = build_loan_schedule(_loan(annual_rate=ZERO))
        assert abs(effective_rate(result, Decimal("100000"), Decimal("5"))) < Decimal("1e-12")

    def test_fees_raise_effective_rate(self):
        plain = build_loan_schedule(_loan())
        with_fees = build_loan_schedule(_loan(monthly_fee=Decimal("50")))
        assert effective_rate(with_fees, Decimal("100000"), Decimal("5")) > effective_rate(
            plain, Decimal("100000"), Decimal("5")
        )

    @pytest.mark.parametrize("principal,years", [
        (Decimal("0"), Decimal("5")),
        (Decimal("100000"), Decimal("0")),
    ])
    def test_invalid_inputs(self, principal, years):
        result = build_loan_schedule(_loan())
        assert effective_rate(result, principal, years) == ZERO

    def test_empty_result(self):
        assert effective_rate(empty_result("loan"), Decimal("100000"), Decimal("5")) == ZERO


class TestInflationImpact:
    def test_loan_repaid_in_cheaper_money(self):
        result = build_loan_schedule(
            _loan(inflation_rate=Decimal("0.065"), adjust_for_inflation=True)
        )
        impact = inflation_impact(result)
        assert impact > ZERO
        assert impact == result.nominal_total - result.real_total

    def test_savings_lose_purchasing_power(self):
        result = build_savings_schedule(
            _savings(inflation_rate=Decimal("0.065"), adjust_for_inflation=True)
        )
        assert inflation_impact(result) == result.final_balance - result.real_final_balance

    def test_zero_without_adjustment(self):
        result = build_loan_schedule(_loan(inflation_rate=Decimal("0.065")))
        assert inflation_impact(result) == ZERO

    def test_empty(self):
        assert inflation_impact(empty_result("savings")) == ZERO


class TestInflationSeverity:
    def test_low_without_adjustment(self):
        severity = inflation_severity(build_savings_schedule(_savings()))
        assert severity.percentage == ZERO
        assert severity.level == "low"

    def test_high_for_long_horizon(self):
        result = build_savings_schedule(
            _savings(
                term_years=Decimal("30"),
                inflation_rate=Decimal("0.10"),
                adjust_for_inflation=True,
            )
        )
        severity = inflation_severity(result)
        assert severity.percentage > Decimal("30")
        assert severity.level == "high"

    def test_empty_is_low(self):
        assert inflation_severity(empty_result("loan")).level == "low"


class TestCompoundAdvantage:
    def test_none_without_comparison(self):
        assert compound_advantage(build_savings_schedule(_savings())) is None

    def test_none_for_empty(self):
        assert compound_advantage(empty_result("savings")) is None

    def test_equal_rates_are_minimal(self):
        result = build_savings_schedule(_savings(comparison_rate=Decimal("0.08")))
        adv = compound_advantage(result)
        assert adv.advantage == ZERO
        assert adv.level == "minimal"

    def test_high_advantage(self):
        result = build_savings_schedule(
            _savings(
                annual_rate=Decimal("0.15"),
                term_years=Decimal("30"),
                comparison_rate=ZERO,
            )
        )
        adv = compound_advantage(result)
        assert adv.compound_total == result.final_balance
        assert adv.comparison_total == result.total_contributions
        assert adv.percentage >= Decimal("50")
        assert adv.level == "high"

    def test_percentage_of_contributions(self):
        result = build_savings_schedule(_savings(comparison_rate=Decimal("0.04")))
        adv = compound_advantage(result)
        assert adv.advantage == result.final_balance - result.final_auxiliary
        assert adv.percentage == adv.advantage / result.total_contributions * 100


class TestPurchaseRatios:
    def test_loan_to_value(self):
        assert loan_to_value(Decimal("4000000"), Decimal("5000000")) == Decimal("80")

    def test_down_payment_ratio(self):
        assert down_payment_ratio(Decimal("1000000"), Decimal("5000000")) == Decimal("20")

    @pytest.mark.parametrize("fn", [loan_to_value, down_payment_ratio])
    def test_zero_price(self, fn):
        assert fn(Decimal("1000"), ZERO) == ZERO


class TestTotalCostOfOwnership:
    def test_residual_value_subtracted(self):
        params = LoanParameters.from_purchase(
            Decimal("2000000"),
            Decimal("400000"),
            annual_rate=Decimal("0.155"),
            term_months=60,
            depreciation_rate=Decimal("0.15"),
        )
        result = build_loan_schedule(params)
        tco = total_cost_of_ownership(result, Decimal("400000"))
        assert result.final_auxiliary is not None
        assert tco == Decimal("400000") + result.nominal_total - result.final_auxiliary

    def test_without_asset(self):
        result = build_loan_schedule(_loan())
        assert total_cost_of_ownership(result, ZERO) == result.nominal_total


class TestEarlyPaymentSavings:
    def test_no_extras(self):
        assert early_payment_savings(_loan()) == ZERO

    def test_monthly_extra_saves_interest(self):
        params = _loan(extra_payment=Decimal("1000"), extra_payment_mode="monthly")
        saved = early_payment_savings(params)
        baseline = build_loan_schedule(_loan())
        accelerated = build_loan_schedule(params)
        assert saved > ZERO
        assert saved == baseline.total_interest - accelerated.total_interest
