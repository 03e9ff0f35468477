"""
Tests for the horizon engine.

This module tests passive income, obligations, the yearly series and the
crossover search.
"""

from datetime import date

import numpy as np
import pytest

from finhorizon.models.amortization import AmortizationCalculator
from finhorizon.models.horizon import (
    MAX_CROSSOVER_YEARS,
    HorizonSeries,
    build_horizon_series,
    find_crossover_year,
    monthly_income_at_year,
    monthly_income_for_asset,
    net_worth_at_year,
    summarize,
    total_obligations_at_month,
)
from finhorizon.models.records import FundAsset, HorizonSettings
from finhorizon.models.valuation import projected_value


def make_fund(as_of, amount=100000, rate=0):
    return FundAsset(
        id="fund",
        acquisition_date=as_of,
        amount_invested=amount,
        expected_annual_return=rate,
    )


class TestIncome:
    """Test passive income calculations."""

    def test_fund_withdrawal_rate(self, as_of):
        """Test 100000 at the 4% fund rate."""
        income = monthly_income_for_asset(make_fund(as_of), 0, as_of=as_of)
        assert round(income, 2) == 333.33

    def test_stock_and_crypto_rates(self, stock, crypto, as_of):
        """Test the stock and crypto default rates."""
        assert monthly_income_for_asset(stock, 3, as_of=as_of) == pytest.approx(
            projected_value(stock, 3, as_of) * 0.03 / 12
        )
        assert monthly_income_for_asset(crypto, 0, as_of=as_of) == pytest.approx(
            projected_value(crypto, 0, as_of) * 0.02 / 12
        )

    def test_rental_income_growth(self, rental, as_of):
        """Test that rent grows at the rental growth rate."""
        settings = HorizonSettings(rental_growth_rate=2)

        assert monthly_income_for_asset(rental, 0, settings, as_of) == 1200
        assert monthly_income_for_asset(rental, 5, settings, as_of) == pytest.approx(
            1200 * 1.02**5
        )

    def test_property_without_rent(self, rental, as_of):
        """Test that property value alone produces no income."""
        vacant = rental.model_copy(update={"monthly_rental_income": None})
        assert monthly_income_for_asset(vacant, 10, as_of=as_of) == 0.0

    def test_income_breakdown(self, stock, fund, rental, crypto, as_of):
        """Test that class totals add up to the total."""
        income = monthly_income_at_year([stock, fund, rental, crypto], 2, as_of=as_of)
        by_class = income.by_class

        assert by_class.real_estate == 1200
        assert income.total == pytest.approx(
            by_class.real_estate + by_class.fund + by_class.stock + by_class.crypto
        )
        assert by_class.fund == pytest.approx(
            monthly_income_for_asset(fund, 2, as_of=as_of)
        )


class TestObligations:
    """Test monthly obligations."""

    def test_baseline_expense_only(self, as_of):
        """Test obligations without liabilities."""
        obligations = total_obligations_at_month(
            [], 0, HorizonSettings(monthly_baseline_expense=2500), as_of
        )

        assert obligations.total == 2500
        assert obligations.loan_total == 0

    def test_loan_payments_and_split(self, mortgage, serial_loan, as_of):
        """Test that loan payments and their split are summed."""
        settings = HorizonSettings(monthly_baseline_expense=1000)
        obligations = total_obligations_at_month(
            [mortgage, serial_loan], 0, settings, as_of
        )

        mortgage_payment = AmortizationCalculator.fixed_payment(300000, 3.6, 360)
        assert obligations.loan_total == pytest.approx(mortgage_payment + 1480)
        assert obligations.interest == pytest.approx(900 + 480)
        assert obligations.total == pytest.approx(obligations.loan_total + 1000)

    def test_paid_off_loan_drops_out(self, serial_loan, as_of):
        """Test that a loan past its term adds nothing."""
        obligations = total_obligations_at_month([serial_loan], 120, as_of=as_of)
        assert obligations.total == 0

    def test_interest_only_setting(self, mortgage, as_of):
        """Test that the interest-only toggle applies to eligible loans."""
        eligible = mortgage.model_copy(update={"interest_only_eligible": True})
        settings = HorizonSettings(interest_only_enabled=True)

        obligations = total_obligations_at_month([eligible], 60, settings, as_of)

        assert obligations.total == pytest.approx(900)
        assert obligations.principal == 0

    def test_rate_override_setting(self, mortgage, as_of):
        """Test that the rate override flows into payments."""
        settings = HorizonSettings(interest_rate_override=0)
        obligations = total_obligations_at_month([mortgage], 0, settings, as_of)

        assert obligations.interest == 0
        assert obligations.total == pytest.approx(300000 / 360)

    def test_refinancing_setting(self, mortgage, as_of):
        """Test that the refinancing toggle re-amortizes eligible loans."""
        eligible = mortgage.model_copy(update={"can_be_refinanced": True})
        settings = HorizonSettings(refinancing_enabled=True, monthly_baseline_expense=500)

        obligations = total_obligations_at_month([eligible], 60, settings, as_of)
        refinanced = AmortizationCalculator.refinanced_payment(eligible, 60, as_of=as_of)
        regular = AmortizationCalculator.payment_at(eligible, 60, as_of=as_of)

        assert obligations.loan_total == pytest.approx(refinanced.total)
        assert obligations.total == pytest.approx(refinanced.total + 500)
        assert obligations.total < regular.total + 500

    def test_refinancing_with_rate_override(self, mortgage, as_of):
        """Test that refinancing uses the override rate."""
        eligible = mortgage.model_copy(update={"can_be_refinanced": True})
        settings = HorizonSettings(
            refinancing_enabled=True,
            interest_rate_override=2,
            monthly_baseline_expense=500,
        )

        obligations = total_obligations_at_month([eligible], 60, settings, as_of)
        balance = AmortizationCalculator.balance_at_month(eligible, 60, 2, as_of)

        assert obligations.total == pytest.approx(
            AmortizationCalculator.fixed_payment(balance, 2, 360) + 500
        )
        assert obligations.interest == pytest.approx(balance * 0.02 / 12)


class TestNetWorth:
    """Test net worth projection."""

    def test_assets_minus_balances(self, fund, mortgage, as_of):
        """Test net worth at year zero and later."""
        for years in (0, 10):
            expected = projected_value(fund, years, as_of) - (
                AmortizationCalculator.balance_at_month(
                    mortgage, years * 12, as_of=as_of
                )
            )
            assert net_worth_at_year([fund], [mortgage], years, as_of) == pytest.approx(
                expected
            )


class TestHorizonSeries:
    """Test the yearly horizon series."""

    def test_series_length_and_years(self, stock, mortgage, as_of):
        """Test that the series covers year 0 through max_years."""
        series = build_horizon_series([stock], [mortgage], 10, as_of=as_of)

        assert len(series) == 11
        assert [p.year for p in series.points] == list(range(11))
        assert series.points[0].calendar_year == 2025
        assert series.points[-1].calendar_year == 2035

    def test_point_consistency(self, stock, fund, rental, mortgage, as_of):
        """Test that each point's parts add up."""
        settings = HorizonSettings(monthly_baseline_expense=500)
        series = build_horizon_series(
            [stock, fund, rental], [mortgage], 5, settings, as_of
        )

        for point in series.points:
            assert point.surplus == pytest.approx(
                point.monthly_income - point.monthly_obligations, abs=0.02
            )
            assert point.monthly_obligations == pytest.approx(
                point.loan_interest + point.loan_principal + point.baseline_expense,
                abs=0.02,
            )
            assert point.baseline_expense == 500

    def test_series_with_refinancing(self, mortgage, as_of):
        """Test that series points carry refinanced payments."""
        eligible = mortgage.model_copy(update={"can_be_refinanced": True})
        settings = HorizonSettings(refinancing_enabled=True)
        series = build_horizon_series([], [eligible], 5, settings, as_of)

        for point in series.points:
            refinanced = AmortizationCalculator.refinanced_payment(
                eligible, point.year * 12, as_of=as_of
            )
            assert point.monthly_obligations == pytest.approx(
                refinanced.total, abs=0.01
            )

    def test_series_is_rebuilt(self, stock, as_of):
        """Test that every call returns a fresh series."""
        first = build_horizon_series([stock], [], 3, as_of=as_of)
        second = build_horizon_series([stock], [], 3, as_of=as_of)

        assert first == second
        assert first is not second

    def test_to_arrays(self, stock, as_of):
        """Test the numpy column view."""
        series = build_horizon_series([stock], [], 4, as_of=as_of)
        arrays = series.to_arrays()

        assert arrays["year"].shape == (5,)
        assert np.all(np.diff(arrays["net_worth"]) > 0)
        np.testing.assert_allclose(
            arrays["monthly_income"], [p.monthly_income for p in series.points]
        )

    def test_first_crossover(self, as_of):
        """Test locating the first crossing in a series."""
        settings = HorizonSettings(monthly_baseline_expense=500)
        series = build_horizon_series(
            [make_fund(as_of, rate=10)], [], 10, settings, as_of
        )

        crossover = series.first_crossover()

        assert crossover is not None
        assert crossover.year == 5

    def test_no_crossover_in_empty_series(self):
        """Test that an empty series has no crossover."""
        assert HorizonSeries().first_crossover() is None


class TestSummary:
    """Test the horizon summary and crossover search."""

    def test_already_crossed(self, as_of):
        """Test income already covering obligations."""
        settings = HorizonSettings(monthly_baseline_expense=300)
        summary = summarize([make_fund(as_of)], [], settings, as_of)

        assert summary.is_already_crossed
        assert summary.years_to_crossover == 0
        assert summary.crossover_date == as_of
        assert summary.current_income == 333.33
        assert summary.progress_pct == pytest.approx(111.11, abs=0.01)

    def test_crossover_in_future(self, as_of):
        """Test a crossover found by the yearly search."""
        settings = HorizonSettings(monthly_baseline_expense=500)
        summary = summarize([make_fund(as_of, rate=10)], [], settings, as_of)

        assert not summary.is_already_crossed
        assert summary.years_to_crossover == 5
        assert summary.crossover_date == date(2030, 1, 1)
        assert summary.current_surplus == pytest.approx(333.33 - 500, abs=0.01)

    def test_no_crossover(self, as_of):
        """Test income that never covers obligations."""
        settings = HorizonSettings(monthly_baseline_expense=1000)
        summary = summarize([make_fund(as_of)], [], settings, as_of)

        assert summary.years_to_crossover is None
        assert summary.crossover_date is None
        assert summary.progress_pct == pytest.approx(33.33, abs=0.01)
        assert find_crossover_year([make_fund(as_of)], [], settings, as_of) is None

    def test_crossover_search_limit(self, as_of):
        """Test that a crossover beyond the search limit is not reported."""
        settings = HorizonSettings(monthly_baseline_expense=500)
        slow = make_fund(as_of, rate=0.5)

        year = find_crossover_year([slow], [], settings, as_of)

        # 1.005 ** 50 leaves income well short of the expense
        assert MAX_CROSSOVER_YEARS == 50
        assert year is None

    def test_crossover_at_last_searched_year(self, as_of):
        """Test that a crossover in year 50 is found and year 51 is not."""
        fund = make_fund(as_of, rate=1)
        income = {
            year: monthly_income_at_year([fund], year, as_of=as_of).total
            for year in (49, 50, 51)
        }

        reached = HorizonSettings(monthly_baseline_expense=(income[49] + income[50]) / 2)
        summary = summarize([fund], [], reached, as_of)
        assert summary.years_to_crossover == MAX_CROSSOVER_YEARS
        assert summary.crossover_date == date(2075, 1, 1)

        beyond = HorizonSettings(monthly_baseline_expense=(income[50] + income[51]) / 2)
        summary = summarize([fund], [], beyond, as_of)
        assert summary.years_to_crossover is None
        assert summary.crossover_date is None

    def test_nothing_to_cross(self, as_of):
        """Test that no income and no obligations never cross."""
        summary = summarize([], [], as_of=as_of)

        assert not summary.is_already_crossed
        assert summary.years_to_crossover is None
        assert summary.progress_pct == 0

    def test_income_without_obligations(self, as_of):
        """Test that any income with no obligations has crossed."""
        summary = summarize([make_fund(as_of)], [], as_of=as_of)

        assert summary.is_already_crossed
        assert summary.years_to_crossover == 0
        assert summary.progress_pct == 100

    def test_loan_payoff_crossover(self, mortgage, as_of):
        """Test a crossover reached when a loan is repaid."""
        short_loan = mortgage.model_copy(update={"term_months": 36})
        summary = summarize(
            [make_fund(as_of, amount=300000)], [short_loan], as_of=as_of
        )

        assert summary.years_to_crossover == 3
        assert summary.current_net_worth == pytest.approx(0, abs=0.01)

    def test_refinancing_moves_crossover(self, mortgage, as_of):
        """Test that refinancing brings the crossover forward."""
        eligible = mortgage.model_copy(update={"can_be_refinanced": True})
        fund = make_fund(as_of, amount=300000)

        regular = summarize([fund], [eligible], as_of=as_of)
        refinanced = summarize(
            [fund], [eligible], HorizonSettings(refinancing_enabled=True), as_of
        )

        # 1000 of income only covers the loan once it is repaid
        assert regular.years_to_crossover == 30
        assert refinanced.years_to_crossover == 12
        assert refinanced.crossover_date == date(2037, 1, 1)
