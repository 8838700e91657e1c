"""
Tests for the product calculators in coop_engines.interest.

Figures are whole-rupee rounded (ROUND_HALF_UP), matching what the cashier
sees on the projection screen.
"""

from datetime import date
from decimal import Decimal

import pytest

from coop_engines.interest import (
    maturity_date_for,
    project_fixed_deposit,
    project_loan,
    project_optional_deposit,
    project_principal_only,
    project_recurring_deposit,
    reducing_balance_emi,
)
from coop_kernel.domain.dtos import LoanSubtype, ProductType, RdFrequency
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidAmountError, InvalidTermError


def inr(amount) -> Money:
    return Money.of(amount)


class TestFixedDeposit:
    def test_three_year_maturity(self):
        p = project_fixed_deposit(principal=inr(100000), rate=Decimal("6.5"), term_months=36)
        assert p.maturity_amount == inr(120795)
        assert p.interest_earned == inr(20795)
        assert p.principal == inr(100000)

    def test_fractional_years_compound(self):
        one_year = project_fixed_deposit(principal=inr(100000), rate=Decimal("6"), term_months=12)
        eighteen = project_fixed_deposit(principal=inr(100000), rate=Decimal("6"), term_months=18)
        assert one_year.maturity_amount == inr(106000)
        # 100000 * 1.06^1.5 = 109133.68
        assert eighteen.maturity_amount == inr(109134)

    def test_maturity_date_from_opening(self):
        p = project_fixed_deposit(
            principal=inr(1000), rate=Decimal("6.5"), term_months=12, opening_date=date(2024, 1, 31)
        )
        assert p.maturity_date == date(2025, 1, 31)

    def test_zero_term_has_no_schedule(self):
        p = project_fixed_deposit(principal=inr(5000), rate=Decimal("6.5"), term_months=0)
        assert not p.has_schedule
        assert p.maturity_amount is None
        assert p.principal == inr(5000)

    def test_negative_principal_rejected(self):
        with pytest.raises(InvalidAmountError):
            project_fixed_deposit(principal=inr(-1), rate=Decimal("6.5"), term_months=12)

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidAmountError):
            project_fixed_deposit(principal=inr(1000), rate=Decimal("-1"), term_months=12)

    def test_negative_term_rejected(self):
        with pytest.raises(InvalidTermError):
            project_fixed_deposit(principal=inr(1000), rate=Decimal("6.5"), term_months=-3)


class TestRecurringDeposit:
    def test_monthly_series_interest(self):
        p = project_recurring_deposit(installment=inr(1000), rate=Decimal("6.5"), installments=12)
        # 1000 * 78 * 6.5 / 1200 = 422.5 -> 423
        assert p.interest_earned == inr(423)
        assert p.principal == inr(12000)
        assert p.maturity_amount == inr(12423)
        assert p.installments == 12

    def test_daily_series_interest(self):
        p = project_recurring_deposit(
            installment=inr(100),
            rate=Decimal("6.5"),
            installments=100,
            frequency=RdFrequency.DAILY,
            opening_date=date(2024, 1, 1),
        )
        # 100 * 5050 * 6.5 / 36500 = 89.93 -> 90
        assert p.interest_earned == inr(90)
        assert p.maturity_amount == inr(10090)
        assert p.maturity_date == date(2024, 4, 10)

    def test_monthly_maturity_date(self):
        p = project_recurring_deposit(
            installment=inr(500), rate=Decimal("6.5"), installments=24, opening_date=date(2024, 1, 10)
        )
        assert p.maturity_date == date(2026, 1, 10)

    def test_zero_installments_has_no_schedule(self):
        p = project_recurring_deposit(installment=inr(500), rate=Decimal("6.5"), installments=0)
        assert not p.has_schedule
        assert p.principal == inr(0)


class TestOptionalDeposit:
    def test_simple_annual_interest(self):
        p = project_optional_deposit(balance=inr(10000), rate=Decimal("3.5"))
        assert p.interest_earned == inr(350)
        assert p.product_type is ProductType.OPTIONAL_DEPOSIT

    def test_principal_only_products(self):
        p = project_principal_only(product_type=ProductType.SHARE_CAPITAL, principal=inr("2500.40"))
        assert p.principal == inr(2500)
        assert p.interest_earned is None
        assert p.has_schedule


class TestLoan:
    def test_reducing_balance_emi(self):
        p = project_loan(principal=inr(50000), rate=Decimal("12"), term_months=12)
        assert p.emi == inr(4442)
        assert p.total_payable == inr(53309)
        assert p.total_interest == inr(3309)
        assert p.installments == 12

    def test_zero_rate_divides_evenly(self):
        assert reducing_balance_emi(Decimal("12000"), Decimal("0"), 12) == Decimal("1000")

    def test_emergency_loan_is_flat_rate(self):
        p = project_loan(
            principal=inr(20000), rate=Decimal("14"), term_months=12, subtype=LoanSubtype.EMERGENCY
        )
        assert p.total_interest == inr(2800)
        assert p.total_payable == inr(22800)
        assert p.emi == inr(1900)

    def test_flat_rate_costs_more_than_reducing(self):
        flat = project_loan(principal=inr(20000), rate=Decimal("14"), term_months=12, subtype=LoanSubtype.EMERGENCY)
        reducing = project_loan(principal=inr(20000), rate=Decimal("14"), term_months=12)
        assert flat.total_interest > reducing.total_interest

    def test_zero_principal_has_no_schedule(self):
        p = project_loan(principal=inr(0), rate=Decimal("12"), term_months=12)
        assert not p.has_schedule
        assert p.emi is None

    def test_as_dict_keeps_only_populated_figures(self):
        d = project_loan(principal=inr(50000), rate=Decimal("12"), term_months=12).as_dict()
        assert d["emi"] == Decimal("4442")
        assert "maturity_amount" not in d
        assert d["installments"] == 12


class TestMaturityDate:
    def test_months_and_days(self):
        opened = date(2024, 1, 31)
        assert maturity_date_for(ProductType.FIXED_DEPOSIT, opened, term_months=1) == date(2024, 2, 29)
        assert maturity_date_for(ProductType.RECURRING_DEPOSIT, opened, term_days=30) == date(2024, 3, 1)

    def test_no_maturity_for_open_ended_products(self):
        assert maturity_date_for(ProductType.OPTIONAL_DEPOSIT, date(2024, 1, 1), term_months=12) is None
        assert maturity_date_for(ProductType.SHARE_CAPITAL, date(2024, 1, 1)) is None
