"""Tests for the Money value object."""

from decimal import Decimal

import pytest

from coop_kernel.domain.values import Currency, Money


class TestMoneyConstruction:
    def test_of_accepts_decimal_int_and_string(self):
        assert Money.of(Decimal("10.50")).amount == Decimal("10.50")
        assert Money.of(10).amount == Decimal("10")
        assert Money.of("10.50").amount == Decimal("10.50")

    def test_default_currency_is_rupee(self):
        assert Money.of(1).currency == Currency("INR")

    def test_float_rejected(self):
        with pytest.raises(ValueError, match="float"):
            Money(amount=1.5, currency="INR")

    def test_garbage_string_rejected(self):
        with pytest.raises(ValueError):
            Money.of("ten")

    def test_zero(self):
        zero = Money.zero()
        assert zero.is_zero
        assert not zero.is_positive
        assert not zero.is_negative


class TestMoneyArithmetic:
    def test_add_and_subtract(self):
        total = Money.of("100") + Money.of("50.25") - Money.of("0.25")
        assert total == Money.of("150")

    def test_mixed_currency_rejected(self):
        with pytest.raises(ValueError, match="different currencies"):
            Money.of(1, "INR") + Money.of(1, "USD")

    def test_scale_by_decimal_and_int(self):
        assert Money.of(100) * Decimal("1.5") == Money.of(150)
        assert 3 * Money.of(10) == Money.of(30)
        assert Money.of(100) / 4 == Money.of(25)

    def test_bool_factor_not_accepted(self):
        with pytest.raises(TypeError):
            Money.of(10) * True

    def test_negation_and_abs(self):
        assert -Money.of(5) == Money.of(-5)
        assert abs(Money.of(-5)) == Money.of(5)

    def test_comparisons(self):
        assert Money.of(1) < Money.of(2)
        assert Money.of(2) >= Money.of(2)

    def test_within_tolerance_is_inclusive(self):
        assert Money.of("100").within(Money.of("101"), Decimal("1"))
        assert not Money.of("100").within(Money.of("101.01"), Decimal("1"))


class TestMoneyRounding:
    def test_round_to_minor_unit(self):
        assert Money.of("1.005").round().amount == Decimal("1.01")

    def test_round_whole_half_up(self):
        assert Money.of("4442.5").round_whole().amount == Decimal("4443")
        assert Money.of("4442.49").round_whole().amount == Decimal("4442")

    def test_round_whole_half_away_from_zero_for_negatives(self):
        assert Money.of("-2.5").round_whole().amount == Decimal("-3")


class TestMoneyDisplay:
    def test_whole_amount_has_no_decimals(self):
        assert Money.of(1000).display() == "₹1,000"

    def test_fractional_amount_shows_minor_units(self):
        assert Money.of("1234.5").display() == "₹1,234.50"

    def test_str(self):
        assert str(Money.of("12.00")) == "12.00 INR"
