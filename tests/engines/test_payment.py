"""Tests for payment reconciliation (Cash / Online / Both)."""

from decimal import Decimal

import pytest

from coop_engines.payment import parse_payment_mode, reconcile_payment
from coop_kernel.domain.dtos import PaymentMode
from coop_kernel.domain.policy import ReconciliationPolicy
from coop_kernel.exceptions import (
    InvalidAmountError,
    MissingPaymentReferenceError,
    SplitMismatchError,
    UnsupportedPaymentModeError,
)


class TestParsePaymentMode:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, PaymentMode.CASH),
            ("", PaymentMode.CASH),
            ("cash", PaymentMode.CASH),
            ("ONLINE", PaymentMode.ONLINE),
            (" both ", PaymentMode.BOTH),
            (PaymentMode.ONLINE, PaymentMode.ONLINE),
        ],
    )
    def test_accepted_modes(self, raw, expected):
        assert parse_payment_mode(raw) is expected

    def test_unknown_mode(self):
        with pytest.raises(UnsupportedPaymentModeError) as exc:
            parse_payment_mode("Cheque")
        assert exc.value.payment_mode == "Cheque"


class TestCashAndOnline:
    def test_cash_carries_whole_amount_and_no_reference(self):
        split = reconcile_payment(amount=Decimal("500"), mode="Cash", utr_reference="IGNORED")
        assert (split.cash, split.online) == (Decimal("500"), Decimal("0"))
        assert split.utr_reference is None
        assert split.stored_cash_amount is None

    def test_cash_ignores_supplied_split(self):
        split = reconcile_payment(
            amount=Decimal("500"), mode="Cash", cash_amount=Decimal("1"), online_amount=Decimal("2")
        )
        assert split.cash == Decimal("500")

    def test_online_needs_reference(self):
        with pytest.raises(MissingPaymentReferenceError):
            reconcile_payment(amount=Decimal("500"), mode="Online", utr_reference="   ")

    def test_online_with_reference(self):
        split = reconcile_payment(amount=Decimal("500"), mode="Online", utr_reference=" UTR123 ")
        assert split.online == Decimal("500")
        assert split.utr_reference == "UTR123"

    def test_reference_optional_when_policy_relaxed(self):
        split = reconcile_payment(
            amount=Decimal("500"), mode="Online", policy=ReconciliationPolicy(utr_required=False)
        )
        assert split.utr_reference is None

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), None])
    def test_non_positive_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            reconcile_payment(amount=amount)


class TestBothSplit:
    def test_exact_split(self):
        split = reconcile_payment(
            amount=Decimal("1000"),
            mode="Both",
            cash_amount=Decimal("600"),
            online_amount=Decimal("400"),
            utr_reference="UTR9",
        )
        assert split.stored_cash_amount == Decimal("600")
        assert split.stored_online_amount == Decimal("400")

    def test_one_unit_tolerance_is_inclusive(self):
        split = reconcile_payment(
            amount=Decimal("1000"),
            mode="Both",
            cash_amount=Decimal("600"),
            online_amount=Decimal("401"),
            utr_reference="UTR9",
        )
        assert split.cash + split.online == Decimal("1001")

    def test_mismatch_beyond_tolerance(self):
        with pytest.raises(SplitMismatchError) as exc:
            reconcile_payment(
                amount=Decimal("1000"),
                mode="Both",
                cash_amount=Decimal("300"),
                online_amount=Decimal("200"),
                utr_reference="UTR9",
            )
        assert exc.value.actual_total == "500"
        assert exc.value.code == "SPLIT_MISMATCH"

    def test_missing_part_read_as_zero(self):
        split = reconcile_payment(
            amount=Decimal("1000"), mode="Both", cash_amount=Decimal("1000"), utr_reference="UTR9"
        )
        assert split.online == Decimal("0")

    def test_negative_part_rejected(self):
        with pytest.raises(InvalidAmountError):
            reconcile_payment(
                amount=Decimal("100"),
                mode="Both",
                cash_amount=Decimal("-10"),
                online_amount=Decimal("110"),
                utr_reference="UTR9",
            )

    def test_both_needs_reference(self):
        with pytest.raises(MissingPaymentReferenceError):
            reconcile_payment(
                amount=Decimal("100"), mode="Both", cash_amount=Decimal("50"), online_amount=Decimal("50")
            )

    def test_split_checked_before_reference(self):
        with pytest.raises(SplitMismatchError):
            reconcile_payment(
                amount=Decimal("100"), mode="Both", cash_amount=Decimal("10"), online_amount=Decimal("10")
            )
