"""
Property-based checks of the replay rules and payment reconciliation.

Properties:
- Replaying the same log twice gives the same balance, and splitting the log
  anywhere and adding the two partial replays gives the whole.
- A loan and a deposit replay the same regular log with opposite sign.
- Rewinding every transaction from the replayed balance ends at zero.
- Every accepted Both split lands within the tolerance of the amount.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from coop_engines.payment import reconcile_payment
from coop_kernel.domain.dtos import Direction, ProductType, TransactionKind, TransactionRecord
from coop_kernel.domain.replay import replay_balance, rewind_balances
from coop_kernel.exceptions import SplitMismatchError

amounts = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000"), places=2)


@st.composite
def transaction_logs(draw, kinds=(TransactionKind.REGULAR,)):
    entries = draw(
        st.lists(
            st.tuples(
                amounts,
                st.sampled_from(list(Direction)),
                st.sampled_from(kinds),
                st.integers(min_value=0, max_value=730),
            ),
            max_size=40,
        )
    )
    return [
        TransactionRecord(
            id=f"TX-{seq:010d}",
            account_id="ACC-00000001",
            seq=seq,
            date=date(2023, 1, 1) + timedelta(days=offset),
            amount=amount,
            direction=direction,
            kind=kind,
        )
        for seq, (amount, direction, kind, offset) in enumerate(entries, start=1)
    ]


class TestReplayProperties:
    @given(transaction_logs(kinds=tuple(TransactionKind)), st.sampled_from(list(ProductType)), st.data())
    @settings(max_examples=100)
    def test_replay_is_additive(self, log, product_type, data):
        cut = data.draw(st.integers(min_value=0, max_value=len(log)))
        whole = replay_balance(product_type, log)
        assert whole == replay_balance(product_type, log)
        assert whole == replay_balance(product_type, log[:cut]) + replay_balance(product_type, log[cut:])

    @given(transaction_logs())
    def test_loan_polarity_is_inverted(self, log):
        assert replay_balance(ProductType.LOAN, log) == -replay_balance(ProductType.OPTIONAL_DEPOSIT, log)

    @given(transaction_logs(kinds=tuple(TransactionKind)), st.sampled_from(list(ProductType)))
    def test_rewind_reaches_zero(self, log, product_type):
        balance = replay_balance(product_type, log)
        steps = list(rewind_balances(product_type, balance, log))
        assert len(steps) == len(log)
        if steps:
            assert steps[-1][1] == Decimal("0")

    @given(transaction_logs(kinds=tuple(TransactionKind)), st.sampled_from(list(ProductType)))
    def test_order_does_not_change_balance(self, log, product_type):
        assert replay_balance(product_type, reversed(log)) == replay_balance(product_type, log)


class TestSplitProperties:
    @given(amounts, amounts, st.decimals(min_value=Decimal("-3"), max_value=Decimal("3"), places=2))
    def test_accepted_splits_sum_to_amount(self, cash, online, drift):
        amount = cash + online + drift
        if amount <= 0:
            return
        try:
            split = reconcile_payment(
                amount=amount, mode="Both", cash_amount=cash, online_amount=online, utr_reference="UTR1"
            )
        except SplitMismatchError:
            assert abs(drift) > Decimal("1")
        else:
            assert abs(drift) <= Decimal("1")
            assert abs(split.cash + split.online - split.amount) <= Decimal("1")

    @given(amounts, st.sampled_from(["Cash", "Online"]))
    def test_single_mode_takes_whole_amount(self, amount, mode):
        split = reconcile_payment(amount=amount, mode=mode, utr_reference="UTR1")
        assert split.cash + split.online == amount
        assert min(split.cash, split.online) == Decimal("0")


@pytest.mark.parametrize("drift", [Decimal("1"), Decimal("-1")])
def test_tolerance_edge_is_inclusive(drift):
    split = reconcile_payment(
        amount=Decimal("1000") + drift,
        mode="Both",
        cash_amount=Decimal("600"),
        online_amount=Decimal("400"),
        utr_reference="UTR1",
    )
    assert split.cash == Decimal("600")
