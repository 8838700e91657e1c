"""Tests for the collection report and passbook backlog rollups."""

from datetime import date
from decimal import Decimal

from coop_engines.collection import (
    SOURCE_LEDGER,
    SOURCE_TRANSACTION,
    build_collection_report,
    passbook_backlog,
    resolve_contribution,
)
from coop_kernel.domain.dtos import (
    AccountRecord,
    Direction,
    LedgerDirection,
    LedgerEntryRecord,
    MemberRecord,
    PaymentMode,
    ProductType,
    TransactionRecord,
)
from coop_kernel.domain.values import Money

DAY = date(2024, 6, 15)

MEMBERS = {"M001": MemberRecord(id="M001", full_name="Asha Patil")}
ACCOUNTS = {
    "ACC-00000001": AccountRecord(
        id="ACC-00000001",
        owner_id="M001",
        account_number="M001-ODP-1",
        product_type=ProductType.OPTIONAL_DEPOSIT,
        opening_date=date(2024, 1, 10),
        original_principal=Decimal("1000"),
        balance=Decimal("1000"),
        interest_rate=Decimal("3.5"),
        initial_interest_rate=Decimal("3.5"),
    )
}


def _tx(seq, amount, on=DAY, direction=Direction.CREDIT, mode=PaymentMode.CASH, cash=None, online=None):
    return TransactionRecord(
        id=f"TX-{seq:010d}",
        account_id="ACC-00000001",
        seq=seq,
        date=on,
        amount=Decimal(amount),
        direction=direction,
        category="Deposit",
        payment_mode=mode,
        cash_amount=cash,
        online_amount=online,
    )


def _entry(seq, amount, direction=LedgerDirection.INCOME, member_id=None, on=DAY):
    return LedgerEntryRecord(
        id=f"LDG-{seq:010d}",
        seq=seq,
        date=on,
        amount=Decimal(amount),
        direction=direction,
        category="Loan Processing Fees",
        member_id=member_id,
    )


def _report(transactions=(), entries=(), start=DAY, end=DAY):
    return build_collection_report(
        start=start,
        end=end,
        transactions=transactions,
        ledger_entries=entries,
        accounts=ACCOUNTS,
        members=MEMBERS,
    )


class TestResolveContribution:
    def test_cash_and_online(self):
        assert resolve_contribution(Decimal("100"), PaymentMode.CASH, None, None) == (Decimal("100"), 0)
        assert resolve_contribution(Decimal("100"), PaymentMode.ONLINE, None, None) == (0, Decimal("100"))

    def test_missing_mode_is_cash(self):
        assert resolve_contribution(Decimal("100"), None, None, None) == (Decimal("100"), 0)

    def test_both_uses_split(self):
        assert resolve_contribution(Decimal("500"), PaymentMode.BOTH, Decimal("300"), Decimal("200")) == (
            Decimal("300"),
            Decimal("200"),
        )

    def test_both_without_split_falls_back_to_cash(self):
        assert resolve_contribution(Decimal("500"), PaymentMode.BOTH, None, Decimal("0")) == (Decimal("500"), 0)

    def test_explicit_split_ignored_for_single_mode(self):
        assert resolve_contribution(Decimal("500"), PaymentMode.ONLINE, Decimal("500"), None) == (0, Decimal("500"))


class TestCollectionReport:
    def test_cash_and_split_totals(self):
        report = _report(
            transactions=[
                _tx(1, "500"),
                _tx(2, "500", mode=PaymentMode.BOTH, cash=Decimal("300"), online=Decimal("200")),
            ]
        )
        assert report.total_cash == Money.of(800)
        assert report.total_online == Money.of(200)
        assert report.grand_total == Money.of(1000)
        assert report.is_single_day

    def test_debits_and_expenses_excluded(self):
        report = _report(
            transactions=[_tx(1, "500"), _tx(2, "200", direction=Direction.DEBIT)],
            entries=[_entry(1, "700"), _entry(2, "50", direction=LedgerDirection.EXPENSE)],
        )
        assert [r.source_id for r in report.rows] == ["TX-0000000001", "LDG-0000000001"]
        assert report.grand_total == Money.of(1200)

    def test_rows_outside_range_excluded(self):
        report = _report(
            transactions=[_tx(1, "500", on=date(2024, 6, 14)), _tx(2, "100", on=date(2024, 6, 16))],
            start=date(2024, 6, 15),
            end=date(2024, 6, 15),
        )
        assert report.rows == ()
        assert report.grand_total == Money.zero()

    def test_row_details_and_order(self):
        report = _report(
            transactions=[_tx(2, "100", on=date(2024, 6, 2)), _tx(1, "100", on=date(2024, 6, 1))],
            entries=[_entry(1, "700", member_id="M001", on=date(2024, 6, 1)), _entry(2, "10")],
            start=date(2024, 6, 1),
            end=date(2024, 6, 30),
        )
        assert [(r.date.day, r.source_kind) for r in report.rows] == [
            (1, SOURCE_TRANSACTION),
            (1, SOURCE_LEDGER),
            (2, SOURCE_TRANSACTION),
            (15, SOURCE_LEDGER),
        ]
        first = report.rows[0]
        assert first.counterparty_name == "Asha Patil"
        assert first.account_number == "M001-ODP-1"
        assert first.purpose == "Deposit"
        assert report.rows[-1].counterparty_name == "Society"
        assert not report.is_single_day

    def test_each_row_sums(self):
        report = _report(
            transactions=[_tx(1, "1000", mode=PaymentMode.BOTH, cash=Decimal("600"), online=Decimal("401"))]
        )
        row = report.rows[0]
        assert row.cash + row.online == row.total


class TestPassbookBacklog:
    def _log(self, count=10):
        return [_tx(i, "100", on=date(2024, 1, i)) for i in range(1, count + 1)]

    def test_anchor_counts_entries_after_it(self):
        backlog = passbook_backlog(
            member_id="M001", transactions=self._log(), last_printed_transaction_id="TX-0000000007"
        )
        assert backlog.anchor_index == 6
        assert backlog.unprinted_count == 3
        assert [t.seq for t in backlog.unprinted] == [8, 9, 10]

    def test_missing_anchor_means_everything_unprinted(self):
        backlog = passbook_backlog(
            member_id="M001", transactions=self._log(), last_printed_transaction_id="TX-9999999999"
        )
        assert backlog.anchor_index is None
        assert backlog.unprinted_count == 10

    def test_unset_anchor(self):
        backlog = passbook_backlog(member_id="M001", transactions=self._log(3), last_printed_transaction_id=None)
        assert backlog.unprinted_count == 3

    def test_order_ignores_input_order(self):
        backlog = passbook_backlog(
            member_id="M001", transactions=list(reversed(self._log(5))), last_printed_transaction_id="TX-0000000005"
        )
        assert backlog.unprinted_count == 0
        assert [t.seq for t in backlog.entries] == [1, 2, 3, 4, 5]
