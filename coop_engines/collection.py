"""
Module: coop_engines.collection
Responsibility:
    Read-only rollups across both ledgers: the collection report (what came
    in over a day or date range, split into cash and online) and the member
    passbook backlog (how many entries have not been printed yet).

Architecture position:
    Engines -- pure calculation layer, zero I/O. The collection selector
    fetches records from the store and hands them in.

Invariants enforced:
    - Only account credits and society Income count as collections.
    - Each row's cash + online equals its total.
    - Passbook order is (date ascending, id ascending) whatever the storage
      order, so the backlog count is reproducible.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from coop_engines.tracer import traced_engine
from coop_kernel.domain.dtos import (
    AccountRecord,
    Direction,
    LedgerDirection,
    LedgerEntryRecord,
    MemberRecord,
    PaymentMode,
    TransactionRecord,
)
from coop_kernel.domain.values import Money

SOURCE_TRANSACTION = "transaction"
SOURCE_LEDGER = "ledger"

_ZERO = Decimal("0")


@dataclass(frozen=True)
class CollectionRow:
    """One contributing record in a collection report."""

    source_id: str
    source_kind: str
    date: date
    counterparty_name: str
    purpose: str
    mode: PaymentMode
    cash: Money
    online: Money
    total: Money
    account_number: str | None = None
    member_id: str | None = None


@dataclass(frozen=True)
class CollectionReport:
    start: date
    end: date
    rows: tuple[CollectionRow, ...]
    total_cash: Money
    total_online: Money
    grand_total: Money

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class PassbookBacklog:
    """
    A member's passbook in print order and the position of the print anchor.

    ``anchor_index`` is None when the anchor is unset or no longer present;
    every entry then counts as unprinted.
    """

    member_id: str
    entries: tuple[TransactionRecord, ...]
    anchor_index: int | None

    @property
    def unprinted_count(self) -> int:
        if self.anchor_index is None:
            return len(self.entries)
        return len(self.entries) - 1 - self.anchor_index

    @property
    def unprinted(self) -> tuple[TransactionRecord, ...]:
        start = 0 if self.anchor_index is None else self.anchor_index + 1
        return self.entries[start:]


def resolve_contribution(
    amount: Decimal,
    mode: PaymentMode | None,
    cash_amount: Decimal | None,
    online_amount: Decimal | None,
) -> tuple[Decimal, Decimal]:
    """
    Cash and online parts of a stored record.

    Both uses the stored split. Every other mode puts the full amount on
    its own side, Cash when the mode was never recorded. A Both record whose
    split is missing or all zero falls back to cash.
    """
    mode = mode or PaymentMode.CASH
    if mode is PaymentMode.BOTH:
        cash = cash_amount or _ZERO
        online = online_amount or _ZERO
        if cash == 0 and online == 0:
            return amount, _ZERO
        return cash, online
    if mode is PaymentMode.ONLINE:
        return _ZERO, amount
    return amount, _ZERO


def _member_name(member_id: str | None, members: Mapping[str, MemberRecord]) -> str:
    if member_id is None:
        return "Society"
    member = members.get(member_id)
    return member.full_name if member else member_id


@traced_engine("collection_report", "1.0", fingerprint_fields=("start", "end", "currency"))
def build_collection_report(
    *,
    start: date,
    end: date,
    transactions: Iterable[TransactionRecord],
    ledger_entries: Iterable[LedgerEntryRecord],
    accounts: Mapping[str, AccountRecord],
    members: Mapping[str, MemberRecord],
    currency: str = "INR",
) -> CollectionReport:
    """Collections dated within [start, end], ordered by date then source then id."""
    rows: list[CollectionRow] = []

    for tx in transactions:
        if tx.direction is not Direction.CREDIT or not (start <= tx.date <= end):
            continue
        cash, online = resolve_contribution(tx.amount, tx.payment_mode, tx.cash_amount, tx.online_amount)
        account = accounts.get(tx.account_id)
        owner_id = account.owner_id if account else None
        rows.append(
            CollectionRow(
                source_id=tx.id,
                source_kind=SOURCE_TRANSACTION,
                date=tx.date,
                counterparty_name=_member_name(owner_id, members) if account else tx.account_id,
                purpose=tx.category or tx.description or (account.product_type.value if account else ""),
                mode=tx.payment_mode,
                cash=Money.of(cash, currency),
                online=Money.of(online, currency),
                total=Money.of(cash + online, currency),
                account_number=account.account_number if account else None,
                member_id=owner_id,
            )
        )

    for entry in ledger_entries:
        if entry.direction is not LedgerDirection.INCOME or not (start <= entry.date <= end):
            continue
        cash, online = resolve_contribution(
            entry.amount, entry.payment_mode, entry.cash_amount, entry.online_amount
        )
        rows.append(
            CollectionRow(
                source_id=entry.id,
                source_kind=SOURCE_LEDGER,
                date=entry.date,
                counterparty_name=_member_name(entry.member_id, members),
                purpose=entry.category or entry.description,
                mode=entry.payment_mode,
                cash=Money.of(cash, currency),
                online=Money.of(online, currency),
                total=Money.of(cash + online, currency),
                member_id=entry.member_id,
            )
        )

    rows.sort(key=lambda r: (r.date, r.source_kind != SOURCE_TRANSACTION, r.source_id))

    total_cash = sum((r.cash for r in rows), Money.zero(currency))
    total_online = sum((r.online for r in rows), Money.zero(currency))
    return CollectionReport(
        start=start,
        end=end,
        rows=tuple(rows),
        total_cash=total_cash,
        total_online=total_online,
        grand_total=total_cash + total_online,
    )


def passbook_order(transactions: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    return sorted(transactions, key=lambda t: (t.date, t.id))


def passbook_backlog(
    *,
    member_id: str,
    transactions: Iterable[TransactionRecord],
    last_printed_transaction_id: str | None,
) -> PassbookBacklog:
    """Locate the print anchor in the member's passbook order."""
    entries = tuple(passbook_order(transactions))
    anchor_index = None
    if last_printed_transaction_id:
        for index, tx in enumerate(entries):
            if tx.id == last_printed_transaction_id:
                anchor_index = index
                break
    return PassbookBacklog(member_id=member_id, entries=entries, anchor_index=anchor_index)
