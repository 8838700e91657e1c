"""
Replay -- derive account balances from the transaction log.

Responsibility:
    The balance of an account is a pure function of its transactions. This
    module owns that function, its inverse (rewinding newest-first) and the
    current-year minimum balance built on the rewind.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Called by AccountService (recompute, minimum balance) and LedgerService
    (post-append re-derivation).

Invariants enforced:
    - Seed and Disbursement transactions always add their amount.
    - Deposit products: a credit adds, a debit subtracts.
    - Loans: a credit (repayment) subtracts, a debit (further draw) adds.
    - Replaying the same log twice gives the same balance.

Failure modes:
    None. Inputs are already-validated records.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal

from coop_kernel.domain.dtos import Direction, ProductType, TransactionRecord

# Cached balances closer than this to the replayed value are left alone.
CACHE_TOLERANCE = Decimal("0.01")


def signed_contribution(product_type: ProductType, tx: TransactionRecord) -> Decimal:
    """Amount ``tx`` adds to the balance (negative when it reduces it)."""
    if tx.kind.always_adds:
        return tx.amount
    increases = tx.direction is Direction.CREDIT
    if product_type.is_loan:
        increases = not increases
    return tx.amount if increases else -tx.amount


def replay_balance(product_type: ProductType, transactions: Iterable[TransactionRecord]) -> Decimal:
    """Fold the log, in the order given, into a balance."""
    total = Decimal("0")
    for tx in transactions:
        total += signed_contribution(product_type, tx)
    return total


def newest_first(transactions: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    """Order by date descending, then insertion order descending."""
    return sorted(transactions, key=lambda t: (t.date, t.seq), reverse=True)


def rewind_balances(
    product_type: ProductType,
    current_balance: Decimal,
    transactions: Iterable[TransactionRecord],
) -> Iterator[tuple[TransactionRecord, Decimal]]:
    """
    Walk the log newest-first, undoing one transaction at a time.

    Yields ``(tx, balance_before_tx)`` pairs. Undoing every transaction of a
    consistent log ends at zero; stopping short of the seed leaves exactly
    the seed amount.
    """
    balance = current_balance
    for tx in newest_first(transactions):
        balance -= signed_contribution(product_type, tx)
        yield tx, balance


def minimum_balance_in_year(
    product_type: ProductType,
    current_balance: Decimal,
    transactions: Iterable[TransactionRecord],
    year: int,
) -> Decimal:
    """
    Lowest balance the account held during ``year``.

    Starts from ``current_balance`` and rewinds until the first transaction
    dated before ``year``. Transactions of that earlier year are not undone.
    """
    lowest = current_balance
    for tx, before in rewind_balances(product_type, current_balance, transactions):
        if tx.date.year < year:
            break
        if before < lowest:
            lowest = before
    return lowest


def cache_is_stale(
    cached: Decimal | None, replayed: Decimal, tolerance: Decimal = CACHE_TOLERANCE
) -> bool:
    if cached is None:
        return True
    return abs(cached - replayed) > tolerance
