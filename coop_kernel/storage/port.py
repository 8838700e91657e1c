"""
LedgerStore -- the storage port every service writes through.

Responsibility:
    Declares the persistence operations the ledger needs, independent of
    where records live. Two adapters implement it: InMemoryLedgerStore
    (ephemeral, for tests and offline use) and SqlAlchemyLedgerStore
    (durable, bound to the caller's session).

Architecture position:
    Kernel > Storage. Imports domain DTOs only. Services receive a store by
    constructor injection; there is no module-level default store.

Invariants enforced:
    - ``account_lock`` serializes writers of the same account(s). Locks are
      taken in sorted id order so two multi-account writers cannot deadlock.
    - ``atomic`` makes a group of writes all-or-nothing. Scopes nest.
    - ``list_transactions`` returns insertion (seq) order.
    - Stores never commit the caller's outer transaction.

Failure modes:
    - PersistenceError (retryable) when the backing store rejects a write.
      Nothing inside the failed ``atomic`` scope remains applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager
from datetime import date

from coop_kernel.domain.dtos import (
    AccountRecord,
    AccountStatus,
    LedgerEntryRecord,
    MemberRecord,
    ProductType,
    TransactionRecord,
)

# Names for next_sequence().
SEQ_ACCOUNT = "account"
SEQ_TRANSACTION = "transaction"
SEQ_LEDGER_ENTRY = "ledger_entry"


class LedgerStore(ABC):
    """Persistence port for accounts, transactions, ledger entries and members."""

    # -- infrastructure ----------------------------------------------------

    @abstractmethod
    def next_sequence(self, name: str) -> int:
        """Next strictly increasing value of the named sequence (starts at 1)."""

    @abstractmethod
    def account_lock(self, *account_ids: str) -> AbstractContextManager[None]:
        """Hold exclusive write access to the given accounts."""

    @abstractmethod
    def atomic(self, operation: str = "write") -> AbstractContextManager[None]:
        """All-or-nothing scope for the writes made inside it."""

    # -- members -------------------------------------------------------------

    @abstractmethod
    def get_member(self, member_id: str) -> MemberRecord | None: ...

    @abstractmethod
    def upsert_member(self, member: MemberRecord) -> MemberRecord: ...

    # -- accounts ------------------------------------------------------------

    @abstractmethod
    def get_account(self, account_id: str) -> AccountRecord | None: ...

    @abstractmethod
    def list_accounts(
        self,
        owner_id: str | None = None,
        product_type: ProductType | None = None,
        status: AccountStatus | None = None,
    ) -> list[AccountRecord]:
        """Accounts matching every given filter, ordered by id."""

    @abstractmethod
    def add_account(self, account: AccountRecord) -> AccountRecord:
        """Insert a new account; a duplicate id or account number raises PersistenceError."""

    @abstractmethod
    def save_account(self, account: AccountRecord) -> AccountRecord:
        """
        Persist the mutable fields of an existing account.

        Mutable: balance, status, interest_rate, emi, maturity_date,
        low_balance_alert_threshold, maturity_processed.
        """

    # -- transactions ----------------------------------------------------------

    @abstractmethod
    def append_transaction(self, tx: TransactionRecord) -> TransactionRecord: ...

    @abstractmethod
    def list_transactions(self, account_id: str) -> list[TransactionRecord]:
        """One account's log in insertion order."""

    @abstractmethod
    def list_transactions_between(self, start: date, end: date) -> list[TransactionRecord]:
        """Every account's transactions dated within [start, end], in seq order."""

    # -- society ledger ----------------------------------------------------------

    @abstractmethod
    def add_ledger_entry(self, entry: LedgerEntryRecord) -> LedgerEntryRecord: ...

    @abstractmethod
    def list_ledger_entries(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerEntryRecord]:
        """Entries dated within the inclusive range (open ends allowed), in seq order."""

    # -- convenience -------------------------------------------------------------

    def iter_member_transactions(self, member_id: str) -> Iterator[TransactionRecord]:
        for account in self.list_accounts(owner_id=member_id):
            yield from self.list_transactions(account.id)
