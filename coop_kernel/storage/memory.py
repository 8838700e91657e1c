"""
InMemoryLedgerStore -- ephemeral LedgerStore for tests and offline use.

Each store instance owns its data; nothing is shared through module state.

Concurrency:
    A short internal mutex guards the dictionaries. ``account_lock`` hands
    out one re-entrant lock per account. ``atomic`` keeps a per-thread undo
    journal, so a failed scope reverts only the writes of its own thread.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date

from coop_kernel.domain.dtos import (
    AccountRecord,
    AccountStatus,
    LedgerEntryRecord,
    MemberRecord,
    ProductType,
    TransactionRecord,
)
from coop_kernel.exceptions import PersistenceError
from coop_kernel.logging_config import get_logger
from coop_kernel.storage.port import LedgerStore

logger = get_logger("storage.memory")


class InMemoryLedgerStore(LedgerStore):
    """Dictionary-backed store with per-account locks and undo-journal atomicity."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._sequences: dict[str, int] = {}
        self._members: dict[str, MemberRecord] = {}
        self._accounts: dict[str, AccountRecord] = {}
        self._transactions: dict[str, list[TransactionRecord]] = {}
        self._ledger: list[LedgerEntryRecord] = []
        self._account_locks: dict[str, threading.RLock] = {}
        self._local = threading.local()

    # -- infrastructure ----------------------------------------------------

    def next_sequence(self, name: str) -> int:
        with self._mutex:
            value = self._sequences.get(name, 0) + 1
            self._sequences[name] = value
        return value

    def _lock_for(self, account_id: str) -> threading.RLock:
        with self._mutex:
            lock = self._account_locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._account_locks[account_id] = lock
            return lock

    @contextmanager
    def account_lock(self, *account_ids: str) -> Iterator[None]:
        locks = [self._lock_for(account_id) for account_id in sorted(set(account_ids))]
        acquired: list[threading.RLock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def _journal_stack(self) -> list[list[Callable[[], None]]]:
        stack = getattr(self._local, "journals", None)
        if stack is None:
            stack = []
            self._local.journals = stack
        return stack

    def _record_undo(self, undo: Callable[[], None]) -> None:
        stack = self._journal_stack()
        if stack:
            stack[-1].append(undo)

    @contextmanager
    def atomic(self, operation: str = "write") -> Iterator[None]:
        stack = self._journal_stack()
        journal: list[Callable[[], None]] = []
        stack.append(journal)
        try:
            yield
        except BaseException:
            stack.pop()
            with self._mutex:
                for undo in reversed(journal):
                    undo()
            logger.debug(
                "atomic_scope_rolled_back",
                extra={"operation": operation, "undone_writes": len(journal)},
            )
            raise
        else:
            stack.pop()
            if stack:
                stack[-1].extend(journal)

    # -- members -------------------------------------------------------------

    def get_member(self, member_id: str) -> MemberRecord | None:
        with self._mutex:
            return self._members.get(member_id)

    def upsert_member(self, member: MemberRecord) -> MemberRecord:
        with self._mutex:
            previous = self._members.get(member.id)
            self._members[member.id] = member
        if previous is None:
            self._record_undo(lambda: self._members.pop(member.id, None))
        else:
            self._record_undo(lambda: self._members.__setitem__(member.id, previous))
        return member

    # -- accounts ------------------------------------------------------------

    def get_account(self, account_id: str) -> AccountRecord | None:
        with self._mutex:
            return self._accounts.get(account_id)

    def list_accounts(
        self,
        owner_id: str | None = None,
        product_type: ProductType | None = None,
        status: AccountStatus | None = None,
    ) -> list[AccountRecord]:
        with self._mutex:
            accounts = list(self._accounts.values())
        return sorted(
            (
                a
                for a in accounts
                if (owner_id is None or a.owner_id == owner_id)
                and (product_type is None or a.product_type is product_type)
                and (status is None or a.status is status)
            ),
            key=lambda a: a.id,
        )

    def add_account(self, account: AccountRecord) -> AccountRecord:
        with self._mutex:
            if account.id in self._accounts:
                raise PersistenceError("add_account", f"account {account.id} already exists")
            if any(a.account_number == account.account_number for a in self._accounts.values()):
                raise PersistenceError("add_account", f"account number {account.account_number} already exists")
            self._accounts[account.id] = account
            self._transactions.setdefault(account.id, [])

        def undo() -> None:
            self._accounts.pop(account.id, None)
            self._transactions.pop(account.id, None)

        self._record_undo(undo)
        return account

    def save_account(self, account: AccountRecord) -> AccountRecord:
        with self._mutex:
            previous = self._accounts.get(account.id)
            if previous is None:
                raise KeyError(account.id)
            self._accounts[account.id] = account
        self._record_undo(lambda: self._accounts.__setitem__(account.id, previous))
        return account

    # -- transactions ----------------------------------------------------------

    def append_transaction(self, tx: TransactionRecord) -> TransactionRecord:
        with self._mutex:
            log = self._transactions.get(tx.account_id)
            if log is None:
                raise KeyError(tx.account_id)
            log.append(tx)

        def undo() -> None:
            entries = self._transactions.get(tx.account_id)
            if entries and tx in entries:
                entries.remove(tx)

        self._record_undo(undo)
        return tx

    def list_transactions(self, account_id: str) -> list[TransactionRecord]:
        with self._mutex:
            log = list(self._transactions.get(account_id, ()))
        return sorted(log, key=lambda t: t.seq)

    def list_transactions_between(self, start: date, end: date) -> list[TransactionRecord]:
        with self._mutex:
            everything = [tx for log in self._transactions.values() for tx in log]
        return sorted((tx for tx in everything if start <= tx.date <= end), key=lambda t: t.seq)

    # -- society ledger ----------------------------------------------------------

    def add_ledger_entry(self, entry: LedgerEntryRecord) -> LedgerEntryRecord:
        with self._mutex:
            self._ledger.append(entry)

        def undo() -> None:
            if entry in self._ledger:
                self._ledger.remove(entry)

        self._record_undo(undo)
        return entry

    def list_ledger_entries(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerEntryRecord]:
        with self._mutex:
            entries = list(self._ledger)
        return sorted(
            (
                e
                for e in entries
                if (start is None or e.date >= start) and (end is None or e.date <= end)
            ),
            key=lambda e: e.seq,
        )
