"""Storage port and its two adapters."""

from coop_kernel.storage.memory import InMemoryLedgerStore
from coop_kernel.storage.port import (
    SEQ_ACCOUNT,
    SEQ_LEDGER_ENTRY,
    SEQ_TRANSACTION,
    LedgerStore,
)
from coop_kernel.storage.sqlalchemy_store import SqlAlchemyLedgerStore

__all__ = [
    "LedgerStore",
    "InMemoryLedgerStore",
    "SqlAlchemyLedgerStore",
    "SEQ_ACCOUNT",
    "SEQ_LEDGER_ENTRY",
    "SEQ_TRANSACTION",
]
