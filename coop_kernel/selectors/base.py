"""
Module: coop_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors. Selectors
    are the read side of the kernel: reports and derived views assembled from
    the store without changing it.
Architecture position: Kernel > Selectors. May import from storage/port.py,
    domain/ and the pure engines. MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never call a store write method and never
      open an ``atomic`` scope.
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Balances come from replaying the log, not from the cached column.
"""

from abc import ABC

from coop_kernel.storage.port import LedgerStore


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a LedgerStore from the caller, read through it and
        return DTOs or computed results. They MUST NOT mutate any data.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
