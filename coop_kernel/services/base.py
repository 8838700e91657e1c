"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and store-handling contract for every
    write-side service. Services receive a LedgerStore and a Clock; they
    write through the store and never commit the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Every service in ``coop_kernel/services/`` that performs write
    operations extends this class.

Invariants enforced:
    - Transaction boundaries: services group their writes in
      ``store.atomic()`` scopes and never commit or roll back the outer
      transaction. The caller (``session_scope()`` or a test) owns it.
    - Time comes from the injected Clock, never from ``date.today()``.
"""

from __future__ import annotations

from abc import ABC
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from coop_kernel.domain.calendar import parse_safe_date
from coop_kernel.domain.clock import Clock, SystemClock
from coop_kernel.domain.dtos import AccountRecord, MemberRecord
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import (
    AccountNotFoundError,
    InvalidAmountError,
    InvalidDateError,
    MemberNotFoundError,
)
from coop_kernel.storage.port import LedgerStore


def as_decimal(field: str, value: Decimal | int | str | Money | None) -> Decimal | None:
    """
    Normalize an amount argument to Decimal.

    Floats are refused; binary fractions have no place in a ledger.
    """
    if value is None:
        return None
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(field, value, "must be a Decimal, int or decimal string")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidAmountError(field, value, "is not a number") from e


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a LedgerStore from the caller and writes through it inside
        ``store.atomic()`` scopes.

    Non-goals:
        - Does NOT manage the outer transaction lifecycle.
        - Does NOT provide report queries; those belong in
          ``coop_kernel/selectors/``.
    """

    def __init__(self, store: LedgerStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()

    def _require_account(self, account_id: str) -> AccountRecord:
        account = self.store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _require_member(self, member_id: str) -> MemberRecord:
        member = self.store.get_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def _resolve_date(self, field: str, value: date | datetime | str | None) -> date:
        """Parse a caller-supplied date; missing means today on the injected clock."""
        try:
            parsed = parse_safe_date(value)
        except ValueError as e:
            raise InvalidDateError(field, value) from e
        return parsed if parsed is not None else self.clock.today()
