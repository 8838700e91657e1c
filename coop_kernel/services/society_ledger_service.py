"""
SocietyLedgerService -- the society's own income and expense book.

Responsibility:
    Appends SocietyLedgerEntry records (fees, expenses, other income) with
    the same payment rules as account transactions, and reports income,
    expense and net over a date range. Also writes the processing fee that
    accompanies an Emergency loan.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Amount > 0 and a reconciled payment before the entry is written.
    - Entries are append-only; there is no update or delete path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from coop_engines.payment import reconcile_payment
from coop_kernel.domain.clock import Clock
from coop_kernel.domain.dtos import LedgerDirection, LedgerEntryRecord, PaymentMode
from coop_kernel.domain.policy import FeeSchedule, ReconciliationPolicy
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidAmountError, ValidationError
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.services.base import BaseService, as_decimal
from coop_kernel.storage.port import SEQ_LEDGER_ENTRY, LedgerStore

logger = get_logger("services.society_ledger")


def ledger_entry_id(seq: int) -> str:
    return f"LDG-{seq:010d}"


def parse_ledger_direction(direction: LedgerDirection | str) -> LedgerDirection:
    if isinstance(direction, LedgerDirection):
        return direction
    text = str(direction).strip().lower()
    for candidate in LedgerDirection:
        if candidate.value.lower() == text:
            return candidate
    raise ValidationError(f"direction must be Income or Expense, got {direction!r}")


@dataclass(frozen=True)
class LedgerTotals:
    start: date | None
    end: date | None
    income: Money
    expense: Money

    @property
    def net(self) -> Money:
        return self.income - self.expense


class SocietyLedgerService(BaseService):
    """Append-only society book with range totals."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        reconciliation_policy: ReconciliationPolicy | None = None,
        fees: FeeSchedule | None = None,
        currency: str = "INR",
    ):
        super().__init__(store, clock)
        self.reconciliation_policy = reconciliation_policy or ReconciliationPolicy()
        self.fees = fees or FeeSchedule()
        self.currency = currency

    def append_ledger_entry(
        self,
        amount: Decimal | int | str,
        direction: LedgerDirection | str,
        category: str,
        *,
        description: str = "",
        member_id: str | None = None,
        mode: PaymentMode | str | None = None,
        cash_amount: Decimal | int | str | None = None,
        online_amount: Decimal | int | str | None = None,
        utr_reference: str | None = None,
        date: date | str | None = None,
    ) -> LedgerEntryRecord:
        """
        Record one income or expense line.

        Raises:
            InvalidAmountError: amount <= 0.
            PaymentError: the payment instruction does not reconcile.
            MemberNotFoundError: ``member_id`` given but unknown.
        """
        value = as_decimal("amount", amount)
        if value is None or value <= 0:
            raise InvalidAmountError("amount", amount)
        entry_direction = parse_ledger_direction(direction)
        split = reconcile_payment(
            amount=value,
            mode=mode,
            cash_amount=as_decimal("cash_amount", cash_amount),
            online_amount=as_decimal("online_amount", online_amount),
            utr_reference=utr_reference,
            policy=self.reconciliation_policy,
        )
        entry_date = self._resolve_date("date", date)
        if member_id is not None:
            self._require_member(member_id)

        with LogContext.bind(member_id=member_id), self.store.atomic("append_ledger_entry"):
            seq = self.store.next_sequence(SEQ_LEDGER_ENTRY)
            entry = self.store.add_ledger_entry(
                LedgerEntryRecord(
                    id=ledger_entry_id(seq),
                    seq=seq,
                    date=entry_date,
                    amount=value,
                    direction=entry_direction,
                    category=category,
                    description=description,
                    member_id=member_id,
                    payment_mode=split.mode,
                    cash_amount=split.stored_cash_amount,
                    online_amount=split.stored_online_amount,
                    utr_reference=split.utr_reference,
                )
            )
            logger.info(
                "ledger_entry_appended",
                extra={
                    "entry_id": entry.id,
                    "direction": entry.direction.value,
                    "category": category,
                    "amount": str(value),
                    "payment_mode": split.mode.value,
                },
            )
        return entry

    def record_emergency_loan_fee(self, member_id: str, *, date: date | str | None = None) -> LedgerEntryRecord:
        """Processing fee income for a new Emergency loan, with its breakdown in the description."""
        member = self._require_member(member_id)
        breakdown = ", ".join(
            f"{name} {Money.of(amount, self.currency).display()}"
            for name, amount in self.fees.emergency_fee_components
        )
        return self.append_ledger_entry(
            self.fees.emergency_fee_total,
            LedgerDirection.INCOME,
            self.fees.emergency_fee_category,
            description=f"Loan Fees (Emergency) - {member.full_name} | Breakdown: {breakdown}",
            member_id=member_id,
            mode=PaymentMode.CASH,
            date=date,
        )

    def list_entries(
        self,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> list[LedgerEntryRecord]:
        first = self._resolve_date("start", start) if start else None
        last = self._resolve_date("end", end) if end else None
        return self.store.list_ledger_entries(first, last)

    def totals(self, start: date | str | None = None, end: date | str | None = None) -> LedgerTotals:
        income = Money.zero(self.currency)
        expense = Money.zero(self.currency)
        entries = self.list_entries(start, end)
        for entry in entries:
            if entry.direction is LedgerDirection.INCOME:
                income = income + Money.of(entry.amount, self.currency)
            else:
                expense = expense + Money.of(entry.amount, self.currency)
        return LedgerTotals(
            start=self._resolve_date("start", start) if start else None,
            end=self._resolve_date("end", end) if end else None,
            income=income,
            expense=expense,
        )
