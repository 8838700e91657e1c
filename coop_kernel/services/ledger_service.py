"""
LedgerService -- append transactions to an account's log.

Responsibility:
    The single write path for account transactions. Validates the amount,
    reconciles the payment, appends the immutable record and re-derives the
    cached balance, all inside one atomic store scope under the account's
    write lock.

Architecture position:
    Kernel > Services -- imperative shell.
    Calls coop_engines.payment for reconciliation and
    coop_kernel.domain.replay for the balance.

Invariants enforced:
    - Amount > 0 and a reconciled payment before anything is written.
    - Append and balance re-derivation are one unit; a failure leaves
      neither applied.
    - Writers of the same account are serialized by ``account_lock``.
    - A withdrawal may not take a deposit below zero unless the ledger
      policy allows it.
    - Only ``record_opening`` writes a Seed or Disbursement, and only into
      an empty log; every other append follows the product's polarity.

Failure modes:
    - InvalidAmountError, PaymentError subclasses, InvalidDateError.
    - AccountNotFoundError for an unknown account.
    - InsufficientBalanceError for an over-withdrawal.
    - PersistenceError from the durable store.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from coop_engines.payment import reconcile_payment
from coop_kernel.domain.clock import Clock
from coop_kernel.domain.dtos import (
    AccountRecord,
    Direction,
    PaymentMode,
    TransactionKind,
    TransactionRecord,
)
from coop_kernel.domain.policy import LedgerPolicy, ReconciliationPolicy
from coop_kernel.domain.replay import replay_balance, signed_contribution
from coop_kernel.exceptions import InsufficientBalanceError, InvalidAmountError, ValidationError
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.services.base import BaseService, as_decimal
from coop_kernel.storage.port import SEQ_TRANSACTION, LedgerStore

logger = get_logger("services.ledger")

SEED_CATEGORY = "Opening Balance"
DISBURSEMENT_CATEGORY = "Loan Disbursement"


def transaction_id(seq: int) -> str:
    return f"TX-{seq:010d}"


def parse_direction(direction: Direction | str) -> Direction:
    if isinstance(direction, Direction):
        return direction
    try:
        return Direction(str(direction).strip().lower())
    except ValueError as e:
        raise ValidationError(f"direction must be credit or debit, got {direction!r}") from e


def opening_terms(account: AccountRecord) -> tuple[Direction, TransactionKind, str]:
    """Direction, kind and category of an account's opening transaction."""
    if account.is_loan:
        return Direction.DEBIT, TransactionKind.DISBURSEMENT, DISBURSEMENT_CATEGORY
    return Direction.CREDIT, TransactionKind.SEED, SEED_CATEGORY


class LedgerService(BaseService):
    """
    Appends transactions and keeps the balance cache in step.

    Contract:
        ``append_transaction`` returns the stored TransactionRecord. The
        account's cached balance equals the replayed log afterwards.
        Every transaction it writes is Regular; the seed or disbursement is
        written once, by ``record_opening``.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        ledger_policy: LedgerPolicy | None = None,
        reconciliation_policy: ReconciliationPolicy | None = None,
    ):
        super().__init__(store, clock)
        self.ledger_policy = ledger_policy or LedgerPolicy()
        self.reconciliation_policy = reconciliation_policy or ReconciliationPolicy()

    def append_transaction(
        self,
        account_id: str,
        amount: Decimal | int | str,
        direction: Direction | str,
        *,
        mode: PaymentMode | str | None = None,
        cash_amount: Decimal | int | str | None = None,
        online_amount: Decimal | int | str | None = None,
        utr_reference: str | None = None,
        category: str = "",
        description: str = "",
        date: date | str | None = None,
        due_date: date | str | None = None,
    ) -> TransactionRecord:
        """
        Append one transaction to ``account_id``.

        Args:
            amount: Positive amount in currency units.
            direction: ``credit`` or ``debit``. A credit raises a deposit and
                lowers a loan; a debit does the opposite.
            mode: Cash, Online or Both (case-insensitive, default Cash).

        Raises:
            InvalidAmountError: amount <= 0 or not a number.
            AccountNotFoundError: unknown account.
            InsufficientBalanceError: deposit withdrawal beyond the balance.
        """
        return self._append(
            account_id,
            amount,
            parse_direction(direction),
            TransactionKind.REGULAR,
            mode=mode,
            cash_amount=cash_amount,
            online_amount=online_amount,
            utr_reference=utr_reference,
            category=category,
            description=description,
            date=date,
            due_date=due_date,
        )

    def record_opening(
        self,
        account_id: str,
        amount: Decimal | int | str,
        *,
        mode: PaymentMode | str | None = None,
        cash_amount: Decimal | int | str | None = None,
        online_amount: Decimal | int | str | None = None,
        utr_reference: str | None = None,
        date: date | str | None = None,
    ) -> TransactionRecord:
        """
        Write the opening deposit or loan disbursement of a new account.

        Kind, direction and category follow the product. The account's log
        must be empty, so an account carries at most one such transaction.

        Raises:
            ValidationError: the account already has transactions.
        """
        return self._append(
            account_id,
            amount,
            None,
            None,
            mode=mode,
            cash_amount=cash_amount,
            online_amount=online_amount,
            utr_reference=utr_reference,
            date=date,
        )

    def _append(
        self,
        account_id: str,
        amount: Decimal | int | str,
        direction: Direction | None,
        kind: TransactionKind | None,
        *,
        mode: PaymentMode | str | None,
        cash_amount: Decimal | int | str | None,
        online_amount: Decimal | int | str | None,
        utr_reference: str | None,
        category: str = "",
        description: str = "",
        date: date | str | None = None,
        due_date: date | str | None = None,
    ) -> TransactionRecord:
        # direction and kind of None mean "the opening transaction"
        value = as_decimal("amount", amount)
        if value is None or value <= 0:
            raise InvalidAmountError("amount", amount)
        split = reconcile_payment(
            amount=value,
            mode=mode,
            cash_amount=as_decimal("cash_amount", cash_amount),
            online_amount=as_decimal("online_amount", online_amount),
            utr_reference=utr_reference,
            policy=self.reconciliation_policy,
        )
        tx_date = self._resolve_date("date", date)
        tx_due = self._resolve_date("due_date", due_date) if due_date else None

        with LogContext.bind(account_id=account_id):
            with self.store.account_lock(account_id), self.store.atomic("append_transaction"):
                account = self._require_account(account_id)
                history = self.store.list_transactions(account_id)
                if kind is None:
                    if history:
                        raise ValidationError(f"account {account_id} already has an opening transaction")
                    direction, kind, category = opening_terms(account)
                    description = category
                current = replay_balance(account.product_type, history)

                draft = TransactionRecord(
                    id="",
                    account_id=account_id,
                    seq=0,
                    date=tx_date,
                    amount=value,
                    direction=direction,
                    kind=kind,
                    category=category,
                    description=description,
                    payment_mode=split.mode,
                    cash_amount=split.stored_cash_amount,
                    online_amount=split.stored_online_amount,
                    utr_reference=split.utr_reference,
                    due_date=tx_due,
                )
                new_balance = current + signed_contribution(account.product_type, draft)
                self._check_withdrawal(account, current, new_balance, value)

                seq = self.store.next_sequence(SEQ_TRANSACTION)
                tx = replace(draft, id=transaction_id(seq), seq=seq)

                self.store.append_transaction(tx)
                self.store.save_account(replace(account, balance=new_balance))

            logger.info(
                "transaction_appended",
                extra={
                    "transaction_id": tx.id,
                    "direction": tx.direction.value,
                    "kind": tx.kind.value,
                    "amount": str(value),
                    "payment_mode": split.mode.value,
                    "balance": str(new_balance),
                },
            )
        return tx

    def _check_withdrawal(
        self,
        account: AccountRecord,
        current: Decimal,
        new_balance: Decimal,
        requested: Decimal,
    ) -> None:
        if account.is_loan or self.ledger_policy.allow_negative_deposit_balance:
            return
        if new_balance < 0:
            logger.warning(
                "withdrawal_rejected",
                extra={"balance": str(current), "requested": str(requested)},
            )
            raise InsufficientBalanceError(account.id, current, requested)
