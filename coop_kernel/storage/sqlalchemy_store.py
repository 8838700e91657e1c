"""
SqlAlchemyLedgerStore -- durable LedgerStore bound to a caller's Session.

Responsibility:
    Maps LedgerStore operations onto the ORM models. Converts rows to frozen
    DTOs at the boundary, so nothing above this module sees an ORM object.

Architecture position:
    Kernel > Storage. Imports models/, db/ and domain DTOs.

Invariants enforced:
    - Flush, never commit. The caller's ``session_scope()`` commits.
    - ``account_lock`` issues ``SELECT ... FOR UPDATE`` on the account rows in
      id order; the locks are held until the caller's transaction ends.
    - ``atomic`` is a SAVEPOINT. A failure inside it rolls back to the
      savepoint and leaves the outer transaction usable.

Failure modes:
    - PersistenceError (retryable) wrapping any SQLAlchemyError raised while
      writing. The savepoint has already been rolled back when it surfaces.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

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
from coop_kernel.models.account import Account, AccountGuarantor
from coop_kernel.models.member import Member
from coop_kernel.models.society_ledger import SocietyLedgerEntry
from coop_kernel.models.transaction import Transaction
from coop_kernel.services.sequence_service import SequenceService
from coop_kernel.storage.port import LedgerStore

logger = get_logger("storage.sqlalchemy")


class SqlAlchemyLedgerStore(LedgerStore):
    """LedgerStore over a SQLAlchemy session (PostgreSQL or SQLite)."""

    def __init__(self, session: Session):
        self.session = session
        self._sequences = SequenceService(session)

    def _flush(self, operation: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.warning(
                "store_flush_failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise PersistenceError(operation, str(e)) from e

    # -- infrastructure ----------------------------------------------------

    def next_sequence(self, name: str) -> int:
        try:
            return self._sequences.next_value(name)
        except SQLAlchemyError as e:
            raise PersistenceError(f"allocate {name} sequence", str(e)) from e

    @contextmanager
    def account_lock(self, *account_ids: str) -> Iterator[None]:
        ordered = sorted(set(account_ids))
        self.session.execute(
            select(Account.id)
            .where(Account.id.in_(ordered))
            .order_by(Account.id)
            .with_for_update()
        ).all()
        yield

    @contextmanager
    def atomic(self, operation: str = "write") -> Iterator[None]:
        savepoint = self.session.begin_nested()
        try:
            yield
        except SQLAlchemyError as e:
            if savepoint.is_active:
                savepoint.rollback()
            raise PersistenceError(operation, str(e)) from e
        except BaseException:
            if savepoint.is_active:
                savepoint.rollback()
            raise
        else:
            try:
                savepoint.commit()
            except SQLAlchemyError as e:
                if savepoint.is_active:
                    savepoint.rollback()
                raise PersistenceError(operation, str(e)) from e

    # -- members -------------------------------------------------------------

    def get_member(self, member_id: str) -> MemberRecord | None:
        model = self.session.get(Member, member_id)
        return MemberRecord.from_model(model) if model else None

    def upsert_member(self, member: MemberRecord) -> MemberRecord:
        model = self.session.get(Member, member.id)
        if model is None:
            model = Member(id=member.id)
            self.session.add(model)
        model.full_name = member.full_name
        model.status = member.status
        model.last_printed_transaction_id = member.last_printed_transaction_id
        self._flush("upsert member")
        return MemberRecord.from_model(model)

    # -- accounts ------------------------------------------------------------

    def get_account(self, account_id: str) -> AccountRecord | None:
        model = self.session.get(Account, account_id, populate_existing=True)
        return AccountRecord.from_model(model) if model else None

    def list_accounts(
        self,
        owner_id: str | None = None,
        product_type: ProductType | None = None,
        status: AccountStatus | None = None,
    ) -> list[AccountRecord]:
        stmt = select(Account)
        if owner_id is not None:
            stmt = stmt.where(Account.owner_id == owner_id)
        if product_type is not None:
            stmt = stmt.where(Account.product_type == product_type.value)
        if status is not None:
            stmt = stmt.where(Account.status == status.value)
        rows = self.session.execute(stmt.order_by(Account.id)).scalars().all()
        return [AccountRecord.from_model(row) for row in rows]

    def add_account(self, account: AccountRecord) -> AccountRecord:
        model = Account(
            id=account.id,
            owner_id=account.owner_id,
            account_number=account.account_number,
            product_type=account.product_type.value,
            loan_subtype=account.loan_subtype.value if account.loan_subtype else None,
            interest_rate=account.interest_rate,
            initial_interest_rate=account.initial_interest_rate,
            term_months=account.term_months,
            term_days=account.term_days,
            rd_frequency=account.rd_frequency.value if account.rd_frequency else None,
            opening_date=account.opening_date,
            maturity_date=account.maturity_date,
            original_principal=account.original_principal,
            balance=account.balance,
            status=account.status.value,
            emi=account.emi,
            low_balance_alert_threshold=account.low_balance_alert_threshold,
            maturity_processed=account.maturity_processed,
            currency=account.currency,
        )
        model.guarantors = [
            AccountGuarantor(position=i, name=g.name, phone=g.phone, relation=g.relation or None)
            for i, g in enumerate(account.guarantors)
        ]
        self.session.add(model)
        self._flush("add account")
        return AccountRecord.from_model(model)

    def save_account(self, account: AccountRecord) -> AccountRecord:
        model = self.session.get(Account, account.id)
        if model is None:
            raise KeyError(account.id)
        model.balance = account.balance
        model.status = account.status.value
        model.interest_rate = account.interest_rate
        model.emi = account.emi
        model.maturity_date = account.maturity_date
        model.low_balance_alert_threshold = account.low_balance_alert_threshold
        model.maturity_processed = account.maturity_processed
        self._flush("save account")
        return AccountRecord.from_model(model)

    # -- transactions ----------------------------------------------------------

    def append_transaction(self, tx: TransactionRecord) -> TransactionRecord:
        model = Transaction(
            id=tx.id,
            account_id=tx.account_id,
            seq=tx.seq,
            date=tx.date,
            amount=tx.amount,
            direction=tx.direction.value,
            kind=tx.kind.value,
            category=tx.category,
            description=tx.description,
            due_date=tx.due_date,
            payment_mode=tx.payment_mode.value,
            cash_amount=tx.cash_amount,
            online_amount=tx.online_amount,
            utr_reference=tx.utr_reference,
        )
        self.session.add(model)
        self._flush("append transaction")
        return TransactionRecord.from_model(model)

    def list_transactions(self, account_id: str) -> list[TransactionRecord]:
        rows = self.session.execute(
            select(Transaction)
            .where(Transaction.account_id == account_id)
            .order_by(Transaction.seq)
        ).scalars().all()
        return [TransactionRecord.from_model(row) for row in rows]

    def list_transactions_between(self, start: date, end: date) -> list[TransactionRecord]:
        rows = self.session.execute(
            select(Transaction)
            .where(Transaction.date >= start, Transaction.date <= end)
            .order_by(Transaction.seq)
        ).scalars().all()
        return [TransactionRecord.from_model(row) for row in rows]

    # -- society ledger ----------------------------------------------------------

    def add_ledger_entry(self, entry: LedgerEntryRecord) -> LedgerEntryRecord:
        model = SocietyLedgerEntry(
            id=entry.id,
            seq=entry.seq,
            member_id=entry.member_id,
            date=entry.date,
            description=entry.description,
            category=entry.category,
            amount=entry.amount,
            direction=entry.direction.value,
            payment_mode=entry.payment_mode.value,
            cash_amount=entry.cash_amount,
            online_amount=entry.online_amount,
            utr_reference=entry.utr_reference,
        )
        self.session.add(model)
        self._flush("add ledger entry")
        return LedgerEntryRecord.from_model(model)

    def list_ledger_entries(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerEntryRecord]:
        stmt = select(SocietyLedgerEntry)
        if start is not None:
            stmt = stmt.where(SocietyLedgerEntry.date >= start)
        if end is not None:
            stmt = stmt.where(SocietyLedgerEntry.date <= end)
        rows = self.session.execute(stmt.order_by(SocietyLedgerEntry.seq)).scalars().all()
        return [LedgerEntryRecord.from_model(row) for row in rows]
