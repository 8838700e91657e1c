"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out strictly increasing numbers for account, transaction and
    society ledger ids. A dedicated counter row per sequence is locked with
    ``SELECT ... FOR UPDATE`` for the duration of the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by SqlAlchemyLedgerStore.next_sequence().

Invariants enforced:
    - Never computes max(seq)+1 over the data tables; the counter row is the
      only source of the next value.
    - The increment is transactional. If the caller rolls back, the value is
      returned to the pool.

Failure modes:
    - IntegrityError when two sessions create the same counter row at once.
      Handled by a savepoint rollback and a locked re-read.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coop_kernel.logging_config import get_logger
from coop_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()``; the caller owns the transaction.

    Usage:
        with session_scope() as session:
            seq = SequenceService(session).next_value("transaction")
    """

    ACCOUNT = "account"
    TRANSACTION = "transaction"
    LEDGER_ENTRY = "ledger_entry"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """Lock (or create) the counter row, increment it and return the new value."""
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use. Another session may be creating the same row, so
            # insert inside a savepoint and fall back to the locked read.
            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.get(SequenceCounter, sequence_name)
        return counter.current_value if counter else None
