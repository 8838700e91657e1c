"""
Module: coop_kernel.selectors.collection_selector
Responsibility: Feed the collection aggregator from the store. Day-wise and
    date-range collection reports across account transactions and the
    society ledger, plus a member's passbook backlog.
Architecture position: Kernel > Selectors. Fetches records, hands them to
    coop_engines.collection, returns its DTOs unchanged.
"""

from __future__ import annotations

from datetime import date

from coop_engines.collection import (
    CollectionReport,
    PassbookBacklog,
    build_collection_report,
    passbook_backlog,
)
from coop_kernel.exceptions import InvalidDateRangeError, MemberNotFoundError
from coop_kernel.selectors.base import BaseSelector
from coop_kernel.storage.port import LedgerStore


class CollectionSelector(BaseSelector):
    """Cash/online collection reports and passbook backlog."""

    def __init__(self, store: LedgerStore, currency: str = "INR"):
        super().__init__(store)
        self.currency = currency

    def daywise_collection(self, day: date) -> CollectionReport:
        """Every credit and every Income entry dated ``day``."""
        return self.collection_between(day, day)

    def collection_between(self, start: date, end: date) -> CollectionReport:
        """Collections over the inclusive range ``start``..``end``."""
        if end < start:
            raise InvalidDateRangeError(start, end)
        transactions = self.store.list_transactions_between(start, end)
        entries = self.store.list_ledger_entries(start, end)

        accounts = {}
        for account_id in {tx.account_id for tx in transactions}:
            account = self.store.get_account(account_id)
            if account is not None:
                accounts[account_id] = account

        member_ids = {a.owner_id for a in accounts.values()}
        member_ids.update(e.member_id for e in entries if e.member_id)
        members = {}
        for member_id in member_ids:
            member = self.store.get_member(member_id)
            if member is not None:
                members[member_id] = member

        return build_collection_report(
            start=start,
            end=end,
            transactions=transactions,
            ledger_entries=entries,
            accounts=accounts,
            members=members,
            currency=self.currency,
        )

    def passbook_backlog(self, member_id: str) -> PassbookBacklog:
        """
        The member's passbook in print order with the unprinted tail.

        Raises:
            MemberNotFoundError: unknown member.
        """
        member = self.store.get_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return passbook_backlog(
            member_id=member_id,
            transactions=self.store.iter_member_transactions(member_id),
            last_printed_transaction_id=member.last_printed_transaction_id,
        )
