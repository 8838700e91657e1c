"""
MemberService -- the minimal member read model the ledger depends on.

Members are owned by the registration system; this service only keeps the
fields the ledger needs (name for reports, passbook print anchor).
"""

from __future__ import annotations

from dataclasses import replace

from coop_kernel.domain.dtos import MemberRecord
from coop_kernel.exceptions import ValidationError
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.services.base import BaseService

logger = get_logger("services.member")


class MemberService(BaseService):
    def register_member(self, member_id: str, full_name: str, status: str = "Active") -> MemberRecord:
        """Create or refresh a member, keeping an existing print anchor."""
        if not member_id or not member_id.strip():
            raise ValidationError("member_id is required")
        existing = self.store.get_member(member_id)
        anchor = existing.last_printed_transaction_id if existing else None
        with self.store.atomic("register_member"):
            member = self.store.upsert_member(
                MemberRecord(
                    id=member_id,
                    full_name=full_name,
                    status=status,
                    last_printed_transaction_id=anchor,
                )
            )
        return member

    def mark_passbook_printed(self, member_id: str, transaction_id: str | None) -> MemberRecord:
        """
        Move the passbook print anchor.

        ``None`` resets it, so the next print starts from the first entry.
        The transaction must belong to one of the member's accounts.
        """
        with LogContext.bind(member_id=member_id):
            member = self._require_member(member_id)
            if transaction_id is not None:
                owned = {tx.id for tx in self.store.iter_member_transactions(member_id)}
                if transaction_id not in owned:
                    raise ValidationError(
                        f"transaction {transaction_id} is not in member {member_id}'s passbook"
                    )
            with self.store.atomic("mark_passbook_printed"):
                updated = self.store.upsert_member(
                    replace(member, last_printed_transaction_id=transaction_id)
                )
            logger.info("passbook_printed", extra={"last_printed_transaction_id": transaction_id})
        return updated
