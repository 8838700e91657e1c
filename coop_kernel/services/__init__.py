"""Services for the coop kernel (write side)."""

from coop_kernel.services.account_service import AccountService, MaturityTransfer
from coop_kernel.services.ledger_service import LedgerService
from coop_kernel.services.member_service import MemberService
from coop_kernel.services.projection_service import ProjectionService
from coop_kernel.services.sequence_service import SequenceService
from coop_kernel.services.society_ledger_service import LedgerTotals, SocietyLedgerService

__all__ = [
    "AccountService",
    "LedgerService",
    "LedgerTotals",
    "MaturityTransfer",
    "MemberService",
    "ProjectionService",
    "SequenceService",
    "SocietyLedgerService",
]
