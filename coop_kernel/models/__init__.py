"""ORM models for the coop kernel."""

from coop_kernel.models.account import Account, AccountGuarantor
from coop_kernel.models.member import Member
from coop_kernel.models.sequence import SequenceCounter
from coop_kernel.models.society_ledger import SocietyLedgerEntry
from coop_kernel.models.transaction import Transaction

__all__ = [
    "Account",
    "AccountGuarantor",
    "Member",
    "SequenceCounter",
    "SocietyLedgerEntry",
    "Transaction",
]
