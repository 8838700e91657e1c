"""
Coop Kernel - ledger and interest core for a member cooperative.

An append-only, replay-derived account ledger with:
- Self-healing cached balances
- Product-aware credit/debit polarity
- Reconciled cash/online payment splits
- An account-independent society income/expense journal
- Injectable storage (durable SQL or ephemeral in-memory)
"""

__version__ = "0.1.0"
