"""
Parallel appends against the in-memory store.

Threads released together by a barrier hammer the same accounts; the final
cached balance must equal the replayed log and no sequence may repeat.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from threading import Barrier

import pytest

from coop_kernel.domain.clock import DeterministicClock
from coop_kernel.domain.dtos import ProductType
from coop_kernel.domain.replay import replay_balance
from coop_kernel.exceptions import InsufficientBalanceError
from coop_kernel.services.account_service import AccountService
from coop_kernel.services.member_service import MemberService
from coop_kernel.storage.memory import InMemoryLedgerStore

NUM_THREADS = 8
APPENDS_PER_THREAD = 25


@pytest.fixture
def parallel_env():
    store = InMemoryLedgerStore()
    clock = DeterministicClock(date(2024, 6, 15))
    MemberService(store, clock).register_member("M001", "Asha Patil")
    accounts = AccountService(store, clock)
    return store, accounts


class TestParallelAppends:
    def test_credits_all_land(self, parallel_env):
        store, accounts = parallel_env
        od = accounts.open_account("M001", ProductType.OPTIONAL_DEPOSIT, "0")
        barrier = Barrier(NUM_THREADS, timeout=30)

        def worker():
            barrier.wait()
            return [accounts.ledger.append_transaction(od.id, "10", "credit") for _ in range(APPENDS_PER_THREAD)]

        with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
            results = [f.result() for f in [executor.submit(worker) for _ in range(NUM_THREADS)]]

        seqs = [tx.seq for batch in results for tx in batch]
        assert len(seqs) == len(set(seqs)) == NUM_THREADS * APPENDS_PER_THREAD
        expected = Decimal("10") * NUM_THREADS * APPENDS_PER_THREAD
        assert store.get_account(od.id).balance == expected
        assert replay_balance(od.product_type, store.list_transactions(od.id)) == expected

    def test_withdrawals_never_overdraw(self, parallel_env):
        store, accounts = parallel_env
        od = accounts.open_account("M001", ProductType.OPTIONAL_DEPOSIT, "100")
        barrier = Barrier(NUM_THREADS, timeout=30)

        def worker():
            barrier.wait()
            try:
                accounts.ledger.append_transaction(od.id, "30", "debit")
                return True
            except InsufficientBalanceError:
                return False

        with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
            outcomes = [f.result() for f in [executor.submit(worker) for _ in range(NUM_THREADS)]]

        assert outcomes.count(True) == 3
        assert store.get_account(od.id).balance == Decimal("10")

    def test_separate_accounts_do_not_interfere(self, parallel_env):
        store, accounts = parallel_env
        ids = [accounts.open_account("M001", ProductType.OPTIONAL_DEPOSIT, "0").id for _ in range(4)]
        barrier = Barrier(len(ids), timeout=30)

        def worker(account_id):
            barrier.wait()
            for _ in range(APPENDS_PER_THREAD):
                accounts.ledger.append_transaction(account_id, "1", "credit")

        with ThreadPoolExecutor(max_workers=len(ids)) as executor:
            for future in [executor.submit(worker, account_id) for account_id in ids]:
                future.result()

        for account_id in ids:
            assert store.get_account(account_id).balance == Decimal(APPENDS_PER_THREAD)
