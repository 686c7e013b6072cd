"""
Serialization Conformance Tests

INVARIANT: Each mutating operation executes as one indivisible step.

    ∀ concurrent callers:
        the final state equals some serial ordering of the applied operations
        no observer sees an event before its state change is applied

transfer_from touches balances and allowances together, so the whole
ledger is one critical section.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from token_ledger import (
    TokenLedger, TokenConfig, InsufficientAllowance, InsufficientBalance,
)


OWNER = "0x0a"
SPENDERS = [f"0x1{i}" for i in range(8)]
RECIPIENT = "0x0c"


def _ledger(supply: int) -> TokenLedger:
    return TokenLedger(OWNER, TokenConfig(decimals=0, initial_supply=supply), verbose=False)


class TestSerialization:
    """Concurrent callers against one ledger."""

    def test_concurrent_transfers_conserve(self):
        ledger = _ledger(80_000)
        for s in SPENDERS:
            ledger.transfer(OWNER, s, 10_000)

        def churn(idx: int) -> None:
            source = SPENDERS[idx]
            dest = SPENDERS[(idx + 1) % len(SPENDERS)]
            for _ in range(500):
                try:
                    ledger.transfer(source, dest, 7)
                except InsufficientBalance:
                    pass

        with ThreadPoolExecutor(max_workers=len(SPENDERS)) as pool:
            list(pool.map(churn, range(len(SPENDERS))))

        assert ledger.verify_conservation()["valid"]

    def test_allowance_never_overspent(self):
        """
        Many spenders race for one shared allowance each; total spent never exceeds it.
        """
        ledger = _ledger(1_000_000)
        spender = SPENDERS[0]
        ledger.approve(OWNER, spender, 1_000)
        barrier = threading.Barrier(8)
        outcomes = []
        lock = threading.Lock()

        def spend() -> None:
            barrier.wait()
            for _ in range(50):
                try:
                    ledger.transfer_from(spender, OWNER, RECIPIENT, 3)
                    result = True
                except InsufficientAllowance:
                    result = False
                with lock:
                    outcomes.append(result)

        threads = [threading.Thread(target=spend) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        successes = sum(outcomes)
        assert successes == 1_000 // 3
        assert ledger.balance_of(RECIPIENT) == successes * 3
        assert ledger.allowance(OWNER, spender) == 1_000 - successes * 3

    def test_observers_see_committed_state(self):
        ledger = _ledger(100_000)
        mismatches = []

        def check(event) -> None:
            # Runs inside the critical section: the last logged event is this one
            if ledger.event_log[-1] is not event:
                mismatches.append(event)
            if sum(ledger.balances.values()) != ledger.total_supply:
                mismatches.append(event)

        ledger.events.subscribe(check)

        def worker(idx: int) -> None:
            for _ in range(200):
                ledger.transfer(OWNER, SPENDERS[idx], 1)

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(worker, range(4)))

        assert mismatches == []
        assert len(ledger.event_log) == 800
        assert [e.sequence_number for e in ledger.event_log] == list(range(800))

    @pytest.mark.parametrize("workers", [2, 8])
    def test_sequence_numbers_unique(self, workers):
        ledger = _ledger(100_000)

        def worker(idx: int) -> None:
            for _ in range(100):
                ledger.approve(OWNER, SPENDERS[idx], idx)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(worker, range(workers)))

        seqs = [op.sequence_number for op in ledger.transaction_log]
        assert seqs == list(range(workers * 100))
