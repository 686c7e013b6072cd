"""
conftest.py - Shared pytest fixtures for token ledger tests

Provides common fixtures used across unit, ledger and conformance tests:
- Named addresses (deployer, receiver, exchange)
- A freshly created ledger with an attached event recorder
- State snapshot helper for atomicity assertions
"""

import pytest
from typing import Any, Dict

from token_ledger import TokenLedger, EventRecorder, normalize_address


# =============================================================================
# ADDRESSES
# =============================================================================

DEPLOYER = normalize_address("0x627306090abaB3A6e1400e9345bC60c78a8BEf57")
RECEIVER = normalize_address("0xf17f52151EbEF6C7334FAD080c5704D77216b732")
EXCHANGE = normalize_address("0xC5fdf4076b8F3A5357c5E395ab970B5B54098Fef")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def snapshot(ledger: TokenLedger) -> Dict[str, Any]:
    """Capture everything a rejected operation must leave untouched."""
    return {
        "balances": dict(ledger.balances),
        "allowances": dict(ledger.allowances),
        "transaction_log": list(ledger.transaction_log),
        "event_log": list(ledger.event_log),
    }


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def deployer():
    return DEPLOYER


@pytest.fixture
def receiver():
    return RECEIVER


@pytest.fixture
def exchange():
    return EXCHANGE


@pytest.fixture
def ledger():
    """Default DApp Token ledger with the full supply held by the deployer."""
    return TokenLedger(DEPLOYER, verbose=False)


@pytest.fixture
def recorder(ledger):
    """EventRecorder subscribed to every notification of the ledger fixture."""
    rec = EventRecorder()
    ledger.events.subscribe(rec)
    return rec


@pytest.fixture
def take_snapshot():
    """The snapshot() helper, for tests that compare state before and after a call."""
    return snapshot
