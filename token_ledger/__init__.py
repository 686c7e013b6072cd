"""
token_ledger - Fixed-Supply ERC20 Token Ledger

An in-process implementation of the ERC20 accounting model: balances,
allowances, direct and delegated transfers, Transfer/Approval notifications.

Usage:
    from token_ledger import TokenLedger, EventRecorder, tokens

    ledger = TokenLedger("0xd00d", verbose=False)
    recorder = EventRecorder()
    ledger.events.subscribe(recorder)

    # Direct transfer
    ledger.transfer("0xd00d", "0xbeef", tokens(100))

    # Delegated transfer through an allowance
    ledger.approve("0xd00d", "0xe1e1", tokens(100))
    ledger.transfer_from("0xe1e1", "0xd00d", "0xbeef", tokens(100))

    assert ledger.verify_conservation()['valid']
"""

# Core types
from .core import (
    Address,
    TokenConfig,
    TransferEvent,
    ApprovalEvent,
    LedgerEvent,
    Operation,
    LedgerError,
    InvalidRecipient,
    InvalidSpender,
    InsufficientBalance,
    InsufficientAllowance,
    InvalidAmount,
    InvalidAddress,
    normalize_address,
    is_zero_address,
    require_amount,
    tokens,
    ZERO_ADDRESS,
    UINT256_MAX,
    DEFAULT_NAME,
    DEFAULT_SYMBOL,
    DEFAULT_DECIMALS,
    DEFAULT_SUPPLY_TOKENS,
    EVENT_TRANSFER,
    EVENT_APPROVAL,
    OP_TRANSFER,
    OP_APPROVE,
    OP_TRANSFER_FROM,
)

# Notifications
from .events import EventBus, EventHandler, EventRecorder, ObserverError

# Ledger
from .ledger import TokenLedger

__all__ = [
    # Core
    'Address', 'TokenConfig', 'TransferEvent', 'ApprovalEvent', 'LedgerEvent', 'Operation',
    'LedgerError', 'InvalidRecipient', 'InvalidSpender', 'InsufficientBalance',
    'InsufficientAllowance', 'InvalidAmount', 'InvalidAddress',
    'normalize_address', 'is_zero_address', 'require_amount', 'tokens',
    'ZERO_ADDRESS', 'UINT256_MAX',
    'DEFAULT_NAME', 'DEFAULT_SYMBOL', 'DEFAULT_DECIMALS', 'DEFAULT_SUPPLY_TOKENS',
    'EVENT_TRANSFER', 'EVENT_APPROVAL', 'OP_TRANSFER', 'OP_APPROVE', 'OP_TRANSFER_FROM',
    # Notifications
    'EventBus', 'EventHandler', 'EventRecorder', 'ObserverError',
    # Ledger
    'TokenLedger',
]

__version__ = '1.0.0'
