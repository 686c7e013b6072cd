"""
Core types and pure functions for the token ledger.

This module provides the foundational data structures for the ledger:
1. Constants: zero address, uint256 bounds, default token metadata
2. Immutable data structures: TokenConfig, TransferEvent, ApprovalEvent, Operation
3. Exceptions: LedgerError and the rejection types callers assert on
4. Validation helpers: address normalization and amount checks
5. Unit helpers: tokens() scales human quantities into smallest units

All functions in this module are pure. Only TokenLedger mutates state.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, ClassVar, Dict, Optional, Tuple, Union
import re


# ============================================================================
# CONSTANTS
# ============================================================================

# Sentinel meaning "no account". Never a valid transfer target.
ZERO_ADDRESS = "0x" + "0" * 40

UINT256_MAX = (1 << 256) - 1

DEFAULT_NAME = "DApp Token"
DEFAULT_SYMBOL = "DAPP"
DEFAULT_DECIMALS = 18
DEFAULT_SUPPLY_TOKENS = 1_000_000

# Operation kinds recorded in the transaction log.
OP_TRANSFER = "transfer"
OP_APPROVE = "approve"
OP_TRANSFER_FROM = "transfer_from"

EVENT_TRANSFER = "Transfer"
EVENT_APPROVAL = "Approval"

_SCALING_PRECISION = 400

_HEX_ADDRESS = re.compile(r"^0[xX][0-9a-fA-F]{1,40}$")


# ============================================================================
# TYPE ALIASES
# ============================================================================

Address = str

# Mapping from address to balance in smallest units.
BalanceTable = Dict[Address, int]

# Mapping from (owner, spender) to remaining allowance.
AllowanceTable = Dict[Tuple[Address, Address], int]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InvalidRecipient(LedgerError):
    """Raised when a transfer targets the zero address."""
    pass


class InvalidSpender(LedgerError):
    """Raised by approve_checked() when the spender is the zero address."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when the source account holds less than the requested amount."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a delegated spender's remaining allowance is too small."""
    pass


class InvalidAmount(LedgerError, ValueError):
    """Raised when an amount is not an unsigned 256-bit integer."""
    pass


class InvalidAddress(LedgerError, ValueError):
    """Raised when an address is empty, not a string, or malformed hex."""
    pass


# ============================================================================
# VALIDATION
# ============================================================================

def normalize_address(address: Address) -> Address:
    """
    Return the canonical form of an address.

    Surrounding whitespace is stripped first. Hex addresses ("0x" followed
    by up to 40 hex digits) are lowercased and left-padded to 40 digits, so
    "0x0" and ZERO_ADDRESS compare equal. Any other non-empty string is an
    opaque identifier and is returned as-is.

    Raises:
        InvalidAddress: If address is not a non-empty string, or starts with
            "0x" but is not 1 to 40 hex digits
    """
    if not isinstance(address, str) or not address.strip():
        raise InvalidAddress(f"Address must be a non-empty string, got {address!r}")
    address = address.strip()
    if address[:2] in ("0x", "0X"):
        if not _HEX_ADDRESS.match(address):
            raise InvalidAddress(f"Malformed hex address: {address!r}")
        return "0x" + address[2:].lower().rjust(40, "0")
    return address


def is_zero_address(address: Address) -> bool:
    """True if address normalizes to the zero sentinel."""
    return normalize_address(address) == ZERO_ADDRESS


def require_amount(amount: Any) -> int:
    """
    Ensure amount is an integer in [0, UINT256_MAX].

    bool is rejected even though it subclasses int.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be int, got {type(amount).__name__}")
    if amount < 0 or amount > UINT256_MAX:
        raise InvalidAmount(f"Amount out of uint256 range: {amount}")
    return amount


# ============================================================================
# UNIT HELPERS
# ============================================================================

def tokens(quantity: Union[int, str, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Scale a human-facing quantity into smallest indivisible units.

    Args:
        quantity: Whole or fractional token amount (int, Decimal or numeric string).
                  Floats are rejected to avoid binary rounding.
        decimals: Decimal precision of the token (default: 18)

    Returns:
        quantity * 10**decimals as an int

    Raises:
        InvalidAmount: If the quantity is negative, not numeric, or has more
                       fractional digits than decimals allows

    Example:
        tokens(100)        # 100000000000000000000
        tokens("0.5", 2)   # 50
    """
    if isinstance(quantity, (bool, float)):
        raise InvalidAmount(f"Quantity must be int, Decimal or str, got {type(quantity).__name__}")
    # uint256 needs 78 significant digits; the default context keeps 28
    with localcontext() as ctx:
        ctx.prec = _SCALING_PRECISION
        try:
            value = Decimal(quantity)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise InvalidAmount(f"Quantity is not numeric: {quantity!r}") from e
        if not value.is_finite() or value < 0:
            raise InvalidAmount(f"Quantity must be finite and non-negative, got {quantity!r}")
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidAmount(f"{quantity} has more than {decimals} decimal places")
        return require_amount(int(scaled))


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Immutable token metadata fixed at creation.

    Attributes:
        name: Human-readable token name.
        symbol: Ticker symbol.
        decimals: Decimal precision of the smallest unit (0..255).
        initial_supply: Total supply in smallest units, credited to the creator.
            Defaults to DEFAULT_SUPPLY_TOKENS whole tokens at this decimals.
    """
    name: str = DEFAULT_NAME
    symbol: str = DEFAULT_SYMBOL
    decimals: int = DEFAULT_DECIMALS
    initial_supply: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Token name cannot be empty")
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValueError("Token symbol cannot be empty")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"Token decimals must be int, got {type(self.decimals)}")
        if self.decimals < 0 or self.decimals > 255:
            raise ValueError(f"Token decimals out of range: {self.decimals}")
        if self.initial_supply is None:
            object.__setattr__(self, 'initial_supply', tokens(DEFAULT_SUPPLY_TOKENS, self.decimals))
        require_amount(self.initial_supply)


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransferEvent:
    """
    Notification that value moved between two accounts.

    Attributes:
        sender: Account debited (the owner for delegated transfers).
        recipient: Account credited.
        value: Amount in smallest units.
        sequence_number: Sequence of the operation that emitted this event.
    """
    event: ClassVar[str] = EVENT_TRANSFER

    sender: Address
    recipient: Address
    value: int
    sequence_number: int = 0

    @property
    def args(self) -> Dict[str, Any]:
        return {"from": self.sender, "to": self.recipient, "value": self.value}

    def __repr__(self) -> str:
        return f"Transfer({self.value}: {self.sender}→{self.recipient})"


@dataclass(frozen=True, slots=True)
class ApprovalEvent:
    """Notification that an owner set a spender's allowance."""
    event: ClassVar[str] = EVENT_APPROVAL

    owner: Address
    spender: Address
    value: int
    sequence_number: int = 0

    @property
    def args(self) -> Dict[str, Any]:
        return {"owner": self.owner, "spender": self.spender, "value": self.value}

    def __repr__(self) -> str:
        return f"Approval({self.value}: {self.owner}→{self.spender})"


LedgerEvent = Union[TransferEvent, ApprovalEvent]


# ============================================================================
# OPERATION RECORD
# ============================================================================

@dataclass(frozen=True, slots=True)
class Operation:
    """
    An executed, immutable record of a successful mutating call - represents FACT.

    The transaction log holds these in execution order. replay() re-executes
    them against a fresh ledger.

    Attributes:
        kind: OP_TRANSFER, OP_APPROVE or OP_TRANSFER_FROM
        caller: Address that invoked the operation (sender, owner or spender)
        args: Positional arguments after the caller, as passed to the operation
        sequence_number: Monotonic sequence within the ledger
        tx_id: Unique identifier (symbol + sequence)
    """
    kind: str
    caller: Address
    args: Tuple[Any, ...]
    sequence_number: int
    tx_id: str

    def __post_init__(self):
        if self.kind not in (OP_TRANSFER, OP_APPROVE, OP_TRANSFER_FROM):
            raise ValueError(f"Unknown operation kind: {self.kind}")

    def __repr__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.tx_id} {self.kind}({self.caller}, {args})"
