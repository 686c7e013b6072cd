"""
ledger.py - Stateful ERC20 Token Ledger

The TokenLedger class is the central state manager for the token.
It is the only module that mutates state, ensuring controlled and auditable changes.

Key responsibilities:
    - Holds metadata, balances and allowances for one fixed-supply token
    - Executes transfer/approve/transfer_from atomically (all checks before any write)
    - Emits exactly one notification per successful operation, none on failure
    - Always logs - every applied operation enters the transaction log, enabling
      clone() and replay()
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import threading

from .core import (
    # Types
    Address, AllowanceTable, BalanceTable, LedgerEvent,
    Operation, TokenConfig, TransferEvent, ApprovalEvent,
    # Constants
    OP_APPROVE, OP_TRANSFER, OP_TRANSFER_FROM, ZERO_ADDRESS,
    # Exceptions
    LedgerError, InsufficientAllowance, InsufficientBalance,
    InvalidRecipient, InvalidSpender,
    # Helper functions
    is_zero_address, normalize_address, require_amount,
)
from .events import EventBus, ObserverError


class TokenLedger:
    """
    Fixed-supply ERC20 ledger with full validation and audit trail.

    Design Principles:
        - Conservation: the sum of all balances equals total_supply at every
          observation point. Value only moves, it is never created or destroyed.
        - Atomicity: every precondition is checked before the first write. A
          rejected call raises and leaves balances, allowances and logs untouched.
        - Always logs: every applied operation is recorded in transaction_log
          and its notification in event_log.

    Thread Safety:
        Each mutating operation runs inside one critical section keyed on the
        whole ledger. Observers are notified inside that section, after the
        state change is applied. If any observer raises, the rest are still
        notified and the call raises ObserverError carrying the committed
        Operation.

    Example:
        ledger = TokenLedger("0xd00d")
        ledger.transfer("0xd00d", "0xbeef", tokens(100))
        ledger.approve("0xd00d", "0xe1e1", tokens(50))
        ledger.transfer_from("0xe1e1", "0xd00d", "0xbeef", tokens(50))
    """

    def __init__(
        self,
        creator: Address,
        config: Optional[TokenConfig] = None,
        verbose: bool = True,
    ):
        """
        Create a ledger and credit the entire supply to the creator.

        No event is emitted on creation.

        Args:
            creator: Address that receives the initial supply
            config: Token metadata (default: DApp Token / DAPP / 18 / 1,000,000 tokens)
            verbose: Enable console output (default: True)
        """
        self.config = config or TokenConfig()
        self.creator = normalize_address(creator)
        self.balances: BalanceTable = {self.creator: self.config.initial_supply}
        self.allowances: AllowanceTable = {}
        self.transaction_log: List[Operation] = []
        self.event_log: List[LedgerEvent] = []
        self.events = EventBus()
        self.verbose = verbose
        # Monotonic sequence counter for execution ordering
        self._next_sequence: int = 0
        self._lock = threading.RLock()

        if self.verbose:
            print(f"📝 Created: {self.name} ({self.symbol}) "
                  f"supply={self.total_supply} creator={self.creator}")

    # ========================================================================
    # METADATA (constant)
    # ========================================================================

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def symbol(self) -> str:
        return self.config.symbol

    @property
    def decimals(self) -> int:
        return self.config.decimals

    @property
    def total_supply(self) -> int:
        """Total supply in smallest units, fixed at creation."""
        return self.config.initial_supply

    # ========================================================================
    # READ ACCESSORS
    # ========================================================================

    def balance_of(self, address: Address) -> int:
        """Return the balance of an address (0 if it was never credited)."""
        return self.balances.get(normalize_address(address), 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        """Return what spender may still move out of owner's balance (0 if never approved)."""
        key = (normalize_address(owner), normalize_address(spender))
        return self.allowances.get(key, 0)

    def holders(self) -> Dict[Address, int]:
        """Return all non-zero balances, sorted by address."""
        with self._lock:
            return {a: b for a, b in sorted(self.balances.items()) if b}

    def list_allowances(self) -> Dict[Tuple[Address, Address], int]:
        """Return all non-zero allowances, sorted by (owner, spender)."""
        with self._lock:
            return {k: v for k, v in sorted(self.allowances.items()) if v}

    def verify_conservation(self, expected_supply: Optional[int] = None) -> Dict[str, Any]:
        """
        Verify that the supply invariants hold.

        Checks that the sum of all balances equals the total supply (or
        expected_supply if given) and that no balance or allowance is negative.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all invariants hold
            - 'total_supply': int - The ledger's fixed supply
            - 'sum_of_balances': int - Current sum over the balance table
            - 'discrepancies': List[Dict] - One entry per violation

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], f"Conservation violated: {result['discrepancies']}"
        """
        expected = self.total_supply if expected_supply is None else expected_supply
        with self._lock:
            # Sort before summation for deterministic accumulation order
            total = sum(self.balances[a] for a in sorted(self.balances))
            discrepancies = []
            if total != expected:
                discrepancies.append({
                    'check': 'supply',
                    'expected': expected,
                    'actual': total,
                    'difference': total - expected,
                })
            for address, balance in sorted(self.balances.items()):
                if balance < 0:
                    discrepancies.append({'check': 'negative_balance', 'address': address, 'actual': balance})
            for key, value in sorted(self.allowances.items()):
                if value < 0:
                    discrepancies.append({'check': 'negative_allowance', 'key': key, 'actual': value})

        return {
            'valid': not discrepancies,
            'total_supply': self.total_supply,
            'sum_of_balances': total,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # OPERATIONS (Mutating)
    # ========================================================================

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool:
        """
        Move amount from sender to recipient.

        sender == recipient is allowed: balances are unchanged but the call
        still succeeds and still emits Transfer.

        Returns:
            True

        Raises:
            InsufficientBalance: If sender holds less than amount
            InvalidRecipient: If recipient is the zero address
            InvalidAmount: If amount is not an unsigned 256-bit int
            ObserverError: If an observer raised; the transfer is still applied
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        amount = require_amount(amount)

        with self._lock:
            self._require_balance(sender, amount)
            self._require_recipient(recipient)

            self._move(sender, recipient, amount)
            self._commit(
                OP_TRANSFER, sender, (recipient, amount),
                TransferEvent(sender, recipient, amount, self._next_sequence),
            )
        return True

    def approve(self, owner: Address, spender: Address, amount: int) -> bool:
        """
        Set spender's allowance over owner's balance to exactly amount.

        Re-approving overwrites the previous allowance, it does not add to it.
        The zero address is accepted as spender; use approve_checked() to
        reject it.

        Returns:
            True

        Raises:
            InvalidAmount: If amount is not an unsigned 256-bit int
        """
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        amount = require_amount(amount)

        with self._lock:
            self.allowances[(owner, spender)] = amount
            self._commit(
                OP_APPROVE, owner, (spender, amount),
                ApprovalEvent(owner, spender, amount, self._next_sequence),
            )
        return True

    def approve_checked(self, owner: Address, spender: Address, amount: int) -> bool:
        """
        approve() that rejects the zero address as spender.

        Raises:
            InvalidSpender: If spender is the zero address
            InvalidAmount: If amount is not an unsigned 256-bit int
        """
        if is_zero_address(spender):
            raise self._rejected(InvalidSpender(f"Cannot approve the zero address for {owner}"))
        return self.approve(owner, spender, amount)

    def transfer_from(
        self,
        spender: Address,
        owner: Address,
        recipient: Address,
        amount: int,
    ) -> bool:
        """
        Move amount from owner to recipient on behalf of spender.

        Consumes exactly amount from allowance(owner, spender). Emits one
        Transfer(from=owner); Approval is not re-emitted.

        Returns:
            True

        Raises:
            InsufficientBalance: If owner holds less than amount
            InsufficientAllowance: If spender's remaining allowance is less than amount
            InvalidRecipient: If recipient is the zero address
            InvalidAmount: If amount is not an unsigned 256-bit int
        """
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        recipient = normalize_address(recipient)
        amount = require_amount(amount)

        with self._lock:
            self._require_balance(owner, amount)
            remaining = self.allowances.get((owner, spender), 0)
            if remaining < amount:
                raise self._rejected(InsufficientAllowance(
                    f"{spender} allowance from {owner}: {remaining} < {amount}"
                ))
            self._require_recipient(recipient)

            self.allowances[(owner, spender)] = remaining - amount
            self._move(owner, recipient, amount)
            self._commit(
                OP_TRANSFER_FROM, spender, (owner, recipient, amount),
                TransferEvent(owner, recipient, amount, self._next_sequence),
            )
        return True

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _require_balance(self, address: Address, amount: int) -> None:
        balance = self.balances.get(address, 0)
        if balance < amount:
            raise self._rejected(InsufficientBalance(f"{address}: balance {balance} < {amount}"))

    def _require_recipient(self, recipient: Address) -> None:
        if recipient == ZERO_ADDRESS:
            raise self._rejected(InvalidRecipient("Cannot transfer to the zero address"))

    def _rejected(self, error: LedgerError) -> LedgerError:
        """Report a rejection and hand the exception back for raising."""
        if self.verbose:
            print(f"✗ REJECTED: {error}")
        return error

    def _move(self, sender: Address, recipient: Address, amount: int) -> None:
        """
        Debit sender and credit recipient.

        Callers have already checked the balance. An absent sender can only
        pass that check with amount == 0, so it stays absent.
        """
        if sender in self.balances:
            self.balances[sender] -= amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    def _generate_tx_id(self, sequence: int) -> str:
        """
        Generate a unique transaction ID.

        Format: tx:{symbol}:{sequence:012d}
        """
        return f"tx:{self.symbol}:{sequence:012d}"

    def _commit(
        self,
        kind: str,
        caller: Address,
        args: Tuple[Any, ...],
        event: LedgerEvent,
    ) -> None:
        """Record an applied operation and its event, then notify every observer."""
        sequence = self._next_sequence
        self._next_sequence += 1
        op = Operation(
            kind=kind,
            caller=caller,
            args=args,
            sequence_number=sequence,
            tx_id=self._generate_tx_id(sequence),
        )
        self.transaction_log.append(op)
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ APPLIED: {op!r} -> {event!r}")
        try:
            self.events.publish(event, op)
        except ObserverError as e:
            if self.verbose:
                print(f"⚠ OBSERVER FAILED: {op.tx_id} ({len(e.errors)} handler(s))")
            raise

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> TokenLedger:
        """
        Create an independent copy of this ledger.

        Balances, allowances and both logs are copied; observers are not.
        Modifications to the clone do not affect the original, and vice versa.
        """
        with self._lock:
            cloned = TokenLedger.__new__(TokenLedger)
            cloned.config = self.config
            cloned.creator = self.creator
            cloned.balances = dict(self.balances)
            cloned.allowances = dict(self.allowances)
            # Records are frozen, so shallow list copies are enough
            cloned.transaction_log = list(self.transaction_log)
            cloned.event_log = list(self.event_log)
            cloned.events = EventBus()
            cloned.verbose = self.verbose
            cloned._next_sequence = self._next_sequence
            cloned._lock = threading.RLock()
        return cloned

    def replay(self, upto: Optional[int] = None) -> TokenLedger:
        """
        Create a new ledger by re-executing the transaction log.

        The new ledger starts from the same creator and config and replays
        operations in sequence order.

        Args:
            upto: Replay only the first `upto` operations (None = all)

        Returns:
            New TokenLedger with replayed state

        Raises:
            LedgerError: If any logged operation is rejected during replay
        """
        with self._lock:
            ops = list(self.transaction_log if upto is None else self.transaction_log[:upto])

        new_ledger = TokenLedger(self.creator, self.config, verbose=self.verbose)
        for op in ops:
            try:
                getattr(new_ledger, op.kind)(op.caller, *op.args)
            except LedgerError as e:
                raise LedgerError(f"Replay failed at {op.tx_id}: {e}") from e
        return new_ledger

    def __repr__(self) -> str:
        return (f"TokenLedger({self.symbol}, creator={self.creator}, "
                f"holders={len(self.holders())}, operations={len(self.transaction_log)})")
