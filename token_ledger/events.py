"""
events.py - Transfer/Approval Notification Bus

Minimal publish/subscribe for ledger notifications:
- Events are just data (TransferEvent, ApprovalEvent), handlers are just functions
- The ledger's event_log IS the history; the bus only fans out live notifications
- Handlers run synchronously inside the ledger's critical section

Core concepts:
1. EventHandler: plain function taking one event
2. EventBus: handler registry with optional per-event-name filtering
"""

from __future__ import annotations
from itertools import count
from typing import Callable, Dict, List, Optional, Tuple

from .core import EVENT_APPROVAL, EVENT_TRANSFER, LedgerEvent, Operation


# Handler type: (event) -> None
EventHandler = Callable[[LedgerEvent], None]

_KNOWN_EVENTS = (EVENT_TRANSFER, EVENT_APPROVAL)


class ObserverError(Exception):
    """
    Raised after one or more handlers failed on a published event.

    Not a LedgerError: when a ledger raises it, the operation has already
    been applied and logged. Every handler was still called.

    Attributes:
        event: The event being delivered.
        errors: Exceptions raised by the failing handlers, in call order.
        operation: The committed Operation, when raised by a ledger.
    """

    def __init__(
        self,
        event: LedgerEvent,
        errors: List[Exception],
        operation: Optional[Operation] = None,
    ):
        self.event = event
        self.errors = errors
        self.operation = operation
        failures = "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        super().__init__(f"{len(errors)} observer(s) failed on {event!r}: {failures}")


class EventBus:
    """
    Registry of observers for ledger notifications.

    Design:
    - subscribe() returns a token used to unsubscribe
    - Handlers fire in subscription order
    - A failing handler does not stop delivery; failures are raised together
      as one ObserverError once every handler has run
    """

    def __init__(self):
        self._handlers: Dict[int, Tuple[Optional[str], EventHandler]] = {}
        self._tokens = count(1)

    def subscribe(self, handler: EventHandler, event: Optional[str] = None) -> int:
        """
        Register a handler for all events, or only for one event name.

        Args:
            handler: Function called with each matching event
            event: "Transfer", "Approval", or None for both

        Returns:
            Subscription token for unsubscribe()

        Raises:
            ValueError: If event is not a known event name
        """
        if event is not None and event not in _KNOWN_EVENTS:
            raise ValueError(f"Unknown event: {event}")
        token = next(self._tokens)
        self._handlers[token] = (event, handler)
        return token

    def unsubscribe(self, token: int) -> None:
        """Remove a subscription. Unknown tokens raise KeyError."""
        del self._handlers[token]

    def publish(self, event: LedgerEvent, operation: Optional[Operation] = None) -> None:
        """
        Deliver an event to every matching handler, in subscription order.

        Args:
            event: The notification to deliver
            operation: The committed operation that produced it, if any

        Raises:
            ObserverError: After delivery, if any handler raised
        """
        errors: List[Exception] = []
        for wanted, handler in list(self._handlers.values()):
            if wanted is None or wanted == event.event:
                try:
                    handler(event)
                except Exception as e:
                    errors.append(e)
        if errors:
            raise ObserverError(event, errors, operation) from errors[0]

    def __len__(self) -> int:
        return len(self._handlers)


class EventRecorder:
    """
    Handler that keeps every event it receives.

    Useful as an observer in tests and demos:

        recorder = EventRecorder()
        ledger.events.subscribe(recorder)
        ledger.transfer(alice, bob, 100)
        recorder.events[0].args  # {'from': alice, 'to': bob, 'value': 100}
    """

    def __init__(self):
        self.events: List[LedgerEvent] = []

    def __call__(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def named(self, event: str) -> List[LedgerEvent]:
        return [e for e in self.events if e.event == event]

    def clear(self) -> None:
        self.events.clear()
