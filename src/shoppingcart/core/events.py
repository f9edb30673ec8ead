"""
Cart event names and the default event sink.

Events are sent through a blinker namespace, the same signal library Flask
uses for its own signals. Listeners subscribe with:

    from shoppingcart.core.events import cart_signals, CART_ADDED

    @cart_signals.signal(CART_ADDED).connect
    def on_added(sender, payload=None):
        ...
"""
import logging
from typing import Any, Optional, Protocol

from blinker import Namespace

logger = logging.getLogger(__name__)

CART_ADDING = "cart.adding"
CART_ADDED = "cart.added"
CART_UPDATED = "cart.updated"
CART_REMOVED = "cart.removed"
CART_STORED = "cart.stored"
CART_RESTORED = "cart.restored"
CART_MERGED = "cart.merged"

CART_EVENTS = (
    CART_ADDING,
    CART_ADDED,
    CART_UPDATED,
    CART_REMOVED,
    CART_STORED,
    CART_RESTORED,
    CART_MERGED,
)

cart_signals = Namespace()


class EventDispatcher(Protocol):
    """Anything the cart can notify about its state changes"""

    def dispatch(self, event: str, payload: Optional[Any] = None) -> None:
        ...


class SignalDispatcher:
    """Dispatches cart events as blinker signals"""

    def __init__(self, namespace: Namespace = cart_signals, sender: Any = None):
        self.namespace = namespace
        self.sender = sender

    def dispatch(self, event: str, payload: Optional[Any] = None) -> None:
        logger.debug(f"Dispatching {event}")
        self.namespace.signal(event).send(self.sender, payload=payload)
