from .config import CartConfig, Config, DatabaseConfig, FormatConfig, config
from .events import CART_EVENTS, EventDispatcher, SignalDispatcher, cart_signals
from .exceptions import (
    CartError, CorruptedCartError, DatabaseError, InvalidArgumentError, InvalidRowIdError, UnknownModelError,
)

__all__ = [
    "Config", "CartConfig", "DatabaseConfig", "FormatConfig", "config",
    "CART_EVENTS", "EventDispatcher", "SignalDispatcher", "cart_signals",
    "CartError", "InvalidRowIdError", "UnknownModelError", "InvalidArgumentError",
    "DatabaseError", "CorruptedCartError",
]
