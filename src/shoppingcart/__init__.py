"""Session-backed shopping cart with tax totals and database persistence."""

from shoppingcart.models import Buyable, CartItem, CartItemOptions, InstanceIdentifier
from shoppingcart.repositories import FlaskSessionStore, InMemorySessionStore, StoredCartRepository
from shoppingcart.services import Cart, ModelResolver

__version__ = "1.0.0"

__all__ = [
    "Cart",
    "CartItem",
    "CartItemOptions",
    "Buyable",
    "InstanceIdentifier",
    "ModelResolver",
    "InMemorySessionStore",
    "FlaskSessionStore",
    "StoredCartRepository",
]
