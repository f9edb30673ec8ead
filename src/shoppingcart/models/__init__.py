from .options import CartItemOptions
from .buyable import Buyable, ByAttributes, ByBuyable, ByRecord, InstanceIdentifier
from .cart_item import CartItem
from .stored_cart import StoredCart

__all__ = [
    "CartItemOptions",
    "Buyable", "InstanceIdentifier", "ByAttributes", "ByRecord", "ByBuyable",
    "CartItem",
    "StoredCart",
]
