from .cart_schemas import CartItemResponse, CartItemSnapshot, CartResponse, CartTotals

__all__ = ["CartItemSnapshot", "CartItemResponse", "CartTotals", "CartResponse"]
