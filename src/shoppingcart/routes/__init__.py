from shoppingcart.routes.cart import cart_bp

__all__ = ["cart_bp"]
