"""
Cart-related exceptions.
"""

from .base import CartEngineException


class CartException(CartEngineException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, cart_key: str):
        super().__init__(
            f"Cart {cart_key} is empty",
            details={'cart_key': cart_key}
        )
        self.cart_key = cart_key
