"""
Cart snapshot persistence exceptions.
"""

from .base import CartEngineException


class PersistenceException(CartEngineException):
    """Base exception for snapshot storage errors."""
    pass


class CartPersistenceException(PersistenceException):
    """Raised when a cart snapshot cannot be written or read."""

    def __init__(self, cart_key: str, reason: str):
        super().__init__(
            f"Failed to persist cart {cart_key}: {reason}",
            details={'cart_key': cart_key, 'reason': reason}
        )
        self.cart_key = cart_key
        self.reason = reason
