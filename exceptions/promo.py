"""
Promo code exceptions.
"""

from .base import CartEngineException


class PromoException(CartEngineException):
    """Base exception for promo-code-related errors."""
    pass


class InvalidPromoException(PromoException):
    """
    Raised by the promo validation collaborator when a code is rejected.

    The message is shown to the shopper verbatim.
    """

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message, details={'code': code} if code else None)
        self.code = code


class PromoValidationUnavailableException(PromoException):
    """Raised when the promo validation service cannot be reached."""

    def __init__(self, code: str, reason: str):
        super().__init__(
            f"Promo validation unavailable for {code}: {reason}",
            details={'code': code, 'reason': reason}
        )
        self.code = code
        self.reason = reason
