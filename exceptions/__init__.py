"""
Custom exceptions for the cart engine.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the engine.

Exception Hierarchy:
--------------------
CartEngineException (base)
├── CartException
│   └── EmptyCartException
├── PromoException
│   ├── InvalidPromoException
│   └── PromoValidationUnavailableException
└── PersistenceException
    └── CartPersistenceException

Usage:
------
Collaborators raise specific exceptions:
    raise InvalidPromoException("Promo code has expired", code="SAVE10")

CartService catches them, rolls back and returns a rejected result:
    result = await cart_service.apply_promo("SAVE10")
    if not result.success:
        show(result.reason)
"""

from .base import CartEngineException
from .cart import CartException, EmptyCartException
from .promo import PromoException, InvalidPromoException, PromoValidationUnavailableException
from .persistence import PersistenceException, CartPersistenceException

__all__ = [
    # Base
    'CartEngineException',

    # Cart
    'CartException',
    'EmptyCartException',

    # Promo
    'PromoException',
    'InvalidPromoException',
    'PromoValidationUnavailableException',

    # Persistence
    'PersistenceException',
    'CartPersistenceException',
]
