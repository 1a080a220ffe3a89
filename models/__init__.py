"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for Base.metadata.create_all to see every table.
"""

from models.base import Base
from models.cart import Cart
from models.promo_code import PromoCode

__all__ = [
    'Base',
    'Cart',
    'PromoCode',
]
