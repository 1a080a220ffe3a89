from enum import Enum


class DiscountType(str, Enum):
    """
    How a promo code computes its discount.

    PERCENTAGE: discount_value is a percent of the regular subtotal
    FLAT: discount_value is an absolute currency amount
    """
    PERCENTAGE = "percentage"
    FLAT = "flat"

    @classmethod
    def from_string(cls, value: str) -> 'DiscountType':
        normalized = (value or "").strip().lower()
        # Merchant data also uses "fixed" for flat discounts
        if normalized == "fixed":
            return cls.FLAT
        return cls(normalized)
