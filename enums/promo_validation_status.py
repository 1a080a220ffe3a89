from enum import Enum


class PromoValidationStatus(str, Enum):
    """
    Lifecycle of the promo code input.

    NONE: nothing typed, or input cleared
    VALIDATING: preview request in flight
    VALID: preview succeeded, not applied yet
    INVALID: preview or apply failed
    APPLIED: code written to the cart
    """
    NONE = "none"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    APPLIED = "applied"
