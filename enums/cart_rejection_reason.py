from enum import Enum


class CartRejectionReason(str, Enum):
    """Machine-readable reason attached to a rejected cart mutation."""
    ITEM_NOT_FOUND = "item_not_found"
    SAVED_ITEM_NOT_FOUND = "saved_item_not_found"
    COMBO_NOT_FOUND = "combo_not_found"
    INVALID_COMBO = "invalid_combo"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_SLOT = "invalid_slot"
    DEAL_LIMIT = "deal_limit"
    DEAL_ALREADY_IN_CART = "deal_already_in_cart"
    DEAL_THRESHOLD_NOT_MET = "deal_threshold_not_met"
    DUPLICATE_ITEM = "duplicate_item"
    MESSAGE_TOO_LONG = "message_too_long"
    INVALID_PROMO = "invalid_promo"
    PROMO_SERVICE_UNAVAILABLE = "promo_service_unavailable"
    PERSISTENCE_FAILED = "persistence_failed"
