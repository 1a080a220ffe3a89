from pydantic import BaseModel


class DeliveryInfoDTO(BaseModel):
    delivery_charge: float
    free_delivery_threshold: float
    postal_code: str | None = None


class OrderSummaryDTO(BaseModel):
    """
    Money breakdown of the cart as shown before payment.

    promo_discount and free delivery eligibility depend on regular_subtotal only,
    deal lines are added on top of the discounted amount.
    """
    regular_subtotal: float
    deal_subtotal: float
    promo_discount: float
    delivery_charge: float
    effective_delivery_charge: float
    free_delivery_eligible: bool
    amount_to_free_delivery: float
    grand_total: float
    promo_code: str | None = None
