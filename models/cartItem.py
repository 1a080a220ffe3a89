from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from models.combo import ComboSelectionDTO
from models.delivery_slot import DeliverySlotDTO
from models.product import ProductDTO, VariantDTO, FlavorDTO


def generate_cart_item_id() -> str:
    return uuid4().hex


class CartItemDTO(BaseModel):
    """
    One line of the cart: base product plus its configuration.

    ``total_price`` is derived (see PricingService.calculate_item_total) and is
    refreshed by CartService inside every mutation touching the line.
    """
    id: str = Field(default_factory=generate_cart_item_id)
    product: ProductDTO
    variant: VariantDTO | None = None
    flavor: FlavorDTO | None = None
    tier: str | None = None
    combos: list[ComboSelectionDTO] = Field(default_factory=list)
    delivery_slot: DeliverySlotDTO | None = None
    message: str | None = None
    quantity: int = Field(default=1, ge=1)
    is_deal_item: bool = False
    deal_id: int | str | None = None
    deal_price: float | None = None
    deal_threshold: float | None = None
    total_price: float = 0.0
    added_at: datetime = Field(default_factory=datetime.now)


class SavedItemDTO(CartItemDTO):
    """Cart line parked via save-for-later; excluded from every cart total."""
    saved_at: datetime = Field(default_factory=datetime.now)
