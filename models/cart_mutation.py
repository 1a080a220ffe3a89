from pydantic import BaseModel, Field

from enums.cart_rejection_reason import CartRejectionReason
from models.cartItem import CartItemDTO


class CartMutationResultDTO(BaseModel):
    """
    Outcome of a CartService mutation.

    Rejections carry a shopper-facing reason plus a machine-readable code, the cart is
    left exactly as it was before the call.
    """
    success: bool
    reason: str | None = None
    reason_code: CartRejectionReason | None = None
    item: CartItemDTO | None = None
    is_duplicate: bool = False
    same_item_different_slot: bool = False
    removed_item_ids: list[str] = Field(default_factory=list)

    @staticmethod
    def ok(item: CartItemDTO | None = None, **kwargs) -> 'CartMutationResultDTO':
        return CartMutationResultDTO(success=True, item=item, **kwargs)

    @staticmethod
    def rejected(reason: str, reason_code: CartRejectionReason, **kwargs) -> 'CartMutationResultDTO':
        return CartMutationResultDTO(success=False, reason=reason, reason_code=reason_code, **kwargs)


class CartCountsDTO(BaseModel):
    total_items: int
    regular_items: int
    deal_items: int
    total_combos: int
    saved_items: int
