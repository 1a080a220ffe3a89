"""
CheckoutService Unit Tests

Covers:
- Empty cart cannot be checked out
- Carts without repeated products proceed straight away
- Repeated products hold checkout for review unless the shopper overrides
- Resolving the group (removing a line) lets checkout proceed
"""

from datetime import date

import pytest

from enums.duplicate_add_policy import DuplicateAddPolicy
from enums.variation_axis import VariationAxis
from exceptions.cart import EmptyCartException
from models.order_summary import DeliveryInfoDTO
from models.product import ProductDTO
from services.cart import CartService
from services.checkout import CheckoutService


@pytest.fixture
def delivery_info():
    return DeliveryInfoDTO(delivery_charge=50.0, free_delivery_threshold=1500.0)


class TestCheckoutEvaluation:

    def test_empty_cart_raises(self, cart_service, delivery_info):
        with pytest.raises(EmptyCartException) as exc_info:
            CheckoutService.evaluate(cart_service, delivery_info)

        assert exc_info.value.cart_key == "cart-test"

    @pytest.mark.asyncio
    async def test_distinct_products_proceed(self, cart_service, delivery_info, make_item):
        await cart_service.add_item(make_item())
        await cart_service.add_item(make_item(product=ProductDTO(id=43, name="Red Velvet", base_price=900.0)))

        decision = CheckoutService.evaluate(cart_service, delivery_info)

        assert decision.can_proceed is True
        assert decision.requires_resolution is False
        assert decision.duplicate_groups == []
        assert decision.summary.regular_subtotal == 1700.0
        assert decision.summary.free_delivery_eligible is True
        assert decision.summary.grand_total == 1700.0

    @pytest.mark.asyncio
    async def test_slot_variation_holds_checkout(self, cart_service, delivery_info, make_item, make_slot):
        await cart_service.add_item(make_item(delivery_slot=make_slot(date(2026, 10, 23), "10:00")))
        await cart_service.add_item(make_item(delivery_slot=make_slot(date(2026, 10, 24), "14:00")))

        decision = CheckoutService.evaluate(cart_service, delivery_info)

        assert decision.can_proceed is False
        assert decision.requires_resolution is True
        assert decision.duplicate_groups[0].differences == [VariationAxis.DELIVERY_SLOT]
        assert decision.summary.grand_total == 1600.0

    @pytest.mark.asyncio
    async def test_exact_duplicates_hold_checkout(self, persistence, promo_validator, delivery_info, make_item):
        cart = CartService("cart-dupes", persistence, promo_validator, duplicate_add_policy=DuplicateAddPolicy.SEPARATE)
        await cart.add_item(make_item())
        await cart.add_item(make_item())

        decision = CheckoutService.evaluate(cart, delivery_info)

        assert decision.requires_resolution is True
        assert decision.duplicate_groups[0].has_variations is False

    @pytest.mark.asyncio
    async def test_override_proceeds_with_groups_reported(self, cart_service, delivery_info, make_item):
        await cart_service.add_item(make_item())
        await cart_service.add_item(make_item(tier="2 Tier"))

        decision = CheckoutService.evaluate(cart_service, delivery_info, override_duplicates=True)

        assert decision.can_proceed is True
        assert decision.requires_resolution is False
        assert len(decision.duplicate_groups) == 1

    @pytest.mark.asyncio
    async def test_removing_a_line_resolves_group(self, cart_service, delivery_info, make_item):
        await cart_service.add_item(make_item())
        second = await cart_service.add_item(make_item(tier="2 Tier"))

        await cart_service.remove_item(second.item.id)
        decision = CheckoutService.evaluate(cart_service, delivery_info)

        assert decision.can_proceed is True

    @pytest.mark.asyncio
    async def test_deal_lines_never_hold_checkout(self, cart_service, delivery_info, make_item, make_deal):
        await cart_service.add_item(make_item())
        await cart_service.add_item(make_deal(deal_id=1))
        await cart_service.add_item(make_deal(deal_id=2))

        decision = CheckoutService.evaluate(cart_service, delivery_info)

        assert decision.can_proceed is True
        assert decision.summary.deal_subtotal == 2.0

    @pytest.mark.asyncio
    async def test_complete_checkout_clears_cart(self, cart_service, delivery_info, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        result = await cart_service.complete_checkout()

        assert result.success is True
        assert cart_service.items == []
        assert cart_service.applied_promo is None
