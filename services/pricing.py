import logging
from functools import lru_cache

from models.cartItem import CartItemDTO
from models.combo import ComboSelectionDTO

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1024)
def _cached_item_total(unit_price: float, quantity: int, combos_key: tuple[tuple[float, int], ...]) -> float:
    combo_total = sum(combo_unit_price * combo_quantity for combo_unit_price, combo_quantity in combos_key)
    return round(unit_price * quantity + combo_total, 2)


class PricingService:
    """Price resolution for products, variants, add-ons and whole cart lines."""

    @staticmethod
    def resolve_unit_price(
        price: float,
        discounted_price: float | None = None,
        discount_percentage: float | None = None
    ) -> float:
        """
        Effective unit price of anything carrying list and discount fields.

        The discounted price wins when a discount percentage is set or when it is
        simply lower than the list price. A missing or zero discounted price
        always falls back to the list price.

        Example:
            price=100, discounted_price=80, discount_percentage=20 -> 80
            price=100, discounted_price=80, discount_percentage=None -> 80
            price=100, discounted_price=120, discount_percentage=0 -> 100
        """
        if discounted_price and ((discount_percentage or 0) > 0 or discounted_price < price):
            return discounted_price
        return price

    @staticmethod
    def resolve_item_unit_price(item: CartItemDTO) -> float:
        """Variant prices override the product base price when a variant is selected."""
        if item.variant is not None:
            return PricingService.resolve_unit_price(
                item.variant.price,
                item.variant.discounted_price,
                item.variant.discount_percentage
            )
        return PricingService.resolve_unit_price(
            item.product.base_price,
            item.product.discounted_price,
            item.product.discount_percentage
        )

    @staticmethod
    def resolve_combo_unit_price(combo: ComboSelectionDTO) -> float:
        return PricingService.resolve_unit_price(combo.price, combo.discounted_price, combo.discount_percentage)

    @staticmethod
    def calculate_combo_total(combos: list[ComboSelectionDTO] | None) -> float:
        if not combos:
            return 0.0
        return round(sum(
            PricingService.resolve_combo_unit_price(combo) * combo.quantity
            for combo in combos
        ), 2)

    @staticmethod
    def calculate_item_total(item: CartItemDTO) -> float:
        """
        Total of one cart line including its add-ons.

        Regular line: unit price x quantity + add-on total.
        Deal line: deal price (or the resolved unit price when no deal price is set)
        counted once + add-on total, whatever quantity is stored.

        Results are memoised on (unit price, quantity, add-on prices and quantities).
        """
        if item.is_deal_item:
            unit_price = item.deal_price if item.deal_price is not None else PricingService.resolve_item_unit_price(item)
            quantity = 1
        else:
            unit_price = PricingService.resolve_item_unit_price(item)
            quantity = item.quantity

        combos_key = tuple(
            (PricingService.resolve_combo_unit_price(combo), combo.quantity)
            for combo in item.combos
        )
        return _cached_item_total(unit_price, quantity, combos_key)

    @staticmethod
    def item_total_cache_info():
        return _cached_item_total.cache_info()
