import logging

from models.cartItem import CartItemDTO
from models.order_summary import OrderSummaryDTO, DeliveryInfoDTO
from models.promo import AppliedPromoDTO

logger = logging.getLogger(__name__)


class OrderSummaryService:

    @staticmethod
    def calculate_regular_subtotal(items: list[CartItemDTO]) -> float:
        return round(sum(item.total_price for item in items if not item.is_deal_item), 2)

    @staticmethod
    def calculate_deal_subtotal(items: list[CartItemDTO]) -> float:
        return round(sum(item.total_price for item in items if item.is_deal_item), 2)

    @staticmethod
    def compute_summary(
        items: list[CartItemDTO],
        applied_promo: AppliedPromoDTO | None,
        delivery_charge: float,
        free_delivery_threshold: float
    ) -> OrderSummaryDTO:
        """
        Combine cart lines, promo and delivery into the amount the shopper pays.

        Algorithm:
        1. Split lines into regular and deal lines
        2. Promo discount comes from the applied promo as-is and targets regular lines only
        3. Free delivery when the regular subtotal reaches the threshold
        4. Grand total = regular + deal - promo + delivery, clamped at 0

        Example:
            regular 1200, deal 300, promo 120, delivery 50, threshold 1500
            -> not eligible, grand total 1430
        """
        regular_subtotal = OrderSummaryService.calculate_regular_subtotal(items)
        deal_subtotal = OrderSummaryService.calculate_deal_subtotal(items)
        promo_discount = applied_promo.discount_amount if applied_promo is not None else 0.0

        free_delivery_eligible = regular_subtotal >= free_delivery_threshold
        effective_delivery_charge = 0.0 if free_delivery_eligible else delivery_charge

        grand_total = max(0.0, round(
            regular_subtotal + deal_subtotal - promo_discount + effective_delivery_charge, 2
        ))
        amount_to_free_delivery = max(0.0, round(free_delivery_threshold - regular_subtotal, 2))

        if promo_discount > regular_subtotal:
            logger.warning(
                f"[Summary] Promo discount {promo_discount} exceeds regular subtotal {regular_subtotal}, "
                f"grand total clamped to {grand_total}"
            )

        return OrderSummaryDTO(
            regular_subtotal=regular_subtotal,
            deal_subtotal=deal_subtotal,
            promo_discount=promo_discount,
            delivery_charge=delivery_charge,
            effective_delivery_charge=effective_delivery_charge,
            free_delivery_eligible=free_delivery_eligible,
            amount_to_free_delivery=amount_to_free_delivery,
            grand_total=grand_total,
            promo_code=applied_promo.code if applied_promo is not None else None
        )

    @staticmethod
    def compute_summary_for_delivery(
        items: list[CartItemDTO],
        applied_promo: AppliedPromoDTO | None,
        delivery_info: DeliveryInfoDTO
    ) -> OrderSummaryDTO:
        return OrderSummaryService.compute_summary(
            items,
            applied_promo,
            delivery_info.delivery_charge,
            delivery_info.free_delivery_threshold
        )
