import logging

from exceptions.cart import EmptyCartException
from models.checkout import CheckoutDecisionDTO
from models.order_summary import DeliveryInfoDTO
from services.cart import CartService
from services.duplicate_detector import DuplicateDetectionService

logger = logging.getLogger(__name__)


class CheckoutService:

    @staticmethod
    def evaluate(
        cart_service: CartService,
        delivery_info: DeliveryInfoDTO,
        override_duplicates: bool = False
    ) -> CheckoutDecisionDTO:
        """
        Decide whether the shopper may go on to payment.

        Checkout is held for a resolution step whenever lines share a base product,
        whether they are exact duplicates or variations. The shopper may resolve them
        (remove lines and call evaluate again) or continue with override_duplicates=True.

        Raises:
            EmptyCartException: If the cart has no lines
        """
        items = cart_service.items
        if not items:
            raise EmptyCartException(cart_service.cart_key)

        groups = DuplicateDetectionService.detect_duplicate_groups(items)
        summary = cart_service.get_summary(delivery_info)

        if groups and not override_duplicates:
            logger.info(
                f"[Checkout] Holding checkout of {cart_service.cart_key}: "
                f"{len(groups)} duplicate group(s) need review"
            )
            return CheckoutDecisionDTO(
                can_proceed=False,
                requires_resolution=True,
                duplicate_groups=groups,
                summary=summary
            )

        if groups:
            logger.info(f"[Checkout] Shopper continued {cart_service.cart_key} with {len(groups)} duplicate group(s)")
        return CheckoutDecisionDTO(
            can_proceed=True,
            requires_resolution=False,
            duplicate_groups=groups,
            summary=summary
        )
