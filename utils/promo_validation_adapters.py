"""Promo code validation adapters.

The cart engine only consumes a validation verdict. Adapters implement the
merchant rules behind a unified validate() interface and raise
InvalidPromoException with the shopper-facing reason on rejection.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session
from enums.discount_type import DiscountType
from enums.promo_code_status import PromoCodeStatus
from exceptions.promo import InvalidPromoException, PromoValidationUnavailableException
from models.promo import PromoValidationResultDTO
from models.promo_code import PromoCodeDTO
from repositories.promo_code import PromoCodeRepository
from utils.price_formatter import format_price

logger = logging.getLogger(__name__)


class PromoValidationAdapter(ABC):
    """Abstract base class for promo validation collaborators."""

    @abstractmethod
    async def validate(self, code: str, subtotal: float) -> PromoValidationResultDTO:
        """Validate a code against the regular-item subtotal.

        Raises:
            InvalidPromoException: code rejected, message is shown verbatim
            PromoValidationUnavailableException: validation backend unreachable
        """
        pass


class DatabasePromoValidationAdapter(PromoValidationAdapter):
    """Validates against the promo_codes table."""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = get_db_session,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def validate(self, code: str, subtotal: float) -> PromoValidationResultDTO:
        if not code or not code.strip():
            raise InvalidPromoException("Promo code is required")
        normalized = code.strip().upper()

        try:
            async with self.session_factory() as session:
                promo = await PromoCodeRepository.get_by_code(normalized, session)
        except SQLAlchemyError as e:
            logger.error(f"[PromoValidation] Lookup failed for {normalized}: {e}", exc_info=True)
            raise PromoValidationUnavailableException(normalized, str(e)) from e

        if promo is None:
            raise InvalidPromoException("Invalid promo code", code=normalized)

        self._check_availability(promo)
        discount = self.calculate_discount(promo, subtotal)

        logger.info(f"[PromoValidation] {normalized} accepted: discount {discount} on subtotal {subtotal}")
        return PromoValidationResultDTO(
            promo_code=promo.code,
            description=promo.description,
            discount_amount=discount,
            discount_type=promo.discount_type,
            discount_value=promo.discount_value
        )

    def _check_availability(self, promo: PromoCodeDTO) -> None:
        if promo.status in (PromoCodeStatus.INACTIVE, PromoCodeStatus.DELETED):
            raise InvalidPromoException("This promo code is no longer available", code=promo.code)
        if promo.status == PromoCodeStatus.EXPIRED:
            raise InvalidPromoException("Promo code has expired", code=promo.code)

        now = self.clock()
        if now < promo.valid_from or now > promo.valid_until:
            raise InvalidPromoException("Promo code has expired or is not yet active", code=promo.code)

        if promo.usage_limit is not None and promo.used_count >= promo.usage_limit:
            raise InvalidPromoException("Promo code usage limit reached", code=promo.code)

    @staticmethod
    def calculate_discount(promo: PromoCodeDTO, subtotal: float) -> float:
        """
        Discount amount for a subtotal.

        Percentage codes are capped by max_discount_amount, no discount exceeds
        the subtotal, minimum order amounts are checked against the subtotal.

        Raises:
            InvalidPromoException: subtotal below the minimum order amount
        """
        if subtotal < promo.min_order_amount:
            shortfall = round(promo.min_order_amount - subtotal, 2)
            raise InvalidPromoException(
                f"Minimum order amount of {format_price(promo.min_order_amount)} required for this promo code. "
                f"Add {format_price(shortfall)} more to your cart to use this code.",
                code=promo.code
            )

        if promo.discount_type == DiscountType.PERCENTAGE:
            discount = subtotal * promo.discount_value / 100
            if promo.max_discount_amount and discount > promo.max_discount_amount:
                discount = promo.max_discount_amount
        else:
            discount = promo.discount_value

        return round(min(discount, subtotal), 2)
