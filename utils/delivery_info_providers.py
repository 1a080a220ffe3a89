"""Delivery charge lookup.

Delivery charge and free delivery threshold come from the merchant. The engine
treats both as opaque inputs to the order summary.
"""

import logging
from abc import ABC, abstractmethod

import config
from models.order_summary import DeliveryInfoDTO

logger = logging.getLogger(__name__)


class DeliveryInfoProvider(ABC):

    @abstractmethod
    async def get_delivery_info(self, postal_code: str | None = None) -> DeliveryInfoDTO:
        pass


class ConfigDeliveryInfoProvider(DeliveryInfoProvider):
    """Merchant defaults from config, with optional per-postal-code overrides."""

    def __init__(self, overrides: dict[str, DeliveryInfoDTO] | None = None):
        self.overrides = overrides or {}

    async def get_delivery_info(self, postal_code: str | None = None) -> DeliveryInfoDTO:
        if postal_code is not None and postal_code.strip() in self.overrides:
            info = self.overrides[postal_code.strip()]
            return info.model_copy(update={"postal_code": postal_code.strip()})
        if postal_code is not None:
            logger.debug(f"[Delivery] No override for postal code {postal_code}, using defaults")
        return DeliveryInfoDTO(
            delivery_charge=config.DEFAULT_DELIVERY_CHARGE,
            free_delivery_threshold=config.FREE_DELIVERY_THRESHOLD,
            postal_code=postal_code
        )
