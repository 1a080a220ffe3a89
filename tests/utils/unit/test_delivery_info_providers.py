"""
Tests for ConfigDeliveryInfoProvider.
"""

import pytest

from models.order_summary import DeliveryInfoDTO
from utils.delivery_info_providers import ConfigDeliveryInfoProvider


class TestConfigDeliveryInfoProvider:

    @pytest.mark.asyncio
    async def test_defaults_from_config(self):
        info = await ConfigDeliveryInfoProvider().get_delivery_info()

        assert info.delivery_charge == 50.0
        assert info.free_delivery_threshold == 1500.0
        assert info.postal_code is None

    @pytest.mark.asyncio
    async def test_postal_code_override(self):
        provider = ConfigDeliveryInfoProvider({
            "560001": DeliveryInfoDTO(delivery_charge=0.0, free_delivery_threshold=0.0)
        })

        info = await provider.get_delivery_info(" 560001 ")

        assert info.delivery_charge == 0.0
        assert info.postal_code == "560001"

    @pytest.mark.asyncio
    async def test_unknown_postal_code_uses_defaults(self):
        provider = ConfigDeliveryInfoProvider({
            "560001": DeliveryInfoDTO(delivery_charge=0.0, free_delivery_threshold=0.0)
        })

        info = await provider.get_delivery_info("110001")

        assert info.delivery_charge == 50.0
        assert info.postal_code == "110001"
