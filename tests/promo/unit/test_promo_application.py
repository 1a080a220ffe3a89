"""
Promo Application Unit Tests

Covers:
- Applying a code replaces any previously applied one
- Rejected or unavailable validation keeps the previous promo
- Validator messages are passed through unchanged
- Removing a promo always succeeds, even when saving fails
- Restoring stored promos (corrupted ones are discarded)
"""

from unittest.mock import AsyncMock, patch

import pytest

from enums.cart_rejection_reason import CartRejectionReason
from enums.discount_type import DiscountType
from exceptions.persistence import CartPersistenceException
from exceptions.promo import InvalidPromoException, PromoValidationUnavailableException
from models.promo import AppliedPromoDTO, PromoValidationResultDTO
from services.promo import PromoService


class TestApplyPromo:

    @pytest.mark.asyncio
    async def test_code_is_normalized_and_validated_against_regular_subtotal(
            self, cart_service, promo_validator, make_item, make_deal):
        await cart_service.add_item(make_item())
        await cart_service.add_item(make_deal(deal_price=300.0))

        result = await cart_service.apply_promo("  save10 ")

        assert result.success is True
        assert promo_validator.calls == [("SAVE10", 800.0)]
        assert cart_service.applied_promo.code == "SAVE10"
        assert cart_service.applied_promo.discount_amount == 120.0

    @pytest.mark.asyncio
    async def test_second_code_replaces_first(self, cart_service, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        result = await cart_service.apply_promo("FLAT200")

        assert result.success is True
        assert cart_service.applied_promo.code == "FLAT200"
        assert cart_service.applied_promo.discount_type == DiscountType.FLAT

    @pytest.mark.asyncio
    async def test_rejected_code_keeps_previous_promo(self, cart_service, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        result = await cart_service.apply_promo("BOGUS1")

        assert result.success is False
        assert result.reason == "Invalid promo code"
        assert result.reason_code == CartRejectionReason.INVALID_PROMO
        assert cart_service.applied_promo.code == "SAVE10"

    @pytest.mark.asyncio
    async def test_validator_message_passed_through(self, cart_service, promo_validator, make_item):
        await cart_service.add_item(make_item())
        message = "Minimum order amount of ₹1000 required for this promo code. Add ₹200 more to your cart to use this code."

        with patch.object(promo_validator, "validate", AsyncMock(side_effect=InvalidPromoException(message))):
            result = await cart_service.apply_promo("BIGSPEND")

        assert result.reason == message

    @pytest.mark.asyncio
    async def test_unavailable_service_keeps_previous_promo(self, cart_service, promo_validator, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        with patch.object(
            promo_validator, "validate",
            AsyncMock(side_effect=PromoValidationUnavailableException("FLAT200", "connection refused"))
        ):
            result = await cart_service.apply_promo("FLAT200")

        assert result.success is False
        assert result.reason_code == CartRejectionReason.PROMO_SERVICE_UNAVAILABLE
        assert cart_service.applied_promo.code == "SAVE10"

    @pytest.mark.asyncio
    async def test_empty_code_rejected_without_calling_validator(self, cart_service, promo_validator):
        result = await cart_service.apply_promo("   ")

        assert result.success is False
        assert result.reason == "Please enter a promo code"
        assert promo_validator.calls == []

    @pytest.mark.asyncio
    async def test_zero_discount_verdict_not_applied(self, cart_service, promo_validator, make_item):
        await cart_service.add_item(make_item())
        promo_validator.codes["ZERO"] = PromoValidationResultDTO(
            promo_code="ZERO", discount_amount=0.0, discount_type=DiscountType.FLAT, discount_value=0
        )

        result = await cart_service.apply_promo("ZERO")

        assert result.success is False
        assert cart_service.applied_promo is None

    @pytest.mark.asyncio
    async def test_fixed_verdict_applied_as_flat(self, cart_service, promo_validator, make_item):
        await cart_service.add_item(make_item())
        promo_validator.codes["FIXED150"] = PromoValidationResultDTO.model_validate({
            "promo_code": "FIXED150", "discount_amount": 150, "discount_type": "Fixed", "discount_value": 150
        })

        result = await cart_service.apply_promo("FIXED150")

        assert result.success is True
        assert cart_service.applied_promo.discount_type == DiscountType.FLAT
        assert cart_service.applied_promo.discount_amount == 150.0

    @pytest.mark.asyncio
    async def test_failed_save_rolls_promo_back(self, cart_service, persistence, make_item):
        await cart_service.add_item(make_item())

        with patch.object(persistence, "save", AsyncMock(side_effect=CartPersistenceException("cart-test", "locked"))):
            result = await cart_service.apply_promo("SAVE10")

        assert result.reason_code == CartRejectionReason.PERSISTENCE_FAILED
        assert cart_service.applied_promo is None


class TestRemovePromo:

    @pytest.mark.asyncio
    async def test_remove_clears_and_persists(self, cart_service, persistence, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        result = await cart_service.remove_promo()

        assert result.success is True
        assert cart_service.applied_promo is None
        stored = await persistence.load("cart-test")
        assert stored.applied_promo is None

    @pytest.mark.asyncio
    async def test_remove_succeeds_when_save_fails(self, cart_service, persistence, make_item):
        await cart_service.add_item(make_item())
        await cart_service.apply_promo("SAVE10")

        with patch.object(persistence, "save", AsyncMock(side_effect=CartPersistenceException("cart-test", "locked"))):
            result = await cart_service.remove_promo()

        assert result.success is True
        assert cart_service.applied_promo is None

    @pytest.mark.asyncio
    async def test_remove_without_promo(self, cart_service):
        result = await cart_service.remove_promo()

        assert result.success is True


class TestRestoreAppliedPromo:

    def test_valid_json_restored(self):
        raw = '{"code": "SAVE10", "discount_amount": 120, "discount_type": "percentage", "discount_value": 10}'

        promo = PromoService.restore_applied_promo(raw)

        assert promo.code == "SAVE10"
        assert promo.discount_amount == 120.0

    @pytest.mark.parametrize("raw", [
        None,
        "",
        "not json",
        '{"code": "SAVE10"}',
        {"code": "", "discount_amount": 50, "discount_type": "flat", "discount_value": 50},
        {"code": "SAVE10", "discount_amount": 0, "discount_type": "percentage", "discount_value": 10},
        {"code": "SAVE10", "discount_amount": -5, "discount_type": "flat", "discount_value": 5},
    ])
    def test_unusable_promos_discarded(self, raw):
        assert PromoService.restore_applied_promo(raw) is None

    def test_fixed_discount_type_restored_as_flat(self):
        raw = '{"code": "FLAT200", "discount_amount": 200, "discount_type": "fixed", "discount_value": 200}'

        promo = PromoService.restore_applied_promo(raw)

        assert promo.discount_type == DiscountType.FLAT

    def test_unknown_discount_type_discarded(self):
        raw = {"code": "BOGO", "discount_amount": 100, "discount_type": "bogo", "discount_value": 1}

        assert PromoService.restore_applied_promo(raw) is None

    def test_dto_passes_through(self):
        promo = AppliedPromoDTO(code="FLAT200", discount_amount=200, discount_type=DiscountType.FLAT, discount_value=200)

        assert PromoService.restore_applied_promo(promo) == promo

    @pytest.mark.parametrize("raw,expected", [(" save10 ", "SAVE10"), (None, ""), ("Flat200", "FLAT200")])
    def test_normalize_code(self, raw, expected):
        assert PromoService.normalize_code(raw) == expected
