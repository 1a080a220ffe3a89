import asyncio
import json
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

from pydantic import ValidationError

import config
from enums.promo_validation_status import PromoValidationStatus
from exceptions.promo import InvalidPromoException, PromoValidationUnavailableException
from models.cart_mutation import CartMutationResultDTO
from models.promo import AppliedPromoDTO, PromoValidationResultDTO

if TYPE_CHECKING:
    from services.cart import CartService

logger = logging.getLogger(__name__)


class PromoService:

    @staticmethod
    def normalize_code(code: str | None) -> str:
        return (code or "").strip().upper()

    @staticmethod
    def restore_applied_promo(raw: str | dict | AppliedPromoDTO | None) -> AppliedPromoDTO | None:
        """
        Rebuild a stored applied promo, discarding it when it cannot be trusted.

        Stored promos are dropped when they do not parse, have no code, or carry a
        discount of zero or less. The cart then loads with no promo applied.
        """
        if raw is None or raw == "":
            return None
        try:
            if isinstance(raw, AppliedPromoDTO):
                promo = raw
            elif isinstance(raw, str):
                promo = AppliedPromoDTO.model_validate(json.loads(raw))
            else:
                promo = AppliedPromoDTO.model_validate(raw)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"[Promo] Discarding unreadable stored promo: {e}")
            return None

        if promo.is_corrupted():
            logger.warning(
                f"[Promo] Discarding corrupted stored promo code={promo.code!r} discount={promo.discount_amount}"
            )
            return None
        return promo


class PromoPreviewController:
    """
    Promo code input box with live preview.

    Typing schedules a validation after the input has been quiet for the debounce
    period. Every input change issues a new sequence number and a finishing
    validation only updates ``status`` when its number is still the latest one,
    so an older, slower response never overwrites a newer one and clearing the
    input discards whatever is still in flight.

    Only ``apply`` writes the applied promo, through CartService.
    """

    def __init__(
        self,
        cart_service: 'CartService',
        debounce_ms: int | None = None,
        min_length: int | None = None,
        error_min_length: int | None = None
    ):
        self.cart_service = cart_service
        self.debounce_ms = debounce_ms if debounce_ms is not None else config.PROMO_DEBOUNCE_MS
        self.min_length = min_length if min_length is not None else config.PROMO_MIN_LENGTH
        self.error_min_length = error_min_length if error_min_length is not None else config.PROMO_ERROR_MIN_LENGTH

        self.code_input = ""
        self.status = PromoValidationStatus.NONE
        self.error: str | None = None
        self.preview: PromoValidationResultDTO | None = None

        self._sequence = 0
        self._debounce_task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def sequence(self) -> int:
        return self._sequence

    def on_input(self, code: str) -> None:
        """Record new input and (re)start the quiet period. Needs a running event loop."""
        self.code_input = code
        self._sequence += 1
        self._cancel_debounce()
        self.status = PromoValidationStatus.NONE
        self.error = None
        self.preview = None

        trimmed = code.strip()
        if len(trimmed) < self.min_length:
            return
        self._debounce_task = asyncio.get_running_loop().create_task(
            self._debounce(self._sequence, PromoService.normalize_code(trimmed))
        )

    def clear(self) -> None:
        self.on_input("")

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def _is_stale(self, sequence: int) -> bool:
        return sequence != self._sequence

    async def _debounce(self, sequence: int, code: str) -> None:
        await asyncio.sleep(self.debounce_ms / 1000)
        if self._is_stale(sequence):
            return
        # Shielded: superseding the input must not abort a request already sent
        validation = asyncio.ensure_future(self._validate(sequence, code))
        self._inflight.add(validation)
        validation.add_done_callback(self._inflight.discard)
        await asyncio.shield(validation)

    async def _validate(self, sequence: int, code: str) -> None:
        if self._is_stale(sequence):
            return
        self.status = PromoValidationStatus.VALIDATING
        subtotal = self.cart_service.regular_subtotal()
        try:
            result = await self.cart_service.promo_validator.validate(code, subtotal)
        except InvalidPromoException as e:
            if self._is_stale(sequence):
                return
            self.status = PromoValidationStatus.INVALID
            self.error = e.message if len(code) >= self.error_min_length else None
            return
        except PromoValidationUnavailableException as e:
            if self._is_stale(sequence):
                return
            logger.warning(f"[Promo] Preview for {code} unavailable: {e.reason}")
            self.status = PromoValidationStatus.INVALID
            self.error = "Unable to validate promo code right now. Please try again."
            return

        if self._is_stale(sequence):
            logger.debug(f"[Promo] Discarding stale preview #{sequence} for {code}")
            return
        self.status = PromoValidationStatus.VALID
        self.preview = result

    async def wait_until_idle(self) -> None:
        """Wait for the pending quiet period and any request it started."""
        if self._debounce_task is not None:
            with suppress(asyncio.CancelledError):
                await self._debounce_task
        if self._inflight:
            await asyncio.gather(*list(self._inflight))

    async def apply(self) -> CartMutationResultDTO:
        """Apply the typed code to the cart; on failure the previous promo stays."""
        code = self.code_input
        self._sequence += 1
        self._cancel_debounce()

        result = await self.cart_service.apply_promo(code)
        if result.success:
            self.status = PromoValidationStatus.APPLIED
            self.code_input = ""
            self.error = None
            self.preview = None
        else:
            self.status = PromoValidationStatus.INVALID
            self.error = result.reason
        return result

    async def remove(self) -> CartMutationResultDTO:
        self._sequence += 1
        self._cancel_debounce()
        result = await self.cart_service.remove_promo()
        self.status = PromoValidationStatus.NONE
        self.code_input = ""
        self.error = None
        self.preview = None
        return result
