import asyncio
import inspect
import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable

import config
from enums.cart_rejection_reason import CartRejectionReason
from enums.duplicate_add_policy import DuplicateAddPolicy
from exceptions.persistence import CartPersistenceException
from exceptions.promo import InvalidPromoException, PromoValidationUnavailableException
from models.cart import CartSnapshotDTO
from models.cartItem import CartItemDTO, SavedItemDTO, generate_cart_item_id
from models.cart_mutation import CartMutationResultDTO, CartCountsDTO
from models.combo import ComboSelectionDTO
from models.delivery_slot import DeliverySlotDTO
from models.order_summary import DeliveryInfoDTO, OrderSummaryDTO
from models.promo import AppliedPromoDTO
from services.combo_basket import ComboBasket
from services.duplicate_detector import DuplicateDetectionService
from services.order_summary import OrderSummaryService
from services.pricing import PricingService
from services.promo import PromoService
from utils.cart_persistence_adapters import CartPersistenceAdapter
from utils.price_formatter import format_price
from utils.promo_validation_adapters import PromoValidationAdapter

logger = logging.getLogger(__name__)

Mutation = Callable[[], CartMutationResultDTO | Awaitable[CartMutationResultDTO]]


def _reject(reason: str, reason_code: CartRejectionReason, **kwargs) -> CartMutationResultDTO:
    return CartMutationResultDTO.rejected(reason, reason_code, **kwargs)


class CartService:
    """
    Owner of one shopper's cart: lines, saved-for-later lines and the applied promo.

    Every change goes through a mutation method. Mutations run one at a time; each one
    snapshots the cart, applies the change (recomputing line totals on the spot),
    shows it immediately and then hands the new snapshot to the persistence adapter.
    If the adapter fails the cart is put back exactly as it was and the caller gets a
    rejected result. Domain rejections (unknown line, deal limit, invalid promo ...)
    are returned the same way and never raise.

    Readers get copies; nothing outside this class writes to the cart state.
    """

    def __init__(
        self,
        cart_key: str,
        persistence: CartPersistenceAdapter,
        promo_validator: PromoValidationAdapter,
        duplicate_add_policy: DuplicateAddPolicy | None = None,
        snapshot: CartSnapshotDTO | None = None
    ):
        self.cart_key = cart_key
        self.persistence = persistence
        self.promo_validator = promo_validator
        self.duplicate_add_policy = duplicate_add_policy or config.DUPLICATE_ADD_POLICY
        self._lock = asyncio.Lock()

        self._items: list[CartItemDTO] = []
        self._saved_items: list[SavedItemDTO] = []
        self._applied_promo: AppliedPromoDTO | None = None
        if snapshot is not None:
            self._restore(snapshot)
            for item in self._items:
                item.total_price = PricingService.calculate_item_total(item)
            self._applied_promo = PromoService.restore_applied_promo(self._applied_promo)

    @classmethod
    async def load(
        cls,
        cart_key: str,
        persistence: CartPersistenceAdapter,
        promo_validator: PromoValidationAdapter,
        duplicate_add_policy: DuplicateAddPolicy | None = None
    ) -> 'CartService':
        """
        Restore a stored cart.

        Line totals are recomputed from the stored price snapshots and a corrupted
        applied promo is discarded.

        Raises:
            CartPersistenceException: If the stored cart cannot be read
        """
        snapshot = await persistence.load(cart_key)
        if snapshot is None:
            logger.debug(f"[Cart] No stored cart for {cart_key}, starting empty")
        return cls(cart_key, persistence, promo_validator, duplicate_add_policy, snapshot=snapshot)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CartItemDTO]:
        return [item.model_copy(deep=True) for item in self._items]

    @property
    def saved_items(self) -> list[SavedItemDTO]:
        return [item.model_copy(deep=True) for item in self._saved_items]

    @property
    def applied_promo(self) -> AppliedPromoDTO | None:
        return self._applied_promo.model_copy() if self._applied_promo is not None else None

    def snapshot(self) -> CartSnapshotDTO:
        return CartSnapshotDTO(
            cart_key=self.cart_key,
            items=self.items,
            saved_items=self.saved_items,
            applied_promo=self.applied_promo
        )

    def get_item(self, item_id: str) -> CartItemDTO | None:
        item = self._find_item(item_id)
        return item.model_copy(deep=True) if item is not None else None

    def is_in_cart(self, product_id: int, variant_id: int | None = None) -> bool:
        for item in self._items:
            if item.product.id != product_id:
                continue
            if variant_id is None or (item.variant is not None and item.variant.id == variant_id):
                return True
        return False

    def regular_subtotal(self) -> float:
        return OrderSummaryService.calculate_regular_subtotal(self._items)

    def get_counts(self) -> CartCountsDTO:
        return CartCountsDTO(
            total_items=sum(item.quantity for item in self._items),
            regular_items=sum(item.quantity for item in self._items if not item.is_deal_item),
            deal_items=sum(1 for item in self._items if item.is_deal_item),
            total_combos=sum(combo.quantity for item in self._items for combo in item.combos),
            saved_items=len(self._saved_items)
        )

    def get_summary(self, delivery_info: DeliveryInfoDTO) -> OrderSummaryDTO:
        return OrderSummaryService.compute_summary_for_delivery(self._items, self._applied_promo, delivery_info)

    # ------------------------------------------------------------------
    # Mutation plumbing
    # ------------------------------------------------------------------

    def _find_item(self, item_id: str) -> CartItemDTO | None:
        return next((item for item in self._items if item.id == item_id), None)

    def _find_saved_item(self, saved_item_id: str) -> SavedItemDTO | None:
        return next((item for item in self._saved_items if item.id == saved_item_id), None)

    def _restore(self, snapshot: CartSnapshotDTO) -> None:
        self._items = [item.model_copy(deep=True) for item in snapshot.items]
        self._saved_items = [item.model_copy(deep=True) for item in snapshot.saved_items]
        self._applied_promo = snapshot.applied_promo.model_copy() if snapshot.applied_promo is not None else None

    async def _run_mutation(self, action: str, mutation: Mutation) -> CartMutationResultDTO:
        async with self._lock:
            before = self.snapshot()
            try:
                result = mutation()
                if inspect.isawaitable(result):
                    result = await result
                if not result.success:
                    self._restore(before)
                    logger.info(f"[Cart] {action} rejected for {self.cart_key}: {result.reason}")
                    return result
                result.removed_item_ids.extend(self._enforce_deal_thresholds())
                await self.persistence.save(self.snapshot())
            except CartPersistenceException as e:
                self._restore(before)
                logger.error(f"[Cart] {action} rolled back for {self.cart_key}: {e}")
                return _reject(
                    "Could not save your cart. Please try again.",
                    CartRejectionReason.PERSISTENCE_FAILED
                )
            except Exception:
                self._restore(before)
                logger.exception(f"[Cart] {action} failed for {self.cart_key}, cart restored")
                raise
            return result

    def _enforce_deal_thresholds(self) -> list[str]:
        """Drop deal lines whose unlock threshold is above the regular subtotal."""
        subtotal = self.regular_subtotal()
        removed = [
            item for item in self._items
            if item.is_deal_item and item.deal_threshold is not None and subtotal < item.deal_threshold
        ]
        if not removed:
            return []
        removed_ids = {item.id for item in removed}
        self._items = [item for item in self._items if item.id not in removed_ids]
        for item in removed:
            logger.info(
                f"[Cart] Removed deal {item.deal_id} from {self.cart_key}: "
                f"subtotal {subtotal} below threshold {item.deal_threshold}"
            )
        return [item.id for item in removed]

    def _check_deal_admission(self, item: CartItemDTO) -> CartMutationResultDTO | None:
        if item.quantity > config.DEAL_QUANTITY_LIMIT:
            return _reject(
                f"Deal items are limited to {config.DEAL_QUANTITY_LIMIT}",
                CartRejectionReason.DEAL_LIMIT
            )
        if item.deal_id is not None and any(
                existing.is_deal_item and existing.deal_id == item.deal_id for existing in self._items):
            return _reject("Deal already in cart", CartRejectionReason.DEAL_ALREADY_IN_CART)
        if item.deal_threshold is not None:
            subtotal = self.regular_subtotal()
            if subtotal < item.deal_threshold:
                return _reject(
                    f"Add {format_price(item.deal_threshold - subtotal)} more to unlock this deal",
                    CartRejectionReason.DEAL_THRESHOLD_NOT_MET
                )
        return None

    def _check_message(self, message: str | None) -> CartMutationResultDTO | None:
        if message is not None and len(message) > config.CART_MESSAGE_MAX_LENGTH:
            return _reject(
                f"Message must be at most {config.CART_MESSAGE_MAX_LENGTH} characters",
                CartRejectionReason.MESSAGE_TOO_LONG
            )
        return None

    @staticmethod
    def _is_valid_quantity(quantity) -> bool:
        return isinstance(quantity, int) and not isinstance(quantity, bool)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    async def add_item(self, item: CartItemDTO) -> CartMutationResultDTO:
        """
        Add a configured line.

        A line identical on every variation axis (and message) to an existing regular
        line is handled by the duplicate add policy. A line differing only in its
        delivery slot is added and flagged with ``same_item_different_slot``.
        """
        return await self._run_mutation("add_item", lambda: self._add_item(item))

    def _add_item(self, item: CartItemDTO) -> CartMutationResultDTO:
        if not self._is_valid_quantity(item.quantity) or item.quantity < 1:
            return _reject("Quantity must be at least 1", CartRejectionReason.INVALID_QUANTITY)
        rejection = self._check_message(item.message)
        if rejection is not None:
            return rejection

        new_item = item.model_copy(deep=True)
        if new_item.is_deal_item:
            rejection = self._check_deal_admission(new_item)
            if rejection is not None:
                return rejection
        else:
            duplicate = next((
                existing for existing in self._items
                if not existing.is_deal_item
                and existing.message == new_item.message
                and DuplicateDetectionService.is_exact_duplicate(existing, new_item)
            ), None)
            if duplicate is not None:
                if self.duplicate_add_policy == DuplicateAddPolicy.REJECT:
                    return _reject(
                        "Item already in cart",
                        CartRejectionReason.DUPLICATE_ITEM,
                        is_duplicate=True,
                        item=duplicate.model_copy(deep=True)
                    )
                if self.duplicate_add_policy == DuplicateAddPolicy.MERGE:
                    duplicate.quantity += new_item.quantity
                    duplicate.total_price = PricingService.calculate_item_total(duplicate)
                    logger.info(f"[Cart] Merged into line {duplicate.id}, quantity now {duplicate.quantity}")
                    return CartMutationResultDTO.ok(duplicate.model_copy(deep=True), is_duplicate=True)

        same_item_different_slot = any(
            not existing.is_deal_item and DuplicateDetectionService.is_same_item_different_slot(existing, new_item)
            for existing in self._items
        )
        if new_item.is_deal_item:
            same_item_different_slot = False

        if self._find_item(new_item.id) is not None:
            new_item.id = generate_cart_item_id()
        new_item.total_price = PricingService.calculate_item_total(new_item)
        self._items.append(new_item)

        logger.info(
            f"[Cart] Added {new_item.product.name} x{new_item.quantity} to {self.cart_key} "
            f"(line {new_item.id}, total {new_item.total_price})"
        )
        return CartMutationResultDTO.ok(
            new_item.model_copy(deep=True),
            same_item_different_slot=same_item_different_slot
        )

    async def update_quantity(self, item_id: str, quantity: int) -> CartMutationResultDTO:
        """Set a line's quantity; zero or below removes the line, deal lines stay at 1."""
        return await self._run_mutation("update_quantity", lambda: self._update_quantity(item_id, quantity))

    def _update_quantity(self, item_id: str, quantity: int) -> CartMutationResultDTO:
        if not self._is_valid_quantity(quantity):
            return _reject("Quantity must be a whole number", CartRejectionReason.INVALID_QUANTITY)
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        if quantity <= 0:
            return self._remove_item(item_id)
        if item.is_deal_item and quantity > config.DEAL_QUANTITY_LIMIT:
            return _reject(
                f"Deal items are limited to {config.DEAL_QUANTITY_LIMIT}",
                CartRejectionReason.DEAL_LIMIT,
                item=item.model_copy(deep=True)
            )

        item.quantity = quantity
        item.total_price = PricingService.calculate_item_total(item)
        return CartMutationResultDTO.ok(item.model_copy(deep=True))

    async def remove_item(self, item_id: str) -> CartMutationResultDTO:
        return await self._run_mutation("remove_item", lambda: self._remove_item(item_id))

    def _remove_item(self, item_id: str) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        self._items.remove(item)
        logger.info(f"[Cart] Removed line {item_id} ({item.product.name}) from {self.cart_key}")
        return CartMutationResultDTO.ok(item.model_copy(deep=True), removed_item_ids=[item_id])

    async def update_delivery_slot(self, item_id: str, slot: DeliverySlotDTO | dict | None) -> CartMutationResultDTO:
        return await self._run_mutation("update_delivery_slot", lambda: self._update_delivery_slot(item_id, slot))

    def _update_delivery_slot(self, item_id: str, slot: DeliverySlotDTO | dict | None) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        if isinstance(slot, dict):
            try:
                slot = DeliverySlotDTO.model_validate(slot)
            except ValueError as e:
                return _reject(f"Invalid delivery slot: {e}", CartRejectionReason.INVALID_SLOT)
        item.delivery_slot = slot
        return CartMutationResultDTO.ok(item.model_copy(deep=True))

    async def update_message(self, item_id: str, message: str | None) -> CartMutationResultDTO:
        return await self._run_mutation("update_message", lambda: self._update_message(item_id, message))

    def _update_message(self, item_id: str, message: str | None) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        rejection = self._check_message(message)
        if rejection is not None:
            return rejection
        item.message = message or None
        return CartMutationResultDTO.ok(item.model_copy(deep=True))

    async def remove_expired_slot_items(self, today: date | None = None) -> CartMutationResultDTO:
        """
        Drop lines whose delivery date is past.

        Only dates older than ``EXPIRED_SLOT_GRACE_DAYS`` before today count as
        expired, so a line for today or yesterday is kept.
        """
        return await self._run_mutation(
            "remove_expired_slot_items", lambda: self._remove_expired_slot_items(today or date.today())
        )

    def _remove_expired_slot_items(self, today: date) -> CartMutationResultDTO:
        cutoff = today - timedelta(days=config.EXPIRED_SLOT_GRACE_DAYS)
        expired = [
            item for item in self._items
            if item.delivery_slot is not None and item.delivery_slot.delivery_date < cutoff
        ]
        expired_ids = {item.id for item in expired}
        self._items = [item for item in self._items if item.id not in expired_ids]
        if expired:
            logger.info(f"[Cart] Removed {len(expired)} line(s) with expired delivery slots from {self.cart_key}")
        return CartMutationResultDTO.ok(removed_item_ids=[item.id for item in expired])

    async def clear_cart(self) -> CartMutationResultDTO:
        """Empty the cart and drop the promo; saved-for-later lines are kept."""
        return await self._run_mutation("clear_cart", self._clear_cart)

    def _clear_cart(self) -> CartMutationResultDTO:
        removed_ids = [item.id for item in self._items]
        self._items = []
        self._applied_promo = None
        return CartMutationResultDTO.ok(removed_item_ids=removed_ids)

    async def complete_checkout(self) -> CartMutationResultDTO:
        logger.info(f"[Cart] Checkout completed for {self.cart_key}, clearing cart")
        return await self.clear_cart()

    # ------------------------------------------------------------------
    # Add-ons
    # ------------------------------------------------------------------

    async def add_or_update_combo(
        self,
        item_id: str,
        combo: ComboSelectionDTO | dict,
        quantity: int | None = None
    ) -> CartMutationResultDTO:
        """Attach an add-on to a line, or change its quantity when already attached."""
        return await self._run_mutation(
            "add_or_update_combo", lambda: self._add_or_update_combo(item_id, combo, quantity)
        )

    def _add_or_update_combo(
        self,
        item_id: str,
        combo: ComboSelectionDTO | dict,
        quantity: int | None
    ) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        if quantity is not None and not self._is_valid_quantity(quantity):
            return _reject("Quantity must be a whole number", CartRejectionReason.INVALID_QUANTITY)
        basket = ComboBasket.for_item(item)
        try:
            basket.update(combo, quantity)
        except ValueError as e:
            return _reject(f"Invalid add-on: {e}", CartRejectionReason.INVALID_COMBO)
        return self._apply_basket(item, basket)

    async def update_combo_quantity(self, item_id: str, add_on_id: int | str, quantity: int) -> CartMutationResultDTO:
        """Change an attached add-on's quantity; zero or below detaches it."""
        return await self._run_mutation(
            "update_combo_quantity", lambda: self._update_combo_quantity(item_id, add_on_id, quantity)
        )

    def _update_combo_quantity(self, item_id: str, add_on_id: int | str, quantity: int) -> CartMutationResultDTO:
        if not self._is_valid_quantity(quantity):
            return _reject("Quantity must be a whole number", CartRejectionReason.INVALID_QUANTITY)
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        basket = ComboBasket.for_item(item)
        combo = basket.get(add_on_id)
        if combo is None:
            return _reject("Add-on not found on this item", CartRejectionReason.COMBO_NOT_FOUND)
        basket.update(combo, quantity)
        return self._apply_basket(item, basket)

    async def remove_combo(self, item_id: str, add_on_id: int | str) -> CartMutationResultDTO:
        return await self._run_mutation("remove_combo", lambda: self._update_combo_quantity(item_id, add_on_id, 0))

    async def replace_combos(self, item_id: str, basket: ComboBasket) -> CartMutationResultDTO:
        """Replace a line's add-ons with the selections of an edited basket."""
        return await self._run_mutation("replace_combos", lambda: self._replace_combos(item_id, basket))

    def _replace_combos(self, item_id: str, basket: ComboBasket) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        return self._apply_basket(item, basket)

    def _apply_basket(self, item: CartItemDTO, basket: ComboBasket) -> CartMutationResultDTO:
        item.combos = basket.selections
        item.total_price = PricingService.calculate_item_total(item)
        logger.debug(f"[Cart] Line {item.id} now has {len(item.combos)} add-on(s), total {item.total_price}")
        return CartMutationResultDTO.ok(item.model_copy(deep=True))

    # ------------------------------------------------------------------
    # Saved for later
    # ------------------------------------------------------------------

    async def save_for_later(self, item_id: str) -> CartMutationResultDTO:
        return await self._run_mutation("save_for_later", lambda: self._save_for_later(item_id))

    def _save_for_later(self, item_id: str) -> CartMutationResultDTO:
        item = self._find_item(item_id)
        if item is None:
            return _reject("Item not found in cart", CartRejectionReason.ITEM_NOT_FOUND)
        self._items.remove(item)
        saved = SavedItemDTO(**item.model_dump(), saved_at=datetime.now())
        self._saved_items.append(saved)
        logger.info(f"[Cart] Saved line {item_id} for later in {self.cart_key}")
        return CartMutationResultDTO.ok(saved, removed_item_ids=[item_id])

    async def move_to_cart(self, saved_item_id: str) -> CartMutationResultDTO:
        """
        Move a saved line back into the cart under a new line id.

        The duplicate add policy is not applied here: a line identical to one
        already in the cart is appended, and the checkout duplicate review
        reports the pair.
        """
        return await self._run_mutation("move_to_cart", lambda: self._move_to_cart(saved_item_id))

    def _move_to_cart(self, saved_item_id: str) -> CartMutationResultDTO:
        saved = self._find_saved_item(saved_item_id)
        if saved is None:
            return _reject("Saved item not found", CartRejectionReason.SAVED_ITEM_NOT_FOUND)

        item = CartItemDTO(**saved.model_dump(exclude={"saved_at", "id", "added_at"}))
        if item.is_deal_item:
            rejection = self._check_deal_admission(item)
            if rejection is not None:
                return rejection
        item.total_price = PricingService.calculate_item_total(item)

        self._saved_items.remove(saved)
        self._items.append(item)
        logger.info(f"[Cart] Moved saved line {saved_item_id} back to {self.cart_key} as {item.id}")
        return CartMutationResultDTO.ok(item.model_copy(deep=True))

    async def remove_saved_item(self, saved_item_id: str) -> CartMutationResultDTO:
        return await self._run_mutation("remove_saved_item", lambda: self._remove_saved_item(saved_item_id))

    def _remove_saved_item(self, saved_item_id: str) -> CartMutationResultDTO:
        saved = self._find_saved_item(saved_item_id)
        if saved is None:
            return _reject("Saved item not found", CartRejectionReason.SAVED_ITEM_NOT_FOUND)
        self._saved_items.remove(saved)
        return CartMutationResultDTO.ok()

    # ------------------------------------------------------------------
    # Promo
    # ------------------------------------------------------------------

    async def apply_promo(self, code: str) -> CartMutationResultDTO:
        """
        Validate a code against the current regular subtotal and apply it.

        A successful code replaces any applied one. On rejection, or when the
        validation service is unreachable, the previous promo stays in place and
        the validator's reason is passed through unchanged.
        """
        return await self._run_mutation("apply_promo", lambda: self._apply_promo(code))

    async def _apply_promo(self, code: str) -> CartMutationResultDTO:
        normalized = PromoService.normalize_code(code)
        if not normalized:
            return _reject("Please enter a promo code", CartRejectionReason.INVALID_PROMO)

        subtotal = self.regular_subtotal()
        try:
            verdict = await self.promo_validator.validate(normalized, subtotal)
        except InvalidPromoException as e:
            return _reject(e.message, CartRejectionReason.INVALID_PROMO)
        except PromoValidationUnavailableException as e:
            logger.warning(f"[Promo] Validation unavailable for {normalized}: {e.reason}")
            return _reject(
                "Unable to validate promo code right now. Please try again.",
                CartRejectionReason.PROMO_SERVICE_UNAVAILABLE
            )

        promo = AppliedPromoDTO.from_validation(verdict)
        if promo.is_corrupted():
            return _reject("This promo code does not apply to your cart", CartRejectionReason.INVALID_PROMO)

        previous = self._applied_promo.code if self._applied_promo is not None else None
        self._applied_promo = promo
        logger.info(
            f"[Promo] Applied {promo.code} to {self.cart_key} (discount {promo.discount_amount}"
            + (f", replaces {previous})" if previous else ")")
        )
        return CartMutationResultDTO.ok()

    async def remove_promo(self) -> CartMutationResultDTO:
        """
        Drop the applied promo. Always succeeds.

        A failed save is logged and the promo stays removed; it will be written with
        the next successful mutation.
        """
        async with self._lock:
            self._applied_promo = None
            try:
                await self.persistence.save(self.snapshot())
            except CartPersistenceException as e:
                logger.warning(f"[Promo] Promo removed for {self.cart_key} but not saved: {e}")
        return CartMutationResultDTO.ok()
