import logging

from models.cartItem import CartItemDTO
from models.combo import ComboSelectionDTO
from services.pricing import PricingService

logger = logging.getLogger(__name__)


class ComboBasket:
    """
    Add-on selections being edited for one cart line.

    A basket is created for the line being configured (``ComboBasket.for_item``) and handed
    to ``CartService.replace_combos`` when the shopper confirms. All changes go through
    ``update``; callers only ever read copies of the selections.
    """

    def __init__(self, selections: list[ComboSelectionDTO | dict] | None = None):
        self._selections: dict[int | str, ComboSelectionDTO] = {}
        for selection in selections or []:
            combo = self._coerce(selection)
            self._selections[combo.add_on_id] = combo

    @classmethod
    def for_item(cls, item: CartItemDTO) -> 'ComboBasket':
        return cls([combo.model_copy() for combo in item.combos])

    @staticmethod
    def _coerce(selection: ComboSelectionDTO | dict) -> ComboSelectionDTO:
        if isinstance(selection, ComboSelectionDTO):
            return selection.model_copy()
        return ComboSelectionDTO.model_validate(selection)

    def update(self, selection: ComboSelectionDTO | dict, quantity: int | None = None) -> ComboSelectionDTO | None:
        """
        Add, re-quantify or drop an add-on.

        Args:
            selection: add-on with catalog fields (either identity field name is accepted)
            quantity: new quantity; defaults to the selection's own quantity.
                      Zero or below removes the add-on.

        Returns:
            The stored selection, or None when it was removed
        """
        if quantity is not None and quantity <= 0:
            add_on_id = selection.add_on_id if isinstance(selection, ComboSelectionDTO) \
                else self._coerce({**selection, "quantity": 1}).add_on_id
            removed = self._selections.pop(add_on_id, None)
            if removed is not None:
                logger.debug(f"[ComboBasket] Removed add-on {add_on_id}")
            return None

        combo = self._coerce(selection)
        if quantity is not None:
            combo = combo.model_copy(update={"quantity": quantity})
        self._selections[combo.add_on_id] = combo
        return combo.model_copy()

    def clear(self) -> None:
        self._selections.clear()

    def get(self, add_on_id: int | str) -> ComboSelectionDTO | None:
        combo = self._selections.get(add_on_id)
        return combo.model_copy() if combo is not None else None

    @property
    def selections(self) -> list[ComboSelectionDTO]:
        return [combo.model_copy() for combo in self._selections.values()]

    @property
    def total(self) -> float:
        return PricingService.calculate_combo_total(list(self._selections.values()))

    def __len__(self) -> int:
        return len(self._selections)

    def __contains__(self, add_on_id) -> bool:
        return add_on_id in self._selections
