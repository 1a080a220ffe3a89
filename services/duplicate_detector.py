"""
Detection of cart lines that share a base product.

Two lines of the same cake are either true duplicates (identical on every axis) or
variations (different slot, add-ons, flavor, tier or weight). Both are shown to the
shopper before checkout.
"""

import logging
from collections import defaultdict

from enums.variation_axis import VariationAxis
from models.cartItem import CartItemDTO
from models.combo import ComboSelectionDTO
from models.delivery_slot import DeliverySlotDTO
from models.duplicate_group import DuplicateGroupDTO
from models.product import FlavorDTO, VariantDTO

logger = logging.getLogger(__name__)

# Report order of differences, independent of the order they were found in
AXIS_ORDER = [
    VariationAxis.DELIVERY_SLOT,
    VariationAxis.COMBOS,
    VariationAxis.FLAVOR,
    VariationAxis.TIER,
    VariationAxis.VARIANT,
]


class DuplicateDetectionService:

    @staticmethod
    def slot_key(slot: DeliverySlotDTO | None) -> tuple | None:
        if slot is None:
            return None
        return slot.delivery_date.isoformat(), slot.window_key()

    @staticmethod
    def combos_key(combos: list[ComboSelectionDTO]) -> str:
        """Order-independent, quantity-sensitive signature of an add-on set."""
        return ",".join(sorted(f"{combo.add_on_id}-{combo.quantity}" for combo in combos))

    @staticmethod
    def flavor_key(flavor: FlavorDTO | None):
        if flavor is None:
            return None
        return flavor.id if flavor.id is not None else flavor.name

    @staticmethod
    def variant_key(variant: VariantDTO | None):
        if variant is None:
            return None
        return variant.id if variant.id is not None else variant.weight

    @staticmethod
    def compare_items(first: CartItemDTO, second: CartItemDTO) -> set[VariationAxis]:
        """Axes on which two lines differ; empty set for true duplicates."""
        differences = set()
        if DuplicateDetectionService.slot_key(first.delivery_slot) != \
                DuplicateDetectionService.slot_key(second.delivery_slot):
            differences.add(VariationAxis.DELIVERY_SLOT)
        if DuplicateDetectionService.combos_key(first.combos) != \
                DuplicateDetectionService.combos_key(second.combos):
            differences.add(VariationAxis.COMBOS)
        if DuplicateDetectionService.flavor_key(first.flavor) != \
                DuplicateDetectionService.flavor_key(second.flavor):
            differences.add(VariationAxis.FLAVOR)
        if first.tier != second.tier:
            differences.add(VariationAxis.TIER)
        if DuplicateDetectionService.variant_key(first.variant) != \
                DuplicateDetectionService.variant_key(second.variant):
            differences.add(VariationAxis.VARIANT)
        return differences

    @staticmethod
    def is_exact_duplicate(first: CartItemDTO, second: CartItemDTO) -> bool:
        return first.product.id == second.product.id and \
            not DuplicateDetectionService.compare_items(first, second)

    @staticmethod
    def is_same_item_different_slot(first: CartItemDTO, second: CartItemDTO) -> bool:
        return first.product.id == second.product.id and \
            DuplicateDetectionService.compare_items(first, second) == {VariationAxis.DELIVERY_SLOT}

    @staticmethod
    def detect_duplicate_groups(items: list[CartItemDTO]) -> list[DuplicateGroupDTO]:
        """
        Group non-deal lines by product id and report every group of two or more.

        Differences are the union of the axes on which each member differs from the
        group's first member. Comparisons only run inside a product partition.

        Returns:
            Groups in order of the first appearance of their product in the cart
        """
        partitions: dict[int, list[CartItemDTO]] = defaultdict(list)
        for item in items:
            if item.is_deal_item:
                continue
            partitions[item.product.id].append(item)

        groups = []
        for product_id, members in partitions.items():
            if len(members) < 2:
                continue
            reference = members[0]
            found = set()
            for other in members[1:]:
                found |= DuplicateDetectionService.compare_items(reference, other)
            differences = [axis for axis in AXIS_ORDER if axis in found]
            groups.append(DuplicateGroupDTO(
                product_id=product_id,
                product_name=reference.product.name,
                items=members,
                differences=differences,
                has_variations=len(differences) > 0
            ))

        if groups:
            logger.info(
                f"[Duplicates] {len(groups)} group(s) found: "
                + ", ".join(f"product {g.product_id} x{len(g.items)} {[d.value for d in g.differences]}" for g in groups)
            )
        return groups

    @staticmethod
    def describe_item(item: CartItemDTO, position: int) -> str:
        """
        Short label telling apart lines inside a duplicate group.

        Priority: delivery day, add-on count, flavor, tier, weight, then "Item N"
        (position is 0-based).
        """
        if item.delivery_slot is not None:
            return f"{item.delivery_slot.delivery_date.strftime('%a')} Delivery"
        if item.combos:
            count = len(item.combos)
            return f"{count} Add-on{'s' if count > 1 else ''}"
        if item.flavor is not None and item.flavor.name:
            return f"{item.flavor.name} Flavor"
        if item.tier:
            return item.tier if item.tier.lower().endswith("tier") else f"{item.tier} Tier"
        if item.variant is not None and (item.variant.weight or item.variant.id is not None):
            return f"{item.variant.weight or item.variant.id} Weight"
        return f"Item {position + 1}"
