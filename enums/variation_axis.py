from enum import Enum


class VariationAxis(str, Enum):
    """Configuration axes compared between cart lines of the same product."""
    DELIVERY_SLOT = "Delivery Time Slot"
    COMBOS = "Add-ons/Combos"
    FLAVOR = "Flavor"
    TIER = "Tier"
    VARIANT = "Weight/Variant"

    @property
    def display_name(self) -> str:
        return self.value
