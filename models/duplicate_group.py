from pydantic import BaseModel

from enums.variation_axis import VariationAxis
from models.cartItem import CartItemDTO


class DuplicateGroupDTO(BaseModel):
    product_id: int
    product_name: str
    items: list[CartItemDTO]
    differences: list[VariationAxis]
    has_variations: bool

    @property
    def difference_labels(self) -> list[str]:
        return [axis.display_name for axis in self.differences]
