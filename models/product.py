# Catalog facts denormalised onto a cart line at selection time. Totals are computed
# from these copies, the catalog is not consulted again until the line is refreshed.
from pydantic import AliasChoices, BaseModel, Field


class ProductDTO(BaseModel):
    id: int
    name: str
    base_price: float = Field(validation_alias=AliasChoices("base_price", "price"))
    discounted_price: float | None = None
    discount_percentage: float | None = None
    base_weight: str | None = Field(default=None, validation_alias=AliasChoices("base_weight", "weight"))
    slug: str | None = None


class VariantDTO(BaseModel):
    """Priced weight option of a product, e.g. 1kg at 800 discounted to 750."""
    id: int | None = None
    weight: str | None = None
    price: float
    discounted_price: float | None = None
    discount_percentage: float | None = None


class FlavorDTO(BaseModel):
    id: int | None = None
    name: str | None = None
