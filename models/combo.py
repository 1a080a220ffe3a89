from typing import Any

from pydantic import BaseModel, Field, model_validator


class ComboSelectionDTO(BaseModel):
    """
    Add-on attached to one cart line (candles, flowers, greeting cards).

    The add-on identity arrives as ``add_on_product_id`` from the add-on catalog and as
    ``product_id`` when a regular product is offered as an add-on. Both are folded into
    ``add_on_id`` here so nothing downstream has to care which one it was.
    """
    add_on_id: int | str
    name: str | None = None
    category: str | None = None
    image_url: str | None = None
    price: float
    discounted_price: float | None = None
    discount_percentage: float | None = None
    quantity: int = Field(default=1, ge=1)

    @model_validator(mode="before")
    @classmethod
    def normalize_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("add_on_id") is not None:
            return data
        data = dict(data)
        for key in ("add_on_product_id", "product_id", "id"):
            if data.get(key) is not None:
                data["add_on_id"] = data[key]
                break
        else:
            raise ValueError("Combo selection has no add-on identity (add_on_product_id / product_id)")
        if data.get("category") is None and data.get("category_name") is not None:
            data["category"] = data["category_name"]
        return data
