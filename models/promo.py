from typing import Any

from pydantic import BaseModel, field_validator

from enums.discount_type import DiscountType


def _parse_discount_type(value: Any) -> Any:
    if isinstance(value, str):
        return DiscountType.from_string(value)
    return value


class PromoValidationResultDTO(BaseModel):
    """Verdict returned by the promo validation collaborator for an accepted code."""
    promo_code: str
    description: str | None = None
    discount_amount: float
    discount_type: DiscountType
    discount_value: float

    @field_validator("discount_type", mode="before")
    @classmethod
    def normalize_discount_type(cls, value: Any) -> Any:
        return _parse_discount_type(value)


class AppliedPromoDTO(BaseModel):
    code: str
    description: str | None = None
    discount_amount: float
    discount_type: DiscountType
    discount_value: float

    @field_validator("discount_type", mode="before")
    @classmethod
    def normalize_discount_type(cls, value: Any) -> Any:
        return _parse_discount_type(value)

    @staticmethod
    def from_validation(result: PromoValidationResultDTO) -> 'AppliedPromoDTO':
        return AppliedPromoDTO(
            code=result.promo_code,
            description=result.description,
            discount_amount=result.discount_amount,
            discount_type=result.discount_type,
            discount_value=result.discount_value
        )

    def is_corrupted(self) -> bool:
        return not self.code or self.discount_amount <= 0
