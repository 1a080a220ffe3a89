from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, CheckConstraint

from enums.discount_type import DiscountType
from enums.promo_code_status import PromoCodeStatus
from models.base import Base


class PromoCode(Base):
    """
    Merchant promo code used by DatabasePromoValidationAdapter.

    Codes are stored upper-case; lookups upper-case the shopper input.
    """
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_value = Column(Float, nullable=False)
    max_discount_amount = Column(Float, nullable=True)
    min_order_amount = Column(Float, nullable=False, default=0.0)
    status = Column(Enum(PromoCodeStatus), nullable=False, default=PromoCodeStatus.ACTIVE)
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('discount_value > 0', name='check_discount_value_positive'),
        CheckConstraint('used_count >= 0', name='check_used_count_non_negative'),
    )


class PromoCodeDTO(BaseModel):
    id: int | None = None
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: float
    max_discount_amount: float | None = None
    min_order_amount: float = 0.0
    status: PromoCodeStatus = PromoCodeStatus.ACTIVE
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    used_count: int = 0
