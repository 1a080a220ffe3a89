# cart snapshot storage: the whole cart (lines, saved-for-later lines, applied promo) is
# written as one row per cart key. Lines are stored as JSON because they are denormalised
# catalog copies and are never queried individually.
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, String, Text, DateTime

from models.base import Base
from models.cartItem import CartItemDTO, SavedItemDTO
from models.promo import AppliedPromoDTO


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    cart_key = Column(String(64), nullable=False, unique=True)
    items = Column(Text, nullable=False, default="[]")
    saved_items = Column(Text, nullable=False, default="[]")
    applied_promo = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CartDTO(BaseModel):
    id: int | None = None
    cart_key: str | None = None
    items: str | None = None
    saved_items: str | None = None
    applied_promo: str | None = None
    updated_at: datetime | None = None


class CartSnapshotDTO(BaseModel):
    """Full cart state handed to the persistence collaborator."""
    cart_key: str
    items: list[CartItemDTO] = Field(default_factory=list)
    saved_items: list[SavedItemDTO] = Field(default_factory=list)
    applied_promo: AppliedPromoDTO | None = None
