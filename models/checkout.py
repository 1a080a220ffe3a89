from pydantic import BaseModel, Field

from models.duplicate_group import DuplicateGroupDTO
from models.order_summary import OrderSummaryDTO


class CheckoutDecisionDTO(BaseModel):
    can_proceed: bool
    requires_resolution: bool
    duplicate_groups: list[DuplicateGroupDTO] = Field(default_factory=list)
    summary: OrderSummaryDTO | None = None
