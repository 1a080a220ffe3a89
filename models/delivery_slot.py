from datetime import date
from typing import Any

from pydantic import BaseModel, model_validator


class DeliverySlotDTO(BaseModel):
    """
    Delivery date plus time window chosen for a cart line.

    Accepts the storefront shapes at the boundary: ``date``/``deliveryDate`` for the
    date, ``time`` for a display label and a nested ``slot`` object carrying ``id``,
    ``startTime`` and ``endTime``.
    """
    delivery_date: date
    slot_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    label: str | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("delivery_date") is None:
            data["delivery_date"] = data.get("date") or data.get("deliveryDate")
        if data.get("label") is None and isinstance(data.get("time"), str):
            data["label"] = data["time"]
        slot = data.get("slot")
        if isinstance(slot, dict):
            data.setdefault("slot_id", slot.get("id"))
            data.setdefault("start_time", slot.get("startTime") or slot.get("start_time"))
            data.setdefault("end_time", slot.get("endTime") or slot.get("end_time"))
        if data.get("slot_id") is not None:
            data["slot_id"] = str(data["slot_id"])
        for key in ("start_time", "end_time"):
            if isinstance(data.get(key), str):
                data[key] = _trim_seconds(data[key])
        return data

    def window_key(self) -> str | None:
        """Start time, falling back to slot id, then the display label."""
        return self.start_time or self.slot_id or self.label


def _trim_seconds(value: str) -> str:
    parts = value.strip().split(":")
    if len(parts) == 3:
        return ":".join(parts[:2])
    return value.strip()
