from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Drink(BaseModel):
    id: int | None = None
    name: str
    price: int  # cents
    volume: float | None = None  # liters; None for non-liquid items
    crate_size: int | None = None
    is_available: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
