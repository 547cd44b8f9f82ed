from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class User(BaseModel):
    id: int | None = None
    name: str
    email: str = ""
    image: str | None = None
    created_at: datetime | None = None
