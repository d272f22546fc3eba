from __future__ import annotations

from pydantic import BaseModel


class Identity(BaseModel):
    user_id: str
    email: str | None = None
    name: str | None = None
