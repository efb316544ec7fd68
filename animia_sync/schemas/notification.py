"""Pydantic schemas for device notification tokens."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class TokenRegister(BaseModel):
    token: str
    platform: Optional[str] = None
    device_id: Optional[str] = None
    model: Optional[str] = None


class TokenOut(BaseModel):
    id: int
    token: str
    platform: Optional[str] = None
    device_id: Optional[str] = None
    model: Optional[str] = None
    is_registered: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
