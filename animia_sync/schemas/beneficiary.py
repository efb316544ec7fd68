"""Pydantic schemas for the beneficiary list feed."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class BeneficiaryOut(BaseModel):
    id: int
    name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_phone: Optional[str] = None
    registration_date: Optional[datetime] = None
    location: Optional[str] = None
    follow_up_due: Optional[datetime] = None
    follow_up_done: bool = False
    last_followed: Optional[datetime] = None
    hb: Optional[float] = None
    calcium_qty: Optional[int] = None
    short_id: Optional[str] = None
    created_at: Optional[datetime] = None

    # Latest screening / intervention projection
    latest_hemoglobin: Optional[float] = None
    latest_anemia_category: Optional[str] = None
    latest_severity: Optional[str] = None
    latest_screening_date: Optional[datetime] = None
    latest_ifa_yes: Optional[bool] = None
    latest_intervention_date: Optional[datetime] = None

    model_config = {"from_attributes": True}
