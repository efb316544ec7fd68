"""Beneficiary ORM model — the program's system of record for enrolled people."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from animia_sync.database import Base


class Beneficiary(Base):
    __tablename__ = "beneficiaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(32), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    id_number = Column(String(32), nullable=True)
    aadhaar_hash = Column(String(191), nullable=True, unique=True, index=True)
    dob = Column(String(32), nullable=True)
    category = Column(String(64), nullable=True)
    alt_phone = Column(String(64), nullable=True)
    doctor_name = Column(String(255), nullable=True)
    doctor_phone = Column(String(64), nullable=True)
    registration_date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    front_document = Column(Text, nullable=True)
    back_document = Column(Text, nullable=True)
    follow_up_due = Column(DateTime(timezone=True), nullable=True)
    follow_up_done = Column(Boolean, nullable=False, default=False)
    last_followed = Column(DateTime(timezone=True), nullable=True)
    hb = Column(Float, nullable=True)
    calcium_qty = Column(Integer, nullable=True)
    short_id = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    screenings = relationship("Screening", back_populates="beneficiary", cascade="all, delete-orphan")
    interventions = relationship("Intervention", back_populates="beneficiary", cascade="all, delete-orphan")

