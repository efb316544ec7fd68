"""Screening ORM model — one haemoglobin check of a beneficiary."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from animia_sync.database import Base


class Screening(Base):
    __tablename__ = "screenings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    beneficiary_id = Column(Integer, ForeignKey("beneficiaries.id"), nullable=False, index=True)
    doctor_name = Column(String(255), nullable=True)
    hemoglobin = Column(Float, nullable=True)
    anemia_category = Column(String(64), nullable=True)
    pallor = Column(String(32), nullable=True)
    visit_type = Column(String(64), nullable=True)
    severity = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    beneficiary = relationship("Beneficiary", back_populates="screenings")
