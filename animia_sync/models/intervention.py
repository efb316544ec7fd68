"""Intervention ORM model — IFA / calcium / deworming / referral given to a beneficiary."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from animia_sync.database import Base


class Intervention(Base):
    __tablename__ = "interventions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    beneficiary_id = Column(Integer, ForeignKey("beneficiaries.id"), nullable=False, index=True)
    doctor_name = Column(String(255), nullable=True)
    ifa_yes = Column(Boolean, nullable=False, default=False)
    ifa_quantity = Column(Integer, nullable=True)
    calcium_yes = Column(Boolean, nullable=False, default=False)
    calcium_quantity = Column(Integer, nullable=True)
    deworm_yes = Column(Boolean, nullable=False, default=False)
    deworming_date = Column(Date, nullable=True)
    therapeutic_yes = Column(Boolean, nullable=False, default=False)
    therapeutic_notes = Column(Text, nullable=True)
    referral_yes = Column(Boolean, nullable=False, default=False)
    referral_facility = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    beneficiary = relationship("Beneficiary", back_populates="interventions")
