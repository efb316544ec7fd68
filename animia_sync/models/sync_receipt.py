"""SyncReceipt ORM model — ledger of applied sync envelopes.

One row per envelope the apply handler committed.  The unique
``idempotency_key`` (the client's mutation id) is what lets a retried
delivery be recognised instead of inserting a duplicate row.
"""
import uuid
from sqlalchemy import Column, String, DateTime, Integer, Enum as SAEnum
from sqlalchemy.sql import func
from animia_sync.database import Base
from animia_sync.schemas.sync import SyncEntity, SyncOperation


class SyncReceipt(Base):
    __tablename__ = "sync_receipts"

    receipt_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    idempotency_key = Column(String(255), nullable=True, unique=True)
    operation = Column(SAEnum(SyncOperation), nullable=False)
    entity = Column(SAEnum(SyncEntity), nullable=False)
    record_id = Column(Integer, nullable=True)
    client_timestamp = Column(DateTime(timezone=True), nullable=True)
    applied_at = Column(DateTime(timezone=True), server_default=func.now())
