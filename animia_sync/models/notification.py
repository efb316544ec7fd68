"""Notification ORM models — device tokens and the sent-notification log."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from animia_sync.database import Base


class NotificationToken(Base):
    __tablename__ = "notification_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(512), nullable=False, unique=True)
    platform = Column(String(32), nullable=True)
    device_id = Column(String(191), nullable=True, unique=True)
    model = Column(String(128), nullable=True)
    is_registered = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class NotificationLog(Base):
    __tablename__ = "notifications_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=True)
    body = Column(Text, nullable=True)
    data = Column(Text, nullable=True)  # JSON-encoded
    device_id = Column(String(191), nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
