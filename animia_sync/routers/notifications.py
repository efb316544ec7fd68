"""Device token registration — recipients for post-sync push notifications."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from animia_sync.database import get_db
from animia_sync.models.notification import NotificationToken
from animia_sync.schemas.notification import TokenRegister, TokenOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/tokens", response_model=TokenOut)
def register_token(payload: TokenRegister, db: Session = Depends(get_db)):
    """Register (or refresh) a device push token."""
    row = db.query(NotificationToken).filter(NotificationToken.token == payload.token).first()
    if row is None and payload.device_id:
        row = db.query(NotificationToken).filter(NotificationToken.device_id == payload.device_id).first()
    if row is None:
        row = NotificationToken(token=payload.token)
        db.add(row)

    row.token = payload.token
    for field in ("platform", "device_id", "model"):
        value = getattr(payload, field)
        if value is not None:
            setattr(row, field, value)
    row.is_registered = True
    db.commit()
    db.refresh(row)
    logger.info("Registered notification token for device %s", row.device_id or row.id)
    return row
