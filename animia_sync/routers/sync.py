"""Sync API route — applies one offline mutation envelope per request."""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from animia_sync.database import get_db
from animia_sync.schemas.sync import SyncEnvelope, SyncResponse
from animia_sync.services import apply_service
from animia_sync.services.notification_service import SyncNotifier, get_notifier

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=SyncResponse)
@router.post("/", response_model=SyncResponse, include_in_schema=False)
def sync_mutation(
    envelope: SyncEnvelope,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: SyncNotifier = Depends(get_notifier),
):
    """Apply a queued device mutation, then notify in the background."""
    logger.info(
        "Received sync %s %s (key=%s, timestamp=%s)",
        envelope.op.value, envelope.entity.value, envelope.idempotency_key, envelope.timestamp,
    )
    outcome = apply_service.apply_envelope(db, envelope)

    if outcome.notification_kind:
        background_tasks.add_task(
            notifier.notify, outcome.notification_kind, outcome.notification_data, envelope.timestamp,
        )

    return SyncResponse(
        success=True,
        message=outcome.message,
        duplicate=outcome.duplicate,
        record_id=outcome.record_id,
    )
