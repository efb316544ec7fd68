"""Post-sync side channel — push notification, notification log, SMS.

Runs after the apply transaction has committed (as a FastAPI background
task).  Nothing in here may fail the sync response: every failure is
logged and swallowed.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import pytz
from sqlalchemy.orm import Session

from animia_sync.config import settings
from animia_sync.models.notification import NotificationLog, NotificationToken
from animia_sync.services.sms_service import LoggingSmsSender, send_beneficiary_sms

logger = logging.getLogger(__name__)


class LoggingPushSender:
    """Push sender used when no provider is configured."""

    def send(self, tokens: list[str], title: str, body: str, data: dict[str, Any]) -> None:
        logger.info("Push '%s' to %d device(s): %s", title, len(tokens), body)


def _local_time(timestamp: Optional[datetime]) -> Optional[str]:
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    local = timestamp.astimezone(pytz.timezone(settings.LOCAL_TIMEZONE))
    return local.strftime("%d %b %Y %H:%M")


def build_notification(kind: str, data: dict[str, Any], timestamp: Optional[datetime] = None) -> tuple[str, str, dict[str, Any]]:
    """Return (title, body, data) for a synced record of the given kind."""
    name = data.get("name") or ""
    beneficiary = {k: data.get(k) for k in ("name", "phone", "short_id")}

    if kind == "registration":
        title = "Registration Synced"
        body = f"Beneficiary {name} registration synced successfully."
        beneficiary.update(id=data.get("id"), doctor_name=data.get("doctor_name"), doctor_phone=data.get("doctor_phone"))
        payload = {"type": "registration_synced", "id": str(data.get("id")), "beneficiary": beneficiary}
    elif kind == "update":
        title = "Beneficiary Updated"
        body = f"Beneficiary {name} updated successfully."
        beneficiary.update(id=data.get("id"), doctor_name=data.get("doctor_name"), doctor_phone=data.get("doctor_phone"))
        payload = {"type": "beneficiary_updated_synced", "id": str(data.get("id")), "beneficiary": beneficiary}
    elif kind == "intervention":
        title = "Intervention Synced"
        body = f"Intervention for {name} synced successfully."
        payload = {
            "type": "intervention_synced",
            "id": str(data.get("id")),
            "beneficiaryId": data.get("beneficiary_id"),
            "beneficiary": beneficiary,
        }
    elif kind == "screening":
        title = "Screening Synced"
        body = f"Screening for {name} synced successfully."
        payload = {
            "type": "screening_synced",
            "id": str(data.get("id")),
            "beneficiaryId": data.get("beneficiary_id"),
            "beneficiary": beneficiary,
            "screening": {"hemoglobin": data.get("hemoglobin"), "severity": data.get("severity")},
        }
    else:
        title = "Data Synced"
        body = "Offline data synced successfully."
        payload = {"type": "data_synced"}

    recorded = _local_time(timestamp)
    if recorded:
        body = f"{body} Recorded {recorded}."
    return title, body, payload


def _sms_extra(kind: str, data: dict[str, Any]) -> dict[str, Any]:
    if kind == "registration":
        return {k: data.get(k) for k in ("short_id", "doctor_name", "doctor_phone")}
    if kind == "screening":
        return {k: data.get(k) for k in ("short_id", "hemoglobin", "severity")}
    return {"short_id": data.get("short_id")}


class SyncNotifier:
    """Sends the notifications that follow a successfully applied sync."""

    def __init__(self, session_factory: Callable[[], Session], push_sender=None, sms_sender=None):
        self._session_factory = session_factory
        self.push_sender = push_sender or LoggingPushSender()
        self.sms_sender = sms_sender or LoggingSmsSender()

    def notify(self, kind: str, data: dict[str, Any], timestamp: Optional[datetime] = None) -> None:
        """Push, log and SMS for one synced record; never raises."""
        try:
            title, body, payload = build_notification(kind, data, timestamp)
        except Exception:
            logger.exception("Could not build %s notification", kind)
            return

        try:
            db = self._session_factory()
        except Exception as exc:
            logger.warning("No database session for %s notification: %s", kind, exc)
        else:
            try:
                self._push(db, title, body, payload)
                self._log(db, title, body, payload)
            finally:
                db.close()

        try:
            send_beneficiary_sms(self.sms_sender, data.get("phone"), data.get("name"), kind, _sms_extra(kind, data))
        except Exception as exc:
            logger.warning("SMS failed for %s notification: %s", kind, exc)

    def _push(self, db: Session, title: str, body: str, payload: dict[str, Any]) -> None:
        try:
            tokens = [row.token for row in db.query(NotificationToken.token).all()]
            if tokens:
                self.push_sender.send(tokens, title, body, payload)
        except Exception as exc:
            logger.warning("Push notification '%s' failed: %s", title, exc)

    def _log(self, db: Session, title: str, body: str, payload: dict[str, Any]) -> None:
        try:
            db.add(NotificationLog(title=title, body=body, data=json.dumps(payload, default=str)))
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.warning("Failed to log notification '%s': %s", title, exc)


def get_notifier() -> SyncNotifier:
    """FastAPI dependency — notifier bound to the application database."""
    from animia_sync.database import SessionLocal

    return SyncNotifier(SessionLocal)
