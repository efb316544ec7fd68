"""Beneficiary SMS — message templates, phone normalisation and senders.

The program has no SMS gateway contract yet, so the default sender only
logs what would be sent.  A gateway-backed sender needs a ``send`` method
with the same signature.
"""
import logging
import re
from typing import Any, Optional

from animia_sync.config import settings

logger = logging.getLogger(__name__)

PROGRAM_NAME = "Animia"


def format_phone_number(phone: str, country_code: Optional[str] = None) -> str:
    """Normalise a phone number to E.164, assuming the program's country code."""
    if not phone:
        return ""
    country_code = country_code or settings.SMS_DEFAULT_COUNTRY_CODE
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"+{country_code}{digits}"
    return f"+{digits}"


def build_sms_message(kind: str, name: str, extra: Optional[dict[str, Any]] = None) -> str:
    extra = extra or {}
    if kind == "registration":
        doctor_name = extra.get("doctor_name") or "Dr. Health"
        doctor_phone = extra.get("doctor_phone") or "Contact us for details"
        return (
            f"Hello {name}, your registration with {PROGRAM_NAME} is successful. "
            f"Your ID: {extra.get('short_id') or 'N/A'}. Doctor: {doctor_name}, Contact: {doctor_phone}. "
            "Thank you for joining our health program."
        )
    if kind == "update":
        return f"Hello {name}, your profile has been updated in {PROGRAM_NAME}. Please contact us if you have any questions."
    if kind == "follow_up":
        return f"Hello {name}, this is a reminder for your follow-up appointment. Please contact us to schedule."
    if kind == "screening":
        return f"Hello {name}, your screening results are ready. Please contact us for details."
    if kind == "intervention":
        return f"Hello {name}, your intervention plan has been updated. Please follow the prescribed guidelines."
    return f"Hello {name}, this is an update from {PROGRAM_NAME} health program."


class LoggingSmsSender:
    """Records outgoing SMS in the application log instead of a gateway."""

    def send(self, phone: str, message: str) -> None:
        logger.info("SMS to %s: %s", phone, message)


def send_beneficiary_sms(sender, phone: str, name: str, kind: str, extra: Optional[dict[str, Any]] = None) -> bool:
    """Send the templated SMS for ``kind``. Returns False when there is no recipient."""
    if not phone or not name:
        logger.info("Skipping %s SMS: missing phone number or name", kind)
        return False
    sender.send(format_phone_number(phone), build_sms_message(kind, name, extra))
    return True
