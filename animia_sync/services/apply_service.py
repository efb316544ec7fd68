"""Remote apply handler — turns one sync envelope into a database write.

Responsibilities:
- Dispatch on (op, entity) to one apply routine
- Payload validation against the matching variant (422 on failure)
- Idempotency: a replayed envelope carrying an already-seen
  idempotency_key is acknowledged without being applied again
- Receipt ledger (SyncReceipts) written in the same transaction as the apply
- Hand back what the notification side channel needs, without sending it
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from animia_sync.models.beneficiary import Beneficiary
from animia_sync.models.intervention import Intervention
from animia_sync.models.screening import Screening
from animia_sync.models.sync_receipt import SyncReceipt
from animia_sync.schemas.sync import (
    BeneficiaryCreatePayload,
    BeneficiaryUpdatePayload,
    InterventionCreatePayload,
    ScreeningCreatePayload,
    SyncEntity,
    SyncEnvelope,
    SyncOperation,
    UnsupportedOperation,
    parse_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class ApplyOutcome:
    """Result of applying one envelope."""

    message: str
    record_id: Optional[int] = None
    duplicate: bool = False
    notification_kind: Optional[str] = None
    notification_data: Optional[dict[str, Any]] = None


def _get_beneficiary(db: Session, beneficiary_id: int) -> Beneficiary:
    beneficiary = db.get(Beneficiary, beneficiary_id)
    if beneficiary is None:
        raise HTTPException(status_code=404, detail=f"Beneficiary {beneficiary_id} not found")
    return beneficiary


def _contact(beneficiary: Beneficiary) -> dict[str, Any]:
    return {
        "id": beneficiary.id,
        "name": beneficiary.name,
        "phone": beneficiary.phone,
        "short_id": beneficiary.short_id,
        "doctor_name": beneficiary.doctor_name,
        "doctor_phone": beneficiary.doctor_phone,
    }


def _insert_beneficiary(db: Session, payload: BeneficiaryCreatePayload) -> ApplyOutcome:
    beneficiary = Beneficiary(**payload.model_dump(exclude_none=True))
    db.add(beneficiary)
    db.flush()
    logger.info("Created beneficiary %s (%s)", beneficiary.id, beneficiary.name)
    return ApplyOutcome(
        message="Beneficiary created",
        record_id=beneficiary.id,
        notification_kind="registration",
        notification_data=_contact(beneficiary),
    )


def _insert_intervention(db: Session, payload: InterventionCreatePayload) -> ApplyOutcome:
    beneficiary = _get_beneficiary(db, payload.beneficiary_id)
    intervention = Intervention(**payload.model_dump(exclude_none=True))
    db.add(intervention)
    db.flush()
    logger.info("Created intervention %s for beneficiary %s", intervention.id, beneficiary.id)
    data = _contact(beneficiary)
    data.update(id=intervention.id, beneficiary_id=beneficiary.id, doctor_name=payload.doctor_name)
    return ApplyOutcome(
        message="Intervention created",
        record_id=intervention.id,
        notification_kind="intervention",
        notification_data=data,
    )


def _insert_screening(db: Session, payload: ScreeningCreatePayload) -> ApplyOutcome:
    beneficiary = _get_beneficiary(db, payload.beneficiary_id)
    screening = Screening(**payload.model_dump(exclude_none=True))
    db.add(screening)
    db.flush()
    logger.info("Created screening %s for beneficiary %s", screening.id, beneficiary.id)
    data = _contact(beneficiary)
    data.update(
        id=screening.id,
        beneficiary_id=beneficiary.id,
        doctor_name=payload.doctor_name,
        hemoglobin=payload.hemoglobin,
        severity=payload.severity,
    )
    return ApplyOutcome(
        message="Screening created",
        record_id=screening.id,
        notification_kind="screening",
        notification_data=data,
    )


def _update_beneficiary(db: Session, payload: BeneficiaryUpdatePayload) -> ApplyOutcome:
    beneficiary = _get_beneficiary(db, payload.id)
    columns = Beneficiary.__table__.c

    applied = []
    for field, value in payload.changes().items():
        if value is None and not columns[field].nullable:
            continue
        setattr(beneficiary, field, value)
        applied.append(field)

    if not applied:
        logger.info("Update for beneficiary %s carried no writable fields", beneficiary.id)
        return ApplyOutcome(message="Nothing to update", record_id=beneficiary.id)

    db.flush()
    logger.info("Updated beneficiary %s fields %s", beneficiary.id, ", ".join(applied))
    return ApplyOutcome(
        message="Beneficiary updated",
        record_id=beneficiary.id,
        notification_kind="update",
        notification_data=_contact(beneficiary),
    )


_APPLY_ROUTINES: dict[tuple[SyncOperation, SyncEntity], Callable[[Session, Any], ApplyOutcome]] = {
    (SyncOperation.create, SyncEntity.beneficiaries): _insert_beneficiary,
    (SyncOperation.update, SyncEntity.beneficiaries): _update_beneficiary,
    (SyncOperation.create, SyncEntity.interventions): _insert_intervention,
    (SyncOperation.create, SyncEntity.screenings): _insert_screening,
}


def _validate(envelope: SyncEnvelope) -> BaseModel:
    try:
        return parse_payload(envelope.op, envelope.entity, envelope.payload)
    except UnsupportedOperation as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )


def _find_receipt(db: Session, idempotency_key: Optional[str]) -> Optional[SyncReceipt]:
    if not idempotency_key:
        return None
    return db.query(SyncReceipt).filter(SyncReceipt.idempotency_key == idempotency_key).first()


def _duplicate(receipt: SyncReceipt) -> ApplyOutcome:
    logger.info("Envelope %s already applied; acknowledging without re-applying", receipt.idempotency_key)
    return ApplyOutcome(message="Already applied", record_id=receipt.record_id, duplicate=True)


def apply_envelope(db: Session, envelope: SyncEnvelope) -> ApplyOutcome:
    """Apply one sync envelope and commit it together with its receipt."""
    payload = _validate(envelope)

    receipt = _find_receipt(db, envelope.idempotency_key)
    if receipt is not None:
        return _duplicate(receipt)

    routine = _APPLY_ROUTINES[(envelope.op, envelope.entity)]
    try:
        outcome = routine(db, payload)
        db.add(SyncReceipt(
            idempotency_key=envelope.idempotency_key,
            operation=envelope.op,
            entity=envelope.entity,
            record_id=outcome.record_id,
            client_timestamp=envelope.timestamp,
        ))
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        # A concurrent delivery of the same envelope won the unique-key race.
        receipt = _find_receipt(db, envelope.idempotency_key)
        if receipt is not None:
            return _duplicate(receipt)
        logger.warning("Integrity error applying %s %s: %s", envelope.op.value, envelope.entity.value, exc.orig)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Record conflicts with existing data")
    except Exception:
        db.rollback()
        raise

    return outcome
