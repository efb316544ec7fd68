"""Pydantic schemas for the offline sync wire protocol.

The payload of a sync envelope is a tagged union keyed by
``(op, entity)``: every supported pair maps to its own payload model in
``PAYLOAD_VARIANTS``.  The device validates against the same models at
enqueue time, so a malformed write is refused before it is queued.
"""
from __future__ import annotations
import enum
from datetime import date, datetime
from typing import Annotated, Any, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator


class SyncOperation(str, enum.Enum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper():
                    return member
        return None


class SyncEntity(str, enum.Enum):
    beneficiaries = "beneficiaries"
    interventions = "interventions"
    screenings = "screenings"

    @classmethod
    def _missing_(cls, value):
        # Accept the singular form ("beneficiary") used by screens.
        if isinstance(value, str):
            wanted = value.lower()
            for member in cls:
                if member.value in (wanted, wanted + "s", wanted.rstrip("y") + "ies"):
                    return member
        return None


class UnsupportedOperation(ValueError):
    """No apply routine exists for this (op, entity) pair."""


def _parse_datetime(value):
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return value


def _parse_date(value):
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return value


IsoDatetime = Annotated[Optional[datetime], BeforeValidator(_parse_datetime)]
IsoDate = Annotated[Optional[date], BeforeValidator(_parse_date)]


class BeneficiaryFields(BaseModel):
    """Every writable beneficiary column; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    id_number: Optional[str] = None
    aadhaar_hash: Optional[str] = None
    dob: Optional[str] = None
    category: Optional[str] = None
    alt_phone: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_phone: Optional[str] = None
    registration_date: IsoDatetime = None
    location: Optional[str] = None
    front_document: Optional[str] = None
    back_document: Optional[str] = None
    follow_up_due: IsoDatetime = None
    follow_up_done: Optional[bool] = None
    last_followed: IsoDatetime = None
    hb: Optional[float] = None
    calcium_qty: Optional[int] = None
    short_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value):
        if value is None or not value.strip():
            raise ValueError("name must not be empty")
        return value


class BeneficiaryCreatePayload(BeneficiaryFields):
    model_config = ConfigDict(extra="ignore")

    name: str


# Keys the device may carry on an update that are never written.
IGNORED_UPDATE_KEYS = frozenset({"id", "_pending"})


class BeneficiaryUpdatePayload(BaseModel):
    """``{id, updates: {...}}``; the flat form ``{id, field: value}`` is folded in."""

    id: int
    updates: BeneficiaryFields

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_fields(cls, data):
        if not isinstance(data, dict):
            return data
        if "updates" not in data:
            data = {"id": data.get("id"), "updates": {k: v for k, v in data.items() if k != "id"}}
        if isinstance(data.get("updates"), dict):
            updates = {k: v for k, v in data["updates"].items() if k not in IGNORED_UPDATE_KEYS}
            data = {**data, "updates": updates}
        return data

    def changes(self) -> dict[str, Any]:
        return self.updates.model_dump(exclude_unset=True)


class InterventionCreatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    beneficiary_id: int = Field(alias="beneficiaryId")
    doctor_name: Optional[str] = None
    ifa_yes: bool = False
    ifa_quantity: Optional[int] = None
    calcium_yes: bool = False
    calcium_quantity: Optional[int] = None
    deworm_yes: bool = False
    deworming_date: IsoDate = None
    therapeutic_yes: bool = False
    therapeutic_notes: Optional[str] = None
    referral_yes: bool = False
    referral_facility: Optional[str] = None


class ScreeningCreatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    beneficiary_id: int = Field(alias="beneficiaryId")
    doctor_name: Optional[str] = None
    hemoglobin: Optional[float] = None
    anemia_category: Optional[str] = None
    pallor: Optional[str] = None
    visit_type: Optional[str] = None
    severity: Optional[str] = None
    notes: Optional[str] = None


PAYLOAD_VARIANTS: dict[tuple[SyncOperation, SyncEntity], type[BaseModel]] = {
    (SyncOperation.create, SyncEntity.beneficiaries): BeneficiaryCreatePayload,
    (SyncOperation.update, SyncEntity.beneficiaries): BeneficiaryUpdatePayload,
    (SyncOperation.create, SyncEntity.interventions): InterventionCreatePayload,
    (SyncOperation.create, SyncEntity.screenings): ScreeningCreatePayload,
}


def parse_payload(op: SyncOperation, entity: SyncEntity, payload: dict[str, Any]) -> BaseModel:
    """Validate ``payload`` against the variant for ``(op, entity)``.

    Raises UnsupportedOperation for a pair with no apply routine and
    pydantic.ValidationError for a malformed payload.
    """
    variant = PAYLOAD_VARIANTS.get((op, entity))
    if variant is None:
        raise UnsupportedOperation(f"Unsupported sync operation: {op.value} {entity.value}")
    return variant.model_validate(payload)


class SyncEnvelope(BaseModel):
    op: SyncOperation
    entity: SyncEntity
    payload: dict[str, Any]
    timestamp: Optional[datetime] = None
    idempotency_key: Optional[str] = None


class SyncResponse(BaseModel):
    success: bool = True
    message: str
    duplicate: bool = False
    record_id: Optional[int] = None
