"""Mutation — one write made on the device, waiting to reach the server."""
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from animia_sync.schemas.sync import SyncEntity, SyncOperation


@dataclass(frozen=True)
class Mutation:
    id: str
    operation: SyncOperation
    entity: SyncEntity
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""

    @classmethod
    def create(cls, operation: SyncOperation, entity: SyncEntity, payload: dict[str, Any]) -> Mutation:
        return cls(
            id=uuid.uuid4().hex,
            operation=operation,
            entity=entity,
            payload=copy.deepcopy(payload),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation.value,
            "entity": self.entity.value,
            "payload": self.payload,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Mutation:
        return cls(
            id=str(raw["id"]),
            operation=SyncOperation(raw["operation"]),
            entity=SyncEntity(raw["entity"]),
            payload=raw.get("payload") or {},
            timestamp=raw.get("timestamp", ""),
        )

    def envelope(self) -> dict[str, Any]:
        """Wire form POSTed to the sync endpoint; the id doubles as idempotency key."""
        return {
            "op": self.operation.value,
            "entity": self.entity.value,
            "payload": self.payload,
            "timestamp": self.timestamp,
            "idempotency_key": self.id,
        }
