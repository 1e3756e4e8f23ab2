# tender_system/services/versioning.py
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Mapping

from tender_system.core.errors import BadRequest, InvalidVersion
from tender_system.db.gateway import (
    Entity,
    EntityKind,
    Snapshot,
    PersistenceGateway,
    kind_of,
    mutable_fields,
)

logger = logging.getLogger(__name__)


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class VersionManager:
    """
    Append-then-advance protocol shared by every tender/bid mutation:

    1. snapshot the current state under the current version
    2. write the new field values and bump the version by exactly one
       (compare-and-increment against the version read in step 1)

    Both steps run inside the caller's transaction, so they are never
    observable half-applied.
    """

    def __init__(self, gw: PersistenceGateway):
        self.gw = gw

    def apply_mutation(self, entity: Entity, new_fields: Mapping[str, Any]) -> Entity:
        """
        Patch semantics: fields passed as None keep their current value.
        """
        kind = kind_of(entity)
        changes = {k: _column_value(v) for k, v in new_fields.items() if v is not None}
        if not changes:
            raise BadRequest("Nothing to update")

        unknown = set(changes) - set(mutable_fields(kind))
        if unknown:
            raise BadRequest(f"Fields not editable on {kind.value}: {sorted(unknown)}")

        return self._advance(entity, changes)

    def rollback(self, entity: Entity, target_version: int) -> Entity:
        """
        Restores the fields recorded at `target_version` as a NEW version.
        Rolling back to the current version is a no-op.
        """
        kind = kind_of(entity)
        current = entity.version

        if target_version < 1 or target_version > current:
            raise InvalidVersion(
                f"Version must be between 1 and {current}, got {target_version}"
            )
        if target_version == current:
            return entity

        snapshot = self.gw.get_history_snapshot(kind, entity.id, target_version)
        restored = self.gw.snapshot_fields(kind, snapshot)

        logger.info(
            "[versioning] rollback %s=%s from v%d to snapshot v%d",
            kind.value,
            entity.id,
            current,
            target_version,
        )
        return self._advance(entity, restored)

    def history(self, kind: EntityKind, entity_id: uuid.UUID) -> List[Snapshot]:
        return self.gw.list_history(kind, entity_id)

    def _advance(self, entity: Entity, changes: Dict[str, Any]) -> Entity:
        kind = kind_of(entity)
        current = entity.version

        self.gw.append_history_snapshot(kind, entity.id, current, self.gw.current_fields(entity))
        new_version = self.gw.update_entity_fields(
            kind, entity.id, changes, expected_version=current
        )
        self.gw.refresh(entity)

        logger.info(
            "[versioning] %s=%s v%d -> v%d fields=%s",
            kind.value,
            entity.id,
            current,
            new_version,
            sorted(changes),
        )
        return entity
