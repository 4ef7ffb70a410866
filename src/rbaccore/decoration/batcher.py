"""Batched permission queries against the permission backend.

One call answers "can invoke this entity at all?" for every entity, one
call answers "can invoke this operation?" for every (entity, operation).
Both calls are made even when a batch is empty. Results are indexed by
:class:`EntityId`; anything not answered is denied.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import BackendUnavailable, MalformedIdentifier
from .backends import PermissionBackend
from .naming import EntityId

logger = logging.getLogger(__name__)


class PermissionRow(BaseModel):
    """One row of a permission backend response."""

    model_config = ConfigDict(populate_by_name=True)

    entity: str = Field(alias="ObjectName")
    operation: Optional[str] = Field(default=None, alias="Method")
    can_invoke: Optional[bool] = Field(default=None, alias="CanInvoke")

    @property
    def allowed(self) -> bool:
        # Absent flag means deny
        return bool(self.can_invoke)


class PermissionBatcher:
    """Adapter issuing whole-entity and per-operation batches.

    Args:
        backend: Permission backend to query.
    """

    def __init__(self, backend: Optional[PermissionBackend]) -> None:
        self._backend = backend

    def _query(self, query: Mapping[EntityId, Sequence[str]]) -> list[PermissionRow]:
        if self._backend is None:
            raise BackendUnavailable("No permission backend configured")
        try:
            raw_rows = list(self._backend.can_invoke({str(e): list(ops) for e, ops in query.items()}))
        except Exception as e:
            raise BackendUnavailable(f"Permission backend call failed: {e}", entities=len(query)) from e
        return [row if isinstance(row, PermissionRow) else PermissionRow.model_validate(row) for row in raw_rows]

    def _entity_of(self, row: PermissionRow) -> EntityId | None:
        try:
            return EntityId.parse(row.entity)
        except MalformedIdentifier:
            logger.debug("Ignoring permission row for unparsable entity %r", row.entity)
            return None

    def check_entities(self, query: Mapping[EntityId, Sequence[str]]) -> dict[EntityId, bool]:
        """Whole-entity checks; ``query`` values are normally empty lists."""
        results = dict.fromkeys(query, False)
        for row in self._query(query):
            entity = self._entity_of(row)
            if entity in results:
                results[entity] = row.allowed
        return results

    def check_operations(self, query: Mapping[EntityId, Sequence[str]]) -> dict[tuple[EntityId, str], bool]:
        """Per-operation checks for the listed signatures of each entity."""
        results = {(entity, signature): False for entity, signatures in query.items() for signature in signatures}
        for row in self._query(query):
            entity = self._entity_of(row)
            key = (entity, row.operation)
            if key in results:
                results[key] = row.allowed
            else:
                logger.debug("Ignoring unrequested permission row %s %s", row.entity, row.operation)
        return results


__all__ = [
    "PermissionBatcher",
    "PermissionRow",
]
