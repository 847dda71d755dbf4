# worktrack/store/memory_store.py
from __future__ import annotations

import threading
from typing import Any, Iterable, Mapping, Optional

from worktrack.deadline import Deadline
from worktrack.schemas.entities import Entity
from worktrack.store.base import DocumentStore, E, StoreConflict, StoreError


class MemoryDocumentStore(DocumentStore):
    """In-process store; every read returns a copy."""

    def __init__(self):
        self._docs: dict[type, dict[str, Entity]] = {}
        self._lock = threading.RLock()

    def _bucket(self, kind: type) -> dict[str, Entity]:
        return self._docs.setdefault(kind, {})

    def get(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> Optional[E]:
        self._check(deadline, f"get {kind.__name__}")
        with self._lock:
            doc = self._bucket(kind).get(entity_id)
            return doc.model_copy(deep=True) if doc is not None else None

    def list(self, kind: type[E], deadline: Optional[Deadline] = None, **filters: Any) -> list[E]:
        self._check(deadline, f"list {kind.__name__}")
        with self._lock:
            return [
                doc.model_copy(deep=True)
                for doc in self._bucket(kind).values()
                if all(getattr(doc, field) == value for field, value in filters.items())
            ]

    def add(self, entity: E, deadline: Optional[Deadline] = None) -> E:
        self._check(deadline, f"add {type(entity).__name__}")
        with self._lock:
            bucket = self._bucket(type(entity))
            if entity.id in bucket:
                raise StoreError(f"{type(entity).__name__} {entity.id} already exists")
            bucket[entity.id] = entity.model_copy(deep=True)
            return entity.model_copy(deep=True)

    def update(
        self,
        kind: type[E],
        entity_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Optional[E]:
        self._check(deadline, f"update {kind.__name__}")
        with self._lock:
            bucket = self._bucket(kind)
            current = bucket.get(entity_id)
            if current is None:
                return None
            for field, value in (expected or {}).items():
                if getattr(current, field) != value:
                    raise StoreConflict(
                        f"{kind.__name__} {entity_id}: {field} is {getattr(current, field)!r}, expected {value!r}"
                    )
            updated = kind.model_validate({**current.model_dump(), **changes})
            bucket[entity_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> bool:
        self._check(deadline, f"delete {kind.__name__}")
        with self._lock:
            return self._bucket(kind).pop(entity_id, None) is not None

    def delete_many(
        self, kind: type[E], entity_ids: Iterable[str], deadline: Optional[Deadline] = None
    ) -> list[str]:
        self._check(deadline, f"delete_many {kind.__name__}")
        with self._lock:
            bucket = self._bucket(kind)
            return [entity_id for entity_id in list(entity_ids) if bucket.pop(entity_id, None) is not None]
