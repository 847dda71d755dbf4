# worktrack/store/base.py
"""Abstract document store the engine is written against.

Documents are typed entities keyed by id. Filters are plain field
equality. `update` is a patch: only the given fields are written, and
only if the stored document still matches `expected`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, TypeVar

from worktrack.deadline import Deadline
from worktrack.schemas.entities import Entity

E = TypeVar("E", bound=Entity)


class StoreError(Exception):
    pass


class StoreConflict(StoreError):
    """The stored document no longer matches the expected field values."""


class TransientStoreError(StoreError):
    pass


class DocumentStore(ABC):
    @abstractmethod
    def get(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> Optional[E]:
        ...

    @abstractmethod
    def list(self, kind: type[E], deadline: Optional[Deadline] = None, **filters: Any) -> list[E]:
        ...

    @abstractmethod
    def add(self, entity: E, deadline: Optional[Deadline] = None) -> E:
        ...

    @abstractmethod
    def update(
        self,
        kind: type[E],
        entity_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Optional[E]:
        """Apply `changes`; None if the document is gone, StoreConflict on mismatch."""

    @abstractmethod
    def delete(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> bool:
        ...

    @abstractmethod
    def delete_many(
        self, kind: type[E], entity_ids: Iterable[str], deadline: Optional[Deadline] = None
    ) -> list[str]:
        """Remove a batch in one step and return the ids that existed."""

    @staticmethod
    def _check(deadline: Optional[Deadline], operation: str) -> None:
        if deadline is not None:
            deadline.check(operation)
