# worktrack/store/sql_store.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from worktrack.deadline import Deadline
from worktrack.models.project import ProjectModel
from worktrack.models.refresh_token import RefreshTokenModel
from worktrack.models.story import StoryModel
from worktrack.models.task import TaskModel
from worktrack.models.user import UserModel
from worktrack.schemas.entities import Project, RefreshToken, Story, Task, User
from worktrack.store.base import DocumentStore, E, StoreConflict, StoreError, TransientStoreError

logger = logging.getLogger("worktrack.store")

T = TypeVar("T")

MODELS = {
    User: UserModel,
    Project: ProjectModel,
    Story: StoryModel,
    Task: TaskModel,
    RefreshToken: RefreshTokenModel,
}


class SqlDocumentStore(DocumentStore):
    """DocumentStore over one SQLAlchemy session (one per request).

    Reads and deletes are idempotent and retried on OperationalError;
    add/update are written once.
    """

    def __init__(self, db: Session, retries: int = 3, backoff: float = 0.05):
        self.db = db
        self.retries = retries
        self.backoff = backoff

    @staticmethod
    def _model(kind: type):
        try:
            return MODELS[kind]
        except KeyError:
            raise StoreError(f"No table mapped for {kind.__name__}") from None

    def _retrying(self, operation: str, fn: Callable[[], T], deadline: Optional[Deadline]) -> T:
        for attempt in range(1, self.retries + 1):
            self._check(deadline, operation)
            try:
                return fn()
            except sa_exc.OperationalError as exc:
                self.db.rollback()
                if attempt == self.retries:
                    raise TransientStoreError(f"{operation} failed after {attempt} attempts") from exc
                logger.warning("store_retry", extra={"operation": operation, "attempt": attempt})
                time.sleep(self._backoff_for(attempt, deadline))
            except sa_exc.SQLAlchemyError as exc:
                self.db.rollback()
                raise StoreError(f"{operation} failed: {exc.__class__.__name__}") from exc
        raise AssertionError("unreachable")

    def _backoff_for(self, attempt: int, deadline: Optional[Deadline]) -> float:
        # never sleep past the deadline; the next _check reports it
        delay = self.backoff * attempt
        remaining = deadline.remaining() if deadline is not None else None
        return delay if remaining is None else min(delay, remaining)

    def _once(self, operation: str, fn: Callable[[], T], deadline: Optional[Deadline]) -> T:
        self._check(deadline, operation)
        try:
            return fn()
        except sa_exc.SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"{operation} failed: {exc.__class__.__name__}") from exc

    # -------------------------
    # Reads
    # -------------------------

    def get(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> Optional[E]:
        model = self._model(kind)

        def _get():
            row = self.db.get(model, entity_id)
            return kind.model_validate(row) if row is not None else None

        return self._retrying(f"get {kind.__name__}", _get, deadline)

    def list(self, kind: type[E], deadline: Optional[Deadline] = None, **filters: Any) -> list[E]:
        model = self._model(kind)

        def _list():
            rows = self.db.query(model).filter_by(**filters).order_by(model.id).all()
            return [kind.model_validate(row) for row in rows]

        return self._retrying(f"list {kind.__name__}", _list, deadline)

    # -------------------------
    # Writes
    # -------------------------

    def add(self, entity: E, deadline: Optional[Deadline] = None) -> E:
        kind = type(entity)
        model = self._model(kind)

        def _add():
            row = model(**entity.model_dump())
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return kind.model_validate(row)

        return self._once(f"add {kind.__name__}", _add, deadline)

    def update(
        self,
        kind: type[E],
        entity_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Optional[E]:
        model = self._model(kind)

        def _update():
            # single UPDATE ... WHERE id = ? AND <expected>, so the check and
            # the write cannot interleave with another writer
            query = self.db.query(model).filter(model.id == entity_id)
            for field, value in (expected or {}).items():
                query = query.filter(getattr(model, field) == value)
            count = query.update(dict(changes), synchronize_session=False)
            self.db.commit()
            return count

        count = self._once(f"update {kind.__name__}", _update, deadline)
        if count == 0:
            if self.get(kind, entity_id) is None:
                return None
            raise StoreConflict(f"{kind.__name__} {entity_id} changed concurrently")
        return self.get(kind, entity_id)

    def delete(self, kind: type[E], entity_id: str, deadline: Optional[Deadline] = None) -> bool:
        model = self._model(kind)

        def _delete():
            count = self.db.query(model).filter(model.id == entity_id).delete(synchronize_session=False)
            self.db.commit()
            return count > 0

        return self._retrying(f"delete {kind.__name__}", _delete, deadline)

    def delete_many(
        self, kind: type[E], entity_ids: Iterable[str], deadline: Optional[Deadline] = None
    ) -> list[str]:
        model = self._model(kind)
        ids = list(entity_ids)
        if not ids:
            return []

        def _delete_many():
            existing = [row[0] for row in self.db.query(model.id).filter(model.id.in_(ids))]
            self.db.query(model).filter(model.id.in_(existing)).delete(synchronize_session=False)
            self.db.commit()
            return existing

        return self._retrying(f"delete_many {kind.__name__}", _delete_many, deadline)
