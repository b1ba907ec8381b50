"""
core.domain.store — Entity store contract and its backends.

Every service that reads or writes Users, Complaints, Notifications or
status-log rows goes through an ``EntityStore``.  Services never hold
private copies of entities between calls; they fetch, mutate, and
``put`` back inside the store's ``atomic()`` block.

Backends
--------
``DjangoEntityStore``     Default.  Plain ORM calls, ``transaction.atomic``
                          and ``select_for_update`` for locked reads.
``InMemoryEntityStore``   Transient, process-local.  Copy-in/copy-out so
                          callers can never mutate stored state without a
                          ``put``; snapshot rollback for ``atomic()``.

The active backend is selected by the ``CIVIC_ENTITY_STORE`` setting
(dotted path) and resolved once by ``get_entity_store()``.  Tests inject
an ``InMemoryEntityStore`` directly into the services instead.

Query criteria
--------------
``find_by`` accepts exact-match keyword criteria.  Foreign keys must be
addressed by their column attribute (``user_id``, ``recipient_id``), never
by instance, so that both backends evaluate them the same way.

Usage::

    from core.domain.store import get_entity_store

    store = get_entity_store()
    with store.atomic():
        complaint = store.get_for_update(Complaint, 12)
        complaint.remarks = "Crew dispatched."
        store.put(complaint)
"""

from __future__ import annotations

import copy
import functools
import logging
import threading
from contextlib import contextmanager
from typing import Any, ContextManager, Iterable, Iterator, Protocol, TypeVar

from django.conf import settings
from django.db import IntegrityError, InterfaceError, OperationalError, models, transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from core.domain.exceptions import Conflict, StoreIntegrityError, TransientIOError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)

DEFAULT_ENTITY_STORE = "core.domain.store.DjangoEntityStore"


class EntityStore(Protocol):
    """Structural contract shared by every store backend."""

    def put(self, entity: M) -> M:
        """Insert (assigning id and timestamps) or overwrite ``entity``."""
        ...

    def get_by_id(self, model: type[M], pk: Any) -> M | None:
        ...

    def get_for_update(self, model: type[M], pk: Any) -> M | None:
        """Like ``get_by_id`` but row-locked; call inside ``atomic()``."""
        ...

    def find_by(
        self,
        model: type[M],
        *,
        order_by: Iterable[str] = (),
        **criteria: Any,
    ) -> list[M]:
        ...

    def atomic(self) -> ContextManager[None]:
        ...


# ════════════════════════════════════════════════════════════════════
#  Django ORM backend
# ════════════════════════════════════════════════════════════════════


@contextmanager
def _translate_db_errors() -> Iterator[None]:
    """
    Re-raise connection-level database failures as ``TransientIOError``
    and constraint violations (e.g. a duplicate unique value) as
    ``Conflict``.
    """
    try:
        yield
    except IntegrityError as exc:
        logger.info("Write rejected by a database constraint: %s", exc)
        raise Conflict(f"The write conflicts with existing data: {exc}") from exc
    except (OperationalError, InterfaceError) as exc:
        logger.warning("Database unavailable: %s", exc)
        raise TransientIOError(f"The data store is temporarily unavailable: {exc}") from exc


class DjangoEntityStore:
    """``EntityStore`` backed by the configured Django database."""

    def put(self, entity: M) -> M:
        with _translate_db_errors():
            entity.save()
        return entity

    def get_by_id(self, model: type[M], pk: Any) -> M | None:
        with _translate_db_errors():
            return model._default_manager.filter(pk=pk).first()

    def get_for_update(self, model: type[M], pk: Any) -> M | None:
        with _translate_db_errors():
            return (
                model._default_manager
                .select_for_update()
                .filter(pk=pk)
                .first()
            )

    def find_by(
        self,
        model: type[M],
        *,
        order_by: Iterable[str] = (),
        **criteria: Any,
    ) -> list[M]:
        qs = model._default_manager.filter(**criteria)
        order_by = tuple(order_by)
        if order_by:
            qs = qs.order_by(*order_by)
        with _translate_db_errors():
            return list(qs)

    def atomic(self) -> ContextManager[None]:
        return transaction.atomic()


# ════════════════════════════════════════════════════════════════════
#  In-memory backend
# ════════════════════════════════════════════════════════════════════


class InMemoryEntityStore:
    """
    Process-local ``EntityStore``.

    * Ids are generated from a per-model sequence starting at 1.  A
      generated id that is already occupied raises ``StoreIntegrityError``.
    * ``auto_now`` / ``auto_now_add`` fields are stamped on ``put`` the
      way ``Model.save()`` would.
    * Every read returns a deep copy; every write stores a deep copy.
    * All operations hold one re-entrant lock, so a write is visible to
      any read that starts after it returns.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, dict[Any, models.Model]] = {}
        self._sequences: dict[str, int] = {}

    @staticmethod
    def _label(model: type[models.Model]) -> str:
        return model._meta.concrete_model._meta.label

    def _table(self, model: type[models.Model]) -> dict[Any, models.Model]:
        return self._tables.setdefault(self._label(model), {})

    def _next_id(self, model: type[models.Model]) -> int:
        label = self._label(model)
        value = self._sequences.get(label, 0) + 1
        self._sequences[label] = value
        if value in self._table(model):
            raise StoreIntegrityError(
                f"Generated id {value} for {label} is already taken."
            )
        return value

    @staticmethod
    def _stamp(entity: models.Model, *, adding: bool) -> None:
        now = timezone.now()
        for field in entity._meta.concrete_fields:
            if getattr(field, "auto_now", False):
                setattr(entity, field.attname, now)
            elif (
                getattr(field, "auto_now_add", False)
                and adding
                and getattr(entity, field.attname) is None
            ):
                setattr(entity, field.attname, now)

    def put(self, entity: M) -> M:
        with self._lock:
            model = type(entity)
            adding = entity.pk is None
            if adding:
                entity.pk = self._next_id(model)
            self._stamp(entity, adding=adding)
            entity._state.adding = False
            self._table(model)[entity.pk] = copy.deepcopy(entity)
        return entity

    def get_by_id(self, model: type[M], pk: Any) -> M | None:
        with self._lock:
            found = self._table(model).get(pk)
            return copy.deepcopy(found) if found is not None else None

    def get_for_update(self, model: type[M], pk: Any) -> M | None:
        return self.get_by_id(model, pk)

    def find_by(
        self,
        model: type[M],
        *,
        order_by: Iterable[str] = (),
        **criteria: Any,
    ) -> list[M]:
        with self._lock:
            rows = [
                row
                for _, row in sorted(self._table(model).items())
                if all(getattr(row, key) == value for key, value in criteria.items())
            ]
            rows = [copy.deepcopy(row) for row in rows]

        ordering = tuple(order_by) or tuple(model._meta.ordering)
        # Apply keys last-to-first; list.sort is stable.
        for key in reversed(ordering):
            descending = key.startswith("-")
            name = key.lstrip("-")
            rows.sort(key=lambda row: getattr(row, name), reverse=descending)
        return rows

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            tables = {label: dict(table) for label, table in self._tables.items()}
            sequences = dict(self._sequences)
            try:
                yield
            except BaseException:
                self._tables = tables
                self._sequences = sequences
                raise

    def clear(self) -> None:
        """Drop every stored entity (test helper)."""
        with self._lock:
            self._tables.clear()
            self._sequences.clear()


@functools.lru_cache(maxsize=None)
def get_entity_store() -> EntityStore:
    """Return the process-wide store configured by ``CIVIC_ENTITY_STORE``."""
    path = getattr(settings, "CIVIC_ENTITY_STORE", DEFAULT_ENTITY_STORE)
    store = import_string(path)()
    logger.info("Entity store backend: %s", path)
    return store
