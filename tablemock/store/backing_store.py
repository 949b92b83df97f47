from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from ..config import StoreConfig
from ..errors import (
    DbUpdateConcurrencyError,
    DbUpdateError,
    DuplicateKeyError,
    MissingRowError,
)
from ..keys.base import EntityKey, KeyFactory
from ..keys.context import KeyContext
from .changes import ChangeKind, PendingChange
from .cloning import Cloner
from .diff import UpdatedEntityInfo, diff_entities
from .metrics import observe_apply, observe_change, set_pending

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")

_MISSING = object()


class BackingStore(Generic[TEntity]):
    """
    In-memory entity table with deferred change application.

    Mutations are buffered as pending changes and only reach the committed
    table when apply_changes() drains the buffer. A snapshot of the committed
    table can be taken at any point; get_updated_entities() reports the
    fields changed since then.

    Locking:
    - the pending buffer has its own small lock; apply_changes() swaps it for
      an empty list in one step, so changes submitted while a drain is in
      progress land in the next batch
    - the committed table, the snapshot and the live view are guarded by a
      re-entrant lock, giving one logical writer per store

    Usage:
        store = BackingStore(make_key_factory(Order), initial_entities=[...])
        store.add(Order(customer="acme"))
        store.apply_changes()       # -> 1
        store.update_snapshot()
        order = store.find(1)
        order.customer = "globex"
        store.get_updated_entities()  # -> [UpdatedEntityInfo(order, (...,))]
    """

    def __init__(
        self,
        key_factory: KeyFactory[TEntity],
        initial_entities: Optional[Iterable[TEntity]] = None,
        handle_added_entity: Optional[Callable[[TEntity], TEntity]] = None,
        config: Optional[StoreConfig] = None,
    ) -> None:
        """
        Create the store and seed it with clones of the initial entities.

        Args:
            key_factory: Strategy deriving (and generating) entity keys
            initial_entities: Entities committed from the start
            handle_added_entity: Post-add hook run on every clone the store takes
            config: Store configuration

        Raises:
            ValueError: If key_factory is missing
            DuplicateKeyError: If two initial entities share a key
        """
        if key_factory is None:
            raise ValueError("key_factory is required")

        self.config = config or StoreConfig()
        self.key_factory = key_factory
        entity_type = getattr(key_factory, "entity_type", None)
        self.table_name = self.config.table_name or (
            entity_type.__name__ if entity_type is not None else "entities"
        )
        self.key_context = KeyContext(self.config.identity_seed)

        self._cloner = Cloner(handle_added_entity)
        self._entities: dict[EntityKey, TEntity] = {}
        self._live: list[TEntity] = []
        self._snapshot: dict[EntityKey, TEntity] = {}
        self._changes: list[PendingChange] = []
        self._changes_lock = threading.Lock()
        self._lock = threading.RLock()

        self._seed(list(initial_entities or ()))

    @property
    def pending_count(self) -> int:
        with self._changes_lock:
            return len(self._changes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def add(self, entity: TEntity) -> None:
        """Register the addition of a new entity; it is queryable immediately."""
        self._enqueue([PendingChange.add(entity)])
        with self._lock:
            self._live.append(entity)

    def add_all(self, entities: Iterable[TEntity]) -> None:
        entities = list(entities)
        self._enqueue(PendingChange.many(ChangeKind.ADD, entities))
        with self._lock:
            self._live.extend(entities)

    def update(self, entity: TEntity) -> None:
        """Register the update of an entity."""
        self._enqueue([PendingChange.update(entity)])

    def update_all(self, entities: Iterable[TEntity]) -> None:
        self._enqueue(PendingChange.many(ChangeKind.UPDATE, entities))

    def remove(self, entity: TEntity) -> None:
        """Register the removal of an entity; it leaves query results immediately."""
        self._enqueue([PendingChange.remove(entity)])
        with self._lock:
            self._forget(entity)

    def remove_all(self, entities: Iterable[TEntity]) -> None:
        entities = list(entities)
        self._enqueue(PendingChange.many(ChangeKind.REMOVE, entities))
        with self._lock:
            for entity in entities:
                self._forget(entity)

    def find(self, *key_values: Any) -> Optional[TEntity]:
        """
        Find a committed entity by its key.

        Pending changes are not visible to find().

        Args:
            key_values: The key values, in key field order

        Returns:
            The committed entity, or None if no entity has a matching key
        """
        if not key_values:
            raise ValueError("find() requires at least one key value")
        with self._lock:
            return self._entities.get(EntityKey(tuple(key_values)))

    def query(self, predicate: Optional[Callable[[TEntity], bool]] = None) -> Iterator[TEntity]:
        """
        Lazily iterate the entities present at call time.

        The view is captured when query() is called; later mutations are only
        reflected by a fresh call.
        """
        with self._lock:
            if self.config.track_live_view:
                captured = list(self._live)
            else:
                captured = list(self._entities.values())
        return (entity for entity in captured if predicate is None or predicate(entity))

    def apply_changes(self) -> int:
        """
        Drain the pending buffer and apply each change in submission order.

        Changes applied before a failure stay applied. The failing change and
        the rest of the drained batch are dropped from the buffer and attached
        to the raised error as ``unapplied``.

        Returns:
            The number of changes applied

        Raises:
            DuplicateKeyError: An added entity's key already exists
            MissingRowError: An updated entity's key does not exist
            DbUpdateConcurrencyError: A removed entity's key does not exist
        """
        start_time = time.monotonic()

        with self._lock:
            with self._changes_lock:
                changes, self._changes = self._changes, []
                set_pending(self.table_name, 0)

            try:
                for index, change in enumerate(changes):
                    try:
                        self._apply(change)
                    except DbUpdateError as exc:
                        exc.change = change
                        exc.applied = index
                        exc.unapplied = changes[index:]
                        observe_change(self.table_name, change.kind.value, "error")
                        logger.warning(
                            "Failed to apply %s to %s with key %r after %d of %d changes: %s",
                            change.kind.value,
                            self.table_name,
                            exc.key,
                            index,
                            len(changes),
                            exc,
                        )
                        raise
                    observe_change(self.table_name, change.kind.value, "success")
            finally:
                observe_apply(self.table_name, time.monotonic() - start_time)

        return len(changes)

    def update_snapshot(self) -> None:
        """Replace the diffing baseline with clones of every committed entity."""
        with self._lock:
            self._snapshot = {
                key: self._cloner.clone(entity) for key, entity in self._entities.items()
            }
            logger.debug("Snapshot of %s refreshed (%d entities)", self.table_name, len(self._snapshot))

    def get_updated_entities(self) -> list[UpdatedEntityInfo[TEntity]]:
        """
        Entities with one or more fields changed since the last snapshot.

        Only entities committed both at snapshot time and now are compared.
        """
        updated: list[UpdatedEntityInfo[TEntity]] = []
        with self._lock:
            for key, entity in self._entities.items():
                snapshot = self._snapshot.get(key)
                if snapshot is None:
                    continue
                properties = diff_entities(snapshot, entity)
                if properties:
                    updated.append(UpdatedEntityInfo(entity=entity, updated_properties=properties))
        return updated

    def _seed(self, entities: list[TEntity]) -> None:
        # Pre-keyed seeds first, so identities generated for the rest skip them.
        assigned = [self.key_factory.has_key(entity) for entity in entities]
        keys: dict[int, EntityKey] = {}
        for pass_assigned in (True, False):
            for index, entity in enumerate(entities):
                if assigned[index] is pass_assigned:
                    keys[index] = self._generate_key(entity)

        for index, entity in enumerate(entities):
            key = keys[index]
            if key in self._entities:
                raise DuplicateKeyError(
                    f"Duplicate key {key!r} among initial {self.table_name} entities",
                    entity=entity,
                    key=key,
                )
            seeded = self._cloner.clone(entity)
            self._entities[key] = seeded
            self._live.append(seeded)

        if entities:
            logger.debug(
                "Seeded %s with %d entities, next identity %d",
                self.table_name,
                len(entities),
                self.key_context.peek,
            )

    def _enqueue(self, changes: list[PendingChange]) -> None:
        with self._changes_lock:
            self._changes.extend(changes)
            set_pending(self.table_name, len(self._changes))

    def _forget(self, entity: TEntity) -> None:
        for index, current in enumerate(self._live):
            if current is entity:
                del self._live[index]
                return

    def _generate_key(self, entity: TEntity) -> EntityKey:
        return EntityKey.of(self.key_factory.get_or_generate_and_assign_key(entity, self.key_context))

    def _apply(self, change: PendingChange) -> None:
        entity = change.entity
        entity_name = type(entity).__name__

        if change.kind == ChangeKind.ADD:
            key = self._generate_key(entity)
            if key in self._entities:
                raise DuplicateKeyError(
                    f"Cannot add {entity_name} with key {key!r}: key already exists",
                    entity=entity,
                    key=key,
                )
            self._entities[key] = entity
        elif change.kind == ChangeKind.UPDATE:
            key = EntityKey.of(self.key_factory.get_key(entity))
            if key not in self._entities:
                raise MissingRowError(
                    f"Cannot update {entity_name} with key {key!r}: no such row",
                    entity=entity,
                    key=key,
                )
            self._entities[key] = entity
        elif change.kind == ChangeKind.REMOVE:
            key = EntityKey.of(self.key_factory.get_key(entity))
            if self._entities.pop(key, _MISSING) is _MISSING:
                raise DbUpdateConcurrencyError(
                    f"Cannot remove {entity_name} with key {key!r}: "
                    "row was already removed or never committed",
                    entity=entity,
                    key=key,
                )
        else:
            raise DbUpdateError(f"Unsupported change kind: {change.kind}", entity=entity)

        logger.debug("Applied %s to %s with key %r", change.kind.value, self.table_name, key)
