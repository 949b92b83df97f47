from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from .config import StoreConfig
from .keys import CompositeKeyFactoryBuilder, KeyFactory, make_key_factory
from .store.backing_store import BackingStore
from .store.diff import UpdatedEntityInfo

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")

SavedChangesListener = Callable[["DbSetMock[Any]", list[UpdatedEntityInfo[Any]]], None]


class DbSetMock(Generic[TEntity]):
    """
    Entity-set facade over a single BackingStore.

    save_changes() runs one full commit cycle: apply the pending changes,
    report entities whose fields changed since the previous save, then take
    a new snapshot.
    """

    def __init__(
        self,
        entity_type: type[TEntity],
        key_factory: Optional[KeyFactory[TEntity]] = None,
        initial_entities: Optional[Iterable[TEntity]] = None,
        handle_added_entity: Optional[Callable[[TEntity], TEntity]] = None,
        config: Optional[StoreConfig] = None,
    ) -> None:
        self.entity_type = entity_type
        self.key_factory = key_factory or make_key_factory(entity_type)
        self.store: BackingStore[TEntity] = BackingStore(
            self.key_factory,
            initial_entities=initial_entities,
            handle_added_entity=handle_added_entity,
            config=config,
        )
        self._listeners: list[SavedChangesListener] = []

    def add(self, entity: TEntity) -> TEntity:
        self.store.add(entity)
        return entity

    def add_range(self, entities: Iterable[TEntity]) -> None:
        self.store.add_all(entities)

    def update(self, entity: TEntity) -> TEntity:
        self.store.update(entity)
        return entity

    def update_range(self, entities: Iterable[TEntity]) -> None:
        self.store.update_all(entities)

    def remove(self, entity: TEntity) -> TEntity:
        self.store.remove(entity)
        return entity

    def remove_range(self, entities: Iterable[TEntity]) -> None:
        self.store.remove_all(entities)

    def find(self, *key_values: Any) -> Optional[TEntity]:
        return self.store.find(*key_values)

    def query(self, predicate: Optional[Callable[[TEntity], bool]] = None) -> Iterator[TEntity]:
        return self.store.query(predicate)

    def __iter__(self) -> Iterator[TEntity]:
        return self.store.query()

    def on_saved_changes(self, listener: SavedChangesListener) -> None:
        """Register a callback receiving (db_set, updated_entities) after each save."""
        self._listeners.append(listener)

    def save_changes(self) -> int:
        """
        Apply pending changes and detect field-level updates.

        Returns:
            Number of applied changes plus number of entities with updated fields

        Raises:
            DbUpdateError: If a pending change cannot be applied; the snapshot
                is left untouched in that case
        """
        applied = self.store.apply_changes()
        updated = self.store.get_updated_entities()
        if updated:
            for listener in self._listeners:
                listener(self, updated)
        self.store.update_snapshot()
        return applied + len(updated)


class DbContextMock:
    """
    Registry of entity sets, one per entity type.

    Context-level add/update/remove calls are routed to the set registered
    for the entity's type or, failing that, for its nearest base class.

    Usage:
        context = DbContextMock()
        orders = context.create_db_set_mock(Order, initial_entities=[...])
        context.add(Order(customer="acme"))
        context.save_changes()
    """

    def __init__(self, key_factory_builder: Optional[CompositeKeyFactoryBuilder] = None) -> None:
        self._key_factory_builder = key_factory_builder or CompositeKeyFactoryBuilder()
        self._sets: dict[type, DbSetMock[Any]] = {}

    def create_db_set_mock(
        self,
        entity_type: type[TEntity],
        initial_entities: Optional[Iterable[TEntity]] = None,
        handle_added_entity: Optional[Callable[[TEntity], TEntity]] = None,
        key_factory: Optional[KeyFactory[TEntity]] = None,
        config: Optional[StoreConfig] = None,
    ) -> DbSetMock[TEntity]:
        """
        Create and register the set for an entity type.

        Raises:
            ValueError: If a set for the type was already created
            KeyConfigurationError: If no key factory can be built for the type
        """
        if entity_type in self._sets:
            raise ValueError(f"DbSetMock for entity {entity_type.__name__} already created")

        db_set = DbSetMock(
            entity_type,
            key_factory=key_factory or self._key_factory_builder.build(entity_type),
            initial_entities=initial_entities,
            handle_added_entity=handle_added_entity,
            config=config,
        )
        self._sets[entity_type] = db_set
        logger.debug("Created DbSetMock for %s using %s", entity_type.__name__, db_set.key_factory)
        return db_set

    def set(self, entity_type: type[TEntity]) -> DbSetMock[TEntity]:
        try:
            return self._sets[entity_type]
        except KeyError:
            raise LookupError(f"No DbSetMock created for entity {entity_type.__name__}") from None

    def add(self, entity: Any) -> Any:
        return self._set_for(entity).add(entity)

    def add_range(self, entities: Iterable[Any]) -> None:
        for entity in entities:
            self._set_for(entity).add(entity)

    async def add_async(self, entity: Any) -> Any:
        return self.add(entity)

    async def add_range_async(self, entities: Iterable[Any]) -> None:
        self.add_range(entities)

    def update(self, entity: Any) -> Any:
        return self._set_for(entity).update(entity)

    def remove(self, entity: Any) -> Any:
        return self._set_for(entity).remove(entity)

    def save_changes(self) -> int:
        total = 0
        for db_set in self._sets.values():
            total += db_set.save_changes()
        logger.debug("Saved %d changes across %d sets", total, len(self._sets))
        return total

    async def save_changes_async(self) -> int:
        """Same as save_changes(); all work completes before the coroutine returns."""
        return self.save_changes()

    def reset(self) -> None:
        self._sets.clear()

    def _set_for(self, entity: Any) -> DbSetMock[Any]:
        for cls in type(entity).__mro__:
            db_set = self._sets.get(cls)
            if db_set is not None:
                return db_set
        raise LookupError(f"Did not find entity set for {entity!r}")
