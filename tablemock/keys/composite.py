from __future__ import annotations

from operator import attrgetter

from .base import EntityKey, KeyFactory, TEntity
from .context import KeyContext
from .strategy import KeyStrategy


class CompositeKeyFactory(KeyFactory[TEntity]):
    """
    Key built from the current values of one or more declared key fields.

    Nothing is generated: the key is read as is, in declared field order.
    """

    strategy = KeyStrategy.COMPOSITE

    def __init__(self, entity_type: type, key_fields: tuple[str, ...]) -> None:
        if not key_fields:
            raise ValueError("CompositeKeyFactory requires at least one key field")
        super().__init__(entity_type, tuple(key_fields))
        self._getters = [attrgetter(name) for name in self.key_fields]

    def get_key(self, entity: TEntity) -> EntityKey:
        return EntityKey(tuple(getter(entity) for getter in self._getters))

    def get_or_generate_and_assign_key(self, entity: TEntity, key_context: KeyContext) -> EntityKey:
        return self.get_key(entity)
