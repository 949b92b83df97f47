from .config import StoreConfig
from .context import DbContextMock, DbSetMock
from .keys import EntityKey, KeyContext, KeyFactory, KeyStrategy, make_key_factory
from .schema import identity, key, not_mapped, register_entity, schema_for
from .store import BackingStore, Cloner, UpdatedEntityInfo, UpdatedProperty

__all__ = [
    "BackingStore",
    "Cloner",
    "DbContextMock",
    "DbSetMock",
    "EntityKey",
    "KeyContext",
    "KeyFactory",
    "KeyStrategy",
    "StoreConfig",
    "UpdatedEntityInfo",
    "UpdatedProperty",
    "identity",
    "key",
    "make_key_factory",
    "not_mapped",
    "register_entity",
    "schema_for",
]
