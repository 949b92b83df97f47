from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .context import KeyContext
from .strategy import KeyStrategy

TEntity = TypeVar("TEntity")


@dataclass(frozen=True)
class EntityKey:
    """
    Ordered key values with structural equality and hashing.

    Every key the backing store tracks is normalised to an EntityKey, so a
    single-field identity key ``5`` and ``find(5)`` meet on ``EntityKey((5,))``.
    A plain tuple returned by a key factory is taken as the key parts.
    """

    parts: tuple[Any, ...]

    @classmethod
    def of(cls, key: Any) -> "EntityKey":
        if isinstance(key, EntityKey):
            return key
        if isinstance(key, tuple):
            return cls(key)
        return cls((key,))

    def __len__(self) -> int:
        return len(self.parts)

    def __repr__(self) -> str:
        if len(self.parts) == 1:
            return f"EntityKey({self.parts[0]!r})"
        return f"EntityKey{self.parts!r}"


class KeyFactory(ABC, Generic[TEntity]):
    """
    Abstract base for entity key strategies.
    """

    strategy: KeyStrategy

    def __init__(self, entity_type: type, key_fields: tuple[str, ...]) -> None:
        self.entity_type = entity_type
        self.key_fields = key_fields

    @abstractmethod
    def get_key(self, entity: TEntity) -> Any:
        """Read the entity's key without mutating the entity."""
        ...

    @abstractmethod
    def get_or_generate_and_assign_key(self, entity: TEntity, key_context: KeyContext) -> Any:
        """Return the entity's key, generating and assigning it first if needed."""
        ...

    def has_key(self, entity: TEntity) -> bool:
        """Whether the entity already carries its key; False means one will be generated."""
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entity_type.__name__}, {list(self.key_fields)})"
