from __future__ import annotations

import types
import typing
import uuid
from typing import Any

from .base import KeyFactory, TEntity
from .context import KeyContext
from .strategy import KeyStrategy

_TYPE_NAMES: dict[str, type] = {
    "int": int,
    "UUID": uuid.UUID,
    "uuid.UUID": uuid.UUID,
}

_ZERO_VALUES: dict[type, Any] = {
    int: 0,
    uuid.UUID: uuid.UUID(int=0),
}


def identity_key_type(python_type: Any) -> type | None:
    """
    Map a field annotation onto a supported identity key type.

    Returns int or uuid.UUID, or None when the annotation is anything else
    (bool is rejected even though it subclasses int). ``Optional[X]`` is
    unwrapped, and unresolved string annotations are matched by name.
    """
    if isinstance(python_type, str):
        name = python_type.replace(" ", "")
        for suffix in ("|None", "None|"):
            name = name.replace(suffix, "")
        if name.startswith("Optional[") and name.endswith("]"):
            name = name[len("Optional["):-1]
        return _TYPE_NAMES.get(name)

    origin = typing.get_origin(python_type)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(python_type) if a is not type(None)]
        if len(args) != 1:
            return None
        python_type = args[0]

    if python_type is int or python_type is uuid.UUID:
        return python_type
    return None


class IdentityKeyFactory(KeyFactory[TEntity]):
    """
    Single database-generated key field of type int or UUID.

    A field holding its zero value (or None) is unassigned: the factory draws
    the next identity from the KeyContext, converts it to the field type and
    writes it back into the entity. Values that are already assigned are
    reported to the context (a UUID by its integer value) so generated values
    never collide with them.
    """

    strategy = KeyStrategy.IDENTITY

    def __init__(self, entity_type: type, key_field: str, key_type: type) -> None:
        if key_type not in _ZERO_VALUES:
            raise TypeError(f"Unsupported identity key type: {key_type!r}")
        super().__init__(entity_type, (key_field,))
        self.key_field = key_field
        self.key_type = key_type

    def get_key(self, entity: TEntity) -> Any:
        return getattr(entity, self.key_field)

    def has_key(self, entity: TEntity) -> bool:
        return not self._is_unassigned(getattr(entity, self.key_field))

    def get_or_generate_and_assign_key(self, entity: TEntity, key_context: KeyContext) -> Any:
        value = getattr(entity, self.key_field)
        if self._is_unassigned(value):
            value = self._convert(key_context.next_identity())
            object.__setattr__(entity, self.key_field, value)
        elif self.key_type is uuid.UUID:
            key_context.ensure_id_used(value.int)
        else:
            key_context.ensure_id_used(value)
        return value

    def _is_unassigned(self, value: Any) -> bool:
        return value is None or value == _ZERO_VALUES[self.key_type]

    def _convert(self, identity: int) -> Any:
        if self.key_type is uuid.UUID:
            return uuid.UUID(int=identity)
        return identity
