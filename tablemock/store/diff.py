from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..schema import schema_for

TEntity = TypeVar("TEntity")


@dataclass(frozen=True)
class UpdatedProperty:
    name: str
    original: Any
    new: Any


@dataclass(frozen=True)
class UpdatedEntityInfo(Generic[TEntity]):
    """A committed entity together with the fields changed since the last snapshot."""
    entity: TEntity
    updated_properties: tuple[UpdatedProperty, ...]


def diff_entities(snapshot: Any, current: Any) -> tuple[UpdatedProperty, ...]:
    """
    Compare every persisted field of two entities of the same type.

    Fields are described by the snapshot's schema and reported in declaration
    order; only fields whose values compare unequal are returned.
    """
    schema = schema_for(type(snapshot))
    changed = []
    for spec in schema.persisted_fields:
        original = getattr(snapshot, spec.name)
        new = getattr(current, spec.name)
        if new != original:
            changed.append(UpdatedProperty(name=spec.name, original=original, new=new))
    return tuple(changed)
