"""
Per-type description of the fields an entity persists.

A schema lists every persisted field of an entity type, in declaration order,
together with the key markers the key factory builders look at. Schemas are
discovered once per type and memoised for the lifetime of the process:

- dataclasses: every dataclass field, minus fields marked ``not_mapped()``;
  key fields are marked with ``key()`` / ``identity()`` field metadata
- SQLAlchemy declarative models: every mapped column attribute; key fields
  are the mapper's primary key columns
- anything else: described explicitly with ``register_entity()``

Usage:
    @dataclass
    class Order:
        id: int = field(default=0, metadata=identity())
        customer: str = ""
        cached_total: float = field(default=0.0, metadata=not_mapped())
"""

from __future__ import annotations

import dataclasses
import threading
import typing
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy import Integer, Uuid
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper
from sqlalchemy.schema import Column

from .errors import KeyConfigurationError

KEY_METADATA = "tablemock_key"
GENERATED_METADATA = "tablemock_generated"
NOT_MAPPED_METADATA = "tablemock_not_mapped"


def key(order: int = 0) -> dict[str, Any]:
    """Dataclass field metadata marking a key field (``order`` ranks composite keys)."""
    return {KEY_METADATA: order}


def identity() -> dict[str, Any]:
    """Dataclass field metadata marking a database-generated identity key."""
    return {KEY_METADATA: 0, GENERATED_METADATA: True}


def not_mapped() -> dict[str, Any]:
    """Dataclass field metadata excluding a field from persistence."""
    return {NOT_MAPPED_METADATA: True}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    python_type: Any = None
    persisted: bool = True
    key_order: int | None = None
    generated: bool = False


@dataclass(frozen=True)
class EntitySchema:
    entity_type: type
    fields: tuple[FieldSpec, ...]
    source: str
    new_instance: Callable[[], Any]

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    @property
    def persisted_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.persisted)

    @property
    def key_fields(self) -> tuple[FieldSpec, ...]:
        """Fields explicitly marked as key, in key order."""
        marked = [f for f in self.persisted_fields if f.key_order is not None]
        return tuple(sorted(marked, key=lambda f: f.key_order))

    def field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


_SCHEMAS: dict[type, EntitySchema] = {}
_SCHEMAS_LOCK = threading.Lock()


def register_entity(
    entity_type: type,
    fields: Iterable[str],
    key: Iterable[str] = (),
    identity: bool = False,
    types: Mapping[str, Any] | None = None,
) -> EntitySchema:
    """
    Describe a plain entity class explicitly.

    Args:
        entity_type: The entity class; must be constructible without arguments
        fields: Names of the persisted fields, in order
        key: Names of the key fields, in key order
        identity: Whether the (single) key field is database-generated
        types: Optional field name -> python type; defaults to the class annotations

    Returns:
        The registered schema, replacing any previously discovered one
    """
    field_names = list(fields)
    key_names = list(key)
    missing = [name for name in key_names if name not in field_names]
    if missing:
        raise KeyConfigurationError(
            f"Key fields {missing} of {entity_type.__name__} are not among its persisted fields"
        )
    if identity and len(key_names) != 1:
        raise KeyConfigurationError(
            f"Identity key of {entity_type.__name__} requires exactly one key field, "
            f"got {len(key_names)}"
        )

    hints = dict(_type_hints(entity_type))
    hints.update(types or {})
    specs = tuple(
        FieldSpec(
            name=name,
            python_type=hints.get(name),
            key_order=key_names.index(name) if name in key_names else None,
            generated=identity and name in key_names,
        )
        for name in field_names
    )
    schema = EntitySchema(
        entity_type=entity_type,
        fields=specs,
        source="registered",
        new_instance=entity_type,
    )
    with _SCHEMAS_LOCK:
        _SCHEMAS[entity_type] = schema
    return schema


def schema_for(entity_type: type) -> EntitySchema:
    """
    Return the (memoised) schema of an entity type.

    Raises:
        KeyConfigurationError: If the type is neither registered, a dataclass
            nor a SQLAlchemy mapped class
    """
    with _SCHEMAS_LOCK:
        schema = _SCHEMAS.get(entity_type)
        if schema is None:
            schema = _describe(entity_type)
            _SCHEMAS[entity_type] = schema
        return schema


def _describe(entity_type: type) -> EntitySchema:
    if dataclasses.is_dataclass(entity_type):
        return _describe_dataclass(entity_type)

    mapper = sa_inspect(entity_type, raiseerr=False)
    if isinstance(mapper, Mapper):
        return _describe_mapped(entity_type, mapper)

    raise KeyConfigurationError(
        f"Cannot describe entity type {entity_type.__name__}: it is not a dataclass, "
        "not a SQLAlchemy mapped class and was not passed to register_entity()"
    )


def _describe_dataclass(entity_type: type) -> EntitySchema:
    hints = _type_hints(entity_type)
    dc_fields = dataclasses.fields(entity_type)

    specs = []
    for f in dc_fields:
        meta = f.metadata
        specs.append(
            FieldSpec(
                name=f.name,
                python_type=hints.get(f.name, f.type),
                persisted=not meta.get(NOT_MAPPED_METADATA, False),
                key_order=meta.get(KEY_METADATA),
                generated=bool(meta.get(GENERATED_METADATA, False)),
            )
        )

    unmapped = [f for f in dc_fields if f.metadata.get(NOT_MAPPED_METADATA, False)]

    def new_instance() -> Any:
        # Bypass __init__ so required persisted fields need no placeholder values.
        instance = entity_type.__new__(entity_type)
        for f in unmapped:
            if f.default is not dataclasses.MISSING:
                object.__setattr__(instance, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(instance, f.name, f.default_factory())
        return instance

    return EntitySchema(
        entity_type=entity_type,
        fields=tuple(specs),
        source="dataclass",
        new_instance=new_instance,
    )


def _describe_mapped(entity_type: type, mapper: Mapper) -> EntitySchema:
    pk_names = [mapper.get_property_by_column(col).key for col in mapper.primary_key]
    single_pk = len(pk_names) == 1

    specs = []
    for attr in mapper.column_attrs:
        column = attr.columns[0]
        is_key = attr.key in pk_names
        specs.append(
            FieldSpec(
                name=attr.key,
                python_type=_column_python_type(column),
                key_order=pk_names.index(attr.key) if is_key else None,
                generated=is_key and single_pk and _is_generated(column),
            )
        )

    return EntitySchema(
        entity_type=entity_type,
        fields=tuple(specs),
        source="sqlalchemy",
        new_instance=entity_type,
    )


def _column_python_type(column: Column) -> Any:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _is_generated(column: Column) -> bool:
    if getattr(column, "identity", None) is not None:
        return True
    if isinstance(column.type, Integer):
        if column.autoincrement is True:
            return True
        return column.autoincrement == "auto" and not column.foreign_keys
    if isinstance(column.type, Uuid):
        return column.default is not None or column.server_default is not None
    return False


def _type_hints(entity_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(entity_type)
    except (NameError, TypeError):
        # Unresolvable forward references; callers fall back to raw annotations.
        return {}
