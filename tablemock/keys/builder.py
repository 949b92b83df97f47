from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..errors import KeyConfigurationError
from ..schema import EntitySchema, FieldSpec, schema_for
from .base import KeyFactory
from .composite import CompositeKeyFactory
from .identity import IdentityKeyFactory, identity_key_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a single key factory build attempt."""
    factory: KeyFactory | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.factory is not None


class KeyFactoryBuilder(ABC):
    """
    Abstract base for key factory builders.

    Subclasses decide which fields form the key; the base class turns them
    into an identity factory when its preconditions hold, and into a
    composite factory otherwise.
    """

    name: str

    @abstractmethod
    def resolve_key_fields(self, schema: EntitySchema) -> tuple[FieldSpec, ...]:
        """Return the key fields of the schema, or an empty tuple if none apply."""
        ...

    def build(self, entity_type: type) -> BuildResult:
        schema = schema_for(entity_type)
        key_fields = self.resolve_key_fields(schema)
        if not key_fields:
            return BuildResult(reason=f"{self.name}: no key field found on {schema.name}")

        factory = _build_identity_factory(entity_type, key_fields)
        if factory is None:
            factory = CompositeKeyFactory(entity_type, tuple(f.name for f in key_fields))
        return BuildResult(factory=factory)


class AttributeKeyFactoryBuilder(KeyFactoryBuilder):
    """Key fields marked with key()/identity() metadata or mapped as primary key."""

    name = "attribute"

    def resolve_key_fields(self, schema: EntitySchema) -> tuple[FieldSpec, ...]:
        return schema.key_fields


class ConventionKeyFactoryBuilder(KeyFactoryBuilder):
    """A persisted field named ``id``, or ``<snake_case_type_name>_id``."""

    name = "convention"

    def resolve_key_fields(self, schema: EntitySchema) -> tuple[FieldSpec, ...]:
        for candidate in ("id", f"{_snake_case(schema.name)}_id"):
            spec = schema.field(candidate)
            if spec is not None and spec.persisted:
                return (spec,)
        return ()


class CompositeKeyFactoryBuilder:
    """
    Tries each builder in order and returns the first factory built.

    Raises KeyConfigurationError listing every failure when none succeeds.
    """

    def __init__(self, builders: list[KeyFactoryBuilder] | None = None) -> None:
        self.builders = builders if builders is not None else [
            AttributeKeyFactoryBuilder(),
            ConventionKeyFactoryBuilder(),
        ]

    def build(self, entity_type: type) -> KeyFactory:
        reasons: list[str] = []
        for builder in self.builders:
            result = builder.build(entity_type)
            if result.ok:
                logger.debug(
                    "Resolved %s for %s (%s schema) using %s builder",
                    result.factory,
                    entity_type.__name__,
                    schema_for(entity_type).source,
                    builder.name,
                )
                return result.factory
            reasons.append(result.reason or f"{builder.name}: failed")

        raise KeyConfigurationError(
            f"No key factory could be created for entity type {entity_type.__name__}: "
            + "; ".join(reasons),
            reasons=reasons,
        )


def _build_identity_factory(
    entity_type: type, key_fields: tuple[FieldSpec, ...]
) -> IdentityKeyFactory | None:
    if len(key_fields) != 1:
        return None
    key_field = key_fields[0]
    if not key_field.generated:
        return None
    key_type = identity_key_type(key_field.python_type)
    if key_type is None:
        return None
    return IdentityKeyFactory(entity_type, key_field.name, key_type)


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
