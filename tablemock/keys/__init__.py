from .base import EntityKey, KeyFactory
from .builder import (
    AttributeKeyFactoryBuilder,
    BuildResult,
    CompositeKeyFactoryBuilder,
    ConventionKeyFactoryBuilder,
    KeyFactoryBuilder,
)
from .composite import CompositeKeyFactory
from .context import KeyContext
from .identity import IdentityKeyFactory
from .strategy import KeyStrategy

_default_builder = CompositeKeyFactoryBuilder()


def make_key_factory(entity_type: type) -> KeyFactory:
    """
    Build the key factory for an entity type.

    Key fields are resolved by attribute first, then by naming convention.
    A single database-generated int/UUID key yields an IdentityKeyFactory,
    anything else a CompositeKeyFactory.

    Raises:
        KeyConfigurationError: If no key field can be found for the type
    """
    return _default_builder.build(entity_type)


__all__ = [
    "AttributeKeyFactoryBuilder",
    "BuildResult",
    "CompositeKeyFactory",
    "CompositeKeyFactoryBuilder",
    "ConventionKeyFactoryBuilder",
    "EntityKey",
    "IdentityKeyFactory",
    "KeyContext",
    "KeyFactory",
    "KeyFactoryBuilder",
    "KeyStrategy",
    "make_key_factory",
]
