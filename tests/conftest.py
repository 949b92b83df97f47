from __future__ import annotations

from collections.abc import Callable

import pytest

from tablemock import BackingStore, StoreConfig, make_key_factory

from _entities import Order


@pytest.fixture
def seed_orders() -> list[Order]:
    """Three committed orders with explicit identity values."""
    return [
        Order(id=1, customer="acme", total=10.0),
        Order(id=2, customer="globex", total=20.0, tags=["priority"]),
        Order(id=5, customer="initech", total=50.0),
    ]


@pytest.fixture
def store_factory(request: pytest.FixtureRequest) -> Callable[..., BackingStore]:
    """
    Factory fixture creating backing stores with a per-test table label.

    Usage:
        store = store_factory(Order, initial_entities=[...])
    """

    def _create(entity_type: type, **kwargs) -> BackingStore:
        config = kwargs.pop("config", None) or StoreConfig(
            table_name=f"{entity_type.__name__}_{request.node.name}"[:64]
        )
        return BackingStore(make_key_factory(entity_type), config=config, **kwargs)

    return _create


@pytest.fixture
def order_store(store_factory, seed_orders) -> BackingStore:
    return store_factory(Order, initial_entities=seed_orders)
