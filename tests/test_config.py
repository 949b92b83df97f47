from __future__ import annotations

import pytest

from tablemock import BackingStore, StoreConfig, make_key_factory

from _entities import Order


def test_defaults() -> None:
    config = StoreConfig()
    assert config.table_name is None
    assert config.identity_seed == 1
    assert config.track_live_view is True


@pytest.mark.parametrize("seed", [0, -3])
def test_identity_seed_must_be_positive(seed: int) -> None:
    with pytest.raises(ValueError, match="identity_seed must be >= 1"):
        StoreConfig(identity_seed=seed)


def test_identity_seed_rejects_bool() -> None:
    with pytest.raises(ValueError, match="identity_seed must be an integer"):
        StoreConfig(identity_seed=True)


def test_empty_table_name_rejected() -> None:
    with pytest.raises(ValueError, match="table_name cannot be empty"):
        StoreConfig(table_name="")


def test_identity_seed_is_first_generated_value() -> None:
    store = BackingStore(make_key_factory(Order), config=StoreConfig(identity_seed=100))
    order = Order(customer="acme")
    store.add(order)
    store.apply_changes()
    assert order.id == 100


def test_table_name_defaults_to_entity_type_name() -> None:
    store = BackingStore(make_key_factory(Order))
    assert store.table_name == "Order"
