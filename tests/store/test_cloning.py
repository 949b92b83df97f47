from __future__ import annotations

import dataclasses

from tablemock.store import Cloner
from tablemock.store.cloning import clone_func_for

from _entities import Account, LegacyRecord, Order, PremiumOrder


def test_clone_copies_persisted_fields() -> None:
    original = Order(id=3, customer="acme", total=12.5, tags=["a"])
    clone = Cloner().clone(original)

    assert clone is not original
    assert type(clone) is Order
    assert (clone.id, clone.customer, clone.total, clone.tags) == (3, "acme", 12.5, ["a"])


def test_mutating_clone_never_affects_original() -> None:
    original = Order(id=3, customer="acme", tags=["a"])
    clone = Cloner().clone(original)

    clone.customer = "globex"
    clone.tags.append("b")

    assert original.customer == "acme"
    assert original.tags == ["a"]


def test_mutating_original_never_affects_clone() -> None:
    original = Order(id=3, customer="acme", tags=["a"])
    clone = Cloner().clone(original)

    original.customer = "globex"
    original.tags.clear()

    assert clone.customer == "acme"
    assert clone.tags == ["a"]


def test_not_mapped_fields_get_their_default() -> None:
    original = Order(id=1, cached_label="computed")
    clone = Cloner().clone(original)
    assert clone.cached_label == ""


def test_concrete_subclass_is_preserved() -> None:
    original = PremiumOrder(id=2, customer="vip", discount=0.1)
    clone = Cloner().clone(original)
    assert type(clone) is PremiumOrder
    assert clone.discount == 0.1


def test_hook_runs_once_per_clone_and_may_replace() -> None:
    calls: list[Order] = []

    def shout(entity: Order) -> Order:
        calls.append(entity)
        return dataclasses.replace(entity, customer=entity.customer.upper())

    cloner = Cloner(handle_added_entity=shout)
    clone = cloner.clone(Order(id=1, customer="acme"))

    assert len(calls) == 1
    assert clone.customer == "ACME"
    assert clone is not calls[0]


def test_clone_routine_is_compiled_once_per_type() -> None:
    assert clone_func_for(Order) is clone_func_for(Order)
    assert clone_func_for(Order) is not clone_func_for(PremiumOrder)


def test_clone_sqlalchemy_entity() -> None:
    original = Account(id=4, owner="ann", balance=100)
    clone = Cloner().clone(original)

    assert type(clone) is Account
    assert clone is not original
    assert (clone.id, clone.owner, clone.balance) == (4, "ann", 100)

    clone.balance = 0
    assert original.balance == 100


def test_clone_registered_entity() -> None:
    clone = Cloner().clone(LegacyRecord(code="X1", label="legacy"))
    assert isinstance(clone, LegacyRecord)
    assert (clone.code, clone.label) == ("X1", "legacy")
