from __future__ import annotations

from typing import Optional
from uuid import UUID

import pytest

from tablemock.keys import IdentityKeyFactory, KeyContext, KeyStrategy
from tablemock.keys.identity import identity_key_type

from _entities import Invoice, Order, Ticket


class TestIdentityKeyType:
    @pytest.mark.parametrize(
        "annotation, expected",
        [
            (int, int),
            (UUID, UUID),
            (Optional[int], int),
            (int | None, int),
            ("int", int),
            ("Optional[int]", int),
            ("int | None", int),
            ("uuid.UUID", UUID),
            ("UUID", UUID),
        ],
    )
    def test_supported_annotations(self, annotation, expected) -> None:
        assert identity_key_type(annotation) is expected

    @pytest.mark.parametrize("annotation", [bool, str, float, "str", None, int | str])
    def test_unsupported_annotations(self, annotation) -> None:
        assert identity_key_type(annotation) is None


class TestIdentityKeyFactory:
    def test_strategy(self) -> None:
        factory = IdentityKeyFactory(Order, "id", int)
        assert factory.strategy == KeyStrategy.IDENTITY
        assert factory.key_fields == ("id",)

    def test_rejects_unsupported_key_type(self) -> None:
        with pytest.raises(TypeError):
            IdentityKeyFactory(Order, "id", str)

    def test_get_key_does_not_generate(self) -> None:
        factory = IdentityKeyFactory(Order, "id", int)
        order = Order()
        assert factory.get_key(order) == 0
        assert order.id == 0

    def test_zero_value_is_generated_and_assigned(self) -> None:
        factory = IdentityKeyFactory(Order, "id", int)
        ctx = KeyContext()
        first, second = Order(), Order()

        assert factory.get_or_generate_and_assign_key(first, ctx) == 1
        assert factory.get_or_generate_and_assign_key(second, ctx) == 2
        assert (first.id, second.id) == (1, 2)

    def test_existing_value_is_kept_and_marked_used(self) -> None:
        factory = IdentityKeyFactory(Order, "id", int)
        ctx = KeyContext()
        order = Order(id=7)

        assert factory.get_or_generate_and_assign_key(order, ctx) == 7
        assert order.id == 7
        assert ctx.next_identity() == 8

    def test_none_counts_as_unassigned(self) -> None:
        factory = IdentityKeyFactory(Invoice, "id", int)
        invoice = Invoice(amount=3)
        assert factory.get_or_generate_and_assign_key(invoice, KeyContext()) == 1
        assert invoice.id == 1

    def test_uuid_identity_is_converted_from_counter(self) -> None:
        factory = IdentityKeyFactory(Ticket, "id", UUID)
        ctx = KeyContext()
        ticket = Ticket(title="broken printer")

        key = factory.get_or_generate_and_assign_key(ticket, ctx)

        assert key == UUID(int=1)
        assert ticket.id == UUID(int=1)

    def test_existing_uuid_is_kept_and_marked_used(self) -> None:
        factory = IdentityKeyFactory(Ticket, "id", UUID)
        existing = UUID("12345678-1234-5678-1234-567812345678")
        ticket = Ticket(id=existing)
        ctx = KeyContext()

        assert factory.get_or_generate_and_assign_key(ticket, ctx) == existing
        assert ctx.peek == existing.int + 1

    def test_has_key_reports_unassigned_values(self) -> None:
        factory = IdentityKeyFactory(Ticket, "id", UUID)
        assert factory.has_key(Ticket()) is False
        assert factory.has_key(Ticket(id=UUID(int=3))) is True
