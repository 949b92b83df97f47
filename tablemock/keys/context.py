from __future__ import annotations


class KeyContext:
    """
    Identity generator scoped to a single backing store.

    The counter only moves forward: generated values are never handed out
    twice, and values reported through ensure_id_used() are skipped.
    """

    def __init__(self, start: int = 1) -> None:
        self._next_identity = start

    @property
    def peek(self) -> int:
        """The value the next call to next_identity() will return."""
        return self._next_identity

    def next_identity(self) -> int:
        value = self._next_identity
        self._next_identity += 1
        return value

    def ensure_id_used(self, id_value: int) -> None:
        self._next_identity = max(self._next_identity, id_value + 1)
