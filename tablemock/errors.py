from __future__ import annotations

from typing import Any


class TableMockError(Exception):
    """Base exception for tablemock errors."""


class KeyConfigurationError(TableMockError):
    """No usable key strategy could be built for an entity type."""

    def __init__(self, message: str, reasons: list[str] | None = None) -> None:
        super().__init__(message)
        self.reasons = list(reasons or [])


class DbUpdateError(TableMockError):
    """
    Any failure while applying pending changes to the committed table.

    Besides the offending entity and key, the error records how far the
    drained batch got before it failed:

    - ``change``: the pending change that failed
    - ``applied``: number of changes applied before it
    - ``unapplied``: the failing change and every later change of the batch
    """

    def __init__(self, message: str, *, entity: Any = None, key: Any = None) -> None:
        super().__init__(message)
        self.entity = entity
        self.key = key
        self.change: Any = None
        self.applied = 0
        self.unapplied: list[Any] = []


class DuplicateKeyError(DbUpdateError):
    """An added entity's key already exists in the committed table."""


class MissingRowError(DbUpdateError):
    """An updated entity's key is absent from the committed table."""


class DbUpdateConcurrencyError(DbUpdateError):
    """A removed entity's key was already removed or never committed."""
