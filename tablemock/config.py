from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoreConfig:
    table_name: str | None = None
    identity_seed: int = 1
    track_live_view: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if isinstance(self.identity_seed, bool) or not isinstance(self.identity_seed, int):
            raise ValueError("identity_seed must be an integer")
        if self.identity_seed < 1:
            raise ValueError(
                "identity_seed must be >= 1; 0 is the unassigned identity value"
            )
        if self.table_name is not None and not self.table_name:
            raise ValueError("table_name cannot be empty")
