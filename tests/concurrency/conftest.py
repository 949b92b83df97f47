from __future__ import annotations

import pytest


def _markexpr_mentions(config: pytest.Config, marker_name: str) -> bool:
    """Return True if the user's `-m` expression mentions marker_name."""
    expr = getattr(config.option, "markexpr", "") or ""
    return marker_name in expr


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Skip multi-threaded stress tests unless selected with `-m concurrency`.
    """
    if _markexpr_mentions(config, "concurrency"):
        return

    skip_concurrency = pytest.mark.skip(
        reason="Skipped: run with `pytest -m concurrency` to execute threaded invariant tests."
    )
    for item in items:
        if item.get_closest_marker("concurrency") is not None:
            item.add_marker(skip_concurrency)
