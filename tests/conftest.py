"""Pytest configuration and shared fixtures.

Ensures the repository root is importable (so tests can import packages like
`core`, `tools`, `cli` without an editable install), and provides helpers for
settings files and deterministic rule ids.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from pathlib import Path

import pytest

# Make repo root importable for tests (avoid requiring `pip install -e .`).
_REPO_ROOT = Path(__file__).resolve().parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from schemas.rules import Rule, RuleSet  # noqa: E402


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Path of a settings file inside a fresh tmp directory (not created)."""
    return tmp_path / "state" / "replacements.json"


@pytest.fixture
def write_store(store_path: Path):
    """Factory writing persisted rules to ``store_path``.

    Example:
        write_store([("k1", "foo", "bar", False)])
    """

    def _write(rows: Iterable[tuple[str, str, str, bool]]) -> Path:
        store_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "rules": [
                {"id": rid, "match": m, "replace": r, "isRegex": rx} for (rid, m, r, rx) in rows
            ]
        }
        store_path.write_text(json.dumps(payload), encoding="utf-8")
        return store_path

    return _write


@pytest.fixture
def baseline() -> RuleSet:
    return RuleSet(
        rules=[
            Rule(id="k1", match="twitter.com", replace="fxtwitter.com", is_regex=False),
            Rule(id="k2", match=r"^http://", replace="https://", is_regex=True),
        ]
    )


@pytest.fixture
def seq_ids():
    """Deterministic id factory yielding ``n1``, ``n2``, ..."""

    def _make(ids: Iterable[str] | None = None):
        it = iter(ids) if ids is not None else (f"n{i}" for i in range(1, 10_000))
        return lambda: next(it)

    return _make
