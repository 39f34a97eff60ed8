"""Persisted replacement settings.

The store holds the committed rule list as a JSON document::

    {"rules": [{"id": "k3x9q1", "match": "...", "replace": "...", "isRegex": false}]}

Writes are atomic via a sibling temp file and ``os.replace`` so the file either
holds the previous list or the new one, never a partial write.
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import structlog

from schemas.rules import Rule, RuleSet

logger = structlog.get_logger(__name__)


class SettingsStore(Protocol):
    """Read/write contract for the persisted rule list."""

    def read(self) -> RuleSet:  # pragma: no cover - Protocol only
        ...

    def write(self, candidate: Sequence[Rule]) -> None:  # pragma: no cover
        ...


def _atomic_write_text(path: Path, data: str) -> None:
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.parent.mkdir(parents=True, exist_ok=True)
    tmp.write_text(data, encoding="utf-8")
    os.replace(tmp, path)


class JsonSettingsStore:
    """JSON file store.

    A missing file reads as an empty rule set.

    Args:
        path: Location of the settings document.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> RuleSet:
        if not self.path.exists():
            return RuleSet()
        rules = RuleSet.from_json(self.path.read_text(encoding="utf-8"))
        logger.debug("rules_read", path=str(self.path), count=len(rules.rules))
        return rules

    def write(self, candidate: Sequence[Rule]) -> None:
        # Re-validate through RuleSet so duplicate ids never reach disk
        rules = RuleSet(rules=[Rule.model_validate(r.model_dump()) for r in candidate])
        payload = rules.model_dump(mode="json", by_alias=True)
        _atomic_write_text(self.path, json.dumps(payload, indent=2))
        logger.info("rules_written", path=str(self.path), count=len(rules.rules))


def _normalize_entry(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry
    item = dict(entry)
    # Older settings used ``key`` for the id and stored a cached ``isValid``
    if "id" not in item and "key" in item:
        item["id"] = item.pop("key")
    item.pop("isValid", None)
    return item


def load_rules_file(path: Path) -> RuleSet:
    """Load rules from a JSON or YAML file.

    Accepts either a mapping with a ``rules`` list or a bare list of rules.
    YAML is parsed with ``yaml.safe_load``; ``.json`` files (or content that
    looks like JSON) are parsed as JSON.

    Raises:
        TypeError: When the top level is neither a mapping nor a list.
        pydantic.ValidationError: When an entry is malformed.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    looks_json = stripped.startswith("{") or stripped.startswith("[")

    if path.suffix.lower() == ".json" or (path.suffix.lower() not in {".yaml", ".yml"} and looks_json):
        data = json.loads(text)
    else:
        import yaml

        data = yaml.safe_load(text)

    if data is None:
        data = []
    if isinstance(data, dict):
        entries = data.get("rules") or []
    elif isinstance(data, list):
        entries = data
    else:
        raise TypeError("Rules file must be a mapping or a list at top-level")

    return RuleSet.model_validate({"rules": [_normalize_entry(e) for e in entries]})
