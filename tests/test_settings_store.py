from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from schemas.rules import Rule
from storage.settings_store import JsonSettingsStore, load_rules_file


def test_missing_file_reads_as_empty(store_path: Path) -> None:
    assert JsonSettingsStore(store_path).read().rules == []


def test_write_is_atomic_and_uses_alias(store_path: Path) -> None:
    store = JsonSettingsStore(store_path)
    store.write([Rule(id="k1", match="a", replace="b", is_regex=True)])
    assert not store_path.with_suffix(".json.tmp").exists()
    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert data["rules"][0]["isRegex"] is True
    assert store.read().rules[0].is_regex is True


def test_write_rejects_duplicate_ids(store_path: Path) -> None:
    store = JsonSettingsStore(store_path)
    with pytest.raises(ValidationError):
        store.write([Rule(id="k1", match="a", replace="b"), Rule(id="k1", match="c", replace="d")])
    assert not store_path.exists()


def test_malformed_settings_raise(store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text('{"rules": [{"id": "k1"}]}', encoding="utf-8")
    with pytest.raises(ValidationError):
        JsonSettingsStore(store_path).read()


def test_load_json_list_with_legacy_keys(tmp_path: Path) -> None:
    f = tmp_path / "old.json"
    f.write_text(
        json.dumps(
            [
                {"key": "abc12", "match": "a", "replace": "b", "isRegex": False, "isValid": True},
                {"id": "k2", "match": "^x", "replace": "y", "isRegex": True},
            ]
        ),
        encoding="utf-8",
    )
    rs = load_rules_file(f)
    assert [r.id for r in rs.rules] == ["abc12", "k2"]
    assert rs.rules[1].is_regex is True


def test_load_yaml_mapping(tmp_path: Path) -> None:
    f = tmp_path / "rules.yaml"
    f.write_text(
        """
rules:
  - {id: r1, match: "twitter.com", replace: "fxtwitter.com", isRegex: false}
  - {id: r2, match: "^http://", replace: "https://", isRegex: true}
        """.strip(),
        encoding="utf-8",
    )
    rs = load_rules_file(f)
    assert [r.match for r in rs.rules] == ["twitter.com", "^http://"]


def test_load_rejects_scalar_top_level(tmp_path: Path) -> None:
    f = tmp_path / "rules.yaml"
    f.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_rules_file(f)
