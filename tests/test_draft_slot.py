from __future__ import annotations

import pytest

from core.draft import (
    ID_ALPHABET,
    ID_LENGTH,
    MAX_ID_ATTEMPTS,
    DraftSlot,
    KeyCollisionError,
    generate_rule_id,
    random_rule_id,
)
from schemas.rules import EditState


def test_save_promotes_valid_draft_and_clears_fields(seq_ids) -> None:
    draft = DraftSlot()
    draft.edit(match="foo", replace="bar")
    rule = draft.save({"k1"}, seq_ids())
    assert rule is not None
    assert (rule.id, rule.match, rule.replace, rule.is_regex) == ("n1", "foo", "bar", False)
    assert rule.edit_state is EditState.DIRTY
    assert rule.new_entry is True
    assert rule.valid is True
    assert (draft.match, draft.replace, draft.is_regex) == ("", "", False)


def test_save_is_noop_when_invalid(seq_ids) -> None:
    draft = DraftSlot()
    check = draft.edit(match="(", replace="x", is_regex=True)
    assert check.valid is False
    assert draft.save(set(), seq_ids()) is None
    # Fields are kept so the user can fix them
    assert (draft.match, draft.replace, draft.is_regex) == ("(", "x", True)

    draft.edit(match="foo", replace="")
    assert draft.save(set(), seq_ids()) is None


def test_generate_rule_id_retries_on_collision(seq_ids) -> None:
    factory = seq_ids(["k1", "k2", "k1", "fresh"])
    assert generate_rule_id({"k1", "k2"}, factory) == "fresh"


def test_generate_rule_id_gives_up_after_max_attempts() -> None:
    with pytest.raises(KeyCollisionError):
        generate_rule_id({"same"}, lambda: "same")


def test_generate_rule_id_rejects_empty_candidates(seq_ids) -> None:
    factory = seq_ids(["", "ok"])
    assert generate_rule_id(set(), factory) == "ok"


def test_random_rule_id_shape() -> None:
    rid = random_rule_id()
    assert len(rid) == ID_LENGTH
    assert set(rid) <= set(ID_ALPHABET)


def test_many_saves_never_reuse_ids() -> None:
    # Tiny alphabet forces collisions; generation must still stay unique
    pool = iter(["a", "b", "a", "c", "b", "a", "d"] + ["e"] * MAX_ID_ATTEMPTS)
    taken: set[str] = set()
    draft = DraftSlot()
    for _ in range(4):
        draft.edit(match="x", replace="y")
        rule = draft.save(taken, lambda: next(pool))
        assert rule is not None
        assert rule.id not in taken
        taken.add(rule.id)
    assert taken == {"a", "b", "c", "d"}
