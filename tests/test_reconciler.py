from __future__ import annotations

import pytest

from schemas.rules import EditState, WorkingRule
from tools.reconciler import reconcile


def _rule(rid: str, state: EditState = EditState.PRISTINE, *, new: bool = False, **kw) -> WorkingRule:
    fields = {"match": f"m-{rid}", "replace": f"r-{rid}", "is_regex": False, "valid": True}
    fields.update(kw)
    return WorkingRule(id=rid, edit_state=state, new_entry=new, **fields)


def _working() -> list[WorkingRule]:
    return [_rule("a"), _rule("b", EditState.DIRTY), _rule("c", EditState.DIRTY, new=True)]


CHANGES = [
    _rule("d", EditState.DIRTY, new=True),
    _rule("b", EditState.DIRTY, match="changed"),
    _rule("a", EditState.PENDING_DELETE),
    _rule("c", EditState.PENDING_DELETE, new=True),
    _rule("zz", EditState.DIRTY),
    _rule("a", EditState.DIRTY, new=True, match="again"),
]


def test_new_entry_is_appended_in_order() -> None:
    out = reconcile(_working(), _rule("d", EditState.DIRTY, new=True))
    assert [r.id for r in out] == ["a", "b", "c", "d"]


def test_existing_rule_is_overwritten_not_merged() -> None:
    change = _rule("b", EditState.PRISTINE, match="x", replace="y", is_regex=True, valid=False)
    out = reconcile(_working(), change)
    b = next(r for r in out if r.id == "b")
    assert (b.match, b.replace, b.is_regex, b.edit_state, b.valid) == (
        "x",
        "y",
        True,
        EditState.PRISTINE,
        False,
    )
    assert [r.id for r in out] == ["a", "b", "c"]


def test_new_entry_with_known_id_updates_in_place() -> None:
    out = reconcile(_working(), _rule("a", EditState.DIRTY, new=True, match="again"))
    assert [r.id for r in out] == ["a", "b", "c"]
    assert out[0].match == "again"


def test_unknown_id_without_new_entry_is_ignored() -> None:
    before = _working()
    assert reconcile(before, _rule("zz", EditState.DIRTY)) == before


def test_tombstone_never_survives() -> None:
    out = reconcile(_working(), _rule("c", EditState.PENDING_DELETE, new=True))
    assert [r.id for r in out] == ["a", "b"]

    # Appending an already-deleted new entry also yields nothing
    out = reconcile(_working(), _rule("e", EditState.PENDING_DELETE, new=True))
    assert "e" not in {r.id for r in out}


def test_saved_rule_pending_delete_is_kept_for_undelete() -> None:
    out = reconcile(_working(), _rule("a", EditState.PENDING_DELETE))
    a = next(r for r in out if r.id == "a")
    assert a.edit_state is EditState.PENDING_DELETE


@pytest.mark.parametrize("change", CHANGES, ids=lambda c: f"{c.id}-{c.edit_state.value}")
def test_reconcile_is_idempotent(change: WorkingRule) -> None:
    once = reconcile(_working(), change)
    twice = reconcile(once, change)
    assert twice == once
    assert not any(r.new_entry and r.edit_state is EditState.PENDING_DELETE for r in once)


def test_inputs_are_not_mutated() -> None:
    before = _working()
    snapshot = [r.model_copy() for r in before]
    reconcile(before, _rule("b", EditState.DIRTY, match="changed"))
    assert before == snapshot


def test_draft_change_is_rejected() -> None:
    with pytest.raises(ValueError):
        reconcile(_working(), _rule("d", EditState.DRAFT, new=True))
