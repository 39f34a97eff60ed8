"""Rule set reconciler.

Folds one incoming rule change into the working list. Pure function operating
on in-memory rules: inputs are never mutated, the output is a new list.
"""

from __future__ import annotations

from collections.abc import Iterable

from schemas.rules import EditState, WorkingRule

_OVERWRITTEN = ("match", "replace", "is_regex", "edit_state", "valid", "error", "new_entry")


def _is_tombstone(rule: WorkingRule) -> bool:
    return rule.new_entry and rule.edit_state is EditState.PENDING_DELETE


def reconcile(working: Iterable[WorkingRule], change: WorkingRule) -> list[WorkingRule]:
    """Apply ``change`` to ``working`` and return the new working list.

    - A new entry whose id is not present is appended.
    - Otherwise the rule with the same id has its fields overwritten by the
      change (last writer wins). Unknown ids that are not new entries are
      ignored.
    - Rules that were never saved and are pending delete are dropped.

    Re-applying the same change yields the same list.

    Args:
        working: Current working list, in application order.
        change: Incoming rule state keyed by ``id``.

    Returns:
        New list of rules.
    """
    if change.edit_state is EditState.DRAFT:
        raise ValueError("draft rules cannot enter the working list")

    rules = [r.model_copy() for r in working]
    if change.new_entry and all(r.id != change.id for r in rules):
        rules.append(change.model_copy())
    else:
        update = {name: getattr(change, name) for name in _OVERWRITTEN}
        rules = [r.model_copy(update=update) if r.id == change.id else r for r in rules]

    return [r for r in rules if not _is_tombstone(r)]
