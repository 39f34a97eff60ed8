"""Per-rule edit state transitions.

Every function here takes the current rule and its baseline record (``None``
when the rule was never saved) and returns the rule's next state. Validity is
recomputed on every field change so no caller can observe a stale flag.
"""

from __future__ import annotations

from schemas.rules import EditState, Rule, WorkingRule
from tools.validator import validate_rule


class InvalidTransitionError(ValueError):
    """Raised when an action is requested that the rule's state does not allow."""


def _require_not_draft(rule: WorkingRule, action: str) -> None:
    if rule.edit_state is EditState.DRAFT:
        raise InvalidTransitionError(f"cannot {action} a draft rule: {rule.id}")


def revalidate(rule: WorkingRule) -> WorkingRule:
    check = validate_rule(rule.match, rule.replace, rule.is_regex)
    return rule.model_copy(update={"valid": check.valid, "error": check.error})


def on_edit(
    rule: WorkingRule,
    baseline: Rule | None,
    *,
    match: str | None = None,
    replace: str | None = None,
    is_regex: bool | None = None,
) -> WorkingRule:
    """Apply a field edit.

    The rule becomes ``dirty`` when its fields differ from the baseline and
    ``pristine`` when they match it again. A rule pending delete stays pending
    delete; only reset clears the flag.
    """
    _require_not_draft(rule, "edit")
    update: dict = {}
    if match is not None:
        update["match"] = match
    if replace is not None:
        update["replace"] = replace
    if is_regex is not None:
        update["is_regex"] = is_regex
    edited = rule.model_copy(update=update)

    if edited.edit_state is not EditState.PENDING_DELETE:
        state = EditState.PRISTINE if edited.same_fields(baseline) else EditState.DIRTY
        edited = edited.model_copy(update={"edit_state": state})
    return revalidate(edited)


def on_delete(rule: WorkingRule, baseline: Rule | None) -> WorkingRule:
    _require_not_draft(rule, "delete")
    return rule.model_copy(
        update={"edit_state": EditState.PENDING_DELETE, "new_entry": baseline is None}
    )


def on_reset(rule: WorkingRule, baseline: Rule | None) -> WorkingRule | None:
    """Restore the baseline fields and clear any pending action.

    Returns:
        The restored rule, or ``None`` when the rule has no baseline record and
        must leave the working list.
    """
    _require_not_draft(rule, "reset")
    if baseline is None:
        return None
    restored = rule.model_copy(
        update={
            "match": baseline.match,
            "replace": baseline.replace,
            "is_regex": baseline.is_regex,
            "edit_state": EditState.PRISTINE,
            "new_entry": False,
        }
    )
    return revalidate(restored)


def on_commit(rule: WorkingRule) -> WorkingRule | None:
    """Settle a rule after its set was persisted; deleted rules are dropped."""
    if rule.edit_state is EditState.PENDING_DELETE:
        return None
    _require_not_draft(rule, "commit")
    return rule.model_copy(update={"edit_state": EditState.PRISTINE, "new_entry": False})


def from_baseline(rule: Rule) -> WorkingRule:
    """Build the pristine working copy of a persisted rule."""
    working = WorkingRule(
        id=rule.id,
        match=rule.match,
        replace=rule.replace,
        is_regex=rule.is_regex,
        edit_state=EditState.PRISTINE,
    )
    return revalidate(working)
