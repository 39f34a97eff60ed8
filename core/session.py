"""Editor session for replacement rules.

Owns the working list, the draft slot and the commit projection for one open
editor. Every action runs synchronously: the state machine computes the
rule's next state, the reconciler folds it into the working list and the
projection is refreshed before the call returns.

Closing a session without ``commit`` discards all edits; the store is only
written by ``commit`` and only when every live rule is valid.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from core import state_machine as sm
from core.draft import DraftSlot, generate_rule_id
from projections.commit_view import CommitProjection
from schemas import events as ev
from schemas.rules import CommitView, EditState, Rule, RuleSet, WorkingRule
from storage.settings_store import SettingsStore
from tools.reconciler import reconcile
from tools.validator import Validation

logger = structlog.get_logger(__name__)


class CommitBlockedError(RuntimeError):
    """Raised when a commit is attempted while a live rule is invalid."""


@dataclass
class CommitResult:
    written: int
    removed: int


class EditorSession:
    """In-memory editor over a baseline rule set.

    Args:
        baseline: Rules as last persisted, read when the editor opens.
        id_factory: Optional id generator; collisions are still checked.
    """

    def __init__(self, baseline: RuleSet, *, id_factory: Callable[[], str] | None = None) -> None:
        self._baseline: dict[str, Rule] = {r.id: r for r in baseline.rules}
        self._rules: list[WorkingRule] = [sm.from_baseline(r) for r in baseline.rules]
        self._id_factory = id_factory
        self.draft = DraftSlot()
        self._projection = CommitProjection()
        self._projection.apply(self._rules)

    @classmethod
    def open(cls, store: SettingsStore, **kwargs) -> EditorSession:
        return cls(store.read(), **kwargs)

    # -----------------
    # Read-only views
    # -----------------

    @property
    def rules(self) -> list[WorkingRule]:
        return list(self._rules)

    @property
    def view(self) -> CommitView:
        return self._projection.current_view()

    @property
    def valid(self) -> bool:
        return self.view.valid

    def get(self, rule_id: str) -> WorkingRule:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def baseline_for(self, rule_id: str) -> Rule | None:
        return self._baseline.get(rule_id)

    def has_pending_changes(self) -> bool:
        if any(r.edit_state is not EditState.PRISTINE for r in self._rules):
            return True
        return [r.id for r in self._rules] != list(self._baseline)

    # -----------------
    # Rule actions
    # -----------------

    def _fold(self, change: WorkingRule) -> None:
        self._rules = reconcile(self._rules, change)
        self._projection.apply(self._rules)

    def edit(
        self,
        rule_id: str,
        *,
        match: str | None = None,
        replace: str | None = None,
        is_regex: bool | None = None,
    ) -> WorkingRule:
        rule = self.get(rule_id)
        changed = sm.on_edit(
            rule, self.baseline_for(rule_id), match=match, replace=replace, is_regex=is_regex
        )
        self._fold(changed)
        return changed

    def delete(self, rule_id: str) -> None:
        rule = self.get(rule_id)
        self._fold(sm.on_delete(rule, self.baseline_for(rule_id)))
        logger.debug("rule_delete_requested", rule_id=rule_id, new_entry=rule_id not in self._baseline)

    def reset(self, rule_id: str) -> WorkingRule | None:
        rule = self.get(rule_id)
        restored = sm.on_reset(rule, self.baseline_for(rule_id))
        if restored is None:
            self._rules = [r for r in self._rules if r.id != rule_id]
            self._projection.apply(self._rules)
            return None
        self._fold(restored)
        return restored

    def duplicate(self, rule_id: str) -> str:
        """Copy a rule's fields under a fresh id; the copy is always ``dirty``."""
        source = self.get(rule_id)
        copy = WorkingRule(
            id=generate_rule_id({r.id for r in self._rules} | set(self._baseline), self._id_factory),
            match=source.match,
            replace=source.replace,
            is_regex=source.is_regex,
            edit_state=EditState.DIRTY,
            new_entry=True,
        )
        self._fold(sm.revalidate(copy))
        return copy.id

    # -----------------
    # Draft slot
    # -----------------

    def edit_draft(
        self,
        *,
        match: str | None = None,
        replace: str | None = None,
        is_regex: bool | None = None,
    ) -> Validation:
        return self.draft.edit(match=match, replace=replace, is_regex=is_regex)

    def clear_draft(self) -> None:
        self.draft.clear()

    def save_draft(self) -> str | None:
        """Promote the draft into the working list.

        Returns:
            The new rule id, or ``None`` when the draft is invalid.
        """
        taken = {r.id for r in self._rules} | set(self._baseline)
        rule = self.draft.save(taken, self._id_factory)
        if rule is None:
            return None
        self._fold(rule)
        return rule.id

    # -----------------
    # Events and commit
    # -----------------

    def handle(self, event: ev.EditorEvent) -> str | None:
        """Apply one editor event; returns a new rule id when one is created."""
        if isinstance(event, ev.RuleEdited):
            self.edit(event.rule_id, match=event.match, replace=event.replace, is_regex=event.is_regex)
        elif isinstance(event, ev.DeleteRequested):
            self.delete(event.rule_id)
        elif isinstance(event, ev.ResetRequested):
            self.reset(event.rule_id)
        elif isinstance(event, ev.RuleDuplicated):
            return self.duplicate(event.rule_id)
        elif isinstance(event, ev.DraftEdited):
            self.edit_draft(match=event.match, replace=event.replace, is_regex=event.is_regex)
        elif isinstance(event, ev.DraftSaved):
            return self.save_draft()
        elif isinstance(event, ev.DraftCleared):
            self.clear_draft()
        else:
            raise TypeError(f"unsupported editor event: {type(event).__name__}")
        return None

    def commit(self, store: SettingsStore) -> CommitResult:
        """Persist the commit candidate and rebase the session on it.

        Raises:
            CommitBlockedError: When any rule that is not pending delete is
                invalid. Nothing is written in that case.
        """
        view = self.view
        if not view.valid:
            invalid = [r.id for r in self._rules if r.edit_state is not EditState.PENDING_DELETE and not r.valid]
            logger.info("commit_blocked", invalid=invalid)
            raise CommitBlockedError(f"invalid rules: {', '.join(invalid)}")

        store.write(view.candidate)
        removed = sum(1 for r in self._rules if r.edit_state is EditState.PENDING_DELETE)
        settled = [sm.on_commit(r) for r in self._rules]
        self._rules = [r for r in settled if r is not None]
        self._baseline = {r.id: r for r in view.candidate}
        self._projection.apply(self._rules)
        logger.info("rules_committed", count=len(view.candidate), removed=removed)
        return CommitResult(written=len(view.candidate), removed=removed)
