"""Commit projection.

Derives the value to persist from the working list: pending deletions are
removed and bookkeeping fields are stripped. The aggregate validity flag tells
the host form whether it may confirm.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from schemas.rules import CommitView, EditState, WorkingRule


def project(working: Iterable[WorkingRule]) -> CommitView:
    """Return the commit candidate and aggregate validity for ``working``."""
    live = [r for r in working if r.edit_state is not EditState.PENDING_DELETE]
    return CommitView(
        candidate=[r.to_rule() for r in live],
        valid=all(r.valid for r in live),
    )


@dataclass
class CommitProjection:
    """Materialized commit view, recomputed on every working list change."""

    view: CommitView = field(default_factory=CommitView)
    generation: int = 0

    def apply(self, working: Iterable[WorkingRule]) -> None:
        self.view = project(working)
        self.generation += 1

    def current_view(self) -> CommitView:
        return self.view
