"""Draft slot and rule id generation."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Collection
from dataclasses import dataclass

import structlog

from schemas.rules import EditState, WorkingRule
from tools.validator import Validation, validate_rule

logger = structlog.get_logger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 6
MAX_ID_ATTEMPTS = 64


class KeyCollisionError(RuntimeError):
    """Raised when no unused rule id could be generated."""


def random_rule_id() -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def generate_rule_id(
    existing: Collection[str], factory: Callable[[], str] | None = None
) -> str:
    """Return an id that is not in ``existing``.

    Generated ids are short, so collisions are checked against the current key
    set and generation is retried.

    Raises:
        KeyCollisionError: After ``MAX_ID_ATTEMPTS`` colliding candidates.
    """
    make = factory or random_rule_id
    for attempt in range(MAX_ID_ATTEMPTS):
        candidate = make()
        if candidate and candidate not in existing:
            return candidate
        logger.debug("rule_id_collision", candidate=candidate, attempt=attempt)
    raise KeyCollisionError(f"no free rule id after {MAX_ID_ATTEMPTS} attempts")


@dataclass
class DraftSlot:
    """The always-present editor used to create new rules.

    Its fields live outside the working list until a valid save promotes them.
    """

    match: str = ""
    replace: str = ""
    is_regex: bool = False

    def edit(
        self,
        *,
        match: str | None = None,
        replace: str | None = None,
        is_regex: bool | None = None,
    ) -> Validation:
        if match is not None:
            self.match = match
        if replace is not None:
            self.replace = replace
        if is_regex is not None:
            self.is_regex = is_regex
        return self.validation()

    def validation(self) -> Validation:
        return validate_rule(self.match, self.replace, self.is_regex)

    def clear(self) -> None:
        self.match = ""
        self.replace = ""
        self.is_regex = False

    def save(
        self, existing: Collection[str], factory: Callable[[], str] | None = None
    ) -> WorkingRule | None:
        """Promote the draft to a new ``dirty`` rule and clear the slot.

        Returns:
            The new rule, or ``None`` when the draft is invalid (the slot is
            left untouched).
        """
        check = self.validation()
        if not check.valid:
            return None
        rule = WorkingRule(
            id=generate_rule_id(existing, factory),
            match=self.match,
            replace=self.replace,
            is_regex=self.is_regex,
            edit_state=EditState.DIRTY,
            valid=True,
            new_entry=True,
        )
        self.clear()
        return rule
