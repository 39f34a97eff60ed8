"""Rule validator.

Pure check of a rule's fields. It is called on every field mutation, so it
has no side effects and does not log.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class RuleProblem(str, Enum):
    INVALID_REGEX = "invalid_regex"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class Validation:
    valid: bool
    error: str | None = None
    problem: RuleProblem | None = None


def validate_rule(match: str | None, replace: str | None, is_regex: bool) -> Validation:
    """Validate rule fields.

    Args:
        match: Literal substring, or a pattern when ``is_regex`` is set.
        replace: Replacement text.
        is_regex: Whether ``match`` is a regular expression.

    Returns:
        ``Validation``. ``error`` carries the ``re`` diagnostic verbatim and is
        only set when a regex fails to compile; an empty field is reported as
        ``INCOMPLETE`` without a message.
    """
    error: str | None = None
    if is_regex and match:
        try:
            re.compile(match)
        # Huge repeat counts overflow and deep nesting exhausts the parser stack
        except (re.error, OverflowError, RecursionError) as e:
            error = str(e) or type(e).__name__
    if error is not None:
        return Validation(valid=False, error=error, problem=RuleProblem.INVALID_REGEX)
    if not match or not replace:
        return Validation(valid=False, problem=RuleProblem.INCOMPLETE)
    return Validation(valid=True)
