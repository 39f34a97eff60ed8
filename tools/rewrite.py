"""Apply committed replacement rules to a URL.

Rules are applied in list order and each rule sees the output of the previous
one. Regex rules use ``re.sub`` template syntax for the replacement
(``\\1``, ``\\g<name>``); literal rules replace every occurrence.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from schemas.rules import Rule
from tools.validator import validate_rule

logger = structlog.get_logger(__name__)


def template_error(rule: Rule) -> str | None:
    """Return the ``re`` diagnostic for a regex rule's replacement template.

    Templates (``\\9``, ``\\g<name>``) are checked against the pattern's groups
    only at substitution time; substituting into an empty string surfaces the
    error without needing a matching URL. Assumes the pattern compiles.
    """
    if not rule.is_regex:
        return None
    try:
        re.sub(rule.match, rule.replace, "")
    except re.error as e:
        return str(e)
    return None


def apply_rule(url: str, rule: Rule) -> str:
    if rule.is_regex:
        return re.sub(rule.match, rule.replace, url)
    return url.replace(rule.match, rule.replace)


def apply_replacements(url: str, rules: Iterable[Rule]) -> str:
    """Rewrite ``url`` with each rule in order.

    Invalid rules (which can only come from a hand-edited settings file) are
    skipped with a warning.
    """
    out = url
    for rule in rules:
        check = validate_rule(rule.match, rule.replace, rule.is_regex)
        if not check.valid:
            logger.warning("rule_skipped", rule_id=rule.id, problem=check.problem, error=check.error)
            continue
        try:
            out = apply_rule(out, rule)
        except re.error as e:
            # Replacement templates are only checked at substitution time
            logger.warning("rule_skipped", rule_id=rule.id, error=str(e))
    return out
