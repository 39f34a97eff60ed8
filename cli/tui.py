"""Rich TUI (scriptable) for editing replacement rules.

Renders the working list and processes a list of scripted commands, so the
same session logic can be driven from a terminal or from unit tests without a
live terminal. Commands map onto editor events:

- "draft match=<text> replace=<text> regex=<yes|no>"  -> ``DraftEdited``
- "save"                                              -> ``DraftSaved``
- "clear"                                             -> ``DraftCleared``
- "edit <id> [match=..] [replace=..] [regex=..]"      -> ``RuleEdited``
- "delete <id>" / "reset <id>" / "dup <id>"
- "event <json>"                                      -> any event by ``type``

Arguments are split with shell quoting rules, so values may contain spaces
when quoted: ``draft match="a b" replace=c``.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from core.session import EditorSession
from schemas import events as ev
from schemas.rules import EditState, WorkingRule

_TRUE = {"1", "true", "yes", "y", "on", "regex"}
_FALSE = {"0", "false", "no", "n", "off", "literal"}

_STATE_STYLE = {
    EditState.PRISTINE: "",
    EditState.DIRTY: "yellow",
    EditState.PENDING_DELETE: "red strike",
}


@dataclass
class EditResult:
    created_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_fields(args: Sequence[str]) -> dict:
    fields: dict = {}
    for arg in args:
        name, sep, value = arg.partition("=")
        if not sep:
            raise ValueError(f"expected name=value, got {arg!r}")
        name = name.strip().lower()
        if name == "match":
            fields["match"] = value
        elif name == "replace":
            fields["replace"] = value
        elif name in {"regex", "is_regex", "isregex"}:
            fields["is_regex"] = _parse_bool(value)
        else:
            raise ValueError(f"unknown field: {name}")
    return fields


def parse_command(raw: str) -> ev.EditorEvent | None:
    """Translate one scripted command into an editor event.

    Returns ``None`` for blank lines and ``#`` comments.

    Raises:
        ValueError: On unknown commands or malformed arguments.
    """
    text = raw.strip()
    if not text or text.startswith("#"):
        return None
    op, _, rest = text.partition(" ")
    op = op.lower()
    if op == "event":
        return ev.parse_event(rest)

    args = shlex.split(rest)
    if op == "draft":
        return ev.DraftEdited(**_parse_fields(args))
    if op == "save":
        return ev.DraftSaved()
    if op == "clear":
        return ev.DraftCleared()
    if op in {"edit", "delete", "reset", "dup", "duplicate"}:
        if not args:
            raise ValueError(f"{op} needs a rule id")
        rule_id = args[0]
        if op == "edit":
            return ev.RuleEdited(rule_id=rule_id, **_parse_fields(args[1:]))
        if op == "delete":
            return ev.DeleteRequested(rule_id=rule_id)
        if op == "reset":
            return ev.ResetRequested(rule_id=rule_id)
        return ev.RuleDuplicated(rule_id=rule_id)
    raise ValueError(f"unknown command: {op}")


def _visible(rules: Sequence[WorkingRule], *, show_pending: bool) -> list[WorkingRule]:
    if show_pending:
        return list(rules)
    return [r for r in rules if r.edit_state is not EditState.PENDING_DELETE]


def render_session(session: EditorSession, *, console: Console, show_pending: bool = True) -> None:
    """Print the draft slot, the working list and the commit readiness."""
    draft = session.draft
    check = draft.validation()
    console.print(
        f"Draft: match={escape(repr(draft.match))} replace={escape(repr(draft.replace))} "
        f"regex={'yes' if draft.is_regex else 'no'} "
        f"[{'green' if check.valid else 'dim'}]{'ready' if check.valid else 'incomplete'}[/]"
    )

    table = Table(title="URL Replacements")
    table.add_column("ID")
    if show_pending:
        table.add_column("State")
    table.add_column("Match")
    table.add_column("Replace")
    table.add_column("Regex")
    table.add_column("Valid")
    for rule in _visible(session.rules, show_pending=show_pending):
        valid = "yes" if rule.valid else (rule.error or "incomplete")
        row = [escape(rule.id)]
        if show_pending:
            row.append(rule.edit_state.value)
        row += [escape(rule.match), escape(rule.replace), "yes" if rule.is_regex else "no", escape(valid)]
        table.add_row(*row, style=_STATE_STYLE.get(rule.edit_state, "") if show_pending else "")
    console.print(table)

    if session.valid:
        console.print(f"[green]Ready to save {len(session.view.candidate)} rule(s).[/green]")
    else:
        console.print("[red]Fix invalid rules before saving.[/red]")


def run_editor(
    session: EditorSession,
    *,
    commands: Iterable[str] | None = None,
    console: Console | None = None,
    show_pending: bool = True,
) -> EditResult:
    """Run scripted commands against ``session``.

    A bad command or an unknown rule id is recorded in ``EditResult.errors``
    and the remaining commands still run.
    """
    result = EditResult()
    for raw in commands or []:
        try:
            event = parse_command(raw)
            if event is None:
                continue
            new_id = session.handle(event)
        except KeyError as e:
            result.errors.append(f"{raw.strip()}: unknown rule id {e.args[0]}")
            continue
        except (ValueError, ValidationError) as e:
            result.errors.append(f"{raw.strip()}: {e}")
            continue
        if new_id is not None:
            result.created_ids.append(new_id)
        elif isinstance(event, ev.DraftSaved):
            result.errors.append("save: draft is incomplete or invalid")

    if console is not None:
        for err in result.errors:
            console.print(f"[yellow]{escape(err)}[/yellow]")
        render_session(session, console=console, show_pending=show_pending)
    return result
