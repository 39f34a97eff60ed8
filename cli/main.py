"""urlrewrite CLI entrypoint.

Commands:
- list: show persisted replacement rules
- add / edit / delete / duplicate: single edits, saved when the set is valid
- session: scripted editor session (dry-run unless --yes)
- import: load rules from a JSON/YAML file
- check: validate persisted rules
- rewrite: apply persisted rules to a URL

Every command opens an editor session on the store, applies its edits, and
only writes back through the session's commit, which refuses invalid sets.
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.tui import render_session, run_editor
from core.log_config import configure_logging
from core.session import CommitBlockedError, EditorSession
from storage.settings_store import JsonSettingsStore, load_rules_file
from tools.rewrite import apply_replacements, template_error
from tools.validator import validate_rule

app = typer.Typer(
    add_completion=False, help="urlrewrite: URL replacement rules applied before fetching embeds"
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs on stderr"),
) -> None:
    configure_logging(verbose)


def default_store_path() -> Path:
    """Return the default path to the replacement settings file.

    Returns:
        Path: Path to `~/.urlrewrite/replacements.json`.
    """
    base = Path.home() / ".urlrewrite"
    base.mkdir(parents=True, exist_ok=True)
    return base / "replacements.json"


def _store(path: Path | None) -> JsonSettingsStore:
    return JsonSettingsStore(path or default_store_path())


def _commit(session: EditorSession, store: JsonSettingsStore) -> None:
    try:
        result = session.commit(store)
    except CommitBlockedError as e:
        console.print(f"[red]Not saved: {escape(str(e))}[/red]")
        raise typer.Exit(code=2)
    console.log(f"Saved {result.written} rule(s), removed {result.removed}")


def _get_or_exit(session: EditorSession, rule_id: str) -> None:
    try:
        session.get(rule_id)
    except KeyError:
        console.print(f"[red]No rule with id {escape(rule_id)}[/red]")
        raise typer.Exit(code=1)


@app.command("list")
def list_rules(
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """List persisted replacement rules in the order they are applied."""
    rules = _store(store).read()
    table = Table(title="URL Replacements")
    table.add_column("ID")
    table.add_column("Match")
    table.add_column("Replace")
    table.add_column("Regex")
    for rule in rules.rules:
        table.add_row(
            escape(rule.id), escape(rule.match), escape(rule.replace), "yes" if rule.is_regex else "no"
        )
    console.print(table)


@app.command()
def add(
    match: str = typer.Argument(..., help="Text or pattern to match"),
    replace: str = typer.Argument(..., help="Replacement text"),
    regex: bool = typer.Option(False, "--regex", help="Treat MATCH as a regular expression"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Add a rule at the end of the list."""
    st = _store(store)
    session = EditorSession.open(st)
    check = session.edit_draft(match=match, replace=replace, is_regex=regex)
    new_id = session.save_draft()
    if new_id is None:
        detail = check.error or "match and replace must not be empty"
        console.print(f"[red]Invalid rule: {escape(detail)}[/red]")
        raise typer.Exit(code=2)
    _commit(session, st)
    console.print(new_id)


@app.command()
def edit(
    rule_id: str = typer.Argument(..., help="Rule id"),
    match: str | None = typer.Option(None, "--match"),
    replace: str | None = typer.Option(None, "--replace"),
    regex: bool | None = typer.Option(None, "--regex/--literal"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Change fields of an existing rule."""
    st = _store(store)
    session = EditorSession.open(st)
    _get_or_exit(session, rule_id)
    rule = session.edit(rule_id, match=match, replace=replace, is_regex=regex)
    if rule.error:
        console.print(f"[red]{escape(rule.error)}[/red]")
    _commit(session, st)


@app.command()
def delete(
    rule_id: str = typer.Argument(..., help="Rule id"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Remove a rule."""
    st = _store(store)
    session = EditorSession.open(st)
    _get_or_exit(session, rule_id)
    session.delete(rule_id)
    _commit(session, st)


@app.command()
def duplicate(
    rule_id: str = typer.Argument(..., help="Rule id"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Copy a rule under a new id at the end of the list."""
    st = _store(store)
    session = EditorSession.open(st)
    _get_or_exit(session, rule_id)
    new_id = session.duplicate(rule_id)
    _commit(session, st)
    console.print(new_id)


@app.command()
def session(
    script: Path | None = typer.Option(
        None, "--script", exists=True, readable=True, help="File with one command per line"
    ),
    cmd: list[str] | None = typer.Option(None, "--cmd", help="Inline command (repeatable)"),
    yes: bool = typer.Option(False, "--yes", help="Save the result; otherwise dry-run only"),
    hide_pending: bool = typer.Option(False, "--hide-pending", help="Hide rules pending delete"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Run a scripted editor session and show the resulting rules.

    Without --yes nothing is written.
    """
    st = _store(store)
    editor = EditorSession.open(st)
    commands: list[str] = []
    if script is not None:
        commands.extend(script.read_text(encoding="utf-8").splitlines())
    commands.extend(cmd or [])

    run_editor(editor, commands=commands, console=console, show_pending=not hide_pending)

    if not yes:
        console.print("[yellow]Dry-run: pass --yes to save.[/yellow]")
        return
    _commit(editor, st)


@app.command("import")
def import_rules(
    path: Path = typer.Argument(..., exists=True, readable=True, resolve_path=True),
    replace_all: bool = typer.Option(
        False, "--replace-all", help="Delete existing rules instead of appending"
    ),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Append rules from a JSON or YAML file; imported rules get fresh ids."""
    st = _store(store)
    editor = EditorSession.open(st)
    try:
        incoming = load_rules_file(path)
    except (ValidationError, ValueError, TypeError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot import {escape(str(path))}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    if replace_all:
        for rule in editor.rules:
            editor.delete(rule.id)
    for rule in incoming.rules:
        editor.edit_draft(match=rule.match, replace=rule.replace, is_regex=rule.is_regex)
        if editor.save_draft() is None:
            console.print(f"[yellow]Skipped invalid rule {escape(rule.id)}[/yellow]")
            editor.clear_draft()
    render_session(editor, console=console)
    _commit(editor, st)


@app.command()
def check(
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Validate persisted rules; exits 1 when any rule is invalid."""
    rules = _store(store).read()
    bad = 0
    for rule in rules.rules:
        result = validate_rule(rule.match, rule.replace, rule.is_regex)
        if result.valid:
            detail = template_error(rule)
        else:
            detail = result.error or "empty match or replace"
        if detail is not None:
            bad += 1
            console.print(f"[red]{escape(rule.id)}[/red]: {escape(detail)}")
    if bad:
        raise typer.Exit(code=1)
    console.print(f"[green]{len(rules.rules)} rule(s) OK[/green]")


@app.command()
def rewrite(
    url: str = typer.Argument(..., help="URL to rewrite"),
    store: Path | None = typer.Option(None, "--store", help="Path to replacements JSON"),
) -> None:
    """Print URL after applying the persisted rules in order."""
    rules = _store(store).read()
    typer.echo(apply_replacements(url, rules.rules))


if __name__ == "__main__":  # pragma: no cover
    app()
