"""Rule schemas and JSON helpers."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T", bound="_JsonMixin")


class _JsonMixin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls: type[T], data: str) -> T:
        return cls.model_validate_json(data)


class EditState(str, Enum):
    PRISTINE = "pristine"
    DIRTY = "dirty"
    PENDING_DELETE = "pending_delete"
    DRAFT = "draft"


class Rule(_JsonMixin):
    """One rewrite instruction, in the shape that gets persisted."""

    id: str
    match: str
    replace: str
    is_regex: bool = Field(default=False, alias="isRegex")

    def same_fields(self, other: Rule | None) -> bool:
        if other is None:
            return False
        return (self.match, self.replace, self.is_regex) == (
            other.match,
            other.replace,
            other.is_regex,
        )


class WorkingRule(Rule):
    """A rule under edit, carrying bookkeeping that is never persisted.

    Attributes:
        edit_state: Pending action for this rule.
        valid: Result of the last validation of the current fields.
        error: Regex diagnostic when the match pattern does not compile.
        new_entry: True when the id is absent from the baseline.
    """

    edit_state: EditState = EditState.PRISTINE
    valid: bool = False
    error: str | None = None
    new_entry: bool = False

    def to_rule(self) -> Rule:
        return Rule(id=self.id, match=self.match, replace=self.replace, is_regex=self.is_regex)


class RuleSet(_JsonMixin):
    rules: list[Rule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> RuleSet:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return self

    def get(self, rule_id: str) -> Rule | None:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None


class CommitView(_JsonMixin):
    candidate: list[Rule] = Field(default_factory=list)
    valid: bool = True
