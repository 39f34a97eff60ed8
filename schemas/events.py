"""Pydantic models for editor actions.

Each user action on the editor (a keystroke in a field, a click on delete,
reset, duplicate or save) is described by one of these models with a stable
``type`` field. ``EditorSession.handle`` applies them synchronously.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class _JsonMixin(BaseModel):
    """Common JSON helpers for schemas.

    Uses Pydantic v2 ``model_dump_json`` / ``model_validate_json``.
    """

    def to_json(self) -> str:
        """Serialize the model to a JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str):  # type: ignore[override]
        """Deserialize a JSON string into the model type."""
        return cls.model_validate_json(data)


class RuleEdited(_JsonMixin):
    type: Literal["RuleEdited"] = "RuleEdited"
    rule_id: str
    # Fields left as None keep their current value
    match: Optional[str] = None
    replace: Optional[str] = None
    is_regex: Optional[bool] = None


class DeleteRequested(_JsonMixin):
    type: Literal["DeleteRequested"] = "DeleteRequested"
    rule_id: str


class ResetRequested(_JsonMixin):
    type: Literal["ResetRequested"] = "ResetRequested"
    rule_id: str


class RuleDuplicated(_JsonMixin):
    type: Literal["RuleDuplicated"] = "RuleDuplicated"
    rule_id: str


class DraftEdited(_JsonMixin):
    type: Literal["DraftEdited"] = "DraftEdited"
    match: Optional[str] = None
    replace: Optional[str] = None
    is_regex: Optional[bool] = None


class DraftSaved(_JsonMixin):
    type: Literal["DraftSaved"] = "DraftSaved"


class DraftCleared(_JsonMixin):
    type: Literal["DraftCleared"] = "DraftCleared"


EditorEvent = Annotated[
    Union[
        RuleEdited,
        DeleteRequested,
        ResetRequested,
        RuleDuplicated,
        DraftEdited,
        DraftSaved,
        DraftCleared,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[EditorEvent] = TypeAdapter(EditorEvent)


def parse_event(data: str | dict) -> EditorEvent:
    """Parse an editor event from JSON text or a mapping using its ``type``."""
    if isinstance(data, str):
        return _EVENT_ADAPTER.validate_json(data)
    return _EVENT_ADAPTER.validate_python(data)
