"""Shared base model for engine records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from brenner_engine.records.ids import ANCHOR_PATTERN

Anchor = Annotated[str, Field(pattern=ANCHOR_PATTERN)]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RecordModel(BaseModel):
    """Base for records exchanged with the enclosing application.

    Fields are snake_case in Python and camelCase on the wire; both spellings
    are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict using wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
