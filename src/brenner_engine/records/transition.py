"""Immutable record of one hypothesis lifecycle change."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import ConfigDict, Field

from brenner_engine.records.base import RecordModel, now_utc
from brenner_engine.records.hypothesis import HypothesisState
from brenner_engine.records.ids import HYPOTHESIS_ID_PATTERN


class TransitionTrigger(str, Enum):
    """Events that move a hypothesis between states."""

    ACTIVATE = "activate"
    REFUTE = "refute"
    CONFIRM = "confirm"
    SUPERSEDE = "supersede"
    DEFER = "defer"
    REACTIVATE = "reactivate"


class Transition(RecordModel):
    """One append-only lifecycle transition."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique transition id")
    hypothesis_id: str = Field(..., pattern=HYPOTHESIS_ID_PATTERN)
    from_state: HypothesisState
    to_state: HypothesisState
    trigger: TransitionTrigger
    triggered_by: str | None = Field(default=None, description="Agent, person or subsystem responsible")
    test_result_id: str | None = Field(default=None, description="Test result justifying refute/confirm")
    child_hypothesis_id: str | None = Field(default=None, pattern=HYPOTHESIS_ID_PATTERN)
    reason: str | None = Field(default=None)
    session_id: str | None = Field(default=None)
    timestamp: datetime = Field(default_factory=now_utc)
