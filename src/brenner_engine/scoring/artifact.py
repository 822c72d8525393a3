"""Compiled session artifact shapes consumed by session scoring."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ArtifactItem(BaseModel):
    """Fields shared by every artifact section item."""

    model_config = ConfigDict(extra="ignore")

    id: str
    killed: bool = False
    killed_by: str | None = None
    killed_at: datetime | None = None
    kill_reason: str | None = None


class ResearchThreadItem(ArtifactItem):
    statement: str
    context: str | None = None
    why_it_matters: str | None = None


class HypothesisItem(ArtifactItem):
    name: str
    claim: str
    mechanism: str | None = None
    anchors: list[str] = Field(default_factory=list)
    third_alternative: bool = False


class PredictionItem(ArtifactItem):
    condition: str
    predictions: dict[str, str] = Field(default_factory=dict, description="Hypothesis id to predicted outcome")


class TestItem(ArtifactItem):
    __test__ = False

    name: str
    procedure: str | None = None
    discriminates: str | None = None
    expected_outcomes: dict[str, str] = Field(default_factory=dict)
    potency_check: str | None = None
    feasibility: str | None = None
    status: str | None = Field(default=None, description="untested, passed, failed, blocked or error")
    score: int | None = None


class AssumptionItem(ArtifactItem):
    name: str
    statement: str | None = None
    load: str | None = None
    test: str | None = None
    status: Literal["unchecked", "verified", "falsified"] = "unchecked"
    scale_check: bool = False
    calculation: str | None = None
    implication: str | None = None


class AnomalyItem(ArtifactItem):
    observation: str
    conflicts_with: list[str] = Field(default_factory=list)
    status: str = "active"
    resolution_plan: str | None = None


class CritiqueItem(ArtifactItem):
    attack: str
    evidence: str | None = None
    current_status: str | None = None
    real_third_alternative: bool = False


class ArtifactSections(BaseModel):
    research_thread: ResearchThreadItem | None = None
    hypothesis_slate: list[HypothesisItem] = Field(default_factory=list)
    predictions_table: list[PredictionItem] = Field(default_factory=list)
    discriminative_tests: list[TestItem] = Field(default_factory=list)
    assumption_ledger: list[AssumptionItem] = Field(default_factory=list)
    anomaly_register: list[AnomalyItem] = Field(default_factory=list)
    adversarial_critique: list[CritiqueItem] = Field(default_factory=list)


class SessionArtifact(BaseModel):
    """A session's compiled artifact."""

    model_config = ConfigDict(extra="ignore")

    session_id: str | None = None
    version: int | None = None
    sections: ArtifactSections = Field(default_factory=ArtifactSections)


class HypothesisTransitionRecord(BaseModel):
    """Flattened transition used by kill-rate scoring."""

    hypothesis_id: str
    from_state: str
    to_state: str
    triggered_by: str | None = None
    reason: str | None = None
    timestamp: datetime


class SessionData(BaseModel):
    """Everything session scoring looks at."""

    session_id: str
    research_question: str | None = None
    artifact: SessionArtifact = Field(default_factory=SessionArtifact)
    hypothesis_transitions: list[HypothesisTransitionRecord] = Field(default_factory=list)
