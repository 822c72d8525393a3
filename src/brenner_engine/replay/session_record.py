"""
Session records for replay and verification.

A session record captures what went into a session (kickoff, evidence,
agent roster, protocol versions), the hashed message trace, and what came
out. Message bodies are never stored, only their SHA-256 digests.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from brenner_engine.records.base import now_utc
from brenner_engine.records.ids import RECORD_ID_PATTERN
from brenner_engine.records.validator import format_validation_errors
from brenner_engine.scoring.artifact import SessionData
from brenner_engine.scoring.dimensions import SessionDimensionScore
from brenner_engine.scoring.scorecard import ContributorRole

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "0.1"
DEFAULT_PROTOCOL_VERSION = "v0.1"


class MessageType(str, Enum):
    KICKOFF = "KICKOFF"
    DELTA = "DELTA"
    CRITIQUE = "CRITIQUE"
    ACK = "ACK"
    EVIDENCE = "EVIDENCE"
    RESULT = "RESULT"
    ADMIN = "ADMIN"
    COMPILE = "COMPILE"
    PUBLISH = "PUBLISH"


class EvidenceType(str, Enum):
    PAPER = "paper"
    PREPRINT = "preprint"
    DATASET = "dataset"
    EXPERIMENT = "experiment"
    OBSERVATION = "observation"
    PRIOR_SESSION = "prior_session"
    EXPERT_OPINION = "expert_opinion"
    CODE_ARTIFACT = "code_artifact"


class ReplayMode(str, Enum):
    VERIFICATION = "verification"
    COMPARISON = "comparison"
    TRACE = "trace"


class DivergenceSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class OperatorSelection(BaseModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    forbidden: list[str] = Field(default_factory=list)


class KickoffInput(BaseModel):
    thread_id: str = Field(..., min_length=1, description="Global join key")
    question: str | None = None
    excerpt: str | None = None
    theme: str | None = None
    domain: str | None = None
    operator_selection: OperatorSelection | None = None
    kickoff_body_md: str | None = None


class EvidenceRecordSummary(BaseModel):
    id: str
    type: EvidenceType
    source: str
    excerpt_count: int = Field(..., ge=0)
    content_hash: str | None = None


class AgentRosterEntry(BaseModel):
    agent_name: str = Field(..., min_length=1)
    role: ContributorRole
    program: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    model_version: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)


class ProtocolVersions(BaseModel):
    role_prompts: str | None = None
    delta_format: str = DEFAULT_PROTOCOL_VERSION
    artifact_schema: str = DEFAULT_PROTOCOL_VERSION
    evaluation_rubric: str | None = None
    evidence_pack: str | None = None


class SessionInputs(BaseModel):
    kickoff: KickoffInput
    external_evidence: list[EvidenceRecordSummary] = Field(default_factory=list)
    agent_roster: list[AgentRosterEntry] = Field(default_factory=list)
    protocol_versions: ProtocolVersions = Field(default_factory=ProtocolVersions)


class TraceMessage(BaseModel):
    """One hashed message in a session trace."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int | None = Field(default=None, gt=0)
    timestamp: datetime
    from_: str = Field(..., alias="from", min_length=1)
    type: MessageType
    content_hash: str
    content_length: int = Field(..., ge=0)
    subject: str | None = None
    acknowledged: bool = False


class TraceRound(BaseModel):
    round_number: int = Field(..., ge=0)
    started_at: datetime
    ended_at: datetime | None = None
    messages: list[TraceMessage] = Field(default_factory=list)
    compiled_artifact_hash: str | None = None
    duration_ms: int | None = Field(default=None, ge=0)


class SessionTrace(BaseModel):
    rounds: list[TraceRound] = Field(default_factory=list)
    total_duration_ms: int = Field(default=0, ge=0)
    started_at: datetime
    ended_at: datetime | None = None


class LintResult(BaseModel):
    errors: int = Field(default=0, ge=0)
    warnings: int = Field(default=0, ge=0)
    valid: bool = True
    error_messages: list[str] = Field(default_factory=list)
    warning_messages: list[str] = Field(default_factory=list)


class SessionOutputs(BaseModel):
    final_artifact_hash: str = ""
    lint_result: LintResult = Field(default_factory=LintResult)
    hypothesis_count: int = Field(default=0, ge=0)
    test_count: int = Field(default=0, ge=0)
    assumption_count: int | None = Field(default=None, ge=0)
    anomaly_count: int | None = Field(default=None, ge=0)
    critique_count: int | None = Field(default=None, ge=0)
    scorecard_grade: str | None = None
    scorecard_points: float | None = None


class SessionRecord(BaseModel):
    """Replayable record of one research session."""

    id: str = Field(..., pattern=RECORD_ID_PATTERN)
    session_id: str = Field(..., min_length=1)
    created_at: datetime
    inputs: SessionInputs
    trace: SessionTrace
    outputs: SessionOutputs
    schema_version: str = SCHEMA_VERSION
    notes: str | None = None


class Divergence(BaseModel):
    round_number: int = Field(..., ge=0)
    message_index: int = Field(..., ge=0)
    agent: str
    severity: DivergenceSeverity
    original_summary: str
    replayed_summary: str
    semantic_match: bool
    explanation: str | None = None


class ReplayReport(BaseModel):
    original_session_id: str
    mode: ReplayMode
    replayed_at: datetime
    roster: list[AgentRosterEntry] = Field(default_factory=list)
    matches: bool
    similarity_percentage: float = Field(..., ge=0, le=100)
    rounds_completed: int = Field(..., ge=0)
    rounds_expected: int = Field(..., ge=0)
    messages_matched: int = Field(..., ge=0)
    messages_expected: int = Field(..., ge=0)
    artifact_similarity: float = Field(..., ge=0, le=100)
    divergences: list[Divergence] = Field(default_factory=list)
    conclusion: str


class SessionRecordValidation(BaseModel):
    valid: bool
    data: SessionRecord | None = None
    errors: list[str] = Field(default_factory=list)


def create_record_id(session_id: str, now: float | None = None) -> str:
    """Return ``REC-{session_id}-{unix seconds}``."""
    timestamp = int(now if now is not None else time.time())
    return f"REC-{session_id}-{timestamp}"


def create_empty_session_record(session_id: str) -> SessionRecord:
    now = now_utc()
    return SessionRecord(
        id=create_record_id(session_id, now.timestamp()),
        session_id=session_id,
        created_at=now,
        inputs=SessionInputs(kickoff=KickoffInput(thread_id=session_id)),
        trace=SessionTrace(started_at=now),
        outputs=SessionOutputs(),
    )


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


async def compute_content_hash(content: str) -> str:
    """SHA-256 hex digest of ``content`` (UTF-8), computed off the event loop."""
    return await asyncio.to_thread(_sha256_hex, content.encode("utf-8"))


async def create_trace_message(
    from_agent: str,
    message_type: MessageType,
    body: str,
    *,
    message_id: int | None = None,
    subject: str | None = None,
    acknowledged: bool = False,
) -> TraceMessage:
    """
    Build a trace message, hashing the body instead of storing it.

    Args:
        from_agent: Sender name.
        message_type: Protocol message type.
        body: Message body; only its digest and byte length are kept.
        message_id: Mail system id, if any.
        subject: Message subject.
        acknowledged: Whether the message was acknowledged.

    Returns:
        TraceMessage timestamped now.
    """
    return TraceMessage(
        message_id=message_id,
        timestamp=now_utc(),
        from_=from_agent,
        type=MessageType(message_type),
        content_hash=await compute_content_hash(body),
        content_length=len(body.encode("utf-8")),
        subject=subject,
        acknowledged=acknowledged,
    )


def validate_session_record(data: Mapping[str, Any]) -> SessionRecordValidation:
    """Validate raw session record data without raising."""
    try:
        record = SessionRecord.model_validate(data)
    except ValidationError as exc:
        return SessionRecordValidation(valid=False, errors=format_validation_errors(exc))
    return SessionRecordValidation(valid=True, data=record)


def is_replayable(record: SessionRecord) -> bool:
    """A record can be replayed once it has rounds, a roster and a final artifact hash."""
    return bool(record.trace.rounds and record.inputs.agent_roster and record.outputs.final_artifact_hash)


def is_replay_match(
    report: ReplayReport,
    similarity: float = 80.0,
    max_major_divergences: int = 0,
) -> bool:
    if report.similarity_percentage < similarity:
        return False
    major = sum(1 for d in report.divergences if d.severity == DivergenceSeverity.MAJOR)
    return major <= max_major_divergences


def build_session_outputs(
    final_artifact_hash: str,
    session: SessionData,
    score: SessionDimensionScore | None = None,
    lint_result: LintResult | None = None,
) -> SessionOutputs:
    """Summarize a scored session into the outputs block of its record."""
    sections = session.artifact.sections
    return SessionOutputs(
        final_artifact_hash=final_artifact_hash,
        lint_result=lint_result or LintResult(),
        hypothesis_count=len(sections.hypothesis_slate),
        test_count=len(sections.discriminative_tests),
        assumption_count=len(sections.assumption_ledger),
        anomaly_count=len(sections.anomaly_register),
        critique_count=len(sections.adversarial_critique),
        scorecard_grade=score.grade if score else None,
        scorecard_points=score.total_score if score else None,
    )
