"""Session records for replay and verification."""

from brenner_engine.replay.session_record import (
    AgentRosterEntry,
    Divergence,
    DivergenceSeverity,
    EvidenceRecordSummary,
    KickoffInput,
    LintResult,
    MessageType,
    ReplayMode,
    ReplayReport,
    SessionInputs,
    SessionOutputs,
    SessionRecord,
    SessionRecordValidation,
    SessionTrace,
    TraceMessage,
    TraceRound,
    build_session_outputs,
    compute_content_hash,
    create_empty_session_record,
    create_record_id,
    create_trace_message,
    is_replay_match,
    is_replayable,
    validate_session_record,
)

__all__ = [
    "AgentRosterEntry",
    "Divergence",
    "DivergenceSeverity",
    "EvidenceRecordSummary",
    "KickoffInput",
    "LintResult",
    "MessageType",
    "ReplayMode",
    "ReplayReport",
    "SessionInputs",
    "SessionOutputs",
    "SessionRecord",
    "SessionRecordValidation",
    "SessionTrace",
    "TraceMessage",
    "TraceRound",
    "build_session_outputs",
    "compute_content_hash",
    "create_empty_session_record",
    "create_record_id",
    "create_trace_message",
    "is_replay_match",
    "is_replayable",
    "validate_session_record",
]
