from datetime import datetime, timezone

import pytest

from brenner_engine.replay import (
    AgentRosterEntry,
    Divergence,
    DivergenceSeverity,
    MessageType,
    ReplayMode,
    ReplayReport,
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
from brenner_engine.scoring import SessionData, score_session

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_content_hash_is_stable() -> None:
    assert await compute_content_hash("abc") == ABC_SHA256
    assert await compute_content_hash("abc") == await compute_content_hash("abc")
    assert await compute_content_hash("abd") != ABC_SHA256


@pytest.mark.asyncio
async def test_trace_message_stores_digest_not_body() -> None:
    message = await create_trace_message("BlueLake", MessageType.DELTA, "abc", message_id=7, subject="DELTA[s1]")

    assert message.content_hash == ABC_SHA256
    assert message.content_length == 3
    assert message.from_ == "BlueLake"
    assert message.model_dump(by_alias=True)["from"] == "BlueLake"


@pytest.mark.asyncio
async def test_content_length_counts_utf8_bytes() -> None:
    message = await create_trace_message("BlueLake", "CRITIQUE", "§58")
    assert message.content_length == 4


def test_record_id() -> None:
    assert create_record_id("s1", 1735600000.9) == "REC-s1-1735600000"


def test_empty_record_roundtrips_through_validation() -> None:
    record = create_empty_session_record("s1")

    result = validate_session_record(record.model_dump(mode="json", by_alias=True))

    assert result.valid is True
    assert result.data.session_id == "s1"
    assert is_replayable(record) is False


def test_invalid_record_is_itemized() -> None:
    data = create_empty_session_record("s1").model_dump(mode="json")
    data["id"] = "RECORD-1"
    del data["inputs"]

    result = validate_session_record(data)

    assert result.valid is False
    assert any(error.startswith("id:") for error in result.errors)
    assert any(error.startswith("inputs:") for error in result.errors)


def test_replayable_record() -> None:
    record = create_empty_session_record("s1")
    record.trace.rounds.append(TraceRound(round_number=0, started_at=NOW))
    record.inputs.agent_roster.append(
        AgentRosterEntry(agent_name="BlueLake", role="hypothesis_generator", program="cli", model="m1")
    )
    assert is_replayable(record) is False

    record.outputs = build_session_outputs(ABC_SHA256, SessionData(session_id="s1"))
    assert is_replayable(record) is True


def test_build_session_outputs_carries_grade() -> None:
    session = SessionData(session_id="s1")
    outputs = build_session_outputs(ABC_SHA256, session, score_session(session))
    assert outputs.scorecard_grade == "F"
    assert outputs.scorecard_points == 0
    assert outputs.hypothesis_count == 0


def _report(similarity: float, *severities: DivergenceSeverity) -> ReplayReport:
    return ReplayReport(
        original_session_id="s1",
        mode=ReplayMode.VERIFICATION,
        replayed_at=NOW,
        matches=True,
        similarity_percentage=similarity,
        rounds_completed=1,
        rounds_expected=1,
        messages_matched=1,
        messages_expected=1,
        artifact_similarity=similarity,
        divergences=[
            Divergence(
                round_number=0,
                message_index=i,
                agent="BlueLake",
                severity=severity,
                original_summary="a",
                replayed_summary="b",
                semantic_match=False,
            )
            for i, severity in enumerate(severities)
        ],
        conclusion="done",
    )


def test_replay_match_thresholds() -> None:
    assert is_replay_match(_report(95.0)) is True
    assert is_replay_match(_report(79.9)) is False
    assert is_replay_match(_report(95.0, DivergenceSeverity.MINOR, DivergenceSeverity.MODERATE)) is True
    assert is_replay_match(_report(95.0, DivergenceSeverity.MAJOR)) is False
    assert is_replay_match(_report(95.0, DivergenceSeverity.MAJOR), max_major_divergences=1) is True
