"""Identifier formats for session-scoped records."""

from __future__ import annotations

import re
from collections.abc import Iterable

HYPOTHESIS_ID_PATTERN = r"^H-[A-Za-z0-9][\w-]*-\d{3}$"
PREDICTION_ID_PATTERN = r"^P-[A-Za-z0-9][\w-]*-\d{3}$"
TEST_ID_PATTERN = r"^T-[A-Za-z0-9][\w-]*-\d{3}$"
ASSUMPTION_ID_PATTERN = r"^A-[A-Za-z0-9][\w-]*-\d{3}$|^A\d+$"
ANOMALY_ID_PATTERN = r"^X-[A-Za-z0-9][\w-]*-\d{3}$|^X\d+$"
ANCHOR_PATTERN = r"^§\d+(-\d+)?$"
RECORD_ID_PATTERN = r"^REC-[A-Za-z0-9][\w-]*-\d+$"

_HYPOTHESIS_RE = re.compile(HYPOTHESIS_ID_PATTERN)
_PREDICTION_RE = re.compile(PREDICTION_ID_PATTERN)
_TEST_RE = re.compile(TEST_ID_PATTERN)
_ASSUMPTION_RE = re.compile(ASSUMPTION_ID_PATTERN)
_ANOMALY_RE = re.compile(ANOMALY_ID_PATTERN)
_ANCHOR_RE = re.compile(ANCHOR_PATTERN)
_RECORD_RE = re.compile(RECORD_ID_PATTERN)


def is_valid_hypothesis_id(value: str) -> bool:
    return bool(_HYPOTHESIS_RE.match(value))


def is_valid_prediction_id(value: str) -> bool:
    return bool(_PREDICTION_RE.match(value))


def is_valid_test_id(value: str) -> bool:
    return bool(_TEST_RE.match(value))


def is_valid_assumption_id(value: str) -> bool:
    return bool(_ASSUMPTION_RE.match(value))


def is_valid_anomaly_id(value: str) -> bool:
    return bool(_ANOMALY_RE.match(value))


def is_valid_anchor(value: str) -> bool:
    return bool(_ANCHOR_RE.match(value))


def is_valid_record_id(value: str) -> bool:
    return bool(_RECORD_RE.match(value))


def generate_id(prefix: str, session_id: str, existing_ids: Iterable[str]) -> str:
    """
    Generate the next sequential id for a session.

    Sequence numbers are taken from ids shaped ``{prefix}-{session_id}-NNN``;
    anything else in ``existing_ids`` is ignored.

    Args:
        prefix: Single-letter record prefix ("H", "P", "T", "A", "X").
        session_id: Owning session identifier.
        existing_ids: Ids already allocated.

    Returns:
        The id one past the highest existing sequence, zero-padded to 3 digits.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-{re.escape(session_id)}-(\d{{3}})$")
    highest = 0
    for existing in existing_ids:
        match = pattern.match(existing)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{session_id}-{highest + 1:03d}"


def generate_hypothesis_id(session_id: str, existing_ids: Iterable[str]) -> str:
    return generate_id("H", session_id, existing_ids)


def generate_prediction_id(session_id: str, existing_ids: Iterable[str]) -> str:
    return generate_id("P", session_id, existing_ids)


def generate_test_id(session_id: str, existing_ids: Iterable[str]) -> str:
    return generate_id("T", session_id, existing_ids)
