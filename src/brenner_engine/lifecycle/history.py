"""
In-memory transition history.

The store is an explicitly constructed, caller-owned object: one per session
or per process, passed to whatever needs it. Appends are atomic so the store
can be shared between threads.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from brenner_engine.errors import InvalidHistoryError
from brenner_engine.records.hypothesis import HypothesisState
from brenner_engine.records.ids import is_valid_hypothesis_id
from brenner_engine.records.transition import Transition
from brenner_engine.records.validator import format_validation_errors

logger = logging.getLogger(__name__)

SEQUENCE_KEY = "sequence"


class TransitionHistoryStore:
    """Append-only log of transitions indexed by hypothesis id."""

    def __init__(self) -> None:
        self._history: dict[str, list[Transition]] = {}
        self._order: list[Transition] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, hypothesis_id: object) -> bool:
        return hypothesis_id in self._history

    def __iter__(self) -> Iterator[Transition]:
        return iter(self.get_all_transitions())

    def add(self, transition: Transition) -> None:
        """Append a transition to its hypothesis's history."""
        with self._lock:
            self._history.setdefault(transition.hypothesis_id, []).append(transition)
            self._order.append(transition)

    def get_history(self, hypothesis_id: str) -> list[Transition]:
        return list(self._history.get(hypothesis_id, ()))

    def get_latest_transition(self, hypothesis_id: str) -> Transition | None:
        history = self._history.get(hypothesis_id)
        return history[-1] if history else None

    def get_transitions_by_test_result(self, test_result_id: str) -> list[Transition]:
        return [t for t in self._order if t.test_result_id == test_result_id]

    def get_refuted_hypotheses(self) -> list[str]:
        """Ids of hypotheses whose latest transition left them refuted."""
        return [
            hypothesis_id
            for hypothesis_id, history in self._history.items()
            if history and history[-1].to_state == HypothesisState.REFUTED
        ]

    def get_all_transitions(self) -> list[Transition]:
        """All transitions in chronological order, ties broken by insertion order."""
        return sorted(self._order, key=lambda t: t.timestamp)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
            self._order.clear()

    def export_history(self) -> dict[str, list[dict[str, Any]]]:
        """
        Export as a JSON-compatible mapping of hypothesis id to transition dicts.

        Each dict carries a ``sequence`` key with the transition's position in
        insertion order across all hypotheses.
        """
        sequence = {id(t): index for index, t in enumerate(self._order)}
        exported = {
            hypothesis_id: [{**t.to_dict(), SEQUENCE_KEY: sequence[id(t)]} for t in history]
            for hypothesis_id, history in self._history.items()
        }
        logger.info(f"Exported {len(self._order)} transitions for {len(exported)} hypotheses")
        return exported

    def import_history(self, data: Mapping[str, list[Mapping[str, Any]]]) -> None:
        """
        Replace the store's contents with previously exported history.

        Every record is re-validated; nothing is imported unless all records
        are valid.

        Args:
            data: Mapping of hypothesis id to transition records.

        Raises:
            InvalidHistoryError: If any key or record is malformed.
        """
        problems: list[str] = []
        parsed: dict[str, list[Transition]] = {}
        order_keys: dict[int, tuple[int, int]] = {}
        position = 0

        for hypothesis_id, records in data.items():
            if not is_valid_hypothesis_id(hypothesis_id):
                problems.append(f"{hypothesis_id}: invalid hypothesis id")
                continue
            if not isinstance(records, list):
                problems.append(f"{hypothesis_id}: expected a list of transitions")
                continue
            transitions = []
            for index, record in enumerate(records):
                try:
                    transition = Transition.model_validate(record)
                except ValidationError as exc:
                    problems.extend(f"{hypothesis_id}[{index}].{err}" for err in format_validation_errors(exc))
                    continue
                if transition.hypothesis_id != hypothesis_id:
                    problems.append(
                        f"{hypothesis_id}[{index}]: transition belongs to {transition.hypothesis_id}"
                    )
                    continue
                sequence = record.get(SEQUENCE_KEY) if isinstance(record, Mapping) else None
                if isinstance(sequence, int) and not isinstance(sequence, bool):
                    order_keys[id(transition)] = (0, sequence)
                else:
                    order_keys[id(transition)] = (1, position)
                position += 1
                transitions.append(transition)
            parsed[hypothesis_id] = transitions

        if problems:
            raise InvalidHistoryError(problems)

        # Ties on timestamp keep the exported sequence; records without one follow in input order.
        with self._lock:
            self._history = parsed
            self._order = sorted(
                (t for history in parsed.values() for t in history),
                key=lambda t: (t.timestamp, order_keys[id(t)]),
            )
        logger.info(f"Imported {len(self._order)} transitions for {len(parsed)} hypotheses")
