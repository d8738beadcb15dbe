"""Storage collaborator contract.

The engine never talks to the document store itself. Callers hand it a
store object satisfying ``EventStore``; each method returns already
deserialized records. ``InMemoryEventStore`` backs tests and the offline
snapshot report.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from .models import (
    Goal,
    PersonalRecordEvent,
    WeightEntry,
    WorkoutEvent,
    parse_goals,
    parse_personal_records,
    parse_weight_entries,
    parse_workouts,
)

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    def list_workouts(self, user_id: str, limit: int) -> list[WorkoutEvent]: ...

    def list_personal_records(self, user_id: str) -> list[PersonalRecordEvent]: ...

    def list_weight_entries(self, user_id: str, limit: int) -> list[WeightEntry]: ...

    def list_goals(self, user_id: str) -> list[Goal]: ...


def _newest_first(items: list[Any]) -> list[Any]:
    return sorted(items, key=lambda item: (item.occurred_at, item.id or ""), reverse=True)


class InMemoryEventStore:
    """Per-user snapshot store. Rows are validated once, on insert."""

    def __init__(self) -> None:
        self._workouts: dict[str, list[WorkoutEvent]] = {}
        self._records: dict[str, list[PersonalRecordEvent]] = {}
        self._weights: dict[str, list[WeightEntry]] = {}
        self._goals: dict[str, list[Goal]] = {}

    @classmethod
    def from_snapshot(cls, user_id: str, snapshot: Mapping[str, Any]) -> "InMemoryEventStore":
        store = cls()
        store.add_workouts(user_id, snapshot.get("workouts") or [])
        store.add_personal_records(user_id, snapshot.get("personal_records") or [])
        store.add_weight_entries(user_id, snapshot.get("weight_entries") or [])
        store.add_goals(user_id, snapshot.get("goals") or [])
        return store

    def add_workouts(self, user_id: str, rows: Iterable[Any]) -> None:
        self._workouts.setdefault(user_id, []).extend(parse_workouts(rows))

    def add_personal_records(self, user_id: str, rows: Iterable[Any]) -> None:
        self._records.setdefault(user_id, []).extend(parse_personal_records(rows))

    def add_weight_entries(self, user_id: str, rows: Iterable[Any]) -> None:
        self._weights.setdefault(user_id, []).extend(parse_weight_entries(rows))

    def add_goals(self, user_id: str, rows: Iterable[Any]) -> None:
        self._goals.setdefault(user_id, []).extend(parse_goals(rows))

    def list_workouts(self, user_id: str, limit: int) -> list[WorkoutEvent]:
        return _newest_first(self._workouts.get(user_id, []))[:max(limit, 0)]

    def list_personal_records(self, user_id: str) -> list[PersonalRecordEvent]:
        return _newest_first(self._records.get(user_id, []))

    def list_weight_entries(self, user_id: str, limit: int) -> list[WeightEntry]:
        return _newest_first(self._weights.get(user_id, []))[:max(limit, 0)]

    def list_goals(self, user_id: str) -> list[Goal]:
        return list(self._goals.get(user_id, []))
