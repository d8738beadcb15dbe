"""Input models for the analytics engine.

The external store hands over workouts, personal records, weight entries and
goals. These pydantic models are the single place where field aliases,
numeric defaults and malformed-record detection live:

- numeric set/duration fields default to 0 when absent or invalid
- a missing/invalid timestamp, or a non-positive record weight/reps, makes
  the record malformed; the ``parse_*`` helpers drop it silently

Aggregators call the ``parse_*`` helpers on their input, so they accept
either these models or raw mappings straight from the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Literal, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .utils import as_non_negative_float, as_non_negative_int, parse_timestamp

logger = logging.getLogger(__name__)

WORKOUT_KINDS: tuple[str, ...] = ("strength", "cardio")


def _require_timestamp(value: Any) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError("timestamp is missing or invalid")
    return parsed


def _optional_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value)


def _optional_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


class SetEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    reps: int = 0
    weight: float = 0.0

    @field_validator("reps", mode="before")
    @classmethod
    def coerce_reps(cls, value: Any) -> int:
        return as_non_negative_int(value)

    @field_validator("weight", mode="before")
    @classmethod
    def coerce_weight(cls, value: Any) -> float:
        return as_non_negative_float(value)

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class ExerciseEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    sets: tuple[SetEntry, ...] = ()

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("sets", mode="before")
    @classmethod
    def keep_set_objects(cls, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, (dict, SetEntry))]


class WorkoutEvent(BaseModel):
    """A completed workout. Immutable once created by the store."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str = ""
    occurred_at: datetime = Field(
        validation_alias=AliasChoices("occurred_at", "occurredAt", "date"),
    )
    duration_minutes: float = Field(
        default=0.0,
        validation_alias=AliasChoices("duration_minutes", "durationMinutes", "duration"),
    )
    kind: Literal["strength", "cardio"] = Field(
        default="strength",
        validation_alias=AliasChoices("kind", "type"),
    )
    exercises: tuple[ExerciseEntry, ...] = ()
    notes: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str | None:
        return _optional_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("occurred_at", mode="before")
    @classmethod
    def parse_occurred_at(cls, value: Any) -> datetime:
        return _require_timestamp(value)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> float:
        return as_non_negative_float(value)

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value: Any) -> str:
        normalized = _clean_text(value).lower()
        return normalized if normalized in WORKOUT_KINDS else "strength"

    @field_validator("exercises", mode="before")
    @classmethod
    def keep_exercise_objects(cls, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, (dict, ExerciseEntry))]

    @property
    def volume(self) -> float:
        return sum(s.volume for ex in self.exercises for s in ex.sets)

    @property
    def set_count(self) -> int:
        return sum(len(ex.sets) for ex in self.exercises)

    @property
    def rep_count(self) -> int:
        return sum(s.reps for ex in self.exercises for s in ex.sets)


class PersonalRecordEvent(BaseModel):
    """A logged personal best. Superseded by later records, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    exercise_name: str = Field(
        validation_alias=AliasChoices("exercise_name", "exerciseName", "exercise"),
    )
    weight: float = Field(gt=0)
    reps: int = Field(gt=0)
    occurred_at: datetime = Field(
        validation_alias=AliasChoices("occurred_at", "occurredAt", "date"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str | None:
        return _optional_id(value)

    @field_validator("exercise_name", mode="before")
    @classmethod
    def name_not_empty(cls, value: Any) -> str:
        cleaned = _clean_text(value)
        if not cleaned:
            raise ValueError("exercise_name must not be empty")
        return cleaned

    @field_validator("occurred_at", mode="before")
    @classmethod
    def parse_occurred_at(cls, value: Any) -> datetime:
        return _require_timestamp(value)


class WeightEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    weight: float = Field(gt=0)
    occurred_at: datetime = Field(
        validation_alias=AliasChoices("occurred_at", "occurredAt", "date"),
    )
    notes: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str | None:
        return _optional_id(value)

    @field_validator("occurred_at", mode="before")
    @classmethod
    def parse_occurred_at(cls, value: Any) -> datetime:
        return _require_timestamp(value)


class Goal(BaseModel):
    """User goal. Only read by the timeline and profile surfaces."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    type: str = "custom"
    title: str = ""
    target_value: float = Field(
        default=0.0,
        validation_alias=AliasChoices("target_value", "targetValue"),
    )
    current_value: float = Field(
        default=0.0,
        validation_alias=AliasChoices("current_value", "currentValue"),
    )
    unit: str = ""
    deadline: datetime | None = None
    completed: bool = False
    updated_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, value: Any) -> str | None:
        return _optional_id(value)

    @field_validator("type", "title", "unit", mode="before")
    @classmethod
    def clean_text_fields(cls, value: Any) -> str:
        return _clean_text(value)

    @field_validator("target_value", "current_value", mode="before")
    @classmethod
    def coerce_values(cls, value: Any) -> float:
        return as_non_negative_float(value)

    @field_validator("deadline", "updated_at", mode="before")
    @classmethod
    def parse_optional_timestamps(cls, value: Any) -> datetime | None:
        return _optional_timestamp(value)

    @field_validator("completed", mode="before")
    @classmethod
    def coerce_completed(cls, value: Any) -> bool:
        return value is True


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_many(model: type[ModelT], rows: Iterable[Any] | None, label: str) -> list[ModelT]:
    parsed: list[ModelT] = []
    dropped = 0
    for row in rows or ():
        if isinstance(row, model):
            parsed.append(row)
            continue
        try:
            parsed.append(model.model_validate(row))
        except ValidationError:
            dropped += 1
    if dropped:
        logger.debug(
            "Dropped %d malformed %s record(s)",
            dropped,
            label,
            extra={"fittrack_record_type": label, "fittrack_dropped": dropped},
        )
    return parsed


def parse_workouts(rows: Iterable[Any] | None) -> list[WorkoutEvent]:
    return _parse_many(WorkoutEvent, rows, "workout")


def parse_personal_records(rows: Iterable[Any] | None) -> list[PersonalRecordEvent]:
    return _parse_many(PersonalRecordEvent, rows, "personal_record")


def parse_weight_entries(rows: Iterable[Any] | None) -> list[WeightEntry]:
    return _parse_many(WeightEntry, rows, "weight_entry")


def parse_goals(rows: Iterable[Any] | None) -> list[Goal]:
    return _parse_many(Goal, rows, "goal")
