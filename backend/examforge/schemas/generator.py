from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from examforge.schemas.domain import Algorithm, AlgorithmParameters, Constraint, Course, Room


class GenerateTimetableRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    courses: list[Course] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    # None defers to the configured default algorithm.
    algorithm: Algorithm | None = None
    params: AlgorithmParameters = Field(default_factory=AlgorithmParameters)
    start_date: date | None = Field(default=None, alias="startingDate")
    exam_days: int | None = Field(default=None, alias="examDays", ge=1, le=366)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "GenerateTimetableRequest":
        for label, items in (("course", self.courses), ("room", self.rooms)):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {label} id: {item.id}")
                seen.add(item.id)
        return self


class TimetableEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    course: Course
    room: Room
    day: str
    time_slot: str = Field(alias="timeSlot")


class FitnessPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    iteration: int
    fitness: float


class GenerationMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    generation_time: float = Field(alias="generationTime", ge=0.0)
    hard_constraint_violations: int = Field(alias="hardConstraintViolations", ge=0)
    soft_constraint_violations: int = Field(alias="softConstraintViolations", ge=0)
    fitness_history: list[FitnessPoint] = Field(default_factory=list, alias="fitnessHistory")


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timetable: list[TimetableEntry]
    metrics: GenerationMetrics
    algorithm: Algorithm
    horizon_days: list[str] = Field(default_factory=list, alias="horizonDays")
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["progress"] = "progress"
    progress: float = Field(ge=0.0, le=100.0)
    iteration: int = Field(ge=0)
    best_fitness: float | None = Field(default=None, alias="bestFitness")
