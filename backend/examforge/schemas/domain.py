from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

MIN_POPULATION_SIZE = 2
MIN_GENERATIONS = 1
MIN_INITIAL_TEMPERATURE = 1e-3
DEFAULT_INITIAL_TEMPERATURE = 1000.0
MIN_COOLING_RATE = 0.8
MAX_COOLING_RATE = 0.99999


class Algorithm(str, Enum):
    genetic = "GENETIC_ALGORITHM"
    simulated_annealing = "SIMULATED_ANNEALING"


class ConstraintRule(str, Enum):
    same_time_exclusivity = "same_time_exclusivity"
    room_capacity = "room_capacity"
    consecutive_limit = "consecutive_limit"
    spread = "spread"


class SnapshotModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Course(SnapshotModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(default="", max_length=200)
    department_id: str = Field(default="", alias="departmentId", max_length=64)
    students: int = Field(ge=0)
    units: int = Field(default=0, ge=0)
    year: int | None = Field(default=None, ge=1, le=10)


class Room(SnapshotModel):
    id: str = Field(min_length=1, max_length=64)
    capacity: int = Field(ge=0)


class Constraint(SnapshotModel):
    id: str = Field(min_length=1, max_length=64)
    description: str = ""
    type: Literal["Hard", "Soft"]
    enabled: bool = True
    rule: ConstraintRule | None = None


def _clamp(name: str, value: float, low: float, high: float | None = None) -> float:
    clamped = max(low, value)
    if high is not None:
        clamped = min(high, clamped)
    if clamped != value:
        logger.warning("Clamped algorithm parameter %s from %s to %s", name, value, clamped)
    return clamped


class AlgorithmParameters(SnapshotModel):
    population_size: int = Field(default=100, alias="populationSize")
    mutation_rate: float = Field(default=0.05, alias="mutationRate")
    crossover_rate: float = Field(default=0.8, alias="crossoverRate")
    generations: int = Field(default=200)
    initial_temperature: float = Field(default=DEFAULT_INITIAL_TEMPERATURE, alias="initialTemperature")
    cooling_rate: float = Field(default=0.995, alias="coolingRate")
    random_seed: int | None = Field(default=None, alias="randomSeed", ge=0)

    @field_validator("population_size")
    @classmethod
    def clamp_population_size(cls, value: int) -> int:
        return int(_clamp("population_size", value, MIN_POPULATION_SIZE))

    @field_validator("generations")
    @classmethod
    def clamp_generations(cls, value: int) -> int:
        return int(_clamp("generations", value, MIN_GENERATIONS))

    @field_validator("mutation_rate", "crossover_rate")
    @classmethod
    def clamp_rate(cls, value: float, info) -> float:
        return _clamp(info.field_name, value, 0.0, 1.0)

    @field_validator("initial_temperature")
    @classmethod
    def clamp_temperature(cls, value: float) -> float:
        # An unbounded temperature would accept every worsening move.
        if math.isnan(value) or value == math.inf:
            logger.warning(
                "Clamped algorithm parameter %s from %s to %s", "initial_temperature", value, DEFAULT_INITIAL_TEMPERATURE
            )
            return DEFAULT_INITIAL_TEMPERATURE
        return _clamp("initial_temperature", value, MIN_INITIAL_TEMPERATURE)

    @field_validator("cooling_rate")
    @classmethod
    def clamp_cooling_rate(cls, value: float) -> float:
        if 0.0 < value < 1.0:
            return value
        return _clamp("cooling_rate", value, MIN_COOLING_RATE, MAX_COOLING_RATE)
