from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from examforge.core.exceptions import SchedulerInvariantError
from examforge.schemas.domain import Algorithm, Course, Room
from examforge.schemas.generator import FitnessPoint, GenerationMetrics, GenerationResult, TimetableEntry
from examforge.services.encoding import Encoding, SlotEncoder
from examforge.services.fitness import EvaluationResult, FitnessEvaluator


@dataclass
class SearchOutcome:
    best: Encoding
    evaluation: EvaluationResult
    fitness_history: list[FitnessPoint] = field(default_factory=list)


def decode_timetable(
    encoding: Encoding,
    *,
    courses: Sequence[Course],
    rooms: Sequence[Room],
    encoder: SlotEncoder,
) -> list[TimetableEntry]:
    encoder.check(encoding)
    horizon = encoder.horizon
    return [
        TimetableEntry(
            course=course,
            room=rooms[gene.room],
            day=horizon.days[gene.day],
            time_slot=horizon.time_slots[gene.slot],
        )
        for course, gene in zip(courses, encoding)
    ]


def build_result(
    outcome: SearchOutcome,
    *,
    courses: Sequence[Course],
    rooms: Sequence[Room],
    encoder: SlotEncoder,
    evaluator: FitnessEvaluator,
    algorithm: Algorithm,
    elapsed_ms: float,
) -> GenerationResult:
    timetable = decode_timetable(outcome.best, courses=courses, rooms=rooms, encoder=encoder)

    final = evaluator.evaluate(outcome.best, use_cache=False)
    if final != outcome.evaluation:
        raise SchedulerInvariantError(
            f"Engine reported {outcome.evaluation} but recomputation gives {final}"
        )

    return GenerationResult(
        timetable=timetable,
        metrics=GenerationMetrics(
            generation_time=max(0.0, elapsed_ms),
            hard_constraint_violations=final.hard_violations,
            soft_constraint_violations=final.soft_violations,
            fitness_history=list(outcome.fitness_history),
        ),
        algorithm=algorithm,
        horizon_days=list(encoder.horizon.days),
        time_slots=list(encoder.horizon.time_slots),
    )
