"""Run the exam timetable engine on the built-in sample data (or a request JSON file).

Run:
  PYTHONPATH=backend python scripts/run_generation.py [request.json]

Environment:
  DEMO_ALGORITHM   GENETIC_ALGORITHM or SIMULATED_ANNEALING (default: EXAMFORGE_DEFAULT_ALGORITHM)
  DEMO_SEED        random seed for a reproducible run (default 42)
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path

from examforge.core.config import get_settings
from examforge.core.logging import configure_logging
from examforge.schemas.domain import Algorithm
from examforge.schemas.generator import GenerateTimetableRequest, GenerationResult
from examforge.services.generation import TimetableGenerator
from examforge.services.horizon import horizon_from_settings
from examforge.services.sample_data import sample_request

ALGORITHM = os.getenv("DEMO_ALGORITHM", "").strip().upper()
SEED = int(os.getenv("DEMO_SEED", "42"))


def load_request(argv: list[str]) -> GenerateTimetableRequest:
    if len(argv) > 1:
        return GenerateTimetableRequest.model_validate(json.loads(Path(argv[1]).read_text(encoding="utf-8")))
    request = sample_request(Algorithm(ALGORITHM) if ALGORITHM else get_settings().default_algorithm)
    params = request.params.model_copy(update={"random_seed": SEED})
    return request.model_copy(update={"params": params})


def print_result(result: GenerationResult) -> None:
    print("")
    print(f"{'Day':<12} {'Slot':<15} {'Room':<6} Course")
    for entry in sorted(result.timetable, key=lambda item: (item.day, item.time_slot, item.room.id)):
        print(
            f"{entry.day:<12} {entry.time_slot:<15} {entry.room.id:<6} "
            f"{entry.course.id} {entry.course.name} ({entry.course.students} students)"
        )
    metrics = result.metrics
    print("")
    print(f"Algorithm: {result.algorithm.value}")
    print(f"Hard violations: {metrics.hard_constraint_violations}")
    print(f"Soft violations: {metrics.soft_constraint_violations}")
    print(f"Final fitness: {metrics.fitness_history[-1].fitness if metrics.fitness_history else 0.0}")
    print(f"Time: {metrics.generation_time:.1f} ms")


async def run(request: GenerateTimetableRequest) -> GenerationResult:
    settings = get_settings()
    horizon = horizon_from_settings(
        settings,
        course_count=len(request.courses),
        start_date=request.start_date,
        exam_days=request.exam_days,
    )

    def on_progress(progress: float) -> None:
        print(f"\rProcessing... {progress:5.1f}%", end="", flush=True)

    return await TimetableGenerator(settings).generate(
        request.courses,
        request.rooms,
        request.constraints,
        request.algorithm,
        request.params,
        on_progress,
        horizon=horizon,
    )


def main() -> None:
    configure_logging(get_settings().log_level)
    print_result(asyncio.run(run(load_request(sys.argv))))


if __name__ == "__main__":
    main()
