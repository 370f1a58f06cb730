from __future__ import annotations

import asyncio
import logging
import random
from time import perf_counter
from typing import Any, AsyncIterator, Mapping, Sequence

from examforge.core.config import Settings, get_settings
from examforge.core.exceptions import GenerationCancelledError, GenerationInProgressError, InvalidInputError
from examforge.schemas.domain import Algorithm, AlgorithmParameters, Constraint, Course, Room
from examforge.schemas.generator import GenerationResult, ProgressEvent
from examforge.services.annealing import SimulatedAnnealingEngine
from examforge.services.encoding import SlotEncoder
from examforge.services.fitness import FitnessEvaluator
from examforge.services.genetic import GeneticSearchEngine
from examforge.services.horizon import Horizon, horizon_from_settings
from examforge.services.progress import CancellationToken, ProgressCallback, ProgressReporter
from examforge.services.result_builder import build_result

logger = logging.getLogger(__name__)


def _coerce(model, items: Sequence[Any]) -> list:
    return [item if isinstance(item, model) else model.model_validate(item) for item in items]


def _ensure_unique(label: str, items: Sequence[Course] | Sequence[Room]) -> None:
    seen: set[str] = set()
    duplicates: set[str] = set()
    for item in items:
        if item.id in seen:
            duplicates.add(item.id)
        seen.add(item.id)
    if duplicates:
        raise InvalidInputError(f"Duplicate {label} ids", details={"ids": sorted(duplicates)})


def _resolve_algorithm(value: Algorithm | str) -> Algorithm:
    try:
        return Algorithm(value)
    except ValueError:
        raise InvalidInputError(
            f"Unknown algorithm {value!r}",
            details={"allowed": [item.value for item in Algorithm]},
        ) from None


class TimetableGenerator:
    """Runs one search at a time over an immutable domain snapshot."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def generate(
        self,
        courses: Sequence[Course | Mapping[str, Any]],
        rooms: Sequence[Room | Mapping[str, Any]],
        constraints: Sequence[Constraint | Mapping[str, Any]],
        algorithm: Algorithm | str | None = None,
        params: AlgorithmParameters | Mapping[str, Any] | None = None,
        on_progress: ProgressCallback | None = None,
        *,
        horizon: Horizon | None = None,
        rng: random.Random | None = None,
        cancel_token: CancellationToken | None = None,
        progress_queue: asyncio.Queue | None = None,
    ) -> GenerationResult:
        if self._running:
            raise GenerationInProgressError()
        self._running = True
        try:
            return await self._run(
                courses=_coerce(Course, courses),
                rooms=_coerce(Room, rooms),
                constraints=_coerce(Constraint, constraints),
                algorithm=_resolve_algorithm(self.settings.default_algorithm if algorithm is None else algorithm),
                params=params if isinstance(params, AlgorithmParameters) else AlgorithmParameters.model_validate(params or {}),
                on_progress=on_progress,
                horizon=horizon,
                rng=rng,
                cancel_token=cancel_token,
                progress_queue=progress_queue,
            )
        finally:
            self._running = False

    async def stream(
        self,
        courses: Sequence[Course | Mapping[str, Any]],
        rooms: Sequence[Room | Mapping[str, Any]],
        constraints: Sequence[Constraint | Mapping[str, Any]],
        algorithm: Algorithm | str | None = None,
        params: AlgorithmParameters | Mapping[str, Any] | None = None,
        *,
        horizon: Horizon | None = None,
        rng: random.Random | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[ProgressEvent | GenerationResult]:
        """Yield progress events as they happen, then the final result."""
        queue: asyncio.Queue = asyncio.Queue()
        token = cancel_token or CancellationToken()
        task = asyncio.create_task(
            self.generate(
                courses,
                rooms,
                constraints,
                algorithm,
                params,
                horizon=horizon,
                rng=rng,
                cancel_token=token,
                progress_queue=queue,
            )
        )
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break
            while not queue.empty():
                yield queue.get_nowait()
            yield task.result()
        finally:
            if not task.done():
                token.cancel()
                try:
                    await task
                except GenerationCancelledError:
                    logger.debug("Abandoned generation stream stopped")

    async def _run(
        self,
        *,
        courses: list[Course],
        rooms: list[Room],
        constraints: list[Constraint],
        algorithm: Algorithm,
        params: AlgorithmParameters,
        on_progress: ProgressCallback | None,
        horizon: Horizon | None,
        rng: random.Random | None,
        cancel_token: CancellationToken | None,
        progress_queue: asyncio.Queue | None,
    ) -> GenerationResult:
        _ensure_unique("course", courses)
        _ensure_unique("room", rooms)
        if courses and not rooms:
            raise InvalidInputError(
                "No rooms available for generation",
                details={"course_count": len(courses)},
            )

        horizon = horizon or horizon_from_settings(self.settings, course_count=len(courses))
        rng = rng or random.Random(params.random_seed)
        encoder = SlotEncoder(horizon=horizon, room_count=len(rooms), course_count=len(courses), rng=rng)
        evaluator = FitnessEvaluator(
            courses=courses,
            rooms=rooms,
            constraints=constraints,
            horizon=horizon,
            hard_weight=self.settings.hard_violation_weight,
            group_key=self.settings.spread_group_key,
        )
        engine_cls = GeneticSearchEngine if algorithm == Algorithm.genetic else SimulatedAnnealingEngine
        engine = engine_cls(encoder=encoder, evaluator=evaluator, params=params, rng=rng)
        reporter = ProgressReporter(
            total=params.generations,
            on_progress=on_progress,
            queue=progress_queue,
            cancel_token=cancel_token,
            interval=self.settings.progress_interval,
        )

        logger.info(
            "Generation run algorithm=%s courses=%s rooms=%s horizon=%sx%s budget=%s rules=%s",
            algorithm.value,
            len(courses),
            len(rooms),
            horizon.day_count,
            horizon.slot_count,
            params.generations,
            sorted(rule.value for rule in evaluator.rules),
        )
        start = perf_counter()
        outcome = await engine.run(reporter)
        elapsed_ms = (perf_counter() - start) * 1000
        result = build_result(
            outcome,
            courses=courses,
            rooms=rooms,
            encoder=encoder,
            evaluator=evaluator,
            algorithm=algorithm,
            elapsed_ms=elapsed_ms,
        )
        logger.info(
            "Generation finished in %.1fms hard=%s soft=%s fitness=%s",
            elapsed_ms,
            result.metrics.hard_constraint_violations,
            result.metrics.soft_constraint_violations,
            outcome.evaluation.fitness,
        )
        return result


async def generate(
    courses: Sequence[Course | Mapping[str, Any]],
    rooms: Sequence[Room | Mapping[str, Any]],
    constraints: Sequence[Constraint | Mapping[str, Any]],
    algorithm: Algorithm | str | None = None,
    params: AlgorithmParameters | Mapping[str, Any] | None = None,
    on_progress: ProgressCallback | None = None,
    **options: Any,
) -> GenerationResult:
    return await TimetableGenerator().generate(
        courses, rooms, constraints, algorithm, params, on_progress, **options
    )
