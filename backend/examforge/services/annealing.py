from __future__ import annotations

import logging
import math
import random

from examforge.schemas.domain import AlgorithmParameters
from examforge.schemas.generator import FitnessPoint
from examforge.services.encoding import SlotEncoder
from examforge.services.fitness import FitnessEvaluator
from examforge.services.progress import ProgressReporter
from examforge.services.result_builder import SearchOutcome

logger = logging.getLogger(__name__)

MIN_TEMPERATURE = 1e-9


class SimulatedAnnealingEngine:
    def __init__(
        self,
        *,
        encoder: SlotEncoder,
        evaluator: FitnessEvaluator,
        params: AlgorithmParameters,
        rng: random.Random,
    ) -> None:
        self.encoder = encoder
        self.evaluator = evaluator
        self.params = params
        self.random = rng

    def _accept(self, delta: float, temperature: float) -> bool:
        """Metropolis criterion on fitness (higher is better)."""
        if delta >= 0:
            return True
        return self.random.random() < math.exp(delta / max(temperature, MIN_TEMPERATURE))

    async def run(self, reporter: ProgressReporter) -> SearchOutcome:
        iterations = self.params.generations
        current_genes = self.encoder.random_encoding()
        current_eval = self.evaluator.evaluate(current_genes)
        best_genes = current_genes
        best_eval = current_eval
        temperature = self.params.initial_temperature
        course_count = len(current_genes)
        history: list[FitnessPoint] = []

        reporter.check_cancelled(0)
        for step in range(iterations):
            if course_count:
                candidate = self.encoder.mutate_one_gene(current_genes, self.random.randrange(course_count))
            else:
                candidate = current_genes
            candidate_eval = self.evaluator.evaluate(candidate)

            if self._accept(candidate_eval.fitness - current_eval.fitness, temperature):
                current_genes = candidate
                current_eval = candidate_eval
                if current_eval.fitness > best_eval.fitness:
                    best_genes = current_genes
                    best_eval = current_eval
            history.append(FitnessPoint(iteration=step, fitness=best_eval.fitness))

            if reporter.publishes(step + 1):
                logger.debug(
                    "SA iteration %s/%s temperature=%.6g current=%s best=%s",
                    step + 1,
                    iterations,
                    temperature,
                    current_eval.fitness,
                    best_eval.fitness,
                )

            temperature *= self.params.cooling_rate
            await reporter.step(step + 1, best_eval.fitness)

        return SearchOutcome(best=best_genes, evaluation=best_eval, fitness_history=history)
