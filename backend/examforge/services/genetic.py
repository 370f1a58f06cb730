from __future__ import annotations

import logging
import random

from examforge.schemas.domain import AlgorithmParameters
from examforge.schemas.generator import FitnessPoint
from examforge.services.encoding import Encoding, SlotEncoder, crossover
from examforge.services.fitness import EvaluationResult, FitnessEvaluator
from examforge.services.progress import ProgressReporter
from examforge.services.result_builder import SearchOutcome

logger = logging.getLogger(__name__)


class GeneticSearchEngine:
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

    def _select(self, population: list[Encoding], evaluations: list[EvaluationResult]) -> Encoding:
        first = self.random.randrange(len(population))
        second = self.random.randrange(len(population))
        # Equal fitness goes to the lower population index.
        if evaluations[second].fitness > evaluations[first].fitness or (
            evaluations[second].fitness == evaluations[first].fitness and second < first
        ):
            return population[second]
        return population[first]

    def _cut_point(self, length: int) -> int:
        if length < 2:
            return 0
        return self.random.randrange(1, length)

    def _mutate(self, genes: Encoding) -> Encoding:
        mutated = genes
        for index in range(len(genes)):
            if self.random.random() < self.params.mutation_rate:
                mutated = self.encoder.mutate_one_gene(mutated, index)
        return mutated

    def _breed(self, population: list[Encoding], evaluations: list[EvaluationResult]) -> Encoding:
        parent_a = self._select(population, evaluations)
        parent_b = self._select(population, evaluations)
        if self.random.random() < self.params.crossover_rate:
            child = crossover(parent_a, parent_b, self._cut_point(len(parent_a)))
        else:
            child = parent_a
        return self._mutate(child)

    async def run(self, reporter: ProgressReporter) -> SearchOutcome:
        population = [self.encoder.random_encoding() for _ in range(self.params.population_size)]
        generations = self.params.generations
        best_genes: Encoding | None = None
        best_eval: EvaluationResult | None = None
        history: list[FitnessPoint] = []

        reporter.check_cancelled(0)
        for generation in range(generations):
            evaluations = [self.evaluator.evaluate(item) for item in population]
            # max() keeps the first maximum, i.e. the lowest index among ties.
            elite_index = max(range(len(population)), key=lambda idx: evaluations[idx].fitness)
            if best_eval is None or evaluations[elite_index].fitness > best_eval.fitness:
                best_genes = population[elite_index]
                best_eval = evaluations[elite_index]
            history.append(FitnessPoint(iteration=generation, fitness=best_eval.fitness))

            if reporter.publishes(generation + 1):
                logger.debug(
                    "GA generation %s/%s best_fitness=%s hard=%s soft=%s",
                    generation + 1,
                    generations,
                    best_eval.fitness,
                    best_eval.hard_violations,
                    best_eval.soft_violations,
                )

            if generation < generations - 1:
                next_population = [population[elite_index]]
                while len(next_population) < self.params.population_size:
                    next_population.append(self._breed(population, evaluations))
                population = next_population

            await reporter.step(generation + 1, best_eval.fitness)

        return SearchOutcome(best=best_genes, evaluation=best_eval, fitness_history=history)
