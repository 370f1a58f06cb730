from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from examforge.schemas.domain import Constraint, ConstraintRule, Course, Room
from examforge.services.encoding import Encoding
from examforge.services.horizon import Horizon

logger = logging.getLogger(__name__)

DEFAULT_HARD_WEIGHT = 1000

KNOWN_CONSTRAINT_IDS = {
    "c1": ConstraintRule.same_time_exclusivity,
    "c2": ConstraintRule.room_capacity,
    "c3": ConstraintRule.consecutive_limit,
    "c4": ConstraintRule.spread,
}

DESCRIPTION_KEYWORDS = (
    ("same time", ConstraintRule.same_time_exclusivity),
    ("capacity", ConstraintRule.room_capacity),
    ("in a row", ConstraintRule.consecutive_limit),
    ("consecutive", ConstraintRule.consecutive_limit),
    ("spread", ConstraintRule.spread),
)

MAX_CONSECUTIVE_SLOTS = 2
EVAL_CACHE_LIMIT = 50_000


@dataclass(frozen=True)
class EvaluationResult:
    fitness: float
    hard_violations: int
    soft_violations: int


def resolve_rule(constraint: Constraint) -> ConstraintRule | None:
    if constraint.rule is not None:
        return constraint.rule
    known = KNOWN_CONSTRAINT_IDS.get(constraint.id.strip().lower())
    if known is not None:
        return known
    description = constraint.description.lower()
    for keyword, rule in DESCRIPTION_KEYWORDS:
        if keyword in description:
            return rule
    return None


def active_rules(constraints: Sequence[Constraint]) -> dict[ConstraintRule, bool]:
    """Map every enabled rule to whether its violations count as hard."""
    rules: dict[ConstraintRule, bool] = {}
    for constraint in constraints:
        if not constraint.enabled:
            continue
        rule = resolve_rule(constraint)
        if rule is None:
            logger.debug("Constraint %s (%r) maps to no evaluator rule; ignored", constraint.id, constraint.description)
            continue
        if rule in rules:
            logger.debug("Constraint %s repeats rule %s; first declaration wins", constraint.id, rule.value)
            continue
        rules[rule] = constraint.type == "Hard"
    return rules


def _pairs(count: int) -> int:
    return count * (count - 1) // 2


class FitnessEvaluator:
    def __init__(
        self,
        *,
        courses: Sequence[Course],
        rooms: Sequence[Room],
        constraints: Sequence[Constraint],
        horizon: Horizon,
        hard_weight: int = DEFAULT_HARD_WEIGHT,
        group_key: str = "department_id",
    ) -> None:
        self.horizon = horizon
        self.hard_weight = hard_weight
        self.rules = active_rules(constraints)
        self.students = [course.students for course in courses]
        self.capacities = [room.capacity for room in rooms]
        self.groups = [getattr(course, group_key) or None for course in courses]
        self.eval_cache: dict[Encoding, EvaluationResult] = {}

    def fitness_of(self, hard: int, soft: int) -> float:
        return -float(hard * self.hard_weight + soft)

    def evaluate(self, encoding: Encoding, *, use_cache: bool = True) -> EvaluationResult:
        if use_cache:
            cached = self.eval_cache.get(encoding)
            if cached is not None:
                return cached

        counts: dict[ConstraintRule, int] = {}
        if ConstraintRule.room_capacity in self.rules:
            counts[ConstraintRule.room_capacity] = sum(
                1
                for course_index, gene in enumerate(encoding)
                if self.students[course_index] > self.capacities[gene.room]
            )

        if ConstraintRule.same_time_exclusivity in self.rules:
            sittings = Counter((gene.day, gene.slot) for gene in encoding)
            counts[ConstraintRule.same_time_exclusivity] = sum(_pairs(n) for n in sittings.values())

        if ConstraintRule.consecutive_limit in self.rules:
            counts[ConstraintRule.consecutive_limit] = self._consecutive_excess(encoding)

        if ConstraintRule.spread in self.rules:
            same_day = Counter(
                (self.groups[course_index], gene.day)
                for course_index, gene in enumerate(encoding)
                if self.groups[course_index] is not None
            )
            counts[ConstraintRule.spread] = sum(_pairs(n) for n in same_day.values())

        hard = sum(value for rule, value in counts.items() if self.rules[rule])
        soft = sum(value for rule, value in counts.items() if not self.rules[rule])
        result = EvaluationResult(fitness=self.fitness_of(hard, soft), hard_violations=hard, soft_violations=soft)
        if len(self.eval_cache) >= EVAL_CACHE_LIMIT:
            self.eval_cache.clear()
        self.eval_cache[encoding] = result
        return result

    def _consecutive_excess(self, encoding: Encoding) -> int:
        occupied: dict[int, set[int]] = {}
        for gene in encoding:
            occupied.setdefault(gene.day, set()).add(gene.slot)

        excess = 0
        for slots in occupied.values():
            run = 0
            previous: int | None = None
            for slot in sorted(slots):
                run = run + 1 if previous is not None and slot == previous + 1 else 1
                if run > MAX_CONSECUTIVE_SLOTS:
                    excess += 1
                previous = slot
        return excess
