from __future__ import annotations

import random
from dataclasses import dataclass

from examforge.core.exceptions import SchedulerInvariantError
from examforge.services.horizon import Horizon


@dataclass(frozen=True)
class Assignment:
    day: int
    slot: int
    room: int


# One assignment per course, indexed by course position.
Encoding = tuple[Assignment, ...]


def crossover(parent_a: Encoding, parent_b: Encoding, cut_point: int) -> Encoding:
    """Single-point recombination: genes before ``cut_point`` from ``parent_a``, the rest from ``parent_b``."""
    if len(parent_a) != len(parent_b):
        raise SchedulerInvariantError("Parents must encode the same number of courses")
    if not 0 <= cut_point <= len(parent_a):
        raise SchedulerInvariantError(f"Cut point {cut_point} outside 0..{len(parent_a)}")
    return parent_a[:cut_point] + parent_b[cut_point:]


class SlotEncoder:
    def __init__(self, *, horizon: Horizon, room_count: int, course_count: int, rng: random.Random) -> None:
        self.horizon = horizon
        self.room_count = room_count
        self.course_count = course_count
        self.random = rng

    def random_assignment(self) -> Assignment:
        # Capacity is not pre-filtered; infeasible rooms are penalised by the evaluator.
        return Assignment(
            day=self.random.randrange(self.horizon.day_count),
            slot=self.random.randrange(self.horizon.slot_count),
            room=self.random.randrange(self.room_count),
        )

    def random_encoding(self) -> Encoding:
        return tuple(self.random_assignment() for _ in range(self.course_count))

    def mutate_one_gene(self, encoding: Encoding, course_index: int) -> Encoding:
        if not 0 <= course_index < len(encoding):
            raise SchedulerInvariantError(f"Course index {course_index} outside encoding of {len(encoding)}")
        genes = list(encoding)
        genes[course_index] = self.random_assignment()
        return tuple(genes)

    def check(self, encoding: Encoding) -> None:
        if len(encoding) != self.course_count:
            raise SchedulerInvariantError(
                f"Encoding holds {len(encoding)} assignments for {self.course_count} courses"
            )
        for index, gene in enumerate(encoding):
            if not (
                0 <= gene.day < self.horizon.day_count
                and 0 <= gene.slot < self.horizon.slot_count
                and 0 <= gene.room < self.room_count
            ):
                raise SchedulerInvariantError(f"Assignment {gene} for course {index} is outside the horizon/room set")
