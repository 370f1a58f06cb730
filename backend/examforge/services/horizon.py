from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from examforge.core.config import Settings
from examforge.core.exceptions import InvalidInputError

WEEKEND = {5, 6}


@dataclass(frozen=True)
class Horizon:
    """Ordered exam days times ordered time-slot labels."""

    days: tuple[str, ...]
    time_slots: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.days:
            raise InvalidInputError("Horizon needs at least one exam day")
        if not self.time_slots:
            raise InvalidInputError("Horizon needs at least one time slot per day")

    @property
    def day_count(self) -> int:
        return len(self.days)

    @property
    def slot_count(self) -> int:
        return len(self.time_slots)

    @property
    def size(self) -> int:
        return self.day_count * self.slot_count


def build_horizon(
    start_date: date,
    day_count: int,
    time_slots: Sequence[str],
    *,
    skip_weekends: bool = False,
) -> Horizon:
    days: list[str] = []
    current = start_date
    while len(days) < max(1, day_count):
        if not (skip_weekends and current.weekday() in WEEKEND):
            days.append(current.isoformat())
        current += timedelta(days=1)
    return Horizon(days=tuple(days), time_slots=tuple(time_slots))


def required_exam_days(course_count: int, slots_per_day: int, min_days: int) -> int:
    # Enough (day, slot) pairs to give every course its own sitting.
    if slots_per_day < 1:
        return max(1, min_days)
    return max(min_days, math.ceil(course_count / slots_per_day), 1)


def horizon_from_settings(
    settings: Settings,
    *,
    course_count: int,
    start_date: date | None = None,
    exam_days: int | None = None,
) -> Horizon:
    slots = settings.time_slot_labels
    day_count = exam_days or required_exam_days(course_count, len(slots), settings.min_exam_days)
    return build_horizon(
        start_date or date.today(),
        day_count,
        slots,
        skip_weekends=settings.skip_weekends,
    )
