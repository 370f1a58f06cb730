import pytest

from examforge.schemas.domain import Constraint, ConstraintRule, Course, Room
from examforge.services.encoding import Assignment
from examforge.services.fitness import FitnessEvaluator, active_rules, resolve_rule
from examforge.services.horizon import Horizon

WIDE_HORIZON = Horizon(days=("d1", "d2"), time_slots=("s1", "s2", "s3", "s4"))


def only(rule: ConstraintRule, kind: str = "Hard") -> list[Constraint]:
    return [Constraint(id=f"x-{rule.value}", description="", type=kind, rule=rule)]


def course(course_id: str, students: int = 10, department: str = "D1", year: int | None = None) -> Course:
    return Course(id=course_id, name=course_id, department_id=department, students=students, units=3, year=year)


def evaluator(courses, rooms, constraints, **kwargs) -> FitnessEvaluator:
    return FitnessEvaluator(courses=courses, rooms=rooms, constraints=constraints, horizon=WIDE_HORIZON, **kwargs)


def test_capacity_violation_counts_one_per_overfull_room():
    courses = [course("A", students=150), course("B", students=80)]
    rooms = [Room(id="R100", capacity=100)]
    result = evaluator(courses, rooms, only(ConstraintRule.room_capacity)).evaluate(
        (Assignment(0, 0, 0), Assignment(1, 0, 0))
    )

    assert result.hard_violations == 1
    assert result.soft_violations == 0
    assert result.fitness == -1000.0


def test_same_time_counts_every_pair_in_a_sitting():
    courses = [course("A"), course("B"), course("C"), course("D")]
    rooms = [Room(id="R1", capacity=50), Room(id="R2", capacity=50), Room(id="R3", capacity=50)]
    encoding = (Assignment(0, 1, 0), Assignment(0, 1, 1), Assignment(0, 1, 2), Assignment(1, 1, 0))

    result = evaluator(courses, rooms, only(ConstraintRule.same_time_exclusivity)).evaluate(encoding)

    assert result.hard_violations == 3


@pytest.mark.parametrize(
    ("slots", "expected"),
    [
        ((0, 1), 0),
        ((0, 1, 2), 1),
        ((0, 1, 2, 3), 2),
        ((0, 1, 3), 0),
    ],
)
def test_consecutive_limit_counts_slots_beyond_two_in_a_row(slots, expected):
    courses = [course(f"C{index}", department=f"D{index}") for index in range(len(slots))]
    rooms = [Room(id="R1", capacity=50)]
    encoding = tuple(Assignment(0, slot, 0) for slot in slots)

    result = evaluator(courses, rooms, only(ConstraintRule.consecutive_limit, "Soft")).evaluate(encoding)

    assert result.soft_violations == expected
    assert result.hard_violations == 0


def test_consecutive_runs_do_not_cross_days():
    courses = [course(f"C{index}", department=f"D{index}") for index in range(4)]
    rooms = [Room(id="R1", capacity=50)]
    encoding = (Assignment(0, 2, 0), Assignment(0, 3, 0), Assignment(1, 0, 0), Assignment(1, 1, 0))

    result = evaluator(courses, rooms, only(ConstraintRule.consecutive_limit, "Soft")).evaluate(encoding)

    assert result.soft_violations == 0


def test_spread_penalises_same_group_on_same_day():
    courses = [course("A", department="HUM"), course("B", department="HUM"), course("C", department="CS"), course("D", department="")]
    rooms = [Room(id="R1", capacity=50)]
    encoding = (Assignment(0, 0, 0), Assignment(0, 2, 0), Assignment(0, 1, 0), Assignment(0, 3, 0))

    result = evaluator(courses, rooms, only(ConstraintRule.spread, "Soft")).evaluate(encoding)
    assert result.soft_violations == 1

    spread_out = (Assignment(0, 0, 0), Assignment(1, 0, 0), Assignment(0, 1, 0), Assignment(0, 3, 0))
    assert evaluator(courses, rooms, only(ConstraintRule.spread, "Soft")).evaluate(spread_out).soft_violations == 0


def test_spread_can_group_by_year():
    courses = [
        course("A", department="HUM", year=2),
        course("B", department="CS", year=2),
        course("C", department="HUM", year=3),
    ]
    rooms = [Room(id="R1", capacity=50)]
    encoding = (Assignment(0, 0, 0), Assignment(0, 1, 0), Assignment(0, 2, 0))

    by_year = evaluator(courses, rooms, only(ConstraintRule.spread, "Soft"), group_key="year")
    by_department = evaluator(courses, rooms, only(ConstraintRule.spread, "Soft"))

    assert by_year.evaluate(encoding).soft_violations == 1
    assert by_department.evaluate(encoding).soft_violations == 1
    assert by_year.groups == [2, 2, 3]


def test_disabled_constraints_are_ignored(all_constraints):
    disabled = [item.model_copy(update={"enabled": False}) for item in all_constraints]
    courses = [course("A", students=500), course("B", students=500)]
    rooms = [Room(id="R1", capacity=10)]

    result = evaluator(courses, rooms, disabled).evaluate((Assignment(0, 0, 0), Assignment(0, 0, 0)))

    assert (result.hard_violations, result.soft_violations, result.fitness) == (0, 0, 0.0)


def test_fitness_weights_hard_violations_far_above_soft(all_constraints):
    courses = [course("A", students=150), course("B", department="D1"), course("C", department="D1")]
    rooms = [Room(id="R1", capacity=100)]
    # A is overfull and shares a sitting with B; all three share department D1 on day 0.
    encoding = (Assignment(0, 0, 0), Assignment(0, 0, 0), Assignment(0, 1, 0))
    result = evaluator(courses, rooms, all_constraints).evaluate(encoding)

    assert result.hard_violations == 2
    assert result.soft_violations == 3
    assert result.fitness == -(2 * 1000 + 3)

    custom = evaluator(courses, rooms, all_constraints, hard_weight=10).evaluate(encoding)
    assert custom.fitness == -(2 * 10 + 3)


def test_declared_kind_decides_the_violation_bucket():
    courses = [course("A", students=150)]
    rooms = [Room(id="R1", capacity=100)]
    result = evaluator(courses, rooms, only(ConstraintRule.room_capacity, "Soft")).evaluate((Assignment(0, 0, 0),))

    assert result.hard_violations == 0
    assert result.soft_violations == 1


def test_rule_resolution_prefers_explicit_rule_then_id_then_description():
    explicit = Constraint(id="c1", description="capacity", type="Hard", rule=ConstraintRule.spread)
    by_id = Constraint(id="C2", description="anything", type="Hard")
    by_text = Constraint(id="custom", description="No more than two exams in a row", type="Soft")
    unknown = Constraint(id="custom-2", description="Invigilators need lunch", type="Soft")

    assert resolve_rule(explicit) is ConstraintRule.spread
    assert resolve_rule(by_id) is ConstraintRule.room_capacity
    assert resolve_rule(by_text) is ConstraintRule.consecutive_limit
    assert resolve_rule(unknown) is None


def test_active_rules_keeps_first_declaration(all_constraints):
    duplicate = Constraint(id="again", description="", type="Soft", rule=ConstraintRule.room_capacity)
    rules = active_rules([*all_constraints, duplicate])

    assert rules == {
        ConstraintRule.same_time_exclusivity: True,
        ConstraintRule.room_capacity: True,
        ConstraintRule.consecutive_limit: False,
        ConstraintRule.spread: False,
    }


def test_empty_encoding_scores_zero(all_constraints):
    result = evaluator([], [], all_constraints).evaluate(())
    assert (result.hard_violations, result.soft_violations, result.fitness) == (0, 0, 0.0)
