from __future__ import annotations

from examforge.schemas.domain import Algorithm, AlgorithmParameters, Constraint, Course, Room
from examforge.schemas.generator import GenerateTimetableRequest

SAMPLE_DEPARTMENTS = {
    "DEPT_CS": "Computer Science",
    "DEPT_MATH": "Mathematics",
    "DEPT_PHY": "Physics",
    "DEPT_HUM": "Humanities",
}

SAMPLE_COURSES = [
    Course(id="CS101", name="Intro to CS", department_id="DEPT_CS", students=150, units=3),
    Course(id="MA201", name="Calculus II", department_id="DEPT_MATH", students=80, units=4),
    Course(id="PHY301", name="Quantum Physics", department_id="DEPT_PHY", students=50, units=3),
    Course(id="ENG102", name="Literature", department_id="DEPT_HUM", students=120, units=3),
    Course(id="HIS210", name="World History", department_id="DEPT_HUM", students=90, units=2),
]

SAMPLE_ROOMS = [
    Room(id="R101", capacity=100),
    Room(id="R102", capacity=160),
    Room(id="R205", capacity=60),
    Room(id="AUD", capacity=200),
]

SAMPLE_CONSTRAINTS = [
    Constraint(id="c1", description="No student should have two exams at the same time.", type="Hard"),
    Constraint(id="c2", description="Exam capacity must not exceed room capacity.", type="Hard"),
    Constraint(id="c3", description="A student should not have more than two exams in a row.", type="Soft"),
    Constraint(id="c4", description="Spread out exams for the same year as much as possible.", type="Soft"),
]


def sample_request(algorithm: Algorithm | None = None) -> GenerateTimetableRequest:
    return GenerateTimetableRequest(
        courses=SAMPLE_COURSES,
        rooms=SAMPLE_ROOMS,
        constraints=SAMPLE_CONSTRAINTS,
        algorithm=algorithm,
        params=AlgorithmParameters(),
    )
