import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from examforge.core.config import Settings
from examforge.main import app
from examforge.schemas.domain import Constraint, Course, Room
from examforge.services.horizon import Horizon


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def settings():
    return Settings(_env_file=None)


@pytest.fixture()
def horizon():
    return Horizon(days=("2026-10-19", "2026-10-20"), time_slots=("09:00", "13:00", "17:00"))


@pytest.fixture()
def all_constraints():
    return [
        Constraint(id="c1", description="No student should have two exams at the same time.", type="Hard"),
        Constraint(id="c2", description="Exam capacity must not exceed room capacity.", type="Hard"),
        Constraint(id="c3", description="A student should not have more than two exams in a row.", type="Soft"),
        Constraint(id="c4", description="Spread out exams for the same year as much as possible.", type="Soft"),
    ]


@pytest.fixture()
def two_courses():
    return [
        Course(id="CS101", name="Intro to CS", department_id="DEPT_CS", students=40, units=3),
        Course(id="MA201", name="Calculus II", department_id="DEPT_MATH", students=30, units=4),
    ]


@pytest.fixture()
def large_rooms():
    return [Room(id="R1", capacity=100), Room(id="R2", capacity=120)]
