"""Route guards and validation that run before any database access."""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_current_role, get_current_user
from app.main import app
from app.services.roles import default_permissions_for


def fake_role(key):
    perms = default_permissions_for(key)
    return SimpleNamespace(allows=lambda module, action: getattr(perms[module], action))


@pytest.fixture
def as_user():
    def login(role):
        user = SimpleNamespace(id="65f0c0ffee0000000000abcd", role=role, is_active=True)
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_current_role] = lambda: fake_role(role)
        return TestClient(app)

    yield login
    app.dependency_overrides.clear()


def test_score_out_of_range_is_rejected(as_user):
    client = as_user("teacher")
    response = client.put(
        "/api/assignments/65f0c0ffee0000000000aaaa/submissions/s1/score", json={"score": 150}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Score must be between 0 and 100"


def test_student_cannot_open_master_schedule(as_user):
    response = as_user("student").get("/api/schedule/master")
    assert response.status_code == 403


def test_student_module_permission_blocks_attendance(as_user):
    response = as_user("student").get("/api/attendance/daily")
    assert response.status_code == 403


def test_teacher_cannot_edit_another_teachers_schedule(as_user):
    response = as_user("teacher").put(
        "/api/schedule/teacher/slot?teacher_id=someone-else",
        json={"day_of_week": 1, "period": 2, "course_id": None},
    )
    assert response.status_code == 403


def test_period_outside_day_is_a_validation_error(as_user):
    response = as_user("teacher").put(
        "/api/schedule/teacher/slot", json={"day_of_week": 1, "period": 8, "course_id": None}
    )
    assert response.status_code == 422


def test_bad_date_is_rejected(as_user):
    response = as_user("teacher").get("/api/attendance/daily?date_str=31-12-2025")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format (YYYY-MM-DD)"


def test_students_cannot_open_the_quiz_editor(as_user):
    response = as_user("student").get("/api/quizzes/")
    assert response.status_code == 403


def test_student_cannot_open_teacher_dashboard(as_user):
    response = as_user("student").get("/api/dashboard/teacher")
    assert response.status_code == 403
