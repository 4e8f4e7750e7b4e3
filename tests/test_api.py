import asyncio
import json

from fastapi.testclient import TestClient
from starlette.requests import Request

from app.api.deps import create_access_token, decode_access_token
from app.main import app, schedule_conflict_handler
from app.services.schedule_conflict import ScheduleConflict, ScheduleConflictError

# No context manager: the lifespan (MongoDB connection) is never started.
client = TestClient(app)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requests_without_token_are_rejected():
    for path in ("/api/courses/", "/api/grades/me", "/api/attendance/daily"):
        response = client.get(path)
        assert response.status_code == 401, path


def test_garbage_token_is_rejected():
    response = client.get("/api/courses/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_access_token_round_trip():
    token = create_access_token("65f0c0ffee0000000000abcd", "teacher")
    assert decode_access_token(token) == "65f0c0ffee0000000000abcd"


def test_schedule_conflict_renders_as_409():
    conflict = ScheduleConflict(
        student_id="s1",
        student_name="Ana",
        course_id="a",
        course_name="Course A",
        day_of_week=1,
        period=2,
    )
    request = Request(
        {
            "type": "http",
            "method": "PUT",
            "path": "/api/schedule/teacher/slot",
            "query_string": b"",
            "headers": [(b"host", b"testserver")],
        }
    )
    response = asyncio.run(schedule_conflict_handler(request, ScheduleConflictError([conflict])))
    assert response.status_code == 409
    body = json.loads(response.body)
    assert body["detail"] == "Conflict for student Ana with Course A on Monday Period 2"
    assert body["conflicts"][0]["course_name"] == "Course A"
    assert body["conflicts"][0]["message"] == body["detail"]
