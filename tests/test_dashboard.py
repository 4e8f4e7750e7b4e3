from datetime import datetime, timedelta
from types import SimpleNamespace

from app.models.assignment import AssignmentType
from app.services.dashboard import today_schedule, upcoming_deadlines

NOW = datetime(2025, 3, 10, 12, 0)


def assignment(assignment_id, due_in_days, kind=AssignmentType.SUBMISSION):
    due = NOW + timedelta(days=due_in_days) if due_in_days is not None else None
    return SimpleNamespace(id=assignment_id, type=kind, due_date=due)


def test_deadlines_include_overdue_work_not_handed_in():
    items = [
        assignment("late-missing", -2),
        assignment("late-done", -1),
        assignment("soon", 1),
        assignment("quiz", 3, AssignmentType.QUIZ),
        assignment("offline", 2, AssignmentType.OFFLINE),
        assignment("undated", None),
    ]
    result = upcoming_deadlines(items, {"late-done", "soon"}, NOW)
    assert [a.id for a in result] == ["late-missing", "soon", "quiz"]


def test_deadlines_are_capped():
    items = [assignment(f"a{i}", i) for i in range(1, 9)]
    assert [a.id for a in upcoming_deadlines(items, set(), NOW, limit=3)] == ["a1", "a2", "a3"]


def test_today_schedule_orders_by_period_and_adds_topics():
    courses = {"c1": SimpleNamespace(name="Algebra"), "c2": SimpleNamespace(name="Biology")}
    slots = [SimpleNamespace(course_id="c2", period=3), SimpleNamespace(course_id="c1", period=0)]
    result = today_schedule(slots, courses, {("c2", 3): "Cells"})
    assert [r["course_name"] for r in result] == ["Algebra", "Biology"]
    assert result[0]["period_label"] == "Morning"
    assert result[0]["topic"] is None
    assert result[1]["topic"] == "Cells"
