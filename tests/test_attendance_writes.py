"""Session-wide attendance writes run in one transaction and stop at the first failure."""
import asyncio
from datetime import date
from types import SimpleNamespace

import pytest

from app.models.attendance import AttendanceEntry, AttendanceStatus
from app.services import attendance

SESSION_DATE = date(2024, 9, 2)


@pytest.fixture
def rows(monkeypatch, fake_transaction):
    writes = []
    stored = {}

    class FakeAttendance:
        fail_for = None

        def __init__(self, course_id, student_id, date, period, status, topic=None, excuse_reason=None):
            self.course_id = course_id
            self.student_id = student_id
            self.date = date
            self.period = period
            self.status = status
            self.topic = topic
            self.excuse_reason = excuse_reason

        async def insert(self, session=None):
            if self.student_id == FakeAttendance.fail_for:
                raise RuntimeError("write failed")
            writes.append(("insert", self.student_id, self.period, self.status, session))

        async def save(self, session=None):
            if self.student_id == FakeAttendance.fail_for:
                raise RuntimeError("write failed")
            writes.append(("save", self.student_id, self.period, self.status, session))

    async def find_row(course_id, student_id, day, period, session):
        assert session is fake_transaction.session
        return stored.get((student_id, period))

    async def single_period(course, d, period, apply_to_all_sessions):
        return [period, period + 1] if apply_to_all_sessions else [period]

    monkeypatch.setattr(attendance, "Attendance", FakeAttendance)
    monkeypatch.setattr(attendance, "_find_row", find_row)
    monkeypatch.setattr(attendance, "periods_for_session", single_period)
    monkeypatch.setattr(attendance, "transaction", fake_transaction)

    def existing(student_id, period, status, topic=None):
        stored[(student_id, period)] = FakeAttendance(
            "c1", student_id, attendance.session_day(SESSION_DATE), period, status, topic
        )

    return SimpleNamespace(Attendance=FakeAttendance, existing=existing, writes=writes, tx=fake_transaction)


def course(*student_ids):
    return SimpleNamespace(id="c1", student_ids=list(student_ids))


def entry(student_id, status):
    return AttendanceEntry(student_id=student_id, status=status)


def test_unchanged_rows_are_not_rewritten(rows):
    rows.existing("s1", 2, AttendanceStatus.PRESENT, topic="Fractions")
    rows.existing("s2", 2, AttendanceStatus.PRESENT, topic="Fractions")
    records = [
        entry("s1", AttendanceStatus.PRESENT),
        entry("s2", AttendanceStatus.ABSENT),
        entry("s3", AttendanceStatus.EXCUSED),
    ]

    written = asyncio.run(attendance.save_attendance(course("s1", "s2", "s3"), SESSION_DATE, 2, "Fractions", records))

    assert written == 2
    assert [w[:4] for w in rows.writes] == [
        ("save", "s2", 2, AttendanceStatus.ABSENT),
        ("insert", "s3", 2, AttendanceStatus.EXCUSED),
    ]
    assert all(w[4] is rows.tx.session for w in rows.writes)
    assert rows.tx.outcome == "committed"


def test_apply_to_all_sessions_writes_every_period(rows):
    records = [entry("s1", AttendanceStatus.PRESENT)]

    written = asyncio.run(
        attendance.save_attendance(course("s1"), SESSION_DATE, 3, None, records, apply_to_all_sessions=True)
    )

    assert written == 2
    assert [(w[0], w[2]) for w in rows.writes] == [("insert", 3), ("insert", 4)]


def test_failure_mid_session_aborts_attendance_save(rows):
    rows.Attendance.fail_for = "s2"
    records = [
        entry("s1", AttendanceStatus.PRESENT),
        entry("s2", AttendanceStatus.ABSENT),
        entry("s3", AttendanceStatus.PRESENT),
    ]

    with pytest.raises(RuntimeError):
        asyncio.run(attendance.save_attendance(course("s1", "s2", "s3"), SESSION_DATE, 2, None, records))

    assert rows.tx.outcome == "aborted"
    assert [w[1] for w in rows.writes] == ["s1"]
    assert rows.writes[0][4] is rows.tx.session


def test_skip_marks_every_student_skipped(rows):
    rows.existing("s1", 5, AttendanceStatus.ABSENT)

    asyncio.run(attendance.skip_session(course("s1", "s2"), SESSION_DATE, 5))

    assert [w[:4] for w in rows.writes] == [
        ("save", "s1", 5, AttendanceStatus.SKIPPED),
        ("insert", "s2", 5, AttendanceStatus.SKIPPED),
    ]
    assert all(w[4] is rows.tx.session for w in rows.writes)
    assert rows.tx.outcome == "committed"


def test_failure_mid_skip_aborts(rows):
    rows.existing("s2", 5, AttendanceStatus.PRESENT)
    rows.Attendance.fail_for = "s2"

    with pytest.raises(RuntimeError):
        asyncio.run(attendance.skip_session(course("s1", "s2", "s3"), SESSION_DATE, 5))

    assert rows.tx.outcome == "aborted"
    assert [w[1] for w in rows.writes] == ["s1"]
