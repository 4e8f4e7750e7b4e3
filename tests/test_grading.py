from datetime import datetime, timedelta

import pytest

from app.models.attendance import AttendanceStatus
from app.services.grading import (
    GradeInput,
    assignment_points,
    calculate_course_grade,
    summarize_attendance,
)

DUE = datetime(2025, 3, 1, 23, 59)


def test_full_grade_without_due_date_earns_its_share():
    assert assignment_points(GradeInput(max_points=100, grade=90)) == pytest.approx(90)


def test_late_penalty_applies_only_when_submitted_after_due_date():
    late = GradeInput(max_points=100, grade=80, late_penalty=20, due_date=DUE, submitted_at=DUE + timedelta(hours=1))
    on_time = GradeInput(max_points=100, grade=80, late_penalty=20, due_date=DUE, submitted_at=DUE)
    assert assignment_points(late) == pytest.approx(64)
    assert assignment_points(on_time) == pytest.approx(80)


def test_ungraded_assignment_earns_nothing_but_counts_toward_max():
    result = calculate_course_grade([GradeInput(max_points=50)], 0, 1.0)
    assert result.earned_points == 0
    assert result.max_points == 50
    assert result.grade == 0


def test_attendance_pool_blends_into_grade():
    result = calculate_course_grade([GradeInput(max_points=80, grade=100)], 20, 0.9)
    assert result.attendance_score == pytest.approx(18)
    assert result.grade == pytest.approx(98)
    assert result.breakdown() == {
        "student_points": pytest.approx(80),
        "extra_credit_points": 0,
        "attendance_score": pytest.approx(18),
        "max_points_possible": 80,
        "attendance_pool": 20,
    }


def test_no_gradable_work_defaults_to_full_marks():
    result = calculate_course_grade([], 0, 1.0)
    assert result.grade == 100
    assert not result.has_gradable_work


def test_extra_credit_adds_points_but_not_max():
    items = [
        GradeInput(max_points=100, grade=70),
        GradeInput(max_points=10, grade=100, is_extra_credit=True),
    ]
    result = calculate_course_grade(items, 0, 1.0)
    assert result.max_points == 100
    assert result.extra_credit_points == pytest.approx(10)
    assert result.grade == pytest.approx(80)


def test_grade_is_capped_at_100():
    items = [
        GradeInput(max_points=100, grade=100),
        GradeInput(max_points=50, grade=100, is_extra_credit=True),
    ]
    assert calculate_course_grade(items, 0, 1.0).grade == 100


def test_out_of_range_submission_grades_are_clamped():
    assert assignment_points(GradeInput(max_points=10, grade=150)) == pytest.approx(10)
    assert assignment_points(GradeInput(max_points=10, grade=-20)) == 0


def test_attendance_summary_ignores_skipped_sessions():
    summary = summarize_attendance(
        [
            AttendanceStatus.PRESENT,
            AttendanceStatus.EXCUSED,
            AttendanceStatus.ABSENT,
            AttendanceStatus.SKIPPED,
        ]
    )
    assert summary.total_sessions == 3
    assert summary.attended == 2
    assert summary.skipped == 1
    assert summary.percentage == pytest.approx(2 / 3)


def test_untaken_session_counts_as_not_attended():
    summary = summarize_attendance([AttendanceStatus.PRESENT, AttendanceStatus.PENDING])
    assert summary.total_sessions == 2
    assert summary.percentage == pytest.approx(0.5)
    assert calculate_course_grade([], 20, summary.percentage).grade == pytest.approx(50)


def test_attendance_summary_accepts_raw_strings():
    summary = summarize_attendance(["PRESENT", "ABSENT"])
    assert summary.present == 1
    assert summary.absent == 1


def test_no_sessions_counts_as_full_attendance():
    assert summarize_attendance([]).percentage == 1.0
    assert summarize_attendance([AttendanceStatus.SKIPPED]).percentage == 1.0
