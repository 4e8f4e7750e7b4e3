from app.services.schedule_conflict import (
    CourseSlots,
    ScheduleConflictError,
    Slot,
    StudentRef,
    find_course_conflicts,
    find_student_conflict,
)

MONDAY = 1
COURSE_A = CourseSlots(course_id="a", course_name="Course A", slots=[Slot(day_of_week=MONDAY, period=2)])
COURSE_C = CourseSlots(course_id="c", course_name="Course C", slots=[Slot(day_of_week=MONDAY, period=4)])


def test_conflict_names_student_and_occupying_course():
    conflicts = find_course_conflicts(
        "b",
        [StudentRef(id="s1", name="Ana")],
        [Slot(day_of_week=MONDAY, period=2)],
        {"s1": [COURSE_A]},
    )
    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.student_name == "Ana"
    assert conflict.course_name == "Course A"
    assert (conflict.day_of_week, conflict.period) == (MONDAY, 2)
    assert conflict.describe() == "Conflict for student Ana with Course A on Monday Period 2"


def test_free_slot_has_no_conflict():
    assert find_student_conflict("b", [Slot(day_of_week=MONDAY, period=3)], [COURSE_A, COURSE_C]) is None


def test_course_never_conflicts_with_itself():
    assert find_student_conflict("a", [Slot(day_of_week=MONDAY, period=2)], [COURSE_A]) is None


def test_only_first_conflict_per_student_is_reported():
    proposed = [Slot(day_of_week=MONDAY, period=2), Slot(day_of_week=MONDAY, period=4)]
    conflicts = find_course_conflicts(
        "b",
        [StudentRef(id="s1", name="Ana"), StudentRef(id="s2", name="Ben"), StudentRef(id="s3", name="Cy")],
        proposed,
        {"s1": [COURSE_A, COURSE_C], "s2": [COURSE_C]},
    )
    assert [(c.student_id, c.course_name) for c in conflicts] == [("s1", "Course A"), ("s2", "Course C")]


def test_error_message_defaults_to_first_conflict():
    conflict = find_student_conflict("b", [Slot(day_of_week=MONDAY, period=2)], [COURSE_A])
    error = ScheduleConflictError([conflict])
    assert error.message == "Schedule conflict with Course A on Monday Period 2"
    assert ScheduleConflictError([conflict], "Schedule conflicts detected").message == "Schedule conflicts detected"
