"""Load course work and attendance, then grade it with the single grade formula.

The student, teacher, homeroom and report-card views all come through here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from beanie import PydanticObjectId

from app.models.academic_year import AcademicYear, Term
from app.models.assignment import Assignment, Submission
from app.models.attendance import Attendance
from app.models.course import Course
from app.services.grading import (
    AttendanceSummary,
    CourseGrade,
    GradeInput,
    calculate_course_grade,
    summarize_attendance,
)


@dataclass
class CourseWork:
    """Everything needed to grade any student of one course."""
    course: Course
    assignments: list[Assignment] = field(default_factory=list)
    # assignment_id -> student_id -> submission
    submissions: dict[str, dict[str, Submission]] = field(default_factory=dict)
    # student_id -> attendance rows
    attendance: dict[str, list[Attendance]] = field(default_factory=dict)

    def grade_inputs(self, student_id: str) -> list[GradeInput]:
        inputs = []
        for a in self.assignments:
            sub = self.submissions.get(str(a.id), {}).get(student_id)
            inputs.append(
                GradeInput(
                    max_points=a.max_points,
                    is_extra_credit=a.is_extra_credit,
                    late_penalty=a.late_penalty,
                    due_date=a.due_date,
                    grade=sub.grade if sub else None,
                    submitted_at=sub.submitted_at if sub else None,
                )
            )
        return inputs

    def attendance_summary(self, student_id: str) -> AttendanceSummary:
        return summarize_attendance(r.status for r in self.attendance.get(student_id, []))

    def grade_for(self, student_id: str) -> tuple[CourseGrade, AttendanceSummary]:
        summary = self.attendance_summary(student_id)
        grade = calculate_course_grade(
            self.grade_inputs(student_id),
            self.course.attendance_pool_score,
            summary.percentage,
        )
        return grade, summary


async def load_course_work(
    courses: Iterable[Course], student_ids: Optional[list[str]] = None
) -> dict[str, CourseWork]:
    """Fetch assignments, submissions and attendance for ``courses`` in three queries.

    ``student_ids`` narrows submissions and attendance to those students.
    """
    courses = list(courses)
    if not courses:
        return {}
    course_ids = [str(c.id) for c in courses]

    assignments = await Assignment.active({"course_id": {"$in": course_ids}}).sort("created_at").to_list()
    assignment_ids = [str(a.id) for a in assignments]

    sub_query: dict = {"assignment_id": {"$in": assignment_ids}}
    att_query: dict = {"course_id": {"$in": course_ids}}
    if student_ids is not None:
        sub_query["student_id"] = {"$in": student_ids}
        att_query["student_id"] = {"$in": student_ids}

    submissions = await Submission.active(sub_query).to_list() if assignment_ids else []
    attendance = await Attendance.active(att_query).to_list()

    work = {str(c.id): CourseWork(course=c) for c in courses}
    course_of_assignment = {}
    for a in assignments:
        work[a.course_id].assignments.append(a)
        course_of_assignment[str(a.id)] = a.course_id
    for s in submissions:
        course_id = course_of_assignment[s.assignment_id]
        # one active submission per student; keep the latest if duplicates slipped in
        bucket = work[course_id].submissions.setdefault(s.assignment_id, {})
        current = bucket.get(s.student_id)
        if current is None or s.submitted_at > current.submitted_at:
            bucket[s.student_id] = s
    for r in attendance:
        work[r.course_id].attendance.setdefault(r.student_id, []).append(r)
    return work


def gradebook_rows(work: CourseWork, students) -> list[dict]:
    """Teacher gradebook: one row per rostered student."""
    rows = []
    for student in students:
        grade, summary = work.grade_for(str(student.id))
        rows.append(
            {
                "student_id": str(student.id),
                "student_name": student.full_name,
                "attendance_percentage": round(summary.percentage * 100, 1),
                "total_score": round(grade.grade, 1),
                "breakdown": grade.breakdown(),
            }
        )
    return rows


def student_grade_entry(work: CourseWork, student_id: str, teacher_name: Optional[str] = None) -> dict:
    grade, summary = work.grade_for(student_id)
    return {
        "course_id": str(work.course.id),
        "course_name": work.course.display_name,
        "teacher_name": teacher_name,
        "term_id": work.course.term_id,
        "grade": round(grade.grade, 1),
        "attendance_percentage": round(summary.percentage * 100),
        "breakdown": grade.breakdown(),
    }


def homeroom_student_summary(works: Iterable[CourseWork], student_id: str) -> dict:
    """Overall attendance and average grade across the class courses a student takes."""
    total_sessions = 0
    total_attended = 0
    grade_sum = 0.0
    graded_courses = 0

    for work in works:
        if student_id not in work.course.student_ids:
            continue
        grade, summary = work.grade_for(student_id)
        total_sessions += summary.total_sessions
        total_attended += summary.attended
        if grade.has_gradable_work:
            grade_sum += grade.grade
            graded_courses += 1

    attendance = total_attended / total_sessions * 100 if total_sessions else 100.0
    average = round(grade_sum / graded_courses, 1) if graded_courses else None
    return {
        "attendance": round(attendance, 1),
        "average_grade": average,
        "graded_courses": graded_courses,
    }


def report_card_entry(work: CourseWork, student_id: str, subject=None, teacher_name: Optional[str] = None) -> dict:
    grade, summary = work.grade_for(student_id)
    name = (subject.report_name if subject and subject.report_name else None) or work.course.display_name
    return {
        "id": str(work.course.id),
        "name": name,
        "code": subject.code if subject else "",
        "teacher": teacher_name,
        "grade": round(grade.grade),
        "attendance": round(summary.percentage * 100),
    }


def term_label(term: Term, year_names: dict[str, str]) -> str:
    """e.g. ``2025/2026 ODD``."""
    year = year_names.get(term.academic_year_id)
    return f"{year} {term.type.value}" if year else term.type.value


def grade_history(
    works: Iterable[CourseWork], student_id: str, terms: Iterable[Term], year_names: dict[str, str]
) -> list[dict]:
    """Average course grade per term, oldest term first.

    Every course the student took in the term counts toward the average.
    """
    grades_by_term: dict[str, list[float]] = {}
    for work in works:
        if student_id not in work.course.student_ids:
            continue
        grade, _ = work.grade_for(student_id)
        grades_by_term.setdefault(work.course.term_id, []).append(grade.grade)

    history = []
    for term in sorted((t for t in terms if str(t.id) in grades_by_term), key=lambda t: t.start_date):
        grades = grades_by_term[str(term.id)]
        history.append(
            {
                "term_id": str(term.id),
                "name": term_label(term, year_names),
                "average_grade": round(sum(grades) / len(grades), 1),
                "course_count": len(grades),
            }
        )
    return history


async def load_student_terms(courses: list[Course]) -> tuple[list[Term], dict[str, str]]:
    """Terms the courses belong to, plus academic year names keyed by id."""
    term_ids = {c.term_id for c in courses}
    if not term_ids:
        return [], {}
    terms = await Term.active({"_id": {"$in": [PydanticObjectId(t) for t in term_ids]}}).to_list()
    year_ids = {t.academic_year_id for t in terms}
    years = await AcademicYear.find({"_id": {"$in": [PydanticObjectId(y) for y in year_ids]}}).to_list()
    return terms, {str(y.id): y.name for y in years}


async def student_semesters(student_id: str) -> list[dict]:
    """Terms in which the student has at least one course, newest first."""
    courses = await Course.active({"student_ids": student_id}).to_list()
    terms, year_names = await load_student_terms(courses)
    return [
        {
            "id": str(t.id),
            "name": term_label(t, year_names),
            "type": t.type,
            "academic_year": year_names.get(t.academic_year_id),
            "start_date": t.start_date,
            "end_date": t.end_date,
            "is_active": t.is_active,
        }
        for t in sorted(terms, key=lambda t: t.start_date, reverse=True)
    ]


async def student_grade_history(student_id: str) -> list[dict]:
    courses = await Course.active({"student_ids": student_id}).to_list()
    terms, year_names = await load_student_terms(courses)
    works = await load_course_work(courses, [student_id])
    return grade_history(works.values(), student_id, terms, year_names)
