"""Course assignments, teacher scoring and student submissions."""
import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException

from app.api.deps import (
    CurrentUser,
    StudentOnly,
    TeacherOrAdmin,
    ensure_course_teacher,
    get_course_or_404,
    parse_object_id,
)
from app.api.quizzes import get_owned_quiz
from app.models.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentType,
    AssignmentUpdate,
    ScoreUpdate,
    Submission,
    SubmissionCreate,
)
from app.models.quiz import QuizAttemptRequest, QuizQuestion
from app.models.user import User, UserRole
from app.services.quiz import question_out, score_attempt

logger = logging.getLogger(__name__)

router = APIRouter()


def _assignment_out(a: Assignment) -> dict:
    return {
        "id": str(a.id),
        "course_id": a.course_id,
        "title": a.title,
        "description": a.description,
        "type": a.type,
        "due_date": a.due_date,
        "max_points": a.max_points,
        "is_extra_credit": a.is_extra_credit,
        "late_penalty": a.late_penalty,
        "quiz_id": a.quiz_id,
        "created_at": a.created_at,
    }


def _submission_out(s: Submission) -> dict:
    return {
        "id": str(s.id),
        "student_id": s.student_id,
        "grade": s.grade,
        "submitted_at": s.submitted_at,
        "content": s.submission_url,
        "attachment_url": s.attachment_url,
        "link": s.link,
        "feedback": s.feedback,
        "answers": s.answers,
    }


async def _get_assignment(assignment_id: str) -> Assignment:
    assignment = await Assignment.get_active(parse_object_id(assignment_id, "assignment id"))
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


async def _check_quiz_link(assignment_type: AssignmentType, quiz_id, user: User) -> None:
    """A QUIZ assignment must point at a quiz its teacher owns."""
    if assignment_type == AssignmentType.QUIZ and not quiz_id:
        raise HTTPException(status_code=400, detail="A quiz assignment needs a quiz")
    if quiz_id:
        await get_owned_quiz(quiz_id, user)


@router.get("/course/{course_id}")
async def list_assignments(course_id: str, user: CurrentUser):
    course = await get_course_or_404(course_id)
    if user.role == UserRole.STUDENT:
        if str(user.id) not in course.student_ids:
            raise HTTPException(status_code=403, detail="Unauthorized")
    else:
        ensure_course_teacher(course, user)
    assignments = await Assignment.active(Assignment.course_id == course_id).sort("created_at").to_list()
    return [_assignment_out(a) for a in assignments]


@router.get("/{assignment_id}")
async def get_assignment(assignment_id: str, user: CurrentUser):
    assignment = await _get_assignment(assignment_id)
    course = await get_course_or_404(assignment.course_id)
    result = _assignment_out(assignment)

    if user.role == UserRole.STUDENT:
        if str(user.id) not in course.student_ids:
            raise HTTPException(status_code=403, detail="Unauthorized")
        mine = await Submission.active(
            Submission.assignment_id == assignment_id, Submission.student_id == str(user.id)
        ).first_or_none()
        result["submission"] = _submission_out(mine) if mine else None
        return result

    ensure_course_teacher(course, user)
    submissions = await Submission.active(Submission.assignment_id == assignment_id).to_list()
    result["submissions"] = [_submission_out(s) for s in submissions]
    return result


@router.post("/", status_code=201)
async def create_assignment(data: AssignmentCreate, user: TeacherOrAdmin):
    course = await get_course_or_404(data.course_id)
    ensure_course_teacher(course, user)
    await _check_quiz_link(data.type, data.quiz_id, user)
    assignment = Assignment(**data.model_dump())
    await assignment.insert()
    logger.info(f"Assignment created: {assignment.title} for course {course.id}")
    return _assignment_out(assignment)


@router.patch("/{assignment_id}")
async def update_assignment(assignment_id: str, data: AssignmentUpdate, user: TeacherOrAdmin):
    assignment = await _get_assignment(assignment_id)
    ensure_course_teacher(await get_course_or_404(assignment.course_id), user)
    changes = data.model_dump(exclude_unset=True)
    await _check_quiz_link(
        changes.get("type", assignment.type), changes.get("quiz_id", assignment.quiz_id), user
    )
    for key, value in changes.items():
        setattr(assignment, key, value)
    assignment.updated_at = datetime.utcnow()
    await assignment.save()
    return _assignment_out(assignment)


@router.delete("/{assignment_id}", status_code=204)
async def delete_assignment(assignment_id: str, user: TeacherOrAdmin):
    assignment = await _get_assignment(assignment_id)
    ensure_course_teacher(await get_course_or_404(assignment.course_id), user)
    await assignment.soft_delete()
    return None


@router.put("/{assignment_id}/submissions/{student_id}/score")
async def update_submission_score(assignment_id: str, student_id: str, data: ScoreUpdate, user: TeacherOrAdmin):
    """Grade a student's work; a null score removes the grade."""
    score = data.score
    if score is not None and (score < 0 or score > 100):
        raise HTTPException(status_code=400, detail="Score must be between 0 and 100")

    assignment = await _get_assignment(assignment_id)
    course = await get_course_or_404(assignment.course_id)
    ensure_course_teacher(course, user)
    if student_id not in course.student_ids:
        raise HTTPException(status_code=400, detail="Student is not enrolled in this course")

    submissions = await Submission.active(
        Submission.assignment_id == assignment_id, Submission.student_id == student_id
    ).to_list()

    if not submissions:
        if score is None:
            raise HTTPException(status_code=400, detail="Cannot un-grade a non-existent submission")
        # offline work is graded without the student ever submitting
        submission = Submission(assignment_id=assignment_id, student_id=student_id, grade=score)
        await submission.insert()
        logger.info(f"Score {score} recorded for assignment {assignment_id} student {student_id}")
        return {"status": "success", "count": 1}

    for sub in submissions:
        if score is None and not sub.has_content:
            logger.info(f"Soft deleting empty submission {sub.id}")
            await sub.soft_delete()
            continue
        sub.grade = score
        sub.updated_at = datetime.utcnow()
        await sub.save()
    logger.info(f"Score {score} set for assignment {assignment_id} student {student_id}")
    return {"status": "success", "count": len(submissions)}


@router.post("/{assignment_id}/submit")
async def submit_assignment(assignment_id: str, data: SubmissionCreate, student: StudentOnly):
    assignment = await _get_assignment(assignment_id)
    course = await get_course_or_404(assignment.course_id)
    if str(student.id) not in course.student_ids:
        raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    existing = await Submission.active(
        Submission.assignment_id == assignment_id, Submission.student_id == str(student.id)
    ).first_or_none()
    now = datetime.utcnow()

    if existing:
        existing.submitted_at = now
        existing.submission_url = data.content
        existing.link = data.link or None
        if data.attachment_url is not None:
            existing.attachment_url = data.attachment_url
        existing.updated_at = now
        await existing.save()
        return {"status": "success", "id": str(existing.id)}

    submission = Submission(
        assignment_id=assignment_id,
        student_id=str(student.id),
        submitted_at=now,
        submission_url=data.content,
        attachment_url=data.attachment_url,
        link=data.link,
    )
    await submission.insert()
    logger.info(f"Submission received: assignment {assignment_id} student {student.id}")
    return {"status": "success", "id": str(submission.id)}


async def _quiz_questions(assignment: Assignment) -> list[QuizQuestion]:
    if assignment.type != AssignmentType.QUIZ or not assignment.quiz_id:
        raise HTTPException(status_code=400, detail="This assignment has no quiz")
    return await QuizQuestion.active(QuizQuestion.quiz_id == assignment.quiz_id).sort("order").to_list()


@router.get("/{assignment_id}/quiz")
async def get_assignment_quiz(assignment_id: str, user: CurrentUser):
    """The quiz behind an assignment; students never see which choices are correct."""
    assignment = await _get_assignment(assignment_id)
    course = await get_course_or_404(assignment.course_id)
    is_student = user.role == UserRole.STUDENT
    if is_student:
        if str(user.id) not in course.student_ids:
            raise HTTPException(status_code=403, detail="Unauthorized")
    else:
        ensure_course_teacher(course, user)
    questions = await _quiz_questions(assignment)
    return {
        "assignment_id": assignment_id,
        "quiz_id": assignment.quiz_id,
        "questions": [question_out(q, include_answers=not is_student) for q in questions],
    }


@router.post("/{assignment_id}/quiz-attempt")
async def submit_quiz_attempt(assignment_id: str, data: QuizAttemptRequest, student: StudentOnly):
    """Grade the student's answers at once; a graded attempt cannot be retaken."""
    assignment = await _get_assignment(assignment_id)
    course = await get_course_or_404(assignment.course_id)
    if str(student.id) not in course.student_ids:
        raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    questions = await _quiz_questions(assignment)
    existing = await Submission.active(
        Submission.assignment_id == assignment_id, Submission.student_id == str(student.id)
    ).first_or_none()
    if existing and existing.grade is not None:
        raise HTTPException(status_code=400, detail="Quiz already submitted")

    try:
        grade = score_attempt(questions, data.answers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    now = datetime.utcnow()
    if existing:
        existing.answers = data.answers
        existing.grade = grade
        existing.submitted_at = now
        existing.updated_at = now
        await existing.save()
    else:
        await Submission(
            assignment_id=assignment_id,
            student_id=str(student.id),
            submitted_at=now,
            answers=data.answers,
            grade=grade,
        ).insert()
    logger.info(f"Quiz attempt graded {grade} for assignment {assignment_id} student {student.id}")
    return {"status": "success", "grade": grade}
