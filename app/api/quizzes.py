"""Quiz editor: quizzes owned by a teacher and their multiple-choice questions."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException

from app.api.deps import TeacherOrAdmin, is_admin, parse_object_id
from app.db import transaction
from app.models.assignment import Assignment
from app.models.quiz import QuestionInput, Quiz, QuizCreate, QuizQuestion, QuizUpdate
from app.models.user import User
from app.services.quiz import merge_choices, next_order, question_out, validate_question

logger = logging.getLogger(__name__)

router = APIRouter()


def _quiz_out(quiz: Quiz, question_count: Optional[int] = None) -> dict:
    out = {
        "id": str(quiz.id),
        "teacher_id": quiz.teacher_id,
        "title": quiz.title,
        "description": quiz.description,
        "created_at": quiz.created_at,
        "updated_at": quiz.updated_at,
    }
    if question_count is not None:
        out["question_count"] = question_count
    return out


def _ensure_owner(quiz: Quiz, user: User) -> None:
    if not is_admin(user) and quiz.teacher_id != str(user.id):
        raise HTTPException(status_code=403, detail="Unauthorized")


async def get_owned_quiz(quiz_id: str, user: User) -> Quiz:
    quiz = await Quiz.get_active(parse_object_id(quiz_id, "quiz id"))
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    _ensure_owner(quiz, user)
    return quiz


async def _questions(quiz_id: str) -> list[QuizQuestion]:
    return await QuizQuestion.active(QuizQuestion.quiz_id == quiz_id).sort("order").to_list()


@router.get("/")
async def list_quizzes(user: TeacherOrAdmin, teacher_id: Optional[str] = None):
    owner = teacher_id if is_admin(user) and teacher_id else str(user.id)
    quizzes = await Quiz.active(Quiz.teacher_id == owner).sort("-updated_at").to_list()
    result = []
    for quiz in quizzes:
        count = await QuizQuestion.active(QuizQuestion.quiz_id == str(quiz.id)).count()
        result.append(_quiz_out(quiz, count))
    return result


@router.post("/", status_code=201)
async def create_quiz(data: QuizCreate, user: TeacherOrAdmin):
    quiz = Quiz(teacher_id=str(user.id), title=data.title, description=data.description)
    await quiz.insert()
    logger.info(f"Quiz created: {quiz.title} by {user.id}")
    return _quiz_out(quiz, 0)


@router.get("/{quiz_id}")
async def get_quiz(quiz_id: str, user: TeacherOrAdmin):
    quiz = await get_owned_quiz(quiz_id, user)
    result = _quiz_out(quiz)
    result["questions"] = [question_out(q) for q in await _questions(quiz_id)]
    return result


@router.patch("/{quiz_id}")
async def update_quiz(quiz_id: str, data: QuizUpdate, user: TeacherOrAdmin):
    quiz = await get_owned_quiz(quiz_id, user)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(quiz, key, value)
    quiz.updated_at = datetime.utcnow()
    await quiz.save()
    return _quiz_out(quiz)


@router.delete("/{quiz_id}", status_code=204)
async def delete_quiz(quiz_id: str, user: TeacherOrAdmin):
    """Soft delete the quiz and detach it from any assignment using it."""
    quiz = await get_owned_quiz(quiz_id, user)
    async with transaction() as session:
        await Assignment.find(Assignment.quiz_id == quiz_id).update(
            {"$set": {"quiz_id": None}}, session=session
        )
        await quiz.soft_delete(session=session)
    logger.info(f"Quiz {quiz_id} deleted by {user.id}")
    return None


@router.post("/{quiz_id}/restore")
async def restore_quiz(quiz_id: str, user: TeacherOrAdmin):
    quiz = await Quiz.get(parse_object_id(quiz_id, "quiz id"))
    if not quiz or not quiz.is_deleted:
        raise HTTPException(status_code=404, detail="Deleted quiz not found")
    _ensure_owner(quiz, user)
    quiz.deleted_at = None
    quiz.updated_at = datetime.utcnow()
    await quiz.save()
    return _quiz_out(quiz)


@router.put("/{quiz_id}/questions")
async def upsert_question(quiz_id: str, data: QuestionInput, user: TeacherOrAdmin):
    """Create a question, or update it in place when ``id`` is given."""
    quiz = await get_owned_quiz(quiz_id, user)
    try:
        validate_question(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if data.id is None:
        try:
            choices = merge_choices([], data.choices)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        question = QuizQuestion(
            quiz_id=quiz_id,
            text=data.text,
            image_url=data.image_url,
            order=next_order(await _questions(quiz_id)),
            choices=choices,
        )
        await question.insert()
    else:
        question = await QuizQuestion.get_active(parse_object_id(data.id, "question id"))
        if not question or question.quiz_id != quiz_id:
            raise HTTPException(status_code=404, detail="Question not found")
        try:
            question.choices = merge_choices(question.choices, data.choices)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        question.text = data.text
        question.image_url = data.image_url
        question.updated_at = datetime.utcnow()
        await question.save()

    quiz.updated_at = datetime.utcnow()
    await quiz.save()
    return question_out(question)


@router.delete("/questions/{question_id}", status_code=204)
async def delete_question(question_id: str, user: TeacherOrAdmin):
    question = await QuizQuestion.get_active(parse_object_id(question_id, "question id"))
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    await get_owned_quiz(question.quiz_id, user)
    await question.soft_delete()
    return None


@router.post("/{quiz_id}/questions/bulk", status_code=201)
async def bulk_create_questions(quiz_id: str, data: list[QuestionInput], user: TeacherOrAdmin):
    """Append many questions (e.g. from a spreadsheet import) after the existing ones."""
    await get_owned_quiz(quiz_id, user)
    try:
        for item in data:
            validate_question(item)
        choice_lists = [merge_choices([], item.choices) for item in data]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    order = next_order(await _questions(quiz_id))
    async with transaction() as session:
        for offset, (item, choices) in enumerate(zip(data, choice_lists)):
            await QuizQuestion(
                quiz_id=quiz_id,
                text=item.text,
                image_url=item.image_url,
                order=order + offset,
                choices=choices,
            ).insert(session=session)
    logger.info(f"Imported {len(data)} question(s) into quiz {quiz_id}")
    return {"status": "success", "count": len(data)}
