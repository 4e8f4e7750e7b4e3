"""Quiz editing and attempt scoring, kept free of database access."""
from __future__ import annotations

from typing import Iterable

from app.models.quiz import ChoiceInput, QuestionInput, QuizChoice, QuizQuestion


def validate_question(data: QuestionInput) -> None:
    if not data.choices:
        raise ValueError("A question needs at least one choice")
    if not any(c.is_correct for c in data.choices):
        raise ValueError("A question needs at least one correct choice")


def merge_choices(existing: Iterable[QuizChoice], incoming: list[ChoiceInput]) -> list[QuizChoice]:
    """New choice list for a question being edited.

    Choices sent with an id keep that id, choices without one are added, and
    stored choices that were not sent are dropped. Order follows the request.
    """
    known = {c.id for c in existing}
    merged = []
    for index, choice in enumerate(incoming):
        fields = {
            "text": choice.text,
            "image_url": choice.image_url,
            "is_correct": choice.is_correct,
            "order": index,
        }
        if choice.id is None:
            merged.append(QuizChoice(**fields))
        elif choice.id in known:
            merged.append(QuizChoice(id=choice.id, **fields))
        else:
            raise ValueError(f"Unknown choice {choice.id}")
    return merged


def next_order(questions: Iterable[QuizQuestion]) -> int:
    return max((q.order for q in questions), default=-1) + 1


def score_attempt(questions: list[QuizQuestion], answers: dict[str, str]) -> float:
    """Percent of questions answered with a correct choice; unanswered ones count as wrong."""
    if not questions:
        raise ValueError("Quiz has no questions")
    correct = 0
    for question in questions:
        chosen = answers.get(str(question.id))
        if any(c.id == chosen and c.is_correct for c in question.choices):
            correct += 1
    return round(correct / len(questions) * 100, 2)


def question_out(question: QuizQuestion, include_answers: bool = True) -> dict:
    choices = []
    for choice in sorted(question.choices, key=lambda c: c.order):
        item = {"id": choice.id, "text": choice.text, "image_url": choice.image_url, "order": choice.order}
        if include_answers:
            item["is_correct"] = choice.is_correct
        choices.append(item)
    return {
        "id": str(question.id),
        "text": question.text,
        "image_url": question.image_url,
        "order": question.order,
        "choices": choices,
    }
