from types import SimpleNamespace

import pytest

from app.models.quiz import ChoiceInput, QuestionInput, QuizChoice
from app.services.quiz import merge_choices, next_order, question_out, score_attempt, validate_question


def question(qid, correct, *others, order=0):
    choices = [QuizChoice(id=correct, text=correct, is_correct=True, order=0)]
    choices += [QuizChoice(id=c, text=c, order=i + 1) for i, c in enumerate(others)]
    return SimpleNamespace(id=qid, text=f"Question {qid}", image_url=None, order=order, choices=choices)


QUIZ = [
    question("q1", "paris", "rome", "madrid"),
    question("q2", "four", "three", order=1),
    question("q3", "h2o", "co2", order=2),
    question("q4", "mars", "venus", order=3),
]


def test_attempt_scores_percent_correct():
    answers = {"q1": "paris", "q2": "three", "q3": "h2o", "q4": "mars"}
    assert score_attempt(QUIZ, answers) == 75


def test_unanswered_questions_count_as_wrong():
    assert score_attempt(QUIZ, {"q1": "paris"}) == 25


def test_answer_from_another_question_is_wrong():
    assert score_attempt(QUIZ, {"q1": "four"}) == 0


def test_empty_quiz_cannot_be_attempted():
    with pytest.raises(ValueError):
        score_attempt([], {})


def test_question_needs_a_correct_choice():
    with pytest.raises(ValueError, match="correct"):
        validate_question(QuestionInput(text="2 + 2", choices=[ChoiceInput(text="5")]))
    with pytest.raises(ValueError, match="at least one choice"):
        validate_question(QuestionInput(text="2 + 2", choices=[]))


def test_editing_choices_keeps_ids_adds_new_and_drops_missing():
    stored = [QuizChoice(id="a", text="old a"), QuizChoice(id="b", text="b")]
    merged = merge_choices(
        stored,
        [ChoiceInput(text="new", is_correct=True), ChoiceInput(id="a", text="edited a")],
    )
    assert [c.text for c in merged] == ["new", "edited a"]
    assert merged[1].id == "a"
    assert merged[0].id not in {"a", "b"}
    assert [c.order for c in merged] == [0, 1]


def test_unknown_choice_id_is_rejected():
    with pytest.raises(ValueError):
        merge_choices([QuizChoice(id="a")], [ChoiceInput(id="zzz", text="x")])


def test_new_questions_go_after_the_last():
    assert next_order([]) == 0
    assert next_order(QUIZ) == 4


def test_student_view_hides_correct_answers():
    shown = question_out(QUIZ[0], include_answers=False)
    assert [c["id"] for c in shown["choices"]] == ["paris", "rome", "madrid"]
    assert all("is_correct" not in c for c in shown["choices"])
    assert question_out(QUIZ[0])["choices"][0]["is_correct"] is True
