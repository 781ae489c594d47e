"""Quiz grading, one-shot submission and answer hiding (no database needed)."""

from datetime import datetime

import pytest

from errors import QuizAlreadySubmittedError, ValidationFailed
from models import Document
from services.quiz_lifecycle import (
    UNANSWERED,
    build_quiz,
    grade,
    serialize_quiz,
    submit_quiz,
)

QUESTIONS = [
    {"question": "Q1", "options": ["a", "b", "c", "d"], "correct_answer": 1, "explanation": "e1"},
    {"question": "Q2", "options": ["a", "b", "c", "d"], "correct_answer": 0, "explanation": "e2"},
    {"question": "Q3", "options": ["a", "b", "c", "d"], "correct_answer": 2, "explanation": "e3"},
]


def _quiz():
    return build_quiz(7, Document(id=3, title="Cells"), QUESTIONS)


# ── grade ─────────────────────────────────────────────────────────────────────

def test_grade_rounds_to_nearest_percent():
    assert grade([1, 0, 2], [1, 1, 2]) == (67, 2)


def test_grade_rounds_half_up():
    # 5/8 = 62.5 %
    assert grade([0] * 8, [0] * 5 + [1] * 3) == (63, 5)


def test_grade_unanswered_counts_as_wrong():
    assert grade([1, 0, 2], [UNANSWERED, UNANSWERED, 2]) == (33, 1)


def test_grade_all_correct_and_none_correct():
    assert grade([1, 2], [1, 2]) == (100, 2)
    assert grade([1, 2], [0, 0]) == (0, 0)


# ── build_quiz ────────────────────────────────────────────────────────────────

def test_build_quiz_starts_pending():
    quiz = _quiz()
    assert quiz.title == "Quiz - Cells"
    assert quiz.total_questions == 3
    assert quiz.user_answers == [-1, -1, -1]
    assert quiz.completed is False
    assert quiz.score is None
    assert [q.position for q in quiz.questions] == [0, 1, 2]


# ── submit_quiz ───────────────────────────────────────────────────────────────

def test_submit_completes_and_scores():
    quiz = _quiz()
    now = datetime(2026, 1, 1, 12, 0, 0)
    submit_quiz(quiz, [1, 1, 2], now=now)
    assert quiz.completed is True
    assert quiz.score == 67
    assert quiz.completed_at == now
    assert quiz.user_answers == [1, 1, 2]


def test_second_submit_is_rejected_and_changes_nothing():
    quiz = _quiz()
    first = datetime(2026, 1, 1, 12, 0, 0)
    submit_quiz(quiz, [1, 1, 2], now=first)

    with pytest.raises(QuizAlreadySubmittedError) as exc_info:
        submit_quiz(quiz, [1, 0, 2], now=datetime(2026, 1, 2))
    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "QUIZ_ALREADY_SUBMITTED"
    assert quiz.score == 67
    assert quiz.completed_at == first
    assert quiz.user_answers == [1, 1, 2]


@pytest.mark.parametrize(
    "answers",
    [[1, 0], [1, 0, 2, 3], [1, 0, 4], [1, 0, -2], "1,0,2", [1, 0, None]],
)
def test_submit_rejects_invalid_answers(answers):
    quiz = _quiz()
    with pytest.raises(ValidationFailed):
        submit_quiz(quiz, answers)
    assert quiz.completed is False
    assert quiz.score is None


# ── serialize_quiz ────────────────────────────────────────────────────────────

def test_pending_quiz_hides_answers_and_explanations():
    data = serialize_quiz(_quiz())
    for question in data["questions"]:
        assert "correctAnswer" not in question
        assert "explanation" not in question
        assert len(question["options"]) == 4
    assert data["completed"] is False
    assert data["document"] == {"id": 3, "title": "Cells"}


def test_completed_quiz_reveals_answers():
    quiz = _quiz()
    submit_quiz(quiz, [1, 0, 2])
    data = serialize_quiz(quiz)
    assert [q["correctAnswer"] for q in data["questions"]] == [1, 0, 2]
    assert [q["explanation"] for q in data["questions"]] == ["e1", "e2", "e3"]
    assert data["score"] == 100
    assert data["completedAt"]
