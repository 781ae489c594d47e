"""
services/quiz_lifecycle.py — Quiz creation, one-shot submission, grading and
answer-hiding serialization.

A quiz is Pending until its single submission, then Completed for good. A
retake is a new Quiz row; score history is never rewritten.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from errors import QuizAlreadySubmittedError, ValidationFailed
from models import Document, Quiz, QuizQuestion

UNANSWERED = -1


def build_quiz(user_id: int, document: Document, questions: List[Dict[str, Any]]) -> Quiz:
    quiz = Quiz(
        user_id=user_id,
        document=document,
        title=f"Quiz - {document.title}",
        total_questions=len(questions),
        user_answers=[UNANSWERED] * len(questions),
        completed=False,
    )
    quiz.questions = [
        QuizQuestion(
            position=i,
            question=q["question"],
            options=q["options"],
            correct_answer=q["correct_answer"],
            explanation=q.get("explanation", ""),
        )
        for i, q in enumerate(questions)
    ]
    return quiz


def grade(correct_answers: Sequence[int], answers: Sequence[int]) -> Tuple[int, int]:
    """Return ``(score, correct_count)``; score is a 0-100 integer percentage."""
    total = len(correct_answers)
    if total == 0:
        return 0, 0
    correct = sum(1 for expected, given in zip(correct_answers, answers) if given == expected)
    # half-up rounding: 62.5 -> 63
    score = int(math.floor(100 * correct / total + 0.5))
    return score, correct


def validate_answers(quiz: Quiz, answers: Any) -> List[int]:
    if not isinstance(answers, list):
        raise ValidationFailed("answers must be an array")
    if len(answers) != quiz.total_questions:
        raise ValidationFailed(
            f"Expected {quiz.total_questions} answers, got {len(answers)}"
        )
    for value in answers:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationFailed("Each answer must be an option index or -1")
    for question, value in zip(quiz.questions, answers):
        if value != UNANSWERED and not 0 <= value < len(question.options):
            raise ValidationFailed("Each answer must be an option index or -1")
    return list(answers)


def submit_quiz(quiz: Quiz, answers: Any, now: Optional[datetime] = None) -> Quiz:
    """Grade *quiz* once. Mutates it in place; the caller commits."""
    if quiz.completed:
        raise QuizAlreadySubmittedError()
    answers = validate_answers(quiz, answers)
    score, _ = grade([q.correct_answer for q in quiz.questions], answers)
    quiz.user_answers = answers
    quiz.score = score
    quiz.completed = True
    quiz.completed_at = now or datetime.utcnow()
    return quiz


def serialize_question(question: QuizQuestion, reveal: bool) -> Dict[str, Any]:
    d = {"question": question.question, "options": question.options}
    if reveal:
        d["correctAnswer"] = question.correct_answer
        d["explanation"] = question.explanation or ""
    return d


def serialize_quiz(quiz: Quiz) -> Dict[str, Any]:
    """Answers and explanations are only included once the quiz is completed."""
    reveal = bool(quiz.completed)
    document = quiz.document
    return {
        "id": quiz.id,
        "userId": quiz.user_id,
        "documentId": quiz.document_id,
        "document": {"id": document.id, "title": document.title} if document else None,
        "title": quiz.title,
        "questions": [serialize_question(q, reveal) for q in quiz.questions],
        "userAnswers": quiz.user_answers,
        "totalQuestions": quiz.total_questions,
        "score": quiz.score,
        "completed": reveal,
        "completedAt": quiz.completed_at.isoformat() if quiz.completed_at else None,
        "createdAt": quiz.created_at.isoformat() if quiz.created_at else None,
    }
