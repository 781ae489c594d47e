"""
routers/quizzes.py — Quiz listing, one-shot submission and deletion.

Correct answers and explanations stay hidden until a quiz is submitted.
"""

from fastapi import APIRouter
from sqlalchemy import select

from dependencies import CurrentUser, DB, get_owned
from logging_config import get_logger
from models import Quiz
from schemas import QuizSubmitRequest
from services.quiz_lifecycle import serialize_quiz, submit_quiz

logger = get_logger(__name__)
router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.get("")
async def list_quizzes(current_user: CurrentUser, db: DB):
    result = await db.execute(
        select(Quiz)
        .where(Quiz.user_id == current_user.id)
        .order_by(Quiz.created_at.desc(), Quiz.id.desc())
    )
    return {"quizzes": [serialize_quiz(q) for q in result.scalars().all()]}


@router.get("/{quiz_id}")
async def get_quiz(quiz_id: int, current_user: CurrentUser, db: DB):
    quiz = await get_owned(db, Quiz, quiz_id, current_user.id, "Quiz")
    return {"quiz": serialize_quiz(quiz)}


@router.put("/{quiz_id}/submit")
async def submit(quiz_id: int, data: QuizSubmitRequest, current_user: CurrentUser, db: DB):
    quiz = await get_owned(db, Quiz, quiz_id, current_user.id, "Quiz")
    submit_quiz(quiz, data.answers)
    await db.commit()
    logger.info("quiz.submitted", quiz_id=quiz.id, score=quiz.score)
    return {"quiz": serialize_quiz(quiz)}


@router.delete("/{quiz_id}")
async def delete_quiz(quiz_id: int, current_user: CurrentUser, db: DB):
    quiz = await get_owned(db, Quiz, quiz_id, current_user.id, "Quiz")
    await db.delete(quiz)
    await db.commit()
    return {"message": "Quiz deleted"}
