"""
routers/dashboard.py — Study statistics and a recent-activity feed.
"""

import math

from fastapi import APIRouter
from sqlalchemy import func, select

from dependencies import CurrentUser, DB
from models import Document, FlashcardSet, Quiz

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_SCORES = 5
FEED_SOURCE_LIMIT = 5
FEED_LIMIT = 10


async def _count(db, model, user_id: int) -> int:
    return await db.scalar(select(func.count(model.id)).where(model.user_id == user_id)) or 0


@router.get("/summary")
async def get_summary(current_user: CurrentUser, db: DB):
    user_id = current_user.id
    result = await db.execute(
        select(Quiz)
        .where(Quiz.user_id == user_id, Quiz.completed.is_(True))
        .order_by(Quiz.completed_at.desc(), Quiz.id.desc())
        .limit(RECENT_SCORES)
    )
    recent = result.scalars().all()

    average = 0
    if recent:
        average = int(math.floor(sum(q.score or 0 for q in recent) / len(recent) + 0.5))

    return {
        "summary": {
            "totalDocuments": await _count(db, Document, user_id),
            "totalFlashcards": await _count(db, FlashcardSet, user_id),
            "totalQuizzes": await _count(db, Quiz, user_id),
            "averageScore": average,
            "recentQuizScores": [
                {
                    "id": q.id,
                    "title": q.title,
                    "score": q.score,
                    "completedAt": q.completed_at.isoformat() if q.completed_at else None,
                    "document": {"id": q.document.id, "title": q.document.title} if q.document else None,
                }
                for q in recent
            ],
        }
    }


@router.get("/activity")
async def get_activity(current_user: CurrentUser, db: DB):
    """Latest uploads, flashcard sets and quizzes merged into one newest-first feed."""
    user_id = current_user.id

    def _latest(model):
        return (
            select(model)
            .where(model.user_id == user_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(FEED_SOURCE_LIMIT)
        )

    docs = (await db.execute(_latest(Document))).scalars().all()
    sets = (await db.execute(_latest(FlashcardSet))).scalars().all()
    quizzes = (await db.execute(_latest(Quiz))).scalars().all()

    events = [
        ("document", d.title, "Uploaded a new document", d.created_at) for d in docs
    ]
    for s in sets:
        progress = s.progress
        events.append((
            "flashcard",
            s.title,
            f"{progress['studied']}/{progress['total']} cards mastered",
            s.created_at,
        ))
    for q in quizzes:
        events.append((
            "quiz",
            q.title,
            f"Score: {q.score}%" if q.completed else "In progress",
            q.completed_at or q.created_at,
        ))

    events.sort(key=lambda e: e[3], reverse=True)
    return {
        "activities": [
            {"type": kind, "title": title, "description": description, "date": date.isoformat()}
            for kind, title, description, date in events[:FEED_LIMIT]
        ]
    }
