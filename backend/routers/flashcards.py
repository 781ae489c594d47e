"""
routers/flashcards.py — Flashcard sets and per-card mastery tracking.
"""

from fastapi import APIRouter
from sqlalchemy import select

from dependencies import CurrentUser, DB, get_owned
from logging_config import get_logger
from models import FlashcardSet
from schemas import FlashcardProgressUpdate

logger = get_logger(__name__)
router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.get("")
async def list_flashcard_sets(current_user: CurrentUser, db: DB):
    result = await db.execute(
        select(FlashcardSet)
        .where(FlashcardSet.user_id == current_user.id)
        .order_by(FlashcardSet.created_at.desc(), FlashcardSet.id.desc())
    )
    return {"flashcardSets": [s.to_dict() for s in result.scalars().all()]}


@router.get("/{set_id}")
async def get_flashcard_set(set_id: int, current_user: CurrentUser, db: DB):
    flashcard_set = await get_owned(db, FlashcardSet, set_id, current_user.id, "Flashcard set")
    return {"flashcardSet": flashcard_set.to_dict()}


@router.put("/{set_id}/progress")
async def update_progress(
    set_id: int, data: FlashcardProgressUpdate, current_user: CurrentUser, db: DB
):
    """Mark one card (un)mastered. An index outside the set changes nothing."""
    flashcard_set = await get_owned(db, FlashcardSet, set_id, current_user.id, "Flashcard set")

    if data.cardIndex is not None and 0 <= data.cardIndex < len(flashcard_set.cards):
        flashcard_set.cards[data.cardIndex].mastered = data.mastered
        await db.commit()
    else:
        logger.info("flashcards.progress.index_ignored", set_id=set_id, index=data.cardIndex)

    return {"flashcardSet": flashcard_set.to_dict()}


@router.delete("/{set_id}")
async def delete_flashcard_set(set_id: int, current_user: CurrentUser, db: DB):
    flashcard_set = await get_owned(db, FlashcardSet, set_id, current_user.id, "Flashcard set")
    await db.delete(flashcard_set)
    await db.commit()
    return {"message": "Flashcard set deleted"}
