"""
routers/ai.py — Summary, flashcard and quiz generation for an uploaded document.

Every route refuses documents without extracted text before the completion
API is called.
"""

from typing import Optional

from fastapi import APIRouter, Request

from dependencies import CurrentUser, DB, Generator, get_owned
from errors import NoExtractableText
from logging_config import get_logger
from models import Document, Flashcard, FlashcardSet
from schemas import FlashcardGenerateRequest, QuizGenerateRequest
from services.quiz_lifecycle import build_quiz, serialize_quiz
from utils.limiter import limiter

logger = get_logger(__name__)
router = APIRouter(prefix="/ai", tags=["ai"])


async def _document_with_text(db, doc_id: int, user_id: int) -> Document:
    doc = await get_owned(db, Document, doc_id, user_id, "Document")
    if not doc.has_text:
        raise NoExtractableText()
    return doc


@router.post("/summary/{doc_id}")
@limiter.limit("10/minute")
async def generate_summary(
    doc_id: int, request: Request, current_user: CurrentUser, db: DB, generator: Generator
):
    doc = await _document_with_text(db, doc_id, current_user.id)
    logger.info("ai.summary", document_id=doc.id, chars=len(doc.extracted_text))

    summary = await generator.summarize(doc.extracted_text)
    doc.summary = summary
    await db.commit()
    return {"summary": summary}


@router.post("/flashcards/{doc_id}", status_code=201)
@limiter.limit("10/minute")
async def generate_flashcards(
    doc_id: int,
    request: Request,
    current_user: CurrentUser,
    db: DB,
    generator: Generator,
    data: Optional[FlashcardGenerateRequest] = None,
):
    count = data.count if data else FlashcardGenerateRequest().count
    doc = await _document_with_text(db, doc_id, current_user.id)
    logger.info("ai.flashcards", document_id=doc.id, count=count)

    cards = await generator.generate_flashcards(doc.extracted_text, count)
    flashcard_set = FlashcardSet(
        user_id=current_user.id,
        document=doc,
        title=f"Flashcards - {doc.title}",
        cards=[
            Flashcard(position=i, question=c["question"], answer=c["answer"], mastered=False)
            for i, c in enumerate(cards)
        ],
    )
    db.add(flashcard_set)
    await db.commit()
    return {"flashcardSet": flashcard_set.to_dict()}


@router.post("/quiz/{doc_id}", status_code=201)
@limiter.limit("10/minute")
async def generate_quiz(
    doc_id: int,
    request: Request,
    current_user: CurrentUser,
    db: DB,
    generator: Generator,
    data: Optional[QuizGenerateRequest] = None,
):
    count = data.count if data else QuizGenerateRequest().count
    doc = await _document_with_text(db, doc_id, current_user.id)
    logger.info("ai.quiz", document_id=doc.id, count=count)

    questions = await generator.generate_quiz(doc.extracted_text, count)
    quiz = build_quiz(current_user.id, doc, questions)
    db.add(quiz)
    await db.commit()
    return {"quiz": serialize_quiz(quiz)}
