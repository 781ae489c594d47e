"""
services/chat_sessions.py — Per-(user, document) chat history.

The log is append-only: turns are never edited or removed individually, and
clearing deletes the whole Chat row. The next message recreates it.
"""

from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NoExtractableText
from logging_config import get_logger
from models import Chat, ChatMessage, Document
from services.generators import ArtifactGenerator

logger = get_logger(__name__)

CHAT_NO_TEXT_MESSAGE = (
    "No text extracted from this document. Chat requires readable text in the PDF."
)


async def get_chat(db: AsyncSession, user_id: int, document_id: int) -> Optional[Chat]:
    return await db.scalar(
        select(Chat).where(Chat.user_id == user_id, Chat.document_id == document_id)
    )


async def send_message(
    db: AsyncSession,
    generator: ArtifactGenerator,
    user_id: int,
    document: Document,
    message: str,
) -> Tuple[Chat, str]:
    """Append the user turn and the model's reply, persist, and return ``(chat, reply)``."""
    if not document.has_text:
        raise NoExtractableText(CHAT_NO_TEXT_MESSAGE)

    chat = await get_chat(db, user_id, document.id)
    if chat is None:
        chat = Chat(user_id=user_id, document_id=document.id, messages=[])

    logger.info("chat.message", document_id=document.id, preview=message[:80])
    # the model call happens before anything is added to the session, so a
    # failed completion leaves the stored history untouched
    user_turn = ChatMessage(role="user", content=message, timestamp=datetime.utcnow())
    reply = await generator.explain_concept(document.extracted_text, message)

    chat.messages.append(user_turn)
    chat.messages.append(
        ChatMessage(role="assistant", content=reply, timestamp=datetime.utcnow())
    )
    db.add(chat)
    await db.commit()
    return chat, reply


async def clear_chat(db: AsyncSession, user_id: int, document_id: int) -> None:
    chat = await get_chat(db, user_id, document_id)
    if chat is not None:
        await db.delete(chat)
        await db.commit()
