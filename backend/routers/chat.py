"""
routers/chat.py — Per-document chat history: read, ask, clear.
"""

from fastapi import APIRouter, Request

from dependencies import CurrentUser, DB, Generator, get_owned
from models import Document
from schemas import ChatMessageCreate
from services import chat_sessions
from utils.limiter import limiter

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/{doc_id}")
async def get_chat(doc_id: int, current_user: CurrentUser, db: DB):
    chat = await chat_sessions.get_chat(db, current_user.id, doc_id)
    if chat is None:
        return {"chat": {"messages": []}}
    return {"chat": chat.to_dict()}


@router.post("/{doc_id}")
@limiter.limit("20/minute")
async def send_message(
    doc_id: int,
    data: ChatMessageCreate,
    request: Request,
    current_user: CurrentUser,
    db: DB,
    generator: Generator,
):
    doc = await get_owned(db, Document, doc_id, current_user.id, "Document")
    chat, reply = await chat_sessions.send_message(
        db, generator, current_user.id, doc, data.message
    )
    return {"chat": chat.to_dict(), "reply": reply}


@router.delete("/{doc_id}")
async def clear_chat(doc_id: int, current_user: CurrentUser, db: DB):
    await chat_sessions.clear_chat(db, current_user.id, doc_id)
    return {"message": "Chat cleared"}
