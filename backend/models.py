"""SQLAlchemy 2.x models (async-compatible) for FastAPI.

Every study artifact belongs to exactly one user and points at the document it
was generated from. Document deletion does not cascade to artifacts: the
foreign key is SET NULL and the artifact keeps working without its source.
"""

import json
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    Boolean, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _document_ref(document: Optional["Document"]) -> Optional[dict]:
    if document is None:
        return None
    return {"id": document.id, "title": document.title}


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # holds the hashed OTP, then the hashed reset token once the OTP is verified
    reset_otp_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reset_otp_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def to_dict(self, include_created=False):
        d = {"id": self.id, "username": self.username, "email": self.email}
        if include_created:
            d["createdAt"] = _iso(self.created_at)
        return d


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    extracted_text: Mapped[str] = mapped_column(Text, default="")
    summary: Mapped[str] = mapped_column(Text, default="")
    page_count: Mapped[int] = mapped_column(Integer, default=0)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def has_text(self) -> bool:
        return bool((self.extracted_text or "").strip())

    def to_dict(self, include_text=True):
        d = {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "originalName": self.original_name,
            "summary": self.summary or "",
            "pageCount": self.page_count,
            "fileSize": self.file_size,
            "hasText": self.has_text,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_text:
            d["extractedText"] = self.extracted_text or ""
        return d


class Chat(Base):
    __tablename__ = "chats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    document_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    messages: Mapped[List["ChatMessage"]] = relationship(
        "ChatMessage",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="_chat_user_document_uc"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "documentId": self.document_id,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    chat: Mapped["Chat"] = relationship("Chat", back_populates="messages")

    def to_dict(self):
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": _iso(self.timestamp),
        }


class FlashcardSet(Base):
    __tablename__ = "flashcard_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    document: Mapped[Optional["Document"]] = relationship("Document", lazy="selectin")
    cards: Mapped[List["Flashcard"]] = relationship(
        "Flashcard",
        back_populates="flashcard_set",
        cascade="all, delete-orphan",
        order_by="Flashcard.position",
        lazy="selectin",
    )

    @property
    def progress(self) -> dict:
        # never stored; always derived from the cards
        return {
            "studied": sum(1 for c in self.cards if c.mastered),
            "total": len(self.cards),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "documentId": self.document_id,
            "document": _document_ref(self.document),
            "title": self.title,
            "cards": [c.to_dict() for c in self.cards],
            "progress": self.progress,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Flashcard(Base):
    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    set_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("flashcard_sets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    mastered: Mapped[bool] = mapped_column(Boolean, default=False)

    flashcard_set: Mapped["FlashcardSet"] = relationship("FlashcardSet", back_populates="cards")

    def to_dict(self):
        return {
            "question": self.question,
            "answer": self.answer,
            "mastered": bool(self.mastered),
        }


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    user_answers_json: Mapped[str] = mapped_column(Text, default="[]")
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    document: Mapped[Optional["Document"]] = relationship("Document", lazy="selectin")
    questions: Mapped[List["QuizQuestion"]] = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.position",
        lazy="selectin",
    )

    @property
    def user_answers(self) -> List[int]:
        return json.loads(self.user_answers_json or "[]")

    @user_answers.setter
    def user_answers(self, answers: List[int]) -> None:
        self.user_answers_json = json.dumps(list(answers))


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    quiz_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str] = mapped_column(Text, default="[]")
    correct_answer: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, default="")

    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="questions")

    @property
    def options(self) -> List[str]:
        return json.loads(self.options_json or "[]")

    @options.setter
    def options(self, values: List[str]) -> None:
        self.options_json = json.dumps(list(values))
