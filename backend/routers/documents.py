"""
routers/documents.py — PDF upload with text extraction, the document library,
file streaming, and deletion.
"""

import asyncio
import hashlib
import os
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, File, Form, Request, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy import func, select
from werkzeug.utils import secure_filename

from config import Config
from dependencies import CurrentUser, DB, Extractor, get_owned
from errors import NotFound, PdfExtractionError, ValidationFailed
from logging_config import get_logger
from models import Document, FlashcardSet, Quiz
from services.pdf_extractor import ExtractedPdf

logger = get_logger(__name__)
router = APIRouter(prefix="/documents", tags=["documents"])

NO_TEXT_WARNING = (
    "No readable text found in PDF. AI features may not work for scanned/image PDFs."
)


def _is_pdf(upload: UploadFile) -> bool:
    ext = os.path.splitext((upload.filename or "").lower())[1]
    return ext in Config.ALLOWED_EXTENSIONS or upload.content_type == "application/pdf"


def _default_title(filename: str) -> str:
    base, ext = os.path.splitext(filename)
    return base if ext.lower() == ".pdf" else filename


def _library_etag(documents: list) -> str:
    """Weak ETag over each row's id, last update and artifact counts."""
    fingerprint = ";".join(
        f"{d['id']}:{d['updatedAt']}:{d['flashcardCount']}:{d['quizCount']}"
        for d in documents
    )
    return 'W/"' + hashlib.sha1(fingerprint.encode()).hexdigest() + '"'


def _etag_matches(request: Request, etag: str) -> bool:
    candidates = [t.strip() for t in request.headers.get("if-none-match", "").split(",")]
    return "*" in candidates or etag in candidates


@router.post("/upload", status_code=201)
async def upload_document(
    current_user: CurrentUser,
    db: DB,
    extractor: Extractor,
    pdf: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
):
    if pdf is None or not pdf.filename:
        raise ValidationFailed("No PDF file uploaded")
    if not _is_pdf(pdf):
        raise ValidationFailed("Only PDF files are allowed")

    content = await pdf.read()
    if len(content) > Config.MAX_UPLOAD_BYTES:
        max_mb = Config.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationFailed(f"File too large. Maximum size is {max_mb}MB.")

    os.makedirs(Config.UPLOAD_FOLDER, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    saved_filename = f"{timestamp}_{secure_filename(pdf.filename) or 'document.pdf'}"
    filepath = os.path.join(Config.UPLOAD_FOLDER, saved_filename)
    with open(filepath, "wb") as f:
        f.write(content)

    loop = asyncio.get_running_loop()
    try:
        extracted = await loop.run_in_executor(None, extractor.extract, content)
    except PdfExtractionError as exc:
        # the document is still stored; AI features will report the missing text
        logger.warning("document.extract.failed", file=pdf.filename, error=str(exc))
        extracted = ExtractedPdf(text="", page_count=0)

    if not extracted.has_text:
        logger.warning("document.no_text", file=pdf.filename, pages=extracted.page_count)

    doc = Document(
        user_id=current_user.id,
        title=(title or "").strip() or _default_title(pdf.filename),
        original_name=pdf.filename,
        file_path=filepath,
        extracted_text=extracted.text,
        summary="",
        page_count=extracted.page_count,
        file_size=len(content),
    )
    db.add(doc)
    await db.commit()
    await db.refresh(doc)

    logger.info(
        "document.uploaded",
        document_id=doc.id,
        pages=doc.page_count,
        chars=len(doc.extracted_text),
        backend=extractor.backend_name,
    )
    body = {"document": doc.to_dict(), "hasText": doc.has_text}
    if not doc.has_text:
        body["warning"] = NO_TEXT_WARNING
    return body


@router.get("")
async def list_documents(
    request: Request, response: Response, current_user: CurrentUser, db: DB
):
    flash_counts = (
        select(FlashcardSet.document_id, func.count(FlashcardSet.id).label("n"))
        .where(FlashcardSet.user_id == current_user.id)
        .group_by(FlashcardSet.document_id)
        .subquery()
    )
    quiz_counts = (
        select(Quiz.document_id, func.count(Quiz.id).label("n"))
        .where(Quiz.user_id == current_user.id)
        .group_by(Quiz.document_id)
        .subquery()
    )
    result = await db.execute(
        select(Document, flash_counts.c.n, quiz_counts.c.n)
        .outerjoin(flash_counts, flash_counts.c.document_id == Document.id)
        .outerjoin(quiz_counts, quiz_counts.c.document_id == Document.id)
        .where(Document.user_id == current_user.id)
        .order_by(Document.created_at.desc(), Document.id.desc())
    )

    documents = []
    for doc, flashcard_count, quiz_count in result.all():
        d = doc.to_dict(include_text=False)
        d["flashcardCount"] = flashcard_count or 0
        d["quizCount"] = quiz_count or 0
        documents.append(d)

    etag = _library_etag(documents)
    if _etag_matches(request, etag):
        return Response(status_code=304)

    response.headers["ETag"] = etag
    response.headers["Cache-Control"] = "private, max-age=15"
    return {"documents": documents}


@router.get("/{doc_id}")
async def get_document(doc_id: int, current_user: CurrentUser, db: DB):
    doc = await get_owned(db, Document, doc_id, current_user.id, "Document")
    return {"document": doc.to_dict()}


@router.get("/{doc_id}/file")
async def get_document_file(doc_id: int, current_user: CurrentUser, db: DB):
    doc = await get_owned(db, Document, doc_id, current_user.id, "Document")
    if not os.path.isfile(doc.file_path):
        raise NotFound("File not found on disk")
    return FileResponse(
        doc.file_path,
        media_type="application/pdf",
        filename=doc.original_name,
        content_disposition_type="inline",
    )


@router.delete("/{doc_id}")
async def delete_document(doc_id: int, current_user: CurrentUser, db: DB):
    doc = await get_owned(db, Document, doc_id, current_user.id, "Document")

    file_path = doc.file_path
    await db.delete(doc)
    await db.commit()

    if os.path.isfile(file_path):
        os.remove(file_path)
    logger.info("document.deleted", document_id=doc_id)
    return {"message": "Document deleted successfully"}
