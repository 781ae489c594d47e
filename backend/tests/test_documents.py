"""Document upload, library, file streaming and deletion."""

import os

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import SAMPLE_TEXT, auth_headers, build_pdf, upload

pytestmark = pytest.mark.asyncio


# ── POST /api/documents/upload ────────────────────────────────────────────────

async def test_upload_extracts_text(client, headers, text_pdf):
    res = await upload(client, headers, text_pdf, title="Biology")
    assert res.status_code == 201
    body = res.json()
    assert body["hasText"] is True
    assert "warning" not in body
    doc = body["document"]
    assert doc["title"] == "Biology"
    assert doc["originalName"] == "notes.pdf"
    assert doc["pageCount"] == 2
    assert doc["fileSize"] == len(text_pdf)
    assert "Photosynthesis" in doc["extractedText"]
    assert "Chlorophyll" in doc["extractedText"]
    assert doc["summary"] == ""


async def test_upload_title_defaults_to_filename(client, headers, text_pdf):
    res = await upload(client, headers, text_pdf, filename="Cell Biology.pdf")
    assert res.json()["document"]["title"] == "Cell Biology"


async def test_upload_textless_pdf_is_stored_with_warning(client, headers, blank_pdf):
    res = await upload(client, headers, blank_pdf, filename="scan.pdf")
    assert res.status_code == 201
    body = res.json()
    assert body["hasText"] is False
    assert "No readable text" in body["warning"]
    assert body["document"]["extractedText"] == ""
    assert body["document"]["pageCount"] == 2


async def test_upload_corrupt_pdf_is_stored_without_text(client, headers):
    res = await upload(client, headers, b"%PDF-1.4 this is not really a pdf", filename="broken.pdf")
    assert res.status_code == 201
    body = res.json()
    assert body["hasText"] is False
    assert body["warning"]
    assert body["document"]["extractedText"] == ""


async def test_upload_rejects_non_pdf(client, headers):
    res = await client.post(
        "/api/documents/upload",
        headers=headers,
        files={"pdf": ("notes.txt", b"plain text", "text/plain")},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Only PDF files are allowed"


async def test_upload_without_file(client, headers):
    res = await client.post("/api/documents/upload", headers=headers, data={"title": "x"})
    assert res.status_code == 400
    assert res.json()["message"] == "No PDF file uploaded"


async def test_upload_too_large(client, headers, monkeypatch):
    from config import Config

    monkeypatch.setattr(Config, "MAX_UPLOAD_BYTES", 100)
    res = await upload(client, headers, build_pdf(["big"]))
    assert res.status_code == 400
    assert "File too large" in res.json()["message"]


async def test_upload_requires_auth(client, text_pdf):
    res = await client.post(
        "/api/documents/upload",
        files={"pdf": ("notes.pdf", text_pdf, "application/pdf")},
    )
    assert res.status_code == 401
    assert not os.path.isdir(os.environ["UPLOAD_FOLDER"]) or not os.listdir(
        os.environ["UPLOAD_FOLDER"]
    )


# ── GET /api/documents ────────────────────────────────────────────────────────

async def test_list_omits_text_and_counts_artifacts(client, headers, document, fake_gateway):
    fake_gateway.queue('[{"question": "Q", "answer": "A"}]')
    await client.post(f"/api/ai/flashcards/{document['id']}", headers=headers, json={"count": 1})

    res = await client.get("/api/documents", headers=headers)
    assert res.status_code == 200
    docs = res.json()["documents"]
    assert len(docs) == 1
    assert "extractedText" not in docs[0]
    assert docs[0]["flashcardCount"] == 1
    assert docs[0]["quizCount"] == 0
    assert res.headers["ETag"]


async def test_list_newest_first(client, headers, text_pdf):
    await upload(client, headers, text_pdf, title="first")
    await upload(client, headers, text_pdf, title="second")
    res = await client.get("/api/documents", headers=headers)
    assert [d["title"] for d in res.json()["documents"]] == ["second", "first"]


async def test_list_not_modified_with_etag(client, headers, document):
    first = await client.get("/api/documents", headers=headers)
    etag = first.headers["ETag"]
    res = await client.get("/api/documents", headers={**headers, "If-None-Match": etag})
    assert res.status_code == 304


async def test_list_etag_is_weak_and_matches_in_a_list(client, headers, document):
    etag = (await client.get("/api/documents", headers=headers)).headers["ETag"]
    assert etag.startswith('W/"')

    res = await client.get(
        "/api/documents", headers={**headers, "If-None-Match": f'"stale", {etag}'}
    )
    assert res.status_code == 304


async def test_list_etag_changes_when_artifacts_are_added(client, headers, document, fake_gateway):
    etag = (await client.get("/api/documents", headers=headers)).headers["ETag"]

    fake_gateway.queue('[{"question": "Q", "answer": "A"}]')
    await client.post(
        f"/api/ai/flashcards/{document['id']}", headers=headers, json={"count": 1}
    )

    res = await client.get("/api/documents", headers={**headers, "If-None-Match": etag})
    assert res.status_code == 200
    assert res.headers["ETag"] != etag
    assert res.json()["documents"][0]["flashcardCount"] == 1


async def test_list_is_scoped_to_owner(client, headers, document):
    other = await auth_headers(client, email="other@example.com", username="other")
    res = await client.get("/api/documents", headers=other)
    assert res.json()["documents"] == []


# ── GET /api/documents/{id} ───────────────────────────────────────────────────

async def test_get_document(client, headers, document):
    res = await client.get(f"/api/documents/{document['id']}", headers=headers)
    assert res.status_code == 200
    assert SAMPLE_TEXT.split()[0] in res.json()["document"]["extractedText"]


async def test_get_other_users_document_is_404(client, headers, document):
    other = await auth_headers(client, email="other@example.com", username="other")
    res = await client.get(f"/api/documents/{document['id']}", headers=other)
    assert res.status_code == 404
    assert res.json()["message"] == "Document not found"


# ── GET /api/documents/{id}/file ──────────────────────────────────────────────

async def test_file_streams_pdf(client, headers, document, text_pdf):
    res = await client.get(f"/api/documents/{document['id']}/file", headers=headers)
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content == text_pdf


async def test_file_accepts_query_token(client, headers, document):
    token = headers["Authorization"].split()[1]
    res = await client.get(f"/api/documents/{document['id']}/file?token={token}")
    assert res.status_code == 200


async def test_file_missing_on_disk(client, headers, document):
    for name in os.listdir(os.environ["UPLOAD_FOLDER"]):
        os.remove(os.path.join(os.environ["UPLOAD_FOLDER"], name))
    res = await client.get(f"/api/documents/{document['id']}/file", headers=headers)
    assert res.status_code == 404
    assert res.json()["message"] == "File not found on disk"


# ── DELETE /api/documents/{id} ────────────────────────────────────────────────

async def test_delete_removes_file_and_row(client, headers, document):
    assert len(os.listdir(os.environ["UPLOAD_FOLDER"])) == 1

    res = await client.delete(f"/api/documents/{document['id']}", headers=headers)
    assert res.status_code == 200
    assert os.listdir(os.environ["UPLOAD_FOLDER"]) == []

    res = await client.get(f"/api/documents/{document['id']}", headers=headers)
    assert res.status_code == 404


async def test_delete_keeps_study_artifacts(client, headers, document, fake_gateway):
    fake_gateway.queue('[{"question": "Q", "answer": "A"}]')
    res = await client.post(
        f"/api/ai/flashcards/{document['id']}", headers=headers, json={"count": 1}
    )
    set_id = res.json()["flashcardSet"]["id"]

    await client.delete(f"/api/documents/{document['id']}", headers=headers)

    res = await client.get(f"/api/flashcards/{set_id}", headers=headers)
    assert res.status_code == 200
    flashcard_set = res.json()["flashcardSet"]
    assert flashcard_set["document"] is None
    assert flashcard_set["documentId"] is None


async def test_delete_unknown_document(client, headers):
    res = await client.delete("/api/documents/999", headers=headers)
    assert res.status_code == 404


async def test_failed_delete_keeps_the_file(client, headers, document, monkeypatch):
    async def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    res = await client.delete(f"/api/documents/{document['id']}", headers=headers)
    assert res.status_code == 503
    assert len(os.listdir(os.environ["UPLOAD_FOLDER"])) == 1

    monkeypatch.undo()
    res = await client.get(f"/api/documents/{document['id']}/file", headers=headers)
    assert res.status_code == 200
