"""pytest configuration — sets required env vars before any app module is imported."""

import os
import shutil
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="documind-tests-")

# Must be set before importing main/security (raises SystemExit if missing)
os.environ.setdefault("JWT_SECRET", "test-only-secret-do-not-use-in-prod")
# File-backed SQLite: an in-memory DB would vanish between pooled connections
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_TMP_DIR, "test.db")
os.environ["UPLOAD_FOLDER"] = os.path.join(_TMP_DIR, "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["COMPLETION_API_KEY"] = "test-completion-key"
os.environ["SMTP_HOST"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from httpx import AsyncClient, ASGITransport


# ── Fakes ────────────────────────────────────────────────────────────────────

class FakeGateway:
    """Stands in for ModelGateway: replays queued replies and records prompts."""

    def __init__(self):
        self.prompts = []
        self.replies = []
        self.error = None

    def queue(self, *replies):
        self.replies.extend(replies)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.replies:
            return "default reply"
        return self.replies.pop(0)


class FakeMailer:
    def __init__(self):
        self.sent = []

    async def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


# ── PDF builder ──────────────────────────────────────────────────────────────

def build_pdf(pages):
    """Return bytes of a minimal valid PDF; each entry of *pages* is one page's text ("" = blank)."""
    count = len(pages)
    page_ids = [4 + 2 * i for i in range(count)]
    objects = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: (
            "<< /Type /Pages /Kids [%s] /Count %d >>"
            % (" ".join(f"{p} 0 R" for p in page_ids), count)
        ).encode(),
        3: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for page_id, text in zip(page_ids, pages):
        content_id = page_id + 1
        objects[page_id] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            "/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % content_id
        ).encode()
        stream = b""
        if text:
            escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
        objects[content_id] = (
            b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num in range(1, len(objects) + 1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n".encode() + objects[num] + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


SAMPLE_TEXT = "Photosynthesis converts light energy into chemical energy"


@pytest.fixture
def text_pdf():
    return build_pdf([SAMPLE_TEXT, "Chlorophyll absorbs light"])


@pytest.fixture
def blank_pdf():
    return build_pdf(["", ""])


# ── App / client ─────────────────────────────────────────────────────────────

@pytest.fixture
def app():
    from main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """Return an AsyncClient wired to the FastAPI app with a fresh DB."""
    from database import Base, engine, init_db

    await init_db()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()
    shutil.rmtree(os.environ["UPLOAD_FOLDER"], ignore_errors=True)


@pytest.fixture
def fake_gateway(app):
    from dependencies import get_gateway

    gateway = FakeGateway()
    app.dependency_overrides[get_gateway] = lambda: gateway
    return gateway


@pytest.fixture
def fake_mailer(app):
    from dependencies import get_email_sender

    mailer = FakeMailer()
    app.dependency_overrides[get_email_sender] = lambda: mailer
    return mailer


# ── Auth / upload helpers ────────────────────────────────────────────────────

async def register(client, email="test@example.com", password="secret123", username="tester"):
    return await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


async def auth_headers(client, email="test@example.com", username="tester"):
    res = await register(client, email=email, username=username)
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


async def upload(client, headers, data, filename="notes.pdf", title=None):
    form = {"title": title} if title is not None else None
    return await client.post(
        "/api/documents/upload",
        headers=headers,
        files={"pdf": (filename, data, "application/pdf")},
        data=form,
    )


@pytest.fixture
async def headers(client):
    return await auth_headers(client)


@pytest.fixture
async def document(client, headers, text_pdf):
    res = await upload(client, headers, text_pdf, title="Biology")
    assert res.status_code == 201, res.text
    return res.json()["document"]


@pytest.fixture
async def blank_document(client, headers, blank_pdf):
    res = await upload(client, headers, blank_pdf, filename="scan.pdf")
    assert res.status_code == 201, res.text
    return res.json()["document"]
