"""
services/pdf_extractor.py — PDF bytes → plain text + page count.

The PDF libraries we can run on expose incompatible calling conventions:
pdfplumber wants a document object opened first and then asks each page for
its text, pdfminer.six offers a single direct-call ``extract_text`` function,
and PyMuPDF opens a document from a raw stream. Each shape gets its own
backend class; ``select_backend()`` probes what is importable once at startup
and callers only ever see ``TextExtractor.extract()``.
"""

import io
from dataclasses import dataclass
from typing import Callable, List, Optional

from errors import PdfExtractionError
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ExtractedPdf:
    text: str = ""
    page_count: int = 0

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


class ExtractionBackend:
    name = "base"

    def extract(self, data: bytes) -> ExtractedPdf:
        raise NotImplementedError


class PdfPlumberBackend(ExtractionBackend):
    """Constructor-plus-method form: ``pdfplumber.open(stream)`` then ``page.extract_text()``."""

    name = "pdfplumber"

    def __init__(self, module):
        self._pdfplumber = module

    def extract(self, data: bytes) -> ExtractedPdf:
        full_text: List[str] = []
        with self._pdfplumber.open(io.BytesIO(data)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                text = page.extract_text() or ""
                if text.strip():
                    full_text.append(text.strip())
        return ExtractedPdf(text="\n\n".join(full_text), page_count=page_count)


class PdfMinerBackend(ExtractionBackend):
    """Direct-call form: ``extract_text(stream)`` returns the whole document at once."""

    name = "pdfminer"

    def __init__(self, extract_text: Callable, get_pages: Callable):
        self._extract_text = extract_text
        self._get_pages = get_pages

    def extract(self, data: bytes) -> ExtractedPdf:
        raw = self._extract_text(io.BytesIO(data)) or ""
        page_count = sum(1 for _ in self._get_pages(io.BytesIO(data)))
        # pdfminer separates pages with form feeds
        pages = [p.strip() for p in raw.split("\f")]
        return ExtractedPdf(text="\n\n".join(p for p in pages if p), page_count=page_count)


class PyMuPDFBackend(ExtractionBackend):
    name = "pymupdf"

    def __init__(self, module):
        self._fitz = module

    def extract(self, data: bytes) -> ExtractedPdf:
        full_text: List[str] = []
        doc = self._fitz.open(stream=data, filetype="pdf")
        try:
            page_count = len(doc)
            for page in doc:
                text = page.get_text()
                if text.strip():
                    full_text.append(text.strip())
        finally:
            doc.close()
        return ExtractedPdf(text="\n\n".join(full_text), page_count=page_count)


# ── Capability probes ────────────────────────────────────────────────────────

def _probe_pdfplumber() -> Optional[ExtractionBackend]:
    try:
        import pdfplumber
    except ImportError:
        return None
    if not callable(getattr(pdfplumber, "open", None)):
        return None
    return PdfPlumberBackend(pdfplumber)


def _probe_pdfminer() -> Optional[ExtractionBackend]:
    try:
        from pdfminer.high_level import extract_text
        from pdfminer.pdfpage import PDFPage
    except ImportError:
        return None
    return PdfMinerBackend(extract_text, PDFPage.get_pages)


def _probe_pymupdf() -> Optional[ExtractionBackend]:
    try:
        import fitz  # PyMuPDF
    except ImportError:
        try:
            import pymupdf as fitz
        except ImportError:
            return None
    if not callable(getattr(fitz, "open", None)):
        return None
    return PyMuPDFBackend(fitz)


_PROBES = {
    "pdfplumber": _probe_pdfplumber,
    "pdfminer": _probe_pdfminer,
    "pymupdf": _probe_pymupdf,
}


def select_backend(preference: str = "auto") -> ExtractionBackend:
    """Pick the extraction backend once. Raises RuntimeError if no PDF library is usable."""
    if preference != "auto":
        probe = _PROBES.get(preference)
        backend = probe() if probe else None
        if backend is not None:
            return backend
        logger.warning("pdf_extractor.preference_unavailable", preference=preference)

    for name, probe in _PROBES.items():
        backend = probe()
        if backend is not None:
            return backend
    raise RuntimeError(
        "No PDF extraction library available. Install pdfplumber, pdfminer.six or PyMuPDF."
    )


class TextExtractor:
    def __init__(self, backend: ExtractionBackend):
        self._backend = backend

    @classmethod
    def from_preference(cls, preference: str = "auto") -> "TextExtractor":
        backend = select_backend(preference)
        logger.info("pdf_extractor.selected", backend=backend.name)
        return cls(backend)

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def extract(self, data: bytes) -> ExtractedPdf:
        """
        Return the document text and page count.

        A well-formed PDF without a text layer (scans) yields ``text == ""``
        rather than an error. Unparseable input raises PdfExtractionError.
        """
        if not data:
            raise PdfExtractionError("Empty file")
        try:
            result = self._backend.extract(data)
        except Exception as exc:
            raise PdfExtractionError(f"{self._backend.name}: {exc}") from exc

        if not result.has_text:
            return ExtractedPdf(text="", page_count=result.page_count)
        return result
