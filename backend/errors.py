"""Application error taxonomy.

Every error the API reports on purpose is an ``AppError``. The handler in
``main.py`` turns it into ``{"message", "code"}`` with ``status_code``; anything
else is treated as a bug and becomes a logged 500.
"""

from typing import Optional


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message or self.message
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


# ── Request / ownership errors ──────────────────────────────────────────────

class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation error"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class AuthError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Not authorized"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class QuizAlreadySubmittedError(Conflict):
    code = "QUIZ_ALREADY_SUBMITTED"
    message = "Quiz already submitted"


class NoExtractableText(AppError):
    status_code = 400
    code = "NO_EXTRACTABLE_TEXT"
    message = (
        "No text extracted from this document. This may be a scanned/image PDF. "
        "AI features require readable text."
    )


class PdfExtractionError(Exception):
    """Raised by the text extractor for files it cannot parse at all."""


# ── Completion API errors ───────────────────────────────────────────────────

class CompletionError(AppError):
    status_code = 502
    code = "UPSTREAM_ERROR"
    message = "AI service error"


class CompletionConfigError(CompletionError):
    status_code = 503
    code = "UPSTREAM_CONFIG"
    message = "Completion API key not configured. Please add GROK_API_KEY to .env"


class CompletionAuthError(CompletionError):
    status_code = 401
    code = "UPSTREAM_AUTH"
    message = "Invalid completion API key. Please check GROK_API_KEY in .env"


class CompletionBadRequestError(CompletionError):
    status_code = 400
    code = "UPSTREAM_BAD_REQUEST"
    message = "Completion API rejected the request"


class CompletionRateLimitError(CompletionError):
    status_code = 429
    code = "UPSTREAM_RATE_LIMIT"
    message = "Completion API rate limit exceeded. Please try again later."


class CompletionUpstreamError(CompletionError):
    def __init__(self, message: Optional[str] = None, *, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.upstream_status is not None:
            d["upstreamStatus"] = self.upstream_status
        return d


class CompletionEmptyError(CompletionError):
    code = "UPSTREAM_EMPTY"
    message = "Empty response from completion API"


class CompletionNetworkError(CompletionError):
    status_code = 503
    code = "UPSTREAM_NETWORK"
    message = "Failed to connect to the completion API. Check your internet connection."


class GenerationParseError(AppError):
    status_code = 502
    code = "GENERATION_PARSE"
    message = "Failed to parse the AI response. Please try again."
