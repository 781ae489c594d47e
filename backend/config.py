import os
from dotenv import load_dotenv

load_dotenv()

PLACEHOLDER_API_KEY = "REPLACE_WITH_YOUR_GROK_API_KEY"

_BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:

    # Completion API (OpenAI-compatible; Groq by default)
    COMPLETION_API_KEY = os.getenv("COMPLETION_API_KEY") or os.getenv("GROK_API_KEY", "")
    COMPLETION_BASE_URL = os.getenv("COMPLETION_BASE_URL", "https://api.groq.com/openai/v1")
    COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "llama-3.3-70b-versatile")
    COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))
    COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "4096"))
    COMPLETION_TIMEOUT_SECONDS = float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "60"))
    # Document text beyond this many characters is cut before prompting
    MAX_PROMPT_CHARS = int(os.getenv("MAX_PROMPT_CHARS", "30000"))

    JWT_SECRET = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY", "")
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///" + os.path.join(_BASE_DIR, "instance", "documind.db"),
    )

    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(_BASE_DIR, "uploads"))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
    ALLOWED_EXTENSIONS = {'.pdf'}

    # auto | pdfplumber | pdfminer | pymupdf
    PDF_EXTRACTOR = os.getenv("PDF_EXTRACTOR", "auto").lower()

    # Outbound email (password reset codes)
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "DocuMind <no-reply@documind.local>")
    OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))

    RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

    CORS_ORIGINS = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

    VERSION = "1.0.0"

    @classmethod
    def completion_key_configured(cls) -> bool:
        return bool(cls.COMPLETION_API_KEY) and cls.COMPLETION_API_KEY != PLACEHOLDER_API_KEY

    @classmethod
    def validate(cls):
        import logging as _logging
        _log = _logging.getLogger(__name__)
        if not cls.completion_key_configured():
            _log.warning(
                "Neither COMPLETION_API_KEY nor GROK_API_KEY is set. "
                "AI features will not work until a completion key is configured."
            )
        return True

    @classmethod
    def get_cors_origins(cls):
        cors_origins = os.getenv("CORS_ORIGINS")
        if cors_origins:
            return [origin.strip() for origin in cors_origins.split(",")]
        client_url = os.getenv("CLIENT_URL")
        if client_url:
            return [client_url, *cls.CORS_ORIGINS]
        return cls.CORS_ORIGINS
