"""DocuMind FastAPI application."""

import os
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DatabaseError as SADatabaseError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from database import init_db
from errors import AppError
from logging_config import configure_logging, get_logger
from routers import ai, auth, chat, dashboard, documents, flashcards, quizzes
from services.email_sender import build_email_sender
from services.model_gateway import GatewayConfig, ModelGateway
from services.pdf_extractor import TextExtractor
from utils.limiter import limiter

logger = get_logger(__name__)


# ── Lifespan ───────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    Config.validate()
    os.makedirs(Config.UPLOAD_FOLDER, exist_ok=True)
    await init_db()
    logger.info(
        "database.initialized",
        pdf_backend=app.state.extractor.backend_name,
        model=app.state.gateway.config.model,
    )
    yield


# ── Exception handlers ─────────────────────────────────────────────────────────
async def app_error_handler(request: Request, exc: AppError):
    logger.warning(
        "request.failed",
        path=request.url.path,
        status=exc.status_code,
        code=exc.code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        errors.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"message": "Validation error", "errors": errors})


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("rate_limit.exceeded", path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={"message": f"Too many requests: {exc.detail}", "code": "RATE_LIMITED"},
    )


async def database_error_handler(request: Request, exc: SADatabaseError):
    logger.critical("database.error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={
            "message": "System maintenance in progress. Please try again shortly.",
            "code": "DB_MAINTENANCE",
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="DocuMind API", version=Config.VERSION, lifespan=lifespan)

    # app-scoped services; routes reach them through dependencies.py
    app.state.limiter = limiter
    app.state.gateway = ModelGateway(GatewayConfig.from_config())
    app.state.extractor = TextExtractor.from_preference(Config.PDF_EXTRACTOR)
    app.state.email_sender = build_email_sender()

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(SADatabaseError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ─────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            "request.received",
            ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        return await call_next(request)

    for module in (auth, documents, ai, chat, flashcards, quizzes, dashboard):
        app.include_router(module.router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "ok",
            "timestamp": datetime.utcnow().isoformat(),
            "version": Config.VERSION,
        }

    return app


app = create_app()
