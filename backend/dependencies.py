"""FastAPI dependencies: DB session, authenticated user, and app-scoped services."""

from typing import Annotated, Optional

import jwt
from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import Config
from database import get_db
from errors import AuthError, NotFound
from models import User
from security import decode_access_token
from services.email_sender import EmailSender
from services.generators import ArtifactGenerator
from services.model_gateway import ModelGateway
from services.pdf_extractor import TextExtractor

DB = Annotated[AsyncSession, Depends(get_db)]

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    db: DB,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    token: Optional[str] = Query(default=None, include_in_schema=False),
) -> User:
    """Resolve the caller from ``Authorization: Bearer`` or, for embedded viewers, ``?token=``."""
    raw = credentials.credentials if credentials else token
    if not raw:
        raise AuthError("Not authorized, no token provided")

    try:
        payload = decode_access_token(raw)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired, please login again")
    except jwt.InvalidTokenError:
        raise AuthError("Not authorized, token invalid")

    user_id = payload.get("id")
    if not isinstance(user_id, int):
        raise AuthError("Not authorized, token invalid")

    user = await db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise AuthError("User not found, token may be invalid")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_gateway(request: Request) -> ModelGateway:
    return request.app.state.gateway


def get_generator(gateway: ModelGateway = Depends(get_gateway)) -> ArtifactGenerator:
    return ArtifactGenerator(gateway, max_chars=Config.MAX_PROMPT_CHARS)


def get_extractor(request: Request) -> TextExtractor:
    return request.app.state.extractor


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


Generator = Annotated[ArtifactGenerator, Depends(get_generator)]
Extractor = Annotated[TextExtractor, Depends(get_extractor)]
Mailer = Annotated[EmailSender, Depends(get_email_sender)]


async def get_owned(db: AsyncSession, model, obj_id: int, user_id: int, label: str):
    """Load ``model`` row *obj_id* owned by *user_id*, or raise a 404 naming *label*."""
    obj = await db.scalar(select(model).where(model.id == obj_id, model.user_id == user_id))
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj
