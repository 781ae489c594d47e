"""JWT issuing/verification and bcrypt password hashing."""

import asyncio
import hashlib
from datetime import datetime, timedelta
from functools import partial

import bcrypt
import jwt

from config import Config

JWT_SECRET = Config.JWT_SECRET
if not JWT_SECRET:
    raise SystemExit(
        "FATAL: JWT_SECRET environment variable is not set. "
        "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
    )

JWT_ALGORITHM = "HS256"


def create_access_token(user_id: int) -> str:
    now = datetime.utcnow()
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + timedelta(days=Config.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


async def hash_password(password: str) -> str:
    # bcrypt is deliberately slow; keep it off the event loop
    loop = asyncio.get_running_loop()
    salt = await loop.run_in_executor(None, partial(bcrypt.gensalt, rounds=Config.BCRYPT_ROUNDS))
    hashed = await loop.run_in_executor(
        None, partial(bcrypt.hashpw, password.encode("utf-8"), salt)
    )
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, partial(bcrypt.checkpw, password.encode("utf-8"), password_hash.encode("utf-8"))
    )


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
