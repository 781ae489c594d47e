"""
services/model_gateway.py — Single-shot completion calls against an
OpenAI-compatible chat/completions endpoint (Groq by default).

The gateway receives its configuration at construction; nothing is read from
the environment here. Transport and HTTP failures are mapped onto the
``Completion*Error`` classes so the API can tell a bad key from a rate limit
from an outage. The SDK's built-in retries are switched off: no call is retried
automatically.
"""

from dataclasses import dataclass
from typing import Optional

import openai

from config import Config, PLACEHOLDER_API_KEY
from errors import (
    CompletionAuthError,
    CompletionBadRequestError,
    CompletionConfigError,
    CompletionEmptyError,
    CompletionError,
    CompletionNetworkError,
    CompletionRateLimitError,
    CompletionUpstreamError,
)
from logging_config import get_logger

logger = get_logger(__name__)

TRUNCATION_MARKER = "...[truncated]"


def truncate_text(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars* and mark the cut so the model (and readers) can tell."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


@dataclass(frozen=True)
class GatewayConfig:
    api_key: str
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: float = 60.0

    @classmethod
    def from_config(cls, config=Config) -> "GatewayConfig":
        return cls(
            api_key=config.COMPLETION_API_KEY or "",
            base_url=config.COMPLETION_BASE_URL,
            model=config.COMPLETION_MODEL,
            temperature=config.COMPLETION_TEMPERATURE,
            max_tokens=config.COMPLETION_MAX_TOKENS,
            timeout=config.COMPLETION_TIMEOUT_SECONDS,
        )

    @property
    def key_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY


def _upstream_message(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        nested = body.get("error")
        msg = body.get("message") or (nested.get("message") if isinstance(nested, dict) else nested)
        if msg:
            return str(msg)
    return exc.message or "Unknown completion API error"


def classify_status_error(exc: openai.APIStatusError) -> CompletionError:
    status = exc.status_code
    detail = _upstream_message(exc)
    if status == 400:
        return CompletionBadRequestError(f"Completion API bad request: {detail}")
    if status in (401, 403):
        return CompletionAuthError()
    if status == 429:
        return CompletionRateLimitError()
    return CompletionUpstreamError(f"Completion API error: {detail}", upstream_status=status)


class ModelGateway:
    """Async completion client. One instance per app, built from a GatewayConfig."""

    def __init__(self, config: GatewayConfig, client=None, http_client=None):
        self._config = config
        self._client = client            # openai.AsyncOpenAI, created lazily
        self._http_client = http_client  # optional httpx.AsyncClient (tests, proxies)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def _get_client(self):
        if not self._config.key_configured:
            raise CompletionConfigError()
        if self._client is None:
            kwargs = {
                "api_key": self._config.api_key,
                "base_url": self._config.base_url,
                "timeout": self._config.timeout,
                "max_retries": 0,
            }
            if self._http_client is not None:
                kwargs["http_client"] = self._http_client
            self._client = openai.AsyncOpenAI(**kwargs)
        return self._client

    async def complete(self, prompt: str) -> str:
        """Send *prompt* as a single user message and return the reply text."""
        client = self._get_client()
        try:
            resp = await client.chat.completions.create(
                model=self._config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
            )
        except openai.APIStatusError as exc:
            err = classify_status_error(exc)
            logger.warning(
                "completion.http_error",
                status=exc.status_code,
                code=err.code,
                detail=_upstream_message(exc),
            )
            raise err from exc
        except openai.APIConnectionError as exc:
            # also covers APITimeoutError
            logger.warning("completion.network_error", error=str(exc))
            raise CompletionNetworkError() from exc

        text = self._extract_content(resp)
        if not text:
            logger.warning("completion.empty_response", model=self._config.model)
            raise CompletionEmptyError()
        logger.info("completion.ok", model=self._config.model, chars=len(text))
        return text

    @staticmethod
    def _extract_content(response) -> Optional[str]:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if not content or not content.strip():
            return None
        return content
