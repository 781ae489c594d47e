"""structlog setup shared by the app, routers and services.

Call ``configure_logging()`` once at process start; everything else just asks
for ``get_logger(__name__)`` and logs dotted event names with key/value context.
"""

import logging
import sys

import structlog

from config import Config

_configured = False


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    global _configured
    if _configured:
        return

    level_name = (level or Config.LOG_LEVEL).upper()
    as_json = Config.LOG_JSON if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if as_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str):
    return structlog.get_logger(name)
