"""Structured logging configuration using structlog.

JSON lines in production (one event per line, shipped to the log
aggregator) and colored console output in development. Request-scoped
context (request id, correlation id) is carried through contextvars.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

from deck_orchestrator import __version__

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "redis", "uvicorn.access")


def add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp every event with the service name and version."""
    event_dict.setdefault("service", "deck-orchestrator")
    event_dict.setdefault("service_version", __version__)
    return event_dict


def bind_request_context(
    request_id: str, correlation_id: Optional[str] = None, **extra: Any
) -> None:
    """Bind request-scoped identifiers so they appear in every later event."""
    context: dict[str, Any] = {"request_id": request_id, **extra}
    if correlation_id:
        context["correlation_id"] = correlation_id
    structlog.contextvars.bind_contextvars(**context)


def configure_logging(log_level: str = "INFO", environment: str = "development") -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        environment: "production" selects the JSON renderer, anything else
            the console renderer
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    production = environment.lower() == "production"

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
    ]

    if production:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if production else "console",
    )
