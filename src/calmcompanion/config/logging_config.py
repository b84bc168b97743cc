"""
CalmCompanion Logging Configuration

Structured logging through structlog:
- Request correlation ID and help session ID bound per request
- Redaction of secrets and third-party contact details
- Console rendering in development, JSON lines elsewhere

PRIVACY: Emergency contact phone numbers, e-mail addresses and
location hints belong to people other than the user. They must never
reach log aggregation in clear text, whether as a field or embedded
in a message.
"""

import logging
import re
import sys
from typing import Any, MutableMapping

import structlog

from calmcompanion import __version__
from calmcompanion.config.settings import Settings

REDACTED = "[REDACTED]"

# Field names containing any of these fragments are masked
SENSITIVE_KEY_FRAGMENTS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "api_key",
    "authorization",
    "bearer",
    "phone",
    "email",
    "location",
)

# Free-text values: anything that looks like a phone number or e-mail
_PHONE_RE = re.compile(r"\+?\(?\d[\d\s().-]{6,}\d")
_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")

QUIET_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.access", "httpx", "httpcore")

EventDict = MutableMapping[str, Any]


def _is_sensitive(key: str) -> bool:
    key_lower = key.lower()
    return any(fragment in key_lower for fragment in SENSITIVE_KEY_FRAGMENTS)


def _scrub(key: str, value: Any) -> Any:
    if _is_sensitive(key):
        return REDACTED
    if isinstance(value, str):
        return _EMAIL_RE.sub(REDACTED, _PHONE_RE.sub(REDACTED, value))
    if isinstance(value, dict):
        return {k: _scrub(k, v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(key, item) for item in value]
    return value


def redact_personal_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Mask sensitive fields and phone/e-mail lookalikes in text.

    Nested dicts and lists are walked; a sensitive key masks its
    whole value.
    """
    return {key: _scrub(key, value) for key, value in event_dict.items()}


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", "calmcompanion")
    event_dict.setdefault("version", __version__)
    return event_dict


def build_processors(json_output: bool) -> list[Any]:
    """
    Processor chain for structlog.

    Args:
        json_output: Render JSON lines instead of coloured console output
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            redact_personal_data,
            add_service_context,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            redact_personal_data,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]
    return processors


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Call once at startup; calling again replaces the configuration.
    """
    level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=build_processors(json_output=settings.env != "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_session_id(session_id: str) -> None:
    """Attach the help session ID to every log entry of this request."""
    structlog.contextvars.bind_contextvars(session_id=session_id)


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Drop request-scoped context (end of request)."""
    structlog.contextvars.clear_contextvars()
