"""structlog setup for the authority.

Configured once at import from ``LOG_LEVEL``, ``LOG_JSON`` and
``LOG_DEV_MODE``. Every event carries the request's ``X-Request-ID`` (set by
the app middleware) and never carries a full password or token.
"""

from __future__ import annotations

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

EventDict = Dict[str, Any]

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Substrings of event keys whose values are masked
_CREDENTIAL_MARKERS = ("password", "secret", "token", "authorization")
_TRUTHY = {"1", "true", "yes", "on"}


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind ``request_id`` (or a fresh uuid4) to the current context and return it."""
    value = request_id or str(uuid.uuid4())
    request_id_var.set(value)
    return value


def _add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "***"
    # First and last two characters let a token be matched across events
    return f"{value[:2]}***{value[-2:]}"


def _mask_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, str) and any(m in key.lower() for m in _CREDENTIAL_MARKERS):
            event_dict[key] = _mask(value)
    return event_dict


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def configure_logging(
    level: str = "INFO", *, json_output: bool = True, dev_mode: bool = False
) -> None:
    """(Re)configure structlog; console rendering wins when ``dev_mode`` or not ``json_output``."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_request_id,
        _mask_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if dev_mode or not json_output:
        processors.append(structlog.dev.ConsoleRenderer(colors=dev_mode))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(
    os.getenv("LOG_LEVEL", "INFO"),
    json_output=_env_flag("LOG_JSON", "true"),
    dev_mode=_env_flag("LOG_DEV_MODE", "false"),
)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
