from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

_CONFIGURED = False

# Event keys whose values are raw signature images or secrets
_REDACTED_KEYS = frozenset({"signature", "password", "hashed_password"})


def redact_sensitive(
    _: Any, __: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace signature payloads and passwords with a length marker."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        value = event_dict[key]
        event_dict[key] = f"<redacted:{len(value)}>" if isinstance(value, str) else "<redacted>"
    return event_dict


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog to emit JSON logs with contextvars support."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
