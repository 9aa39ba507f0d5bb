"""
Structured Logging

Every ledger operation logs what it did (or why it failed) as one
structured event. Events for a single call share a correlation_id so the
conflict retries of one transfer can be told apart from another's.

The transaction records themselves are the ledger's history; these logs
are for operators and debugging only.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledger.config import LedgerSettings, get_settings


LOGGER_NAME = "ledger"


def _processors(json_output: bool) -> list:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(settings: Optional[LedgerSettings] = None) -> None:
    """
    Configure structlog and the "ledger" stdlib logger.

    Safe to call more than once; the last call wins.
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=_processors(settings.log_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(settings.log_level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)


def get_logger(name: Optional[str] = None):
    """Bound logger under the "ledger" namespace."""
    if name is None:
        name = LOGGER_NAME
    elif name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return structlog.get_logger(name)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for one ledger call.

    Pass it through every log line the call produces.
    """
    return uuid4()
