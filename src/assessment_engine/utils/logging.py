from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Set up stdlib logging and structlog for the engine.

    Attempt lifecycle events go through structlog, module loggers through the
    stdlib; both share the level. Context bound with :func:`learner_context`
    is merged into every structlog event.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger that inherits the global configuration."""
    return structlog.get_logger(name)


@contextmanager
def learner_context(user_id: str, subject_id: str) -> Iterator[None]:
    """Tag every event logged inside the block with the learner and subject."""
    with structlog.contextvars.bound_contextvars(user_id=user_id, subject_id=subject_id):
        yield
