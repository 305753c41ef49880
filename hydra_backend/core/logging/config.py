"""
Logging setup for the Hydra backend.

One named logger, plain-text lines, a console handler and (unless LOG_DIR is
set to an empty string) file handlers under the log directory. LOG_LEVEL picks
the level and DEBUG=true forces DEBUG; at DEBUG an extra ``debug.log``
receives everything.
"""

import logging
import os


LOGGER_NAME = "hydra-backend"
DEFAULT_LOG_DIR = "logs"

# Extra fields shown at the end of a line when present on the record
CONTEXT_FIELDS = ("request_id", "model_id", "session_id")


class ContextFormatter(logging.Formatter):
    """Appends request context passed through ``extra`` to the log line."""

    def format(self, record):
        line = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None)
        ]
        if context:
            line = f"{line} [{' '.join(context)}]"
        return line


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging() -> logging.Logger:
    """
    Configure and return the project logger.

    Safe to call more than once: previously attached handlers are closed and
    replaced.
    """
    level = _resolve_level(os.environ.get("LOG_LEVEL", "INFO"))
    if os.environ.get("DEBUG", "false").lower() == "true":
        level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(
        "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handler_level = logging.DEBUG if level <= logging.DEBUG else logging.INFO

    log_dir = os.environ.get("LOG_DIR", DEFAULT_LOG_DIR)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        _attach(logger, logging.FileHandler(os.path.join(log_dir, "app.log"), encoding="utf-8"), logging.INFO, formatter)
        if level <= logging.DEBUG:
            _attach(logger, logging.FileHandler(os.path.join(log_dir, "debug.log"), encoding="utf-8"), logging.DEBUG, formatter)

    _attach(logger, logging.StreamHandler(), handler_level, formatter)
    return logger
