"""Log formatting for pipeline runs.

Records render as one readable line followed by their ``extra=`` fields as
JSON. Run correlation fields lead the payload so a run can be followed with
a plain text search.
"""

import json
import logging
import sys
from typing import Any

ROOT_LOGGER_NAME = "articleforge"

# Fields every log call in the pipeline may attach, in display order.
CORRELATION_FIELDS = ("run_id", "stage", "article_id", "organization_id")

# Attributes the logging module sets on every record; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the ``extra=`` fields of a record, correlation fields first."""
    custom = {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }
    ordered = {key: custom.pop(key) for key in CORRELATION_FIELDS if key in custom}
    ordered.update(sorted(custom.items()))
    return ordered


class PipelineLogFormatter(logging.Formatter):
    """``<time> | <LEVEL> | <logger> | <message> {extras}`` with tracebacks below."""

    def __init__(self, datefmt: str | None = "%Y-%m-%d %H:%M:%S") -> None:
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        parts = [
            self.formatTime(record, self.datefmt),
            f"{record.levelname:<8}",
            record.name,
            record.message,
        ]
        line = " | ".join(parts)

        extras = record_extras(record)
        if extras:
            line = f"{line} {json.dumps(extras, default=str, ensure_ascii=False)}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        if record.stack_info:
            line = f"{line}\n{self.formatStack(record.stack_info)}"
        return line


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the package logger and return it.

    Safe to call repeatedly: later calls only adjust the level.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    handler = next((h for h in logger.handlers if isinstance(h.formatter, PipelineLogFormatter)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(PipelineLogFormatter())
        logger.addHandler(handler)
    handler.setLevel(level)
    return logger
