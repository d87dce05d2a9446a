"""
Run logging for the relevance pipeline.

Pipeline modules attach run context to their records through ``extra``
(organization, candidate, write batch, counts, timings). Both formatters here
surface that context: JSON file output as top-level keys, console output as a
trailing ``key=value`` suffix.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

PACKAGE_LOGGER = "trend_relevance"

# Record attribute -> label used in console output
CONTEXT_FIELDS = {
    "org_id": "org",
    "candidate_id": "candidate",
    "batch": "batch",
    "count": "count",
    "duration_ms": "ms",
}


def run_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context extras present on ``record``, in ``CONTEXT_FIELDS`` order."""
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, run context merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **run_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the run context appended, e.g. ``| org=org-1 candidate=c-2``."""

    def __init__(self, show_logger: bool = False):
        super().__init__()
        self.show_logger = show_logger

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        source = f" {record.name}:" if self.show_logger else ""
        line = f"{timestamp} [{record.levelname:8}]{source} {record.getMessage()}"

        context = run_context(record)
        if context:
            line += " | " + " ".join(f"{CONTEXT_FIELDS[k]}={v}" for k, v in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_structured_logging(
    name: str,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    json_output: bool = False,
    console: bool = True,
) -> logging.Logger:
    """
    Configure handlers on the package logger for one CLI run.

    Module loggers (``trend_relevance.pipeline`` etc.) propagate to it, so
    they need no setup of their own.

    Args:
        name: Run name, used as the log file prefix
        level: Logging level
        log_dir: Directory for a per-run log file (None = no file logging)
        json_output: JSON lines in the log file instead of plain text
        console: Also log to stdout

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.handlers = []

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            JSONFormatter() if json_output else ConsoleFormatter(show_logger=True)
        )
        logger.addHandler(file_handler)
        logger.info(f"Logging to: {log_file}")

    return logger
