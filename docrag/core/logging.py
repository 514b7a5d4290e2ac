"""Structured logging configuration using structlog."""

import logging
import re
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, override

import structlog

DEFAULT_LOG_DIR = Path(__file__).parent.parent.parent / "logs"

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

# Longest question/answer excerpt written to the request log
MAX_LOGGED_TEXT = 300

# Event keys that may carry raw vectors
VECTOR_KEYS = ("embedding", "embeddings", "query_embedding", "vector")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
REQUEST_FORMAT = "%(asctime)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogFile:
    """One rotating log file and the records routed to it."""

    filename: str
    level: int
    max_size_mb: int
    max_days: int
    logger_name: str | None = None
    fmt: str = FILE_FORMAT


LOG_FILES = (
    LogFile("app.log", logging.DEBUG, max_size_mb=10, max_days=30),
    LogFile("error.log", logging.ERROR, max_size_mb=5, max_days=60),
    LogFile(
        "request.log",
        logging.INFO,
        max_size_mb=20,
        max_days=7,
        logger_name="request",
        fmt=REQUEST_FORMAT,
    ),
)


def truncate(text: str | None, max_len: int = MAX_LOGGED_TEXT) -> str | None:
    """Shorten text for log output."""
    if text is None:
        return None
    return text[:max_len] + "..." if len(text) > max_len else text


def summarize_vectors(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace raw embedding vectors in an event with their dimensions."""
    for key in VECTOR_KEYS:
        value = event_dict.get(key)
        if isinstance(value, list | tuple) and value:
            if isinstance(value[0], list | tuple):
                event_dict[key] = f"<{len(value)} vectors x {len(value[0])} dims>"
            else:
                event_dict[key] = f"<vector {len(value)} dims>"
    return event_dict


class CleanFileHandler(logging.Handler):
    """Appends ANSI-free records to a file, rotating it by size.

    Rotated files are named ``<stem>.<YYYYmmdd_HHMMSS>.log`` and deleted once
    they are older than ``max_days``.
    """

    def __init__(self, filepath: Path, max_size_mb: int = 10, max_days: int = 30):
        super().__init__()
        self.filepath = filepath
        self.max_bytes = max_size_mb * 1024 * 1024
        self.max_age_seconds = max_days * 86400

    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = ANSI_ESCAPE.sub("", self.format(record))
            with self.filepath.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
            if self.filepath.stat().st_size > self.max_bytes:
                self.rotate()
        except Exception:
            self.handleError(record)

    def rotate(self) -> None:
        if not self.filepath.exists():
            return
        suffix = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.filepath.rename(self.filepath.with_name(f"{self.filepath.stem}.{suffix}.log"))
        self.prune()

    def prune(self) -> None:
        """Delete rotated files past the retention window."""
        cutoff = time.time() - self.max_age_seconds
        for rotated in self.filepath.parent.glob(f"{self.filepath.stem}.*.log"):
            try:
                if rotated.stat().st_mtime < cutoff:
                    rotated.unlink()
            except OSError:
                continue


def _add_file_handlers(log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    for log_file in LOG_FILES:
        handler = CleanFileHandler(
            log_dir / log_file.filename,
            max_size_mb=log_file.max_size_mb,
            max_days=log_file.max_days,
        )
        handler.setFormatter(logging.Formatter(log_file.fmt, datefmt=DATE_FORMAT))
        handler.setLevel(log_file.level)

        target = logging.getLogger(log_file.logger_name)
        target.addHandler(handler)
        if log_file.logger_name:
            # Request lines only go to their own file
            target.setLevel(log_file.level)
            target.propagate = False


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    log_to_file: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON format; otherwise, console-friendly format
        log_to_file: If True, also write app/error/request logs
        log_dir: Directory for log files (defaults to ``logs/`` at the project root)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_to_file:
        _add_file_handlers(log_dir or DEFAULT_LOG_DIR)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt=DATE_FORMAT),
        summarize_vectors,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


def log_request(
    method: str,
    path: str,
    user_id: str | None = None,
    question: str | None = None,
    answer: str | None = None,
    source_count: int | None = None,
    duration_ms: float | None = None,
    status: str = "success",
    error: str | None = None,
) -> None:
    """Write one line per RAG call to the ``request`` logger.

    Example::

        [POST] /api/v1/rag/query user=3f2a9c1e q="refund window?" sources=3 a="Refunds..." 812ms SUCCESS
    """
    fields = [f"[{method}] {path}"]
    if user_id:
        fields.append(f"user={user_id[:8]}")
    if question:
        fields.append(f'q="{truncate(question)}"')
    if source_count is not None:
        fields.append(f"sources={source_count}")
    if answer:
        fields.append(f'a="{truncate(answer)}"')
    if duration_ms is not None:
        fields.append(f"{duration_ms:.0f}ms")
    fields.append(status.upper())
    if error:
        fields.append(f'error="{error}"')

    logging.getLogger("request").info(" ".join(fields))
