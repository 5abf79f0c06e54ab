"""
Structured logging configuration using structlog.

Console output is colored in debug mode and JSON otherwise. Each process
also writes a ``discovery_YYYYMMDD_HHMMSS.log`` file under ``settings.log_dir``
so a whole call (session start to stop) can be read back from one file.

Request ids and listening-session ids are attached through contextvars:
the correlation middleware binds ``request_id``, the session controller
binds ``session_id`` around each chunk ingestion.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from discovery.core.config import settings

LOG_FILE_PREFIX = "discovery_"


def _cull_old_logs(logs_dir: Path, keep: int) -> List[Path]:
    """Delete all but the newest ``keep`` process log files.

    File names embed a sortable timestamp, so name order is age order.

    Returns:
        Paths that were removed
    """
    log_files = sorted(logs_dir.glob(f"{LOG_FILE_PREFIX}*.log"), reverse=True)
    removed = []
    for old_file in log_files[keep:]:
        try:
            old_file.unlink()
        except OSError:
            # Held open by another process; retried on the next start
            continue
        removed.append(old_file)
    return removed


def _file_handler(logs_dir: Path, keep: int) -> logging.Handler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    # One slot is reserved for the file about to be created
    _cull_old_logs(logs_dir, keep=keep - 1)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = logging.FileHandler(
        logs_dir / f"{LOG_FILE_PREFIX}{timestamp}.log", mode="w", encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(
    logs_dir: Optional[Path] = None,
    log_files_to_keep: Optional[int] = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at startup, before the first log line. Safe to call again:
    existing root handlers are replaced.

    Args:
        logs_dir: File log directory (defaults to settings.log_dir; None
            in both places disables the file)
        log_files_to_keep: Retention (defaults to settings.log_files_to_keep)
    """
    logs_dir = logs_dir or settings.log_dir
    keep = log_files_to_keep or settings.log_files_to_keep
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]
    if settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console)
    if logs_dir is not None:
        root_logger.addHandler(_file_handler(Path(logs_dir), keep))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach key/values (request_id, session_id) to every later log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
