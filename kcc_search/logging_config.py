"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

KEEP_SESSIONS = 5
MAX_LOG_BYTES = 10 * 1024 * 1024


def _cleanup_old_sessions(log_path: Path, keep: int = KEEP_SESSIONS):
    """Delete session logs so that, with the new one, only `keep` remain"""
    pattern = str(log_path.parent / f"{log_path.stem}_*.log")
    existing = sorted(glob.glob(pattern), reverse=True)  # Newest first
    for old_log in existing[keep - 1:]:
        try:
            Path(old_log).unlink()
        except OSError as e:
            print(f"WARNING: Could not remove old log {old_log}: {e}", file=sys.stderr)


def setup_logging(
    log_file: str = "logs/kcc-search.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default)
    - File: Detailed logs (DEBUG by default), one file per process start

    Rotation policy:
    - Timestamped file per session, last 5 sessions kept
    - Rotate within a session at 10MB

    Query text is never logged above DEBUG.

    Args:
        log_file: Base path to log file (relative to project root)
        console_level: Console logging level
        file_level: File logging level

    Returns:
        Path of this session's log file
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _cleanup_old_sessions(log_path)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filter in handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=MAX_LOG_BYTES,
        backupCount=3,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Noisy third-party loggers (still in the file at WARNING+)
    for name in ("uvicorn.access", "httpx", "httpcore", "sentence_transformers", "asyncio", "google_genai"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log
