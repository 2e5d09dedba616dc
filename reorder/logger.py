import logging
import sys
from logging.handlers import RotatingFileHandler
from . import settings

# Libraries whose INFO/DEBUG output would drown the per-item analysis lines.
QUIET_LOGGERS = ("urllib3", "requests")


def setup_logger(name: str = None, log_level: int = logging.INFO) -> logging.Logger:
    """
    Sets up a logger with both console (StreamHandler) and file (RotatingFileHandler) output.
    Call with no name to configure the root logger so every `reorder.*` module logger inherits it.
    HTTP client logging is capped at WARNING even when running with -v.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.hasHandlers():
        return logger

    # 1. Console Handler: the recommendation table and summary, unadorned
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    # 2. File Handler: same lines with timestamps, for comparing runs
    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.LOG_DIR / settings.LOG_FILENAME,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    return logger
