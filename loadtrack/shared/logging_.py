"""Structured logging for LoadTrack."""
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from loadtrack.shared.models import LifecycleState


class TruncatingFormatter(logging.Formatter):
    """
    Formatter that shortens oversized log messages.

    Payloads are logged with repr(), which can be arbitrarily large
    for data-heavy loads.
    """

    MAX_MESSAGE_LENGTH = 2000

    def format(self, record: logging.LogRecord) -> str:
        """Format and truncate log record."""
        text = super().format(record)
        if len(text) > self.MAX_MESSAGE_LENGTH:
            return text[: self.MAX_MESSAGE_LENGTH] + "...(truncated)"
        return text


def setup_logger(
    name: str = "loadtrack",
    level: int = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Set up library logger.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional file path for file handler

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_formatter = TruncatingFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler (if specified)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_formatter = TruncatingFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def setup_logger_from_settings(settings, name: str = "loadtrack") -> logging.Logger:
    """Configure the library logger from a Settings instance."""
    level = logging.getLevelName(str(settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    log_file = Path(settings.log_file) if settings.log_file else None
    return setup_logger(name=name, level=level, log_file=log_file)


def log_transition(
    logger: logging.Logger,
    machine: str,
    operation: str,
    previous: LifecycleState,
    current: LifecycleState,
    data: Any = None,
    error: Any = None,
):
    """
    Log a structured state transition.

    Args:
        logger: Logger instance
        machine: Machine name
        operation: Transition method that ran (start/update/succeed/fail/reset)
        previous: State before the transition
        current: State after the transition
        data: Data payload after the transition (optional)
        error: Error payload after the transition (optional)
    """
    parts = [
        f"machine={machine}",
        f"op={operation}",
        f"transition={previous.value}->{current.value}",
    ]

    if data is not None:
        parts.append(f"data={data!r}")
    if error is not None:
        parts.append(f"error={error!r}")

    log_msg = " | ".join(parts)

    if current is LifecycleState.ERROR:
        logger.warning(log_msg)
    elif current is LifecycleState.SUCCESS:
        logger.info(log_msg)
    else:
        logger.debug(log_msg)
