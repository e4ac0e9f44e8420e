"""Logging configuration for the gateway."""

import logging
import os
import time
from collections import deque
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler


class SizeAndTimeRotatingHandler(TimedRotatingFileHandler):
    """Log handler that rotates logs by both size and time."""

    def __init__(self, filename, max_bytes, backup_count=0, **kwargs):
        """Initialize handler with size and time-based rotation."""
        self.max_bytes = max_bytes
        super().__init__(filename, backupCount=backup_count, **kwargs)

    def shouldRollover(self, record):
        """Determine if rollover should occur (by time or file size)."""
        t = int(time.time())
        if t >= self.rolloverAt:
            return 1

        if self.stream and self.max_bytes > 0:
            self.stream.seek(0, os.SEEK_END)
            if self.stream.tell() >= self.max_bytes:
                return 1

        return 0

    def doRollover(self):
        """Perform the log file rollover."""
        super().doRollover()
        self.rolloverAt = self.computeRollover(int(time.time()))


class LogBuffer(logging.Handler):
    """Keeps the most recent log records in memory for the get_logs tool."""

    def __init__(self, capacity: int = 1000, level: int = logging.NOTSET):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        super().__init__(level)
        self._records: deque[dict] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self._records.append(
            {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": message,
            }
        )

    def tail(self, lines: int = 100) -> list[dict]:
        """Return up to ``lines`` most recent entries, oldest first."""
        if lines <= 0:
            return []
        return list(self._records)[-lines:]

    def __len__(self) -> int:
        return len(self._records)


def configure_logging(
    log_dir: str = "logs",
    log_file: str = "gateway.log",
    level: int = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 7,
    console: bool = True,
    buffer: LogBuffer | None = None,
) -> logging.Logger:
    """Configure root logger with console, rotating file and buffer handlers.

    Args:
        log_dir: Directory for log files.
        log_file: Log file name.
        level: Logging level.
        max_bytes: Max file size before rotation.
        backup_count: Number of backup files to keep.
        console: Whether to also log to console.
        buffer: Optional in-memory buffer served by the get_logs tool.

    Returns:
        Configured root logger.
    """
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    )

    file_handler = SizeAndTimeRotatingHandler(
        filename=os.path.join(log_dir, log_file),
        when="midnight",
        interval=1,
        max_bytes=max_bytes,
        backup_count=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if buffer is not None:
        buffer.setLevel(level)
        logger.addHandler(buffer)

    return logger
