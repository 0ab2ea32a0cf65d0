"""
Structured JSON logging for vestvault.

Every record is emitted as one JSON object carrying the service,
environment and code location next to whatever the caller passed in
``extra``:

    logger.info("Vested tokens claimed", extra={"event": "vesting.claimed", "amount": 500})

Console output goes to stderr so that command output on stdout stays
machine-readable.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from . import config

RECORD_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"
ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5


class VaultJsonFormatter(jsonlogger.JsonFormatter):
    """Stamps service, environment and source location onto each record."""

    def __init__(self, environment: str = "development", service: str = "vestvault"):
        super().__init__(fmt=RECORD_FORMAT)
        self.environment = environment
        self.service = service

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


def _rotating_file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
    )


def setup_logging(
    name: str = "vestvault",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "development",
    enable_console: bool = True,
    enable_file: bool = True,
    max_bytes: int = ROTATE_BYTES,
    backup_count: int = ROTATE_BACKUPS,
) -> logging.Logger:
    """
    Attach JSON handlers to the ``name`` logger.

    Handlers already on the logger are replaced, so calling this twice
    does not duplicate output. A log file that cannot be opened is
    reported on the console and skipped.

    Args:
        name: Logger name, normally the package name
        log_file: Rotating JSON log file (optional)
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: Deployment label written into every record
        enable_console: Log to stderr
        enable_file: Log to ``log_file`` when one is given
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers = []

    handlers: List[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    file_error: Optional[OSError] = None
    if enable_file and log_file:
        try:
            handlers.append(_rotating_file_handler(log_file, max_bytes, backup_count))
        except OSError as exc:
            file_error = exc

    formatter = VaultJsonFormatter(environment=environment, service=name.split(".")[0])
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if file_error is not None:
        logger.warning("Could not open log file %s: %s", log_file, file_error)
    return logger


def configure_from_settings(name: str = "vestvault", level: Optional[str] = None) -> logging.Logger:
    """Preset driven by VESTVAULT_LOG_LEVEL, VESTVAULT_LOG_FILE and VESTVAULT_ENVIRONMENT."""
    return setup_logging(
        name=name,
        log_file=config.LOG_FILE,
        level=level or config.LOG_LEVEL,
        environment=config.ENVIRONMENT,
    )


def get_logger(name: str) -> logging.Logger:
    """Return ``name``, configuring it from settings if it has no handlers yet."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return configure_from_settings(name)
    return logger
