# Core - Operational Event Log
#
# Structured JSON logging for vault operations (load, add, find, remove,
# import, export). One file per day under the configured log directory.
# Secrets never reach this module: callers pass service names and counts,
# not accounts, passwords, magic numbers or envelopes.

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

from ..config import get_log_dir


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    VAULT_LOADED = "vault.loaded"
    VAULT_LOAD_FAILED = "vault.load.failed"
    VAULT_SAVED = "vault.saved"

    SERVICE_ADDED = "vault.service.added"
    SERVICE_FOUND = "vault.service.found"
    SERVICE_NOT_FOUND = "vault.service.not_found"
    SERVICE_REMOVED = "vault.service.removed"
    DECRYPTION_FAILED = "vault.decryption.failed"

    VAULT_IMPORTED = "vault.imported"
    VAULT_IMPORT_FAILED = "vault.import.failed"
    VAULT_EXPORTED = "vault.exported"

    VAULT_ERROR = "vault.error"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: normal activity
    - WARNING: a user-facing failure (wrong magic number, bad import file)
    - ERROR: the vault could not be read or written
    """
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    def to_level(self) -> int:
        """Map to the stdlib logging level."""
        level_map = {
            EventSeverity.INFO: logging.INFO,
            EventSeverity.WARNING: logging.WARNING,
            EventSeverity.ERROR: logging.ERROR,
        }
        return level_map[self]


class EventLogger:
    """
    Structured logger for vault events.

    Features:
    - JSON lines via structlog
    - Automatic timestamp and event ID
    - Daily log file
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize the event logger.

        Args:
            log_dir: Directory for log files (default: PPM_LOG_DIR or
                     <data dir>/logs)
        """
        self.log_dir = Path(log_dir) if log_dir else get_log_dir()
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._file_handler: Optional[logging.Handler] = None
        self._setup_file_handler()

        self.logger = structlog.get_logger("ppm_vault.events")

    def _setup_file_handler(self):
        """Attach a file handler for today's log to the package logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        self.log_file = self.log_dir / f"vault_{today}.log"

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders

        package_logger = logging.getLogger("ppm_vault")
        package_logger.addHandler(file_handler)
        package_logger.setLevel(logging.INFO)
        self._file_handler = file_handler

    def close(self) -> None:
        """Detach and close the file handler."""
        if self._file_handler is not None:
            logging.getLogger("ppm_vault").removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log a vault event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable description
            details: Additional fields (never secrets)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "details": details or {},
        }

        self.logger.log(severity.to_level(), "vault_event", **event_data)

        return event_id


# Global logger instance
_event_logger: Optional[EventLogger] = None


def get_event_logger() -> EventLogger:
    """Get global event logger (singleton pattern)."""
    global _event_logger
    if _event_logger is None:
        _event_logger = EventLogger()
    return _event_logger


def set_event_logger(instance: Optional[EventLogger]) -> None:
    """Replace the singleton (for testing)."""
    global _event_logger
    if _event_logger is not None and _event_logger is not instance:
        _event_logger.close()
    _event_logger = instance
