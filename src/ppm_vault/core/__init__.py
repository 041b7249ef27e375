# Core Module - Shared Utilities
#
# - Structured event logging
# - SQLite connection helper

from .event_log import (
    EventLogger,
    EventSeverity,
    EventType,
    get_event_logger,
    set_event_logger,
)

__all__ = [
    "EventLogger",
    "EventType",
    "EventSeverity",
    "get_event_logger",
    "set_event_logger",
]
