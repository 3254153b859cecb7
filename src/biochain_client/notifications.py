"""
User-facing outcome notifications.

Every submission path ends in exactly one terminal notification: success,
already completed, still pending, or failed with an actionable hint.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .runtime.errors import ClassifiedError


logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """One message for the user."""
    level: NotificationLevel
    message: str
    tx_hash: Optional[str] = None
    error: Optional[ClassifiedError] = None
    timestamp: float = field(default_factory=time.time)


Notifier = Callable[[Notification], None]


def logging_notifier(notification: Notification) -> None:
    """Default notifier: write the notification to the log."""
    level = {
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }[notification.level]
    logger.log(level, notification.message)


def failure_message(action: str, error: ClassifiedError) -> str:
    """Failure text carrying both the raw message and the hint."""
    return f"Failed to {action}: [{error.kind.value}] {error.raw_message}. {error.actionable_hint}"
