"""Process-wide error events for the detection and render loops.

Components publish ``ErrorEvent``s instead of raising across loop
boundaries; subscribers (the CLI status line, tests) observe them. A failed
detection cycle is reported here and then treated as an empty batch.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""

    INFO = "info"  # Informational, not really an error
    WARNING = "warning"  # Cycle degraded, loop continues
    ERROR = "error"  # Cycle failed, loop continues
    CRITICAL = "critical"  # Repeated failures, output is unreliable


class ErrorCategory(Enum):
    """Error categories for classification."""

    DETECTION = "detection"
    NETWORK = "network"
    TRACKING = "tracking"
    CAPTURE = "capture"
    CONFIG = "config"
    SYSTEM = "system"


_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

ErrorHandler = Callable[["ErrorEvent"], None]


@dataclass
class ErrorEvent:
    """Error event with context information."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str
    timestamp: float = field(default_factory=time.time)
    exception: Optional[BaseException] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        exc_info = f" ({self.exception.__class__.__name__})" if self.exception else ""
        return f"[{self.severity.value.upper()}] {self.category.value}/{self.source}: {self.message}{exc_info}"


class ErrorEventBus:
    """Publish/subscribe hub with a bounded history.

    Handlers run synchronously on the publishing thread, outside the bus
    lock. A failing handler is logged and does not stop delivery to the rest.
    """

    def __init__(self, max_history: int = 100) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[Optional[ErrorCategory], List[ErrorHandler]] = {}
        self._history: Deque[ErrorEvent] = deque(maxlen=max_history)
        self._counts: Counter[ErrorCategory] = Counter()

    def subscribe(
        self, handler: ErrorHandler, category: Optional[ErrorCategory] = None
    ) -> Callable[[], None]:
        """Register a handler for one category, or for every event when None.

        Returns:
            A callable that removes the subscription
        """
        with self._lock:
            self._handlers.setdefault(category, []).append(handler)
        logger.debug(
            "Subscribed %s to %s errors",
            getattr(handler, "__name__", repr(handler)),
            category.value if category else "all",
        )
        return lambda: self.unsubscribe(handler, category)

    def unsubscribe(self, handler: ErrorHandler, category: Optional[ErrorCategory] = None) -> None:
        with self._lock:
            handlers = self._handlers.get(category, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: ErrorEvent) -> None:
        with self._lock:
            self._history.append(event)
            self._counts[event.category] += 1
            targets = list(self._handlers.get(event.category, ())) + list(self._handlers.get(None, ()))

        exc_info = None
        if event.exception is not None:
            exc_info = (type(event.exception), event.exception, event.exception.__traceback__)
        logger.log(_LOG_LEVELS[event.severity], str(event), exc_info=exc_info)

        for handler in targets:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "Error in event subscriber %s: %s",
                    getattr(handler, "__name__", repr(handler)),
                    e,
                    exc_info=True,
                )

    def history(self, category: Optional[ErrorCategory] = None, limit: int = 100) -> List[ErrorEvent]:
        with self._lock:
            events = list(self._history)
        if category is not None:
            events = [e for e in events if e.category == category]
        return events[-limit:]

    def counts(self) -> Dict[ErrorCategory, int]:
        with self._lock:
            return dict(self._counts)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
            self._counts.clear()


_error_bus: Optional[ErrorEventBus] = None
_bus_lock = threading.Lock()


def get_error_bus() -> ErrorEventBus:
    """Return the process-wide bus, creating it on first use."""
    global _error_bus
    if _error_bus is None:
        with _bus_lock:
            if _error_bus is None:
                _error_bus = ErrorEventBus()
    return _error_bus


def reset_error_bus() -> ErrorEventBus:
    """Replace the process-wide bus with a fresh one (used between runs and in tests)."""
    global _error_bus
    with _bus_lock:
        _error_bus = ErrorEventBus()
    return _error_bus


def publish_error(
    category: ErrorCategory,
    severity: ErrorSeverity,
    message: str,
    source: str,
    exception: Optional[BaseException] = None,
    **metadata: Any,
) -> None:
    """Build an ErrorEvent and publish it on the process-wide bus."""
    get_error_bus().publish(
        ErrorEvent(
            category=category,
            severity=severity,
            message=message,
            source=source,
            exception=exception,
            metadata=metadata,
        )
    )


__all__ = [
    "ErrorCategory",
    "ErrorEvent",
    "ErrorEventBus",
    "ErrorHandler",
    "ErrorSeverity",
    "get_error_bus",
    "publish_error",
    "reset_error_bus",
]
