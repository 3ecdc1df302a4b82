"""
User-facing toast notifications.

The board surfaces persistence failures as a toast and carries on; nothing
is retried or rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Protocol

import structlog

log = structlog.get_logger()

ToastLevel = Literal["info", "success", "error"]


class Notifier(Protocol):
    def notify(self, message: str, level: ToastLevel = "info") -> None: ...


@dataclass
class Toast:
    message: str
    level: ToastLevel
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ToastCenter:
    """Keeps the most recent toasts in memory and logs each one."""

    def __init__(self, limit: int = 20) -> None:
        self._limit = limit
        self._toasts: list[Toast] = []

    def notify(self, message: str, level: ToastLevel = "info") -> None:
        self._toasts.append(Toast(message=message, level=level))
        self._toasts = self._toasts[-self._limit :] if self._limit > 0 else []
        log.info("toast.shown", message=message, level=level)

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def dismiss_all(self) -> None:
        self._toasts.clear()
