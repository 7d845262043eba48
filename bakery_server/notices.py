"""Toasts and alerts shown to the customer."""

import time
from typing import Callable, Literal, Optional

from pydantic import BaseModel

TOAST_SECONDS = 3.0


class Notice(BaseModel):
    """A message for the customer."""

    kind: Literal["toast", "alert"]
    message: str
    raised_at: float


class NoticeBoard:
    """
    Holds the current toast and any pending alerts.

    Only one toast is shown at a time and it disappears after TOAST_SECONDS.
    Alerts stay until dismissed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._toast: Optional[Notice] = None
        self._alerts: list[Notice] = []

    def toast(self, message: str) -> None:
        self._toast = Notice(kind="toast", message=message, raised_at=self.clock())

    def alert(self, message: str) -> None:
        self._alerts.append(Notice(kind="alert", message=message, raised_at=self.clock()))

    @property
    def current_toast(self) -> Optional[Notice]:
        if self._toast and self.clock() - self._toast.raised_at >= TOAST_SECONDS:
            self._toast = None
        return self._toast

    @property
    def alerts(self) -> list[Notice]:
        return list(self._alerts)

    def dismiss_alerts(self) -> None:
        self._alerts.clear()

    def active(self) -> list[Notice]:
        toast = self.current_toast
        return ([toast] if toast else []) + self.alerts
