"""Ephemeral toast notifications raised by the progression engine"""
from dataclasses import dataclass
from typing import List, Optional

from radio_progression.config import Settings, settings as default_settings
from radio_progression.timers import Scheduler

@dataclass
class ToastData:
    id: int
    title: str
    message: Optional[str] = None
    type: str = 'success'  # achievement | points | milestone | theme_unlocked | login | error | raid | success
    exiting: bool = False

class NotificationQueue:
    """
    Append-only list of toasts. Each toast starts its exit transition after
    TOAST_DISPLAY_SECONDS and is removed TOAST_EXIT_SECONDS later.
    """

    def __init__(self, scheduler: Scheduler, settings: Optional[Settings] = None):
        self.scheduler = scheduler
        self.settings = settings or default_settings
        self._toasts: List[ToastData] = []
        self._last_id = 0

    @property
    def toasts(self) -> List[ToastData]:
        return list(self._toasts)

    def __len__(self) -> int:
        return len(self._toasts)

    def _next_id(self) -> int:
        # millisecond timestamp, bumped so ids stay strictly increasing
        stamp = int(self.scheduler.now().timestamp() * 1000)
        self._last_id = max(stamp, self._last_id + 1)
        return self._last_id

    def push(self, title: str, message: Optional[str] = None, type: str = 'success') -> ToastData:
        toast = ToastData(id=self._next_id(), title=title, message=message, type=type)
        self._toasts.append(toast)
        self.scheduler.call_later(self.settings.TOAST_DISPLAY_SECONDS, lambda: self._begin_exit(toast))
        return toast

    def _begin_exit(self, toast: ToastData) -> None:
        toast.exiting = True
        self.scheduler.call_later(self.settings.TOAST_EXIT_SECONDS, lambda: self._remove(toast.id))

    def _remove(self, toast_id: int) -> None:
        self._toasts = [t for t in self._toasts if t.id != toast_id]

    def of_type(self, type: str) -> List[ToastData]:
        return [t for t in self._toasts if t.type == type]
