"""Daily wake-up alarm that selects a station at a wall-clock time"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from radio_progression.models.profile import Alarm
from radio_progression.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

def next_occurrence(alarm: Alarm, now: datetime) -> datetime:
    """Today at HH:MM if that is still ahead of now, otherwise tomorrow"""
    target = now.replace(hour=alarm.hour, minute=alarm.minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target

class AlarmScheduler:
    """
    Disarmed <-> Armed(alarm) state machine with one owned one-shot timer.

    The fire time is derived from HH:MM every time the alarm is armed, never
    stored, so re-arming after a restart always targets the next occurrence.
    """

    def __init__(self, scheduler: Scheduler, on_fire: Callable[[Alarm], None]):
        self.scheduler = scheduler
        self.on_fire = on_fire
        self.alarm: Optional[Alarm] = None
        self.fires_at: Optional[datetime] = None
        self._handle: Optional[TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, alarm: Optional[Alarm]) -> bool:
        """Cancel any pending alarm and schedule this one if it is active"""
        self.disarm()
        if alarm is None or not alarm.is_active:
            return False
        now = self.scheduler.now()
        self.alarm = alarm
        self.fires_at = next_occurrence(alarm, now)
        self._handle = self.scheduler.call_later((self.fires_at - now).total_seconds(), self._fire)
        logger.info(f"Alarm armed for {self.fires_at.isoformat()} on {alarm.station_name}")
        return True

    def reschedule(self, alarm: Optional[Alarm]) -> bool:
        return self.arm(alarm)

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.alarm = None
        self.fires_at = None

    def _fire(self) -> None:
        alarm = self.alarm
        self._handle = None
        self.alarm = None
        self.fires_at = None
        if alarm is None:
            return
        logger.info(f"Alarm {alarm.time} firing for {alarm.station_name}")
        self.on_fire(alarm)
