"""Active station tracking and one-second listening ticks"""
import logging
from typing import Callable, Optional

from radio_progression.config import Settings, settings as default_settings
from radio_progression.models.identity import ANONYMOUS, UserSession
from radio_progression.models.profile import Station
from radio_progression.timers import RepeatingTimer, Scheduler

logger = logging.getLogger(__name__)

class ListeningSession:
    """
    Idle <-> Active(station) state machine.

    While Active, on_tick(user, station) fires every TICK_SECONDS. There is
    at most one live timer: any transition cancels the old timer before a
    new one starts, and a partially elapsed second is discarded.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_tick: Callable[[UserSession, Station], None],
        settings: Optional[Settings] = None,
    ):
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.settings = settings or default_settings
        self.user: UserSession = ANONYMOUS
        self.station: Optional[Station] = None
        self._timer: Optional[RepeatingTimer] = None

    @property
    def active(self) -> bool:
        return self._timer is not None

    def start(self, user: UserSession, station: Station) -> bool:
        """Enter Active(station) for user; returns False when nothing changed or user is anonymous"""
        if not user.authenticated:
            self.stop()
            return False
        if self.active and self.user == user and self.station and self.station.stream_url == station.stream_url:
            return False

        self.stop()
        self.user = user
        self.station = station
        self._timer = RepeatingTimer(self.scheduler, self.settings.TICK_SECONDS, self._tick)
        logger.info(f"Listening session active for {user.username} on {station.name}")
        return True

    def stop(self) -> None:
        """Return to Idle and cancel the tick timer"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info(f"Listening session idle for {self.user.username}")
        self.user = ANONYMOUS
        self.station = None

    def _tick(self) -> None:
        if self.station is None or not self.user.authenticated:
            return
        self.on_tick(self.user, self.station)
