"""Session tracking and progression engine for an internet radio client"""
from radio_progression.engine import ProgressionEngine
from radio_progression.models.identity import ANONYMOUS, UserSession
from radio_progression.models.profile import Alarm, ListeningStats, NowPlaying, ProfileSnapshot, Station
from radio_progression.services.nowplaying import NowPlayingAPI
from radio_progression.services.storage import UserProfileStore
from radio_progression.timers import AsyncioScheduler, ManualScheduler

__all__ = [
    "ANONYMOUS",
    "Alarm",
    "AsyncioScheduler",
    "ListeningStats",
    "ManualScheduler",
    "NowPlaying",
    "NowPlayingAPI",
    "ProfileSnapshot",
    "ProgressionEngine",
    "Station",
    "UserProfileStore",
    "UserSession",
]
