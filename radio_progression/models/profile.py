"""Domain models for stations, listening statistics and persisted profile state"""
import re
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Now playing titles meaning "no real song is known"
LIVE_STREAM_TITLE = "Live Stream"
UNAVAILABLE_TITLE = "Station Data Unavailable"
SENTINEL_TITLES = frozenset({LIVE_STREAM_TITLE, UNAVAILABLE_TITLE})

VoteType = Literal['like', 'dislike']

_ALARM_TIME = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_GENRE_SEPARATORS = re.compile(r"[/,]")

class CamelModel(BaseModel):
    """Base model persisted with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class Location(CamelModel):
    lat: float
    lng: float

class Station(CamelModel):
    """A playable stream, identified by its stream URL"""
    name: str
    genre: str = ""
    description: str = ""
    stream_url: str
    cover_art: str = ""
    tipping_url: Optional[str] = None
    rating: float = 0.0
    ratings_count: int = 0
    location: Optional[Location] = None
    is_favorite: bool = Field(False, exclude=True)

    @property
    def primary_genre(self) -> str:
        """First segment of the genre tag string, e.g. 'Eclectic Mix / World' -> 'Eclectic Mix'"""
        return _GENRE_SEPARATORS.split(self.genre, maxsplit=1)[0].strip()

class NowPlaying(CamelModel):
    """Song metadata reported by the player for the active station"""
    artist: str
    title: str
    album_art: Optional[str] = None
    song_id: str

    @property
    def is_song(self) -> bool:
        return bool(self.song_id) and self.title not in SENTINEL_TITLES

class StationPlayData(CamelModel):
    name: str
    genre: str
    time: int = 0

class SongHistoryItem(CamelModel):
    song_id: str
    title: str
    artist: str
    album_art: Optional[str] = None
    station_name: str
    played_at: datetime

class StationReview(CamelModel):
    rating: int = Field(ge=1, le=5)
    text: str
    created_at: datetime
    author: str

class ListeningStats(CamelModel):
    """Cumulative per-user listening statistics"""
    total_time: int = 0
    points: int = 0
    station_plays: Dict[str, StationPlayData] = Field(default_factory=dict)
    station_ratings: Dict[str, int] = Field(default_factory=dict)
    song_user_votes: Dict[str, VoteType] = Field(default_factory=dict)
    last_listen_date: Optional[date] = None
    current_streak: int = 0
    max_streak: int = 0
    genres_played: List[str] = Field(default_factory=list)
    song_history: List[SongHistoryItem] = Field(default_factory=list)
    station_reviews: Dict[str, List[StationReview]] = Field(default_factory=dict)

class SongVote(CamelModel):
    """Community like/dislike aggregate for one song"""
    id: str
    artist: str = ""
    title: str = ""
    album_art: str = ""
    likes: int = 0
    dislikes: int = 0

class Alarm(CamelModel):
    """Daily wake-up alarm that selects a station at HH:MM local time"""
    time: str
    station_url: str
    station_name: str
    is_active: bool = True

    @field_validator('time')
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not _ALARM_TIME.match(value):
            raise ValueError(f"Alarm time must be HH:MM, got {value!r}")
        return value

    @property
    def hour(self) -> int:
        return int(self.time[:2])

    @property
    def minute(self) -> int:
        return int(self.time[3:])

class UnlockedAchievement(CamelModel):
    id: str
    unlocked_at: datetime

class MusicSubmission(CamelModel):
    id: str
    title: str
    artist: str
    track_url: str
    station_url: str
    station_name: str
    submitted_by: str
    submitted_at: datetime
    status: Literal['pending', 'approved', 'rejected'] = 'pending'

class ProfileSnapshot(CamelModel):
    """Everything persisted under one user's namespace"""
    stats: ListeningStats = Field(default_factory=ListeningStats)
    alarm: Optional[Alarm] = None
    song_votes: Dict[str, SongVote] = Field(default_factory=dict)
    achievements: Dict[str, UnlockedAchievement] = Field(default_factory=dict)
    favorites: List[str] = Field(default_factory=list)
    theme: str = "dynamic"
    unlocked_themes: List[str] = Field(default_factory=list)
    user_stations: List[Station] = Field(default_factory=list)
