"""Progression engine: the facade a UI layer drives"""
import logging
import random
from typing import Dict, Iterable, List, Optional, Protocol

from radio_progression.achievements import AchievementContext, AchievementEvaluator
from radio_progression.alarm import AlarmScheduler
from radio_progression.config import Settings, settings as default_settings
from radio_progression.errors import InsufficientPoints, InvalidAction
from radio_progression.models.identity import ANONYMOUS, UserSession
from radio_progression.models.profile import (
    Alarm, MusicSubmission, NowPlaying, ProfileSnapshot, Station, StationReview, VoteType
)
from radio_progression.notifications import NotificationQueue
from radio_progression.scoring import PointsEngine, TickAward
from radio_progression.services.nowplaying import NowPlayingAPI
from radio_progression.services.recommendations import RecommendationService
from radio_progression.services.storage import (
    ALARM_KEY, FAVORITES_KEY, STATS_KEY, THEME_KEY, UNLOCKED_THEMES_KEY, USER_STATIONS_KEY, UserProfileStore
)
from radio_progression.session import ListeningSession
from radio_progression.stats import StatsAggregator, VoteOutcome
from radio_progression.themes import DEFAULT_THEME, get_theme
from radio_progression.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

PERIODIC_MESSAGES = (
    "Keep the vibes going!",
    "Your ears are earning.",
    "Stay tuned for more rewards.",
    "Thanks for listening!",
)

class Player(Protocol):
    """Audio transport collaborator"""
    def select_station(self, station: Station) -> None: ...

    def next(self) -> None: ...

    def previous(self) -> None: ...

class ProgressionEngine:
    """
    Observes what is playing and derives stats, points, streaks, alarms and
    achievements for the logged in user, persisting after every mutation.

    Public operations never raise into the caller for rejected actions;
    they return a falsy result and, where the user should know, push an
    error toast.
    """

    def __init__(
        self,
        store: UserProfileStore,
        scheduler: Scheduler,
        stations: Iterable[Station] = (),
        settings: Optional[Settings] = None,
        player: Optional[Player] = None,
        recommendations: Optional[RecommendationService] = None,
        now_playing_api: Optional[NowPlayingAPI] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or default_settings
        self.store = store
        self.scheduler = scheduler
        self.player = player
        self.recommendations = recommendations or RecommendationService()
        self.now_playing_api = now_playing_api
        self.rng = rng or random.Random()

        self.notifications = NotificationQueue(scheduler, self.settings)
        self.points = PointsEngine(self.settings)
        self.aggregator = StatsAggregator(store, self.points, self.settings, self.rng)
        self.achievements = AchievementEvaluator(store, self.notifications)
        self.listening = ListeningSession(scheduler, self._on_tick, self.settings)
        self.alarm_scheduler = AlarmScheduler(scheduler, self._on_alarm)

        self.user: UserSession = ANONYMOUS
        self.profile = ProfileSnapshot()
        self.current_station: Optional[Station] = None
        self.now_playing: Optional[NowPlaying] = None
        self.party_mode = False
        self.submissions: List[MusicSubmission] = []
        self._catalog: Dict[str, Station] = {s.stream_url: s for s in stations}
        self._raid: Optional[TimerHandle] = None

    # --- Identity ---

    def login(self, username: str) -> bool:
        username = (username or "").strip()
        if not username:
            return False
        if self.user.authenticated:
            self._end_user_session()

        self.user = UserSession(username)
        self.store.set_current_identity(username)
        self._enter_profile()
        self.notifications.push(f"Welcome, {username}!", type='login')
        logger.info(f"User {username} logged in")
        return True

    def restore(self) -> bool:
        """Resume the user recorded as current identity, e.g. after a restart"""
        username = self.store.get_current_identity()
        if not username:
            return False
        if self.user.authenticated:
            self._end_user_session()
        self.user = UserSession(username)
        self._enter_profile()
        logger.info(f"Restored session for {username}")
        return True

    def logout(self) -> None:
        if not self.user.authenticated:
            return
        username = self.user.username
        self._end_user_session()
        self.store.clear()
        self.notifications.push("Logged out", "See you next time!", type='login')
        logger.info(f"User {username} logged out")

    def _enter_profile(self) -> None:
        self.profile = self.store.load(self.user)
        for station in self.profile.user_stations:
            self._catalog.setdefault(station.stream_url, station)
        self.alarm_scheduler.arm(self.profile.alarm)
        if self.current_station is not None:
            self.listening.start(self.user, self.current_station)

    def _end_user_session(self) -> None:
        self.listening.stop()
        self.alarm_scheduler.disarm()
        self._cancel_raid()
        for station in self.profile.user_stations:
            if self._catalog.get(station.stream_url) is station:
                del self._catalog[station.stream_url]
        self.user = ANONYMOUS
        self.profile = ProfileSnapshot()
        self.party_mode = False

    # --- Stations ---

    def stations(self) -> List[Station]:
        """Known stations with the favorites overlay of the current user"""
        favorites = set(self.profile.favorites)
        return [s.model_copy(update={'is_favorite': s.stream_url in favorites}) for s in self._catalog.values()]

    def find_station(self, stream_url: str) -> Optional[Station]:
        return self._catalog.get(stream_url)

    def select_station(self, station: Station) -> bool:
        """Make station current; re-selecting the current station is a no-op"""
        if self.current_station is not None and self.current_station.stream_url == station.stream_url:
            return False

        self.current_station = station
        self.now_playing = None
        self._notify_player(station)

        if self.user.authenticated:
            self.aggregator.apply_station_change(self.user, self.profile, station, self.scheduler.now().date())
            self.listening.start(self.user, station)
            self._check_achievements()
        return True

    def select_station_by_name(self, name: str) -> bool:
        station = next((s for s in self._catalog.values() if s.name == name), None)
        return self.select_station(station) if station else False

    def clear_station(self) -> None:
        self.current_station = None
        self.now_playing = None
        self.listening.stop()

    def _notify_player(self, station: Station) -> None:
        if self.player is None:
            return
        try:
            self.player.select_station(station)
        except Exception as e:
            logger.warning(f"Player could not select {station.name}: {e}")

    def on_now_playing_update(self, now_playing: Optional[NowPlaying]) -> None:
        """Player callback for song metadata of the current station"""
        if self.current_station is None:
            return
        self.now_playing = now_playing
        if now_playing is None or not self.user.authenticated:
            return
        self.aggregator.apply_now_playing(
            self.user, self.profile, now_playing, self.current_station.name, self.scheduler.now()
        )

    def refresh_now_playing(self) -> Optional[NowPlaying]:
        """Look up the current song of the current station and fold it in"""
        if self.current_station is None or self.now_playing_api is None:
            return None
        now_playing = self.now_playing_api.fetch(self.current_station)
        self.on_now_playing_update(now_playing)
        return now_playing

    # --- Listening ticks ---

    def _on_tick(self, user: UserSession, station: Station) -> None:
        if user != self.user:
            return
        award = self.aggregator.apply_tick(user, self.profile, station)
        if award is None:
            return
        self._notify_award(award)
        self._check_achievements(local_hour=self.scheduler.now().hour)

    def _notify_award(self, award: TickAward) -> None:
        if award.notify == 'milestone':
            self.notifications.push(
                "Milestone Reached!", f"You have {self.profile.stats.points} points!", type='milestone'
            )
        elif award.notify == 'points':
            self.notifications.push(
                f"+{self.points.periodic_points()} points", self.rng.choice(PERIODIC_MESSAGES), type='points'
            )

    def _check_achievements(self, local_hour: Optional[int] = None) -> List[str]:
        ctx = AchievementContext(profile=self.profile, party_mode=self.party_mode, local_hour=local_hour)
        return self.achievements.evaluate(self.user, ctx, self.scheduler.now())

    # --- Votes, ratings, reviews ---

    def vote(self, song_id: str, vote: VoteType) -> VoteOutcome:
        try:
            outcome = self.aggregator.apply_vote(self.user, self.profile, song_id, vote)
        except InvalidAction as e:
            logger.warning(f"Vote rejected: {e}")
            return VoteOutcome(changed=False)
        if outcome.changed:
            self.notifications.push("Liked!" if vote == 'like' else "Disliked")
        return outcome

    def rate_station(self, stream_url: str, rating: int) -> Optional[Station]:
        station = self._catalog.get(stream_url)
        if station is None:
            logger.warning(f"Cannot rate unknown station {stream_url}")
            return None
        try:
            updated = self.aggregator.apply_rating(self.user, self.profile, station, rating)
        except InvalidAction as e:
            logger.warning(f"Rating rejected: {e}")
            return None
        self._replace_station(updated)
        return updated

    def add_review(self, stream_url: str, rating: int, text: str) -> Optional[StationReview]:
        if stream_url not in self._catalog:
            return None
        try:
            review = self.aggregator.apply_review(
                self.user, self.profile, stream_url, rating, text, self.scheduler.now()
            )
        except InvalidAction as e:
            logger.warning(f"Review rejected: {e}")
            return None
        self.notifications.push("Review Posted")
        return review

    def _replace_station(self, station: Station) -> None:
        self._catalog[station.stream_url] = station
        if self.current_station is not None and self.current_station.stream_url == station.stream_url:
            self.current_station = station
        for index, own in enumerate(self.profile.user_stations):
            if own.stream_url == station.stream_url:
                self.profile.user_stations[index] = station
                self.store.save(self.user, USER_STATIONS_KEY, self.profile.user_stations)

    # --- Favorites, party mode ---

    def toggle_favorite(self, station: Station) -> Optional[bool]:
        """Returns the new favorite state, None when nobody is logged in"""
        if not self.user.authenticated:
            return None
        favorites = self.profile.favorites
        if station.stream_url in favorites:
            favorites.remove(station.stream_url)
            is_favorite = False
        else:
            favorites.append(station.stream_url)
            is_favorite = True
        self.store.save(self.user, FAVORITES_KEY, favorites)
        if is_favorite:
            self.notifications.push("Added to Favorites")
        self._check_achievements()
        return is_favorite

    def set_party_mode(self, enabled: bool) -> None:
        self.party_mode = enabled
        self._check_achievements()

    # --- Spending ---

    def unlock_theme(self, name: str) -> bool:
        if not self.user.authenticated:
            return False
        theme = get_theme(name)
        if theme is None:
            logger.warning(f"Unknown theme {name!r}")
            return False
        if theme.cost == 0 or name in self.profile.unlocked_themes:
            return False

        try:
            self.points.spend(self.profile.stats, theme.cost)
        except InsufficientPoints:
            self.notifications.push("Not enough points", type='error')
            return False

        self.profile.unlocked_themes.append(name)
        self.store.save(self.user, STATS_KEY, self.profile.stats)
        self.store.save(self.user, UNLOCKED_THEMES_KEY, self.profile.unlocked_themes)
        self.notifications.push("Theme Unlocked!", f"You can now use {theme.display_name}", type='theme_unlocked')
        return True

    def set_theme(self, name: str) -> bool:
        theme = get_theme(name)
        if theme is None:
            return False
        if theme.cost and name not in self.profile.unlocked_themes:
            return False
        self.profile.theme = name
        self.store.save(self.user, THEME_KEY, name)
        return True

    @property
    def active_theme(self) -> str:
        return self.profile.theme or DEFAULT_THEME

    def submit_music(self, stream_url: str, title: str, artist: str, track_url: str) -> Optional[MusicSubmission]:
        if not self.user.authenticated:
            return None
        station = self._catalog.get(stream_url)
        if station is None:
            return None

        try:
            self.points.spend(self.profile.stats, self.settings.MUSIC_SUBMISSION_COST)
        except InsufficientPoints:
            self.notifications.push("Not enough points", type='error')
            return None
        self.store.save(self.user, STATS_KEY, self.profile.stats)

        now = self.scheduler.now()
        submission = MusicSubmission(
            id=str(int(now.timestamp() * 1000)),
            title=title,
            artist=artist,
            track_url=track_url,
            station_url=stream_url,
            station_name=station.name,
            submitted_by=self.user.username,
            submitted_at=now,
        )
        self.submissions.append(submission)
        self.notifications.push("Music Submitted!")
        return submission

    # --- Contributions ---

    def submit_station(self, station: Station) -> bool:
        if not self.user.authenticated:
            return False
        if station.stream_url in self._catalog:
            logger.warning(f"Station {station.stream_url} already exists")
            return False

        submitted = station.model_copy(update={'rating': 0.0, 'ratings_count': 0})
        self.profile.user_stations.append(submitted)
        self._catalog[submitted.stream_url] = submitted
        self.store.save(self.user, USER_STATIONS_KEY, self.profile.user_stations)
        self.notifications.push("Station Submitted", "Thanks for the suggestion!")
        self.achievements.unlock(self.user, self.profile, 'station_submit', self.scheduler.now())
        return True

    def start_raid(self, target: Station) -> bool:
        """Announce a raid and move everyone to target after RAID_DELAY_SECONDS"""
        self._cancel_raid()
        self.notifications.push("Raid Started!", f"Raid on {target.name} initiating...", type='raid')
        self.achievements.unlock(self.user, self.profile, 'raid_leader', self.scheduler.now())

        def finish() -> None:
            self._raid = None
            self.select_station(target)

        self._raid = self.scheduler.call_later(self.settings.RAID_DELAY_SECONDS, finish)
        return True

    def _cancel_raid(self) -> None:
        if self._raid is not None:
            self._raid.cancel()
            self._raid = None

    # --- Alarm ---

    def set_alarm(self, time: str, stream_url: str) -> Optional[Alarm]:
        if not self.user.authenticated:
            return None
        station = self._catalog.get(stream_url)
        if station is None:
            logger.warning(f"Cannot set alarm for unknown station {stream_url}")
            return None
        try:
            alarm = Alarm(time=time, station_url=stream_url, station_name=station.name, is_active=True)
        except ValueError as e:
            logger.warning(f"Alarm rejected: {e}")
            return None

        self.profile.alarm = alarm
        self.store.save(self.user, ALARM_KEY, alarm)
        self.alarm_scheduler.arm(alarm)
        return alarm

    def cancel_alarm(self) -> Optional[Alarm]:
        """Deactivate the alarm but keep its time and station for quick re-enabling"""
        alarm = self.profile.alarm
        if not self.user.authenticated or alarm is None:
            return None
        alarm.is_active = False
        self.alarm_scheduler.disarm()
        self.store.save(self.user, ALARM_KEY, alarm)
        return alarm

    def _on_alarm(self, alarm: Alarm) -> None:
        station = self._catalog.get(alarm.station_url)
        if station is not None:
            self.select_station(station)
            self.notifications.push("Good morning!", f"Waking up to {station.name}")
        else:
            logger.warning(f"Alarm station {alarm.station_url} is no longer available")

        if self.profile.alarm is not None:
            self.profile.alarm.is_active = False
            self.store.save(self.user, ALARM_KEY, self.profile.alarm)

    # --- Optional enrichment ---

    def genre_spotlight(self, genre: str) -> str:
        return self.recommendations.genre_blurb(genre)

    def song_info(self) -> str:
        if self.now_playing is None or not self.now_playing.is_song:
            return ""
        return self.recommendations.song_info(self.now_playing.artist, self.now_playing.title)
