"""Folding of listening events into per-user statistics"""
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from radio_progression.config import Settings, settings as default_settings
from radio_progression.errors import InvalidAction
from radio_progression.models.identity import UserSession
from radio_progression.models.profile import (
    NowPlaying, ProfileSnapshot, SongHistoryItem, SongVote, Station, StationPlayData, StationReview, VoteType
)
from radio_progression.scoring import PointsEngine, TickAward
from radio_progression.services.storage import SONG_VOTES_KEY, STATS_KEY, UserProfileStore

logger = logging.getLogger(__name__)

@dataclass
class VoteOutcome:
    changed: bool
    points_awarded: int = 0

class StatsAggregator:
    """
    Single writer for ListeningStats and the song vote aggregates.

    Every apply_* method mutates the profile snapshot it is given in place,
    so folds always see the latest state, and persists the touched records
    before returning. Anonymous users are a no-op.
    """

    def __init__(
        self,
        store: UserProfileStore,
        points: PointsEngine,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.points = points
        self.settings = settings or default_settings
        self.rng = rng or random.Random()

    def apply_station_change(self, user: UserSession, profile: ProfileSnapshot, station: Station, today: date) -> bool:
        """Update the daily streak, register the station and its primary genre"""
        if not user.authenticated:
            return False
        stats = profile.stats

        if station.stream_url not in stats.station_plays:
            stats.station_plays[station.stream_url] = StationPlayData(name=station.name, genre=station.genre)

        if stats.last_listen_date != today:
            if stats.last_listen_date == today - timedelta(days=1):
                stats.current_streak += 1
            else:
                stats.current_streak = 1
            logger.info(f"Listening streak for {user.username}: {stats.current_streak} day(s)")
        stats.max_streak = max(stats.max_streak, stats.current_streak)
        stats.last_listen_date = today

        genre = station.primary_genre
        if genre and genre not in stats.genres_played:
            stats.genres_played.append(genre)

        self.store.save(user, STATS_KEY, stats)
        return True

    def apply_tick(self, user: UserSession, profile: ProfileSnapshot, station: Station) -> Optional[TickAward]:
        """Account one second of listening on station"""
        if not user.authenticated:
            return None
        stats = profile.stats

        stats.total_time += 1
        play = stats.station_plays.get(station.stream_url)
        if play is None:
            play = StationPlayData(name=station.name, genre=station.genre)
            stats.station_plays[station.stream_url] = play
        play.time += 1

        award = self.points.apply_listening_tick(stats)
        self.store.save(user, STATS_KEY, stats)
        return award

    def apply_now_playing(
        self, user: UserSession, profile: ProfileSnapshot, now_playing: NowPlaying, station_name: str, now: datetime
    ) -> bool:
        """Seed a community vote entry for a new song and record it in the history"""
        if not user.authenticated or not now_playing.is_song:
            return False

        if now_playing.song_id not in profile.song_votes:
            profile.song_votes[now_playing.song_id] = self._seed_vote(now_playing)
            self.store.save(user, SONG_VOTES_KEY, profile.song_votes)

        history = profile.stats.song_history
        if history and history[0].song_id == now_playing.song_id:
            return False
        history.insert(0, SongHistoryItem(
            song_id=now_playing.song_id,
            title=now_playing.title,
            artist=now_playing.artist,
            album_art=now_playing.album_art,
            station_name=station_name,
            played_at=now,
        ))
        del history[self.settings.HISTORY_LIMIT:]
        self.store.save(user, STATS_KEY, profile.stats)
        return True

    def _seed_vote(self, now_playing: NowPlaying) -> SongVote:
        ceiling = self.settings.VOTE_SEED_MAX
        return SongVote(
            id=now_playing.song_id,
            artist=now_playing.artist,
            title=now_playing.title,
            album_art=now_playing.album_art or "",
            likes=self.rng.randint(0, ceiling) if ceiling > 0 else 0,
            dislikes=self.rng.randint(0, ceiling // 2) if ceiling > 1 else 0,
        )

    def apply_vote(self, user: UserSession, profile: ProfileSnapshot, song_id: str, vote: VoteType) -> VoteOutcome:
        """
        Record the user's like/dislike on a song.

        Repeating the current vote is a no-op. Switching moves one count from
        the old side to the new one. Only the first vote on a song earns points.
        """
        if not user.authenticated:
            return VoteOutcome(changed=False)
        if vote not in ('like', 'dislike'):
            raise InvalidAction(f"Unknown vote {vote!r}")

        stats = profile.stats
        previous = stats.song_user_votes.get(song_id)
        if previous == vote:
            return VoteOutcome(changed=False)

        aggregate = profile.song_votes.get(song_id)
        if aggregate is None:
            aggregate = SongVote(id=song_id)
            profile.song_votes[song_id] = aggregate
        if previous == 'like':
            aggregate.likes = max(0, aggregate.likes - 1)
        elif previous == 'dislike':
            aggregate.dislikes = max(0, aggregate.dislikes - 1)
        if vote == 'like':
            aggregate.likes += 1
        else:
            aggregate.dislikes += 1

        stats.song_user_votes[song_id] = vote
        awarded = self.points.award_vote(stats) if previous is None else 0

        self.store.save(user, SONG_VOTES_KEY, profile.song_votes)
        self.store.save(user, STATS_KEY, stats)
        return VoteOutcome(changed=True, points_awarded=awarded)

    def apply_rating(self, user: UserSession, profile: ProfileSnapshot, station: Station, rating: int) -> Station:
        """
        Store the user's 1..5 rating and return the station with its average updated.

        The user's earlier rating is replaced in the running total; the count
        only grows the first time this user rates the station.
        """
        if not user.authenticated:
            raise InvalidAction("Rating requires a logged in user")
        if not 1 <= rating <= 5:
            raise InvalidAction(f"Rating must be between 1 and 5, got {rating}")

        stats = profile.stats
        previous = stats.station_ratings.get(station.stream_url, 0)
        count = station.ratings_count
        total = station.rating * count
        if previous == 0:
            count += 1
        average = (total - previous + rating) / count if count else float(rating)

        stats.station_ratings[station.stream_url] = rating
        self.store.save(user, STATS_KEY, stats)
        return station.model_copy(update={'rating': average, 'ratings_count': count})

    def apply_review(
        self, user: UserSession, profile: ProfileSnapshot, station_url: str, rating: int, text: str, now: datetime
    ) -> StationReview:
        if not user.authenticated:
            raise InvalidAction("Reviews require a logged in user")
        if not text.strip():
            raise InvalidAction("Review text must not be empty")
        if not 1 <= rating <= 5:
            raise InvalidAction(f"Rating must be between 1 and 5, got {rating}")

        review = StationReview(rating=rating, text=text.strip(), created_at=now, author=user.username)
        profile.stats.station_reviews.setdefault(station_url, []).append(review)
        self.store.save(user, STATS_KEY, profile.stats)
        return review
