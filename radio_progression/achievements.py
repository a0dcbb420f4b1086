"""Achievement catalog and one-time unlock evaluation"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from radio_progression.models.identity import UserSession
from radio_progression.models.profile import ProfileSnapshot, UnlockedAchievement
from radio_progression.notifications import NotificationQueue
from radio_progression.services.storage import ACHIEVEMENTS_KEY, UserProfileStore

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str

ACHIEVEMENTS: Dict[str, Achievement] = {a.id: a for a in (
    Achievement('first_listen', "Welcome to the Club", "Tune in for the first time."),
    Achievement('one_hour', "Hour of Power", "Listen for a total of 1 hour."),
    Achievement('ten_hours', "Dedicated Listener", "Listen for a total of 10 hours."),
    Achievement('curator', "Curator", "Favorite your first station."),
    Achievement('explorer_3', "Genre Explorer", "Listen to 3 different genres."),
    Achievement('explorer_5', "Genre Master", "Listen to 5 different genres."),
    Achievement('streak_3', "Vibe Streak", "Listen for 3 consecutive days."),
    Achievement('streak_7', "Week-Long Vibe", "Listen for 7 consecutive days."),
    Achievement('station_submit', "Contributor", "Suggest a new station."),
    Achievement('night_owl', "Night Owl", "Listen between midnight and 4 AM."),
    Achievement('early_bird', "Early Bird", "Listen between 5 AM and 8 AM."),
    Achievement('party_starter', "Party Starter", "Engage with the Listening Party."),
    Achievement('raid_leader', "Raid Leader", "Initiate your first station raid."),
)}

@dataclass
class AchievementContext:
    """Inputs of the predicate table; local_hour is only set when evaluating a listening tick"""
    profile: ProfileSnapshot
    party_mode: bool = False
    local_hour: Optional[int] = None

def _in_hours(start: int, end: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.local_hour is not None and start <= ctx.local_hour < end

# station_submit and raid_leader are unlocked explicitly by their actions
PREDICATES: Dict[str, Callable[[AchievementContext], bool]] = {
    'first_listen': lambda ctx: ctx.profile.stats.total_time > 1,
    'one_hour': lambda ctx: ctx.profile.stats.total_time >= 3600,
    'ten_hours': lambda ctx: ctx.profile.stats.total_time >= 36000,
    'explorer_3': lambda ctx: len(ctx.profile.stats.genres_played) >= 3,
    'explorer_5': lambda ctx: len(ctx.profile.stats.genres_played) >= 5,
    'streak_3': lambda ctx: ctx.profile.stats.current_streak >= 3,
    'streak_7': lambda ctx: ctx.profile.stats.current_streak >= 7,
    'curator': lambda ctx: len(ctx.profile.favorites) > 0,
    'party_starter': lambda ctx: ctx.party_mode,
    'night_owl': _in_hours(0, 4),
    'early_bird': _in_hours(5, 8),
}

class AchievementEvaluator:
    """
    Checks the predicate table and unlocks achievements at most once each.

    Cheap enough to run on every tick: already unlocked ids are skipped
    before their predicate is evaluated.
    """

    def __init__(self, store: UserProfileStore, notifications: NotificationQueue):
        self.store = store
        self.notifications = notifications

    def evaluate(self, user: UserSession, ctx: AchievementContext, now: datetime) -> List[str]:
        """Unlock every achievement whose predicate now holds; returns the newly unlocked ids"""
        if not user.authenticated:
            return []
        unlocked = ctx.profile.achievements
        newly = [
            achievement_id for achievement_id, predicate in PREDICATES.items()
            if achievement_id not in unlocked and predicate(ctx)
        ]
        for achievement_id in newly:
            self.unlock(user, ctx.profile, achievement_id, now)
        return newly

    def unlock(self, user: UserSession, profile: ProfileSnapshot, achievement_id: str, now: datetime) -> bool:
        """Record an unlock and toast it; repeated unlocks are ignored"""
        if not user.authenticated or achievement_id in profile.achievements:
            return False
        achievement = ACHIEVEMENTS.get(achievement_id)
        if achievement is None:
            logger.warning(f"Ignoring unknown achievement id {achievement_id!r}")
            return False

        profile.achievements[achievement_id] = UnlockedAchievement(id=achievement_id, unlocked_at=now)
        self.store.save(user, ACHIEVEMENTS_KEY, profile.achievements)
        self.notifications.push(achievement.name, achievement.description, type='achievement')
        logger.info(f"Achievement {achievement_id} unlocked for {user.username}")
        return True
