"""Per-user profile storage on top of the database"""
import logging
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError

from radio_progression.db import Database
from radio_progression.errors import PersistenceFailure
from radio_progression.models.db import CurrentIdentity, ProfileEntry
from radio_progression.models.identity import UserSession
from radio_progression.models.profile import (
    Alarm, ListeningStats, ProfileSnapshot, SongVote, Station, UnlockedAchievement
)

logger = logging.getLogger(__name__)

# Persisted record keys, one row per key and user
STATS_KEY = 'listeningStats'
ALARM_KEY = 'alarm'
SONG_VOTES_KEY = 'songVotes'
ACHIEVEMENTS_KEY = 'unlockedAchievements'
FAVORITES_KEY = 'favoriteStations'
THEME_KEY = 'activeTheme'
UNLOCKED_THEMES_KEY = 'unlockedThemes'
USER_STATIONS_KEY = 'userStations'

# Snapshot field, parser and label for each persisted key
_SNAPSHOT_FIELDS = {
    STATS_KEY: ('stats', TypeAdapter(ListeningStats), "listening stats"),
    ALARM_KEY: ('alarm', TypeAdapter(Optional[Alarm]), "alarm"),
    SONG_VOTES_KEY: ('song_votes', TypeAdapter(Dict[str, SongVote]), "song votes"),
    ACHIEVEMENTS_KEY: ('achievements', TypeAdapter(Dict[str, UnlockedAchievement]), "achievements"),
    FAVORITES_KEY: ('favorites', TypeAdapter(list[str]), "favorites"),
    THEME_KEY: ('theme', TypeAdapter(str), "theme"),
    UNLOCKED_THEMES_KEY: ('unlocked_themes', TypeAdapter(list[str]), "unlocked themes"),
    USER_STATIONS_KEY: ('user_stations', TypeAdapter(list[Station]), "user stations"),
}

_IDENTITY_ROW_ID = 1

class UserProfileStore:
    """
    Key-value store namespaced per username.

    Every read for an anonymous user returns defaults and every write is a
    no-op, so one user's data never leaks into a shared namespace.
    """

    def __init__(self, database: Database):
        self.db = database

    def load(self, user: UserSession) -> ProfileSnapshot:
        """Load all records of a user, substituting defaults for anything missing or invalid"""
        snapshot = ProfileSnapshot()
        if not user.authenticated:
            return snapshot

        try:
            with self.db.session() as session:
                rows = session.query(ProfileEntry).filter_by(username=user.username).all()
                stored = {row.key: row.value for row in rows}
        except SQLAlchemyError as e:
            logger.error(f"Failed to load profile for {user.username}: {e}")
            return snapshot

        for key, (field_name, adapter, label) in _SNAPSHOT_FIELDS.items():
            if stored.get(key) is None:
                continue
            try:
                setattr(snapshot, field_name, adapter.validate_python(stored[key]))
            except ValidationError as e:
                logger.error(f"Failed to load {label} for {user.username}: {e}")
        return snapshot

    def get(self, user: UserSession, key: str) -> Any:
        """Raw persisted JSON value of one record, None when absent"""
        if not user.authenticated:
            return None
        try:
            with self.db.session() as session:
                entry = session.query(ProfileEntry).filter_by(username=user.username, key=key).first()
                return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {key} for {user.username}: {e}")
            return None

    def save(self, user: UserSession, key: str, value: Any) -> bool:
        """
        Persist one logical record immediately.

        Returns:
            bool: True when written; False for anonymous users or on failure.
            Failures are logged and never retried.
        """
        if not user.authenticated:
            return False
        try:
            self._write(user.username, key, value)
            return True
        except PersistenceFailure as e:
            logger.error(f"Failed to save {key} for {user.username}: {e}")
            return False

    def _write(self, username: str, key: str, value: Any) -> None:
        try:
            value = to_jsonable_python(value, by_alias=True)
            with self.db.session() as session:
                entry = session.query(ProfileEntry).filter_by(username=username, key=key).first()
                if entry:
                    entry.value = value
                else:
                    session.add(ProfileEntry(username=username, key=key, value=value))
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise PersistenceFailure(str(e)) from e

    def set_current_identity(self, username: Optional[str]) -> bool:
        """Point the non-namespaced identity record at a username, or at nobody"""
        try:
            with self.db.session() as session:
                identity = session.get(CurrentIdentity, _IDENTITY_ROW_ID)
                if identity:
                    identity.username = username
                else:
                    session.add(CurrentIdentity(id=_IDENTITY_ROW_ID, username=username))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Failed to save current identity: {e}")
            return False

    def get_current_identity(self) -> Optional[str]:
        try:
            with self.db.session() as session:
                identity = session.get(CurrentIdentity, _IDENTITY_ROW_ID)
                return identity.username if identity else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read current identity: {e}")
            return None

    def clear(self) -> None:
        """Forget the active identity on logout; persisted namespaces are kept"""
        self.set_current_identity(None)
