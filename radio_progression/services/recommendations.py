"""Best-effort wrapper around the AI recommendation and analysis collaborator"""
import json
import logging
from typing import Any, Dict, Optional, Protocol, Union

from radio_progression.errors import CollaboratorUnavailable
from radio_progression.models.profile import SongVote

logger = logging.getLogger(__name__)

class Recommender(Protocol):
    def ask(self, prompt: str) -> Union[str, Dict[str, Any]]: ...

class RecommendationService:
    """
    Turns an optional, possibly failing AI client into safe fallbacks.

    Nothing here may affect stats, points or achievements; every failure
    degrades to the fallback value and a warning in the log.
    """

    def __init__(self, client: Optional[Recommender] = None):
        self.client = client

    def _ask(self, prompt: str) -> Union[str, Dict[str, Any]]:
        if self.client is None:
            raise CollaboratorUnavailable("No recommendation client configured")
        try:
            return self.client.ask(prompt)
        except Exception as e:
            raise CollaboratorUnavailable(str(e)) from e

    def ask_text(self, prompt: str, fallback: str = "") -> str:
        try:
            answer = self._ask(prompt)
        except CollaboratorUnavailable as e:
            logger.warning(f"Recommendation unavailable: {e}")
            return fallback
        if isinstance(answer, str):
            return answer.strip() or fallback
        return fallback

    def ask_json(self, prompt: str, fallback: Any = None) -> Any:
        try:
            answer = self._ask(prompt)
        except CollaboratorUnavailable as e:
            logger.warning(f"Recommendation unavailable: {e}")
            return fallback
        if isinstance(answer, str):
            try:
                return json.loads(answer)
            except ValueError:
                logger.warning("Recommendation returned malformed JSON")
                return fallback
        return answer

    def genre_blurb(self, genre: str) -> str:
        return self.ask_text(
            f"Write a two sentence introduction to the {genre} genre for a radio listener."
        )

    def song_info(self, artist: str, title: str) -> str:
        return self.ask_text(
            f'Provide a short, interesting fact about the song "{title}" by "{artist}". '
            "Keep it concise and engaging for a radio listener."
        )

    def community_summary(self, song_votes: Dict[str, SongVote]) -> str:
        if not song_votes:
            return ""
        top = sorted(song_votes.values(), key=lambda v: v.likes - v.dislikes, reverse=True)[:5]
        listing = "; ".join(f"{v.artist} - {v.title} ({v.likes} likes, {v.dislikes} dislikes)" for v in top)
        return self.ask_text(f"Summarize the community mood from these song votes: {listing}")
