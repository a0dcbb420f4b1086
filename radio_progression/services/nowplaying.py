"""Now playing lookups for music-station.live streams"""
import logging
import re
from typing import Any, Dict, Optional

import requests

from radio_progression.config import settings
from radio_progression.models.profile import LIVE_STREAM_TITLE, UNAVAILABLE_TITLE, NowPlaying, Station
from radio_progression.utils.slug import slugify

logger = logging.getLogger(__name__)

# Stream URLs of the form https://music-station.live/listen/<station_id>/radio.mp3
STATION_ID_PATTERN = re.compile(r"music-station\.live/listen/([^/]+)")

def live_stream(station: Station) -> NowPlaying:
    """Sentinel for a station whose current song is unknown"""
    return NowPlaying(artist=station.name, title=LIVE_STREAM_TITLE, song_id=slugify(f"{station.name} Live Stream"))

def unavailable(station: Station) -> NowPlaying:
    """Sentinel for a station whose metadata endpoint answered with an error"""
    return NowPlaying(artist=station.name, title=UNAVAILABLE_TITLE, song_id=slugify(f"{station.name} unavailable"))

class NowPlayingAPI:
    """Fetches the current song of a station; always returns a NowPlaying, never raises"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.NOW_PLAYING_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.NOW_PLAYING_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    @staticmethod
    def station_id(station: Station) -> Optional[str]:
        match = STATION_ID_PATTERN.search(station.stream_url)
        return match.group(1) if match else None

    def fetch(self, station: Station) -> NowPlaying:
        station_id = self.station_id(station)
        if not station_id:
            return live_stream(station)

        url = f"{self.base_url}/{station_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Error fetching now playing data for {station_id}: {e}")
            return live_stream(station)

        if not response.ok:
            logger.error(f"API error for now playing data for {station_id}: {response.status_code}")
            return unavailable(station)

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Invalid now playing payload for {station_id}: {e}")
            return live_stream(station)
        return self._parse(station, payload)

    def _parse(self, station: Station, payload: Any) -> NowPlaying:
        song: Dict[str, Any] = {}
        if isinstance(payload, dict):
            now_playing = payload.get('now_playing')
            if isinstance(now_playing, dict) and isinstance(now_playing.get('song'), dict):
                song = now_playing['song']

        artist, title = song.get('artist'), song.get('title')
        if not artist or not title:
            return live_stream(station)
        return NowPlaying(
            artist=artist,
            title=title,
            album_art=song.get('art') or None,
            song_id=slugify(f"{artist} {title}"),
        )
