import random
from datetime import datetime

import pytest

from radio_progression.config import Settings
from radio_progression.db import Database
from radio_progression.engine import ProgressionEngine
from radio_progression.models.identity import UserSession
from radio_progression.models.profile import Station
from radio_progression.services.storage import UserProfileStore
from radio_progression.timers import ManualScheduler

NOON = datetime(2024, 5, 1, 12, 0, 0)

def make_stations():
    return [
        Station(name="CRW Radio", genre="World music",
                stream_url="https://music-station.live/listen/crw_radio/radio.mp3"),
        Station(name="High Grade Radio", genre="Premium Reggae & Dancehall",
                stream_url="https://music-station.live/listen/high_grade_radio/radio.mp3",
                rating=4.0, ratings_count=2),
        Station(name="Nam Radio", genre="Afropop",
                stream_url="https://music-station.live/listen/namradio/radio.mp3"),
        Station(name="Global Groove Radio", genre="Eclectic Mix / World Music",
                stream_url="https://s2.stationplaylist.com:7094/listen.aac"),
        Station(name="Power Ace Radio", genre="Indie & Afrobeat",
                stream_url="https://music-station.live/listen/poweraceradio/radio.mp3"),
    ]

@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", VOTE_SEED_MAX=0, _env_file=None)

@pytest.fixture
def database(settings):
    database = Database()
    database.init(settings.DATABASE_URL)
    yield database
    database.dispose()

@pytest.fixture
def store(database):
    return UserProfileStore(database)

@pytest.fixture
def scheduler():
    return ManualScheduler(start=NOON)

@pytest.fixture
def stations():
    return make_stations()

@pytest.fixture
def alice():
    return UserSession("alice")

@pytest.fixture
def engine(store, scheduler, stations, settings):
    return ProgressionEngine(store, scheduler, stations, settings=settings, rng=random.Random(7))
