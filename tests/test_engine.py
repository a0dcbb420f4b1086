import random
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from radio_progression.engine import ProgressionEngine
from radio_progression.models.db import ProfileEntry
from radio_progression.models.identity import ANONYMOUS
from radio_progression.models.profile import ListeningStats, NowPlaying, Station
from radio_progression.services.storage import STATS_KEY, USER_STATIONS_KEY, UserProfileStore

def _song(song_id="burna-boy-ye"):
    return NowPlaying(artist="Burna Boy", title="Ye", song_id=song_id)

def _seed_stats(store, user, **values):
    store.save(user, STATS_KEY, ListeningStats(**values))

def test_hour_boundary_unlocks_one_hour_with_single_milestone(engine, scheduler, stations, store, alice):
    _seed_stats(store, alice, total_time=3599, points=59)
    engine.login("alice")
    engine.select_station(stations[0])

    scheduler.advance(1)

    assert engine.profile.stats.total_time == 3600
    assert engine.profile.stats.points == 60
    assert 'one_hour' in engine.profile.achievements
    assert len(engine.notifications.of_type('milestone')) == 1
    assert engine.notifications.of_type('points') == []

def test_anonymous_listening_persists_nothing(engine, scheduler, stations, database):
    engine.select_station(stations[0])
    engine.on_now_playing_update(_song())
    scheduler.advance(10)

    assert engine.user == ANONYMOUS
    assert engine.profile.stats.total_time == 0
    assert engine.toggle_favorite(stations[0]) is None
    with database.session() as session:
        assert session.query(ProfileEntry).count() == 0

def test_points_and_time_never_decrease_while_listening(engine, scheduler, stations):
    engine.login("alice")
    engine.select_station(stations[0])

    samples = []
    for _ in range(130):
        scheduler.advance(1)
        samples.append((engine.profile.stats.total_time, engine.profile.stats.points))

    assert samples == sorted(samples)
    assert samples[-1] == (130, 2)

def test_switching_stations_splits_listening_time(engine, scheduler, stations):
    engine.login("alice")
    engine.select_station(stations[0])
    scheduler.advance(2)
    engine.select_station(stations[1])
    scheduler.advance(3)

    plays = engine.profile.stats.station_plays
    assert engine.profile.stats.total_time == 5
    assert plays[stations[0].stream_url].time == 2
    assert plays[stations[1].stream_url].time == 3

def test_rapid_switching_never_double_counts(engine, scheduler, stations):
    engine.login("alice")
    for station in stations + stations:
        engine.select_station(station)
        scheduler.advance(0.5)

    assert engine.profile.stats.total_time == 0

def test_reselecting_current_station_is_a_no_op(engine, stations):
    engine.login("alice")

    assert engine.select_station(stations[0]) is True
    assert engine.select_station(stations[0]) is False

def test_state_survives_a_restart(engine, scheduler, stations, store, settings):
    engine.login("alice")
    engine.select_station(stations[2])
    scheduler.advance(61)

    restarted = ProgressionEngine(store, scheduler, stations, settings=settings)
    assert restarted.restore() is True

    assert restarted.user.username == "alice"
    assert restarted.profile.stats.total_time == 61
    assert restarted.profile.stats.points == 1
    assert restarted.profile.stats.genres_played == ["Afropop"]

def test_logout_stops_ticking_and_relogin_resumes(engine, scheduler, stations, store):
    engine.login("alice")
    engine.select_station(stations[0])
    scheduler.advance(3)

    engine.logout()
    assert engine.notifications.toasts[-1].title == "Logged out"
    scheduler.advance(5)

    assert store.get_current_identity() is None
    assert engine.profile.stats.total_time == 0

    engine.login("alice")
    scheduler.advance(2)
    assert engine.profile.stats.total_time == 5

def test_users_do_not_share_progress(engine, scheduler, stations):
    engine.login("alice")
    engine.select_station(stations[0])
    scheduler.advance(4)

    engine.login("bob")
    scheduler.advance(1)

    assert engine.user.username == "bob"
    assert engine.profile.stats.total_time == 1

def test_now_playing_ignored_without_station(engine):
    engine.login("alice")

    engine.on_now_playing_update(_song())

    assert engine.now_playing is None
    assert engine.profile.stats.song_history == []

def test_now_playing_recorded_for_current_station(engine, stations):
    engine.login("alice")
    engine.select_station(stations[0])

    engine.on_now_playing_update(_song())

    assert engine.now_playing.title == "Ye"
    assert engine.profile.stats.song_history[0].station_name == "CRW Radio"

def test_vote_awards_point_once(engine, stations):
    engine.login("alice")
    engine.select_station(stations[0])
    engine.on_now_playing_update(_song())

    assert engine.vote("burna-boy-ye", 'like').points_awarded == 1
    assert engine.vote("burna-boy-ye", 'like').changed is False
    assert engine.vote("burna-boy-ye", 'dislike').points_awarded == 0
    assert engine.profile.stats.points == 1
    assert [t.title for t in engine.notifications.toasts if t.title in ("Liked!", "Disliked")] == ["Liked!", "Disliked"]

def test_rating_updates_catalog(engine, stations):
    engine.login("alice")

    updated = engine.rate_station(stations[1].stream_url, 5)

    assert updated.ratings_count == 3
    assert engine.find_station(stations[1].stream_url).rating == pytest.approx(13 / 3)
    assert engine.rate_station("https://unknown.example/stream", 5) is None

def test_review_posted(engine, stations):
    engine.login("alice")

    review = engine.add_review(stations[0].stream_url, 5, "Lovely")

    assert review.author == "alice"
    assert engine.add_review(stations[0].stream_url, 5, "   ") is None

def test_favorites_overlay_and_curator(engine, stations, store, alice):
    engine.login("alice")

    assert engine.toggle_favorite(stations[3]) is True
    assert 'curator' in engine.profile.achievements
    assert [s.name for s in engine.stations() if s.is_favorite] == ["Global Groove Radio"]
    assert store.load(alice).favorites == [stations[3].stream_url]

    assert engine.toggle_favorite(stations[3]) is False
    assert not any(s.is_favorite for s in engine.stations())

def test_party_mode_unlocks_party_starter(engine):
    engine.login("alice")

    engine.set_party_mode(True)

    assert 'party_starter' in engine.profile.achievements

def test_theme_unlock_requires_points(engine, store, alice):
    _seed_stats(store, alice, points=99)
    engine.login("alice")

    assert engine.unlock_theme('kente') is False
    assert engine.profile.stats.points == 99
    assert engine.notifications.of_type('error')[0].title == "Not enough points"
    assert engine.set_theme('kente') is False

def test_theme_unlock_debits_balance(engine, store, alice):
    _seed_stats(store, alice, points=150)
    engine.login("alice")

    assert engine.unlock_theme('kente') is True
    assert engine.unlock_theme('kente') is False
    assert engine.set_theme('kente') is True

    reloaded = store.load(alice)
    assert reloaded.stats.points == 50
    assert reloaded.unlocked_themes == ['kente']
    assert reloaded.theme == 'kente'
    assert engine.active_theme == 'kente'
    assert len(engine.notifications.of_type('theme_unlocked')) == 1

def test_music_submission_is_gated(engine, stations, store, alice):
    _seed_stats(store, alice, points=49)
    engine.login("alice")

    assert engine.submit_music(stations[0].stream_url, "Song", "Me", "https://example.com/t") is None
    assert engine.profile.stats.points == 49

    engine.profile.stats.points = 50
    submission = engine.submit_music(stations[0].stream_url, "Song", "Me", "https://example.com/t")

    assert submission.station_name == "CRW Radio"
    assert submission.status == 'pending'
    assert store.load(alice).stats.points == 0

def test_station_submission_joins_catalog(engine, store, alice):
    engine.login("alice")
    station = Station(name="New Wave", genre="Highlife", stream_url="https://example.com/newwave", rating=5.0)

    assert engine.submit_station(station) is True
    assert engine.submit_station(station) is False
    assert engine.find_station(station.stream_url).rating == 0.0
    assert 'station_submit' in engine.profile.achievements
    assert store.get(alice, USER_STATIONS_KEY)[0]["streamUrl"] == station.stream_url

    engine.logout()
    assert engine.find_station(station.stream_url) is None
    engine.login("alice")
    assert engine.find_station(station.stream_url) is not None

def test_raid_moves_to_target_after_delay(engine, scheduler, stations):
    engine.login("alice")
    engine.select_station(stations[0])

    engine.start_raid(stations[4])
    assert engine.notifications.of_type('raid')[0].title == "Raid Started!"
    assert 'raid_leader' in engine.profile.achievements
    scheduler.advance(4)
    assert engine.current_station == stations[0]
    scheduler.advance(1)

    assert engine.current_station == stations[4]

def test_player_failure_does_not_block_selection(store, scheduler, stations, settings):
    player = MagicMock()
    player.select_station.side_effect = RuntimeError("no audio device")
    engine = ProgressionEngine(store, scheduler, stations, settings=settings, player=player)
    engine.login("alice")

    assert engine.select_station(stations[0]) is True
    player.select_station.assert_called_once_with(stations[0])
    scheduler.advance(1)
    assert engine.profile.stats.total_time == 1

def test_song_info_needs_a_real_song(store, scheduler, stations, settings):
    recommendations = MagicMock()
    recommendations.song_info.return_value = "A fact."
    engine = ProgressionEngine(store, scheduler, stations, settings=settings, recommendations=recommendations)
    engine.select_station(stations[0])

    assert engine.song_info() == ""
    engine.on_now_playing_update(_song())
    assert engine.song_info() == "A fact."
    recommendations.song_info.assert_called_once_with("Burna Boy", "Ye")

def test_unavailable_store_does_not_interrupt_listening(engine, scheduler, stations, database, caplog):
    engine.login("alice")
    database.dispose()

    assert engine.select_station(stations[0]) is True
    scheduler.advance(3)

    assert engine.profile.stats.total_time == 3
    assert stations[0].stream_url in engine.profile.stats.station_plays
    assert "Failed to save listeningStats for alice" in caplog.text

def test_ticks_continue_after_failed_writes(engine, scheduler, stations, database, store, alice):
    engine.login("alice")
    engine.select_station(stations[0])
    scheduler.advance(2)

    with patch.object(database, "session", side_effect=SQLAlchemyError("disk full")):
        scheduler.advance(3)
        assert engine.profile.stats.total_time == 5

    scheduler.advance(1)
    assert engine.profile.stats.total_time == 6
    assert store.load(alice).stats.total_time == 6

def test_refresh_now_playing_feeds_current_station(store, scheduler, stations, settings):
    api = MagicMock()
    api.fetch.return_value = _song()
    engine = ProgressionEngine(store, scheduler, stations, settings=settings, now_playing_api=api)
    engine.login("alice")

    assert engine.refresh_now_playing() is None
    api.fetch.assert_not_called()

    engine.select_station(stations[0])
    assert engine.refresh_now_playing().song_id == "burna-boy-ye"

    api.fetch.assert_called_once_with(stations[0])
    assert engine.now_playing.title == "Ye"
    assert engine.profile.stats.song_history[0].song_id == "burna-boy-ye"

def test_restore_ends_previous_user_session(engine, store):
    engine.login("alice")
    station = Station(name="New Wave", genre="Highlife", stream_url="https://example.com/newwave")
    engine.submit_station(station)
    engine.set_party_mode(True)

    store.set_current_identity("bob")
    assert engine.restore() is True

    assert engine.user.username == "bob"
    assert engine.find_station(station.stream_url) is None
    assert engine.party_mode is False
