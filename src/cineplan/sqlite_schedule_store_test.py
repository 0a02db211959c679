from datetime import date

import pytest

from cineplan.core.feasibility import analyze_combination
from cineplan.core.models import Movie, SessionPick, Showtime
from cineplan.sqlite_schedule_store import SqliteScheduleStore


def _itinerary():
    picks = [
        SessionPick(Movie("m1", "Movie1", 120), Showtime("s1", "18:00")),
        SessionPick(Movie("m2", "Movie2", 100), Showtime("s2", "20:15")),
    ]
    return analyze_combination(picks)


class TestSqliteScheduleStore:
    @pytest.fixture
    def store(self, tmp_path):
        return SqliteScheduleStore(str(tmp_path / "nested" / "schedules.sqlite"))

    def test_save_and_list(self, store):
        itinerary = _itinerary()
        schedule_id = store.save_schedule(
            itinerary, user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17), name="Friday"
        )

        df = store.get_user_schedules("u1")
        assert len(df) == 1
        row = df.iloc[0]
        assert row["id"] == schedule_id
        assert row["itinerary_id"] == itinerary.id
        assert row["name"] == "Friday"
        assert row["play_date"] == "2026-10-17"
        assert row["start_time"] == "18:00"
        assert row["total_duration"] == 235
        assert bool(row["feasible"]) is True

    def test_items_in_order(self, store):
        schedule_id = store.save_schedule(
            _itinerary(), user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17)
        )
        items = store.get_schedule_items(schedule_id, "u1")
        assert list(items["movie_id"]) == ["m1", "m2"]
        assert list(items["showtime_id"]) == ["s1", "s2"]
        assert list(items["gap_to_next"]) == [5, 0]

    def test_default_name(self, store):
        itinerary = _itinerary()
        store.save_schedule(itinerary, user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17))
        assert store.get_user_schedules("u1").iloc[0]["name"] == itinerary.name

    def test_schedules_are_per_user(self, store):
        schedule_id = store.save_schedule(
            _itinerary(), user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17)
        )
        assert store.get_user_schedules("u2").empty
        assert store.get_schedule_items(schedule_id, "u2").empty
        assert not store.delete_schedule(schedule_id, "u2")

    def test_same_itinerary_saved_twice(self, store):
        itinerary = _itinerary()
        a = store.save_schedule(itinerary, user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17))
        b = store.save_schedule(itinerary, user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17))
        assert a != b
        assert len(store.get_user_schedules("u1")) == 2

    def test_delete_removes_items(self, store):
        schedule_id = store.save_schedule(
            _itinerary(), user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17)
        )
        assert store.delete_schedule(schedule_id, "u1")
        assert not store.delete_schedule(schedule_id, "u1")
        assert store.get_user_schedules("u1").empty
        assert store.get_schedule_items(schedule_id, "u1").empty

    def test_get_schedule(self, store):
        itinerary = _itinerary()
        schedule_id = store.save_schedule(
            itinerary, user_id="u1", cinema_code="0013", play_date=date(2026, 10, 17)
        )

        schedule = store.get_schedule(schedule_id, "u1")

        assert schedule["id"] == schedule_id
        assert schedule["itinerary_id"] == itinerary.id
        assert schedule["cinema_code"] == "0013"
        assert schedule["play_date"] == date(2026, 10, 17)
        assert schedule["feasible"] is True
        assert store.get_schedule(schedule_id, "u2") is None
        assert store.get_schedule("missing", "u1") is None
