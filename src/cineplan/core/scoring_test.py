import pytest

from cineplan.core.feasibility import analyze_combination
from cineplan.core.models import (
    BreakInfo,
    FlexibilityConfig,
    Movie,
    SchedulePreferences,
    ScheduledItinerary,
    SessionPick,
    Showtime,
)
from cineplan.core.scoring import (
    classify_break,
    format_itinerary_label,
    itinerary_name,
    optimize_combination,
    pick_recommended,
    rank_by_score,
)

NO_PREFS = SchedulePreferences()


def pick(title, duration, time):
    movie = Movie(id=title.lower(), title=title, duration=duration)
    return SessionPick(movie=movie, showtime=Showtime(id=f"{title}@{time}", time=time))


class TestClassifyBreak:
    @pytest.mark.parametrize(
        "duration, starts_at, kind",
        [
            (45, 12 * 60, "meal"),
            (45, 19 * 60 + 10, "meal"),
            (30, 21 * 60 + 59, "meal"),
            (45, 16 * 60, "rest"),
            (30, 22 * 60, "rest"),
            (20, 12 * 60, "travel"),
            (29, 19 * 60, "travel"),
        ],
    )
    def test_kinds(self, duration, starts_at, kind):
        assert classify_break(duration, starts_at) == kind


class TestOptimizeCombination:
    def test_lunch_break_is_rewarded(self):
        """11:00 (100 min) lets out at 12:35; 13:30 start leaves a 55 min lunch."""
        it = optimize_combination([pick("A", 100, "11:00"), pick("B", 100, "13:30")], preferences=NO_PREFS)

        assert it.feasible
        assert it.score == 110
        assert it.breaks == [BreakInfo(after_movie="A", duration=55, kind="meal")]
        assert it.name == "Marathon: 2 movies (with meal break)"
        assert it.total_duration == 250

    def test_meal_bonus_can_be_turned_off(self):
        prefs = SchedulePreferences(allow_meal_breaks=False)
        it = optimize_combination([pick("A", 100, "11:00"), pick("B", 100, "13:30")], preferences=prefs)
        assert it.score == 100

    def test_conflict_penalty(self):
        it = optimize_combination([pick("Movie1", 120, "18:00"), pick("Movie2", 100, "19:30")], preferences=NO_PREFS)
        assert not it.feasible
        assert it.score == 50
        assert it.breaks == []
        assert it.name == "Double feature: 2 movies"

    def test_same_conflicts_as_plain_analysis(self):
        combo = [pick("Movie1", 120, "18:00"), pick("Movie2", 100, "19:30")]
        scored = optimize_combination(combo, preferences=NO_PREFS)
        plain = analyze_combination(combo)
        assert scored.feasible == plain.feasible
        assert scored.conflicts == plain.conflicts

    def test_short_break_penalty(self):
        """Movie1 lets out at 19:55; a 19:58 start is reachable only through late entry."""
        it = optimize_combination([pick("Movie1", 120, "18:00"), pick("Movie2", 100, "19:58")], preferences=NO_PREFS)
        assert it.feasible
        assert it.score == 80
        assert any(d.startswith("WARNING: only 3 min") for d in it.diagnostics)

    def test_overlap_covered_by_late_entry(self):
        """With 30 min late entry a 19:40 start is reachable after a 19:55 exit."""
        flexibility = FlexibilityConfig(allow_late_entry=30, allow_early_exit=5, break_time=0)
        combo = [pick("Movie1", 120, "18:00"), pick("Movie2", 100, "19:40")]
        it = optimize_combination(combo, flexibility, NO_PREFS)

        assert it.feasible
        assert it.score == 80
        warnings = [d for d in it.diagnostics if d.startswith("WARNING:")]
        assert warnings == [
            "WARNING: 'Movie2' starts 15 min before 'Movie1' lets out; only late entry makes it"
        ]

    def test_long_day_penalty(self):
        combo = [pick("A", 150, "10:00"), pick("B", 150, "12:40"), pick("C", 150, "15:20")]
        it = optimize_combination(combo, preferences=NO_PREFS)

        assert it.feasible
        assert it.total_duration == 470
        assert it.score == 70
        assert [b.kind for b in it.breaks] == ["travel", "travel"]
        assert it.name == "Marathon: 3 movies (intensive)"
        assert any("two days" in d for d in it.diagnostics)

    def test_score_never_negative(self):
        combo = [pick("A", 120, "21:00"), pick("B", 120, "21:00"), pick("C", 120, "21:00")]
        it = optimize_combination(combo, preferences=SchedulePreferences(avoid_late_night=True))
        assert it.score == 0.0
        assert len(it.conflicts) == 2

    def test_empty_combination(self):
        it = optimize_combination([])
        assert not it.feasible
        assert it.score == 0.0


class TestPreferences:
    @pytest.mark.parametrize(
        "preferred, expected",
        [("13:20", 115), ("12:30", 115), ("14:00", 105), ("15:00", 100)],
    )
    def test_preferred_start(self, preferred, expected):
        prefs = SchedulePreferences(preferred_start_time=preferred)
        it = optimize_combination([pick("A", 100, "13:00")], preferences=prefs)
        assert it.score == expected

    def test_matinee_bonus(self):
        prefs = SchedulePreferences(prefer_matinee=True)
        assert optimize_combination([pick("A", 100, "13:00")], preferences=prefs).score == 110
        assert optimize_combination([pick("A", 100, "14:00")], preferences=prefs).score == 100

    def test_late_night_penalty(self):
        prefs = SchedulePreferences(avoid_late_night=True)
        assert optimize_combination([pick("A", 120, "20:30")], preferences=prefs).score == 80
        assert optimize_combination([pick("A", 120, "20:00")], preferences=prefs).score == 100

    def test_default_preferences(self):
        prefs = SchedulePreferences.default()
        assert prefs.prefer_matinee and prefs.avoid_late_night and prefs.allow_meal_breaks
        assert prefs.preferred_start_time is None


def _scored(name, score):
    return ScheduledItinerary(
        id=name, name=name, items=[], start_time="10:00", end_time="12:00",
        total_duration=120, score=score,
    )


class TestRanking:
    def test_best_first_ties_keep_generation_order(self):
        ranked = rank_by_score([_scored("a", 50), _scored("b", 110), _scored("c", 50), _scored("d", 110)])
        assert [it.name for it in ranked] == ["b", "d", "a", "c"]

    def test_top_n_and_zero_scores_kept(self):
        pool = [_scored(str(i), 0.0) for i in range(20)]
        ranked = rank_by_score(pool)
        assert len(ranked) == 15
        assert ranked[0].name == "0"

    def test_min_score_filter(self):
        ranked = rank_by_score([_scored("a", 0.0), _scored("b", 30)], min_score=1)
        assert [it.name for it in ranked] == ["b"]

    def test_pick_recommended(self):
        assert pick_recommended([]) is None
        assert pick_recommended([_scored("a", 1)]).name == "a"


class TestNaming:
    def test_names(self):
        meal = [BreakInfo("A", 40, "rest")]
        assert itinerary_name(2, meal) == "Marathon: 2 movies (with meal break)"
        assert itinerary_name(4, []) == "Marathon: 4 movies (intensive)"
        assert itinerary_name(2, [BreakInfo("A", 10, "travel")]) == "Double feature: 2 movies"
        assert itinerary_name(1, []) == "Single session"

    def test_label(self):
        label = format_itinerary_label(_scored("Double feature: 2 movies", 110))
        assert label == "Double feature: 2 movies · 10:00-12:00 · score 110"
