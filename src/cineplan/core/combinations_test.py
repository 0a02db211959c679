import itertools

import pytest

from cineplan.core.combinations import count_combinations, generate_combinations
from cineplan.core.errors import InputError
from cineplan.core.models import Movie, Showtime


def _movie(movie_id, times):
    return Movie(
        id=movie_id,
        title=movie_id.upper(),
        duration=100,
        showtimes=[Showtime(id=f"{movie_id}-{i}", time=t) for i, t in enumerate(times)],
    )


class TestGenerateCombinations:
    @pytest.fixture
    def movies(self):
        return [
            _movie("a", ["10:00", "14:00"]),
            _movie("b", ["11:00", "15:00", "19:00"]),
            _movie("c", ["21:00"]),
        ]

    def test_product_size_and_length(self, movies):
        combos = generate_combinations(movies)
        assert len(combos) == 2 * 3 * 1
        assert count_combinations(movies) == 6
        assert all(len(c) == 3 for c in combos)

    def test_matches_cartesian_product_in_input_order(self, movies):
        combos = generate_combinations(movies)
        got = [tuple(p.showtime.id for p in c) for c in combos]
        expected = list(itertools.product(*[[s.id for s in m.showtimes] for m in movies]))
        assert got == expected

    def test_one_pick_per_movie_in_movie_order(self, movies):
        for combo in generate_combinations(movies):
            assert [p.movie.id for p in combo] == ["a", "b", "c"]

    def test_identical_showtimes_are_not_deduplicated(self):
        movies = [_movie("a", ["18:00", "18:00"]), _movie("b", ["18:00"])]
        combos = generate_combinations(movies)
        assert len(combos) == 2
        assert [p.showtime.id for p in combos[0]] == ["a-0", "b-0"]
        assert [p.showtime.id for p in combos[1]] == ["a-1", "b-0"]

    def test_input_is_left_untouched(self, movies):
        before = [list(m.showtimes) for m in movies]
        generate_combinations(movies)
        assert [list(m.showtimes) for m in movies] == before


class TestEmptyInput:
    def test_no_movies_is_an_input_error(self):
        with pytest.raises(InputError):
            generate_combinations([])

    def test_all_movies_without_showtimes_is_an_input_error(self):
        with pytest.raises(InputError):
            generate_combinations([_movie("a", []), _movie("b", [])])

    def test_movies_without_showtimes_are_skipped(self):
        movies = [_movie("a", ["10:00", "14:00"]), _movie("b", []), _movie("c", ["18:00", "20:00", "22:00"])]
        combos = generate_combinations(movies)
        assert len(combos) == 6
        assert all([p.movie.id for p in c] == ["a", "c"] for c in combos)
        assert count_combinations(movies) == 6

    def test_without_skipping_an_empty_movie_empties_the_product(self):
        movies = [_movie("a", ["10:00"]), _movie("b", [])]
        assert generate_combinations(movies, skip_empty=False) == []
        assert count_combinations(movies, skip_empty=False) == 0

    def test_count_of_nothing_is_zero(self):
        assert count_combinations([]) == 0
