"""
Tests for the seeded game RNG.
"""

import pytest

from src.game.rng import GameRng


class TestGameRng:
    def test_known_first_value(self):
        assert GameRng(12345).random() == pytest.approx(0.9797282677609473, abs=1e-12)

    def test_same_seed_same_sequence(self):
        a, b = GameRng(42), GameRng(42)
        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_different_seeds_differ(self):
        assert GameRng(1).random() != GameRng(2).random()

    def test_values_in_unit_interval(self):
        rng = GameRng(7)
        for _ in range(1000):
            value = rng.random()
            assert 0.0 <= value < 1.0

    def test_only_low_32_bits_of_seed_matter(self):
        assert GameRng(12345 + 2**32).random() == GameRng(12345).random()

    def test_random_range(self):
        rng = GameRng(3)
        values = {rng.random_range(5) for _ in range(200)}
        assert values <= set(range(5))
        assert len(values) == 5


class TestShuffle:
    def test_shuffle_is_permutation(self):
        items = list(range(60))
        GameRng(99).shuffle(items)
        assert sorted(items) == list(range(60))
        assert items != list(range(60))

    def test_shuffle_reproducible(self):
        a, b = list(range(20)), list(range(20))
        GameRng(5).shuffle(a)
        GameRng(5).shuffle(b)
        assert a == b

    def test_shuffle_draws_one_value_per_swap(self):
        rng = GameRng(11)
        rng.shuffle(list(range(10)))

        expected = GameRng(11)
        for _ in range(9):
            expected.random()
        assert rng.state == expected.state
