"""Tests for key hashing and the seeded LCG stream."""

import pytest

from sigilscope.core.seed import (
    LCG_INCREMENT,
    LCG_MODULUS,
    LCG_MULTIPLIER,
    SeededRandom,
    hash_key,
    make_random,
    seed_key,
)


def _draw(rnd, n):
    return [rnd() for _ in range(n)]


class TestHashKey:
    def test_known_values(self):
        assert hash_key("") == 0
        assert hash_key("a") == 97
        assert hash_key("ab") == 97 * 31 + 98
        assert hash_key("abc") == 96354

    def test_none_hashes_like_empty(self):
        assert hash_key(None) == hash_key("") == 0

    def test_long_keys_stay_in_32_bits(self):
        for key in ["Starhaven Reaches", "x" * 500, "The Lattice:node-42" * 10]:
            h = hash_key(key)
            assert 0 <= h <= 2 ** 31

    def test_astral_characters_hash_as_surrogate_pairs(self):
        # U+1F600 -> 0xD83D 0xDE00
        assert hash_key("\U0001F600") == 0xD83D * 31 + 0xDE00

    def test_stable_across_calls(self):
        assert hash_key("Gradient Throne") == hash_key("Gradient Throne")
        assert hash_key("Gradient Throne") != hash_key("gradient throne")


class TestSeedKey:
    def test_category_only(self):
        assert seed_key("research") == "research"

    def test_with_instance(self):
        assert seed_key("research", "doc-1") == "research:doc-1"

    def test_empty_instance_is_category_key(self):
        assert seed_key("research", "") == "research"


class TestSeededRandom:
    def test_first_value(self):
        state = (42 * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        assert state == 1083814273
        assert make_random(42)() == 1083814273 / 2 ** 32

    def test_stream_follows_recurrence(self):
        rnd = make_random(12345)
        state = 12345
        for _ in range(50):
            state = (state * 1664525 + 1013904223) % 2 ** 32
            assert rnd() == state / 2 ** 32

    def test_same_seed_same_stream(self):
        assert _draw(make_random(42), 100) == _draw(make_random(42), 100)

    def test_different_seeds_diverge(self):
        assert _draw(make_random(1), 10) != _draw(make_random(2), 10)

    def test_values_in_unit_interval(self):
        values = _draw(make_random(0), 1000)
        assert all(0.0 <= v < 1.0 for v in values)

    def test_counts_calls(self):
        rnd = SeededRandom(3)
        rnd()
        _draw(rnd, 4)
        assert rnd.calls == 5

    def test_negative_seed_rejected(self):
        with pytest.raises(ValueError):
            SeededRandom(-1)
