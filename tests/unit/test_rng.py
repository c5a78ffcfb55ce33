"""Tests for the injectable random sources.

Tests cover:
- Seed string format and validation
- Determinism (same seed -> same draws)
- Pinned draws for deterministic rule tests
- Success checks and their validation
- Property-based tests
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from monarchy.utils.rng import (
    FixedRandomSource,
    RandomSource,
    SeededRandomSource,
    SystemRandomSource,
    check_success,
    generate_seed,
)


class TestGenerateSeed:
    """Tests for generate_seed function."""

    def test_basic_seed_generation(self):
        seed = generate_seed(1, 42, "attack", "kingdom_3_vs_7")
        assert seed == "1:42:attack:kingdom_3_vs_7"

    def test_different_parameters_produce_different_seeds(self):
        seeds = {
            generate_seed(1, 1, "attack", "a"),
            generate_seed(2, 1, "attack", "a"),
            generate_seed(1, 2, "attack", "a"),
            generate_seed(1, 1, "thievery", "a"),
            generate_seed(1, 1, "attack", "b"),
        }
        assert len(seeds) == 5

    def test_negative_game_id_raises_error(self):
        with pytest.raises(ValueError, match="game_id must be non-negative"):
            generate_seed(-1, 1, "attack", "test")

    def test_negative_turn_raises_error(self):
        with pytest.raises(ValueError, match="turn must be non-negative"):
            generate_seed(1, -1, "attack", "test")

    def test_zero_values_allowed(self):
        assert generate_seed(0, 0, "attack", "test") == "0:0:attack:test"

    @given(
        game_id=st.integers(min_value=0, max_value=10000),
        turn=st.integers(min_value=0, max_value=10000),
        action=st.text(min_size=1),
        context=st.text(min_size=1),
    )
    def test_seed_generation_properties(self, game_id, turn, action, context):
        seed = generate_seed(game_id, turn, action, context)
        assert seed.startswith(f"{game_id}:{turn}:")
        assert seed.endswith(context)


class TestSeededRandomSource:
    """Tests for reproducible draws."""

    def test_same_seed_same_sequence(self):
        first = SeededRandomSource("1:5:attack:x")
        second = SeededRandomSource("1:5:attack:x")
        assert [first.random() for _ in range(5)] == [second.random() for _ in range(5)]

    def test_different_seeds_differ(self):
        draws = {SeededRandomSource(f"seed-{i}").random() for i in range(20)}
        assert len(draws) > 1

    def test_uniform_within_bounds(self):
        source = SeededRandomSource("bounds")
        for _ in range(100):
            assert 0.07 <= source.uniform(0.07, 0.0735) <= 0.0735

    def test_satisfies_protocol(self):
        assert isinstance(SeededRandomSource("x"), RandomSource)
        assert isinstance(FixedRandomSource(0.5), RandomSource)
        assert isinstance(SystemRandomSource(), RandomSource)


class TestFixedRandomSource:
    """Tests for pinned draws."""

    def test_returns_pinned_value(self):
        source = FixedRandomSource(0.25)
        assert source.random() == 0.25
        assert source.random() == 0.25

    def test_uniform_maps_linearly(self):
        assert FixedRandomSource(0.0).uniform(10, 20) == 10
        assert FixedRandomSource(0.5).uniform(10, 20) == 15
        assert FixedRandomSource(1.0).uniform(10, 20) == 20

    @pytest.mark.parametrize("value", [-0.1, 1.1])
    def test_out_of_range_value_raises(self, value):
        with pytest.raises(ValueError, match="between 0.0 and 1.0"):
            FixedRandomSource(value)


class TestCheckSuccess:
    """Tests for probability checks."""

    def test_roll_below_probability_succeeds(self):
        result = check_success(FixedRandomSource(0.2), 0.5)
        assert result["success"] is True
        assert result["roll"] == 0.2
        assert result["probability"] == 0.5

    def test_roll_at_probability_fails(self):
        assert check_success(FixedRandomSource(0.5), 0.5)["success"] is False

    def test_certain_events(self):
        assert check_success(FixedRandomSource(0.0), 0.0)["success"] is False
        assert check_success(SeededRandomSource("always"), 1.0)["success"] is True

    def test_invalid_probability_raises(self):
        with pytest.raises(ValueError, match="probability must be between"):
            check_success(FixedRandomSource(0.5), 1.5)
        with pytest.raises(ValueError, match="probability must be between"):
            check_success(FixedRandomSource(0.5), -0.1)

    @given(probability=st.floats(min_value=0.0, max_value=1.0), seed=st.text(max_size=20))
    def test_check_success_properties(self, probability, seed):
        result = check_success(SeededRandomSource(seed), probability)
        assert 0.0 <= result["roll"] < 1.0
        assert result["success"] == (result["roll"] < probability)
