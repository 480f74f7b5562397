"""Tests for RandomSource."""

import pytest

from traffic_core.randomness import RandomSource


class TestRandomSource:
    """Tests for the injected random capability."""

    def test_seeded_sources_repeat(self):
        """Test that equal seeds produce equal sequences."""
        a, b = RandomSource(seed=7), RandomSource(seed=7)
        assert [a.uniform_int(0, 100) for _ in range(20)] == [
            b.uniform_int(0, 100) for _ in range(20)
        ]

    def test_uniform_int_inclusive(self, rng):
        """Test that both bounds are reachable and nothing outside is."""
        values = {rng.uniform_int(1, 3) for _ in range(500)}
        assert values == {1, 2, 3}

    def test_uniform_int_invalid_range(self, rng):
        """Test that inverted ranges are rejected."""
        with pytest.raises(ValueError):
            rng.uniform_int(5, 1)

    def test_bernoulli_extremes(self, rng):
        """Test that p=0 never fires and p=1 always fires."""
        assert not any(rng.bernoulli(0.0) for _ in range(1000))
        assert all(rng.bernoulli(1.0) for _ in range(1000))

    @pytest.mark.parametrize("probability", [-0.1, 1.5])
    def test_bernoulli_rejects_invalid(self, rng, probability):
        """Test that probabilities outside [0, 1] are rejected."""
        with pytest.raises(ValueError):
            rng.bernoulli(probability)

    def test_pick_one(self, rng):
        """Test picking from a sequence."""
        items = ("tenant1", "tenant2", "tenant3")
        picks = {rng.pick_one(items) for _ in range(200)}
        assert picks == set(items)

    def test_pick_one_empty(self, rng):
        """Test that picking from nothing fails."""
        with pytest.raises(ValueError):
            rng.pick_one(())

    def test_token(self, rng):
        """Test short hex tokens."""
        token = rng.token(4)
        assert len(token) == 4
        assert all(c in "0123456789abcdef" for c in token)

    def test_spawn_is_independent(self, rng):
        """Test that spawned children do not share state."""
        child_a = rng.spawn()
        child_b = rng.spawn()
        seq_a = [child_a.uniform_int(0, 10**9) for _ in range(5)]
        seq_b = [child_b.uniform_int(0, 10**9) for _ in range(5)]
        assert seq_a != seq_b

    def test_spawn_is_repeatable_from_seed(self):
        """Test that spawning from a seeded root is deterministic."""
        a = RandomSource(seed=99).spawn()
        b = RandomSource(seed=99).spawn()
        assert a.token(8) == b.token(8)
