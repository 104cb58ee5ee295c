"""
Sitio Synthetic Data - Random Source Tests
==========================================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sitio_synth.random_source import LCG_MODULUS, SeededRandom, derive_seed


class TestSeededRandom:
    """Test the LCG core and derived draws"""

    def test_first_draw_matches_recurrence(self):
        """Test next() applies seed = (seed * A + C) mod 2^31"""
        rng = SeededRandom(42)
        value = rng.next()
        assert rng.seed == 1250496027
        assert value == 1250496027 / LCG_MODULUS

    def test_same_seed_same_sequence(self):
        """Test identical seeds give identical streams"""
        a = SeededRandom(7)
        b = SeededRandom(7)
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_next_in_unit_interval(self):
        """Test next() stays in [0, 1)"""
        rng = SeededRandom(123)
        for _ in range(5000):
            value = rng.next()
            assert 0.0 <= value < 1.0

    def test_next_int_inclusive_bounds(self):
        """Test next_int covers both ends and nothing outside"""
        rng = SeededRandom(5)
        seen = {rng.next_int(1, 3) for _ in range(2000)}
        assert seen == {1, 2, 3}

    def test_next_float_range(self):
        """Test next_float stays in [low, high)"""
        rng = SeededRandom(9)
        for _ in range(1000):
            assert 2.5 <= rng.next_float(2.5, 4.0) < 4.0

    def test_shuffle_is_permutation_and_copy(self):
        """Test shuffle returns a new list with the same items"""
        rng = SeededRandom(11)
        items = list(range(20))
        shuffled = rng.shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(20))
        assert shuffled is not items

    def test_gaussian_clamped_bounds(self):
        """Test clamped gaussian never leaves its bounds"""
        rng = SeededRandom(3)
        for _ in range(2000):
            assert 0.7 <= rng.gaussian_clamped(1.0, 0.3, 0.7, 1.5) <= 1.5

    def test_gaussian_mean(self):
        """Test Box-Muller draws center on the mean"""
        rng = SeededRandom(17)
        draws = [rng.gaussian(10.0, 2.0) for _ in range(5000)]
        assert abs(sum(draws) / len(draws) - 10.0) < 0.2

    def test_boolean_extremes(self):
        """Test probability 0 never and 1 always succeeds"""
        rng = SeededRandom(1)
        assert not any(rng.boolean(0.0) for _ in range(500))
        assert all(rng.boolean(1.0) for _ in range(500))


class TestPicks:
    """Test categorical draws and their preconditions"""

    def test_pick_empty_raises(self):
        """Test pick on an empty sequence fails fast"""
        with pytest.raises(ValueError):
            SeededRandom(1).pick([])

    def test_pick_weighted_empty_raises(self):
        """Test pick_weighted on an empty sequence fails fast"""
        with pytest.raises(ValueError):
            SeededRandom(1).pick_weighted([], [])

    def test_pick_weighted_only_first(self):
        """Test weights [1, 0] always return the first item"""
        rng = SeededRandom(2024)
        assert all(rng.pick_weighted(["a", "b"], [1, 0]) == "a" for _ in range(10_000))

    def test_pick_weighted_only_second(self):
        """Test weights [0, 1] always return the second item"""
        rng = SeededRandom(2024)
        assert all(rng.pick_weighted(["a", "b"], [0, 1]) == "b" for _ in range(10_000))

    def test_pick_weighted_proportions(self):
        """Test draws follow the weight ratios"""
        rng = SeededRandom(99)
        draws = [rng.pick_weighted(["x", "y"], [0.25, 0.75]) for _ in range(10_000)]
        assert abs(draws.count("y") / len(draws) - 0.75) < 0.03

    @pytest.mark.parametrize("weights", [[0, 0], [-1, 2], [1, 2, 3], [0.0, -0.0]])
    def test_degenerate_weights_rejected(self, weights):
        """Test all-zero, negative or mismatched weights raise"""
        with pytest.raises(ValueError):
            SeededRandom(1).pick_weighted(["a", "b"], weights)


class TestDeriveSeed:
    """Test sub-seed derivation"""

    def test_pure_function(self):
        """Test derive_seed depends only on its arguments"""
        assert derive_seed(84, 3, 2) == derive_seed(84, 3, 2)

    def test_no_collisions_within_horizon(self):
        """Test (entity, year) pairs map to distinct sub-seeds"""
        seeds = {derive_seed(84, i, y) for i in range(1, 101) for y in range(99)}
        assert len(seeds) == 100 * 99


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
