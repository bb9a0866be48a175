import numpy as np
import pytest

from mcprocess.exceptions import ConfigurationError, ExhaustionError
from mcprocess.random_numbers import HaltonSource, LinearCongruentialGenerator, check_seed


class TestLinearCongruentialGenerator:
    """Test the bounded congruential generator"""

    def test_golden_values_seed_zero(self):
        """Test the first draws from seed 0"""
        lcg = LinearCongruentialGenerator(2, seed=0)
        assert lcg.next_integer() == 11
        assert lcg.next_integer() == 277363943098

    def test_golden_values_seed_one(self):
        """Test the first draws from seed 1"""
        lcg = LinearCongruentialGenerator(2, seed=1)
        assert lcg.next_integer() == 25214903928
        assert lcg.next_integer() == 206026503483683

    def test_default_simulation_seed(self):
        """Test the first draw from the default process seed"""
        lcg = LinearCongruentialGenerator(1, seed=1897)
        assert lcg.next_integer() == 47832672730560

    def test_sequence_starts_with_seed(self):
        """Test the bulk sequence layout"""
        lcg = LinearCongruentialGenerator(5, seed=42)
        seq = lcg.get_random_number_sequence()
        assert seq.shape == (6,)
        assert seq[0] == 42
        assert lcg.draws().tolist() == seq[1:].tolist()

    def test_bulk_matches_next(self):
        """Test next_integer walks the cached sequence"""
        bulk = LinearCongruentialGenerator(100, seed=1897).get_random_number_sequence()
        lcg = LinearCongruentialGenerator(100, seed=1897)
        stepped = [lcg.next_integer() for _ in range(100)]
        assert stepped == bulk[1:].tolist()

    def test_sequence_is_cached(self):
        """Test the sequence is generated once"""
        lcg = LinearCongruentialGenerator(10, seed=3)
        assert lcg.get_random_number_sequence() is lcg.get_random_number_sequence()

    def test_reproducible(self):
        """Test two generators with the same seed agree"""
        a = LinearCongruentialGenerator(50, seed=-123).get_random_number_sequence()
        b = LinearCongruentialGenerator(50, seed=-123).get_random_number_sequence()
        np.testing.assert_array_equal(a, b)

    def test_values_below_modulus(self):
        """Test every draw lies in [0, m), negative seeds included"""
        lcg = LinearCongruentialGenerator(1000, seed=-(2**63))
        draws = lcg.draws()
        assert draws.min() >= 0
        assert draws.max() < lcg.get_modulus()
        assert lcg.modulus == 2**48

    def test_large_seed_reduced_exactly(self):
        """Test the recurrence is reduced without overflow"""
        seed = 2**63 - 1
        lcg = LinearCongruentialGenerator(1, seed=seed)
        assert lcg.next_integer() == (0x5DEECE66D * seed + 11) % 2**48

    @pytest.mark.parametrize("seed", [2**63, -(2**63) - 1, 2**64])
    def test_seed_out_of_range(self, seed):
        """Test seeds outside the signed 64-bit range"""
        with pytest.raises(ConfigurationError):
            check_seed(seed)
        with pytest.raises(ConfigurationError):
            LinearCongruentialGenerator(1, seed=seed)

    def test_check_seed_returns_int(self):
        """Test in-range seeds pass through as ints"""
        assert check_seed(np.int64(1897)) == 1897
        assert type(check_seed(np.int64(1897))) is int

    def test_exhaustion(self):
        """Test the generator refuses to go past n_numbers"""
        lcg = LinearCongruentialGenerator(3, seed=5)
        for _ in range(3):
            lcg.next_integer()
        assert lcg.remaining == 0
        with pytest.raises(ExhaustionError):
            lcg.next_integer()

    def test_zero_numbers(self):
        """Test an empty generator"""
        lcg = LinearCongruentialGenerator(0, seed=5)
        assert lcg.get_random_number_sequence().tolist() == [5]
        with pytest.raises(RuntimeError):
            lcg.next_integer()

    def test_next_uniform_in_unit_interval(self):
        """Test uniforms lie in [0, 1)"""
        lcg = LinearCongruentialGenerator(1000, seed=9)
        u = np.array([lcg.next_uniform() for _ in range(1000)])
        assert np.all((u >= 0.0) & (u < 1.0))
        assert 0.4 < u.mean() < 0.6

    def test_custom_constants(self):
        """Test user-supplied multiplier and increment"""
        lcg = LinearCongruentialGenerator(2, seed=1, multiplier=3, increment=1)
        assert [lcg.next_integer(), lcg.next_integer()] == [4, 13]

    def test_read_only_sequence(self):
        """Test the cached sequence cannot be modified"""
        seq = LinearCongruentialGenerator(2, seed=1).get_random_number_sequence()
        with pytest.raises(ValueError):
            seq[0] = 0

    @pytest.mark.parametrize("kwargs", [{"n_numbers": -1, "seed": 0}, {"n_numbers": 1, "seed": 2**63}])
    def test_invalid_configuration(self, kwargs):
        """Test negative counts and out-of-range seeds"""
        with pytest.raises(ConfigurationError):
            LinearCongruentialGenerator(**kwargs)


class TestHaltonSource:
    """Test the low-discrepancy point source"""

    def test_first_points(self):
        """Test the radical inverses in bases 2 and 3"""
        pts = HaltonSource(2).next_points(3)
        np.testing.assert_allclose(pts, [[1 / 2, 1 / 3], [1 / 4, 2 / 3], [3 / 4, 1 / 9]])

    def test_consecutive_calls_continue(self):
        """Test the sequence continues across calls"""
        src = HaltonSource(1)
        first = src.next_point()
        second = src.next_points(2)
        np.testing.assert_allclose([first[0], *second[:, 0]], [0.5, 0.25, 0.75])

    def test_skip_zero_starts_at_origin(self):
        """Test the leading origin is kept without skipping"""
        np.testing.assert_allclose(HaltonSource(3, skip=0).next_point(), [0.0, 0.0, 0.0])

    def test_shape_and_range(self):
        """Test output shape and range"""
        pts = HaltonSource(4).next_points(100)
        assert pts.shape == (100, 4)
        assert np.all((pts >= 0.0) & (pts < 1.0))

    def test_invalid(self):
        """Test invalid dimension and skip"""
        with pytest.raises(ConfigurationError):
            HaltonSource(0)
        with pytest.raises(ConfigurationError):
            HaltonSource(2, skip=-1)
