import numpy as np
import pytest

from mcprocess.confidence import ChebyshevMeanConfidenceInterval, CLTMeanConfidenceInterval, ConfidenceInterval
from mcprocess.exceptions import ConfigurationError
from mcprocess.random_variables import ExponentialRandomVariable, NormalRandomVariable


class TestConfidenceInterval:
    """Test the interval container"""

    def test_width_and_membership(self):
        """Test width and the closed bounds"""
        ci = ConfidenceInterval(1.0, 3.0, 0.9)
        assert ci.width == 2.0
        assert 1.0 in ci and 3.0 in ci and 2.0 in ci
        assert 3.5 not in ci


class TestCLTMeanConfidenceInterval:
    """Test the central-limit interval"""

    def test_bounds(self):
        """Test mu +- sigma / sqrt(n) z((1 + level) / 2)"""
        ci = CLTMeanConfidenceInterval(ExponentialRandomVariable(0.2), 100_000)
        half = 5.0 / np.sqrt(100_000) * 1.644854
        assert ci.lower_bound(0.9) == pytest.approx(5.0 - half, abs=1e-4)
        assert ci.upper_bound(0.9) == pytest.approx(5.0 + half, abs=1e-4)
        assert ci.interval(0.9).level == 0.9

    def test_narrower_than_chebyshev(self):
        """Test the CLT interval is tighter at every level"""
        rv = NormalRandomVariable(0.0, 1.0)
        for level in (0.5, 0.9, 0.99):
            clt = CLTMeanConfidenceInterval(rv, 50).interval(level)
            cheb = ChebyshevMeanConfidenceInterval(rv, 50).interval(level)
            assert cheb.lower < clt.lower < clt.upper < cheb.upper

    def test_coverage_near_level(self):
        """Test the empirical coverage matches the confidence level"""
        ci = CLTMeanConfidenceInterval(ExponentialRandomVariable(1.0), 200)
        coverage = ci.coverage_frequency(5_000, 0.9, rng=np.random.default_rng(4))
        assert coverage == pytest.approx(0.9, abs=0.02)

    def test_coverage_batched(self):
        """Test coverage with more draws than one batch"""
        ci = CLTMeanConfidenceInterval(NormalRandomVariable(), 400_000)
        coverage = ci.coverage_frequency(5, 0.999, rng=np.random.default_rng(0))
        assert 0.0 <= coverage <= 1.0

    @pytest.mark.parametrize("level", [0.0, 1.0, -0.1])
    def test_invalid_level(self, level):
        """Test levels outside (0, 1)"""
        with pytest.raises(ConfigurationError):
            CLTMeanConfidenceInterval(NormalRandomVariable(), 10).lower_bound(level)


class TestChebyshevMeanConfidenceInterval:
    """Test the distribution-free interval"""

    def test_half_width(self):
        """Test sigma / sqrt(n (1 - level))"""
        ci = ChebyshevMeanConfidenceInterval(ExponentialRandomVariable(0.5), 100)
        assert ci.half_width(0.75) == pytest.approx(2.0 / np.sqrt(25.0))
        assert ci.upper_bound(0.75) == pytest.approx(2.4)

    def test_over_covers(self):
        """Test the empirical coverage exceeds the level"""
        ci = ChebyshevMeanConfidenceInterval(ExponentialRandomVariable(1.0), 100)
        coverage = ci.coverage_frequency(4_000, 0.75, rng=np.random.default_rng(9))
        assert coverage > 0.9

    def test_uses_variable_generator(self):
        """Test coverage draws from the variable's seeded generator by default"""
        results = []
        for _ in range(2):
            rv = NormalRandomVariable()
            rv.set_seed(17)
            results.append(ChebyshevMeanConfidenceInterval(rv, 20).coverage_frequency(500, 0.5))
        assert results[0] == results[1]

    def test_invalid(self):
        """Test invalid sample sizes and trial counts"""
        with pytest.raises(ConfigurationError):
            ChebyshevMeanConfidenceInterval(NormalRandomVariable(), 0)
        with pytest.raises(ConfigurationError):
            ChebyshevMeanConfidenceInterval(NormalRandomVariable(), 5).coverage_frequency(0, 0.9)
