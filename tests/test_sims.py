import math

import numpy as np
import pytest

from mcprocess.exceptions import ConfigurationError
from mcprocess.experiments import PriceExperiments
from mcprocess.random_numbers import HaltonSource
from mcprocess.sims import (
    OptionPriceEvaluations,
    PiEstimation,
    PiFromHypersphere,
    PowerFunctionIntegration,
    pi_from_ball_volume,
    unit_ball_volume,
)


class TestPiEstimation:
    """Test quarter-disk estimates of pi"""

    def test_estimate(self):
        """Test the mean estimate and its error"""
        ev = PiEstimation(n_computations=50, n_drawings=10_000)
        ev.set_seed(42)
        assert ev.get_mean() == pytest.approx(math.pi, abs=0.02)
        assert ev.get_average_absolute_error() < 0.05
        assert ev.exact_result == math.pi
        assert ev.name == "Pi Estimation"

    def test_antithetic_odd_drawings(self):
        """Test antithetic pairs with an odd number of points"""
        ev = PiEstimation(n_computations=10, n_drawings=1_001, antithetic=True)
        ev.set_seed(1)
        values = ev.get_computations()
        assert np.all((values >= 0.0) & (values <= 4.0))

    def test_error_shrinks_with_drawings(self):
        """Test the average absolute error falls with more points"""
        coarse = PiEstimation(100, 100)
        fine = PiEstimation(100, 10_000)
        coarse.set_seed(3)
        fine.set_seed(3)
        assert fine.get_average_absolute_error() < coarse.get_average_absolute_error()


class TestHypersphere:
    """Test pi from unit-ball volumes"""

    @pytest.mark.parametrize("dimension", range(2, 9))
    def test_inversion_recovers_pi(self, dimension):
        """Test the volume formula inverts exactly"""
        assert pi_from_ball_volume(unit_ball_volume(dimension), dimension) == pytest.approx(math.pi, rel=1e-12)

    def test_known_volumes(self):
        """Test V_2 = pi and V_3 = 4 pi / 3"""
        assert unit_ball_volume(2) == pytest.approx(math.pi)
        assert unit_ball_volume(3) == pytest.approx(4 * math.pi / 3)

    def test_low_dimension_refused(self):
        """Test dimensions below 2"""
        with pytest.raises(ConfigurationError):
            pi_from_ball_volume(2.0, 1)
        with pytest.raises(ConfigurationError):
            PiFromHypersphere(5, 100, 1)

    @pytest.mark.parametrize("dimension", [2, 3, 4])
    def test_pseudo_random_estimate(self, dimension):
        """Test estimates from pseudo-random points"""
        ev = PiFromHypersphere(20, 20_000, dimension)
        ev.set_seed(5)
        assert ev.get_mean() == pytest.approx(math.pi, abs=0.05)
        assert ev.name == f"Pi from {dimension}-sphere"

    def test_halton_estimate(self):
        """Test quasi-random points give a small error"""
        ev = PiFromHypersphere(4, 4_096, 3, point_source=HaltonSource(3))
        assert ev.get_average_absolute_error() < 0.02

    def test_halton_consumes_sequence(self):
        """Test successive computations use successive points"""
        values = PiFromHypersphere(3, 256, 2, point_source=HaltonSource(2)).get_computations()
        assert len(set(values.tolist())) > 1

    def test_point_source_dimension_mismatch(self):
        """Test a point source of the wrong dimension"""
        with pytest.raises(ConfigurationError):
            PiFromHypersphere(5, 100, 3, point_source=HaltonSource(2))


class TestPowerFunctionIntegration:
    """Test integration of x^a over [0, 1]"""

    def test_square(self):
        """Test the integral of x^2"""
        ev = PowerFunctionIntegration(2.0, n_computations=50, n_drawings=10_000)
        ev.set_seed(0)
        assert ev.exact_result == pytest.approx(1 / 3)
        assert ev.get_mean() == pytest.approx(1 / 3, abs=0.005)

    def test_negative_exponent(self):
        """Test an integrable singularity stays finite"""
        ev = PowerFunctionIntegration(-0.25, n_computations=20, n_drawings=10_000)
        ev.set_seed(1)
        assert np.all(np.isfinite(ev.get_computations()))
        assert ev.get_mean() == pytest.approx(4 / 3, abs=0.02)

    def test_divergent_exponent(self):
        """Test exponents at or below -1"""
        with pytest.raises(ConfigurationError):
            PowerFunctionIntegration(-1.0, 10, 10)


class TestOptionPriceEvaluations:
    """Test evaluations of repeatedly priced options"""

    def test_exact_result(self, binomial_model, digital_option):
        """Test the exact price is the risk-neutral value"""
        runs = PriceExperiments(binomial_model, 100.0, 7, 200, digital_option)
        ev = OptionPriceEvaluations(runs, n_computations=5)
        assert ev.exact_result == pytest.approx(29 / 128)
        assert ev.n_drawings == 200
        assert ev.name == "Option Prices"

    def test_prices(self, binomial_model, digital_option):
        """Test the average price and its error"""
        runs = PriceExperiments(binomial_model, 100.0, 7, 1_000, digital_option)
        ev = OptionPriceEvaluations(runs, n_computations=30)
        ev.set_seed(12)
        assert ev.get_mean() == pytest.approx(29 / 128, abs=0.02)
        assert ev.get_average_absolute_error() < 0.05

    def test_reproducible(self, binomial_model, digital_option):
        """Test the evaluation seed fixes the simulation seeds"""
        runs = PriceExperiments(binomial_model, 100.0, 7, 100, digital_option)
        values = []
        for _ in range(2):
            ev = OptionPriceEvaluations(runs, n_computations=5)
            ev.set_seed(4)
            values.append(ev.get_computations())
        np.testing.assert_array_equal(values[0], values[1])
