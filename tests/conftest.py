import numpy as np
import pytest

from mcprocess.core import MonteCarloEvaluations, MonteCarloEvaluationsWithExactResult, MonteCarloFramework
from mcprocess.experiments import PriceExperiments
from mcprocess.payoffs import DigitalOption
from mcprocess.processes import BinomialModel, BrownianMotion, DiscreteProcessSimulator, TrinomialModel


class NormalEvaluations(MonteCarloEvaluations):
    """Averages of normal draws that *use the evaluation RNG* (not the global)."""
    def __init__(self, n_computations=200, n_drawings=50, name="NormalEvals"):
        super().__init__(n_computations, n_drawings, name=name)

    def single_computation(self, _rng=None):
        rng = self._rng(_rng, self.rng)
        return float(rng.normal(5.0, 2.0, self.n_drawings).mean())


class CountingEvaluations(MonteCarloEvaluationsWithExactResult):
    """Deterministic evaluations returning incrementing integers."""
    def __init__(self, n_computations=5):
        super().__init__(n_computations, 1, exact_result=3.0, name="Counting")
        self.counter = 0

    def single_computation(self, _rng=None):
        self.counter += 1
        return float(self.counter)


@pytest.fixture(autouse=True)
def _stable_seed():
    # Keep global state stable for any code that still touches np.random.*
    np.random.seed(42)


@pytest.fixture
def sample_data():
    """Fixture providing sample data for testing"""
    np.random.seed(42)
    return np.random.normal(5.0, 2.0, 1000)


@pytest.fixture
def normal_evaluations():
    """Provide a seeded evaluation instance."""
    ev = NormalEvaluations()
    ev.set_seed(123)
    return ev


@pytest.fixture
def counting_evaluations():
    """Provide a deterministic evaluation instance with exact result 3."""
    return CountingEvaluations()


@pytest.fixture
def framework():
    """Provide a framework with default state."""
    return MonteCarloFramework()


@pytest.fixture
def binomial_model():
    """Symmetric binomial model with risk-neutral probability 1/2."""
    return BinomialModel(up=1.5, down=0.5)


@pytest.fixture
def trinomial_model():
    """Trinomial model with probabilities (0.4, 0.2, 0.4)."""
    return TrinomialModel(up=1.5, down=0.5, probability_stay=0.2)


@pytest.fixture
def small_process(binomial_model):
    """A small binomial process with the default seed."""
    return DiscreteProcessSimulator(binomial_model, 100.0, n_simulations=50, last_time=7)


@pytest.fixture
def digital_option():
    """Digital call at maturity 7 struck at the money."""
    return DigitalOption(maturity=7, strike=100.0)


@pytest.fixture
def price_experiments(binomial_model, digital_option):
    """Seeded experiments with 500 paths each."""
    runs = PriceExperiments(binomial_model, 100.0, 7, 500, digital_option)
    runs.set_seed(7)
    return runs


@pytest.fixture
def ctx_basic():
    """Basic context for stats engine tests"""
    return {
        "n": 1000,
        "confidence": 0.95,
        "nan_policy": "propagate",
        "ci_method": "auto",
        "percentiles": (5, 25, 50, 75, 95),
        "target": 0.0,
        "eps": 0.5,
    }


@pytest.fixture(scope="module")
def brownian_motion():
    """Seeded Brownian motion on [0, 1] with 100 steps and 20000 paths."""
    return BrownianMotion(time_step=0.01, n_steps=100, n_paths=20_000, seed=2024)
