r"""
mcprocess.experiments
=====================

Repeated pricing of an option under varying generator seeds.

Each experiment fixes a model, an initial value, a horizon and a number of
paths, then prices the option once per seed. The spread of the resulting
prices shows the Monte Carlo error of a single run.

Seeds for the congruential generator are drawn from a NumPy
:class:`~numpy.random.Generator` owned by the experiment, never from the
congruential generator itself.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .exceptions import ConfigurationError
from .payoffs import EuropeanTypeOption
from .processes import DiscreteProcessSimulator, ProcessModel
from .vectors import HistogramResult, build_histogram, min_max

logger = logging.getLogger(__name__)

__all__ = ["PriceExperiments"]

_SEED_LOW = -(2**31)
_SEED_HIGH = 2**31 - 1


class PriceExperiments:
    r"""
    Prices of one option over many independently seeded simulations.

    Parameters
    ----------
    model : BinomialModel or TrinomialModel
        Transition rule shared by every experiment.
    initial_value : float
        :math:`S_0`.
    last_time : int
        Horizon of each simulation.
    n_simulations : int
        Paths per simulation.
    option : EuropeanTypeOption
        Claim to price, e.g. :class:`~mcprocess.payoffs.DigitalOption`.

    Examples
    --------
    >>> from mcprocess.payoffs import DigitalOption
    >>> from mcprocess.processes import BinomialModel
    >>> runs = PriceExperiments(BinomialModel(1.5, 0.5), 100.0, 7, 1_000, DigitalOption(7, 100.0))
    >>> runs.set_seed(3)
    >>> low, high = runs.min_and_max(20)
    >>> 0.0 <= low <= high <= 1.0
    True
    """

    def __init__(
        self,
        model: ProcessModel,
        initial_value: float,
        last_time: int,
        n_simulations: int,
        option: EuropeanTypeOption,
    ):
        if n_simulations < 1:
            raise ConfigurationError("n_simulations must be positive")
        if last_time < 0:
            raise ConfigurationError("last_time must be non-negative")
        self.model = model
        self.initial_value = float(initial_value)
        self.last_time = int(last_time)
        self.n_simulations = int(n_simulations)
        self.option = option
        self.seed_seq: Optional[np.random.SeedSequence] = None
        self.rng = np.random.default_rng()

    def set_seed(self, seed: int | None) -> None:
        """Seed the generator that draws simulation seeds."""
        self.seed_seq = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_seq)

    def build_process(self, seed: int) -> DiscreteProcessSimulator:
        """Fresh, not yet simulated process for ``seed``."""
        return DiscreteProcessSimulator(
            self.model,
            self.initial_value,
            n_simulations=self.n_simulations,
            last_time=self.last_time,
            seed=seed,
        )

    def price_for_seed(self, seed: int) -> float:
        """Monte Carlo price from a simulation seeded with ``seed``."""
        return self.option.get_price(self.build_process(seed))

    def draw_seeds(self, repetitions: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """``repetitions`` seeds uniform over the signed 32-bit range."""
        if repetitions < 1:
            raise ConfigurationError("repetitions must be positive")
        rng = rng if rng is not None else self.rng
        return rng.integers(_SEED_LOW, _SEED_HIGH, size=repetitions, endpoint=True)

    def prices_for_random_seeds(self, repetitions: int) -> np.ndarray:
        r"""
        Price the option once per random seed.

        Returns
        -------
        ndarray
            Read-only vector of length ``repetitions``.
        """
        seeds = self.draw_seeds(repetitions)
        logger.info(f"Pricing {repetitions} experiments with {self.n_simulations} paths each...")
        prices = np.array([self.price_for_seed(int(seed)) for seed in seeds], dtype=float)
        prices.flags.writeable = False
        return prices

    def min_and_max(self, repetitions: int) -> tuple[float, float]:
        """Smallest and largest price over ``repetitions`` random seeds."""
        return min_max(self.prices_for_random_seeds(repetitions))

    def histogram(self, n_bins: int, repetitions: int) -> HistogramResult:
        r"""
        Histogram of ``repetitions`` prices binned between their own extremes.

        Raises
        ------
        ConfigurationError
            When every price coincides, since the bin range is then empty.
        """
        prices = self.prices_for_random_seeds(repetitions)
        low, high = min_max(prices)
        return build_histogram(prices, low, high, n_bins)
