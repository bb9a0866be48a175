"""Distribution of option prices over independently seeded simulations."""

from __future__ import annotations

from typing import Optional

from numpy.random import Generator

from ..core import MonteCarloEvaluationsWithExactResult
from ..experiments import PriceExperiments

__all__ = ["OptionPriceEvaluations"]


class OptionPriceEvaluations(MonteCarloEvaluationsWithExactResult):
    r"""
    Monte Carlo prices of one option, each from a freshly seeded simulation.

    Every computation draws a seed, simulates ``experiments.n_simulations``
    paths and prices the option on them. The exact result is the option's
    analytic risk-neutral price, so :meth:`get_average_absolute_error`
    measures the pricing error of a single simulation.

    Parameters
    ----------
    experiments : PriceExperiments
        Model, horizon, number of paths and option.
    n_computations : int
        Number of prices.

    Examples
    --------
    >>> from mcprocess.experiments import PriceExperiments
    >>> from mcprocess.payoffs import DigitalOption
    >>> from mcprocess.processes import BinomialModel
    >>> runs = PriceExperiments(BinomialModel(1.5, 0.5), 100.0, 7, 2_000, DigitalOption(7, 100.0))
    >>> ev = OptionPriceEvaluations(runs, n_computations=10)
    >>> round(ev.exact_result, 10)
    0.2265625
    """

    def __init__(self, experiments: PriceExperiments, n_computations: int):
        exact = experiments.option.exact_price(experiments.model, experiments.initial_value)
        super().__init__(
            n_computations,
            experiments.n_simulations,
            exact_result=exact,
            name="Option Prices",
        )
        self.experiments = experiments

    def single_computation(self, _rng: Optional[Generator] = None) -> float:
        rng = self._rng(_rng, self.rng)
        seed = int(self.experiments.draw_seeds(1, rng)[0])
        return self.experiments.price_for_seed(seed)
