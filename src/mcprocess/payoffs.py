r"""
mcprocess.payoffs
=================

Payoffs of European-type claims evaluated on simulated processes.

A European-type option looks at the process at a single maturity index and
maps each path to a payoff. Its Monte Carlo price is the average payoff over
the paths; no discounting is applied here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from .exceptions import ConfigurationError
from .processes import DiscreteProcessSimulator, ProcessModel
from .vectors import kahan_mean

__all__ = ["EuropeanTypeOption", "DigitalOption"]


class EuropeanTypeOption(Protocol):
    """Claim whose payoff depends on the process at one maturity index."""

    maturity: int

    def get_payoff(self, process: DiscreteProcessSimulator) -> np.ndarray: ...

    def get_price(self, process: DiscreteProcessSimulator) -> float: ...

    def exact_price(self, model: ProcessModel, initial_value: float) -> float: ...


@dataclass(frozen=True)
class DigitalOption:
    r"""
    Cash-or-nothing call paying one unit when the process ends above the strike.

    .. math::
       \text{payoff} = \mathbf{1}\{S_{\text{maturity}} > K\}

    The inequality is strict: a path ending exactly at the strike pays ``0``.

    Parameters
    ----------
    maturity : int
        Time index at which the process is observed.
    strike : float
        Strike :math:`K`.

    Examples
    --------
    >>> from mcprocess.processes import BinomialModel
    >>> option = DigitalOption(maturity=7, strike=100.0)
    >>> round(option.exact_price(BinomialModel(1.5, 0.5), 100.0), 10)
    0.2265625
    """

    maturity: int
    strike: float

    def __post_init__(self) -> None:
        if self.maturity < 0:
            raise ConfigurationError("maturity must be non-negative")

    def get_payoff(self, process: DiscreteProcessSimulator) -> np.ndarray:
        """Payoff per path, ``1.0`` or ``0.0``."""
        values = process.get_realizations_at_time(self.maturity)
        return (values > self.strike).astype(float)

    def get_price(self, process: DiscreteProcessSimulator) -> float:
        """Undiscounted Monte Carlo price: the compensated mean of :meth:`get_payoff`."""
        return kahan_mean(self.get_payoff(process))

    def exact_price(self, model: ProcessModel, initial_value: float) -> float:
        r"""
        Risk-neutral probability that the process ends above the strike.

        Sums the probabilities of every terminal factor :math:`F` with
        :math:`S_0 F > K`; undiscounted, like :meth:`get_price`.
        """
        factors, probabilities = model.terminal_distribution(self.maturity)
        return float(np.sum(probabilities[initial_value * factors > self.strike]))
