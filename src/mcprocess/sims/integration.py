"""Monte Carlo integration of a power function."""

from __future__ import annotations

from typing import Optional

from numpy.random import Generator

from ..core import MonteCarloEvaluationsWithExactResult
from ..exceptions import ConfigurationError
from ..vectors import kahan_mean

__all__ = ["PowerFunctionIntegration"]


class PowerFunctionIntegration(MonteCarloEvaluationsWithExactResult):
    r"""
    Integrate :math:`x^a` over :math:`[0, 1]`.

    Each computation averages :math:`U_i^a` over ``n_drawings`` uniforms, an
    unbiased estimator of

    .. math::
       \int_0^1 x^a \,\mathrm{d}x = \frac{1}{1 + a}, \qquad a > -1.

    Uniforms are taken in :math:`(0, 1]` so that negative exponents stay finite.
    """

    def __init__(self, exponent: float, n_computations: int, n_drawings: int):
        if exponent <= -1:
            raise ConfigurationError("exponent must exceed -1 for the integral to converge")
        super().__init__(
            n_computations,
            n_drawings,
            exact_result=1.0 / (1.0 + exponent),
            name="Power Function Integration",
        )
        self.exponent = float(exponent)

    def single_computation(self, _rng: Optional[Generator] = None) -> float:
        rng = self._rng(_rng, self.rng)
        u = 1.0 - rng.random(self.n_drawings)
        return kahan_mean(u**self.exponent)
