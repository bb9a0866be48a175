"""Pi estimation evaluations."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numpy.random import Generator
from scipy.special import gamma

from ..core import MonteCarloEvaluationsWithExactResult
from ..exceptions import ConfigurationError
from ..random_numbers import LowDiscrepancySource

__all__ = ["PiEstimation", "PiFromHypersphere", "unit_ball_volume", "pi_from_ball_volume"]


class PiEstimation(MonteCarloEvaluationsWithExactResult):
    r"""
    Estimate :math:`\pi` by geometric probability on the quarter disk.

    Each computation throws :math:`n` i.i.d. points :math:`(X_i, Y_i)` uniformly
    on :math:`[0, 1)^2` and uses the identity

    .. math::
       \pi = 4 \,\Pr\!\left(X^2 + Y^2 \le 1\right),

    to form the estimator

    .. math::
       \widehat{\pi}_n = \frac{4}{n} \sum_{i=1}^n \mathbf{1}\{X_i^2 + Y_i^2 \le 1\}.

    Parameters
    ----------
    n_computations : int
        Number of independent estimates.
    n_drawings : int
        Points per estimate.
    antithetic : bool, default ``False``
        Pair each point :math:`(x, y)` with :math:`(1 - x, 1 - y)`.

    Example
    -------
    >>> ev = PiEstimation(n_computations=50, n_drawings=10_000)
    >>> ev.set_seed(42)
    >>> ev.get_average_absolute_error() < 0.05
    True
    """

    def __init__(self, n_computations: int, n_drawings: int, antithetic: bool = False):
        super().__init__(n_computations, n_drawings, exact_result=math.pi, name="Pi Estimation")
        self.antithetic = antithetic

    def single_computation(self, _rng: Optional[Generator] = None) -> float:
        rng = self._rng(_rng, self.rng)
        n = self.n_drawings
        if not self.antithetic:
            pts = rng.random((n, 2))
        else:
            u = rng.random((n // 2, 2))
            pts = np.vstack([u, 1.0 - u])
            if pts.shape[0] < n:
                pts = np.vstack([pts, rng.random((1, 2))])
        inside = np.count_nonzero(np.sum(pts * pts, axis=1) <= 1.0)
        return 4.0 * inside / n


def unit_ball_volume(dimension: int) -> float:
    r"""Volume :math:`\pi^{d/2} / \Gamma(d/2 + 1)` of the unit ball in :math:`\mathbb{R}^d`."""
    return float(np.pi ** (dimension / 2) / gamma(dimension / 2 + 1))


def pi_from_ball_volume(volume: float, dimension: int) -> float:
    r"""
    Invert the unit-ball volume formula for :math:`\pi`.

    For :math:`d = 2k`, :math:`V = \pi^k / k!`; for :math:`d = 2k + 1`,
    :math:`V = 2\,k!\,(4\pi)^k / d!`. Hence

    .. math::
       \pi = (V\,k!)^{1/k} \quad\text{or}\quad
       \pi = \frac{1}{4}\left(\frac{V\,d!}{2\,k!}\right)^{1/k}.
    """
    if dimension < 2:
        raise ConfigurationError("dimension must be >= 2")
    k = dimension // 2
    if dimension % 2 == 0:
        return (volume * math.factorial(k)) ** (1.0 / k)
    return ((volume * math.factorial(dimension)) / (2.0 * math.factorial(k))) ** (1.0 / k) / 4.0


class PiFromHypersphere(MonteCarloEvaluationsWithExactResult):
    r"""
    Estimate :math:`\pi` from the volume of the unit ball in :math:`d` dimensions.

    Each computation draws points uniformly in :math:`[-1, 1]^d`, estimates
    the ball volume as :math:`2^d` times the fraction inside, and maps it back
    to :math:`\pi` with :func:`pi_from_ball_volume`.

    Parameters
    ----------
    n_computations, n_drawings : int
        Number of estimates and points per estimate.
    dimension : int
        Dimension :math:`d \ge 2`.
    point_source : LowDiscrepancySource, optional
        Quasi-random points in :math:`[0, 1)^d`, e.g.
        :class:`~mcprocess.random_numbers.HaltonSource`. Each computation takes
        the next ``n_drawings`` points; without a source the points are
        pseudo-random.

    Notes
    -----
    The fraction of the cube filled by the ball, :math:`V_d / 2^d`, collapses
    quickly with :math:`d`, so the relative error grows with the dimension.
    """

    def __init__(
        self,
        n_computations: int,
        n_drawings: int,
        dimension: int,
        point_source: Optional[LowDiscrepancySource] = None,
    ):
        if dimension < 2:
            raise ConfigurationError("dimension must be >= 2")
        if point_source is not None and point_source.dimension != dimension:
            raise ConfigurationError(
                f"point source has dimension {point_source.dimension}, expected {dimension}"
            )
        super().__init__(n_computations, n_drawings, exact_result=math.pi, name=f"Pi from {dimension}-sphere")
        self.dimension = int(dimension)
        self.point_source = point_source

    def single_computation(self, _rng: Optional[Generator] = None) -> float:
        if self.point_source is not None:
            unit = self.point_source.next_points(self.n_drawings)
        else:
            unit = self._rng(_rng, self.rng).random((self.n_drawings, self.dimension))
        pts = 2.0 * unit - 1.0
        fraction = np.count_nonzero(np.sum(pts * pts, axis=1) <= 1.0) / self.n_drawings
        return pi_from_ball_volume(2.0**self.dimension * fraction, self.dimension)
