r"""
mcprocess.confidence
====================

Confidence intervals for the sample mean of a random variable with known
moments.

For a sample of size :math:`n` from a variable with mean :math:`\mu` and
standard deviation :math:`\sigma`, both constructions have the form
:math:`\mu \pm h`:

* CLT, asymptotically exact:
  :math:`h = \dfrac{\sigma}{\sqrt{n}}\, z\!\left(\dfrac{1 + \ell}{2}\right)`.
* Chebyshev, valid for every :math:`n` and every distribution:
  :math:`h = \dfrac{\sigma}{\sqrt{n\,(1 - \ell)}}`.

:meth:`MeanConfidenceInterval.coverage_frequency` checks either construction
empirically: the CLT interval covers the sample mean about :math:`\ell` of
the time, the Chebyshev interval more often.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .exceptions import ConfigurationError
from .random_variables import RandomVariable, standard_normal_quantile

logger = logging.getLogger(__name__)

__all__ = [
    "ConfidenceInterval",
    "MeanConfidenceInterval",
    "CLTMeanConfidenceInterval",
    "ChebyshevMeanConfidenceInterval",
]

_BATCH_ELEMENTS = 1_000_000  # draws held in memory at once by coverage_frequency


@dataclass(frozen=True)
class ConfidenceInterval:
    """Closed interval ``[lower, upper]`` at confidence ``level``."""

    lower: float
    upper: float
    level: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def __contains__(self, value: float) -> bool:
        return self.lower <= value <= self.upper


def _check_level(level: float) -> None:
    if not 0.0 < level < 1.0:
        raise ConfigurationError("confidence level must be in (0,1)")


class MeanConfidenceInterval(ABC):
    r"""
    Interval for the sample mean of ``sample_size`` draws of ``random_variable``.

    Parameters
    ----------
    random_variable : RandomVariable
        Supplies the analytic mean and standard deviation, and the draws for
        :meth:`coverage_frequency`.
    sample_size : int
        Number of draws averaged, at least ``1``.
    """

    def __init__(self, random_variable: RandomVariable, sample_size: int):
        if sample_size < 1:
            raise ConfigurationError("sample_size must be positive")
        self.random_variable = random_variable
        self.sample_size = int(sample_size)

    @abstractmethod
    def half_width(self, level: float) -> float:
        """Distance from the analytic mean to either bound."""

    def lower_bound(self, level: float) -> float:
        return self.random_variable.analytic_mean() - self.half_width(level)

    def upper_bound(self, level: float) -> float:
        return self.random_variable.analytic_mean() + self.half_width(level)

    def interval(self, level: float) -> ConfidenceInterval:
        return ConfidenceInterval(self.lower_bound(level), self.upper_bound(level), level)

    def coverage_frequency(
        self,
        n_trials: int,
        level: float,
        rng: Optional[np.random.Generator] = None,
    ) -> float:
        r"""
        Fraction of ``n_trials`` sample means falling inside the interval.

        Parameters
        ----------
        n_trials : int
            Number of independent samples of size :attr:`sample_size`.
        level : float
            Confidence level in :math:`(0, 1)`.
        rng : numpy.random.Generator, optional
            Source of randomness; defaults to the random variable's generator.

        Returns
        -------
        float
            Empirical coverage in :math:`[0, 1]`.
        """
        if n_trials < 1:
            raise ConfigurationError("n_trials must be positive")
        bounds = self.interval(level)
        trials_per_batch = max(1, _BATCH_ELEMENTS // self.sample_size)
        covered = 0
        done = 0
        while done < n_trials:
            batch = min(trials_per_batch, n_trials - done)
            draws = self.random_variable.generate(rng, (batch, self.sample_size))
            means = draws.mean(axis=1)
            covered += int(np.count_nonzero((means >= bounds.lower) & (means <= bounds.upper)))
            done += batch
        frequency = covered / n_trials
        logger.debug(f"{type(self).__name__}: coverage {frequency:.4f} at level {level} over {n_trials} trials")
        return frequency


class CLTMeanConfidenceInterval(MeanConfidenceInterval):
    r"""
    Central-limit interval
    :math:`\mu \pm \frac{\sigma}{\sqrt{n}}\, z\!\left(\frac{1 + \ell}{2}\right)`,
    with :math:`z` from :func:`~mcprocess.random_variables.standard_normal_quantile`.

    Examples
    --------
    >>> from mcprocess.random_variables import ExponentialRandomVariable
    >>> ci = CLTMeanConfidenceInterval(ExponentialRandomVariable(0.2), 100_000)
    >>> 4.97 < ci.lower_bound(0.9) < 5.0 < ci.upper_bound(0.9) < 5.03
    True
    """

    def half_width(self, level: float) -> float:
        _check_level(level)
        z = standard_normal_quantile((1.0 + level) / 2.0)
        return self.random_variable.analytic_std() / np.sqrt(self.sample_size) * z


class ChebyshevMeanConfidenceInterval(MeanConfidenceInterval):
    r"""
    Chebyshev interval :math:`\mu \pm \frac{\sigma}{\sqrt{n\,(1 - \ell)}}`.

    By Chebyshev's inequality the sample mean lies outside with probability
    at most :math:`1 - \ell`, whatever the distribution.
    """

    def half_width(self, level: float) -> float:
        _check_level(level)
        return self.random_variable.analytic_std() / np.sqrt(self.sample_size * (1.0 - level))
