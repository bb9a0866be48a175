r"""
mcprocess.random_numbers
========================

Deterministic random sources.

* :class:`LinearCongruentialGenerator` – bounded, reproducible stream of
  natural numbers below :math:`2^{48}` driving the process simulators.
* :class:`HaltonSource` – low-discrepancy points for quasi-Monte Carlo,
  backed by :class:`scipy.stats.qmc.Halton`.

The congruential recurrence is

.. math::

   x_{i+1} = (a\,x_i + c) \bmod m, \qquad m = 2^{48},

with :math:`a = \texttt{0x5DEECE66D}` and :math:`c = 11` by default (the
constants of ``java.util.Random``).
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np
from scipy.stats import qmc

from .exceptions import ConfigurationError, ExhaustionError

logger = logging.getLogger(__name__)

__all__ = ["check_seed", "LinearCongruentialGenerator", "LowDiscrepancySource", "HaltonSource"]

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def check_seed(seed: int) -> int:
    """Return ``seed`` as an int, refusing values outside the signed 64-bit range."""
    seed = int(seed)
    if not _INT64_MIN <= seed <= _INT64_MAX:
        raise ConfigurationError("seed must fit in a signed 64-bit integer")
    return seed


class LinearCongruentialGenerator:
    r"""
    Linear congruential generator of a fixed number of draws.

    Parameters
    ----------
    n_numbers : int
        Number of draws available through :meth:`next_integer`.
    seed : int
        First element of the sequence; any signed 64-bit value.
    multiplier : int, default ``0x5DEECE66D``
        Multiplier :math:`a`.
    increment : int, default ``11``
        Increment :math:`c`.

    Notes
    -----
    The sequence ``[seed, x_1, ..., x_n]`` is generated once, on the first call
    to :meth:`get_random_number_sequence` or :meth:`next_integer`, and cached.
    Python integers never overflow, so the recurrence is reduced exactly; the
    result coincides with the overflow-corrected value a 64-bit implementation
    has to compute.

    Examples
    --------
    >>> lcg = LinearCongruentialGenerator(2, seed=0)
    >>> lcg.next_integer(), lcg.next_integer()
    (11, 277363943098)
    """

    MODULUS = 2**48
    MULTIPLIER = 0x5DEECE66D
    INCREMENT = 11

    def __init__(
        self,
        n_numbers: int,
        seed: int,
        multiplier: int = MULTIPLIER,
        increment: int = INCREMENT,
    ):
        if n_numbers < 0:
            raise ConfigurationError("n_numbers must be non-negative")
        self.n_numbers = int(n_numbers)
        self.seed = check_seed(seed)
        self.multiplier = int(multiplier)
        self.increment = int(increment)
        self._sequence: Optional[np.ndarray] = None
        self._index = 0

    @property
    def modulus(self) -> int:
        return self.MODULUS

    def get_modulus(self) -> int:
        """Modulus :math:`m` bounding every generated number."""
        return self.MODULUS

    @property
    def remaining(self) -> int:
        """Draws still available through :meth:`next_integer`."""
        return self.n_numbers - self._index

    def _generate(self) -> np.ndarray:
        logger.debug(f"Generating {self.n_numbers} congruential numbers from seed {self.seed}")
        a, c, m = self.multiplier, self.increment, self.MODULUS
        x = self.seed
        values = [x]
        for _ in range(self.n_numbers):
            x = (a * x + c) % m
            values.append(x)
        sequence = np.array(values, dtype=np.int64)
        sequence.flags.writeable = False
        return sequence

    def get_random_number_sequence(self) -> np.ndarray:
        r"""
        Return the whole sequence, seed first.

        Returns
        -------
        ndarray of int64
            Read-only array of length ``n_numbers + 1``.
        """
        if self._sequence is None:
            self._sequence = self._generate()
        return self._sequence

    def next_integer(self) -> int:
        r"""
        Return the next number of the sequence, starting after the seed.

        Raises
        ------
        ExhaustionError
            After ``n_numbers`` calls.
        """
        if self._index >= self.n_numbers:
            raise ExhaustionError(f"all {self.n_numbers} numbers of the generator have been consumed")
        sequence = self.get_random_number_sequence()
        self._index += 1
        return int(sequence[self._index])

    def next_uniform(self) -> float:
        """Next draw mapped to :math:`[0, 1)` by dividing by the modulus."""
        return self.next_integer() / self.MODULUS

    def draws(self) -> np.ndarray:
        """Every draw after the seed, as a read-only view."""
        return self.get_random_number_sequence()[1:]


class LowDiscrepancySource(Protocol):
    r"""
    Provider of successive points in :math:`[0, 1)^d`.

    Implementations hand out each point once; a fresh instance restarts the
    sequence.
    """

    dimension: int

    def next_points(self, n: int) -> np.ndarray: ...


class HaltonSource:
    r"""
    Unscrambled Halton sequence in ``dimension`` dimensions.

    The bases are the first ``dimension`` primes. The leading point of the
    sequence, the origin, is skipped by default.

    Parameters
    ----------
    dimension : int
        Dimension :math:`d \ge 1` of the points.
    skip : int, default ``1``
        Number of leading points to discard.

    Examples
    --------
    >>> np.allclose(HaltonSource(2).next_points(2), [[1 / 2, 1 / 3], [1 / 4, 2 / 3]])
    True
    """

    def __init__(self, dimension: int, skip: int = 1):
        if dimension < 1:
            raise ConfigurationError("dimension must be >= 1")
        if skip < 0:
            raise ConfigurationError("skip must be non-negative")
        self.dimension = int(dimension)
        self._engine = qmc.Halton(d=self.dimension, scramble=False)
        if skip:
            self._engine.fast_forward(skip)

    def next_points(self, n: int) -> np.ndarray:
        """Return the next ``n`` points as an ``(n, dimension)`` array."""
        if n < 0:
            raise ConfigurationError("n must be non-negative")
        return self._engine.random(n)

    def next_point(self) -> np.ndarray:
        """Return the next point as a length-``dimension`` array."""
        return self.next_points(1)[0]
