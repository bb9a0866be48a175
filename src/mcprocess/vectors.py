r"""
mcprocess.vectors
=================

Numerically careful operations on one-dimensional sample vectors.

This module provides:

* :func:`kahan_sum`, :func:`kahan_mean`, :func:`kahan_std` – compensated
  summation and the moments built on it.
* :func:`min_max` and :func:`build_histogram` with the
  :class:`HistogramResult` container.
* :func:`add`, :func:`subtract`, :func:`multiply`, :func:`divide` – elementwise
  algebra that refuses vectors of unequal length.
* :class:`SampleVector` – an immutable wrapper combining all of the above.

Compensated summation
---------------------

Summing millions of Monte Carlo outcomes naively lets rounding errors drift
into the leading digits. The sums here carry a running compensation term
(Kahan–Babuška/Neumaier form) so that

.. math::

   \texttt{kahan\_sum}([10^{16},\, 1,\, -10^{16}]) = 1

where a plain left-to-right loop returns ``0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Union

import numpy as np

from .exceptions import BoundsError, ConfigurationError, DimensionMismatchError


__all__ = [
    "kahan_sum",
    "kahan_mean",
    "kahan_std",
    "min_max",
    "HistogramResult",
    "build_histogram",
    "add",
    "subtract",
    "multiply",
    "divide",
    "SampleVector",
]


def _as_vector(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise ConfigurationError(f"expected a one-dimensional vector, got shape {arr.shape}")
    return arr


def kahan_sum(values: Iterable[float]) -> float:
    r"""
    Compensated sum of ``values``.

    Parameters
    ----------
    values : array_like
        One-dimensional sample.

    Returns
    -------
    float
        :math:`\sum_i x_i` with the accumulated rounding error added back.

    Notes
    -----
    The compensation term collects the low-order bits lost by every addition,
    whichever of the running total and the new term is larger in magnitude.

    Examples
    --------
    >>> kahan_sum([1e16, 1.0, -1e16])
    1.0
    """
    total = 0.0
    compensation = 0.0
    for value in _as_vector(values).tolist():
        partial = total + value
        if abs(total) >= abs(value):
            compensation += (total - partial) + value
        else:
            compensation += (value - partial) + total
        total = partial
    return total + compensation


def kahan_mean(values: Iterable[float]) -> float:
    r"""
    Arithmetic mean computed with :func:`kahan_sum`.

    Raises
    ------
    ConfigurationError
        If ``values`` is empty.
    """
    arr = _as_vector(values)
    if arr.size == 0:
        raise ConfigurationError("cannot average an empty vector")
    return kahan_sum(arr) / arr.size


def kahan_std(values: Iterable[float], ddof: int = 1) -> float:
    r"""
    Standard deviation from compensated sums of squared deviations.

    Parameters
    ----------
    values : array_like
        One-dimensional sample.
    ddof : int, default ``1``
        Delta degrees of freedom; ``1`` gives the unbiased variance estimator

        .. math::
           s^2 = \frac{1}{n-1}\sum_i (x_i - \bar X)^2 .

    Returns
    -------
    float
        ``0.0`` when ``n <= ddof``.
    """
    arr = _as_vector(values)
    if arr.size <= ddof:
        return 0.0
    mu = kahan_mean(arr)
    return float(np.sqrt(kahan_sum((arr - mu) ** 2) / (arr.size - ddof)))


def min_max(values: Iterable[float]) -> tuple[float, float]:
    """Return ``(min, max)`` of a non-empty vector."""
    arr = _as_vector(values)
    if arr.size == 0:
        raise ConfigurationError("min_max of an empty vector")
    return float(arr.min()), float(arr.max())


@dataclass(frozen=True)
class HistogramResult:
    r"""
    Bin counts with two outlier buckets.

    Attributes
    ----------
    bins : ndarray of int
        Read-only counts of length ``n_bins + 2``. Index ``0`` counts values
        below :attr:`min_bin`, index ``n_bins + 1`` values at or above
        :attr:`max_bin`; indices ``1..n_bins`` count the half-open bins
        :math:`[m + (k-1)h,\, m + kh)` with :math:`h` = :attr:`bin_width`.
    min_bin : float
        Left end of the first interior bin.
    max_bin : float
        Right end of the last interior bin.
    """

    bins: np.ndarray
    min_bin: float
    max_bin: float

    def __post_init__(self) -> None:
        bins = np.array(self.bins, dtype=np.int64)
        if bins.ndim != 1 or bins.size < 3:
            raise ConfigurationError("a histogram needs at least one interior bin and two outlier bins")
        if not self.max_bin > self.min_bin:
            raise ConfigurationError(f"max_bin ({self.max_bin}) must exceed min_bin ({self.min_bin})")
        bins.flags.writeable = False
        object.__setattr__(self, "bins", bins)
        object.__setattr__(self, "min_bin", float(self.min_bin))
        object.__setattr__(self, "max_bin", float(self.max_bin))

    @property
    def n_bins(self) -> int:
        return int(self.bins.size - 2)

    @property
    def bin_width(self) -> float:
        return (self.max_bin - self.min_bin) / self.n_bins

    @property
    def total(self) -> int:
        return int(self.bins.sum())

    @property
    def below(self) -> int:
        return int(self.bins[0])

    @property
    def above(self) -> int:
        return int(self.bins[-1])

    def bin_edges(self) -> np.ndarray:
        """Edges of the interior bins, ``n_bins + 1`` values from ``min_bin`` to ``max_bin``."""
        return np.linspace(self.min_bin, self.max_bin, self.n_bins + 1)

    def count(self, index: int) -> int:
        """Count stored at ``index`` in ``[0, n_bins + 1]``."""
        if not 0 <= index < self.bins.size:
            raise BoundsError(f"bin index {index} outside [0, {self.bins.size - 1}]")
        return int(self.bins[index])


def build_histogram(
    values: Iterable[float],
    min_bin: float,
    max_bin: float,
    n_bins: int,
) -> HistogramResult:
    r"""
    Count ``values`` into ``n_bins`` equal bins on ``[min_bin, max_bin)`` plus outliers.

    Parameters
    ----------
    values : array_like
        One-dimensional sample without NaNs.
    min_bin, max_bin : float
        Bounds of the interior bins; ``max_bin`` must exceed ``min_bin``.
    n_bins : int
        Number of interior bins, at least ``1``.

    Returns
    -------
    HistogramResult
        Counts summing to ``len(values)``.

    Raises
    ------
    ConfigurationError
        For ``n_bins < 1``, ``max_bin <= min_bin`` or NaN input.

    Examples
    --------
    >>> build_histogram([0.0, 0.5, 1.0, 2.0], 0.0, 1.0, 2).bins.tolist()
    [0, 1, 1, 2]
    """
    if n_bins < 1:
        raise ConfigurationError("n_bins must be >= 1")
    if not max_bin > min_bin:
        raise ConfigurationError(f"max_bin ({max_bin}) must exceed min_bin ({min_bin})")
    arr = _as_vector(values)
    if np.isnan(arr).any():
        raise ConfigurationError("cannot bin NaN values")

    width = (max_bin - min_bin) / n_bins
    index = np.empty(arr.size, dtype=np.int64)
    below = arr < min_bin
    above = arr >= max_bin
    inside = ~(below | above)
    index[below] = 0
    index[above] = n_bins + 1
    index[inside] = np.minimum(np.floor((arr[inside] - min_bin) / width).astype(np.int64) + 1, n_bins)
    counts = np.bincount(index, minlength=n_bins + 2)
    return HistogramResult(bins=counts, min_bin=min_bin, max_bin=max_bin)


def _paired(a: Iterable[float], b: Iterable[float]) -> tuple[np.ndarray, np.ndarray]:
    left, right = _as_vector(a), _as_vector(b)
    if left.size != right.size:
        raise DimensionMismatchError(f"vectors have different lengths: {left.size} and {right.size}")
    return left, right


def add(a: Iterable[float], b: Iterable[float]) -> np.ndarray:
    """Elementwise ``a + b`` for vectors of equal length."""
    left, right = _paired(a, b)
    return left + right


def subtract(a: Iterable[float], b: Iterable[float]) -> np.ndarray:
    """Elementwise ``a - b`` for vectors of equal length."""
    left, right = _paired(a, b)
    return left - right


def multiply(a: Iterable[float], b: Iterable[float]) -> np.ndarray:
    """Elementwise ``a * b`` for vectors of equal length."""
    left, right = _paired(a, b)
    return left * right


def divide(a: Iterable[float], b: Iterable[float]) -> np.ndarray:
    """Elementwise ``a / b`` for vectors of equal length; division by zero follows NumPy."""
    left, right = _paired(a, b)
    with np.errstate(divide="ignore", invalid="ignore"):
        return left / right


Operand = Union["SampleVector", float, int]


class SampleVector:
    r"""
    Immutable vector of realizations with compensated statistics.

    Arithmetic with another :class:`SampleVector` is elementwise and requires
    equal lengths; arithmetic with a scalar broadcasts.

    Examples
    --------
    >>> x = SampleVector([1.0, 2.0, 3.0])
    >>> (x * 2 + x).mean()
    6.0
    """

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[float]):
        arr = np.array(_as_vector(values), dtype=float)
        arr.flags.writeable = False
        self._values = arr

    @property
    def values(self) -> np.ndarray:
        return self._values

    def __len__(self) -> int:
        return int(self._values.size)

    def __iter__(self):
        return iter(self._values.tolist())

    def __getitem__(self, index: int) -> float:
        if not -len(self) <= index < len(self):
            raise BoundsError(f"index {index} outside a vector of length {len(self)}")
        return float(self._values[index])

    def __array__(self, dtype=None, copy=None):
        return np.array(self._values, dtype=dtype)

    def __repr__(self) -> str:
        return f"SampleVector(n={len(self)}, mean={self.mean() if len(self) else float('nan'):.6g})"

    def _combine(self, other: Any, op: Callable[[Any, Any], np.ndarray], reflected: bool = False) -> "SampleVector":
        if isinstance(other, SampleVector):
            left, right = (other._values, self._values) if reflected else (self._values, other._values)
            return SampleVector(op(left, right))
        if np.ndim(other) == 0:
            with np.errstate(divide="ignore", invalid="ignore"):
                if reflected:
                    return SampleVector(op(np.full(len(self), float(other)), self._values))
                return SampleVector(op(self._values, np.full(len(self), float(other))))
        return NotImplemented

    def __add__(self, other: Operand) -> "SampleVector":
        return self._combine(other, add)

    def __radd__(self, other: Operand) -> "SampleVector":
        return self._combine(other, add, reflected=True)

    def __sub__(self, other: Operand) -> "SampleVector":
        return self._combine(other, subtract)

    def __rsub__(self, other: Operand) -> "SampleVector":
        return self._combine(other, subtract, reflected=True)

    def __mul__(self, other: Operand) -> "SampleVector":
        return self._combine(other, multiply)

    def __rmul__(self, other: Operand) -> "SampleVector":
        return self._combine(other, multiply, reflected=True)

    def __truediv__(self, other: Operand) -> "SampleVector":
        return self._combine(other, divide)

    def __rtruediv__(self, other: Operand) -> "SampleVector":
        return self._combine(other, divide, reflected=True)

    def __neg__(self) -> "SampleVector":
        return SampleVector(-self._values)

    def apply(self, function: Callable[[np.ndarray], np.ndarray]) -> "SampleVector":
        """Return ``function`` applied to the values; ``function`` must be vectorized."""
        return SampleVector(function(self._values))

    def mean(self) -> float:
        return kahan_mean(self._values)

    def std(self, ddof: int = 1) -> float:
        return kahan_std(self._values, ddof=ddof)

    def min_max(self) -> tuple[float, float]:
        return min_max(self._values)

    def histogram(self, min_bin: float, max_bin: float, n_bins: int) -> HistogramResult:
        return build_histogram(self._values, min_bin, max_bin, n_bins)
