r"""
mcprocess.discrepancy
=====================

Uniformity measures of finite point sets in :math:`[0, 1]`.

For points :math:`x_1 \le \dots \le x_N` and an interval :math:`J`, let
:math:`A(J)` count the points in :math:`J`. The discrepancy and the star
discrepancy are

.. math::

   D_N = \sup_{0 \le a < b \le 1} \left|\frac{A([a, b])}{N} - (b - a)\right|,
   \qquad
   D_N^* = \sup_{0 < b \le 1} \left|\frac{A([0, b])}{N} - b\right| .

Both suprema are attained, or approached, at the points themselves, which is
what the functions below enumerate. Low-discrepancy sequences such as the Van
der Corput sequence reach :math:`D_N^* = O(\log N / N)`.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .exceptions import ConfigurationError

__all__ = ["discrepancy", "star_discrepancy"]


def _sorted_points(points: Iterable[float]) -> np.ndarray:
    arr = np.sort(np.asarray(points, dtype=float).ravel())
    if arr.size == 0:
        raise ConfigurationError("the point set is empty")
    if arr[0] < 0.0 or arr[-1] > 1.0:
        raise ConfigurationError("points must lie in [0,1]")
    return arr


def star_discrepancy(points: Iterable[float]) -> float:
    r"""
    Star discrepancy :math:`D_N^*` of a point set in :math:`[0, 1]`.

    Parameters
    ----------
    points : array_like
        The point set; not modified.

    Returns
    -------
    float

    Examples
    --------
    >>> star_discrepancy([0.125, 0.25, 0.5, 0.75])
    0.25
    """
    arr = _sorted_points(points)
    n = arr.size
    # a point at the origin is already inside the first closed interval
    closed = 1 if arr[0] != 0.0 else 2
    first = 0 if arr[0] != 0.0 else 1
    result = 0.0
    for x in arr[first:]:
        result = max(result, x - (closed - 1) / n, closed / n - x)
        closed += 1
    return float(result)


def _max_from_position(arr: np.ndarray, position: int) -> float:
    n = arr.size
    start = arr[position]
    n_open = 0
    n_closed = 2
    result = 0.0
    for x in arr[position + 1 :]:
        length = x - start
        result = max(result, length - n_open / n, n_closed / n - length)
        n_open += 1
        n_closed += 1
    if arr[-1] != 1.0:
        result = max(result, (1.0 - start) - n_open / n)
    return result


def discrepancy(points: Iterable[float]) -> float:
    r"""
    Discrepancy :math:`D_N` of a point set in :math:`[0, 1]`.

    Starts from the star discrepancy, which covers the intervals anchored at
    the origin, and scans the intervals opening at each point but the last.

    Examples
    --------
    >>> discrepancy([0.125, 0.25, 0.5, 0.75])
    0.375
    """
    arr = _sorted_points(points)
    result = star_discrepancy(arr)
    for position in range(arr.size - 1):
        result = max(result, _max_from_position(arr, position))
    return float(result)
