r"""
mcprocess.utils
===============

Critical values for confidence intervals.

The parametric intervals of :mod:`mcprocess.stats_engine` and
:meth:`mcprocess.core.EvaluationResult.result_to_string` pick either a normal
or a Student-:math:`t` critical value. :func:`autocrit` makes that choice from
the effective sample size.
"""

from __future__ import annotations

from scipy.stats import norm
from scipy.stats import t as student_t

from .exceptions import ConfigurationError

__all__ = ["z_crit", "t_crit", "autocrit"]

_T_THRESHOLD = 30  # below this many observations "auto" uses Student-t


def _check_confidence(confidence: float) -> None:
    if not 0.0 < confidence < 1.0:
        raise ConfigurationError("confidence must be in (0,1)")


def z_crit(confidence: float) -> float:
    r"""
    Two-sided normal critical value :math:`z_{1-\alpha/2}`.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.

    Returns
    -------
    float

    Examples
    --------
    >>> round(z_crit(0.95), 4)
    1.96
    """
    _check_confidence(confidence)
    return float(norm.ppf(0.5 * (1.0 + confidence)))


def t_crit(confidence: float, df: int) -> float:
    r"""
    Two-sided Student-:math:`t` critical value :math:`t_{1-\alpha/2,\,\nu}`.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    df : int
        Degrees of freedom :math:`\nu \ge 1`.

    Returns
    -------
    float
    """
    _check_confidence(confidence)
    if df < 1:
        raise ConfigurationError("df must be >= 1")
    return float(student_t.ppf(0.5 * (1.0 + confidence), df))


def autocrit(confidence: float, n: int, method: str = "auto") -> tuple[float, str]:
    r"""
    Select a critical value for a mean confidence interval.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    n : int
        Effective sample size.
    method : {"auto", "z", "t"}, default ``"auto"``
        ``"auto"`` uses Student-:math:`t` with ``n - 1`` degrees of freedom
        when ``n < 30`` and the normal value otherwise.

    Returns
    -------
    tuple of (float, str)
        The critical value and the resolved method (``"z"`` or ``"t"``).
    """
    method = getattr(method, "value", method)
    if method == "z":
        return z_crit(confidence), "z"
    if method == "t":
        return t_crit(confidence, max(1, n - 1)), "t"
    if method == "auto":
        if n < _T_THRESHOLD:
            return t_crit(confidence, max(1, n - 1)), "t"
        return z_crit(confidence), "z"
    raise ConfigurationError(f"Unknown ci method: {method}")
