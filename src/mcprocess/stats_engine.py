r"""
mcprocess.stats_engine
======================
Statistical metrics and the engine that summarizes Monte Carlo evaluations.

This module defines:

- :class:`StatsContext`: a typed, explicit configuration object shared by all metrics.
- :class:`FnMetric`: a frozen adapter that names a metric function.
- :class:`StatsEngine`: an orchestrator that evaluates one or more metrics.

Common metrics include :func:`mean`, :func:`std`, :func:`percentiles`,
:func:`skew`, :func:`kurtosis`, and confidence intervals such as
:func:`ci_mean` and :func:`ci_mean_chebyshev`. Means and standard deviations
use the compensated sums of :mod:`mcprocess.vectors`.

See Also
--------
mcprocess.utils.autocrit
    Selects a z/t critical value for a target confidence level and effective sample size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Protocol, Sequence, TypeVar

import numpy as np
from scipy.stats import kurtosis as sp_kurtosis
from scipy.stats import skew as sp_skew

from .exceptions import ConfigurationError
from .utils import autocrit
from .vectors import kahan_mean, kahan_std

# Local logger; core imports this module
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


_PCTS = (5, 25, 50, 75, 95)  # default percentiles


class NanPolicy(str, Enum):
    r"""
    Strategies for handling non-finite values.

    Attributes
    ----------
    propagate : str
        Keep NaNs and infinities in the sample.
    omit : str
        Drop non-finite observations before computing a metric.
    """

    propagate = "propagate"
    omit = "omit"


class CIMethod(str, Enum):
    r"""
    Strategies for selecting confidence-interval critical values.

    Attributes
    ----------
    auto : str
        Student-t when :math:`n_\text{eff} < 30`, otherwise z.
    z : str
        Always the normal :math:`z` critical value.
    t : str
        Always the Student-:math:`t` critical value.
    """

    auto = "auto"
    z = "z"
    t = "t"


@dataclass(slots=True)
class StatsContext:
    r"""
    Shared, explicit configuration for statistic and CI computations.

    Attributes
    ----------
    n : int
        Declared sample size (fallback when NaNs are not omitted).
    confidence : float, default 0.95
        Confidence level in :math:`(0, 1)`.
    ci_method : {"auto", "z", "t"}, default "auto"
        Strategy for :func:`ci_mean`.
    percentiles : tuple of int, default ``(5, 25, 50, 75, 95)``
        Percentiles to compute in :func:`percentiles`.
    nan_policy : {"propagate", "omit"}, default "propagate"
        If ``"omit"``, drop non-finite values before all computations.
    target : float, optional
        Exact value of the estimated quantity, for error metrics.
    eps : float, optional
        Tolerance used by Chebyshev sizing and Markov bounds.
    ddof : int, default 1
        Degrees of freedom for :func:`std` (1 => unbiased variance).
    ess : int, optional
        Effective sample size override.

    Notes
    -----
    Treat the context as immutable; :meth:`with_overrides` builds a modified copy.

    Examples
    --------
    >>> ctx = StatsContext(n=5000, confidence=0.95, ci_method=CIMethod.auto, nan_policy=NanPolicy.omit)
    >>> round(ctx.alpha, 2)
    0.05
    """

    n: int
    confidence: float = 0.95
    ci_method: CIMethod = "auto"
    percentiles: tuple[int, ...] = _PCTS
    nan_policy: NanPolicy = "propagate"
    target: Optional[float] = None
    eps: Optional[float] = None
    ddof: int = 1
    ess: Optional[int] = None

    def with_overrides(self, **changes) -> "StatsContext":
        """Return a shallow copy with selected fields replaced."""
        return replace(self, **changes)

    @property
    def alpha(self) -> float:
        r"""Two-sided tail mass :math:`\alpha = 1 - \text{confidence}`."""
        return 1.0 - self.confidence

    def eff_n(self, observed_len: int, finite_count: Optional[int] = None) -> int:
        r"""
        Effective sample size :math:`n_\text{eff}` used by CI calculations.

        Priority is:
        1) explicit :attr:`ess`; 2) count of finite values if ``nan_policy="omit"``;
        3) declared :attr:`n`; else ``observed_len``.
        """
        if self.ess is not None:
            return int(self.ess)
        if self.nan_policy == "omit" and finite_count is not None:
            return int(finite_count)
        return int(self.n or observed_len)

    def __post_init__(self) -> None:
        if not (0.0 < self.confidence < 1.0):
            raise ConfigurationError("confidence must be in (0,1)")
        if any(p < 0 or p > 100 for p in self.percentiles):
            raise ConfigurationError("percentiles must be in [0,100]")
        if self.ddof < 0:
            raise ConfigurationError("ddof must be >= 0")
        if self.eps is not None and self.eps <= 0:
            raise ConfigurationError("eps must be positive")
        if self.ci_method not in ("auto", "z", "t"):
            raise ConfigurationError(f"ci_method must be one of 'auto', 'z', 't', got '{self.ci_method}'")


class Metric(Protocol):
    r"""
    Protocol for metric callables used by :class:`StatsEngine`.

    A metric exposes a ``name`` attribute and is callable as
    ``metric(x: numpy.ndarray, ctx: StatsContext) -> Any``.
    """

    name: str

    def __call__(self, x: np.ndarray, ctx: StatsContext, /) -> Any: ...


T = TypeVar("T")


@dataclass(frozen=True)
class FnMetric(Generic[T]):
    r"""
    Binds a human-readable ``name`` to a metric function.

    Parameters
    ----------
    name : str
        Key under which the metric result is stored by :meth:`StatsEngine.compute`.
    fn : callable
        Function with signature ``fn(x: ndarray, ctx: StatsContext) -> T``.
    doc : str, optional
        Short description.

    Examples
    --------
    >>> m = FnMetric("mean", lambda a, ctx: float(np.mean(a)))
    >>> m(np.array([1, 2, 3]), StatsContext(n=3))
    2.0
    """

    name: str
    fn: Callable[[np.ndarray, StatsContext], T]
    doc: str = ""

    def __call__(self, x: np.ndarray, ctx: StatsContext) -> T:
        return self.fn(x, ctx)


class StatsEngine:
    r"""
    Orchestrator that evaluates a set of metrics over an input array.

    Parameters
    ----------
    metrics : iterable of Metric
        Callables with a ``name`` and signature ``metric(x, ctx)``.

    Notes
    -----
    Metrics needing a context field that is absent (``target``, ``eps``) are
    skipped silently; a metric failing for any other reason is logged and
    skipped.

    Examples
    --------
    >>> eng = StatsEngine([FnMetric("mean", mean), FnMetric("std", std)])
    >>> x = np.array([1., 2., 3.])
    >>> eng.compute(x, StatsContext(n=len(x)))
    {'mean': 2.0, 'std': 1.0}
    """

    def __init__(self, metrics: Iterable[Metric]):
        self._metrics = list(metrics)

    def available(self) -> tuple[str, ...]:
        return tuple(m.name for m in self._metrics)

    def compute(
        self,
        x: np.ndarray,
        ctx: Optional[StatsContext] = None,
        select: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        r"""
        Evaluate the registered metrics on ``x``.

        Parameters
        ----------
        x : ndarray
            Sample values.
        ctx : StatsContext, optional
            Context parameters. If None, one is built from ``**kwargs``.
        select : sequence of str, optional
            If given, compute only the metrics with these names.
        **kwargs :
            Fields of a :class:`StatsContext`; ``n`` defaults to ``len(x)``.

        Returns
        -------
        dict
            Mapping from metric name to computed value.
        """
        if ctx is not None:
            ctx = _ensure_ctx(ctx, x)
        else:
            base = dict(kwargs)
            base.setdefault("n", int(np.asarray(x).size))
            ctx = StatsContext(**base)

        metrics_to_compute = (
            self._metrics if select is None else [m for m in self._metrics if m.name in set(select)]
        )

        out: dict[str, Any] = {}
        for m in metrics_to_compute:
            try:
                result = m(x, ctx)
                if isinstance(result, dict) and len(result) == 0:
                    logger.debug(f"Metric '{m.name}' returned empty dict, skipping")
                    continue
                out[m.name] = result
            except ValueError as e:
                msg = str(e)
                if "requires ctx.target" in msg or "requires ctx.eps" in msg:
                    logger.debug(f"Skipping metric {m.name}: {msg}")
                    continue
                raise
            except Exception:
                logger.exception(f"Error computing metric {m.name}")
                continue

        return out


def _ensure_ctx(ctx: Any, x: np.ndarray) -> StatsContext:
    r"""
    Normalize a :class:`StatsContext`, mapping or ``None`` into a context.

    Raises
    ------
    TypeError
        If ``ctx`` cannot be interpreted as configuration data.
    """
    if isinstance(ctx, StatsContext):
        return ctx
    arr_len = int(np.asarray(x).size)
    if ctx is None:
        return StatsContext(n=arr_len)
    if isinstance(ctx, dict):
        data = dict(ctx)
        data.setdefault("n", arr_len)
        return StatsContext(**data)
    raise TypeError("ctx must be a StatsContext, dict or None")


def _clean(x: np.ndarray, ctx: StatsContext) -> tuple[np.ndarray, int]:
    """Return the sample filtered per ``ctx.nan_policy`` and its finite count."""
    arr = np.asarray(x, dtype=float)
    finite = np.isfinite(arr)
    if ctx.nan_policy == "omit":
        arr = arr[finite]
    elif ctx.nan_policy != "propagate":
        raise ConfigurationError(f"Unknown nan_policy: {ctx.nan_policy}")
    return arr, int(finite.sum())


def mean(x: np.ndarray, ctx: StatsContext | None = None) -> float:
    r"""
    Compensated sample mean :math:`\bar X = \frac{1}{n}\sum_i x_i`.

    Examples
    --------
    >>> mean(np.array([1e16, 1.0, -1e16])) * 3
    1.0
    """
    ctx = _ensure_ctx(ctx, x)
    arr, _ = _clean(x, ctx)
    return kahan_mean(arr) if arr.size else float("nan")


def std(x: np.ndarray, ctx: StatsContext | None = None) -> float:
    r"""
    Compensated sample standard deviation.

    Uses :attr:`StatsContext.ddof` (default 1), returning ``0.0`` when
    :math:`n_\text{eff} \le 1`.

    Examples
    --------
    >>> std(np.array([1, 2, 3]), {})
    1.0
    """
    ctx = _ensure_ctx(ctx, x)
    arr, finite = _clean(x, ctx)
    if ctx.eff_n(observed_len=arr.size, finite_count=finite) <= 1:
        return 0.0
    return kahan_std(arr, ddof=ctx.ddof)


def min_max(x: np.ndarray, ctx: StatsContext | None = None) -> dict[str, float]:
    """Smallest and largest observation as ``{"min": ..., "max": ...}``."""
    ctx = _ensure_ctx(ctx, x)
    arr, _ = _clean(x, ctx)
    if arr.size == 0:
        return {}
    return {"min": float(np.min(arr)), "max": float(np.max(arr))}


def percentiles(x: np.ndarray, ctx: StatsContext) -> dict[int, float]:
    r"""
    Empirical percentiles :math:`p \mapsto Q_p(x)` for :attr:`StatsContext.percentiles`.

    Examples
    --------
    >>> percentiles(np.array([0., 1., 2., 3.]), {"percentiles": (50, 75)})
    {50: 1.5, 75: 2.25}
    """
    ctx = _ensure_ctx(ctx, x)
    arr, _ = _clean(x, ctx)
    if arr.size == 0:
        return {p: float("nan") for p in ctx.percentiles}
    pct_values = np.percentile(arr, ctx.percentiles)
    return dict(zip(ctx.percentiles, map(float, pct_values)))


def skew(x: np.ndarray, ctx: StatsContext) -> float:
    """Unbiased sample skewness via :func:`scipy.stats.skew`; ``0.0`` for three or fewer points."""
    ctx = _ensure_ctx(ctx, x)
    arr, _ = _clean(x, ctx)
    return float(sp_skew(arr, bias=False)) if arr.size > 2 else 0.0  # type: ignore[arg-type]


def kurtosis(x: np.ndarray, ctx: StatsContext) -> float:
    """Unbiased excess kurtosis via :func:`scipy.stats.kurtosis`; ``0.0`` for four or fewer points."""
    ctx = _ensure_ctx(ctx, x)
    arr, _ = _clean(x, ctx)
    return float(sp_kurtosis(arr, fisher=True, bias=False)) if arr.size > 3 else 0.0  # type: ignore[arg-type]


def ci_mean(x: np.ndarray, ctx: StatsContext) -> dict[str, float | str]:
    r"""
    Parametric CI for :math:`\mathbb{E}[X]` using z/t critical values.

    .. math::
       \bar X \pm c \cdot \frac{s}{\sqrt{n_\text{eff}}},

    where :math:`c` is selected by :func:`mcprocess.utils.autocrit`.

    Returns
    -------
    dict[str, float | str]
        Keys ``confidence``, ``method``, ``low``, ``high`` and, when
        :math:`n_\text{eff} \ge 2`, ``se`` and ``crit``.
    """
    ctx = _ensure_ctx(ctx, x)
    arr, finite = _clean(x, ctx)
    n_eff = ctx.eff_n(observed_len=arr.size, finite_count=finite)
    if arr.size == 0 or n_eff < 2:
        return {
            "confidence": ctx.confidence,
            "method": getattr(ctx.ci_method, "value", ctx.ci_method),
            "low": float("nan"),
            "high": float("nan"),
        }

    mu = kahan_mean(arr)
    s = kahan_std(arr, ddof=ctx.ddof)
    se = s / np.sqrt(n_eff) if s > 0.0 else 0.0
    crit, method = autocrit(ctx.confidence, n_eff, ctx.ci_method)
    return {
        "confidence": ctx.confidence,
        "method": method,
        "se": float(se),
        "crit": float(crit),
        "low": float(mu - crit * se),
        "high": float(mu + crit * se),
    }


def ci_mean_chebyshev(x: np.ndarray, ctx: StatsContext) -> dict[str, float | str]:
    r"""
    Distribution-free CI for :math:`\mathbb{E}[X]` via Chebyshev's inequality.

    For :math:`\delta = 1 - \text{confidence}`,

    .. math::
       \bar X \pm \frac{s}{\sqrt{n_\text{eff}\,\delta}} .
    """
    ctx = _ensure_ctx(ctx, x)
    arr, finite = _clean(x, ctx)
    n_eff = ctx.eff_n(observed_len=arr.size, finite_count=finite)
    if arr.size == 0 or n_eff < 2:
        return {}
    mu = mean(x, ctx)
    half = std(x, ctx) / np.sqrt(n_eff * ctx.alpha)
    return {
        "confidence": ctx.confidence,
        "method": "chebyshev",
        "low": float(mu - half),
        "high": float(mu + half),
    }


def chebyshev_required_n(x: np.ndarray, ctx: StatsContext) -> int:
    r"""
    Smallest :math:`n` whose Chebyshev half-width is at most :math:`\varepsilon`.

    Solves :math:`n \ge s^2 / (\varepsilon^2 \delta)` with
    :math:`\delta = 1 - \text{confidence}`.

    Examples
    --------
    >>> chebyshev_required_n(np.array([1., 2., 3.]), {"eps": 0.5, "confidence": 0.75})
    16
    """
    ctx = _ensure_ctx(ctx, x)
    if ctx.eps is None:
        raise ConfigurationError("chebyshev_required_n requires ctx.eps")
    s = std(x, ctx)
    return int(np.ceil(s**2 / (float(ctx.eps) ** 2 * ctx.alpha)))


def markov_error_prob(x: np.ndarray, ctx: StatsContext) -> float:
    r"""
    Markov bound :math:`\Pr(|X - \theta| \ge \varepsilon) \le \mathbb{E}[(X-\theta)^2]/\varepsilon^2`.

    Requires :attr:`StatsContext.target` and :attr:`StatsContext.eps`.
    """
    ctx = _ensure_ctx(ctx, x)
    if ctx.target is None:
        raise ConfigurationError("markov_error_prob requires ctx.target")
    if ctx.eps is None:
        raise ConfigurationError("markov_error_prob requires ctx.eps")
    return mse_to_target(x, ctx) / (ctx.eps**2)


def bias_to_target(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Bias :math:`\bar X - \theta` of the sample mean against :attr:`StatsContext.target`."""
    ctx = _ensure_ctx(ctx, x)
    if ctx.target is None:
        raise ConfigurationError("bias_to_target requires ctx.target")
    return float(mean(x, ctx) - ctx.target)


def mse_to_target(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Mean squared error :math:`\frac{1}{n}\sum_i (x_i - \theta)^2`."""
    ctx = _ensure_ctx(ctx, x)
    if ctx.target is None:
        raise ConfigurationError("mse_to_target requires ctx.target")
    arr, _ = _clean(x, ctx)
    return kahan_mean((arr - ctx.target) ** 2) if arr.size else float("nan")


def mean_absolute_error(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Average absolute error :math:`\frac{1}{n}\sum_i |x_i - \theta|`."""
    ctx = _ensure_ctx(ctx, x)
    if ctx.target is None:
        raise ConfigurationError("mean_absolute_error requires ctx.target")
    arr, _ = _clean(x, ctx)
    return kahan_mean(np.abs(arr - ctx.target)) if arr.size else float("nan")


def build_default_engine(
    include_dist_free: bool = True,
    include_target_bounds: bool = True,
) -> StatsEngine:
    r"""
    Construct a :class:`StatsEngine` with a practical set of metrics.

    Parameters
    ----------
    include_dist_free : bool, default True
        Include Chebyshev-based CI and sizing.
    include_target_bounds : bool, default True
        Include the metrics measuring the error against ``ctx.target``.
    """
    metrics: list[Metric] = [
        FnMetric[float]("mean", mean, "Compensated sample mean"),
        FnMetric[float]("std", std, "Compensated sample standard deviation"),
        FnMetric[dict[str, float]]("min_max", min_max, "Smallest and largest value"),
        FnMetric[dict[int, float]]("percentiles", percentiles, "Percentiles over the sample"),
        FnMetric[float]("skew", skew, "Fisher skewness (unbiased)"),
        FnMetric[float]("kurtosis", kurtosis, "Excess kurtosis (unbiased)"),
        FnMetric[dict[str, float | str]]("ci_mean", ci_mean, "z/t CI for the mean"),
    ]
    if include_dist_free:
        metrics.extend(
            [
                FnMetric[dict[str, float | str]](
                    "ci_mean_chebyshev", ci_mean_chebyshev, "Chebyshev bound CI for the mean"
                ),
                FnMetric[int](
                    "chebyshev_required_n", chebyshev_required_n, "Required n under Chebyshev to reach eps"
                ),
            ]
        )
    if include_target_bounds:
        metrics.extend(
            [
                FnMetric[float]("markov_error_prob", markov_error_prob, "Markov bound P(|X-target|>=eps)"),
                FnMetric[float]("bias_to_target", bias_to_target, "Bias relative to target"),
                FnMetric[float]("mse_to_target", mse_to_target, "Mean squared error to target"),
                FnMetric[float]("mean_absolute_error", mean_absolute_error, "Average absolute error to target"),
            ]
        )
    return StatsEngine(metrics)


DEFAULT_ENGINE = build_default_engine(
    include_dist_free=True,
    include_target_bounds=True,
)

__all__ = [
    "NanPolicy",
    "CIMethod",
    "StatsContext",
    "Metric",
    "FnMetric",
    "StatsEngine",
    "mean",
    "std",
    "min_max",
    "percentiles",
    "skew",
    "kurtosis",
    "ci_mean",
    "ci_mean_chebyshev",
    "chebyshev_required_n",
    "markov_error_prob",
    "bias_to_target",
    "mse_to_target",
    "mean_absolute_error",
    "build_default_engine",
    "DEFAULT_ENGINE",
]
