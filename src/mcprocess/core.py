r"""

mcprocess.core
==============

Repeated Monte Carlo computations and their statistics.

This module provides:

* :class:`~mcprocess.core.MonteCarloEvaluations` – abstract base producing a
  lazily generated vector of independent computations.
* :class:`~mcprocess.core.MonteCarloEvaluationsWithExactResult` – adds the
  error against a known exact value.
* :class:`~mcprocess.core.EvaluationResult` – a lightweight summary container.
* :class:`~mcprocess.core.MonteCarloFramework` – registry + comparison of
  evaluations.

Each computation consumes ``n_drawings`` primitive draws and returns one number
(a price, an approximation of :math:`\pi`, an integral). Repeating it
``n_computations`` times shows how the estimator is distributed: its mean,
its standard deviation and, when the exact value is known, its average
absolute error

.. math::

   \frac{1}{N}\sum_{i=1}^{N} \left|\widehat{\theta}_i - \theta\right| .

Confidence intervals
--------------------

:meth:`MonteCarloEvaluations.summary` reports a 95% confidence interval for
the mean of the computations

.. math::

   \bar{X} \pm z_{\alpha/2}\,\frac{s}{\sqrt{n}}

or a t–critical value if requested via the stats engine.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

import numpy as np

from .exceptions import ConfigurationError
from .stats_engine import DEFAULT_ENGINE, StatsContext, StatsEngine
from .utils import autocrit
from .vectors import HistogramResult, build_histogram, kahan_mean, kahan_std, min_max

logger = logging.getLogger(__name__)  # pragma: no cover
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


@dataclass
class EvaluationResult:
    r"""
    Summary of the computations of one :class:`MonteCarloEvaluations`.

    Attributes
    ----------
    results : ndarray of float
        Read-only computations, length :attr:`n_computations`.
    n_computations : int
        Number of computations.
    n_drawings : int
        Primitive draws consumed by each computation.
    execution_time : float
        Wall-clock seconds spent generating the computations.
    mean : float
        Compensated sample mean :math:`\bar X`.
    std : float
        Compensated sample standard deviation with ``ddof=1``.
    percentiles : dict[int, float]
        Map of computed percentiles, e.g. ``{5: ..., 50: ..., 95: ...}``.
    stats : dict
        Additional statistics from the stats engine (e.g. ``"ci_mean"``).
    metadata : dict
        Freeform metadata: ``"evaluation_name"``, ``"timestamp"``,
        ``"seed_entropy"``, ``"exact_result"``.
    """

    results: np.ndarray
    n_computations: int
    n_drawings: int
    execution_time: float
    mean: float
    std: float
    percentiles: dict[int, float]
    stats: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def result_to_string(
        self,
        confidence: float = 0.95,
        method: str = "auto",
    ) -> str:
        r"""
        Human-readable summary of the result.

        Parameters
        ----------
        confidence : float, default ``0.95``
            Confidence level for the displayed CI.
        method : {"auto", "z", "t"}, default ``"auto"``
            Which critical value to use (``"auto"`` chooses based on ``n``).

        Returns
        -------
        str
            Multiline textual summary.
        """
        if evaluation_name := self.metadata.get("evaluation_name"):
            title = f"Results for evaluation '{evaluation_name}':"
        else:
            title = "Results for evaluation:"
        n = int(self.n_computations)
        crit, kind = autocrit(confidence, n, method)
        se = self.std / np.sqrt(max(1, n))
        lo = self.mean - crit * se
        hi = self.mean + crit * se
        lines = [
            "=" * 20 + " EVALUATION RESULTS " + "=" * 20,
            title,
            f"  Number of computations: {self.n_computations}",
            f"  Drawings per computation: {self.n_drawings}",
            f"  Execution time: {self.execution_time:.2f} seconds",
            f"  Mean: {self.mean:.5f}   (SE: {se:.5f}, "
            f"{int(confidence * 100)}% {kind}-CI: [{lo:.5f}, {hi:.5f}])",
            f"  Std Dev (sample): {self.std:.5f}",
        ]
        exact = self.metadata.get("exact_result")
        if exact is not None:
            lines.append(f"  Exact result: {exact:.5f}")
        if self.percentiles:
            lines.append("  Percentiles:")
        for p in sorted(self.percentiles):
            lines.append(f"    {p}th: {self.percentiles[p]:.5f}")
        if self.stats:
            lines.append("Additional Stats:")
        for k, v in self.stats.items():
            lines.append(f"  {k}: {v}")
        if self.metadata:
            lines.append("Metadata:")
        for k, v in self.metadata.items():
            lines.append(f"    {k}: {v}")
        lines.append("=" * 20 + " END " + "=" * 20)
        return "\n".join(lines)


class MonteCarloEvaluations(ABC):
    r"""
    Abstract base class for repeated Monte Carlo computations.

    Subclass this and implement :meth:`single_computation`. The computations
    are generated once, on the first call to :meth:`get_computations` (or any
    statistic built on it), and cached; a fresh instance is needed for a fresh
    sample.

    Parameters
    ----------
    n_computations : int
        Number of independent computations.
    n_drawings : int
        Primitive draws per computation.
    name : str, default ``"Evaluations"``
        Label used by :class:`MonteCarloFramework`.

    Quick example
    -------------
    >>> class Uniforms(MonteCarloEvaluations):
    ...     def single_computation(self, _rng=None):
    ...         rng = self._rng(_rng, self.rng)
    ...         return float(rng.random(self.n_drawings).mean())
    ...
    >>> ev = Uniforms(n_computations=100, n_drawings=1_000)
    >>> ev.set_seed(42)
    >>> 0.45 < ev.get_mean() < 0.55
    True
    """

    _PCTS = (5, 25, 50, 75, 95)  # Default percentiles for stats engine

    @staticmethod
    def _rng(
        rng: Optional[np.random.Generator],
        default: np.random.Generator | None = None,
    ) -> np.random.Generator:
        r"""
        Choose the RNG to use inside :meth:`single_computation`.

        >>> def single_computation(self, _rng=None):
        ...     rng = self._rng(_rng, self.rng)
        ...     return float(rng.normal())
        """
        return rng if rng is not None else default  # type: ignore[return-value]

    def __init__(self, n_computations: int, n_drawings: int, name: str = "Evaluations"):
        if n_computations < 1:
            raise ConfigurationError("n_computations must be positive")
        if n_drawings < 1:
            raise ConfigurationError("n_drawings must be positive")
        self.name = name
        self.n_computations = int(n_computations)
        self.n_drawings = int(n_drawings)
        self.seed_seq: Optional[np.random.SeedSequence] = None
        self.rng = np.random.default_rng()
        self.progress_callback: Optional[Callable[[int, int], None]] = None
        self._computations: Optional[np.ndarray] = None
        self._execution_time: Optional[float] = None

    @abstractmethod
    def single_computation(self, _rng: Optional[np.random.Generator] = None) -> float:
        r"""
        Perform one computation consuming :attr:`n_drawings` draws.

        Notes
        -----
        Subclasses must implement this method.
        """

    def set_seed(self, seed: int | None) -> None:
        r"""
        Seed the generator feeding :meth:`single_computation`.

        Parameters
        ----------
        seed : int or None
            Seed for :class:`numpy.random.SeedSequence`. ``None`` chooses entropy
            from the OS.

        Notes
        -----
        Seeding after the computations exist does not regenerate them.
        """
        if self._computations is not None:
            logger.warning(f"'{self.name}' is already computed; the new seed only affects new draws.")
        self.seed_seq = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_seq)

    @property
    def is_computed(self) -> bool:
        return self._computations is not None

    def _run_sequential(self) -> np.ndarray:
        """Compute every evaluation on a single thread, with optional progress."""
        results = np.empty(self.n_computations, dtype=float)
        step = max(1, self.n_computations // 100)
        for i in range(self.n_computations):
            results[i] = float(self.single_computation())
            if self.progress_callback and (((i + 1) % step == 0) or (i + 1 == self.n_computations)):
                self.progress_callback(i + 1, self.n_computations)
        return results

    def get_computations(self) -> np.ndarray:
        r"""
        The computations, generated on first access.

        Returns
        -------
        ndarray
            Read-only vector of length :attr:`n_computations`.
        """
        if self._computations is None:
            logger.info(f"Computing {self.n_computations} evaluations of '{self.name}' sequentially...")
            t0 = time.time()
            results = self._run_sequential()
            self._execution_time = time.time() - t0
            results.flags.writeable = False
            self._computations = results
        return self._computations

    def get_mean(self) -> float:
        """Compensated mean of the computations."""
        return kahan_mean(self.get_computations())

    def get_standard_deviation(self) -> float:
        """Compensated, unbiased standard deviation of the computations."""
        return kahan_std(self.get_computations(), ddof=1)

    def get_min_max(self) -> tuple[float, float]:
        return min_max(self.get_computations())

    def get_histogram(self, left_bound: float, right_bound: float, n_bins: int) -> HistogramResult:
        r"""
        Histogram of the computations on ``[left_bound, right_bound)``.

        Computations outside the bounds land in the two outlier bins.
        """
        return build_histogram(self.get_computations(), left_bound, right_bound, n_bins)

    def _context_fields(self) -> dict[str, Any]:
        """Extra :class:`StatsContext` fields contributed by the evaluation."""
        return {}

    def _metadata(self) -> dict[str, Any]:
        return {
            "evaluation_name": self.name,
            "timestamp": time.time(),
            "seed_entropy": self.seed_seq.entropy if self.seed_seq else None,
        }

    def summary(
        self,
        *,
        confidence: float = 0.95,
        ci_method: str = "auto",
        percentiles: Optional[Iterable[int]] = None,
        stats_engine: Optional[StatsEngine] = None,
        extra_context: Optional[Mapping[str, Any]] = None,
    ) -> EvaluationResult:
        r"""
        Generate (if needed) and summarize the computations.

        Parameters
        ----------
        confidence : float, default ``0.95``
            Confidence level for CI-related metrics.
        ci_method : {"auto","z","t"}, default ``"auto"``
            Which critical values the stats engine should use.
        percentiles : iterable of int, optional
            Percentiles to report; defaults to :attr:`_PCTS`.
        stats_engine : StatsEngine, optional
            Custom engine (defaults to :data:`mcprocess.stats_engine.DEFAULT_ENGINE`).
        extra_context : mapping, optional
            Extra :class:`~mcprocess.stats_engine.StatsContext` fields, e.g. ``eps``.

        Returns
        -------
        EvaluationResult
        """
        results = self.get_computations()
        pcts = tuple(int(p) for p in percentiles) if percentiles is not None else self._PCTS

        ctx_dict: dict[str, Any] = {
            "n": self.n_computations,
            "percentiles": pcts,
            "confidence": confidence,
            "ci_method": ci_method,
        }
        ctx_dict.update(self._context_fields())
        if extra_context:
            ctx_dict.update(dict(extra_context))
        ctx = StatsContext(**ctx_dict)

        eng = stats_engine or DEFAULT_ENGINE
        stats = eng.compute(results, ctx)
        percentile_map = {int(k): float(v) for k, v in (stats.pop("percentiles", None) or {}).items()}

        return EvaluationResult(
            results=results,
            n_computations=self.n_computations,
            n_drawings=self.n_drawings,
            execution_time=float(self._execution_time or 0.0),
            mean=self.get_mean(),
            std=self.get_standard_deviation(),
            percentiles=percentile_map,
            stats=stats,
            metadata=self._metadata(),
        )


class MonteCarloEvaluationsWithExactResult(MonteCarloEvaluations):
    r"""
    :class:`MonteCarloEvaluations` of a quantity whose exact value is known.

    Parameters
    ----------
    n_computations, n_drawings : int
        See :class:`MonteCarloEvaluations`.
    exact_result : float
        Exact value :math:`\theta` of the estimated quantity.
    name : str, optional
        Label used by :class:`MonteCarloFramework`.

    Notes
    -----
    The average absolute error shrinks like :math:`n_\text{drawings}^{-1/2}`
    for plain Monte Carlo, which makes it a convergence diagnostic.
    """

    def __init__(
        self,
        n_computations: int,
        n_drawings: int,
        exact_result: float,
        name: str = "Evaluations",
    ):
        super().__init__(n_computations, n_drawings, name=name)
        self.exact_result = float(exact_result)

    def get_absolute_errors(self) -> np.ndarray:
        r"""Elementwise :math:`|\widehat{\theta}_i - \theta|`."""
        return np.abs(self.get_computations() - self.exact_result)

    def get_average_absolute_error(self) -> float:
        return kahan_mean(self.get_absolute_errors())

    def _context_fields(self) -> dict[str, Any]:
        return {"target": self.exact_result}

    def _metadata(self) -> dict[str, Any]:
        meta = super()._metadata()
        meta["exact_result"] = self.exact_result
        return meta


class MonteCarloFramework:
    r"""
    Registry for named evaluations that runs and compares them.

    Examples
    --------
    >>> from mcprocess.sims import PiEstimation, PowerFunctionIntegration
    >>> framework = MonteCarloFramework()
    >>> framework.register_evaluation(PiEstimation(20, 1_000))
    >>> framework.register_evaluation(PowerFunctionIntegration(2.0, 20, 1_000))
    >>> _ = framework.run_evaluation("Pi Estimation")  # doctest: +SKIP
    >>> _ = framework.run_evaluation("Power Function Integration")  # doctest: +SKIP
    >>> framework.compare_results(["Pi Estimation", "Power Function Integration"], metric="abs_error")  # doctest: +SKIP
    """

    def __init__(self):
        self.evaluations: dict[str, MonteCarloEvaluations] = {}
        self.results: dict[str, EvaluationResult] = {}

    def register_evaluation(
        self,
        evaluation: MonteCarloEvaluations,
        name: Optional[str] = None,
    ):
        r"""
        Register an evaluation under ``name`` (defaults to :attr:`MonteCarloEvaluations.name`).
        """
        self.evaluations[name or evaluation.name] = evaluation

    def run_evaluation(self, name: str, **kwargs) -> EvaluationResult:
        r"""
        Summarize a registered evaluation by name.

        Parameters
        ----------
        name : str
            Key used in :meth:`register_evaluation`.
        **kwargs :
            Forwarded to :meth:`MonteCarloEvaluations.summary`.
        """
        if name not in self.evaluations:
            raise ConfigurationError(f"Evaluation '{name}' not found")
        res = self.evaluations[name].summary(**kwargs)
        self.results[name] = res
        return res

    def compare_results(
        self,
        names: list[str],
        metric: str = "mean",
    ) -> dict[str, float]:
        r"""
        Compare a metric across previously run evaluations.

        Parameters
        ----------
        names : list of str
            Evaluation names (must exist in :attr:`results`).
        metric : {"mean","std","var","se","abs_error","pX"}, default ``"mean"``
            Metric to extract. ``"abs_error"`` needs an exact result;
            ``"pX"`` requests the X-th percentile (e.g. ``"p95"``).

        Returns
        -------
        dict
            ``{name: value}`` pairs.
        """
        out: dict[str, float] = {}
        for name in names:
            if name not in self.results:
                raise ConfigurationError(f"No results found for evaluation '{name}'")
            r = self.results[name]
            if metric == "mean":
                out[name] = r.mean
            elif metric == "std":
                out[name] = r.std
            elif metric == "var":
                out[name] = r.std**2
            elif metric == "se":
                out[name] = r.std / np.sqrt(max(1, r.n_computations))
            elif metric == "abs_error":
                if "mean_absolute_error" not in r.stats:
                    raise ConfigurationError(f"Evaluation '{name}' has no exact result")
                out[name] = float(r.stats["mean_absolute_error"])
            elif metric.lower().startswith("p") and metric[1:].isdigit():
                p = int(metric[1:])
                if p not in r.percentiles:
                    raise ConfigurationError(f"Percentile {p} not computed")
                out[name] = r.percentiles[p]
            else:
                raise ConfigurationError(f"Unknown metric: {metric}")
        return out


__all__ = [
    "EvaluationResult",
    "MonteCarloEvaluations",
    "MonteCarloEvaluationsWithExactResult",
    "MonteCarloFramework",
]
