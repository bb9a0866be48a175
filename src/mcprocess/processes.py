r"""
mcprocess.processes
===================

Discrete-time multiplicative processes driven by a congruential generator.

A process starts at :math:`S_0` on every path and evolves as

.. math::

   S_t^{(j)} = S_{t-1}^{(j)}\, F_{t-1}^{(j)}, \qquad t = 1, \dots, T,

where the factors :math:`F` are drawn from a model-specific transition rule.
The rules are a closed set of frozen dataclasses:

* :class:`BinomialModel` – factors ``up`` or ``down``.
* :class:`TrinomialModel` – factors ``up``, ``1`` or ``down``.

Both translate their risk-neutral probabilities into thresholds on the raw
draws of a :class:`~mcprocess.random_numbers.LinearCongruentialGenerator`, so
that a given seed reproduces the same paths bit for bit.
:class:`DiscreteProcessSimulator` builds the realization matrix lazily and
answers path, time-slice and average queries on it.

:class:`BrownianMotion` is the additive Gaussian counterpart: normal
increments on an equidistant grid, cached the same way.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.stats import binom, multinomial

from .exceptions import BoundsError, ConfigurationError
from .random_numbers import LinearCongruentialGenerator, check_seed
from .random_variables import NormalRandomVariable
from .vectors import SampleVector, kahan_mean

logger = logging.getLogger(__name__)

__all__ = ["BinomialModel", "TrinomialModel", "ProcessModel", "DiscreteProcessSimulator", "BrownianMotion"]


@dataclass(frozen=True)
class BinomialModel:
    r"""
    Binomial transition rule.

    Each step multiplies by ``up`` with risk-neutral probability

    .. math::
       p = \frac{1 + r - d}{u - d}

    and by ``down`` otherwise.

    Parameters
    ----------
    up : float
        Up factor :math:`u`.
    down : float
        Down factor :math:`0 < d < u`.
    interest_rate : float, default ``0.0``
        Per-period rate :math:`r`.

    Notes
    -----
    The model is arbitrage-free only when :math:`d < 1 + r < u`, i.e.
    :math:`0 < p < 1`. This is not enforced; see :attr:`is_arbitrage_free`.
    """

    up: float
    down: float
    interest_rate: float = 0.0

    def __post_init__(self) -> None:
        if self.down <= 0:
            raise ConfigurationError("down must be positive")
        if self.up <= self.down:
            raise ConfigurationError("up must exceed down")

    @property
    def probability_up(self) -> float:
        return (1.0 + self.interest_rate - self.down) / (self.up - self.down)

    @property
    def risk_neutral_probabilities(self) -> tuple[float, float]:
        """``(p_up, p_down)``."""
        p = self.probability_up
        return p, 1.0 - p

    @property
    def is_arbitrage_free(self) -> bool:
        return 0.0 < self.probability_up < 1.0

    def transition_factors(self, draws: np.ndarray, modulus: int) -> np.ndarray:
        r"""
        Map raw draws in :math:`[0, m)` to factors.

        A draw strictly below :math:`p\,(m - 1)` gives ``up``, anything else
        ``down``.
        """
        threshold = self.probability_up * (modulus - 1)
        return np.where(draws < threshold, self.up, self.down)

    def terminal_distribution(self, n_steps: int) -> tuple[np.ndarray, np.ndarray]:
        r"""
        Distribution of the product of ``n_steps`` factors under :math:`p`.

        Returns
        -------
        tuple of ndarray
            ``(factors, probabilities)`` with ``factors[k] = u**k * d**(n_steps - k)``.
        """
        k = np.arange(n_steps + 1)
        factors = self.up**k * self.down ** (n_steps - k)
        return factors, binom.pmf(k, n_steps, self.probability_up)


@dataclass(frozen=True)
class TrinomialModel:
    r"""
    Trinomial transition rule.

    Each step multiplies by ``up``, ``1`` or ``down`` with probabilities
    :math:`p_1`, :math:`p_2` and :math:`1 - p_1 - p_2`, where :math:`p_2` is
    ``probability_stay`` and

    .. math::
       p_1 = \frac{1 + r - d - p_2\,(1 - d)}{u - d}

    makes the discounted process a martingale.

    Parameters
    ----------
    up, down : float
        Factors with :math:`0 < d < u`.
    probability_stay : float
        Probability :math:`p_2 \in [0, 1]` of the flat move.
    interest_rate : float, default ``0.0``
        Per-period rate :math:`r`.
    """

    up: float
    down: float
    probability_stay: float
    interest_rate: float = 0.0

    def __post_init__(self) -> None:
        if self.down <= 0:
            raise ConfigurationError("down must be positive")
        if self.up <= self.down:
            raise ConfigurationError("up must exceed down")
        if not 0.0 <= self.probability_stay <= 1.0:
            raise ConfigurationError("probability_stay must be in [0,1]")

    @property
    def probability_up(self) -> float:
        r, u, d, p2 = self.interest_rate, self.up, self.down, self.probability_stay
        return (1.0 + r - d - p2 * (1.0 - d)) / (u - d)

    @property
    def probability_down(self) -> float:
        return 1.0 - self.probability_up - self.probability_stay

    @property
    def risk_neutral_probabilities(self) -> tuple[float, float, float]:
        """``(p_up, p_stay, p_down)``."""
        return self.probability_up, self.probability_stay, self.probability_down

    @property
    def is_arbitrage_free(self) -> bool:
        p_up, p_stay, p_down = self.risk_neutral_probabilities
        return 0.0 < p_up < 1.0 and 0.0 <= p_stay < 1.0 and 0.0 < p_down < 1.0

    def transition_factors(self, draws: np.ndarray, modulus: int) -> np.ndarray:
        r"""
        Map raw draws in :math:`[0, m)` to factors.

        With :math:`t_1 = p_1 (m - 1)` and :math:`t_2 = (p_1 + p_2)(m - 1)`:
        a draw below :math:`t_1` gives ``up``, a draw strictly above
        :math:`t_2` gives ``down`` and every draw in :math:`[t_1, t_2]` stays
        flat.
        """
        threshold_up = self.probability_up * (modulus - 1)
        threshold_not_down = (self.probability_up + self.probability_stay) * (modulus - 1)
        return np.where(draws < threshold_up, self.up, np.where(draws > threshold_not_down, self.down, 1.0))

    def terminal_distribution(self, n_steps: int) -> tuple[np.ndarray, np.ndarray]:
        """``(factors, probabilities)`` over every count of up and flat moves."""
        counts = np.array(
            [(k_up, k_stay, n_steps - k_up - k_stay) for k_up in range(n_steps + 1) for k_stay in range(n_steps + 1 - k_up)]
        )
        factors = self.up ** counts[:, 0] * self.down ** counts[:, 2]
        return factors, multinomial.pmf(counts, n_steps, self.risk_neutral_probabilities)


ProcessModel = Union[BinomialModel, TrinomialModel]


class DiscreteProcessSimulator:
    r"""
    Lazily simulated realizations of a discrete multiplicative process.

    Parameters
    ----------
    model : BinomialModel or TrinomialModel
        Transition rule.
    initial_value : float
        :math:`S_0`, shared by every path.
    n_simulations : int
        Number of paths (columns).
    last_time : int
        Final time index :math:`T`; the matrix has ``last_time + 1`` rows.
    seed : int, default ``1897``
        Seed of the underlying congruential generator.

    Notes
    -----
    The first query generates ``last_time * n_simulations`` draws, consumed
    time-outer and path-inner, and stores the realization matrix. Every later
    query reads the cached matrix; a fresh instance is needed for a fresh
    sample. All returned arrays are read-only.

    Examples
    --------
    >>> sim = DiscreteProcessSimulator(BinomialModel(1.5, 0.5), 100.0, n_simulations=4, last_time=3)
    >>> sim.get_realizations().shape
    (4, 4)
    >>> float(sim.get_realizations_at_time(0)[2])
    100.0
    """

    DEFAULT_SEED = 1897

    def __init__(
        self,
        model: ProcessModel,
        initial_value: float,
        n_simulations: int,
        last_time: int,
        seed: int = DEFAULT_SEED,
    ):
        if n_simulations < 1:
            raise ConfigurationError("n_simulations must be positive")
        if last_time < 0:
            raise ConfigurationError("last_time must be non-negative")
        self.model = model
        self.initial_value = float(initial_value)
        self.n_simulations = int(n_simulations)
        self.last_time = int(last_time)
        self.seed = check_seed(seed)
        self._transitions: Optional[np.ndarray] = None
        self._realizations: Optional[np.ndarray] = None

    @property
    def is_computed(self) -> bool:
        return self._realizations is not None

    def _generate(self) -> None:
        logger.info(f"Simulating {self.n_simulations} paths up to time {self.last_time} (seed {self.seed})...")
        generator = LinearCongruentialGenerator(self.last_time * self.n_simulations, self.seed)
        draws = generator.draws().reshape(self.last_time, self.n_simulations)
        transitions = self.model.transition_factors(draws, generator.get_modulus())

        stacked = np.vstack([np.full((1, self.n_simulations), self.initial_value), transitions])
        realizations = np.cumprod(stacked, axis=0)

        transitions.flags.writeable = False
        realizations.flags.writeable = False
        self._transitions = transitions
        self._realizations = realizations

    def get_realizations(self) -> np.ndarray:
        r"""
        Full realization matrix.

        Returns
        -------
        ndarray
            Shape ``(last_time + 1, n_simulations)``; row ``t`` holds
            :math:`S_t` for every path.
        """
        if self._realizations is None:
            self._generate()
        return self._realizations

    def _check_time(self, t: int) -> int:
        t = operator.index(t)
        if not 0 <= t <= self.last_time:
            raise BoundsError(f"time index {t} outside [0, {self.last_time}]")
        return t

    def get_realizations_at_time(self, t: int) -> np.ndarray:
        """Row ``t`` of the realization matrix, one value per path."""
        t = self._check_time(t)
        return self.get_realizations()[t]

    def get_path(self, path_index: int) -> np.ndarray:
        r"""Column ``path_index``: the trajectory :math:`S_0, \dots, S_T` of one path."""
        j = operator.index(path_index)
        if not 0 <= j < self.n_simulations:
            raise BoundsError(f"path index {j} outside [0, {self.n_simulations - 1}]")
        return self.get_realizations()[:, j]

    def get_average_at_time(self, t: int) -> float:
        """Compensated mean of :math:`S_t` over all paths."""
        return kahan_mean(self.get_realizations_at_time(t))

    def get_discounted_average_at_time(self, t: int) -> float:
        r"""
        :math:`\bar S_t / (1 + r)^t`.

        Under the risk-neutral probabilities this converges to :math:`S_0`.
        """
        return self.get_average_at_time(t) / (1.0 + self.model.interest_rate) ** t


class BrownianMotion:
    r"""
    Discretized one-dimensional Brownian motion on an equidistant grid.

    With :math:`\Delta` the time step, :math:`B_0 = 0` and

    .. math::

       B_{t_{i+1}} = B_{t_i} + \Delta B_i, \qquad \Delta B_i \sim \mathcal{N}(0, \Delta),

    so :math:`\mathbb{E}[B_t] = 0`, :math:`\operatorname{Var}(B_t) = t` and
    :math:`\mathbb{E}[B_s B_t] = \min(s, t)`.

    Parameters
    ----------
    time_step : float
        Grid spacing :math:`\Delta > 0`.
    n_steps : int
        Number of steps; the grid is :math:`0, \Delta, \dots, n\Delta`.
    n_paths : int
        Number of simulated paths.
    seed : int, optional
        Seed of the :class:`numpy.random.Generator` behind the increments;
        fresh entropy when omitted.

    Notes
    -----
    The increments come from
    :class:`~mcprocess.random_variables.NormalRandomVariable` by inversion.
    The path matrix is simulated on the first query and cached read-only.

    Examples
    --------
    >>> bm = BrownianMotion(0.01, n_steps=100, n_paths=5, seed=1)
    >>> bm.get_paths().shape
    (101, 5)
    >>> bm.get_process_at_time(0).mean()
    0.0
    """

    def __init__(self, time_step: float, n_steps: int, n_paths: int, seed: int | None = None):
        if not time_step > 0:
            raise ConfigurationError("time_step must be positive")
        if n_steps < 1:
            raise ConfigurationError("n_steps must be positive")
        if n_paths < 1:
            raise ConfigurationError("n_paths must be positive")
        self.time_step = float(time_step)
        self.n_steps = int(n_steps)
        self.n_paths = int(n_paths)
        self.final_time = self.n_steps * self.time_step
        self.seed_seq = np.random.SeedSequence(seed)
        self._paths: Optional[np.ndarray] = None

    @classmethod
    def from_final_time(
        cls, time_step: float, final_time: float, n_paths: int, seed: int | None = None
    ) -> "BrownianMotion":
        """Grid of as many whole steps of ``time_step`` as fit in ``final_time``."""
        if not time_step > 0:
            raise ConfigurationError("time_step must be positive")
        n_steps = int(np.floor(final_time / time_step + 1e-9))
        return cls(time_step, n_steps, n_paths, seed=seed)

    @property
    def is_computed(self) -> bool:
        return self._paths is not None

    def _generate(self) -> None:
        logger.info(f"Simulating {self.n_paths} Brownian paths over {self.n_steps} steps of {self.time_step}...")
        rng = np.random.default_rng(self.seed_seq)
        increments = NormalRandomVariable(0.0, np.sqrt(self.time_step)).generate(rng, (self.n_steps, self.n_paths))
        paths = np.vstack([np.zeros((1, self.n_paths)), np.cumsum(increments, axis=0)])
        paths.flags.writeable = False
        self._paths = paths

    def get_paths(self) -> np.ndarray:
        r"""
        Path matrix.

        Returns
        -------
        ndarray
            Shape ``(n_steps + 1, n_paths)``; row ``i`` holds :math:`B_{i\Delta}`
            for every path.
        """
        if self._paths is None:
            self._generate()
        return self._paths

    def get_process_at_time(self, t: int) -> SampleVector:
        """Realizations at time index ``t`` across all paths."""
        t = operator.index(t)
        if not 0 <= t <= self.n_steps:
            raise BoundsError(f"time index {t} outside [0, {self.n_steps}]")
        return SampleVector(self.get_paths()[t])

    def get_process_nearest_time(self, time: float) -> SampleVector:
        """Realizations at the grid point closest to ``time``."""
        return self.get_process_at_time(int(round(time / self.time_step)))

    def get_path(self, path_index: int) -> np.ndarray:
        """Trajectory of one path over the whole grid."""
        j = operator.index(path_index)
        if not 0 <= j < self.n_paths:
            raise BoundsError(f"path index {j} outside [0, {self.n_paths - 1}]")
        return self.get_paths()[:, j]
