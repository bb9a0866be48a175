"""mcprocess package public API."""

from .confidence import (
    ChebyshevMeanConfidenceInterval,
    CLTMeanConfidenceInterval,
    ConfidenceInterval,
)
from .core import (
    EvaluationResult,
    MonteCarloEvaluations,
    MonteCarloEvaluationsWithExactResult,
    MonteCarloFramework,
)
from .discrepancy import discrepancy, star_discrepancy
from .exceptions import (
    BoundsError,
    ConfigurationError,
    DimensionMismatchError,
    ExhaustionError,
    McProcessError,
)
from .experiments import PriceExperiments
from .payoffs import DigitalOption
from .processes import BinomialModel, BrownianMotion, DiscreteProcessSimulator, TrinomialModel
from .random_numbers import HaltonSource, LinearCongruentialGenerator
from .random_variables import ExponentialRandomVariable, NormalRandomVariable, standard_normal_quantile
from .sims import OptionPriceEvaluations, PiEstimation, PiFromHypersphere, PowerFunctionIntegration
from .stats_engine import DEFAULT_ENGINE, FnMetric, StatsContext, StatsEngine
from .utils import autocrit, t_crit, z_crit
from .vectors import HistogramResult, SampleVector, build_histogram, kahan_mean, kahan_std, kahan_sum

__all__ = [
    "LinearCongruentialGenerator",
    "HaltonSource",
    "BinomialModel",
    "TrinomialModel",
    "DiscreteProcessSimulator",
    "BrownianMotion",
    "DigitalOption",
    "PriceExperiments",
    "EvaluationResult",
    "MonteCarloEvaluations",
    "MonteCarloEvaluationsWithExactResult",
    "MonteCarloFramework",
    "PiEstimation",
    "PiFromHypersphere",
    "PowerFunctionIntegration",
    "OptionPriceEvaluations",
    "ExponentialRandomVariable",
    "NormalRandomVariable",
    "standard_normal_quantile",
    "ConfidenceInterval",
    "CLTMeanConfidenceInterval",
    "ChebyshevMeanConfidenceInterval",
    "discrepancy",
    "star_discrepancy",
    "HistogramResult",
    "SampleVector",
    "build_histogram",
    "kahan_sum",
    "kahan_mean",
    "kahan_std",
    "StatsEngine",
    "StatsContext",
    "FnMetric",
    "DEFAULT_ENGINE",
    "z_crit",
    "t_crit",
    "autocrit",
    "McProcessError",
    "ConfigurationError",
    "BoundsError",
    "DimensionMismatchError",
    "ExhaustionError",
]

__version__ = "0.1.0"
