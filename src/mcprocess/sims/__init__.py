"""Evaluation catalog for :mod:`mcprocess`."""

from __future__ import annotations

from .integration import PowerFunctionIntegration
from .option_prices import OptionPriceEvaluations
from .pi import PiEstimation, PiFromHypersphere, pi_from_ball_volume, unit_ball_volume

__all__ = [
    "PiEstimation",
    "PiFromHypersphere",
    "PowerFunctionIntegration",
    "OptionPriceEvaluations",
    "unit_ball_volume",
    "pi_from_ball_volume",
]
