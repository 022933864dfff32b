"""
Monte Carlo validation of paired diagnostic sample sizes.

A sample size is only as good as the power it delivers. This module
simulates many cohorts under assumed true prevalence and sensitivities,
applies the exact McNemar test to each, and reports the share of trials
that reject the null hypothesis.
"""

from pairedsens.simulation._common import SimulationResult, ValidationReport
from pairedsens.simulation._montecarlo import simulate_power
from pairedsens.simulation._pipeline import cohort_size_for_pairs, validate_sample_size

__all__ = [
    "SimulationResult",
    "ValidationReport",
    "simulate_power",
    "cohort_size_for_pairs",
    "validate_sample_size",
]
