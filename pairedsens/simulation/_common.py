"""Shared result types for Monte Carlo validation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pairedsens.power._common import SampleSizeResult


@dataclass(frozen=True)
class SimulationResult:
    """Result of a Monte Carlo power simulation.

    Attributes
    ----------
    p_values : array
        p-values of the valid trials, in trial order.
    tables : array, shape ``(n_sim, 4)``
        Matched-pairs counts ``(a, b, c, d)`` of every trial, degenerate
        and failed trials included.
    n_valid, n_degenerate, n_failed : int
        Trials that produced a p-value, trials without a single true
        positive, and trials whose test raised.
    n_rejected : int
        Valid trials with p-value < alpha.
    rejection_rate : float
        ``n_rejected / n_valid``; NaN when no trial is valid.
    """

    p_values: NDArray[np.floating]
    tables: NDArray[np.integer]
    n_sim: int
    n_valid: int
    n_degenerate: int
    n_failed: int
    n_rejected: int
    rejection_rate: float
    n_subjects: int
    alpha: float
    alternative: str

    @property
    def percent(self) -> float:
        """Rejection rate as a percentage."""
        return 100.0 * self.rejection_rate

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "Monte Carlo Power Simulation",
            "=" * 40,
            f"Subjects per trial : {self.n_subjects}",
            f"Trials             : {self.n_sim}",
            f"Valid trials       : {self.n_valid}",
            f"Degenerate trials  : {self.n_degenerate}",
            f"Failed trials      : {self.n_failed}",
            f"alpha              : {self.alpha}",
            f"Alternative        : {self.alternative}",
            f"Rejections         : {self.n_rejected}",
            f"Empirical power    : {self.percent:.1f}%",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidationReport:
    """A sample size calculation checked against simulated trials."""

    sample_size: SampleSizeResult
    n_pairs: int
    n_subjects: int
    prevalence: float
    scaled: bool  # whether n_subjects was inflated for prevalence
    simulation: SimulationResult

    @property
    def target_power(self) -> float:
        return self.sample_size.power

    def within_tolerance(self, tol: float = 0.05) -> bool:
        """Whether the empirical power is within ``tol`` of the target."""
        return bool(abs(self.simulation.rejection_rate - self.target_power) <= tol)

    def summary(self) -> str:
        """One-sentence report of the sample size and its simulated power."""
        sim = self.simulation
        excluded = sim.n_degenerate + sim.n_failed
        sentence = (
            f"Minimum sample size: {self.n_pairs} true-positive pairs "
            f"(normal approximation {self.sample_size.n_approx}; "
            f"{self.n_subjects} subjects at prevalence {self.prevalence:.2f}); "
            f"{sim.percent:.1f}% of {sim.n_valid} simulated trials correctly "
            f"rejected the null hypothesis (target power {self.target_power:.0%})"
        )
        if excluded:
            sentence += f"; {excluded} trials excluded"
        return sentence + "."
