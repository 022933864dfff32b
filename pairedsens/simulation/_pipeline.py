"""Sample size calculation followed by its Monte Carlo check."""

from __future__ import annotations

import logging
import math

import numpy as np

from pairedsens.power import sample_size_mcnemar
from pairedsens.simulation._common import ValidationReport
from pairedsens.simulation._montecarlo import simulate_power

logger = logging.getLogger(__name__)


def cohort_size_for_pairs(n_pairs: int, prevalence: float) -> int:
    """Number of subjects expected to contain ``n_pairs`` true positives.

    ``ceil(n_pairs / prevalence)``.
    """
    if not (0.0 < prevalence <= 1.0):
        raise ValueError(f"prevalence must be in (0, 1], got {prevalence}")
    if n_pairs < 1:
        raise ValueError(f"n_pairs must be >= 1, got {n_pairs}")
    # Guard against 70 / 0.7 == 100.00000000000001.
    return math.ceil(n_pairs / prevalence - 1e-9)


def validate_sample_size(
    sens_a: float,
    sens_b: float,
    *,
    prevalence: float,
    alpha: float = 0.05,
    power: float = 0.80,
    alternative: str = "one.sided",
    discordance: float | None = None,
    n_sim: int = 1000,
    seed: int | np.random.SeedSequence | None = None,
    threads: int = 1,
    scale_by_prevalence: bool = True,
) -> ValidationReport:
    """Compute the minimum number of pairs and check its power by simulation.

    Parameters
    ----------
    sens_a, sens_b : float
        Assumed sensitivities of tests A and B, used both for the sample
        size calculation and as the true values in simulation.
    prevalence : float
        True P(disease) in the simulated cohorts.
    alpha, power : float
        Significance level and target power.
    alternative : str
        ``'one.sided'`` or ``'two.sided'``. A one-sided test is run in the
        direction of the more sensitive test.
    discordance : float or None
        Passed to :func:`pairedsens.power.sample_size_mcnemar`.
    n_sim : int
        Number of simulated trials.
    seed : int, SeedSequence or None
        Simulation seed.
    threads : int
        Worker threads for the simulation.
    scale_by_prevalence : bool
        The sample size counts diseased subjects (pairs). If ``True``
        the simulated cohort is inflated to ``ceil(n_pairs / prevalence)``
        subjects; otherwise ``n_pairs`` subjects are simulated.

    Returns
    -------
    ValidationReport
    """
    ss = sample_size_mcnemar(
        sens_a,
        sens_b,
        alpha=alpha,
        power=power,
        alternative=alternative,
        discordance=discordance,
    )
    n_pairs = ss.n_min
    if scale_by_prevalence:
        n_subjects = cohort_size_for_pairs(n_pairs, prevalence)
    else:
        n_subjects = n_pairs
    logger.info(
        f"Minimum sample size {n_pairs} pairs "
        f"(candidates {ss.candidates}); simulating {n_subjects} subjects per trial"
    )

    if alternative == "two.sided":
        test_alternative = "two.sided"
    else:
        test_alternative = "greater" if sens_a >= sens_b else "less"

    sim = simulate_power(
        n_subjects,
        prevalence=prevalence,
        sens_a=sens_a,
        sens_b=sens_b,
        alpha=alpha,
        n_sim=n_sim,
        alternative=test_alternative,
        seed=seed,
        threads=threads,
    )

    return ValidationReport(
        sample_size=ss,
        n_pairs=n_pairs,
        n_subjects=n_subjects,
        prevalence=prevalence,
        scaled=scale_by_prevalence,
        simulation=sim,
    )
