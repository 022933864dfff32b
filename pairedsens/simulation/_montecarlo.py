"""Monte Carlo estimate of the power of the exact McNemar test.

Each trial draws a fresh cohort, tabulates the true positives, and runs
the exact test. Every trial gets its own child ``SeedSequence`` spawned
from the batch seed, so results depend only on the seed and not on the
number of threads or the order in which trials finish.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

import numpy as np
from multiprocess.pool import ThreadPool

from pairedsens._utils import log_and_raise_error
from pairedsens.diagnostic import (
    DegenerateTableError,
    PairedCounts,
    mcnemar_test,
    paired_counts,
    simulate_cohort,
)
from pairedsens.simulation._common import SimulationResult

logger = logging.getLogger(__name__)

_VALID_ALTERNATIVES = ("two.sided", "less", "greater")


@dataclass(frozen=True)
class _TrialOutcome:
    status: str  # 'valid', 'degenerate' or 'failed'
    counts: PairedCounts
    p_value: float | None


def _run_trial(
    seed_seq: np.random.SeedSequence,
    *,
    n_subjects: int,
    prevalence: float,
    sens_a: float,
    sens_b: float,
    alternative: str,
    conf_level: float,
) -> _TrialOutcome:
    """Generate, tabulate and test one cohort."""
    rng = np.random.default_rng(seed_seq)
    cohort = simulate_cohort(
        n_subjects, prevalence=prevalence, sens_a=sens_a, sens_b=sens_b, rng=rng,
    )
    counts = paired_counts(cohort)

    try:
        result = mcnemar_test(counts, alternative=alternative, conf_level=conf_level)
    except DegenerateTableError:
        logger.debug(f"Trial {seed_seq.spawn_key} has no true positives; excluded")
        return _TrialOutcome("degenerate", counts, None)
    except (ValueError, FloatingPointError) as e:
        logger.error(f"Error while performing exact McNemar test: {e}")
        return _TrialOutcome("failed", counts, None)

    return _TrialOutcome("valid", counts, result.p_value)


def simulate_power(
    n_subjects: int,
    *,
    prevalence: float,
    sens_a: float,
    sens_b: float,
    alpha: float = 0.05,
    n_sim: int = 1000,
    alternative: str = "greater",
    conf_level: float = 0.95,
    seed: int | np.random.SeedSequence | None = None,
    threads: int = 1,
) -> SimulationResult:
    """Estimate the power of the exact McNemar test by simulation.

    Parameters
    ----------
    n_subjects : int
        Cohort size per trial, diseased and non-diseased together.
    prevalence : float
        True P(disease).
    sens_a, sens_b : float
        True sensitivities of tests A and B.
    alpha : float
        Significance level; a trial rejects when its p-value is < alpha.
    n_sim : int
        Number of trials.
    alternative : str
        Alternative passed to :func:`pairedsens.diagnostic.mcnemar_test`.
    conf_level : float
        Confidence level passed to the test.
    seed : int, SeedSequence or None
        Seed for the batch; ``None`` draws fresh OS entropy.
    threads : int
        Number of worker threads. Results do not depend on it.

    Returns
    -------
    SimulationResult
        Trials without true positives, and trials whose test raised, are
        excluded from the rejection rate and counted separately.
    """
    for name, p in (("prevalence", prevalence), ("sens_a", sens_a), ("sens_b", sens_b)):
        if not (0.0 <= p <= 1.0):
            log_and_raise_error(logger, f"{name} must be in [0, 1], got {p}")
    if not (0.0 < alpha < 1.0):
        log_and_raise_error(logger, f"alpha must be in (0, 1), got {alpha}")
    if alternative not in _VALID_ALTERNATIVES:
        log_and_raise_error(
            logger, f"alternative must be one of {_VALID_ALTERNATIVES}, got {alternative!r}"
        )
    if int(n_subjects) != n_subjects or n_subjects < 1:
        log_and_raise_error(logger, f"n_subjects must be a positive integer, got {n_subjects}")
    if int(n_sim) != n_sim or n_sim < 1:
        log_and_raise_error(logger, f"n_sim must be a positive integer, got {n_sim}")
    if threads < 1:
        log_and_raise_error(logger, f"threads must be >= 1, got {threads}")

    if isinstance(seed, np.random.SeedSequence):
        # spawn() advances the caller's sequence; work on a copy
        seed_seq = np.random.SeedSequence(
            seed.entropy, spawn_key=seed.spawn_key, pool_size=seed.pool_size,
        )
    else:
        seed_seq = np.random.SeedSequence(seed)
    children = seed_seq.spawn(int(n_sim))

    trial = partial(
        _run_trial,
        n_subjects=int(n_subjects),
        prevalence=prevalence,
        sens_a=sens_a,
        sens_b=sens_b,
        alternative=alternative,
        conf_level=conf_level,
    )

    logger.info(f"Simulating {n_sim} trials of {n_subjects} subjects")
    if threads == 1:
        outcomes = [trial(child) for child in children]
    else:
        with ThreadPool(processes=threads) as pool:
            outcomes = pool.map(trial, children)

    p_values = np.array(
        [o.p_value for o in outcomes if o.status == "valid"], dtype=np.float64,
    )
    tables = np.array(
        [(o.counts.a, o.counts.b, o.counts.c, o.counts.d) for o in outcomes],
        dtype=np.int64,
    ).reshape(-1, 4)
    n_degenerate = sum(o.status == "degenerate" for o in outcomes)
    n_failed = sum(o.status == "failed" for o in outcomes)
    n_valid = len(p_values)
    n_rejected = int(np.sum(p_values < alpha))

    if n_valid == 0:
        logger.warning("No valid trials; empirical power is undefined")
        rate = float("nan")
    else:
        rate = n_rejected / n_valid

    if n_degenerate or n_failed:
        logger.info(f"Excluded {n_degenerate} degenerate and {n_failed} failed trials")
    logger.info(f"Empirical power: {100.0 * rate:.1f}% over {n_valid} valid trials")

    return SimulationResult(
        p_values=p_values,
        tables=tables,
        n_sim=int(n_sim),
        n_valid=n_valid,
        n_degenerate=n_degenerate,
        n_failed=n_failed,
        n_rejected=n_rejected,
        rejection_rate=float(rate),
        n_subjects=int(n_subjects),
        alpha=alpha,
        alternative=alternative,
    )
