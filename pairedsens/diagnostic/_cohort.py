"""Synthetic cohorts for comparing two diagnostic tests.

Each subject is diseased with probability ``prevalence``. Diseased
subjects are tested by A and B independently, with the tests' sensitivities
as success probabilities; non-diseased subjects test negative on both
(perfect specificity).
"""

from __future__ import annotations

import numpy as np

from pairedsens.diagnostic._common import Cohort


def _check_probability(name: str, p: float) -> float:
    if not (0.0 <= p <= 1.0):
        raise ValueError(f"{name} must be in [0, 1], got {p}")
    return float(p)


def simulate_cohort(
    n: int,
    *,
    prevalence: float,
    sens_a: float,
    sens_b: float,
    rng: np.random.Generator | int | None = None,
) -> Cohort:
    """Draw a cohort of ``n`` independent subjects.

    Parameters
    ----------
    n : int
        Number of subjects (>= 0).
    prevalence : float
        P(disease), in [0, 1].
    sens_a, sens_b : float
        Sensitivities of tests A and B, in [0, 1].
    rng : Generator, int or None
        Random source. An int or ``None`` seeds a fresh
        ``numpy.random.default_rng``.

    Returns
    -------
    Cohort
    """
    prevalence = _check_probability("prevalence", prevalence)
    sens_a = _check_probability("sens_a", sens_a)
    sens_b = _check_probability("sens_b", sens_b)
    if int(n) != n or n < 0:
        raise ValueError(f"n must be a non-negative integer, got {n}")
    n = int(n)

    rng = np.random.default_rng(rng)

    true_positive = rng.binomial(1, prevalence, size=n).astype(bool)
    test_a = np.zeros(n, dtype=bool)
    test_b = np.zeros(n, dtype=bool)

    # Only the diseased are tested; everyone else stays negative on both.
    n_pos = int(np.count_nonzero(true_positive))
    if n_pos > 0:
        test_a[true_positive] = rng.binomial(1, sens_a, size=n_pos).astype(bool)
        test_b[true_positive] = rng.binomial(1, sens_b, size=n_pos).astype(bool)

    return Cohort(true_positive=true_positive, test_a=test_a, test_b=test_b)
