"""Matched-pairs tabulation of two tests among diseased subjects."""

from __future__ import annotations

import numpy as np

from pairedsens.diagnostic._common import Cohort, PairedCounts


def paired_counts(cohort: Cohort) -> PairedCounts:
    """Tabulate test A against test B for the true-positive subjects.

    Parameters
    ----------
    cohort : Cohort
        Any object with boolean arrays ``true_positive``, ``test_a`` and
        ``test_b`` of equal length.

    Returns
    -------
    PairedCounts
        ``a + b + c + d`` equals the number of true positives.
    """
    true_positive = np.asarray(cohort.true_positive, dtype=bool)
    test_a = np.asarray(cohort.test_a, dtype=bool)[true_positive]
    test_b = np.asarray(cohort.test_b, dtype=bool)[true_positive]

    return PairedCounts(
        a=int(np.sum(test_a & test_b)),
        b=int(np.sum(test_a & ~test_b)),
        c=int(np.sum(~test_a & test_b)),
        d=int(np.sum(~test_a & ~test_b)),
    )
