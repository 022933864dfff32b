"""
Paired comparison of two diagnostic tests on the same subjects.

Synthetic cohorts with known prevalence and sensitivities, matched-pairs
tabulation among true positives, the exact McNemar test for a difference
in sensitivity, and paired sensitivity estimates.

Validates against: R packages exact2x2, epiR.
"""

from pairedsens.diagnostic._common import (
    Subject,
    Cohort,
    PairedCounts,
    McNemarResult,
    PairedSensitivityResult,
    DegenerateTableError,
)
from pairedsens.diagnostic._cohort import simulate_cohort
from pairedsens.diagnostic._paired import paired_counts
from pairedsens.diagnostic._mcnemar import mcnemar_exact_test, mcnemar_test
from pairedsens.diagnostic._accuracy import paired_sensitivity

__all__ = [
    "Subject",
    "Cohort",
    "PairedCounts",
    "McNemarResult",
    "PairedSensitivityResult",
    "DegenerateTableError",
    "simulate_cohort",
    "paired_counts",
    "mcnemar_exact_test",
    "mcnemar_test",
    "paired_sensitivity",
]
