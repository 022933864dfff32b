"""
Sample size and power for paired comparisons of two diagnostic tests.

Every diagnostic accuracy study starts with "how many diseased subjects do
we need?" When both tests are applied to the same subjects, the comparison
of sensitivities is a McNemar test on the discordant pairs. This module
provides its normal-approximation power function and an exact sample size
search.

Validates against: R packages MESS, exact2x2.
"""

from pairedsens.power._common import PowerResult, SampleSizeResult
from pairedsens.power._mcnemar import (
    power_mcnemar_test,
    power_mcnemar_exact,
    sample_size_mcnemar,
)

__all__ = [
    "PowerResult",
    "SampleSizeResult",
    "power_mcnemar_test",
    "power_mcnemar_exact",
    "sample_size_mcnemar",
]
