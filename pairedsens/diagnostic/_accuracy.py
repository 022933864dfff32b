"""Sensitivity of two tests measured on the same diseased subjects.

Sensitivities come with exact (Clopper-Pearson) or Wilson CIs computed
from the matched-pairs table; the difference is the point estimate tested
by :func:`pairedsens.diagnostic.mcnemar_test`.

Validates against: R ``epiR::epi.tests()``.
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from pairedsens.diagnostic._common import (
    DegenerateTableError,
    PairedCounts,
    PairedSensitivityResult,
)


# ---------------------------------------------------------------------------
# CI helpers for binomial proportions
# ---------------------------------------------------------------------------

def _clopper_pearson_ci(
    k: int, n: int, conf_level: float,
) -> tuple[float, float]:
    """Exact Clopper-Pearson CI for binomial proportion k/n."""
    alpha = 1 - conf_level
    if k == 0:
        lo = 0.0
        hi = 1.0 - (alpha / 2) ** (1.0 / n)
    elif k == n:
        lo = (alpha / 2) ** (1.0 / n)
        hi = 1.0
    else:
        lo = float(stats.beta.ppf(alpha / 2, k, n - k + 1))
        hi = float(stats.beta.ppf(1 - alpha / 2, k + 1, n - k))
    return lo, hi


def _wilson_ci(
    k: int, n: int, conf_level: float,
) -> tuple[float, float]:
    """Wilson score CI for binomial proportion k/n."""
    p_hat = k / n
    z = stats.norm.ppf((1 + conf_level) / 2)
    z2 = z ** 2
    denom = 1 + z2 / n
    centre = (p_hat + z2 / (2 * n)) / denom
    margin = z / denom * np.sqrt(p_hat * (1 - p_hat) / n + z2 / (4 * n ** 2))
    return float(centre - margin), float(centre + margin)


def _binomial_ci(
    k: int, n: int, conf_level: float, method: str,
) -> tuple[float, float]:
    """Dispatch to the requested CI method."""
    if method == "clopper-pearson":
        return _clopper_pearson_ci(k, n, conf_level)
    elif method == "wilson":
        return _wilson_ci(k, n, conf_level)
    else:
        raise ValueError(
            f"ci_method must be 'clopper-pearson' or 'wilson', got {method!r}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def paired_sensitivity(
    counts: PairedCounts,
    *,
    conf_level: float = 0.95,
    ci_method: str = "clopper-pearson",
) -> PairedSensitivityResult:
    """Sensitivities of tests A and B from a matched-pairs table.

    Parameters
    ----------
    counts : PairedCounts
        Table of test A against test B among true positives.
    conf_level : float
        Confidence level.
    ci_method : str
        ``'clopper-pearson'`` (exact) or ``'wilson'``.

    Returns
    -------
    PairedSensitivityResult

    Raises
    ------
    DegenerateTableError
        If the table holds no pairs.
    """
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")

    n = counts.n
    if n == 0:
        raise DegenerateTableError("Need at least one true-positive subject")

    pos_a = counts.a + counts.b
    pos_b = counts.a + counts.c

    sens_a = pos_a / n
    sens_b = pos_b / n

    return PairedSensitivityResult(
        sensitivity_a=float(sens_a),
        sensitivity_a_ci=_binomial_ci(pos_a, n, conf_level, ci_method),
        sensitivity_b=float(sens_b),
        sensitivity_b_ci=_binomial_ci(pos_b, n, conf_level, ci_method),
        difference=float(sens_a - sens_b),
        n=n,
        conf_level=conf_level,
        method=ci_method,
    )
