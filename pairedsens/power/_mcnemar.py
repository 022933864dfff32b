"""Power and sample size for McNemar's test of paired proportions.

Two routes are provided. ``power_mcnemar_test`` is the Connor (1987)
normal approximation, solved for n or power. ``power_mcnemar_exact``
computes the unconditional power of the exact conditional test used by
``pairedsens.diagnostic.mcnemar_exact_test``; ``sample_size_mcnemar``
searches it for the smallest adequate number of pairs.

Validates against: R MESS::power_mcnemar_test(), exact2x2::mcnemarExactDP()
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.stats import binom, norm

from pairedsens.power._common import (
    PowerResult,
    SampleSizeResult,
    _check_power_args,
    _check_proportion,
    _solve_parameter,
)

_VALID_ALTERNATIVES = ("two.sided", "less", "greater")
_VALID_SS_ALTERNATIVES = ("one.sided", "two.sided")


# ---------------------------------------------------------------------------
# Discordant-cell helpers
# ---------------------------------------------------------------------------

def _check_discordant_probs(p10: float | None, p01: float | None) -> tuple[float, float]:
    """Validate P(A+, B-) and P(A-, B+) as the off-diagonal cells of a 2x2 table."""
    if p10 is None or p01 is None:
        raise ValueError("p10 and p01 are always required")
    if not (0.0 <= p10 <= 1.0):
        raise ValueError(f"p10 must be in [0, 1], got {p10}")
    if not (0.0 <= p01 <= 1.0):
        raise ValueError(f"p01 must be in [0, 1], got {p01}")
    psi = p10 + p01
    if psi <= 0.0:
        raise ValueError("p10 + p01 must be > 0 (no discordant pairs possible)")
    if psi > 1.0:
        raise ValueError(f"p10 + p01 must be <= 1, got {psi}")
    if psi - (p10 - p01) ** 2 <= 0.0:
        raise ValueError("Discordant pairs must be possible in both directions")
    return float(p10), float(p01)


def _discordant_cells(
    p1: float, p2: float, discordance: float | None,
) -> tuple[float, float, float]:
    """Split the discordance between the two off-diagonal cells.

    Returns ``(p10, p01, psi)`` with ``p10 >= p01``, i.e. oriented so the
    test with the larger sensitivity is the one expected to come out ahead.
    Without an explicit ``discordance`` the two tests are taken to be
    conditionally independent given disease status.
    """
    hi, lo = max(p1, p2), min(p1, p2)
    delta = hi - lo
    psi_max = min(hi, 1.0 - lo) + min(lo, 1.0 - hi)

    if discordance is None:
        psi = hi * (1.0 - lo) + lo * (1.0 - hi)
    else:
        psi = float(discordance)
        if not (delta < psi <= psi_max + 1e-12):
            raise ValueError(
                f"discordance must be in ({delta:.6g}, {psi_max:.6g}] for "
                f"p1={p1}, p2={p2}, got {discordance}"
            )

    p10 = (psi + delta) / 2.0
    p01 = (psi - delta) / 2.0
    return p10, p01, psi


# ---------------------------------------------------------------------------
# Normal approximation (Connor 1987)
# ---------------------------------------------------------------------------

def _mcnemar_power_normal(
    n: float,
    p10: float,
    p01: float,
    alpha: float,
    alternative: str,
) -> float:
    """Connor's approximation to McNemar power.

    With psi = p10 + p01 and delta = p10 - p01 the discordance difference
    b - c is approximately N(n*delta, n*(psi - delta^2)), and
    Power = Phi((delta*sqrt(n) - z*sqrt(psi)) / sqrt(psi - delta^2)).
    """
    psi = p10 + p01
    delta = p10 - p01
    sd = math.sqrt(psi - delta ** 2)

    if alternative == "two.sided":
        z_crit = norm.ppf(1.0 - alpha / 2.0)
        upper = (abs(delta) * math.sqrt(n) - z_crit * math.sqrt(psi)) / sd
        lower = (-abs(delta) * math.sqrt(n) - z_crit * math.sqrt(psi)) / sd
        return float(norm.cdf(upper) + norm.cdf(lower))

    if alternative == "less":
        delta = -delta
    z_crit = norm.ppf(1.0 - alpha)
    return float(norm.cdf((delta * math.sqrt(n) - z_crit * math.sqrt(psi)) / sd))


def power_mcnemar_test(
    n: int | None = None,
    p10: float | None = None,
    p01: float | None = None,
    alpha: float = 0.05,
    power: float | None = None,
    alternative: str = "greater",
) -> PowerResult:
    """Power calculation for McNemar's test (normal approximation).

    Exactly one of ``n``, ``power`` must be ``None`` (``p10`` and ``p01``
    are always required).

    Parameters
    ----------
    n : int or None
        Number of matched pairs.
    p10 : float
        Probability that a pair is positive on test A and negative on B.
    p01 : float
        Probability that a pair is negative on test A and positive on B.
    alpha : float
        Significance level.
    power : float or None
        Desired power.
    alternative : str
        ``'two.sided'``, ``'less'``, or ``'greater'`` (A more sensitive
        than B).

    Returns
    -------
    PowerResult
        ``effect_size`` is the difference in sensitivities, ``p10 - p01``.

    Examples
    --------
    >>> r = power_mcnemar_test(p10=0.2214, p01=0.1314, power=0.80)
    >>> r.n  # ~268
    268

    Validates against: R MESS::power_mcnemar_test(method="normal")
    """
    if alternative not in _VALID_ALTERNATIVES:
        raise ValueError(
            f"alternative must be one of {_VALID_ALTERNATIVES}, got {alternative!r}"
        )
    p10, p01 = _check_discordant_probs(p10, p01)
    solve_for = _check_power_args(n=n, power=power, alpha=alpha)
    delta = p10 - p01

    if solve_for == "power":
        assert n is not None
        result_power = _mcnemar_power_normal(float(n), p10, p01, alpha, alternative)
        result_n = n

    else:  # solve_for == "n"
        assert power is not None
        directed = {"greater": delta, "less": -delta, "two.sided": abs(delta)}[alternative]
        if directed <= 0.0:
            raise ValueError(
                f"Cannot solve for n when p10 - p01 = {delta:.6g} "
                f"(no effect in the direction of alternative={alternative!r})"
            )
        if _mcnemar_power_normal(1.0, p10, p01, alpha, alternative) >= power:
            result_n = 1
        else:
            raw_n = _solve_parameter(
                func=lambda x: _mcnemar_power_normal(x, p10, p01, alpha, alternative),
                target=power,
                bracket=(1.0, 1e7),
            )
            result_n = math.ceil(raw_n)
        result_power = power

    return PowerResult(
        n=result_n,
        power=result_power,
        effect_size=delta,
        alpha=alpha,
        alternative=alternative,
        method="McNemar paired proportions power calculation (normal approximation)",
        note=f"n is number of pairs; p10 = {p10}, p01 = {p01}",
    )


# ---------------------------------------------------------------------------
# Exact power
# ---------------------------------------------------------------------------

def _upper_critical(m: NDArray, level: float) -> NDArray:
    """Per m, the smallest k with P(X > k) < level for X ~ Bin(m, 1/2).

    The one-sided 'greater' test rejects when x >= k + 1.
    """
    k = binom.ppf(1.0 - level, m, 0.5)
    k = np.where(binom.sf(k, m, 0.5) < level, k, k + 1)
    k = np.where((k >= 1) & (binom.sf(k - 1, m, 0.5) < level), k - 1, k)
    return k


def _lower_critical(m: NDArray, level: float) -> NDArray:
    """Per m, the largest j with P(X <= j) < level for X ~ Bin(m, 1/2).

    The one-sided 'less' test rejects when x <= j; j = -1 means never.
    """
    j = binom.ppf(level, m, 0.5) - 1
    j = np.where(binom.cdf(j + 1, m, 0.5) < level, j + 1, j)
    j = np.where((j >= 0) & (binom.cdf(j, m, 0.5) >= level), j - 1, j)
    return j


def _conditional_rejection(
    m_max: int,
    theta: float,
    alpha: float,
    alternative: str,
) -> NDArray:
    """P(reject | m) for m = 0..m_max, given X ~ Bin(m, theta).

    Index 0 is m = 0, which never rejects.
    """
    m = np.arange(1, m_max + 1, dtype=np.float64)

    if alternative == "greater":
        reject = binom.sf(_upper_critical(m, alpha), m, theta)
    elif alternative == "less":
        reject = binom.cdf(_lower_critical(m, alpha), m, theta)
    else:  # two.sided, central p-value
        reject = (
            binom.sf(_upper_critical(m, alpha / 2.0), m, theta)
            + binom.cdf(_lower_critical(m, alpha / 2.0), m, theta)
        )

    return np.concatenate(([0.0], reject))


def _unconditional_power(n: int, psi: float, reject: NDArray) -> float:
    """Sum P(M = m) * P(reject | m) over M ~ Bin(n, psi).

    Only m within 12 SD of n*psi are summed; the binomial mass outside is
    far below double precision.
    """
    mean = n * psi
    sd = math.sqrt(n * psi * (1.0 - psi))
    lo = max(1, math.floor(mean - 12.0 * sd))
    hi = min(n, math.ceil(mean + 12.0 * sd))
    m = np.arange(lo, hi + 1)
    return float(np.sum(binom.pmf(m, n, psi) * reject[lo:hi + 1]))


def _mcnemar_power_exact(
    n: int,
    p10: float,
    p01: float,
    alpha: float,
    alternative: str,
) -> float:
    """Unconditional power of the exact conditional McNemar test.

    Power = sum_m P(M = m) * P(reject | m), with M ~ Bin(n, psi) discordant
    pairs and, given m, X ~ Bin(m, p10/psi) pairs favouring test A.
    """
    psi = p10 + p01
    reject = _conditional_rejection(n, p10 / psi, alpha, alternative)
    return _unconditional_power(n, psi, reject)


def power_mcnemar_exact(
    n: int,
    p10: float,
    p01: float,
    alpha: float = 0.05,
    alternative: str = "greater",
) -> float:
    """Exact power of the conditional McNemar test for ``n`` pairs.

    Parameters
    ----------
    n : int
        Number of matched pairs (>= 1).
    p10, p01 : float
        Off-diagonal cell probabilities, as in :func:`power_mcnemar_test`.
    alpha : float
        Significance level; a trial rejects when its p-value is < alpha.
    alternative : str
        ``'two.sided'``, ``'less'``, or ``'greater'``.

    Returns
    -------
    float
        Probability that ``mcnemar_exact_test`` rejects H0: p10 = p01.
    """
    if alternative not in _VALID_ALTERNATIVES:
        raise ValueError(
            f"alternative must be one of {_VALID_ALTERNATIVES}, got {alternative!r}"
        )
    p10, p01 = _check_discordant_probs(p10, p01)
    if not (0.0 < alpha < 1.0):
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    if int(n) != n or n < 1:
        raise ValueError(f"n must be a positive integer, got {n}")
    return _mcnemar_power_exact(int(n), p10, p01, alpha, alternative)


# ---------------------------------------------------------------------------
# Sample size search
# ---------------------------------------------------------------------------

def sample_size_mcnemar(
    p1: float,
    p2: float,
    *,
    alpha: float = 0.05,
    power: float = 0.80,
    alternative: str = "one.sided",
    discordance: float | None = None,
    n_limit: int = 100_000,
) -> SampleSizeResult:
    """Number of true-positive pairs needed to compare two sensitivities.

    Searches the exact power of the conditional McNemar test pair by pair.
    Because that power saw-tooths in n, three candidates are returned:
    the first n reaching ``power``, the first n from which ``power`` is
    held through a look-ahead window of ``max(20, ceil(n_min / 4))`` pairs,
    and their midpoint.

    Parameters
    ----------
    p1, p2 : float
        Assumed sensitivities of the two tests, in (0, 1). The direction
        is taken from the data: the more sensitive test is the one
        hypothesised to be higher.
    alpha : float
        Significance level.
    power : float
        Target power.
    alternative : str
        ``'one.sided'`` or ``'two.sided'``.
    discordance : float or None
        P(tests disagree | diseased). Defaults to the value implied by
        conditional independence, ``p1*(1-p2) + p2*(1-p1)``.
    n_limit : int
        Largest number of pairs examined before giving up.

    Returns
    -------
    SampleSizeResult

    Raises
    ------
    ValueError
        On invalid input, or if the target power is not reached by
        ``n_limit`` pairs.

    Examples
    --------
    >>> r = sample_size_mcnemar(0.82, 0.73, alpha=0.05, power=0.80)
    >>> r.n_min <= r.n_mid <= r.n_max
    True
    """
    if alternative not in _VALID_SS_ALTERNATIVES:
        raise ValueError(
            f"alternative must be one of {_VALID_SS_ALTERNATIVES}, got {alternative!r}"
        )
    p1 = _check_proportion("p1", p1)
    p2 = _check_proportion("p2", p2)
    _check_power_args(n=None, power=power, alpha=alpha)
    if p1 == p2:
        raise ValueError("Cannot solve for n when p1 = p2 (no effect)")
    if n_limit < 1:
        raise ValueError(f"n_limit must be >= 1, got {n_limit}")

    p10, p01, psi = _discordant_cells(p1, p2, discordance)
    test_alternative = "greater" if alternative == "one.sided" else "two.sided"

    n_approx = power_mcnemar_test(
        p10=p10, p01=p01, alpha=alpha, power=power, alternative=test_alternative,
    ).n
    assert n_approx is not None

    # P(reject | m) depends on m only; grow it by doubling and reuse for every k
    theta = p10 / psi
    reject = _conditional_rejection(min(256, n_limit), theta, alpha, test_alternative)

    def exact(k: int) -> float:
        nonlocal reject
        if k >= len(reject):
            m_max = min(max(2 * (len(reject) - 1), k), n_limit)
            reject = _conditional_rejection(m_max, theta, alpha, test_alternative)
        return _unconditional_power(k, psi, reject)

    n_min = 1
    while exact(n_min) < power:
        n_min += 1
        if n_min > n_limit:
            raise ValueError(
                f"Cannot solve: power {power} not reached within n_limit={n_limit} pairs"
            )

    window = max(20, math.ceil(n_min / 4))
    n_max = n_min
    k = n_min + 1
    while k <= min(n_max + window, n_limit):
        if exact(k) < power:
            n_max = k + 1
        k += 1
    n_max = min(n_max, n_limit)
    n_mid = int(round((n_min + n_max) / 2))

    return SampleSizeResult(
        n_min=n_min,
        n_mid=n_mid,
        n_max=n_max,
        n_approx=n_approx,
        p1=p1,
        p2=p2,
        discordance=psi,
        alpha=alpha,
        power=power,
        alternative=alternative,
        method="McNemar exact test sample size calculation",
        note="n is number of matched pairs (true-positive subjects)",
    )
