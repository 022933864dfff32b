"""Exact McNemar test for a difference in paired proportions.

Conditional on the number of discordant pairs m, the number of pairs
positive on A only, x, is Binomial(m, theta). The difference in paired
proportions is d = (m/n)(2*theta - 1), so a null difference d0 maps to
theta0 = (1 + d0*n/m) / 2, and theta0 = 1/2 for the usual d0 = 0.
The confidence interval is the Clopper-Pearson interval for theta
mapped to the difference scale.

Validates against: R ``exact2x2::mcnemar.exact()``, ``stats::binom.test()``.
"""

from __future__ import annotations

from scipy import stats

from pairedsens.diagnostic._common import DegenerateTableError, McNemarResult, PairedCounts

_VALID_ALTERNATIVES = ("two.sided", "less", "greater")


def _theta_bounds(
    x: int, m: int, conf_level: float, alternative: str,
) -> tuple[float, float]:
    """Clopper-Pearson bounds for theta = P(A+ | discordant), one- or two-sided."""
    alpha = 1.0 - conf_level
    tail = alpha / 2.0 if alternative == "two.sided" else alpha

    lo, hi = 0.0, 1.0
    if alternative in ("two.sided", "greater") and x > 0:
        lo = float(stats.beta.ppf(tail, x, m - x + 1))
    if alternative in ("two.sided", "less") and x < m:
        hi = float(stats.beta.ppf(1.0 - tail, x + 1, m - x))
    return lo, hi


def mcnemar_exact_test(
    n: int,
    m: int,
    x: int,
    *,
    null_diff: float = 0.0,
    alternative: str = "greater",
    conf_level: float = 0.95,
) -> McNemarResult:
    """Exact test of the difference between two paired proportions.

    Parameters
    ----------
    n : int
        Number of matched pairs (>= 1).
    m : int
        Number of discordant pairs, ``0 <= m <= n``.
    x : int
        Discordant pairs positive on test A and negative on test B,
        ``0 <= x <= m``.
    null_diff : float
        Difference in proportions under H0, in (-1, 1).
    alternative : str
        ``'greater'`` (A's proportion exceeds B's by more than
        ``null_diff``), ``'less'``, or ``'two.sided'`` (central p-value).
    conf_level : float
        Confidence level of the interval for the difference.

    Returns
    -------
    McNemarResult

    Raises
    ------
    DegenerateTableError
        If ``n == 0``; the test is undefined without pairs.
    ValueError
        On any other invalid input.
    """
    if alternative not in _VALID_ALTERNATIVES:
        raise ValueError(
            f"alternative must be one of {_VALID_ALTERNATIVES}, got {alternative!r}"
        )
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")
    if not -1 < null_diff < 1:
        raise ValueError(f"null_diff must be in (-1, 1), got {null_diff}")
    for name, value in (("n", n), ("m", m), ("x", x)):
        if int(value) != value:
            raise ValueError(f"{name} must be an integer, got {value}")
    n, m, x = int(n), int(m), int(x)
    if n == 0:
        raise DegenerateTableError("No matched pairs (n = 0); the test is undefined")
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if not 0 <= m <= n:
        raise ValueError(f"m must be in [0, n={n}], got {m}")
    if not 0 <= x <= m:
        raise ValueError(f"x must be in [0, m={m}], got {x}")

    if m == 0:
        p_greater = p_less = 1.0
    else:
        theta0 = min(max((1.0 + null_diff * n / m) / 2.0, 0.0), 1.0)
        p_greater = float(stats.binom.sf(x - 1, m, theta0))
        p_less = float(stats.binom.cdf(x, m, theta0))

    if alternative == "greater":
        p_value = p_greater
    elif alternative == "less":
        p_value = p_less
    else:
        p_value = min(1.0, 2.0 * min(p_greater, p_less))

    theta_lo, theta_hi = _theta_bounds(x, m, conf_level, alternative)
    scale = m / n
    ci_lo = scale * (2.0 * theta_lo - 1.0) if alternative != "less" else -1.0
    ci_hi = scale * (2.0 * theta_hi - 1.0) if alternative != "greater" else 1.0

    return McNemarResult(
        estimate=(2 * x - m) / n,
        estimates=(x / n, (m - x) / n),
        p_value=p_value,
        ci=(float(ci_lo), float(ci_hi)),
        null_diff=float(null_diff),
        alternative=alternative,
        conf_level=conf_level,
        n=n,
        m=m,
        x=x,
        method="Exact McNemar test for difference in paired proportions",
    )


def mcnemar_test(
    counts: PairedCounts,
    *,
    null_diff: float = 0.0,
    alternative: str = "greater",
    conf_level: float = 0.95,
) -> McNemarResult:
    """Exact McNemar test on a matched-pairs table.

    Convenience wrapper around :func:`mcnemar_exact_test` with
    ``n = a + b + c + d``, ``m = b + c`` and ``x = b``; with the default
    ``alternative='greater'`` it tests whether test A is more sensitive
    than test B.
    """
    return mcnemar_exact_test(
        counts.n,
        counts.discordant,
        counts.b,
        null_diff=null_diff,
        alternative=alternative,
        conf_level=conf_level,
    )
