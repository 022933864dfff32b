"""Shared result types and helpers for paired power/sample size calculations."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from scipy.optimize import brentq


@dataclass(frozen=True)
class PowerResult:
    """Result of a power/sample size calculation.

    Exactly one of n or power will have been solved for (the parameter
    passed as None). The others are the user-supplied inputs.
    """

    n: int | None
    power: float | None
    effect_size: float | None
    alpha: float
    alternative: str
    method: str
    note: str = ""

    def summary(self) -> str:
        """Human-readable summary, similar to R's print.power.htest."""
        lines = [self.method, ""]
        if self.n is not None:
            lines.append(f"              n = {self.n}")
        if self.effect_size is not None:
            lines.append(f"    effect size = {self.effect_size:.6f}")
        lines.append(f"          alpha = {self.alpha}")
        if self.power is not None:
            lines.append(f"          power = {self.power:.6f}")
        lines.append(f"    alternative = {self.alternative}")
        if self.note:
            lines.append("")
            lines.append(f"NOTE: {self.note}")
        return "\n".join(lines)


@dataclass(frozen=True)
class SampleSizeResult:
    """Exact sample size search for a paired (McNemar) comparison.

    The exact power of a McNemar test is not monotone in n; it saw-tooths.
    ``n_min`` is the first n reaching the target power, ``n_max`` the first
    n from which the target is held throughout the look-ahead window, and
    ``n_mid`` their midpoint. All three count matched *pairs*.

    Where the saw-tooth stays above the target once it is first reached,
    as it does for most one-sided designs, the three candidates coincide
    (e.g. ``(287, 287, 287)``); they separate only when the power dips
    back below the target after ``n_min``. ``n_approx``, from the normal
    approximation, is kept alongside as an independent reference point.
    """

    n_min: int
    n_mid: int
    n_max: int
    n_approx: int  # Connor normal approximation
    p1: float
    p2: float
    discordance: float  # P(A+, B-) + P(A-, B+)
    alpha: float
    power: float
    alternative: str
    method: str
    note: str = ""

    @property
    def candidates(self) -> tuple[int, int, int]:
        """Ordered ``(minimum, midpoint, maximum)`` sample sizes."""
        return (self.n_min, self.n_mid, self.n_max)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            self.method,
            "",
            f"    n (min, mid, max) = {self.n_min}, {self.n_mid}, {self.n_max}",
            f"       n (normal approx) = {self.n_approx}",
            f"             p1, p2 = {self.p1}, {self.p2}",
            f"        discordance = {self.discordance:.6f}",
            f"              alpha = {self.alpha}",
            f"              power = {self.power}",
            f"        alternative = {self.alternative}",
        ]
        if self.note:
            lines.append("")
            lines.append(f"NOTE: {self.note}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Shared validation
# ---------------------------------------------------------------------------

def _check_power_args(
    *,
    n: int | float | None,
    power: float | None,
    alpha: float,
) -> str:
    """Validate power-analysis inputs. Return the name of the parameter to solve for.

    Rules
    -----
    - Exactly one of *n*, *power* must be ``None``.
    - *alpha* must be in (0, 1).
    - If provided, *n* must be >= 1.
    - If provided, *power* must be in (0, 1).

    Returns
    -------
    str
        ``'n'`` or ``'power'`` — the parameter to solve for.

    Raises
    ------
    ValueError
        On any validation failure.
    """
    none_count = sum(x is None for x in (n, power))
    if none_count != 1:
        raise ValueError(
            f"Exactly one of n, power must be None (got {none_count} None values)"
        )

    if not (0.0 < alpha < 1.0):
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")

    if n is not None:
        if n < 1:
            raise ValueError(f"n must be >= 1, got {n}")

    if power is not None:
        if not (0.0 < power < 1.0):
            raise ValueError(f"power must be in (0, 1), got {power}")

    if n is None:
        return "n"
    return "power"


def _check_proportion(name: str, p: float | None) -> float:
    """Require an open-interval probability, as for assumed sensitivities."""
    if p is None:
        raise ValueError(f"{name} is required")
    if not (0.0 < p < 1.0):
        raise ValueError(f"{name} must be in (0, 1), got {p}")
    return float(p)


# ---------------------------------------------------------------------------
# Shared root-finding
# ---------------------------------------------------------------------------

def _solve_parameter(
    func: Callable[[float], float],
    target: float,
    bracket: tuple[float, float],
    *,
    xtol: float = 1e-10,
    maxiter: int = 1000,
) -> float:
    """Solve ``func(x) == target`` via Brent's method.

    Parameters
    ----------
    func : callable
        Monotonic function of one variable (e.g. computes power as f(n)).
    target : float
        Target value (e.g. desired power).
    bracket : tuple
        ``(lower, upper)`` bracket. ``func(lower) - target`` and
        ``func(upper) - target`` must have opposite signs.

    Returns
    -------
    float
        The solution *x* such that ``func(x) ≈ target``.

    Raises
    ------
    ValueError
        If the bracket does not straddle the target (no sign change).
    """
    lo, hi = bracket
    f_lo = func(lo) - target
    f_hi = func(hi) - target

    if f_lo * f_hi > 0:
        raise ValueError(
            f"Cannot solve: target {target:.6f} is outside achievable range "
            f"[{func(lo):.6f}, {func(hi):.6f}] for the given parameters. "
            f"Try different input values."
        )

    if f_lo == 0.0:
        return lo

    return brentq(lambda x: func(x) - target, lo, hi, xtol=xtol, maxiter=maxiter)
