"""Shared data and result types for paired diagnostic test comparison."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


class DegenerateTableError(ValueError):
    """Raised when a paired table holds no true-positive subjects."""


@dataclass(frozen=True)
class Subject:
    """One simulated subject: disease status and two test outcomes."""

    true_positive: bool
    test_a_result: bool
    test_b_result: bool


@dataclass(frozen=True, eq=False)
class Cohort:
    """A cohort of subjects stored column-wise.

    Attributes
    ----------
    true_positive : array of bool
        Disease status per the reference standard.
    test_a, test_b : array of bool
        Outcomes of the two index tests. Both tests have perfect
        specificity in this model, so they are ``False`` wherever
        ``true_positive`` is ``False``.
    """

    true_positive: NDArray[np.bool_]
    test_a: NDArray[np.bool_]
    test_b: NDArray[np.bool_]

    def __post_init__(self) -> None:
        for name in ("true_positive", "test_a", "test_b"):
            arr = np.asarray(getattr(self, name), dtype=bool)
            if arr.ndim != 1:
                raise ValueError(f"{name} must be 1-D, got shape {arr.shape}")
            object.__setattr__(self, name, arr)

        n = len(self.true_positive)
        if len(self.test_a) != n or len(self.test_b) != n:
            raise ValueError(
                f"true_positive, test_a and test_b must have equal length, got "
                f"{n}, {len(self.test_a)}, {len(self.test_b)}"
            )
        if np.any((self.test_a | self.test_b) & ~self.true_positive):
            raise ValueError("test results must be negative for subjects without disease")

    def __len__(self) -> int:
        return len(self.true_positive)

    def __getitem__(self, i: int) -> Subject:
        return Subject(
            true_positive=bool(self.true_positive[i]),
            test_a_result=bool(self.test_a[i]),
            test_b_result=bool(self.test_b[i]),
        )

    def __iter__(self) -> Iterator[Subject]:
        for i in range(len(self)):
            yield self[i]

    @property
    def n_true_positive(self) -> int:
        """Number of diseased subjects, i.e. matched pairs available."""
        return int(np.count_nonzero(self.true_positive))


@dataclass(frozen=True)
class PairedCounts:
    """Matched-pairs 2x2 table among true-positive subjects.

    ::

                     test B +   test B -
        test A +        a          b
        test A -        c          d
    """

    a: int  # both positive
    b: int  # A positive, B negative
    c: int  # A negative, B positive
    d: int  # both negative

    def __post_init__(self) -> None:
        for name in ("a", "b", "c", "d"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    @property
    def n(self) -> int:
        """Total number of pairs."""
        return self.a + self.b + self.c + self.d

    @property
    def discordant(self) -> int:
        """Number of pairs on which the two tests disagree (b + c)."""
        return self.b + self.c

    def as_table(self) -> NDArray[np.int64]:
        """The counts as a 2x2 array, test A in rows, test B in columns."""
        return np.array([[self.a, self.b], [self.c, self.d]], dtype=np.int64)


@dataclass(frozen=True)
class McNemarResult:
    """Result of the exact McNemar test for a difference in paired proportions.

    Attributes
    ----------
    estimate : float
        Difference in proportions, (b - c) / n; for sensitivities this is
        sensitivity(A) - sensitivity(B).
    estimates : tuple of float
        The two discordant-cell proportions, b / n and c / n.
    p_value : float
        Exact p-value for the chosen alternative.
    ci : tuple of float
        Confidence interval for the difference. One-sided alternatives
        give a one-sided bound with the open end at +1 or -1.
    n, m, x : int
        Pairs, discordant pairs, and discordant pairs with A positive.
    """

    estimate: float
    estimates: tuple[float, float]
    p_value: float
    ci: tuple[float, float]
    null_diff: float
    alternative: str
    conf_level: float
    n: int
    m: int
    x: int
    method: str

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            self.method,
            "=" * 40,
            f"Pairs (n)      : {self.n}",
            f"Discordant (m) : {self.m}",
            f"A+/B- (x)      : {self.x}",
            f"Difference     : {self.estimate:.4f}",
            f"{self.conf_level:.0%} CI         : [{self.ci[0]:.4f}, {self.ci[1]:.4f}]",
            f"p-value        : {self.p_value:.4g}",
            f"Alternative    : difference {_ALT_SYMBOL[self.alternative]} {self.null_diff}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class PairedSensitivityResult:
    """Sensitivities of two tests measured on the same diseased subjects."""

    sensitivity_a: float
    sensitivity_a_ci: tuple[float, float]
    sensitivity_b: float
    sensitivity_b_ci: tuple[float, float]
    difference: float  # sensitivity_a - sensitivity_b
    n: int
    conf_level: float
    method: str  # CI method, e.g. 'clopper-pearson'

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "Paired Sensitivity",
            "=" * 40,
            f"Sensitivity A : {self.sensitivity_a:.4f}  "
            f"({self.conf_level:.0%} CI: {self.sensitivity_a_ci[0]:.4f}–{self.sensitivity_a_ci[1]:.4f})",
            f"Sensitivity B : {self.sensitivity_b:.4f}  "
            f"({self.conf_level:.0%} CI: {self.sensitivity_b_ci[0]:.4f}–{self.sensitivity_b_ci[1]:.4f})",
            f"Difference    : {self.difference:.4f}",
            f"n diseased    : {self.n}",
            f"CI method     : {self.method}",
        ]
        return "\n".join(lines)


_ALT_SYMBOL = {"two.sided": "!=", "less": "<", "greater": ">"}
