"""Tests for the exact McNemar test of paired proportions."""

import pytest
from scipy import stats

from pairedsens.diagnostic import (
    DegenerateTableError,
    McNemarResult,
    PairedCounts,
    mcnemar_exact_test,
    mcnemar_test,
)


# ---------------------------------------------------------------------------
# Basic
# ---------------------------------------------------------------------------

class TestMcNemarExactTest:
    """Basic behaviour of the exact test."""

    def test_returns_result(self):
        r = mcnemar_exact_test(50, 10, 8)
        assert isinstance(r, McNemarResult)

    def test_estimate(self):
        """(b - c) / n with b = x, c = m - x."""
        r = mcnemar_exact_test(50, 10, 8)
        assert r.estimate == pytest.approx((8 - 2) / 50)
        assert r.estimates == pytest.approx((8 / 50, 2 / 50))

    @pytest.mark.parametrize("m,x", [(10, 8), (20, 10), (25, 3), (7, 7)])
    def test_greater_matches_binomtest(self, m, x):
        r = mcnemar_exact_test(60, m, x, alternative="greater")
        expected = stats.binomtest(x, m, 0.5, alternative="greater").pvalue
        assert r.p_value == pytest.approx(expected, rel=1e-10)

    @pytest.mark.parametrize("m,x", [(10, 2), (20, 10), (25, 22)])
    def test_less_matches_binomtest(self, m, x):
        r = mcnemar_exact_test(60, m, x, alternative="less")
        expected = stats.binomtest(x, m, 0.5, alternative="less").pvalue
        assert r.p_value == pytest.approx(expected, rel=1e-10)

    def test_two_sided_is_doubled_tail(self):
        r = mcnemar_exact_test(60, 20, 15, alternative="two.sided")
        one = mcnemar_exact_test(60, 20, 15, alternative="greater")
        assert r.p_value == pytest.approx(2 * one.p_value)

    def test_two_sided_capped_at_one(self):
        r = mcnemar_exact_test(60, 20, 10, alternative="two.sided")
        assert r.p_value == 1.0

    def test_p_value_in_01(self):
        for x in range(0, 13):
            r = mcnemar_exact_test(40, 12, x)
            assert 0.0 <= r.p_value <= 1.0

    def test_strong_effect_small_p(self):
        r = mcnemar_exact_test(200, 40, 35)
        assert r.p_value < 0.001

    def test_no_discordant_pairs(self):
        r = mcnemar_exact_test(30, 0, 0)
        assert r.p_value == 1.0
        assert r.estimate == 0.0

    def test_null_diff_raises_p(self):
        """A positive null difference is harder to exceed."""
        r0 = mcnemar_exact_test(100, 30, 20, null_diff=0.0)
        r1 = mcnemar_exact_test(100, 30, 20, null_diff=0.05)
        assert r1.p_value > r0.p_value

    def test_summary(self):
        s = mcnemar_exact_test(50, 10, 8).summary()
        assert "Exact McNemar" in s
        assert "p-value" in s


# ---------------------------------------------------------------------------
# Confidence intervals
# ---------------------------------------------------------------------------

class TestCI:
    """Clopper-Pearson interval on the difference scale."""

    def test_greater_is_lower_bound(self):
        r = mcnemar_exact_test(50, 10, 8, alternative="greater")
        assert r.ci[1] == 1.0
        assert r.ci[0] <= r.estimate

    def test_less_is_upper_bound(self):
        r = mcnemar_exact_test(50, 10, 8, alternative="less")
        assert r.ci[0] == -1.0
        assert r.ci[1] >= r.estimate

    def test_two_sided_contains_estimate(self):
        r = mcnemar_exact_test(50, 10, 8, alternative="two.sided")
        assert r.ci[0] <= r.estimate <= r.ci[1]

    def test_lower_bound_value(self):
        r = mcnemar_exact_test(50, 10, 8, alternative="greater", conf_level=0.95)
        theta_lo = stats.beta.ppf(0.05, 8, 3)
        assert r.ci[0] == pytest.approx((10 / 50) * (2 * theta_lo - 1))

    @pytest.mark.parametrize("x", range(0, 21))
    def test_bound_agrees_with_test(self, x):
        """The one-sided bound excludes 0 exactly when p < 1 - conf_level."""
        r = mcnemar_exact_test(40, 20, x, alternative="greater", conf_level=0.95)
        assert (r.ci[0] > 0) == (r.p_value < 0.05)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestErrors:
    """Invalid and degenerate input."""

    def test_no_pairs(self):
        with pytest.raises(DegenerateTableError):
            mcnemar_exact_test(0, 0, 0)

    def test_no_pairs_is_value_error(self):
        with pytest.raises(ValueError, match="n = 0"):
            mcnemar_test(PairedCounts(0, 0, 0, 0))

    def test_x_above_m(self):
        with pytest.raises(ValueError, match="x must be"):
            mcnemar_exact_test(20, 5, 6)

    def test_m_above_n(self):
        with pytest.raises(ValueError, match="m must be"):
            mcnemar_exact_test(20, 21, 3)

    def test_invalid_alternative(self):
        with pytest.raises(ValueError, match="alternative"):
            mcnemar_exact_test(20, 5, 3, alternative="bigger")

    def test_invalid_conf_level(self):
        with pytest.raises(ValueError, match="conf_level"):
            mcnemar_exact_test(20, 5, 3, conf_level=1.5)

    def test_invalid_null_diff(self):
        with pytest.raises(ValueError, match="null_diff"):
            mcnemar_exact_test(20, 5, 3, null_diff=1.0)


# ---------------------------------------------------------------------------
# Table wrapper
# ---------------------------------------------------------------------------

class TestMcNemarTest:
    """mcnemar_test on a PairedCounts table."""

    def test_matches_exact(self):
        t = PairedCounts(a=40, b=12, c=4, d=9)
        r = mcnemar_test(t)
        expected = mcnemar_exact_test(65, 16, 12)
        assert r == expected

    def test_direction(self):
        """Test A more sensitive gives a positive estimate."""
        r = mcnemar_test(PairedCounts(a=40, b=12, c=4, d=9))
        assert r.estimate > 0
        assert r.x == 12
