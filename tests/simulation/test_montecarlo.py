"""Tests for the Monte Carlo power simulation and validation pipeline."""

import logging
import math

import numpy as np
import pytest

from pairedsens.simulation import _montecarlo
from pairedsens.simulation import (
    SimulationResult,
    ValidationReport,
    cohort_size_for_pairs,
    simulate_power,
    validate_sample_size,
)

STUDY = {"prevalence": 0.7, "sens_a": 0.82, "sens_b": 0.73}


@pytest.fixture(scope="module")
def report():
    """Default study: sample size for 80% power, checked with 1000 trials."""
    return validate_sample_size(
        0.82, 0.73, prevalence=0.7, alpha=0.05, power=0.80, n_sim=1000, seed=2024,
    )


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class TestSimulatePower:
    """Monte Carlo rejection rate."""

    def test_returns_result(self):
        r = simulate_power(100, **STUDY, n_sim=50, seed=1)
        assert isinstance(r, SimulationResult)
        assert r.n_sim == 50
        assert r.tables.shape == (50, 4)

    def test_trials_accounted_for(self):
        r = simulate_power(100, **STUDY, n_sim=50, seed=1)
        assert r.n_valid + r.n_degenerate + r.n_failed == 50
        assert len(r.p_values) == r.n_valid

    def test_rate_definition(self):
        r = simulate_power(100, **STUDY, n_sim=200, seed=5)
        assert r.rejection_rate == pytest.approx(np.mean(r.p_values < 0.05))
        assert r.percent == pytest.approx(100 * r.rejection_rate)

    def test_tables_bounded_by_cohort(self):
        r = simulate_power(60, **STUDY, n_sim=100, seed=9)
        assert np.all(r.tables >= 0)
        assert np.all(r.tables.sum(axis=1) <= 60)

    def test_reproducible(self):
        r1 = simulate_power(150, **STUDY, n_sim=100, seed=123)
        r2 = simulate_power(150, **STUDY, n_sim=100, seed=123)
        np.testing.assert_array_equal(r1.tables, r2.tables)
        np.testing.assert_array_equal(r1.p_values, r2.p_values)

    def test_threads_do_not_change_results(self):
        r1 = simulate_power(150, **STUDY, n_sim=100, seed=321, threads=1)
        r4 = simulate_power(150, **STUDY, n_sim=100, seed=321, threads=4)
        np.testing.assert_array_equal(r1.tables, r4.tables)
        np.testing.assert_array_equal(r1.p_values, r4.p_values)

    def test_accepts_seed_sequence(self):
        ss = np.random.SeedSequence(77)
        r1 = simulate_power(80, **STUDY, n_sim=30, seed=ss)
        r2 = simulate_power(80, **STUDY, n_sim=30, seed=77)
        np.testing.assert_array_equal(r1.tables, r2.tables)

    def test_seed_sequence_reusable(self):
        ss = np.random.SeedSequence(77)
        r1 = simulate_power(80, **STUDY, n_sim=30, seed=ss)
        r2 = simulate_power(80, **STUDY, n_sim=30, seed=ss)
        np.testing.assert_array_equal(r1.tables, r2.tables)
        np.testing.assert_array_equal(r1.p_values, r2.p_values)
        assert ss.n_children_spawned == 0

    def test_failed_trials_excluded_and_logged(self, monkeypatch, caplog):
        real_test = _montecarlo.mcnemar_test
        calls = {"n": 0}

        def every_fourth_fails(counts, **kwargs):
            calls["n"] += 1
            if calls["n"] % 4 == 0:
                raise ValueError("numerical failure")
            return real_test(counts, **kwargs)

        monkeypatch.setattr(_montecarlo, "mcnemar_test", every_fourth_fails)
        # the CLI logger may have been configured not to propagate
        monkeypatch.setattr(logging.getLogger("pairedsens"), "propagate", True)
        caplog.set_level(logging.ERROR, logger=_montecarlo.__name__)

        r = simulate_power(100, **STUDY, n_sim=40, seed=6)
        assert r.n_failed == 10
        assert r.n_valid == 30
        assert r.n_valid + r.n_degenerate + r.n_failed == r.n_sim
        assert len(r.p_values) == r.n_valid
        assert r.tables.shape == (40, 4)
        assert r.rejection_rate == pytest.approx(r.n_rejected / r.n_valid)
        errors = [rec for rec in caplog.records if rec.levelno == logging.ERROR]
        assert len(errors) == 10
        assert "numerical failure" in errors[0].getMessage()

    def test_thread_pool_released_on_error(self, monkeypatch):
        terminated = []

        class RecordingPool(_montecarlo.ThreadPool):
            def terminate(self):
                terminated.append(True)
                super().terminate()

        def broken(counts, **kwargs):
            raise RuntimeError("worker crashed")

        monkeypatch.setattr(_montecarlo, "ThreadPool", RecordingPool)
        monkeypatch.setattr(_montecarlo, "mcnemar_test", broken)
        with pytest.raises(RuntimeError, match="worker crashed"):
            simulate_power(100, **STUDY, n_sim=8, seed=1, threads=2)
        assert terminated

    def test_single_subject_does_not_crash(self):
        r = simulate_power(1, **STUDY, n_sim=200, seed=4)
        assert r.n_valid + r.n_degenerate + r.n_failed == 200
        assert r.n_degenerate > 0
        assert r.n_failed == 0
        assert r.n_rejected == 0

    def test_no_true_positives(self):
        r = simulate_power(50, prevalence=0.0, sens_a=0.8, sens_b=0.7, n_sim=20, seed=2)
        assert r.n_degenerate == 20
        assert r.n_valid == 0
        assert math.isnan(r.rejection_rate)

    def test_null_rejection_rate_at_most_alpha(self):
        r = simulate_power(200, prevalence=0.7, sens_a=0.8, sens_b=0.8, n_sim=500, seed=8)
        assert r.rejection_rate <= 0.08

    def test_more_subjects_more_power(self):
        small = simulate_power(100, **STUDY, n_sim=300, seed=10)
        large = simulate_power(800, **STUDY, n_sim=300, seed=10)
        assert large.rejection_rate > small.rejection_rate

    @pytest.mark.parametrize("kwargs,match", [
        ({"prevalence": 1.5, "sens_a": 0.8, "sens_b": 0.7}, "prevalence"),
        ({"prevalence": 0.5, "sens_a": 0.8, "sens_b": -0.7}, "sens_b"),
        ({**STUDY, "alpha": 0.0}, "alpha"),
        ({**STUDY, "n_sim": 0}, "n_sim"),
        ({**STUDY, "threads": 0}, "threads"),
        ({**STUDY, "alternative": "up"}, "alternative"),
    ])
    def test_invalid_input(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            simulate_power(100, **kwargs)

    def test_invalid_cohort_size(self):
        with pytest.raises(ValueError, match="n_subjects"):
            simulate_power(0, **STUDY)

    def test_summary(self):
        r = simulate_power(100, **STUDY, n_sim=20, seed=1)
        assert "Empirical power" in r.summary()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestCohortSizeForPairs:
    """Inflating a number of pairs for prevalence."""

    def test_exact_division(self):
        assert cohort_size_for_pairs(70, 0.7) == 100

    def test_rounds_up(self):
        assert cohort_size_for_pairs(71, 0.7) == 102

    def test_full_prevalence(self):
        assert cohort_size_for_pairs(35, 1.0) == 35

    def test_invalid_prevalence(self):
        with pytest.raises(ValueError, match="prevalence"):
            cohort_size_for_pairs(10, 0.0)


class TestValidateSampleSize:
    """Sample size followed by simulation."""

    def test_returns_report(self, report):
        assert isinstance(report, ValidationReport)

    def test_uses_minimum(self, report):
        assert report.n_pairs == report.sample_size.n_min

    def test_scaled_by_prevalence(self, report):
        assert report.scaled
        assert report.n_subjects == cohort_size_for_pairs(report.n_pairs, 0.7)

    def test_empirical_power_near_target(self, report):
        assert 0.70 <= report.simulation.rejection_rate <= 0.90

    def test_within_tolerance(self, report):
        assert report.within_tolerance(0.10)

    def test_all_trials_valid(self, report):
        assert report.simulation.n_valid == 1000

    def test_summary_sentence(self, report):
        s = report.summary()
        assert s.startswith("Minimum sample size:")
        assert str(report.n_pairs) in s
        assert f"normal approximation {report.sample_size.n_approx}" in s
        assert "\n" not in s

    def test_unscaled_loses_power(self, report):
        r = validate_sample_size(
            0.82, 0.73, prevalence=0.7, n_sim=300, seed=2024, scale_by_prevalence=False,
        )
        assert r.n_subjects == r.n_pairs
        assert r.simulation.rejection_rate < report.simulation.rejection_rate

    def test_reversed_sensitivities(self):
        """B more sensitive: the one-sided test runs in B's favour."""
        r = validate_sample_size(0.73, 0.82, prevalence=0.7, n_sim=200, seed=3)
        assert r.simulation.alternative == "less"
        assert r.simulation.rejection_rate > 0.6
