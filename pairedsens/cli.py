"""Command-line entry point.

Computes the minimum number of true-positive pairs for a one-sided
McNemar comparison of two sensitivities, then checks it by simulation:

    python -m pairedsens --prevalence 0.7 --sens-a 0.82 --sens-b 0.73

prints a single sentence with the sample size and the share of simulated
trials that rejected the null hypothesis.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pairedsens._utils import get_logger
from pairedsens.simulation import validate_sample_size


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pairedsens",
        description="Sample size and Monte Carlo power check for comparing "
                    "the sensitivity of two diagnostic tests on the same subjects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("--prevalence", type=float, default=0.7,
                   help="True disease prevalence in simulated cohorts")
    p.add_argument("--sens-a", type=float, default=0.82,
                   help="Assumed sensitivity of test A")
    p.add_argument("--sens-b", type=float, default=0.73,
                   help="Assumed sensitivity of test B")
    p.add_argument("--discordance", type=float, default=None,
                   help="P(tests disagree | diseased); default assumes conditional independence")
    p.add_argument("--alpha", type=float, default=0.05, help="Significance level")
    p.add_argument("--power", type=float, default=0.80, help="Target power")
    p.add_argument("--two-sided", action="store_true",
                   help="Use a two-sided test instead of the one-sided default")

    # Simulation controls
    p.add_argument("--sims", type=int, default=1000, help="Monte Carlo trials")
    p.add_argument("--seed", type=int, default=12345, help="Random seed")
    p.add_argument("--threads", type=int, default=1, help="Worker threads")
    p.add_argument("--no-scale", action="store_true",
                   help="Simulate n_pairs subjects instead of inflating for prevalence")

    p.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = get_logger("pairedsens", logging.INFO if args.verbose else logging.WARNING)

    try:
        report = validate_sample_size(
            args.sens_a,
            args.sens_b,
            prevalence=args.prevalence,
            alpha=args.alpha,
            power=args.power,
            alternative="two.sided" if args.two_sided else "one.sided",
            discordance=args.discordance,
            n_sim=args.sims,
            seed=args.seed,
            threads=args.threads,
            scale_by_prevalence=not args.no_scale,
        )
    except ValueError as e:
        logger.error(f"error: {e}")
        return 2

    print(report.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
