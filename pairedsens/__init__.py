"""
PairedSens: sample size and simulation for comparing two diagnostic tests.

When two diagnostic tests are applied to the same subjects, their
sensitivities are compared with McNemar's test on the discordant pairs.
PairedSens computes how many diseased subjects such a study needs and
checks that number by Monte Carlo simulation.

Usage:
    from pairedsens import power, diagnostic, simulation
"""

__version__ = "0.1.0"

from pairedsens import power
from pairedsens import diagnostic
from pairedsens import simulation

__all__ = [
    "__version__",
    "power",
    "diagnostic",
    "simulation",
]
