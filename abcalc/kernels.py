"""
abcalc/kernels.py

Test kernels: the small piece that differs between test families.

The engine runs one pipeline (pairwise test -> correction -> CI -> sample
size) and asks the kernel for the family-specific statistics:

  ProportionKernel()             binary outcomes, two-proportion z-test
  PoissonRateKernel(dispersion)  count outcomes, quasi-Poisson rate ratio

DISPERSION_PRESETS names the usual dispersion levels (1 = plain Poisson).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .power import SampleSizeResult, sample_size_poisson, sample_size_proportions
from .stats import (
    ConfidenceInterval,
    PairwiseTestResult,
    poisson_rate_ci,
    proportion_ci,
    quasi_poisson_test,
    ztest_proportions,
)

PROPORTION = "proportion"
POISSON = "poisson"
KERNEL_KINDS = (PROPORTION, POISSON)


@dataclass(frozen=True)
class ProportionKernel:
    kind: str = PROPORTION
    label: str = "Two-Proportion Z-Test"

    def test(self, x_control, n_control, x_treat, n_treat) -> PairwiseTestResult:
        return ztest_proportions(x_control, n_control, x_treat, n_treat)

    def confidence_interval(self, x_control, n_control, x_treat, n_treat,
                            confidence_level: float) -> ConfidenceInterval:
        return proportion_ci(x_control, n_control, x_treat, n_treat, confidence_level)

    def sample_size(self, rate_control, rate_treat, alpha: float, power: float) -> SampleSizeResult:
        return sample_size_proportions(rate_control, rate_treat, alpha=alpha, power=power)


@dataclass(frozen=True)
class PoissonRateKernel:
    dispersion: float = 1.0
    kind: str = POISSON
    label: str = "Quasi-Poisson Rate-Ratio Test"

    def test(self, x_control, n_control, x_treat, n_treat) -> PairwiseTestResult:
        return quasi_poisson_test(x_control, n_control, x_treat, n_treat, self.dispersion)

    def confidence_interval(self, x_control, n_control, x_treat, n_treat,
                            confidence_level: float) -> ConfidenceInterval:
        return poisson_rate_ci(x_control, n_control, x_treat, n_treat,
                               self.dispersion, confidence_level)

    def sample_size(self, rate_control, rate_treat, alpha: float, power: float) -> SampleSizeResult:
        return sample_size_poisson(rate_control, rate_treat, alpha=alpha, power=power,
                                   dispersion=self.dispersion)


# Named dispersion levels, from plain Poisson to heavily skewed counts.
DISPERSION_PRESETS = {
    1: (1.0, "Even Distribution"),
    2: (2.0, "Light Skew"),
    3: (3.0, "Moderate Skew"),
    4: (4.0, "Notable Skew"),
    5: (5.0, "High Skew"),
    6: (6.0, "Very High Skew"),
    7: (7.0, "Extreme Skew"),
    8: (8.0, "Massive Skew"),
    9: (9.0, "Viral-Level Skew"),
    10: (10.0, "Maximum Skew"),
}


def dispersion_preset(level: int) -> float:
    """phi for a preset level 1..10."""
    try:
        return DISPERSION_PRESETS[int(level)][0]
    except KeyError:
        raise ValueError(
            f"dispersion preset must be in 1..{len(DISPERSION_PRESETS)}, got {level!r}") from None


TestKernel = Union[ProportionKernel, PoissonRateKernel]


def make_kernel(kind: str = PROPORTION, dispersion: float = 1.0) -> TestKernel:
    if kind == PROPORTION:
        return ProportionKernel()
    if kind == POISSON:
        return PoissonRateKernel(dispersion=float(dispersion))
    raise ValueError(f"kind must be one of {KERNEL_KINDS}, got {kind!r}")
