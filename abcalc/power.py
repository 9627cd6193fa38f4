from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .normal import z_alpha, z_beta


@dataclass(frozen=True)
class SampleSizeResult:
    n_per_variant: Optional[int]   # None: no detectable effect
    alpha: float
    power: float
    z_alpha: float
    z_beta: float
    effect: float
    method: str

    @property
    def is_defined(self) -> bool:
        return self.n_per_variant is not None


@dataclass(frozen=True)
class DurationEstimate:
    sample_size_per_variant: Optional[int]
    days_needed: Optional[int]
    days_remaining: Optional[int]
    best_variant: Optional[str]
    traffic_per_variant_per_day: float
    lift: float
    bonferroni_adjusted: bool
    note: Optional[str] = None


def required_sample_size(
    variance_term: float,
    effect: float,
    alpha: float = 0.05,
    power: float = 0.8,
    method: str = "normal approximation",
) -> SampleSizeResult:
    """
    n = ceil((z_alpha + z_beta)^2 * variance_term / effect^2), per variant.

    effect == 0 or any non-finite term leaves n undefined instead of
    returning inf or 0.
    """
    za = z_alpha(alpha)
    zb = z_beta(power)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        numerator = (np.float64(za) + zb) ** 2 * np.float64(variance_term)
        denominator = np.float64(effect) ** 2
        n = numerator / denominator if denominator != 0 else np.nan

    n_per_variant = int(math.ceil(n)) if np.isfinite(n) else None
    return SampleSizeResult(
        n_per_variant=n_per_variant,
        alpha=float(alpha),
        power=float(power),
        z_alpha=za,
        z_beta=zb,
        effect=float(effect),
        method=method,
    )


def sample_size_proportions(
    p_control: float,
    p_treat: float,
    alpha: float = 0.05,
    power: float = 0.8,
) -> SampleSizeResult:
    # Unpooled variance under H1 (common for planning)
    p1, p2 = np.float64(p_control), np.float64(p_treat)
    v = p1 * (1 - p1) + p2 * (1 - p2)
    return required_sample_size(v, p2 - p1, alpha=alpha, power=power,
                                method="two-proportion z-test")


def sample_size_poisson(
    rate_control: float,
    rate_treat: float,
    alpha: float = 0.05,
    power: float = 0.8,
    dispersion: float = 1.0,
) -> SampleSizeResult:
    lam1, lam2 = np.float64(rate_control), np.float64(rate_treat)
    with np.errstate(divide="ignore", invalid="ignore"):
        var1 = lam1 * dispersion
        var2 = lam2 * dispersion
        v = var1 / lam1 ** 2 + var2 / lam2 ** 2
        # effect on the log scale
        log_rr = np.log(lam2 / lam1)
    return required_sample_size(v, log_rr, alpha=alpha, power=power,
                                method="quasi-Poisson rate ratio")


def traffic_per_variant_per_day(total_visitors: float, number_of_variants: int,
                                days_of_data: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(total_visitors) / number_of_variants / days_of_data)


def duration_days(
    sample_size_per_variant: Optional[int],
    total_visitors: float,
    number_of_variants: int,
    days_of_data: float,
) -> Tuple[Optional[int], Optional[int]]:
    """
    Extrapolate current enrollment to the day the per-variant sample size
    is reached. Returns (days_needed, days_remaining), or (None, None).
    """
    if sample_size_per_variant is None:
        return None, None
    traffic = traffic_per_variant_per_day(total_visitors, number_of_variants, days_of_data)
    if not np.isfinite(traffic) or traffic <= 0:
        return None, None
    days_needed = int(math.ceil(sample_size_per_variant / traffic))
    days_remaining = max(0, int(math.ceil(days_needed - days_of_data)))
    return days_needed, days_remaining
