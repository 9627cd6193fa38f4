"""
abcalc/stats.py

Pairwise significance tests for one control vs one test variant.

Dependencies:
  - numpy
  - scipy (through abcalc.normal)

What's included:
  - Binary outcomes: two-proportion z-test (pooled SE), Wald CI (unpooled SE)
  - Count outcomes: Quasi-Poisson rate-ratio z-test, log-scale CI

All tests are two-sided. Inputs are never rejected: a zero standard error,
a zero rate or zero visitors yields NaN/inf in the result instead of an
exception, and the caller renders those as placeholders.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .normal import two_sided_p_value, z_critical


# -------------------------
# Results
# -------------------------

@dataclass(frozen=True)
class PairwiseTestResult:
    z: float
    p_value: float
    rate_control: float
    rate_test: float
    se: float
    method: str

    @property
    def is_finite(self) -> bool:
        return bool(np.isfinite(self.z) and np.isfinite(self.p_value))


@dataclass(frozen=True)
class ConfidenceInterval:
    """
    Interval on the relative/percentage difference, as a fraction
    (0.05 means +5%). For proportions this is the absolute difference in
    rates, for Poisson rates the relative change exp(log RR) - 1.
    """
    lower: float
    upper: float
    estimate: float
    method: str

    @property
    def is_finite(self) -> bool:
        return bool(np.isfinite(self.lower) and np.isfinite(self.upper))


def _rates(x_control, n_control, x_treat, n_treat):
    x1, n1 = np.float64(x_control), np.float64(n_control)
    x2, n2 = np.float64(x_treat), np.float64(n_treat)
    with np.errstate(divide="ignore", invalid="ignore"):
        return x1 / n1, n1, x2 / n2, n2


# -------------------------
# Proportions (conversion)
# -------------------------

def ztest_proportions(x_control: float, n_control: float,
                      x_treat: float, n_treat: float) -> PairwiseTestResult:
    """
    Two-proportion z-test.

    H0: p1 == p2, so the standard error uses the pooled proportion.
    se == 0 (both rates 0 or both 1) gives z = NaN.
    """
    p1, n1, p2, n2 = _rates(x_control, n_control, x_treat, n_treat)

    with np.errstate(divide="ignore", invalid="ignore"):
        p_pool = (np.float64(x_control) + np.float64(x_treat)) / (n1 + n2)
        se = np.sqrt(p_pool * (1 - p_pool) * (1 / n1 + 1 / n2))
        z = (p2 - p1) / se

    return PairwiseTestResult(
        z=float(z),
        p_value=two_sided_p_value(float(z)),
        rate_control=float(p1),
        rate_test=float(p2),
        se=float(se),
        method="two-proportion z-test (pooled SE)",
    )


def proportion_ci(x_control: float, n_control: float,
                  x_treat: float, n_treat: float,
                  confidence_level: float = 95.0) -> ConfidenceInterval:
    """
    Wald CI for p2 - p1.

    Uses the unpooled SE, unlike ztest_proportions: the interval estimates
    the actual difference, it does not assume H0. Keep the two separate.
    """
    p1, n1, p2, n2 = _rates(x_control, n_control, x_treat, n_treat)
    diff = p2 - p1

    with np.errstate(divide="ignore", invalid="ignore"):
        se_unpooled = np.sqrt(p1 * (1 - p1) / n1 + p2 * (1 - p2) / n2)
    moe = z_critical(confidence_level) * se_unpooled

    return ConfidenceInterval(
        lower=float(diff - moe),
        upper=float(diff + moe),
        estimate=float(diff),
        method="Wald CI (unpooled SE)",
    )


# -------------------------
# Rates (count data)
# -------------------------

def _log_rate_ratio(x_control, n_control, x_treat, n_treat, dispersion):
    lam1, n1, lam2, n2 = _rates(x_control, n_control, x_treat, n_treat)
    phi = np.float64(dispersion)

    with np.errstate(divide="ignore", invalid="ignore"):
        # quasi-Poisson: variance = mean * phi
        se1 = np.sqrt(lam1 * phi / n1)
        se2 = np.sqrt(lam2 * phi / n2)
        log_rr = np.log(lam2 / lam1)
        se_log_rr = np.sqrt((se1 / lam1) ** 2 + (se2 / lam2) ** 2)
    return lam1, lam2, log_rr, se_log_rr


def quasi_poisson_test(x_control: float, n_control: float,
                       x_treat: float, n_treat: float,
                       dispersion: float = 1.0) -> PairwiseTestResult:
    """
    Rate-ratio z-test for events per subject, allowing overdispersion.

    dispersion == 1 is a plain Poisson test; larger values widen the SE.
    A zero control rate makes log RR infinite and z NaN.
    """
    lam1, lam2, log_rr, se_log_rr = _log_rate_ratio(
        x_control, n_control, x_treat, n_treat, dispersion)

    with np.errstate(divide="ignore", invalid="ignore"):
        z = log_rr / se_log_rr

    return PairwiseTestResult(
        z=float(z),
        p_value=two_sided_p_value(float(z)),
        rate_control=float(lam1),
        rate_test=float(lam2),
        se=float(se_log_rr),
        method=f"quasi-Poisson rate-ratio z-test (phi={float(dispersion):g})",
    )


def poisson_rate_ci(x_control: float, n_control: float,
                    x_treat: float, n_treat: float,
                    dispersion: float = 1.0,
                    confidence_level: float = 95.0) -> ConfidenceInterval:
    """CI on the log rate ratio, reported as percentage change exp(b) - 1."""
    _, _, log_rr, se_log_rr = _log_rate_ratio(
        x_control, n_control, x_treat, n_treat, dispersion)
    moe = z_critical(confidence_level) * se_log_rr

    with np.errstate(over="ignore", invalid="ignore"):
        lower = np.expm1(log_rr - moe)
        upper = np.expm1(log_rr + moe)
        estimate = np.expm1(log_rr)

    return ConfidenceInterval(
        lower=float(lower),
        upper=float(upper),
        estimate=float(estimate),
        method="quasi-Poisson log rate-ratio CI",
    )
