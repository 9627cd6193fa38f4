"""
abcalc/normal.py

Standard normal primitives used by every test in the package.

Everything goes through scipy.stats.norm. Upper-tail probabilities use the
survival function so p-values far below 1e-6 keep their precision.
"""

from __future__ import annotations

import numpy as np
from scipy import stats


def norm_cdf(z: float) -> float:
    return float(stats.norm.cdf(z))


def norm_sf(z: float) -> float:
    return float(stats.norm.sf(z))


def norm_ppf(p: float) -> float:
    """
    Inverse CDF. Returns NaN (not an exception) for p outside (0, 1);
    inputs arrive from live editing and may be transiently out of range.
    """
    if not np.isfinite(p) or not (0.0 < p < 1.0):
        return float("nan")
    return float(stats.norm.ppf(p))


def two_sided_p_value(z: float) -> float:
    """2 * (1 - Phi(|z|)). NaN stays NaN."""
    if np.isnan(z):
        return float("nan")
    return 2.0 * norm_sf(abs(z))


def z_critical(confidence_level: float) -> float:
    """Two-sided critical value for a confidence level given in percent."""
    return norm_ppf(1.0 - (1.0 - confidence_level / 100.0) / 2.0)


def z_alpha(alpha: float) -> float:
    return norm_ppf(1.0 - alpha / 2.0)


def z_beta(power: float) -> float:
    # power as a fraction, e.g. 0.8
    return norm_ppf(power)
