"""
abcalc/correction.py

Bonferroni correction for comparing one control against k test variants.

The same functions serve both test families; only the raw p-value or alpha
passed in differs.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np


def number_of_comparisons(number_of_variants: int) -> int:
    """k = variants - 1 (every test variant vs control)."""
    return int(number_of_variants) - 1


def bonferroni_p_value(p_value: float, k: int, enabled: bool = True) -> float:
    """min(p * k, 1) when enabled. NaN propagates."""
    if not enabled:
        return float(p_value)
    return float(np.minimum(np.float64(p_value) * k, 1.0))


def bonferroni_alpha(alpha: float, k: int, enabled: bool = True) -> float:
    """alpha / k when enabled. Only used for sample size planning."""
    if not enabled:
        return float(alpha)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(alpha) / k)


def bonferroni_adjust(p_values: Iterable[float], k: int, enabled: bool = True) -> np.ndarray:
    p = np.asarray(list(p_values), dtype=float)
    if p.ndim != 1:
        raise ValueError("p_values must be 1D.")
    if not enabled:
        return p
    return np.minimum(p * k, 1.0)
