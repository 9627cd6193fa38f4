"""
abcalc/sanity.py

Sanity checks for calculator inputs:
  - configuration ranges (variant count, levels, dispersion, days)
  - per-variant counts (visitors, conversions)
  - normal-approximation validity (n*p >= 5 and n*(1-p) >= 5)

The check_* functions return a list of human-readable problems and never
raise; validate_inputs raises ValueError with all of them.
"""

from __future__ import annotations

from typing import List, Mapping

from .kernels import KERNEL_KINDS, PROPORTION
from .models import MAX_VARIANTS, MIN_VARIANTS, TestConfiguration, VariantObservation


def check_configuration(config: TestConfiguration) -> List[str]:
    problems: List[str] = []
    if not (MIN_VARIANTS <= config.number_of_variants <= MAX_VARIANTS):
        problems.append(
            f"number_of_variants must be in [{MIN_VARIANTS}, {MAX_VARIANTS}], "
            f"got {config.number_of_variants}")
    if not (0 < config.confidence_level < 100):
        problems.append(f"confidence_level must be in (0, 100), got {config.confidence_level}")
    if not (0 < config.power_level < 100):
        problems.append(f"power_level must be in (0, 100), got {config.power_level}")
    if config.dispersion_factor < 1.0:
        problems.append(f"dispersion_factor must be >= 1.0, got {config.dispersion_factor}")
    if config.days_of_data <= 0:
        problems.append(f"days_of_data must be > 0, got {config.days_of_data}")
    if config.test_kind not in KERNEL_KINDS:
        problems.append(f"test_kind must be one of {KERNEL_KINDS}, got {config.test_kind!r}")
    return problems


def check_observations(observations: Mapping[str, VariantObservation],
                       kind: str = PROPORTION) -> List[str]:
    problems: List[str] = []
    for label, obs in observations.items():
        if obs.visitors <= 0:
            problems.append(f"{label}: visitors must be > 0, got {obs.visitors}")
        if obs.conversions < 0:
            problems.append(f"{label}: conversions must be >= 0, got {obs.conversions}")
        if kind == PROPORTION and obs.conversions > obs.visitors > 0:
            problems.append(
                f"{label}: conversions ({obs.conversions:g}) exceed visitors ({obs.visitors})")
    return problems


def normal_approximation_warnings(observations: Mapping[str, VariantObservation]) -> List[str]:
    """Groups where the normal approximation to the binomial is doubtful."""
    warnings: List[str] = []
    for label, obs in observations.items():
        rate = obs.rate
        if rate is None:
            continue
        successes = obs.visitors * rate
        failures = obs.visitors * (1 - rate)
        if successes < 5 or failures < 5:
            warnings.append(
                f"{label}: n*p = {successes:.1f}, n*(1-p) = {failures:.1f}; "
                "normal approximation may be inaccurate")
    return warnings


def validate_inputs(config: TestConfiguration,
                    observations: Mapping[str, VariantObservation]) -> None:
    problems = check_configuration(config) + check_observations(observations, config.test_kind)
    if problems:
        raise ValueError("Invalid inputs: " + "; ".join(problems))
