"""
abcalc/engine.py

The calculator pipeline, written once for every test family:

  1. each test variant vs control -> p-value (Bonferroni if enabled) and
     confidence score
  2. sample size and duration from the best test variant vs control
  3. leading variant vs control (or vs the runner-up when control leads),
     with its confidence interval and a plain-language summary

The family-specific statistics come from a kernel (abcalc.kernels).
Nothing here raises on degenerate numbers; undefined results come back as
NaN or None.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from .correction import bonferroni_alpha, bonferroni_p_value
from .kernels import TestKernel, make_kernel
from .models import CONTROL, TestConfiguration, VariantObservation, build_observations
from .power import DurationEstimate, duration_days, traffic_per_variant_per_day
from .sanity import check_configuration, check_observations
from .stats import ConfidenceInterval
from .summary import layman_summary, sample_size_note

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class VariantResult:
    label: str
    rate: Optional[float]
    raw_p_value: Optional[float]
    p_value: Optional[float]      # None for control: never compared to itself
    confidence: Optional[float]
    z: Optional[float]
    lift: Optional[float]
    extra: Optional[float]
    is_control: bool = False


@dataclass(frozen=True)
class LeadingVariant:
    label: str
    comparison_label: str
    runner_up: Optional[str]
    p_value: float
    confidence: float
    confidence_interval: ConfidenceInterval
    summary: Optional[str]
    lift_vs_runner_up: Optional[float]
    lift_vs_control: Optional[float]
    monthly_extras: float


@dataclass(frozen=True)
class AnalysisReport:
    kind: str
    configuration: TestConfiguration
    variants: Dict[str, VariantResult]
    duration: DurationEstimate
    leading: Optional[LeadingVariant]


# -------------------------
# Helpers
# -------------------------

def lift(baseline: Optional[float], rate: Optional[float]) -> Optional[float]:
    """Relative lift of rate over baseline; inf when baseline is 0 and rate > 0."""
    if baseline is None or rate is None:
        return None
    if baseline <= 0:
        return math.inf if rate > 0 else 0.0
    return (rate - baseline) / baseline


def _ranked(observations: Mapping[str, VariantObservation], include_control: bool) -> List[str]:
    # Labels with a defined rate, highest first. sorted() is stable, so ties
    # keep A..E order.
    labels = [
        label for label, obs in observations.items()
        if obs.rate is not None and (include_control or label != CONTROL)
    ]
    return sorted(labels, key=lambda label: -observations[label].rate)


def find_leading_variant(observations: Mapping[str, VariantObservation]) -> Optional[str]:
    """Highest rate among all variants in use, control included."""
    ranked = _ranked(observations, include_control=True)
    return ranked[0] if ranked else None


def find_runner_up(observations: Mapping[str, VariantObservation]) -> Optional[str]:
    """Second-highest rate among all variants in use, control included."""
    ranked = _ranked(observations, include_control=True)
    return ranked[1] if len(ranked) > 1 else None


def find_best_test_variant(observations: Mapping[str, VariantObservation]) -> Optional[str]:
    """Highest rate among the test variants, control excluded."""
    ranked = _ranked(observations, include_control=False)
    return ranked[0] if ranked else None


def _total_visitors(observations: Mapping[str, VariantObservation]) -> int:
    return sum(obs.visitors for obs in observations.values())


# -------------------------
# Pipeline steps
# -------------------------

def compare_variants(observations: Mapping[str, VariantObservation],
                     config: TestConfiguration,
                     kernel: TestKernel) -> Dict[str, VariantResult]:
    control = observations[CONTROL]
    k = config.comparisons
    best_test = find_best_test_variant(observations)

    results: Dict[str, VariantResult] = {}
    for label, obs in observations.items():
        if label == CONTROL:
            # control is reported against the best test variant
            other = observations[best_test] if best_test else None
            other_rate = other.rate if other else None
            extra = (None if other_rate is None or obs.rate is None
                     else (obs.rate - other_rate) * obs.visitors)
            results[label] = VariantResult(
                label=label, rate=obs.rate, raw_p_value=None, p_value=None,
                confidence=None, z=None, lift=lift(other_rate, obs.rate),
                extra=extra, is_control=True,
            )
            continue

        res = kernel.test(control.conversions, control.visitors, obs.conversions, obs.visitors)
        p_adj = bonferroni_p_value(res.p_value, k, config.correction_enabled)
        confidence = (1 - p_adj) * 100
        logger.debug("%s vs %s (%s): z=%.4f p=%.6g adjusted=%.6g",
                     label, CONTROL, kernel.kind, res.z, res.p_value, p_adj)

        extra = (None if control.rate is None or obs.rate is None
                 else (obs.rate - control.rate) * obs.visitors)
        results[label] = VariantResult(
            label=label, rate=obs.rate, raw_p_value=res.p_value, p_value=p_adj,
            confidence=confidence, z=res.z, lift=lift(control.rate, obs.rate),
            extra=extra,
        )
    return results


def estimate_duration(observations: Mapping[str, VariantObservation],
                      config: TestConfiguration,
                      kernel: TestKernel) -> DurationEstimate:
    """
    Sample size from the best test variant vs control only; other test
    variants' effects are ignored.
    """
    control = observations[CONTROL]
    best = find_best_test_variant(observations)
    adjusted = config.correction_enabled and config.number_of_variants > 2
    traffic = traffic_per_variant_per_day(
        _total_visitors(observations), config.number_of_variants, config.days_of_data)

    if best is None or control.rate is None:
        return DurationEstimate(None, None, None, best, traffic, float("nan"), adjusted)

    alpha = bonferroni_alpha(config.alpha, config.comparisons, config.correction_enabled)
    best_rate = observations[best].rate
    ss = kernel.sample_size(control.rate, best_rate, alpha, config.power)
    if not ss.is_defined:
        logger.warning("Sample size undefined for %s vs %s (rates %.6g vs %.6g)",
                       best, CONTROL, best_rate, control.rate)
        return DurationEstimate(None, None, None, best, traffic, float("nan"), adjusted)

    days_needed, days_remaining = duration_days(
        ss.n_per_variant, _total_visitors(observations),
        config.number_of_variants, config.days_of_data)
    best_lift = lift(control.rate, best_rate)

    return DurationEstimate(
        sample_size_per_variant=ss.n_per_variant,
        days_needed=days_needed,
        days_remaining=days_remaining,
        best_variant=best,
        traffic_per_variant_per_day=traffic,
        lift=best_lift,
        bonferroni_adjusted=adjusted,
        note=sample_size_note(best, best_lift, config.number_of_variants,
                              config.correction_enabled),
    )


def analyze_leading(observations: Mapping[str, VariantObservation],
                    config: TestConfiguration,
                    kernel: TestKernel) -> Optional[LeadingVariant]:
    """
    The leader is always the test side of the comparison; its baseline is
    control, or the best test variant when control itself leads.
    The headline lift is against the runner-up of any kind, which can
    differ from the comparison baseline.
    """
    leader = find_leading_variant(observations)
    if leader is None:
        return None
    comparison = find_best_test_variant(observations) if leader == CONTROL else CONTROL
    if comparison is None:
        return None

    base, lead = observations[comparison], observations[leader]
    res = kernel.test(base.conversions, base.visitors, lead.conversions, lead.visitors)
    p_adj = bonferroni_p_value(res.p_value, config.comparisons, config.correction_enabled)
    confidence = (1 - p_adj) * 100
    ci = kernel.confidence_interval(base.conversions, base.visitors,
                                    lead.conversions, lead.visitors,
                                    config.confidence_level)

    # projected extra conversions over a month at full rollout
    daily = traffic_per_variant_per_day(_total_visitors(observations), 1, config.days_of_data)
    if base.rate is None:
        monthly_extras = float("nan")
    else:
        with np.errstate(invalid="ignore"):
            monthly_extras = float((lead.rate - base.rate) * np.float64(daily) * DAYS_PER_MONTH)

    control_rate = observations[CONTROL].rate
    runner_up = find_runner_up(observations)
    return LeadingVariant(
        label=leader,
        comparison_label=comparison,
        runner_up=runner_up,
        p_value=p_adj,
        confidence=confidence,
        confidence_interval=ci,
        summary=layman_summary(leader, comparison, confidence, p_adj, config.confidence_level),
        lift_vs_runner_up=(None if runner_up is None
                           else lift(observations[runner_up].rate, lead.rate)),
        lift_vs_control=None if leader == CONTROL else lift(control_rate, lead.rate),
        monthly_extras=monthly_extras,
    )


def analyze(counts: Mapping[str, Any],
            config: Optional[TestConfiguration] = None,
            kernel: Optional[TestKernel] = None) -> AnalysisReport:
    """
    Run the whole calculator for one set of inputs.

    counts maps variant labels ("A".."E") to VariantObservation,
    {"visitors": .., "conversions": ..} or (visitors, conversions).
    Only the first config.number_of_variants labels are used.
    """
    config = config or TestConfiguration()
    kernel = kernel or make_kernel(config.test_kind, config.dispersion_factor)
    observations = build_observations(counts, config.number_of_variants)

    for problem in check_configuration(config) + check_observations(observations, kernel.kind):
        logger.warning(problem)

    return AnalysisReport(
        kind=kernel.kind,
        configuration=config,
        variants=compare_variants(observations, config, kernel),
        duration=estimate_duration(observations, config, kernel),
        leading=analyze_leading(observations, config, kernel),
    )
