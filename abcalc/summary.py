"""
abcalc/summary.py

Turns numeric results into display strings and plain-language verdicts.

Display clamping (<0.0001, >99.99%) and the "-" placeholder for undefined
values live here only; the statistics modules return raw numbers.
"""

from __future__ import annotations

import math
from typing import Optional

from .stats import ConfidenceInterval

PLACEHOLDER = "-"

MEETS = "meets"
CLOSE = "close"
SOME_EVIDENCE = "some_evidence"
INSUFFICIENT = "insufficient"

_TEMPLATES = {
    MEETS: (
        "Variant {leader} vs {comparison}: The observed difference has only a "
        "{chance}% likelihood of being due to random chance. "
        "This meets your {target}% confidence threshold."
    ),
    CLOSE: (
        "Variant {leader} vs {comparison}: There's a {chance}% likelihood this "
        "difference is due to random chance. Very close to your {target}% "
        "threshold - consider collecting more data."
    ),
    SOME_EVIDENCE: (
        "Variant {leader} vs {comparison}: There's a {chance}% likelihood this "
        "difference is due to random chance. Some evidence of a difference, "
        "but not yet conclusive at your {target}% threshold."
    ),
    INSUFFICIENT: (
        "Variant {leader} vs {comparison}: There's a {chance}% likelihood this "
        "difference is due to random chance. Insufficient evidence of a "
        "meaningful difference at your {target}% confidence level."
    ),
}


def _missing(x) -> bool:
    return x is None or not math.isfinite(x)


def _fmt_level(level: float) -> str:
    # 95.0 -> "95", 99.5 -> "99.5"
    return f"{level:g}"


# -------------------------
# Verdicts
# -------------------------

def confidence_band(confidence: float, target: float) -> str:
    """Classify a confidence score against the target level (both in %)."""
    if confidence >= target:
        return MEETS
    if confidence >= target - 5:
        return CLOSE
    if confidence >= target - 15:
        return SOME_EVIDENCE
    return INSUFFICIENT


def layman_summary(leader: str, comparison: str, confidence: float,
                   p_value: float, target: float) -> Optional[str]:
    if _missing(p_value) or _missing(confidence):
        return None
    return _TEMPLATES[confidence_band(confidence, target)].format(
        leader=leader,
        comparison=comparison,
        chance=f"{p_value * 100:.1f}",
        target=_fmt_level(target),
    )


def sample_size_note(best_variant: str, lift: float, number_of_variants: int,
                     bonferroni: bool) -> str:
    """Explains which comparison the sample size is based on."""
    lift_txt = PLACEHOLDER if _missing(lift) else f"{lift * 100:.0f}"
    if number_of_variants > 2:
        info = f"{number_of_variants} variants (best: {best_variant} +{lift_txt}%)"
    else:
        info = f"{best_variant} (+{lift_txt}%)"
    note = " (Bonferroni adjusted)" if bonferroni and number_of_variants > 2 else ""
    return f"Based on {info}{note}"


# -------------------------
# Formatting
# -------------------------

def format_p_value(p: Optional[float]) -> str:
    if _missing(p):
        return PLACEHOLDER
    if p < 1e-4:
        return "<0.0001"
    return f"{p:.4f}"


def format_confidence(confidence: Optional[float]) -> str:
    if _missing(confidence):
        return PLACEHOLDER
    if confidence > 99.99:
        return ">99.99%"
    return f"{confidence:.2f}%"


def _signed_pct(x: float, digits: int = 2) -> str:
    # + 0.0 turns a rounded -0.0 into 0.0
    return f"{round(x * 100, digits) + 0.0:+.{digits}f}"


def format_interval(ci: Optional[ConfidenceInterval]) -> str:
    if ci is None or math.isnan(ci.lower) or math.isnan(ci.upper):
        return PLACEHOLDER
    return f"{_signed_pct(ci.lower)}% to {_signed_pct(ci.upper)}%"


def format_lift(lift: Optional[float], digits: int = 2) -> str:
    if lift is None or math.isnan(lift) or lift == 0:
        return PLACEHOLDER
    if math.isinf(lift):
        return "∞"
    return f"{_signed_pct(lift, digits)}%"


def format_rate(rate: Optional[float], digits: int = 2) -> str:
    if _missing(rate):
        return PLACEHOLDER
    return f"{rate * 100:.{digits}f}%"


def format_count(n: Optional[float], signed: bool = False) -> str:
    if _missing(n) or (signed and n == 0):
        return PLACEHOLDER
    txt = f"{n:,.0f}"
    return f"+{txt}" if signed and n > 0 else txt


# -------------------------
# Methodology
# -------------------------

_METHODOLOGY = {
    "proportion": """\
Statistical test: Two-Proportion Z-Test (two-tailed)

  p1 = conversions1 / visitors1 (control), p2 = conversions2 / visitors2
  pooled p = (conversions1 + conversions2) / (visitors1 + visitors2)
  SE = sqrt(p(1-p) * (1/n1 + 1/n2))      pooled, valid under H0: p1 = p2
  z = (p2 - p1) / SE,  p-value = 2 * P(Z > |z|)
  confidence score = (1 - p-value) * 100%

  CI = (p2 - p1) +/- z_crit * sqrt(p1(1-p1)/n1 + p2(1-p2)/n2)
  The interval uses the unpooled SE: it estimates the difference instead
  of testing whether it is zero.

  n per variant = (z_alpha + z_beta)^2 * (p1(1-p1) + p2(1-p2)) / (p2 - p1)^2
  using the best test variant vs control.

Assumptions: independent visitors, binary outcome, n*p >= 5 and
n*(1-p) >= 5 in every group.""",
    "poisson": """\
Statistical test: Quasi-Poisson Rate-Ratio Test (two-tailed)

  rate1 = events1 / visitors1 (control), rate2 = events2 / visitors2
  variance = rate * phi    (phi = dispersion factor, 1 = plain Poisson)
  log RR = ln(rate2 / rate1)
  SE(log RR) = sqrt((se1/rate1)^2 + (se2/rate2)^2),  se_i = sqrt(var_i / n_i)
  z = log RR / SE(log RR),  p-value = 2 * P(Z > |z|)

  CI = exp(log RR +/- z_crit * SE(log RR)) - 1, as a percentage change.

  n per variant = (z_alpha + z_beta)^2 * (var1/rate1^2 + var2/rate2^2) / (log RR)^2

Assumptions: independent subjects, count outcome, variance proportional to
the mean. Raise phi when counts are overdispersed.""",
}

_BONFERRONI_NOTE = """
Bonferroni correction (optional): p-values are multiplied by the number of
test variants k (capped at 1), and alpha for sample size is divided by k."""


def methodology(kind: str) -> str:
    try:
        return _METHODOLOGY[kind] + "\n" + _BONFERRONI_NOTE
    except KeyError:
        raise ValueError(f"Unknown test kind: {kind!r}") from None
