import math

import pytest

from abcalc.stats import ConfidenceInterval
from abcalc.summary import (
    CLOSE,
    INSUFFICIENT,
    MEETS,
    SOME_EVIDENCE,
    confidence_band,
    format_confidence,
    format_count,
    format_interval,
    format_lift,
    format_p_value,
    layman_summary,
    methodology,
    sample_size_note,
)


@pytest.mark.parametrize("confidence,band", [
    (97.0, MEETS),
    (95.0, MEETS),
    (92.0, CLOSE),
    (90.0, CLOSE),
    (85.0, SOME_EVIDENCE),
    (80.0, SOME_EVIDENCE),
    (79.9, INSUFFICIENT),
])
def test_confidence_band(confidence, band):
    assert confidence_band(confidence, 95) == band


def test_layman_summary_meets_threshold():
    text = layman_summary("B", "A", 99.2, 0.008, 95)
    assert text == (
        "Variant B vs A: The observed difference has only a 0.8% likelihood of "
        "being due to random chance. This meets your 95% confidence threshold."
    )


def test_layman_summary_close():
    text = layman_summary("C", "A", 92.0, 0.08, 95)
    assert "8.0% likelihood" in text
    assert "Very close to your 95% threshold - consider collecting more data." in text


def test_layman_summary_fractional_target():
    text = layman_summary("A", "B", 10.0, 0.9, 99.5)
    assert "at your 99.5% confidence level." in text


def test_layman_summary_undefined():
    assert layman_summary("B", "A", float("nan"), float("nan"), 95) is None


def test_format_p_value():
    assert format_p_value(0.12346) == "0.1235"
    assert format_p_value(0.00009) == "<0.0001"
    assert format_p_value(float("nan")) == "-"
    assert format_p_value(None) == "-"


def test_format_confidence():
    assert format_confidence(85.04) == "85.04%"
    assert format_confidence(99.995) == ">99.99%"
    assert format_confidence(float("inf")) == "-"


def test_format_interval():
    ci = ConfidenceInterval(lower=-0.005394, upper=0.035394, estimate=0.015, method="x")
    assert format_interval(ci) == "-0.54% to +3.54%"
    assert format_interval(ConfidenceInterval(math.nan, 0.1, 0.0, "x")) == "-"
    assert format_interval(None) == "-"
    # a tiny negative bound rounds to zero without a stray sign
    tiny = ConfidenceInterval(lower=-0.00001, upper=0.02, estimate=0.01, method="x")
    assert format_interval(tiny) == "+0.00% to +2.00%"


def test_format_lift():
    assert format_lift(0.3) == "+30.00%"
    assert format_lift(-0.125, 1) == "-12.5%"
    assert format_lift(math.inf) == "∞"
    assert format_lift(0.0) == "-"
    assert format_lift(-0.000001) == "+0.00%"


def test_format_count():
    assert format_count(3778) == "3,778"
    assert format_count(15.2, signed=True) == "+15"
    assert format_count(0, signed=True) == "-"
    assert format_count(None) == "-"


def test_sample_size_note():
    assert sample_size_note("B", 0.3, 2, bonferroni=True) == "Based on B (+30%)"
    assert sample_size_note("D", 0.12, 4, bonferroni=True) == (
        "Based on 4 variants (best: D +12%) (Bonferroni adjusted)")
    assert sample_size_note("D", 0.12, 4, bonferroni=False) == "Based on 4 variants (best: D +12%)"


def test_methodology():
    assert "pooled" in methodology("proportion")
    assert "phi" in methodology("poisson")
    with pytest.raises(ValueError):
        methodology("anova")
