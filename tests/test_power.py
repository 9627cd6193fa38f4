import pytest

from abcalc.power import (
    duration_days,
    required_sample_size,
    sample_size_poisson,
    sample_size_proportions,
)


def test_sample_size_proportions_known_value():
    res = sample_size_proportions(0.05, 0.065, alpha=0.05, power=0.8)
    assert res.z_alpha == pytest.approx(1.959964, abs=1e-6)
    assert res.z_beta == pytest.approx(0.841621, abs=1e-6)
    assert res.n_per_variant == 3778


def test_sample_size_equal_rates_is_undefined():
    # 20/200 vs 20/200: zero effect, no detectable difference
    res = sample_size_proportions(20 / 200, 20 / 200)
    assert res.n_per_variant is None
    assert not res.is_defined


def test_sample_size_poisson_known_value():
    res = sample_size_poisson(0.2, 0.26, alpha=0.05, power=0.8, dispersion=1.0)
    assert res.n_per_variant == 1009


def test_sample_size_poisson_scales_with_dispersion():
    res = sample_size_poisson(0.2, 0.26, alpha=0.05, power=0.8, dispersion=2.0)
    assert res.n_per_variant == 2018


def test_sample_size_poisson_undefined_cases():
    assert sample_size_poisson(0.1, 0.1).n_per_variant is None
    assert sample_size_poisson(0.0, 0.1).n_per_variant is None


@pytest.mark.parametrize("sizer", [
    lambda a, pw: sample_size_proportions(0.10, 0.12, alpha=a, power=pw),
    lambda a, pw: sample_size_poisson(0.5, 0.6, alpha=a, power=pw, dispersion=1.5),
])
def test_sample_size_monotone_in_confidence_and_power(sizer):
    confidences = [80, 90, 95, 99, 99.9]
    sizes = [sizer(1 - c / 100, 0.8).n_per_variant for c in confidences]
    assert sizes == sorted(sizes)

    powers = [0.5, 0.7, 0.8, 0.9, 0.99]
    sizes = [sizer(0.05, pw).n_per_variant for pw in powers]
    assert sizes == sorted(sizes)


def test_bonferroni_alpha_increases_sample_size():
    plain = sample_size_proportions(0.05, 0.065, alpha=0.05)
    adjusted = sample_size_proportions(0.05, 0.065, alpha=0.05 / 3)
    assert adjusted.n_per_variant > plain.n_per_variant


def test_required_sample_size_invalid_alpha_is_undefined():
    assert required_sample_size(0.1, 0.01, alpha=0.0).n_per_variant is None


def test_duration_days():
    # 2000 visitors over 2 variants in 14 days -> 71.43 per variant per day
    needed, remaining = duration_days(3778, 2000, 2, 14)
    assert needed == 53
    assert remaining == 39


def test_duration_days_already_enough_data():
    needed, remaining = duration_days(100, 20000, 2, 14)
    assert needed == 1
    assert remaining == 0


def test_duration_days_undefined():
    assert duration_days(None, 2000, 2, 14) == (None, None)
    assert duration_days(500, 0, 2, 14) == (None, None)
