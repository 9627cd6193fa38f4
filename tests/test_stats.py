import math

import pytest

from abcalc.normal import norm_cdf, norm_ppf, two_sided_p_value, z_critical
from abcalc.stats import (
    poisson_rate_ci,
    proportion_ci,
    quasi_poisson_test,
    ztest_proportions,
)


def test_normal_primitives():
    assert norm_cdf(0.0) == pytest.approx(0.5)
    assert norm_ppf(0.975) == pytest.approx(1.959964, abs=1e-6)
    assert z_critical(95) == pytest.approx(1.959964, abs=1e-6)
    assert z_critical(99.9) == pytest.approx(3.290527, abs=1e-6)
    # deep tail keeps precision
    assert two_sided_p_value(5.0) == pytest.approx(5.733e-7, rel=1e-3)


def test_norm_ppf_out_of_range_is_nan():
    assert math.isnan(norm_ppf(0.0))
    assert math.isnan(norm_ppf(1.0))
    assert math.isnan(norm_ppf(float("nan")))


def test_ztest_known_example():
    # control 50/1000, test 65/1000
    res = ztest_proportions(50, 1000, 65, 1000)
    assert res.rate_control == pytest.approx(0.05)
    assert res.rate_test == pytest.approx(0.065)
    assert res.se == pytest.approx(0.010411, abs=1e-5)
    assert res.z == pytest.approx(1.4408, abs=1e-3)
    assert res.p_value == pytest.approx(0.1496, abs=1e-3)


def test_ztest_equal_rates_gives_zero_z():
    res = ztest_proportions(20, 200, 40, 400)
    assert res.z == pytest.approx(0.0)
    assert res.p_value == pytest.approx(1.0)


def test_ztest_symmetric_under_swap():
    a = ztest_proportions(120, 2000, 150, 1800)
    b = ztest_proportions(150, 1800, 120, 2000)
    assert a.z == pytest.approx(-b.z)
    assert a.p_value == pytest.approx(b.p_value)


def test_ztest_zero_se_is_non_finite_not_error():
    res = ztest_proportions(0, 100, 0, 100)
    assert math.isnan(res.z)
    assert math.isnan(res.p_value)
    assert not res.is_finite


def test_ztest_zero_visitors_does_not_raise():
    res = ztest_proportions(0, 0, 10, 100)
    assert not res.is_finite


def test_proportion_ci_uses_unpooled_se():
    # pooled SE (test) and unpooled SE (interval) differ on purpose
    ci = proportion_ci(50, 1000, 65, 1000, confidence_level=95)
    assert ci.estimate == pytest.approx(0.015)
    assert ci.lower == pytest.approx(-0.005394, abs=1e-5)
    assert ci.upper == pytest.approx(0.035394, abs=1e-5)
    unpooled = math.sqrt(0.05 * 0.95 / 1000 + 0.065 * 0.935 / 1000)
    assert (ci.upper - ci.lower) / 2 == pytest.approx(1.959964 * unpooled, rel=1e-5)
    assert ztest_proportions(50, 1000, 65, 1000).se != pytest.approx(unpooled, rel=1e-6)


def test_proportion_ci_brackets_estimate():
    for counts in [(10, 100, 30, 100), (500, 1000, 480, 1000), (0, 50, 1, 50)]:
        ci = proportion_ci(*counts, confidence_level=90)
        assert ci.lower <= ci.estimate <= ci.upper


def test_proportion_ci_widens_with_confidence():
    narrow = proportion_ci(50, 1000, 65, 1000, confidence_level=80)
    wide = proportion_ci(50, 1000, 65, 1000, confidence_level=99)
    assert wide.lower < narrow.lower
    assert wide.upper > narrow.upper


def test_poisson_known_example():
    res = quasi_poisson_test(100, 500, 130, 500, dispersion=1.0)
    assert res.rate_control == pytest.approx(0.2)
    assert res.rate_test == pytest.approx(0.26)
    assert res.se == pytest.approx(0.133012, abs=1e-5)
    assert res.z == pytest.approx(1.9725, abs=1e-3)
    assert res.p_value == pytest.approx(0.0486, abs=1e-3)


def test_poisson_equal_rates():
    res = quasi_poisson_test(20, 200, 30, 300, dispersion=2.0)
    assert res.z == pytest.approx(0.0)
    assert res.p_value == pytest.approx(1.0)


def test_poisson_rates_may_exceed_one():
    res = quasi_poisson_test(300, 100, 360, 100)
    assert res.rate_control == pytest.approx(3.0)
    assert res.is_finite


def test_poisson_dispersion_shrinks_z():
    plain = quasi_poisson_test(100, 500, 130, 500, dispersion=1.0)
    over = quasi_poisson_test(100, 500, 130, 500, dispersion=4.0)
    assert over.z == pytest.approx(plain.z / 2)
    assert over.p_value > plain.p_value


def test_poisson_zero_control_rate_is_non_finite():
    res = quasi_poisson_test(0, 500, 10, 500)
    assert not res.is_finite
    assert math.isnan(res.p_value)


def test_poisson_ci_is_percentage_change():
    ci = poisson_rate_ci(100, 500, 130, 500, dispersion=1.0, confidence_level=95)
    assert ci.estimate == pytest.approx(0.3)
    assert ci.lower == pytest.approx(0.00167, abs=1e-4)
    assert ci.upper == pytest.approx(0.6872, abs=1e-3)
    assert ci.lower <= ci.estimate <= ci.upper
