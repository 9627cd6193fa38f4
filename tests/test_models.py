import pytest

from abcalc.models import TestConfiguration as Configuration, VariantObservation, build_observations


def test_rate_is_none_without_visitors():
    assert VariantObservation("A", 0, 0).rate is None
    assert VariantObservation("B", 200, 20).rate == pytest.approx(0.1)


def test_configuration_defaults():
    cfg = Configuration()
    assert cfg.number_of_variants == 2
    assert cfg.alpha == pytest.approx(0.05)
    assert cfg.power == pytest.approx(0.8)
    assert cfg.comparisons == 1
    assert cfg.labels == ("A", "B")


def test_configuration_from_camel_case_record():
    cfg = Configuration.from_record({
        "numberOfVariations": 4,
        "confidenceLevel": 90,
        "powerLevel": 85,
        "strictnessAdjustment": True,
        "daysOfData": 10,
        "tailType": "two-tailed",  # ignored
    })
    assert cfg.number_of_variants == 4
    assert cfg.confidence_level == 90
    assert cfg.power_level == 85
    assert cfg.correction_enabled is True
    assert cfg.days_of_data == 10
    assert cfg.comparisons == 3


def test_build_observations_accepts_several_shapes():
    obs = build_observations({
        "A": VariantObservation("A", 100, 5),
        "B": {"visitors": 100, "conversions": 7},
        "C": (100, 9),
    }, 4)
    assert list(obs) == ["A", "B", "C", "D"]
    assert obs["B"].conversions == 7
    assert obs["C"].visitors == 100
    assert obs["D"].rate is None


def test_build_observations_rejects_unknown_labels():
    with pytest.raises(ValueError):
        build_observations({"A": (1, 0), "Z": (1, 0)}, 2)


def test_build_observations_rejects_bad_entry():
    with pytest.raises(ValueError):
        build_observations({"A": "lots"}, 2)
