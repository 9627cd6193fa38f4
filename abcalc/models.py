"""
abcalc/models.py

Input records: per-variant observations and the test configuration.
Both are built fresh for every computation and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .correction import number_of_comparisons

CONTROL = "A"
VARIANT_LABELS = ("A", "B", "C", "D", "E")

MIN_VARIANTS = 2
MAX_VARIANTS = len(VARIANT_LABELS)


@dataclass(frozen=True)
class VariantObservation:
    label: str
    visitors: int
    conversions: float

    @property
    def rate(self) -> Optional[float]:
        if self.visitors <= 0:
            return None
        return self.conversions / self.visitors

    @property
    def is_control(self) -> bool:
        return self.label == CONTROL


@dataclass(frozen=True)
class TestConfiguration:
    """
    Settings for one computation. Levels are percentages (95.0, not 0.95).
    dispersion_factor only affects the Poisson test.
    """

    number_of_variants: int = 2
    confidence_level: float = 95.0
    power_level: float = 80.0
    correction_enabled: bool = False
    dispersion_factor: float = 1.0
    days_of_data: float = 7
    test_kind: str = "proportion"

    @property
    def alpha(self) -> float:
        return 1 - self.confidence_level / 100

    @property
    def beta(self) -> float:
        return 1 - self.power_level / 100

    @property
    def power(self) -> float:
        return self.power_level / 100

    @property
    def comparisons(self) -> int:
        return number_of_comparisons(self.number_of_variants)

    @property
    def labels(self) -> tuple:
        return VARIANT_LABELS[:self.number_of_variants]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "TestConfiguration":
        """
        Build from a caller's input record. Accepts the calculator's
        camelCase keys (numberOfVariations, strictnessAdjustment, ...) as
        well as the field names.
        """
        aliases = {
            "numberOfVariations": "number_of_variants",
            "numberOfVariants": "number_of_variants",
            "confidenceLevel": "confidence_level",
            "powerLevel": "power_level",
            "strictnessAdjustment": "correction_enabled",
            "correctionEnabled": "correction_enabled",
            "dispersionFactor": "dispersion_factor",
            "daysOfData": "days_of_data",
            "daysOfDataCollected": "days_of_data",
            "testKind": "test_kind",
        }
        fields = set(cls.__dataclass_fields__)
        kwargs: Dict[str, Any] = {}
        for key, value in record.items():
            name = aliases.get(key, key)
            if name in fields:
                kwargs[name] = value
        return cls(**kwargs)


def _coerce(label: str, entry: Any) -> VariantObservation:
    if isinstance(entry, VariantObservation):
        return entry
    if isinstance(entry, Mapping):
        return VariantObservation(label, int(entry.get("visitors", 0) or 0),
                                  float(entry.get("conversions", 0) or 0))
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return VariantObservation(label, int(entry[0]), float(entry[1]))
    raise ValueError(f"Cannot read counts for variant {label!r}: {entry!r}")


def build_observations(counts: Mapping[str, Any],
                       number_of_variants: int) -> Dict[str, VariantObservation]:
    """
    Observations for the variants in use, in fixed A..E order.
    A label missing from counts becomes an empty observation (rate None).
    """
    unknown = set(counts) - set(VARIANT_LABELS)
    if unknown:
        raise ValueError(f"Unexpected variant labels: {sorted(unknown)}")

    out: Dict[str, VariantObservation] = {}
    # control is always present, even for a transiently invalid count
    for label in VARIANT_LABELS[:max(int(number_of_variants), 1)]:
        if label in counts:
            out[label] = _coerce(label, counts[label])
        else:
            out[label] = VariantObservation(label, 0, 0.0)
    return out
