"""
abcalc/utils.py

Utility functions used around the engine:
  - Percentage helpers (X% of Y, X as % of Y, % change)
  - Loading variant counts from CSV / DataFrames
  - Reporting: plain dicts for JSON, pandas tables for printing
"""

from __future__ import annotations

import math
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import pandas as pd

from .models import VARIANT_LABELS
from .summary import (
    PLACEHOLDER,
    format_confidence,
    format_count,
    format_lift,
    format_p_value,
    format_rate,
)


# -------------------------
# Percentages
# -------------------------

def percent_of(percent: float, value: float) -> Optional[float]:
    """What is `percent`% of value."""
    if value == 0:
        return None
    return percent / 100 * value


def percent_ratio(value: float, total: float) -> Optional[float]:
    """value as a percentage of total."""
    if total == 0:
        return None
    return value / total * 100


def percent_change(original: float, new: float) -> Optional[float]:
    if original == 0:
        return None
    return (new - original) / original * 100


# -------------------------
# Input
# -------------------------

COUNT_COLUMNS = ("variant", "visitors", "conversions")


def check_columns(df: pd.DataFrame, required: Sequence[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def counts_from_frame(df: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """
    One row per variant: variant, visitors, conversions.
    Variant labels are normalised to upper case ("a" -> "A").
    """
    check_columns(df, COUNT_COLUMNS)
    out = df.copy()
    out["variant"] = out["variant"].astype(str).str.strip().str.upper()
    bad = sorted(set(out["variant"]) - set(VARIANT_LABELS))
    if bad:
        raise ValueError(f"Unexpected variant labels: {bad}")
    if out["variant"].duplicated().any():
        raise ValueError("Each variant must appear once.")

    for c in ("visitors", "conversions"):
        out[c] = pd.to_numeric(out[c], errors="coerce").fillna(0)

    return {
        row.variant: {"visitors": int(row.visitors), "conversions": float(row.conversions)}
        for row in out.itertuples(index=False)
    }


def read_counts_csv(path: Union[str, Path]) -> Dict[str, Dict[str, float]]:
    return counts_from_frame(pd.read_csv(path))


# -------------------------
# Reporting
# -------------------------

def _clean(obj: Any) -> Any:
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _clean(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_clean(v) for v in obj]
    return obj


def as_report_dict(obj) -> Dict:
    """
    Convert a dataclass result to a plain dict for JSON/printing.
    Non-finite floats become None.
    """
    if is_dataclass(obj):
        return _clean(asdict(obj))
    if isinstance(obj, dict):
        return _clean(obj)
    raise TypeError("Expected dataclass or dict.")


def report_frame(report) -> pd.DataFrame:
    """One formatted row per variant of an AnalysisReport."""
    rows = []
    for label, res in report.variants.items():
        if report.kind == "proportion":
            rate = format_rate(res.rate)
        else:
            # events per visitor, may exceed 1
            rate = PLACEHOLDER if res.rate is None else f"{res.rate:.4f}"
        rows.append({
            "variant": label,
            "rate": rate,
            "lift": format_lift(res.lift),
            "extra": format_count(res.extra, signed=True),
            "p_value": format_p_value(res.p_value),
            "confidence": format_confidence(res.confidence),
        })
    return pd.DataFrame(rows, columns=["variant", "rate", "lift", "extra", "p_value", "confidence"])
