from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Dict, List, Optional

from .engine import AnalysisReport, analyze
from .kernels import DISPERSION_PRESETS, KERNEL_KINDS, dispersion_preset, make_kernel
from .models import VARIANT_LABELS, TestConfiguration, build_observations
from .sanity import normal_approximation_warnings, validate_inputs
from .summary import (
    PLACEHOLDER,
    format_confidence,
    format_count,
    format_interval,
    format_lift,
    format_p_value,
    methodology,
)
from .utils import as_report_dict, read_counts_csv, report_frame

logger = logging.getLogger(__name__)


def _parse_variant(text: str) -> tuple:
    try:
        visitors, conversions = text.split(":")
        return int(visitors), float(conversions)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected VISITORS:CONVERSIONS, got {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="abcalc",
        description="A/B test significance, confidence interval and duration calculator.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--variant", "-v", type=_parse_variant, action="append",
                     metavar="VISITORS:CONVERSIONS",
                     help="Counts for A, B, C... in order (repeat per variant)")
    src.add_argument("--input", type=str, help="CSV with columns variant,visitors,conversions")
    ap.add_argument("--kind", choices=KERNEL_KINDS, default="proportion",
                    help="proportion: z-test on conversions, poisson: rate-ratio test on counts")
    ap.add_argument("--confidence", type=float, default=95.0, help="Confidence level in %%")
    ap.add_argument("--power", type=float, default=80.0, help="Statistical power in %%")
    ap.add_argument("--days", type=float, default=7, help="Days of data collected so far")
    ap.add_argument("--bonferroni", action="store_true", help="Apply Bonferroni correction")
    phi = ap.add_mutually_exclusive_group()
    phi.add_argument("--dispersion", type=float, default=1.0,
                     help="Dispersion factor phi for the poisson test (>= 1)")
    phi.add_argument("--dispersion-preset", type=int, choices=sorted(DISPERSION_PRESETS),
                     help="Named dispersion level: "
                          + ", ".join(f"{k}={name}" for k, (_, name) in DISPERSION_PRESETS.items()))
    ap.add_argument("--json", action="store_true", help="Print the report as JSON")
    ap.add_argument("--strict", action="store_true", help="Exit on invalid inputs")
    ap.add_argument("--methodology", action="store_true", help="Print how the test works")
    ap.add_argument("--log-level", default=os.environ.get("ABCALC_LOG_LEVEL", "WARNING"))
    return ap


def _counts(args: argparse.Namespace) -> Dict[str, object]:
    if args.input:
        counts = read_counts_csv(args.input)
        if not counts:
            raise ValueError(f"No variants found in {args.input}")
        return counts
    if len(args.variant) > len(VARIANT_LABELS):
        raise ValueError(f"At most {len(VARIANT_LABELS)} variants are supported.")
    return dict(zip(VARIANT_LABELS, args.variant))


def render(report: AnalysisReport) -> str:
    lines: List[str] = [report_frame(report).to_string(index=False), ""]

    d = report.duration
    lines.append(f"Sample size per variant: {format_count(d.sample_size_per_variant)}")
    lines.append(f"Total duration (days):   {format_count(d.days_needed)}")
    lines.append(f"Remaining days:          {format_count(d.days_remaining)}")
    lines.append(d.note or PLACEHOLDER)

    lead = report.leading
    lines.append("")
    if lead is None:
        lines.append(f"Leading variant: {PLACEHOLDER}")
    else:
        lines.append(f"Leading variant: {lead.label} "
                     f"({format_lift(lead.lift_vs_runner_up, 1)} vs {lead.runner_up or PLACEHOLDER})")
        lines.append(f"Confidence:      {format_confidence(lead.confidence)}")
        lines.append(f"p-value:         {format_p_value(lead.p_value)} vs {lead.comparison_label}")
        lines.append(f"Interval:        {format_interval(lead.confidence_interval)}")
        lines.append(f"Monthly extras:  {format_count(lead.monthly_extras, signed=True)}")
        lines.append(lead.summary or PLACEHOLDER)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    dispersion = (args.dispersion if args.dispersion_preset is None
                  else dispersion_preset(args.dispersion_preset))

    try:
        counts = _counts(args)
        config = TestConfiguration(
            number_of_variants=max(VARIANT_LABELS.index(label) for label in counts) + 1,
            confidence_level=args.confidence,
            power_level=args.power,
            correction_enabled=args.bonferroni,
            dispersion_factor=dispersion,
            days_of_data=args.days,
            test_kind=args.kind,
        )
        observations = build_observations(counts, config.number_of_variants)
        if args.strict:
            validate_inputs(config, observations)
    except ValueError as exc:
        raise SystemExit(str(exc))

    if args.kind == "proportion":
        for warning in normal_approximation_warnings(observations):
            logger.warning(warning)

    report = analyze(observations, config, make_kernel(args.kind, dispersion))

    if args.json:
        print(json.dumps(as_report_dict(report), indent=2))
    else:
        print(render(report))
    if args.methodology:
        print()
        print(methodology(args.kind))
