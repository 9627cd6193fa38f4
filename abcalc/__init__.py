"""
abcalc: A/B test significance calculator (two-proportion z-test,
quasi-Poisson rate-ratio test, Bonferroni correction, sample size and
duration planning).

Public API is re-exported here for convenience.
"""

from importlib.metadata import PackageNotFoundError, version as _version

# ---- Version ----
try:
    __version__ = _version("abcalc")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

# ---- Re-exports ----
# Pairwise tests
from .stats import (  # noqa: F401
    ConfidenceInterval,
    PairwiseTestResult,
    ztest_proportions,
    proportion_ci,
    quasi_poisson_test,
    poisson_rate_ci,
)

# Correction
from .correction import (  # noqa: F401
    bonferroni_p_value,
    bonferroni_alpha,
    bonferroni_adjust,
)

# Power / sample size
from .power import (  # noqa: F401
    sample_size_proportions,
    sample_size_poisson,
    duration_days,
)

# Engine
from .kernels import (  # noqa: F401
    ProportionKernel,
    PoissonRateKernel,
    make_kernel,
    DISPERSION_PRESETS,
    dispersion_preset,
)
from .models import TestConfiguration, VariantObservation  # noqa: F401
from .engine import analyze  # noqa: F401

# Percentages
from .utils import percent_of, percent_ratio, percent_change  # noqa: F401

__all__ = [
    "__version__",
    # stats
    "ConfidenceInterval",
    "PairwiseTestResult",
    "ztest_proportions",
    "proportion_ci",
    "quasi_poisson_test",
    "poisson_rate_ci",
    # correction
    "bonferroni_p_value",
    "bonferroni_alpha",
    "bonferroni_adjust",
    # power
    "sample_size_proportions",
    "sample_size_poisson",
    "duration_days",
    # engine
    "ProportionKernel",
    "PoissonRateKernel",
    "make_kernel",
    "DISPERSION_PRESETS",
    "dispersion_preset",
    "TestConfiguration",
    "VariantObservation",
    "analyze",
    # percentages
    "percent_of",
    "percent_ratio",
    "percent_change",
]
