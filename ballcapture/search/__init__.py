"""Cross-entropy optimization of radial basis function policies."""

from ballcapture.search.direct_policy_search import (
    DirectPolicySearch,
    IterationResult,
    PerformanceReport,
    select_elites,
)
from ballcapture.search.distribution import Population, SamplingDistribution, SamplingError

__all__ = [
    "DirectPolicySearch",
    "IterationResult",
    "PerformanceReport",
    "Population",
    "SamplingDistribution",
    "SamplingError",
    "select_elites",
]
