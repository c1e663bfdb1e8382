"""Parametric policies for the ball capture task."""

from ballcapture.policies.radial_basis import MIN_RADIUS, RadialGaussian
from ballcapture.policies.rbf_policy import RBFPolicy

__all__ = [
    "MIN_RADIUS",
    "RadialGaussian",
    "RBFPolicy",
]
