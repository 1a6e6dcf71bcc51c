"""Geometry module: semialgebraic sets, boxes, Lebesgue moments, sampling."""

from .sets import HyperRectangle, lebesgue_moments
from .semialgebraic import SemialgebraicSet, Relation, make_set, bounding_box
from .sampling import sample_box, monte_carlo_volume, SamplingStrategy

__all__ = [
    "HyperRectangle",
    "lebesgue_moments",
    "SemialgebraicSet",
    "Relation",
    "make_set",
    "bounding_box",
    "sample_box",
    "monte_carlo_volume",
    "SamplingStrategy",
]
