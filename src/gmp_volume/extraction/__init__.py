"""Extraction module: solution queries, dual certificate, volume estimates."""

from .queries import objective_value, dual_value, moment_value, moment_matrix_value
from .certificate import reconstruct_polynomial, classify, classification_grid
from .volume import (
    LEBESGUE_CONSTRAINT,
    VolumeResult,
    build_volume_model,
    estimate_volume,
)

__all__ = [
    "objective_value",
    "dual_value",
    "moment_value",
    "moment_matrix_value",
    "reconstruct_polynomial",
    "classify",
    "classification_grid",
    "LEBESGUE_CONSTRAINT",
    "VolumeResult",
    "build_volume_model",
    "estimate_volume",
]
