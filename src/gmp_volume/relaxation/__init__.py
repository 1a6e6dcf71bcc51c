"""Relaxation module: moment arena, matrix assembly, SDP solve."""

from .arena import MomentArena
from .matrices import PSDBlock, moment_matrix, localizing_matrix, localizing_equalities
from .solver import SolverConfig, SolverResult, solve_sdp
from .engine import SDPProblem, LinearConstraint, build_sdp, required_order, relax

__all__ = [
    "MomentArena",
    "PSDBlock",
    "moment_matrix",
    "localizing_matrix",
    "localizing_equalities",
    "SolverConfig",
    "SolverResult",
    "solve_sdp",
    "SDPProblem",
    "LinearConstraint",
    "build_sdp",
    "required_order",
    "relax",
]
