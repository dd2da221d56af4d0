#Expose the high-level pipeline pieces:
#Candidate filtering (fleet gate)
#Scoring / strategy weighting / ranking
#Dispatcher orchestrator (suggestions, batch assignment, validation)
#Reassignment planner (absent driver replacement)

from .candidate_filter import build_base_candidates
from .dispatcher import (
    Dispatcher,
    DriverAssignmentResult,
    DriverSuggestion,
    RouteAssignmentRequest,
    SuggestionResult,
)
from .exceptions import (
    AssignmentRequestRejected,
    DriverNotFound,
    InvalidAssignmentRequest,
    TenantMismatch,
    VehicleNotFound,
)
from .ranking import RankingResult, ScoredCandidate, rank_candidates
from .reassignment import FleetScope, ReassignmentImpact, ReassignmentPlanner, ReassignmentResult, ReplacementOption
from .scoring import AssignmentFactors, AssignmentScore, merge_scores, score_driver
from .strategy import STRATEGY_WEIGHTS, AssignmentStrategy, StrategyWeights, strategy_weights
from .validation import AssignmentValidationResult, assignment_quality_metrics, validate_driver_assignment

__all__ = [
    "build_base_candidates",
    "Dispatcher",
    "DriverAssignmentResult",
    "DriverSuggestion",
    "RouteAssignmentRequest",
    "SuggestionResult",
    "AssignmentRequestRejected",
    "DriverNotFound",
    "InvalidAssignmentRequest",
    "TenantMismatch",
    "VehicleNotFound",
    "RankingResult",
    "ScoredCandidate",
    "rank_candidates",
    "FleetScope",
    "ReassignmentImpact",
    "ReassignmentPlanner",
    "ReassignmentResult",
    "ReplacementOption",
    "AssignmentFactors",
    "AssignmentScore",
    "merge_scores",
    "score_driver",
    "STRATEGY_WEIGHTS",
    "AssignmentStrategy",
    "StrategyWeights",
    "strategy_weights",
    "AssignmentValidationResult",
    "assignment_quality_metrics",
    "validate_driver_assignment",
]
