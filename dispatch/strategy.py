"""
Purpose: Named optimization strategies and their factor weights.
What it does:
Maps a strategy to relative weights over the five assignment factors.
BALANCED weighs every factor equally; the others put 5 on their factor.
License is weighted 3 in every named strategy.
Weights only order candidates, they never filter them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union, TYPE_CHECKING

from .exceptions import InvalidAssignmentRequest

if TYPE_CHECKING:
    from .scoring import AssignmentFactors


class AssignmentStrategy(str, Enum):
    BALANCED = "BALANCED"
    SKILLS_FIRST = "SKILLS_FIRST"
    AVAILABILITY = "AVAILABILITY"
    FLEET_MATCH = "FLEET_MATCH"
    WORKLOAD = "WORKLOAD"


@dataclass(frozen=True)
class StrategyWeights:
    skills: int
    availability: int
    license: int
    fleet: int
    workload: int

    @property
    def total(self) -> int:
        return self.skills + self.availability + self.license + self.fleet + self.workload

    def weighted_sum(self, factors: AssignmentFactors) -> int:
        return (
            factors.skills_match * self.skills
            + factors.availability * self.availability
            + factors.license_valid * self.license
            + factors.fleet_match * self.fleet
            + factors.workload * self.workload
        )

    def weighted_average(self, factors: AssignmentFactors) -> float:
        return self.weighted_sum(factors) / self.total


STRATEGY_WEIGHTS: Dict[AssignmentStrategy, StrategyWeights] = {
    AssignmentStrategy.BALANCED: StrategyWeights(skills=1, availability=1, license=1, fleet=1, workload=1),
    AssignmentStrategy.SKILLS_FIRST: StrategyWeights(skills=5, availability=2, license=3, fleet=1, workload=1),
    AssignmentStrategy.AVAILABILITY: StrategyWeights(skills=2, availability=5, license=3, fleet=1, workload=2),
    AssignmentStrategy.WORKLOAD: StrategyWeights(skills=2, availability=2, license=3, fleet=1, workload=5),
    AssignmentStrategy.FLEET_MATCH: StrategyWeights(skills=2, availability=2, license=3, fleet=5, workload=1),
}


def resolve_strategy(strategy: Union[str, AssignmentStrategy, None]) -> AssignmentStrategy:
    if strategy is None:
        return AssignmentStrategy.BALANCED
    if isinstance(strategy, AssignmentStrategy):
        return strategy
    try:
        return AssignmentStrategy(str(strategy).upper())
    except ValueError:
        raise InvalidAssignmentRequest(f"Unknown assignment strategy: {strategy}") from None


def strategy_weights(strategy: Union[str, AssignmentStrategy, None]) -> StrategyWeights:
    return STRATEGY_WEIGHTS[resolve_strategy(strategy)]
