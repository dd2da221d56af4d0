#Purpose: Ranking/selection (the "who is best" layer).
#Takes already scored candidates and produces an ordered, truncated list.
#Responsibilities:
#validate the requested result size against the policy
#split valid (no errors) from invalid candidates
#deterministic ordering: score, then unrounded score, then name, then id
#best-effort fallback when nobody is valid (suggestion path only)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from drivers.models import Driver
from drivers.policy import AssignmentPolicy

from .exceptions import InvalidAssignmentRequest
from .scoring import AssignmentScore


def resolve_limit(limit: Optional[int], policy: AssignmentPolicy) -> int:
    """
    None means the policy default; anything else must be an int in 1..max_limit.
    """
    if limit is None:
        return policy.default_limit
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidAssignmentRequest("limit must be an integer")
    if not 1 <= limit <= policy.max_limit:
        raise InvalidAssignmentRequest(f"limit must be between 1 and {policy.max_limit}")
    return limit


@dataclass(frozen=True)
class ScoredCandidate:
    driver: Driver
    score: AssignmentScore

    @property
    def is_valid(self) -> bool:
        return self.score.is_valid


@dataclass
class RankingResult:
    ranked: List[ScoredCandidate] = field(default_factory=list)
    invalid: List[ScoredCandidate] = field(default_factory=list)
    total_candidates: int = 0
    # True when `ranked` holds a single best-effort candidate that carries errors.
    is_fallback: bool = False

    @property
    def returned(self) -> int:
        return len(self.ranked)


def _sort_key(candidate: ScoredCandidate):
    return (-candidate.score.score, -candidate.score.raw_score, candidate.driver.name, candidate.driver.id)


def rank_candidates(
    candidates: Iterable[ScoredCandidate],
    limit: int,
    *,
    fallback: bool = True,
) -> RankingResult:
    """
    Orders valid candidates best first and keeps at most `limit` of them.

    With no valid candidate and `fallback=True`, the single best candidate
    overall is returned (with its errors) so the caller still has something
    to act on. With `fallback=False` nothing is returned.
    """
    candidates = list(candidates)
    valid = sorted((c for c in candidates if c.is_valid), key=_sort_key)
    invalid = sorted((c for c in candidates if not c.is_valid), key=_sort_key)

    result = RankingResult(invalid=invalid, total_candidates=len(candidates))

    if limit <= 0:
        return result

    if valid:
        result.ranked = valid[:limit]
    elif fallback and invalid:
        result.ranked = invalid[:1]
        result.is_fallback = True

    return result
