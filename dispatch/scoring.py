#Purpose: Constraint evaluation (the "how fit is this driver" layer).
#Takes one (driver, vehicle, required skills) triple and produces:
#five independent 0-100 factors (skills, availability, license, fleet, workload)
#human readable warnings (soft) and errors (hard, exclude from ranking)
#one strategy-weighted overall score
#Errors never raise: an unfit driver is still scored so a best-effort
#answer can be returned when nobody is fit.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

from drivers.models import Driver, DriverStatus, to_utc, utc_now
from drivers.policy import AssignmentPolicy, default_assignment_policy
from fleets.models import Vehicle

from .strategy import AssignmentStrategy, StrategyWeights, strategy_weights

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class AssignmentFactors:
    skills_match: int = 0
    availability: int = 0
    license_valid: int = 0
    fleet_match: int = 0
    workload: int = 0

    def clamped(self) -> AssignmentFactors:
        return AssignmentFactors(
            skills_match=clamp(self.skills_match),
            availability=clamp(self.availability),
            license_valid=clamp(self.license_valid),
            fleet_match=clamp(self.fleet_match),
            workload=clamp(self.workload),
        )

    def as_dict(self) -> Dict[str, int]:
        return {
            "skills_match": self.skills_match,
            "availability": self.availability,
            "license_valid": self.license_valid,
            "fleet_match": self.fleet_match,
            "workload": self.workload,
        }


@dataclass
class AssignmentScore:
    """
    Fitness of one driver for one assignment. Created per scoring call, never persisted.
    """
    driver_id: str
    score: int
    factors: AssignmentFactors
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    # Unrounded weighted average, used to break ties between equal scores.
    raw_score: float = 0.0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "driver_id": self.driver_id,
            "score": self.score,
            "factors": self.factors.as_dict(),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


def score_driver(
    driver: Driver,
    vehicle: Vehicle,
    required_skills: Iterable[str],
    *,
    strategy: Union[str, AssignmentStrategy, None] = AssignmentStrategy.BALANCED,
    policy: Optional[AssignmentPolicy] = None,
    now: Optional[datetime] = None,
    assigned_route_count: int = 0,
) -> AssignmentScore:
    """
    Evaluates every constraint for one driver and combines the factors with
    the strategy weights.

    `assigned_route_count` is the number of routes already tentatively given to
    this driver earlier in the same request (batch/reassignment contexts). It is
    0 for single suggestions, which leaves the workload factor at 100.
    """
    policy = policy or default_assignment_policy()
    now = to_utc(now) if now else utc_now()
    required = frozenset(required_skills)

    warnings: List[str] = []
    errors: List[str] = []

    license_valid = _license_factor(driver, vehicle, now, policy, warnings, errors)
    availability = _availability_factor(driver, warnings, errors)
    fleet_match = _fleet_factor(driver, vehicle, warnings)
    skills_match = _skills_factor(driver, required, now, policy, warnings, errors)
    workload = _workload_factor(assigned_route_count, policy)

    factors = AssignmentFactors(
        skills_match=skills_match,
        availability=availability,
        license_valid=license_valid,
        fleet_match=fleet_match,
        workload=workload,
    ).clamped()

    return _build_score(driver.id, factors, warnings, errors, strategy_weights(strategy))


def merge_scores(
    scores: Sequence[AssignmentScore],
    strategy: Union[str, AssignmentStrategy, None] = AssignmentStrategy.BALANCED,
) -> AssignmentScore:
    """
    Combines the scores of one driver against several vehicles: each factor is
    the worst one seen, messages are the de-duplicated union.
    """
    if not scores:
        raise ValueError("merge_scores needs at least one score")
    if len(scores) == 1:
        return scores[0]

    factors = AssignmentFactors(
        skills_match=min(s.factors.skills_match for s in scores),
        availability=min(s.factors.availability for s in scores),
        license_valid=min(s.factors.license_valid for s in scores),
        fleet_match=min(s.factors.fleet_match for s in scores),
        workload=min(s.factors.workload for s in scores),
    )
    warnings = list(dict.fromkeys(w for s in scores for w in s.warnings))
    errors = list(dict.fromkeys(e for s in scores for e in s.errors))

    return _build_score(scores[0].driver_id, factors, warnings, errors, strategy_weights(strategy))


def rescore(score: AssignmentScore, strategy: Union[str, AssignmentStrategy, None]) -> AssignmentScore:
    """
    Re-weights already computed factors under another strategy.
    """
    weights = strategy_weights(strategy)
    raw = weights.weighted_average(score.factors)
    return replace(score, score=clamp(round_half_up(raw)), raw_score=raw)


# -------------------------
# Factor rules
# -------------------------

def _build_score(
    driver_id: str,
    factors: AssignmentFactors,
    warnings: List[str],
    errors: List[str],
    weights: StrategyWeights,
) -> AssignmentScore:
    raw = weights.weighted_average(factors)
    score = AssignmentScore(
        driver_id=driver_id,
        score=clamp(round_half_up(raw)),
        factors=factors,
        warnings=warnings,
        errors=errors,
        raw_score=raw,
    )
    logger.debug("Scored driver %s: %s (%s) errors=%s", driver_id, score.score, factors.as_dict(), errors)
    return score


def days_until(expiry: datetime, now: datetime) -> int:
    """
    Whole days left before `expiry`, rounded up (an expiry later today is 1 day away).
    """
    return math.ceil((to_utc(expiry) - to_utc(now)).total_seconds() / SECONDS_PER_DAY)


@dataclass(frozen=True)
class LicenseCheck:
    """
    Expiry state of one license. Callers decide whether a missing or expired
    license is an error or a warning in their context.
    """
    missing: bool = False
    expired: bool = False
    days_left: Optional[int] = None
    near_expiry: bool = False

    @property
    def message(self) -> Optional[str]:
        if self.missing:
            return "no license expiry date"
        if self.expired:
            return "license expired"
        if self.near_expiry:
            return f"license expires in {self.days_left} days"
        return None


def check_license_expiry(expiry: Optional[datetime], now: datetime, policy: AssignmentPolicy) -> LicenseCheck:
    if expiry is None:
        return LicenseCheck(missing=True)
    if to_utc(expiry) < to_utc(now):
        return LicenseCheck(expired=True)

    days_left = days_until(expiry, now)
    window = policy.license_near_expiry_days
    return LicenseCheck(days_left=days_left, near_expiry=window > 0 and days_left <= window)


def _license_factor(
    driver: Driver,
    vehicle: Vehicle,
    now: datetime,
    policy: AssignmentPolicy,
    warnings: List[str],
    errors: List[str],
) -> int:
    # Missing/expired license is only exclusionary when the policy says so.
    hard = errors if policy.require_license_valid else warnings

    check = check_license_expiry(driver.license_expiry, now, policy)
    if check.missing or check.expired:
        hard.append(check.message)
        factor = 0
    elif check.near_expiry:
        warnings.append(check.message)
        factor = round_half_up(check.days_left / policy.license_near_expiry_days * 100)
    else:
        factor = 100

    # Category mismatch is layered on top of validity, never an error by itself.
    required_category = vehicle.license_required
    if required_category and required_category not in driver.license_categories:
        warnings.append(f"missing license category: {required_category}")
        factor = max(0, factor - policy.license_category_penalty)

    return factor


def _availability_factor(driver: Driver, warnings: List[str], errors: List[str]) -> int:
    status = driver.status

    if status in (DriverStatus.UNAVAILABLE, DriverStatus.ABSENT):
        errors.append(f"driver is {status.value.lower()}")
        return 0
    if status == DriverStatus.COMPLETED:
        # available, but just finished a route
        return 50
    if status == DriverStatus.AVAILABLE:
        return 100

    warnings.append(f"driver status is {status.value}")
    return 50


def _fleet_factor(driver: Driver, vehicle: Vehicle, warnings: List[str]) -> int:
    primary = vehicle.primary_fleet_id
    if primary is not None and driver.primary_fleet_id == primary:
        return 100

    if driver.belongs_to_any(vehicle.fleet_ids):
        warnings.append("driver from secondary fleet")
        return 75

    warnings.append("driver from different fleet")
    return 25


def _skills_factor(
    driver: Driver,
    required: FrozenSet[str],
    now: datetime,
    policy: AssignmentPolicy,
    warnings: List[str],
    errors: List[str],
) -> int:
    if required:
        held = driver.active_skill_ids() if policy.count_expired_skills else driver.effective_skill_ids(now)
        matched = required & held
        factor = round_half_up(len(matched) / len(required) * 100)

        if factor < 100:
            warnings.append(f"{len(matched)}/{len(required)} skills matched")

        if factor == 0 and policy.require_skills_match:
            errors.append("missing required skills")
    else:
        factor = 100

    for assignment in driver.skills:
        if assignment.active and assignment.is_expired(now):
            warnings.append(f'skill "{assignment.label}" expired')
            factor = max(0, factor - policy.expired_skill_penalty)

    return factor


def _workload_factor(assigned_route_count: int, policy: AssignmentPolicy) -> int:
    if not policy.balance_workload:
        return 100
    return max(0, 100 - assigned_route_count * policy.workload_penalty_per_route)
