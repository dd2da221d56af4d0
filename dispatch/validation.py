#Purpose: Manual assignment checks and assignment quality reporting.
#validate_driver_assignment: a planner picked a driver by hand; tell them what is wrong.
#Stricter than scoring: a missing license category or any missing required skill is an error here.
#assignment_quality_metrics: aggregate view over a batch of assignment results.
#No gateway access: callers pass the snapshots in.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from drivers.models import Driver, DriverStatus, to_utc
from drivers.policy import AssignmentPolicy, default_assignment_policy
from fleets.models import Vehicle

from .scoring import check_license_expiry, round_half_up


@dataclass
class AssignmentValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {"is_valid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def validate_driver_assignment(
    driver: Optional[Driver],
    vehicle: Optional[Vehicle],
    required_skills: FrozenSet[str],
    now: datetime,
    policy: Optional[AssignmentPolicy] = None,
) -> AssignmentValidationResult:
    """
    Checks a hand-picked (driver, vehicle) pair. A missing driver or vehicle
    short-circuits with a single error.
    """
    policy = policy or default_assignment_policy()
    now = to_utc(now)
    result = AssignmentValidationResult()

    if driver is None:
        result.errors.append("driver not found")
        return result
    if vehicle is None:
        result.errors.append("vehicle not found")
        return result

    # License validity
    check = check_license_expiry(driver.license_expiry, now, policy)
    if check.expired:
        result.errors.append(check.message)
    elif check.message:
        result.warnings.append(check.message)

    # License category
    if vehicle.license_required and vehicle.license_required not in driver.license_categories:
        result.errors.append(f"missing license category: {vehicle.license_required}")

    # Skills
    missing = sorted(required_skills - driver.active_skill_ids())
    if missing:
        result.errors.append(f"missing required skills: {', '.join(missing)}")

    for assignment in driver.skills:
        if assignment.active and assignment.is_expired(now):
            result.warnings.append(f'skill "{assignment.label}" expired')

    # Status
    if driver.status in (DriverStatus.UNAVAILABLE, DriverStatus.ABSENT):
        result.errors.append(f"driver is {driver.status.value.lower()}")
    elif driver.status not in (DriverStatus.AVAILABLE, DriverStatus.COMPLETED):
        result.warnings.append(f"driver status is {driver.status.value}")

    return result


def _average(values: List[int]) -> int:
    return round_half_up(sum(values) / len(values)) if values else 0


def assignment_quality_metrics(results: Iterable[Any]) -> Dict[str, int]:
    """
    Summarizes assignment results (anything with a `.score` AssignmentScore).
    Averages are rounded to whole points; an empty batch yields zeros.
    """
    scores = [r.score for r in results]

    return {
        "total_assignments": len(scores),
        "assignments_with_warnings": sum(1 for s in scores if s.warnings),
        "assignments_with_errors": sum(1 for s in scores if s.errors),
        "average_score": _average([s.score for s in scores]),
        "skill_coverage": _average([s.factors.skills_match for s in scores]),
        "license_compliance": _average([s.factors.license_valid for s in scores]),
        "fleet_alignment": _average([s.factors.fleet_match for s in scores]),
        "workload_balance": _average([s.factors.workload for s in scores]),
    }
