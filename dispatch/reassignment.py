#Purpose: Replacement planning when a driver drops out mid-route.
#Input: the absent driver (+ optional job scope).
#Steps:
#1) find the driver's affected routes (stops still PENDING / IN_PROGRESS)
#2) pool skills from every active stop of those routes
#3) collect candidates from the routes' vehicle fleets (or the whole company)
#4) score each candidate against every affected vehicle, workload counting the routes absorbed
#5) attach the impact of each candidate; a capacity overflow makes the option invalid
#6) rank WITHOUT fallback: nobody valid means an explicit message, never a bad suggestion
#7) order by fleet priority: same fleet, then same fleet type, then any other fleet
#Also: impact of handing everything to one specific replacement.
#Nothing here writes: committing a reassignment is done downstream.

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Union

from drivers.models import Driver, DriverStatus, to_utc, utc_now
from drivers.policy import AssignmentPolicy, default_assignment_policy
from fleets.models import Vehicle
from orders.models import RouteStopRef
from orders.requirements import required_skills_for_stops
from routing.models import AffectedRoute, StopStatus
from routing.route_service import find_affected_routes

from .candidate_filter import build_base_candidates
from .exceptions import DriverNotFound, InvalidAssignmentRequest, TenantMismatch
from .ranking import ScoredCandidate, rank_candidates, resolve_limit
from .scoring import AssignmentScore, check_license_expiry, merge_scores, round_half_up, score_driver
from .strategy import AssignmentStrategy, resolve_strategy

logger = logging.getLogger(__name__)

NO_ACTIVE_ROUTES = "no active routes found for this driver"
NO_VIABLE_CANDIDATES = "no viable replacement candidates found"


class FleetScope(str, Enum):
    SAME_FLEET = "SAME_FLEET"  # fleets of the affected vehicles
    ANY_FLEET = "ANY_FLEET"    # every active driver of the company


class OptionPriority(IntEnum):
    SAME_FLEET = 1
    SAME_FLEET_TYPE = 2
    OTHER_FLEET = 3


@dataclass
class ReplacementOption:
    option_id: str
    driver: Driver
    score: AssignmentScore
    route_ids: List[str] = field(default_factory=list)
    priority: OptionPriority = OptionPriority.SAME_FLEET
    impact: Optional[ReassignmentImpact] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "option_id": self.option_id,
            "driver_id": self.driver.id,
            "driver_name": self.driver.name,
            "fleet_id": self.driver.primary_fleet_id,
            "priority": int(self.priority),
            "score": self.score.score,
            "factors": self.score.factors.as_dict(),
            "warnings": list(self.score.warnings),
            "errors": list(self.score.errors),
            "route_ids": list(self.route_ids),
            "impact": self.impact.to_dict() if self.impact else None,
        }


@dataclass
class ReassignmentResult:
    absent_driver_id: str
    strategy: AssignmentStrategy
    affected_routes: List[AffectedRoute] = field(default_factory=list)
    options: List[ReplacementOption] = field(default_factory=list)
    required_skills: frozenset = frozenset()
    total_candidates: int = 0
    message: Optional[str] = None

    def meta(self) -> Dict[str, Any]:
        return {
            "absent_driver_id": self.absent_driver_id,
            "strategy": self.strategy.value,
            "affected_routes": len(self.affected_routes),
            "total_stops": sum(r.total_stops for r in self.affected_routes),
            "pending_stops": sum(r.pending_stops for r in self.affected_routes),
            "in_progress_stops": sum(r.in_progress_stops for r in self.affected_routes),
            "total_candidates": self.total_candidates,
            "required_skills": sorted(self.required_skills),
            "options_generated": len(self.options),
            "affected_routes_summary": [r.summary() for r in self.affected_routes],
        }

    def to_dict(self) -> Dict[str, Any]:
        body = {"data": [o.to_dict() for o in self.options], "meta": self.meta()}
        if self.message:
            body["message"] = self.message
        return body


@dataclass
class ReassignmentImpact:
    replacement_driver_id: str
    replacement_driver_name: str = ""
    stops_count: int = 0
    current_stops: int = 0
    max_stops: int = 0
    compromised_windows: int = 0
    skills_match: int = 100
    missing_skills: List[str] = field(default_factory=list)
    is_available: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def projected_stops(self) -> int:
        return self.current_stops + self.stops_count

    @property
    def can_absorb_stops(self) -> bool:
        return self.projected_stops <= self.max_stops

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        pct = round_half_up(self.compromised_windows / self.stops_count * 100) if self.stops_count else 0
        return {
            "replacement_driver_id": self.replacement_driver_id,
            "replacement_driver_name": self.replacement_driver_name,
            "stops_count": self.stops_count,
            "compromised_windows": {"count": self.compromised_windows, "percentage": pct},
            "capacity": {
                "current_stops": self.current_stops,
                "projected_stops": self.projected_stops,
                "max_stops": self.max_stops,
                "can_absorb_stops": self.can_absorb_stops,
            },
            "skills_match": {"percentage": self.skills_match, "missing": list(self.missing_skills)},
            "is_available": self.is_available,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class ReassignmentPlanner:
    """
    Generates replacement options for an absent driver.
    """
    def __init__(
        self,
        gateway,
        policy: Optional[AssignmentPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.policy = policy or default_assignment_policy()
        self.clock = clock or utc_now

    def now(self) -> datetime:
        return to_utc(self.clock())

    # --- Helpers ---

    def _load_driver(self, company_id: str, driver_id: str) -> Driver:
        driver = self.gateway.get_driver(company_id, driver_id)
        if driver is None:
            raise DriverNotFound(f"Driver {driver_id} not found")
        if driver.company_id != company_id:
            raise TenantMismatch(f"Driver {driver_id} does not belong to company {company_id}")
        return driver

    def affected_routes(self, company_id: str, driver_id: str, job_id: Optional[str] = None) -> List[AffectedRoute]:
        stops = self.gateway.stops_for_driver(company_id, driver_id, job_id)
        vehicles = self.gateway.get_vehicles(company_id, {s.vehicle_id for s in stops})
        return find_affected_routes(stops, {v.id: v for v in vehicles}, job_id=job_id)

    def _required_skills(self, company_id: str, routes: List[AffectedRoute]) -> frozenset:
        refs = [RouteStopRef(order_id=s.order_id) for r in routes for s in r.active_stops]
        if not refs:
            return frozenset()
        orders = self.gateway.get_orders(company_id, [r.order_id for r in refs])
        return required_skills_for_stops(orders, refs, company_id)

    def _impact(
        self,
        company_id: str,
        replacement: Driver,
        routes: List[AffectedRoute],
        required: frozenset,
        now: datetime,
    ) -> ReassignmentImpact:
        impact = ReassignmentImpact(
            replacement_driver_id=replacement.id,
            replacement_driver_name=replacement.name,
            max_stops=self.policy.max_stops_per_driver,
        )

        # License
        check = check_license_expiry(replacement.license_expiry, now, self.policy)
        if check.missing or check.expired:
            (impact.errors if self.policy.require_license_valid else impact.warnings).append(check.message)
        elif check.near_expiry:
            impact.warnings.append(check.message)

        # Status
        impact.is_available = replacement.status in (DriverStatus.AVAILABLE, DriverStatus.COMPLETED)
        if replacement.status in (DriverStatus.UNAVAILABLE, DriverStatus.ABSENT):
            impact.errors.append(f"driver is {replacement.status.value.lower()}")
        elif not impact.is_available:
            impact.warnings.append(f"driver status is {replacement.status.value}")

        # Load
        active_stops = [s for r in routes for s in r.active_stops]
        impact.stops_count = len(active_stops)
        impact.current_stops = sum(
            1 for s in self.gateway.stops_for_driver(company_id, replacement.id)
            if s.status == StopStatus.PENDING
        )
        if not impact.can_absorb_stops:
            impact.errors.append(
                f"driver cannot absorb {impact.stops_count} stops "
                f"(current: {impact.current_stops}, max: {impact.max_stops})"
            )

        impact.compromised_windows = sum(1 for s in active_stops if s.is_window_compromised)

        # Skills
        if required:
            held = replacement.active_skill_ids() if self.policy.count_expired_skills else replacement.effective_skill_ids(now)
            impact.missing_skills = sorted(required - held)
            impact.skills_match = round_half_up((len(required) - len(impact.missing_skills)) / len(required) * 100)
            if impact.missing_skills:
                impact.warnings.append(f"missing required skills: {', '.join(impact.missing_skills)}")

        return impact

    @staticmethod
    def _priority(
        driver: Driver,
        home_fleet_ids: List[str],
        home_type: Optional[str],
        fleet_types: Dict[str, Optional[str]],
    ) -> OptionPriority:
        if driver.belongs_to_any(home_fleet_ids):
            return OptionPriority.SAME_FLEET
        if home_type is not None and fleet_types.get(driver.primary_fleet_id) == home_type:
            return OptionPriority.SAME_FLEET_TYPE
        return OptionPriority.OTHER_FLEET

    # --- Operations ---

    def generate_options(
        self,
        company_id: str,
        absent_driver_id: str,
        *,
        job_id: Optional[str] = None,
        strategy: Union[str, AssignmentStrategy, None] = AssignmentStrategy.BALANCED,
        limit: Optional[int] = None,
        fleet_scope: Union[str, FleetScope] = FleetScope.SAME_FLEET,
    ) -> ReassignmentResult:
        """
        One pooled option list covering every affected route of the absent driver.
        """
        if not company_id:
            raise InvalidAssignmentRequest("company_id is required")
        strategy = resolve_strategy(strategy)
        limit = resolve_limit(limit, self.policy)
        if not isinstance(fleet_scope, FleetScope):
            try:
                fleet_scope = FleetScope(str(fleet_scope).upper())
            except ValueError:
                raise InvalidAssignmentRequest(f"Unknown fleet scope: {fleet_scope}") from None

        absent = self._load_driver(company_id, absent_driver_id)
        result = ReassignmentResult(absent_driver_id=absent.id, strategy=strategy)

        routes = self.affected_routes(company_id, absent.id, job_id)
        result.affected_routes = routes
        if not routes:
            logger.info("Driver %s has no active routes; nothing to reassign", absent.id)
            result.message = NO_ACTIVE_ROUTES
            return result

        vehicles = self.gateway.get_vehicles(company_id, list(dict.fromkeys(r.vehicle_id for r in routes)))
        if not vehicles:
            # stops point at vehicles we cannot see; still score against fleet-less placeholders
            vehicles = [Vehicle.new(r.vehicle_id, company_id) for r in routes]

        required = self._required_skills(company_id, routes)
        result.required_skills = required

        fleet_ids: List[str] = []
        if fleet_scope == FleetScope.SAME_FLEET:
            fleet_ids = list(dict.fromkeys(f for v in vehicles for f in v.fleet_ids))
            if not fleet_ids and absent.primary_fleet_id:
                fleet_ids = [absent.primary_fleet_id]

        candidates = build_base_candidates(
            self.gateway.list_drivers(company_id),
            fleet_ids,
            company_id=company_id,
            exclude_driver_ids=[absent.id],
        )

        home_fleet_ids = list(dict.fromkeys(
            [f for v in vehicles for f in v.fleet_ids] + ([absent.primary_fleet_id] if absent.primary_fleet_id else [])
        ))
        fleet_types: Dict[str, Optional[str]] = {}
        if any(not d.belongs_to_any(home_fleet_ids) for d in candidates):
            fleet_types = {f.id: f.type for f in self.gateway.list_fleets(company_id)}
        home_type = fleet_types.get(absent.primary_fleet_id)

        now = self.now()
        # the replacement takes every route: each extra route costs workload
        extra_routes = len(routes) - 1
        scored = []
        impacts: Dict[str, ReassignmentImpact] = {}
        for driver in candidates:
            per_vehicle = [
                score_driver(
                    driver,
                    vehicle,
                    required,
                    strategy=strategy,
                    policy=self.policy,
                    now=now,
                    assigned_route_count=extra_routes,
                )
                for vehicle in vehicles
            ]
            score = merge_scores(per_vehicle, strategy)
            impact = self._impact(company_id, driver, routes, required, now)
            impacts[driver.id] = impact
            if impact.errors:
                score = replace(score, errors=list(dict.fromkeys(score.errors + impact.errors)))
            scored.append(ScoredCandidate(driver, score))

        # rank every valid candidate, then order by fleet priority before cutting to the limit
        ranking = rank_candidates(scored, len(scored), fallback=False)
        result.total_candidates = ranking.total_candidates

        route_ids = [r.route_id for r in routes]
        options = [
            ReplacementOption(
                option_id=f"{absent.id}-{c.driver.id}",
                driver=c.driver,
                score=c.score,
                route_ids=route_ids,
                priority=self._priority(c.driver, home_fleet_ids, home_type, fleet_types),
                impact=impacts[c.driver.id],
            )
            for c in ranking.ranked
        ]
        options.sort(key=lambda o: o.priority)
        result.options = options[:limit]

        if not result.options:
            logger.warning(
                "No viable replacement for driver %s (%s candidates, %s routes)",
                absent.id, ranking.total_candidates, len(routes),
            )
            result.message = NO_VIABLE_CANDIDATES
        else:
            logger.info(
                "Generated %s replacement options for driver %s over %s routes",
                len(result.options), absent.id, len(routes),
            )

        return result

    def calculate_impact(
        self,
        company_id: str,
        absent_driver_id: str,
        replacement_driver_id: str,
        job_id: Optional[str] = None,
    ) -> ReassignmentImpact:
        """
        What handing all affected routes to `replacement_driver_id` would mean:
        stop load vs. capacity, missing skills, late time windows, license and
        status concerns.
        """
        if not company_id:
            raise InvalidAssignmentRequest("company_id is required")

        absent = self._load_driver(company_id, absent_driver_id)
        impact = ReassignmentImpact(
            replacement_driver_id=replacement_driver_id,
            max_stops=self.policy.max_stops_per_driver,
        )

        routes = self.affected_routes(company_id, absent.id, job_id)
        if not routes:
            impact.is_available = True
            impact.warnings.append(NO_ACTIVE_ROUTES)
            return impact

        replacement = self.gateway.get_driver(company_id, replacement_driver_id)
        if replacement is None or replacement.company_id != company_id:
            impact.errors.append("replacement driver not found")
            impact.skills_match = 0
            return impact

        required = self._required_skills(company_id, routes)
        impact = self._impact(company_id, replacement, routes, required, self.now())

        logger.info(
            "Impact of moving %s stops from %s to %s: valid=%s",
            impact.stops_count, absent.id, replacement.id, impact.is_valid,
        )
        return impact
