"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts a vehicle and the stops of its planned route, collects the fleet's
candidate drivers, resolves the skills the stops require, scores every
candidate and returns a ranked suggestion list.

Also hosts the batch flavour (one driver per vehicle over several routes, with
workload tracked across the batch), manual assignment validation and the
"who is free at this time" query.

Rule: Every operation takes the company id explicitly and rejects bad input
before anything is scored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from drivers.models import Driver, to_utc, utc_now
from drivers.policy import AssignmentPolicy, default_assignment_policy
from drivers.selection import filter_available_drivers
from fleets.models import Vehicle
from orders.models import RouteStopRef
from orders.requirements import required_skills_for_stops

from .candidate_filter import build_base_candidates
from .exceptions import InvalidAssignmentRequest, TenantMismatch, VehicleNotFound
from .ranking import ScoredCandidate, rank_candidates, resolve_limit
from .scoring import AssignmentScore, score_driver
from .strategy import AssignmentStrategy, resolve_strategy
from .validation import AssignmentValidationResult, validate_driver_assignment

logger = logging.getLogger(__name__)

StopInput = Union[RouteStopRef, Mapping[str, Any]]


def as_stop_refs(route_stops: Optional[Iterable[StopInput]]) -> List[RouteStopRef]:
    """
    Accepts RouteStopRef objects or {"order_id": ..., "promised_date": ...} dicts.
    """
    refs = []
    for stop in route_stops or ():
        if isinstance(stop, RouteStopRef):
            refs.append(stop)
            continue
        order_id = stop.get("order_id") if isinstance(stop, Mapping) else None
        if not order_id:
            raise InvalidAssignmentRequest("Every route stop needs an order_id")
        try:
            promised_date = to_utc(stop.get("promised_date"))
        except (AttributeError, TypeError, ValueError):
            raise InvalidAssignmentRequest(f"Invalid promised_date for order {order_id}") from None
        refs.append(RouteStopRef(order_id=str(order_id), promised_date=promised_date))
    return refs


@dataclass
class DriverSuggestion:
    driver: Driver
    score: AssignmentScore

    def to_dict(self) -> Dict[str, Any]:
        return {
            "driver_id": self.driver.id,
            "driver_name": self.driver.name,
            "score": self.score.score,
            "factors": self.score.factors.as_dict(),
            "warnings": list(self.score.warnings),
            "errors": list(self.score.errors),
            "details": self.driver.details(),
        }


@dataclass
class SuggestionResult:
    vehicle: Vehicle
    strategy: AssignmentStrategy
    suggestions: List[DriverSuggestion] = field(default_factory=list)
    total_candidates: int = 0
    required_skills: frozenset = frozenset()
    is_fallback: bool = False

    @property
    def returned(self) -> int:
        return len(self.suggestions)

    def meta(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle.id,
            "vehicle_plate": self.vehicle.plate,
            "strategy": self.strategy.value,
            "total_candidates": self.total_candidates,
            "returned": self.returned,
            "required_skills": sorted(self.required_skills),
            "is_fallback": self.is_fallback,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"data": [s.to_dict() for s in self.suggestions], "meta": self.meta()}


@dataclass(frozen=True)
class RouteAssignmentRequest:
    """
    One vehicle of a batch: its route stops and the drivers allowed to take it.
    """
    vehicle_id: str
    route_stops: Sequence[RouteStopRef] = ()
    candidate_driver_ids: Sequence[str] = ()


@dataclass
class DriverAssignmentResult:
    driver_id: str
    driver_name: str
    score: AssignmentScore
    is_manual_override: bool = False
    # True when no candidate was valid and the best errored one was taken.
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "driver_id": self.driver_id,
            "driver_name": self.driver_name,
            "score": self.score.to_dict(),
            "is_manual_override": self.is_manual_override,
            "is_fallback": self.is_fallback,
        }


class Dispatcher:
    """
    Ranks drivers for vehicles. Holds no per-request state: everything it
    needs is fetched through the gateway on each call.
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

    # --- Input checks ---

    def resolve_limit(self, limit: Optional[int]) -> int:
        return resolve_limit(limit, self.policy)

    def load_vehicle(self, company_id: str, vehicle_id: str) -> Vehicle:
        vehicle = self.gateway.get_vehicle(company_id, vehicle_id)
        if vehicle is None:
            raise VehicleNotFound(f"Vehicle {vehicle_id} not found")
        if vehicle.company_id != company_id:
            raise TenantMismatch(f"Vehicle {vehicle_id} does not belong to company {company_id}")
        return vehicle

    def required_skills(self, company_id: str, route_stops: Sequence[RouteStopRef]) -> frozenset:
        if not route_stops:
            return frozenset()
        orders = self.gateway.get_orders(company_id, [s.order_id for s in route_stops])
        return required_skills_for_stops(orders, route_stops, company_id)

    # --- Operations ---

    def suggest_drivers(
        self,
        company_id: str,
        vehicle_id: str,
        route_stops: Optional[Iterable[StopInput]] = None,
        strategy: Union[str, AssignmentStrategy, None] = AssignmentStrategy.BALANCED,
        limit: Optional[int] = None,
    ) -> SuggestionResult:
        """
        Ranked driver suggestions for one vehicle.

        Never empty while the fleet has at least one driver: with no valid
        candidate, the best errored one is returned and flagged as fallback.
        """
        if not company_id:
            raise InvalidAssignmentRequest("company_id is required")
        strategy = resolve_strategy(strategy)
        limit = self.resolve_limit(limit)
        stops = as_stop_refs(route_stops)

        vehicle = self.load_vehicle(company_id, vehicle_id)
        now = self.now()
        required = self.required_skills(company_id, stops)

        candidates = build_base_candidates(
            self.gateway.list_drivers(company_id),
            vehicle.fleet_ids,
            company_id=company_id,
        )
        scored = [
            ScoredCandidate(
                driver,
                score_driver(driver, vehicle, required, strategy=strategy, policy=self.policy, now=now),
            )
            for driver in candidates
        ]
        ranking = rank_candidates(scored, limit, fallback=True)

        if ranking.is_fallback:
            logger.warning(
                "No valid driver for vehicle %s; returning best-effort candidate %s",
                vehicle.id, ranking.ranked[0].driver.id,
            )
        logger.info(
            "Suggested %s/%s drivers for vehicle %s (%s)",
            ranking.returned, ranking.total_candidates, vehicle.id, strategy.value,
        )

        return SuggestionResult(
            vehicle=vehicle,
            strategy=strategy,
            suggestions=[DriverSuggestion(c.driver, c.score) for c in ranking.ranked],
            total_candidates=ranking.total_candidates,
            required_skills=required,
            is_fallback=ranking.is_fallback,
        )

    def assign_drivers_to_routes(
        self,
        company_id: str,
        requests: Iterable[RouteAssignmentRequest],
        strategy: Union[str, AssignmentStrategy, None] = None,
    ) -> Dict[str, DriverAssignmentResult]:
        """
        Picks one driver per vehicle, in request order.

        A driver picked for an earlier vehicle stays a candidate for the later
        ones but loses workload points for each route already given to them.
        """
        strategy = resolve_strategy(strategy)
        requests = list(requests)
        results: Dict[str, DriverAssignmentResult] = {}

        driver_ids = list(dict.fromkeys(i for r in requests for i in r.candidate_driver_ids))
        if not driver_ids:
            return results

        drivers: Dict[str, Driver] = {}
        for driver_id in driver_ids:
            driver = self.gateway.get_driver(company_id, driver_id)
            if driver is not None and driver.company_id == company_id and driver.active:
                drivers[driver.id] = driver

        now = self.now()
        tentative: Dict[str, int] = {}

        for request in requests:
            vehicle = self.gateway.get_vehicle(company_id, request.vehicle_id)
            if vehicle is None or vehicle.company_id != company_id:
                logger.warning("Skipping unknown vehicle %s in batch assignment", request.vehicle_id)
                continue

            stops = as_stop_refs(request.route_stops)
            required = self.required_skills(company_id, stops)

            scored = []
            for driver_id in dict.fromkeys(request.candidate_driver_ids):
                driver = drivers.get(driver_id)
                if driver is None:
                    continue
                score = score_driver(
                    driver,
                    vehicle,
                    required,
                    strategy=strategy,
                    policy=self.policy,
                    now=now,
                    assigned_route_count=tentative.get(driver.id, 0),
                )
                scored.append(ScoredCandidate(driver, score))

            ranking = rank_candidates(scored, 1, fallback=True)
            if not ranking.ranked:
                logger.warning("No candidate driver for vehicle %s", vehicle.id)
                continue

            best = ranking.ranked[0]
            results[vehicle.id] = DriverAssignmentResult(
                driver_id=best.driver.id,
                driver_name=best.driver.name,
                score=best.score,
                is_fallback=ranking.is_fallback,
            )
            tentative[best.driver.id] = tentative.get(best.driver.id, 0) + 1

        logger.info("Batch assignment: %s/%s vehicles assigned", len(results), len(requests))
        return results

    def validate_assignment(
        self,
        company_id: str,
        driver_id: str,
        vehicle_id: str,
        route_stops: Optional[Iterable[StopInput]] = None,
    ) -> AssignmentValidationResult:
        """
        Checks a hand-picked driver for a vehicle. Records of another company
        are reported as not found.
        """
        if not company_id:
            raise InvalidAssignmentRequest("company_id is required")
        stops = as_stop_refs(route_stops)

        driver = self.gateway.get_driver(company_id, driver_id)
        if driver is not None and driver.company_id != company_id:
            driver = None
        vehicle = self.gateway.get_vehicle(company_id, vehicle_id)
        if vehicle is not None and vehicle.company_id != company_id:
            vehicle = None

        required = self.required_skills(company_id, stops) if driver and vehicle else frozenset()
        return validate_driver_assignment(driver, vehicle, required, self.now(), self.policy)

    def drivers_available_at(
        self,
        company_id: str,
        driver_ids: Optional[Iterable[str]],
        when: datetime,
    ) -> List[str]:
        """
        Ids of the drivers whose weekly window covers `when` (local wall-clock time).
        """
        drivers = self.gateway.list_drivers(company_id)
        return [d.id for d in filter_available_drivers(drivers, when, driver_ids)]
