"""
Runs the assignment engine over a randomly generated company:
3 fleets, 8 vehicles, 40 drivers, 60 orders.

1. suggests drivers for every vehicle with the chosen strategy
2. assigns one driver per vehicle in a single batch
3. marks one assigned driver absent and asks for replacements

Usage: python scripts/run_assignment_simulation.py [--seed 7] [--strategy WORKLOAD]
"""

import argparse
import logging
import random
from datetime import datetime, time, timedelta, timezone

from dispatch.dispatcher import Dispatcher, RouteAssignmentRequest
from dispatch.reassignment import ReassignmentPlanner
from dispatch.validation import assignment_quality_metrics
from drivers.models import AvailabilityWindow, Driver, DriverStatus, SkillAssignment
from drivers.selection import DAYS_OF_WEEK
from fleets.models import Fleet, Vehicle
from gateway.memory import InMemoryFleetStore
from orders.models import Order, RouteStopRef
from routing.models import RouteStop, StopStatus

COMPANY_ID = "company-sim"
SKILLS = ["REFRIGERATED", "HAZMAT", "FRAGILE", "HEAVY_LIFT"]
CATEGORIES = ["B1", "B2", "C1", "C2"]


def build_company(rng: random.Random, now: datetime) -> InMemoryFleetStore:
    store = InMemoryFleetStore()
    fleets = [Fleet(id=f"FLT-{i + 1}", company_id=COMPANY_ID, name=f"Fleet {i + 1}") for i in range(3)]
    store.extend(fleets)

    for i in range(8):
        fleet_ids = [fleets[i % 3].id]
        if rng.random() < 0.3:
            fleet_ids.append(fleets[(i + 1) % 3].id)
        store.add_vehicle(Vehicle.new(
            f"VEH-{str(i + 1).zfill(3)}",
            COMPANY_ID,
            fleet_ids,
            plate=f"ABC-{1000 + i}",
            license_required=rng.choice([None, None, "C1", "C2"]),
        ))

    for i in range(40):
        primary = rng.choice(fleets).id
        secondary = [f.id for f in fleets if f.id != primary and rng.random() < 0.2]
        skills = [
            SkillAssignment(
                skill_id=skill,
                name=skill.title(),
                # 10% of skills already lapsed
                expires_at=now - timedelta(days=5) if rng.random() < 0.1 else now + timedelta(days=365),
            )
            for skill in rng.sample(SKILLS, rng.randint(0, 3))
        ]
        windows = [AvailabilityWindow(day, time(7, 0), time(18, 0)) for day in DAYS_OF_WEEK[:5]]

        # 80% available, the rest spread over the other statuses
        status = DriverStatus.AVAILABLE if rng.random() < 0.8 else rng.choice(list(DriverStatus))

        store.add_driver(Driver.new(
            f"DRV-{str(i + 1).zfill(3)}",
            f"Driver {i + 1}",
            COMPANY_ID,
            status,
            license_number=f"LIC-{i + 1}",
            license_expiry=now + timedelta(days=rng.randint(-10, 400)),
            license_categories=rng.sample(CATEGORIES, rng.randint(1, 3)),
            primary_fleet_id=primary,
            secondary_fleet_ids=secondary,
            skills=skills,
            availability=windows,
        ))

    for i in range(60):
        required = rng.sample(SKILLS, 1) if rng.random() < 0.25 else []
        store.add_order(Order.new(f"ORD-{str(i + 1).zfill(3)}", COMPANY_ID, required))

    return store


def route_for(vehicle_index: int, orders_per_route: int = 7):
    start = vehicle_index * orders_per_route
    return [RouteStopRef(order_id=f"ORD-{str(n + 1).zfill(3)}") for n in range(start, start + orders_per_route)]


def run_simulation(seed: int = 7, strategy: str = "BALANCED"):
    rng = random.Random(seed)
    now = datetime.now(timezone.utc)
    store = build_company(rng, now)
    dispatcher = Dispatcher(store, clock=lambda: now)

    vehicles = sorted(store.list_vehicles(COMPANY_ID), key=lambda v: v.id)

    print("--- Suggestions ---")
    for index, vehicle in enumerate(vehicles):
        result = dispatcher.suggest_drivers(COMPANY_ID, vehicle.id, route_for(index), strategy=strategy, limit=3)
        ranked = ", ".join(f"{s.driver.id}={s.score.score}" for s in result.suggestions)
        flag = " (fallback)" if result.is_fallback else ""
        print(f"{vehicle.id} [{','.join(vehicle.fleet_ids)}]: {ranked}{flag}")

    print("\n--- Batch assignment ---")
    driver_ids = [d.id for d in store.list_drivers(COMPANY_ID)]
    requests = [
        RouteAssignmentRequest(vehicle.id, route_for(index), driver_ids)
        for index, vehicle in enumerate(vehicles)
    ]
    assignments = dispatcher.assign_drivers_to_routes(COMPANY_ID, requests, strategy=strategy)
    for vehicle_id, assignment in assignments.items():
        print(f"{vehicle_id} -> {assignment.driver_id} ({assignment.score.score})")
    print(assignment_quality_metrics(assignments.values()))

    if not assignments:
        return

    # The first assigned driver calls in sick after starting their route.
    vehicle_id, assignment = next(iter(assignments.items()))
    index = next(i for i, v in enumerate(vehicles) if v.id == vehicle_id)
    for seq, stop in enumerate(route_for(index)):
        store.add_stop(RouteStop(
            id=f"STP-{vehicle_id}-{seq}",
            company_id=COMPANY_ID,
            route_id=f"RTE-{vehicle_id}",
            vehicle_id=vehicle_id,
            order_id=stop.order_id,
            driver_id=assignment.driver_id,
            sequence=seq,
            status=StopStatus.COMPLETED if seq < 2 else StopStatus.PENDING,
        ))

    print(f"\n--- Reassignment for absent {assignment.driver_id} ---")
    planner = ReassignmentPlanner(store, clock=lambda: now)
    result = planner.generate_options(COMPANY_ID, assignment.driver_id, strategy=strategy, limit=3)
    print(result.meta())
    if result.message:
        print(result.message)
    for option in result.options:
        print(
            f"{option.option_id}: {option.score.score} priority={int(option.priority)} "
            f"stops={option.impact.projected_stops}/{option.impact.max_stops} {option.score.warnings}"
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="Run the driver assignment engine over a generated company.")
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--strategy", default="BALANCED")
    args = parser.parse_args()

    run_simulation(seed=args.seed, strategy=args.strategy)
