"""
Purpose: Route plan queries needed by reassignment.
What it does:
Groups the stops carried by a driver into routes and keeps only the routes
that still have pending or in-progress stops ("affected routes").
Completed, failed, cancelled and skipped stops alone never make a route affected.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from fleets.models import Vehicle

from .models import AffectedRoute, RouteStop


def find_affected_routes(
    stops: Iterable[RouteStop],
    vehicles_by_id: Optional[Mapping[str, Vehicle]] = None,
    job_id: Optional[str] = None,
) -> List[AffectedRoute]:
    """
    Returns affected routes in order of first appearance, stops sorted by sequence.
    """
    vehicles_by_id = vehicles_by_id or {}
    routes: Dict[str, AffectedRoute] = {}

    for stop in stops:
        if job_id is not None and stop.job_id != job_id:
            continue

        route = routes.get(stop.route_id)
        if route is None:
            vehicle = vehicles_by_id.get(stop.vehicle_id)
            route = AffectedRoute(
                route_id=stop.route_id,
                vehicle_id=stop.vehicle_id,
                vehicle_plate=vehicle.plate if vehicle and vehicle.plate else "Unknown",
            )
            routes[stop.route_id] = route

        route.stops.append(stop)

    affected = []
    for route in routes.values():
        if not route.active_stops:
            continue
        route.stops.sort(key=lambda s: s.sequence)
        affected.append(route)

    return affected
