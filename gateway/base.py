"""
Purpose: Read-only collaborators the engine fetches its snapshots from.
What it does:

- EntityGateway: drivers, vehicles, fleets and orders of a tenant
- RouteStopGateway: the stops currently carried by a driver

Every call takes the company (tenant) id explicitly. Lookups by id return the
record even if it belongs to another company so the engine can tell
"not found" from "forbidden"; list queries only return the tenant's rows.

Rule: Gateways never mutate anything.
"""

from typing import Iterable, List, Optional

from drivers.models import Driver
from fleets.models import Fleet, Vehicle
from orders.models import Order
from routing.models import RouteStop


class EntityGateway:

    def get_vehicle(self, company_id: str, vehicle_id: str) -> Optional[Vehicle]:
        raise NotImplementedError

    def get_vehicles(self, company_id: str, vehicle_ids: Iterable[str]) -> List[Vehicle]:
        vehicles = []
        for vehicle_id in vehicle_ids:
            vehicle = self.get_vehicle(company_id, vehicle_id)
            if vehicle is not None and vehicle.company_id == company_id:
                vehicles.append(vehicle)
        return vehicles

    def get_driver(self, company_id: str, driver_id: str) -> Optional[Driver]:
        raise NotImplementedError

    def list_drivers(self, company_id: str) -> List[Driver]:
        raise NotImplementedError

    def get_orders(self, company_id: str, order_ids: Iterable[str]) -> List[Order]:
        raise NotImplementedError

    def list_fleets(self, company_id: str) -> List[Fleet]:
        raise NotImplementedError


class RouteStopGateway:

    def stops_for_driver(self, company_id: str, driver_id: str, job_id: Optional[str] = None) -> List[RouteStop]:
        raise NotImplementedError
