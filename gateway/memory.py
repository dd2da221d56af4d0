"""
Purpose: In-memory implementation of both gateways.
What it does:
Holds drivers/vehicles/fleets/orders/stops in dicts keyed by id. Used by the
tests and the simulation script, and handy as a request-scoped cache when
snapshots are pre-loaded from somewhere else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from drivers.models import Driver
from fleets.models import Fleet, Vehicle
from orders.models import Order
from routing.models import RouteStop

from .base import EntityGateway, RouteStopGateway


@dataclass
class InMemoryFleetStore(EntityGateway, RouteStopGateway):
    _drivers: Dict[str, Driver] = field(default_factory=dict)
    _vehicles: Dict[str, Vehicle] = field(default_factory=dict)
    _fleets: Dict[str, Fleet] = field(default_factory=dict)
    _orders: Dict[str, Order] = field(default_factory=dict)
    _stops: Dict[str, RouteStop] = field(default_factory=dict)

    # --- Loading ---

    def add_driver(self, driver: Driver) -> None:
        self._drivers[driver.id] = driver

    def add_vehicle(self, vehicle: Vehicle) -> None:
        self._vehicles[vehicle.id] = vehicle

    def add_fleet(self, fleet: Fleet) -> None:
        self._fleets[fleet.id] = fleet

    def add_order(self, order: Order) -> None:
        self._orders[order.id] = order

    def add_stop(self, stop: RouteStop) -> None:
        self._stops[stop.id] = stop

    def extend(self, records: Iterable[object]) -> InMemoryFleetStore:
        adders = {
            Driver: self.add_driver,
            Vehicle: self.add_vehicle,
            Fleet: self.add_fleet,
            Order: self.add_order,
            RouteStop: self.add_stop,
        }
        for record in records:
            adder = adders.get(type(record))
            if adder is None:
                raise TypeError(f"Unsupported record type: {type(record).__name__}")
            adder(record)
        return self

    # --- EntityGateway ---

    def get_vehicle(self, company_id: str, vehicle_id: str) -> Optional[Vehicle]:
        return self._vehicles.get(vehicle_id)

    def get_driver(self, company_id: str, driver_id: str) -> Optional[Driver]:
        return self._drivers.get(driver_id)

    def list_drivers(self, company_id: str) -> List[Driver]:
        return [d for d in self._drivers.values() if d.company_id == company_id]

    def get_orders(self, company_id: str, order_ids: Iterable[str]) -> List[Order]:
        orders = []
        for order_id in dict.fromkeys(order_ids):
            order = self._orders.get(order_id)
            if order is not None and order.company_id == company_id:
                orders.append(order)
        return orders

    def list_fleets(self, company_id: str) -> List[Fleet]:
        return [f for f in self._fleets.values() if f.company_id == company_id]

    def list_vehicles(self, company_id: str) -> List[Vehicle]:
        return [v for v in self._vehicles.values() if v.company_id == company_id]

    # --- RouteStopGateway ---

    def stops_for_driver(self, company_id: str, driver_id: str, job_id: Optional[str] = None) -> List[RouteStop]:
        return [
            s for s in self._stops.values()
            if s.company_id == company_id
            and s.driver_id == driver_id
            and (job_id is None or s.job_id == job_id)
        ]
