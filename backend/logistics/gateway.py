"""
Purpose: ORM-backed implementation of the engine's gateways.
What it does:
Reads fleets, vehicles, orders, route stops and drivers from the database and
maps them to the engine's snapshot types.

Drivers live in two tables: users with the DRIVER role (primary + secondary
fleets, availability) and the legacy driver table (single fleet). Both are
read and mapped to the same Driver snapshot; neither is preferred over the other.

Rule: Read-only. The mapping helpers take model instances plus already
fetched related rows so they never hit the database themselves.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from drivers.models import AvailabilityWindow, Driver, SkillAssignment
from fleets.models import Fleet, Vehicle
from gateway.base import EntityGateway, RouteStopGateway
from orders.models import Order
from routing.models import RouteStop, StopStatus
from users.models import User, UserAvailability, UserSecondaryFleet, UserSkill

from . import models as orm

logger = logging.getLogger(__name__)


def _valid_uuids(ids: Iterable[str]) -> List[str]:
    valid = []
    for value in ids:
        try:
            valid.append(str(uuid.UUID(str(value))))
        except ValueError:
            continue
    return valid


# -------------------------
# Model -> snapshot mapping
# -------------------------

def skill_assignment_from_model(assignment) -> SkillAssignment:
    """Works for both UserSkill and DriverSkill rows."""
    return SkillAssignment(
        skill_id=str(assignment.skill_id),
        name=assignment.skill.name if getattr(assignment, "skill", None) else "",
        expires_at=assignment.expires_at,
        active=assignment.active,
    )


def availability_from_model(row: UserAvailability) -> AvailabilityWindow:
    return AvailabilityWindow(
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        is_day_off=row.is_day_off,
        active=row.active,
    )


def driver_from_user(
    user: User,
    secondary_fleet_ids: Iterable[str] = (),
    skills: Iterable[SkillAssignment] = (),
    availability: Iterable[AvailabilityWindow] = (),
) -> Driver:
    return Driver.new(
        str(user.id),
        user.get_full_name() or user.username,
        user.company_id,
        user.driver_status,
        license_number=user.license_number,
        license_expiry=user.license_expiry,
        license_categories=user.license_categories,
        primary_fleet_id=str(user.primary_fleet_id) if user.primary_fleet_id else None,
        secondary_fleet_ids=[str(f) for f in secondary_fleet_ids],
        skills=skills,
        availability=availability,
        identification=user.identification,
        active=user.is_active,
    )


def driver_from_legacy(record: orm.Driver, skills: Iterable[SkillAssignment] = ()) -> Driver:
    return Driver.from_legacy(
        str(record.id),
        record.name,
        record.company_id,
        str(record.fleet_id) if record.fleet_id else None,
        status=record.status,
        license_number=record.license_number,
        license_expiry=record.license_expiry,
        license_categories=record.license_categories,
        skills=skills,
        identification=record.identification,
        active=record.active,
    )


def vehicle_from_model(vehicle: orm.Vehicle, fleet_ids: Iterable[str] = ()) -> Vehicle:
    return Vehicle.new(
        str(vehicle.id),
        vehicle.company_id,
        [str(f) for f in fleet_ids],
        plate=vehicle.plate,
        license_required=vehicle.license_required,
        active=vehicle.active,
    )


def order_from_model(order: orm.Order) -> Order:
    return Order.new(str(order.id), order.company_id, order.required_skills, order.tracking_id)


def fleet_from_model(fleet: orm.Fleet) -> Fleet:
    return Fleet(id=str(fleet.id), company_id=fleet.company_id, name=fleet.name, type=fleet.type)


def route_stop_from_model(stop: orm.RouteStop) -> RouteStop:
    return RouteStop(
        id=str(stop.id),
        company_id=stop.company_id,
        route_id=stop.route_id,
        vehicle_id=str(stop.vehicle_id),
        order_id=str(stop.order_id),
        driver_id=stop.driver_id,
        job_id=stop.job_id,
        sequence=stop.sequence,
        status=StopStatus(stop.status),
        address=stop.address,
        time_window_start=stop.time_window_start,
        time_window_end=stop.time_window_end,
        estimated_arrival=stop.estimated_arrival,
    )


# -------------------------
# Gateway
# -------------------------

class DjangoEntityGateway(EntityGateway, RouteStopGateway):
    """
    Lookups by id are not tenant filtered so the engine can tell a missing
    record from one owned by another company. List queries are.
    """

    def _vehicle_fleet_ids(self, vehicle_id) -> List[str]:
        links = orm.VehicleFleet.objects.filter(vehicle_id=vehicle_id, fleet__active=True).order_by("created_at", "id")
        return [str(fleet_id) for fleet_id in links.values_list("fleet_id", flat=True)]

    def _user_driver(self, user: User) -> Driver:
        secondary = UserSecondaryFleet.objects.filter(user=user, active=True).values_list("fleet_id", flat=True)
        skills = UserSkill.objects.filter(user=user).select_related("skill")
        availability = UserAvailability.objects.filter(user=user)
        return driver_from_user(
            user,
            secondary_fleet_ids=secondary,
            skills=[skill_assignment_from_model(s) for s in skills],
            availability=[availability_from_model(a) for a in availability],
        )

    def _legacy_driver(self, record: orm.Driver) -> Driver:
        skills = orm.DriverSkill.objects.filter(driver=record).select_related("skill")
        return driver_from_legacy(record, [skill_assignment_from_model(s) for s in skills])

    # --- EntityGateway ---

    def get_vehicle(self, company_id: str, vehicle_id: str) -> Optional[Vehicle]:
        if not _valid_uuids([vehicle_id]):
            return None
        vehicle = orm.Vehicle.objects.filter(id=vehicle_id).first()
        if vehicle is None:
            return None
        return vehicle_from_model(vehicle, self._vehicle_fleet_ids(vehicle.id))

    def get_vehicles(self, company_id: str, vehicle_ids: Iterable[str]) -> List[Vehicle]:
        vehicles = orm.Vehicle.objects.filter(company_id=company_id, id__in=_valid_uuids(vehicle_ids))
        return [vehicle_from_model(v, self._vehicle_fleet_ids(v.id)) for v in vehicles]

    def get_driver(self, company_id: str, driver_id: str) -> Optional[Driver]:
        if not _valid_uuids([driver_id]):
            return None

        user = User.objects.filter(id=driver_id, role=User.Roles.DRIVER).first()
        if user is not None:
            return self._user_driver(user)

        record = orm.Driver.objects.filter(id=driver_id).first()
        if record is not None:
            return self._legacy_driver(record)

        return None

    def list_drivers(self, company_id: str) -> List[Driver]:
        drivers = {}
        for user in User.objects.filter(company_id=company_id, role=User.Roles.DRIVER, is_active=True):
            drivers[str(user.id)] = self._user_driver(user)
        for record in orm.Driver.objects.filter(company_id=company_id, active=True):
            if str(record.id) not in drivers:
                drivers[str(record.id)] = self._legacy_driver(record)
        logger.debug("Loaded %s drivers for company %s", len(drivers), company_id)
        return list(drivers.values())

    def get_orders(self, company_id: str, order_ids: Iterable[str]) -> List[Order]:
        orders = orm.Order.objects.filter(company_id=company_id, id__in=_valid_uuids(order_ids))
        return [order_from_model(o) for o in orders]

    def list_fleets(self, company_id: str) -> List[Fleet]:
        return [fleet_from_model(f) for f in orm.Fleet.objects.filter(company_id=company_id, active=True)]

    # --- RouteStopGateway ---

    def stops_for_driver(self, company_id: str, driver_id: str, job_id: Optional[str] = None) -> List[RouteStop]:
        stops = orm.RouteStop.objects.filter(company_id=company_id, driver_id=driver_id)
        if job_id:
            stops = stops.filter(job_id=job_id)
        return [route_stop_from_model(s) for s in stops]
