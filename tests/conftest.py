import os
from datetime import time, timedelta

import django
import pytest

from drivers.models import AvailabilityWindow, Driver, DriverStatus, SkillAssignment, utc_now
from fleets.models import Fleet, Vehicle
from gateway.memory import InMemoryFleetStore
from orders.models import Order
from routing.models import RouteStop, StopStatus

COMPANY = "acme"
OTHER_COMPANY = "globex"


def pytest_configure(config):
    # The DRF views and ORM mapping tests need the app registry; nothing touches the database.
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fleetassign_backend.settings")
    django.setup()


@pytest.fixture
def now():
    return utc_now().replace(microsecond=0)


@pytest.fixture
def company_id():
    return COMPANY


@pytest.fixture
def make_driver(now):
    """
    Driver factory with sane defaults: available, license valid for a year,
    category B1, primary fleet F1, no skills.
    """
    def _make(driver_id, **overrides):
        params = dict(
            name=driver_id.title(),
            company_id=COMPANY,
            status=DriverStatus.AVAILABLE,
            license_number=f"LIC-{driver_id}",
            license_expiry=now + timedelta(days=365),
            license_categories="B1",
            primary_fleet_id="F1",
        )
        params.update(overrides)
        name = params.pop("name")
        company = params.pop("company_id")
        status = params.pop("status")
        return Driver.new(driver_id, name, company, status, **params)

    return _make


def _skills(now, *skill_ids, expired=()):
    return [
        SkillAssignment(
            skill_id=s,
            name={"A": "Alpha", "B": "Bravo", "C": "Charlie"}.get(s, s),
            expires_at=now - timedelta(days=3) if s in expired else now + timedelta(days=200),
        )
        for s in skill_ids
    ]


@pytest.fixture
def make_skills(now):
    """
    make_skills("A", "B", expired=("B",)) -> skill assignments named Alpha, Bravo...
    """
    def _make(*skill_ids, expired=()):
        return _skills(now, *skill_ids, expired=expired)

    return _make


@pytest.fixture
def fleet_store(now, make_driver):
    """
    One tenant ("acme") with three fleets, plus a second tenant ("globex").

    Vehicles: V1 (F1 primary, F2), V2 (F2, needs C2), V3 (no fleet), VX (globex)
    Orders: O1 needs A+B, O2 needs C (JSON string), O3 malformed, O4 nothing
    Drivers:
      alice  F1, skills A B C, categories B1 C2, Monday 08-17
      bob    F3 + secondary F2, skill A, Monday 08-12
      carol  F1, ABSENT, carries routes R1 (V1) and R2 (V2)
      dave   F2, license expired, skills A B, category C2
      erin   F3 only, skills A B C
      gina   F1, inactive
      frank  globex
    """
    store = InMemoryFleetStore()
    store.extend([
        Fleet(id="F1", company_id=COMPANY, name="North"),
        Fleet(id="F2", company_id=COMPANY, name="South"),
        Fleet(id="F3", company_id=COMPANY, name="East"),
        Fleet(id="G1", company_id=OTHER_COMPANY, name="Globex"),
        Vehicle.new("V1", COMPANY, ["F1", "F2"], plate="AAA-111"),
        Vehicle.new("V2", COMPANY, ["F2"], plate="BBB-222", license_required="C2"),
        Vehicle.new("V3", COMPANY, [], plate="CCC-333"),
        Vehicle.new("VX", OTHER_COMPANY, ["G1"], plate="XXX-999"),
        Order.new("O1", COMPANY, ["A", "B"]),
        Order.new("O2", COMPANY, '["C"]'),
        Order.new("O3", COMPANY, "{not json"),
        Order.new("O4", COMPANY),
        Order.new("OX", OTHER_COMPANY, ["Z"]),
    ])

    def monday(start, end):
        return [AvailabilityWindow("MONDAY", time(start), time(end))]

    store.extend([
        make_driver("alice", license_categories="B1, C2", skills=_skills(now, "A", "B", "C"), availability=monday(8, 17)),
        make_driver("bob", primary_fleet_id="F3", secondary_fleet_ids=["F2"], skills=_skills(now, "A"), availability=monday(8, 12)),
        make_driver("carol", status=DriverStatus.ABSENT, skills=_skills(now, "A", "B", "C")),
        make_driver("dave", primary_fleet_id="F2", license_expiry=now - timedelta(days=1), license_categories="C2", skills=_skills(now, "A", "B")),
        make_driver("erin", primary_fleet_id="F3", skills=_skills(now, "A", "B", "C")),
        make_driver("gina", active=False),
        make_driver("frank", company_id=OTHER_COMPANY, primary_fleet_id="G1"),
    ])

    def stop(stop_id, route_id, vehicle_id, order_id, driver_id, sequence, status, job_id="J1", **extra):
        return RouteStop(
            id=stop_id,
            company_id=COMPANY,
            route_id=route_id,
            vehicle_id=vehicle_id,
            order_id=order_id,
            driver_id=driver_id,
            job_id=job_id,
            sequence=sequence,
            status=status,
            **extra,
        )

    store.extend([
        stop("S1", "R1", "V1", "O1", "carol", 2, StopStatus.PENDING),
        stop("S2", "R1", "V1", "O4", "carol", 1, StopStatus.COMPLETED),
        stop(
            "S3", "R2", "V2", "O4", "carol", 1, StopStatus.IN_PROGRESS, job_id="J2",
            time_window_start=now, time_window_end=now + timedelta(hours=1), estimated_arrival=now + timedelta(hours=2),
        ),
        stop("S4", "R2", "V2", "O4", "carol", 2, StopStatus.PENDING, job_id="J2"),
        stop("S5", "R3", "V1", "O2", "carol", 1, StopStatus.COMPLETED),
        stop("S6", "R4", "V2", "O4", "bob", 1, StopStatus.PENDING),
    ])
    return store
