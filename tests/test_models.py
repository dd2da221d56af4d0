import pytest
from datetime import date, datetime, time, timedelta, timezone

from drivers.models import AvailabilityWindow, Driver, DriverStatus, SkillAssignment, parse_license_categories, to_utc
from drivers.policy import AssignmentPolicy, default_assignment_policy, policy_from_env
from fleets.models import Vehicle


def test_driver_new_normalizes_inputs():
    """
    Driver.new accepts string statuses, comma separated categories and
    naive expiry dates, and stores them normalized.
    """
    driver = Driver.new(
        "d1", "Ana", "acme", "in_route",
        license_expiry=date(2030, 1, 31),
        license_categories="B1, C2 ,",
        primary_fleet_id="F1",
        secondary_fleet_ids=["F2", "F2"],
    )

    # 1. Status parsed case-insensitively
    assert driver.status == DriverStatus.IN_ROUTE

    # 2. Empty category fragments dropped
    assert driver.license_categories == frozenset({"B1", "C2"})

    # 3. Dates become aware UTC datetimes
    assert driver.license_expiry == datetime(2030, 1, 31, tzinfo=timezone.utc)

    # 4. Secondary fleets deduplicated
    assert driver.secondary_fleet_ids == frozenset({"F2"})


def test_legacy_driver_has_no_secondary_fleets():
    """
    The single-fleet driver shape maps to primary fleet = its fleet and no
    secondary memberships, even if some are passed in.
    """
    driver = Driver.from_legacy("d2", "Ben", "acme", "F9", secondary_fleet_ids=["F1"], status="AVAILABLE")

    assert driver.primary_fleet_id == "F9"
    assert driver.secondary_fleet_ids == frozenset()
    assert driver.belongs_to_any(["F9"])
    assert not driver.belongs_to_any(["F1"])


def test_driver_from_dict_accepts_both_fleet_keys():
    """
    Payloads from the legacy table carry "fleet_id", user-drivers carry
    "primary_fleet_id" plus "secondary_fleet_ids".
    """
    legacy = Driver.from_dict({"id": 1, "name": "Cy", "company_id": "acme", "fleet_id": "F1"})
    modern = Driver.from_dict({
        "id": "2",
        "name": "Di",
        "company_id": "acme",
        "status": "ABSENT",
        "primary_fleet_id": "F1",
        "secondary_fleet_ids": ["F3"],
        "license_expiry": "2031-05-01T00:00:00Z",
        "skills": [{"skill_id": "A", "name": "Alpha", "expires_at": None}],
        "availability": [{"day_of_week": "monday", "start_time": "08:00:00", "end_time": "17:30"}],
    })

    assert legacy.id == "1"
    assert legacy.primary_fleet_id == "F1"
    assert modern.status == DriverStatus.ABSENT
    assert modern.secondary_fleet_ids == frozenset({"F3"})
    assert modern.license_expiry == datetime(2031, 5, 1, tzinfo=timezone.utc)
    assert modern.active_skill_ids() == frozenset({"A"})
    assert modern.availability[0].day_of_week == "MONDAY"
    assert modern.availability[0].end_time == time(17, 30)


def test_to_utc_handles_naive_aware_and_strings():
    """
    Every date-like input ends up timezone aware in UTC.
    """
    plus_two = timezone(timedelta(hours=2))

    assert to_utc(None) is None
    assert to_utc("") is None
    assert to_utc(datetime(2030, 1, 1, 12, 0)) == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert to_utc(datetime(2030, 1, 1, 12, 0, tzinfo=plus_two)) == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert to_utc("2030-01-01T12:00:00+02:00") == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_parse_license_categories():
    assert parse_license_categories(None) == frozenset()
    assert parse_license_categories("") == frozenset()
    assert parse_license_categories(["A1", " B1 "]) == frozenset({"A1", "B1"})


def test_skill_expiry_and_effective_skills(now):
    """
    Expired assignments stay on file (active) but are not effective.
    """
    expired = SkillAssignment("A", "Alpha", expires_at=now - timedelta(minutes=1))
    open_ended = SkillAssignment("B", "Bravo")
    inactive = SkillAssignment("C", "Charlie", active=False)
    driver = Driver.new("d3", "Ed", "acme", skills=[expired, open_ended, inactive])

    assert expired.is_expired(now)
    assert not open_ended.is_expired(now)
    assert driver.active_skill_ids() == frozenset({"A", "B"})
    assert driver.effective_skill_ids(now) == frozenset({"B"})


def test_availability_window_covers():
    window = AvailabilityWindow("MONDAY", time(8, 0), time(17, 0))
    day_off = AvailabilityWindow("MONDAY", time(8, 0), time(17, 0), is_day_off=True)

    assert window.covers(time(8, 0))
    assert window.covers(time(17, 0))
    assert not window.covers(time(17, 1))
    assert not day_off.covers(time(12, 0))


def test_vehicle_primary_fleet_is_first_membership():
    """
    Fleet order is kept (first = primary) and duplicates are dropped.
    """
    vehicle = Vehicle.new("v1", "acme", ["F2", "F1", "F2"], license_required="  ")

    assert vehicle.fleet_ids == ("F2", "F1")
    assert vehicle.primary_fleet_id == "F2"
    assert vehicle.license_required is None
    assert Vehicle.new("v2", "acme").primary_fleet_id is None


def test_default_policy_values():
    p = default_assignment_policy()

    assert p.license_near_expiry_days == 30
    assert p.workload_penalty_per_route == 30
    assert p.expired_skill_penalty == 20
    assert p.license_category_penalty == 50
    assert p.default_limit == 5
    assert p.max_limit == 20


@pytest.mark.parametrize("overrides", [
    {"license_near_expiry_days": -1},
    {"expired_skill_penalty": 120},
    {"max_limit": 0},
    {"default_limit": 25},
    {"max_stops_per_driver": 0},
])
def test_policy_validate_rejects_bad_values(overrides):
    with pytest.raises(ValueError):
        AssignmentPolicy(**overrides).validate()


def test_policy_from_env(monkeypatch):
    """
    ASSIGNMENT_* variables override the defaults; booleans accept true/false words.
    """
    monkeypatch.setenv("ASSIGNMENT_LICENSE_NEAR_EXPIRY_DAYS", "15")
    monkeypatch.setenv("ASSIGNMENT_REQUIRE_SKILLS_MATCH", "false")
    monkeypatch.setenv("ASSIGNMENT_BALANCE_WORKLOAD", "no")

    p = policy_from_env()

    assert p.license_near_expiry_days == 15
    assert p.require_skills_match is False
    assert p.balance_workload is False
    assert p.require_license_valid is True
