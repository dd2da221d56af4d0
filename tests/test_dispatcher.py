import pytest
from datetime import datetime, timedelta, timezone

from dispatch.dispatcher import Dispatcher, RouteAssignmentRequest, as_stop_refs
from dispatch.exceptions import InvalidAssignmentRequest, TenantMismatch, VehicleNotFound
from dispatch.validation import assignment_quality_metrics
from drivers.models import DriverStatus
from drivers.policy import AssignmentPolicy
from fleets.models import Vehicle
from orders.models import RouteStopRef


@pytest.fixture
def dispatcher(fleet_store, now):
    return Dispatcher(fleet_store, clock=lambda: now)


def test_suggestions_rank_fleet_candidates(dispatcher, company_id):
    """
    V1 (fleets F1, F2) with an order needing A+B:
    alice (F1, A B C) 100, bob (secondary F2, A only) 85.
    carol (absent) and dave (expired license) are scored but not ranked.
    """
    result = dispatcher.suggest_drivers(company_id, "V1", [RouteStopRef("O1")])

    # 1. Ranked valid candidates
    assert [s.driver.id for s in result.suggestions] == ["alice", "bob"]
    assert [s.score.score for s in result.suggestions] == [100, 85]

    # 2. Bob's reasons
    assert result.suggestions[1].score.warnings == ["driver from secondary fleet", "1/2 skills matched"]

    # 3. Metadata
    meta = result.meta()
    assert meta["vehicle_id"] == "V1"
    assert meta["vehicle_plate"] == "AAA-111"
    assert meta["strategy"] == "BALANCED"
    assert meta["total_candidates"] == 4
    assert meta["returned"] == 2
    assert meta["required_skills"] == ["A", "B"]
    assert meta["is_fallback"] is False


def test_suggestion_payload_shape(dispatcher, company_id):
    body = dispatcher.suggest_drivers(company_id, "V1", [{"order_id": "O1"}], limit=1).to_dict()

    assert len(body["data"]) == 1
    first = body["data"][0]
    assert set(first) == {"driver_id", "driver_name", "score", "factors", "warnings", "errors", "details"}
    assert first["driver_name"] == "Alice"
    assert first["details"]["fleet_id"] == "F1"
    assert first["factors"]["workload"] == 100


def test_limit_bounds_result(dispatcher, company_id):
    result = dispatcher.suggest_drivers(company_id, "V3", [], limit=3)

    # V3 has no fleet: every active tenant driver is a candidate
    assert result.total_candidates == 5
    assert result.returned <= 3


def test_best_effort_fallback_when_nobody_is_valid(dispatcher, company_id):
    """
    V2 needs C2 and the order needs C: bob and dave both carry errors.
    The suggestion path still returns the best of them, flagged.
    """
    result = dispatcher.suggest_drivers(company_id, "V2", [RouteStopRef("O2")])

    assert result.is_fallback
    assert result.returned == 1
    best = result.suggestions[0]
    assert best.driver.id == "bob"
    assert best.score.score == 65
    assert "missing required skills" in best.score.errors


def test_malformed_order_skills_are_ignored(dispatcher, company_id):
    result = dispatcher.suggest_drivers(company_id, "V1", [RouteStopRef("O3"), RouteStopRef("O1")])

    assert result.required_skills == frozenset({"A", "B"})


def test_other_tenant_orders_do_not_add_requirements(dispatcher, company_id):
    result = dispatcher.suggest_drivers(company_id, "V1", [RouteStopRef("OX")])

    assert result.required_skills == frozenset()
    assert all(s.score.factors.skills_match == 100 for s in result.suggestions)


def test_vehicle_not_found(dispatcher, company_id):
    with pytest.raises(VehicleNotFound):
        dispatcher.suggest_drivers(company_id, "nope", [])


def test_vehicle_of_another_company(dispatcher, company_id):
    with pytest.raises(TenantMismatch):
        dispatcher.suggest_drivers(company_id, "VX", [])


@pytest.mark.parametrize("kwargs", [
    {"limit": 0},
    {"limit": 21},
    {"limit": "5"},
    {"strategy": "CHEAPEST"},
])
def test_invalid_requests_are_rejected_before_scoring(dispatcher, company_id, kwargs):
    with pytest.raises(InvalidAssignmentRequest):
        dispatcher.suggest_drivers(company_id, "V1", [], **kwargs)


def test_missing_company_or_order_id_is_rejected(dispatcher):
    with pytest.raises(InvalidAssignmentRequest):
        dispatcher.suggest_drivers("", "V1", [])
    with pytest.raises(InvalidAssignmentRequest):
        as_stop_refs([{"promised_date": None}])


@pytest.mark.parametrize("promised_date", ["31/12/2027", "soon", 12345])
def test_unparseable_promised_date_is_rejected(dispatcher, company_id, promised_date):
    stops = [{"order_id": "O1", "promised_date": promised_date}]

    with pytest.raises(InvalidAssignmentRequest, match="Invalid promised_date for order O1"):
        as_stop_refs(stops)
    with pytest.raises(InvalidAssignmentRequest):
        dispatcher.suggest_drivers(company_id, "V1", stops)


def test_promised_date_accepts_iso_strings():
    refs = as_stop_refs([{"order_id": "O1", "promised_date": "2027-12-31T10:00:00Z"}])

    assert refs[0].promised_date == datetime(2027, 12, 31, 10, tzinfo=timezone.utc)


def test_batch_assignment_spreads_workload(fleet_store, now, make_driver, company_id):
    """
    Two F1 vehicles, two candidates. Alice wins the first vehicle; on the second
    her workload drops to 70 (94 overall) and bob (secondary F1, 95) wins.
    """
    fleet_store.add_vehicle(Vehicle.new("VA", company_id, ["F1"], plate="A-1"))
    fleet_store.add_vehicle(Vehicle.new("VB", company_id, ["F1"], plate="B-1"))
    fleet_store.add_driver(make_driver("bob", primary_fleet_id="F3", secondary_fleet_ids=["F1"]))
    dispatcher = Dispatcher(fleet_store, clock=lambda: now)

    results = dispatcher.assign_drivers_to_routes(company_id, [
        RouteAssignmentRequest("VA", [], ["alice", "bob"]),
        RouteAssignmentRequest("VB", [], ["alice", "bob"]),
    ])

    assert results["VA"].driver_id == "alice"
    assert results["VA"].score.score == 100
    assert results["VB"].driver_id == "bob"
    assert results["VB"].score.score == 95


def test_batch_assignment_without_workload_balancing(fleet_store, now, make_driver, company_id):
    fleet_store.add_vehicle(Vehicle.new("VA", company_id, ["F1"]))
    fleet_store.add_vehicle(Vehicle.new("VB", company_id, ["F1"]))
    dispatcher = Dispatcher(fleet_store, policy=AssignmentPolicy(balance_workload=False), clock=lambda: now)

    results = dispatcher.assign_drivers_to_routes(company_id, [
        RouteAssignmentRequest("VA", [], ["alice", "bob"]),
        RouteAssignmentRequest("VB", [], ["alice", "bob"]),
    ])

    assert results["VA"].driver_id == "alice"
    assert results["VB"].driver_id == "alice"


def test_batch_assignment_skips_unknown_vehicles_and_falls_back(dispatcher, company_id):
    results = dispatcher.assign_drivers_to_routes(company_id, [
        RouteAssignmentRequest("ghost", [], ["alice"]),
        RouteAssignmentRequest("VX", [], ["alice"]),
        RouteAssignmentRequest("V1", [RouteStopRef("O1")], ["carol", "dave"]),
    ])

    assert list(results) == ["V1"]
    assert results["V1"].is_fallback
    assert results["V1"].score.errors


def test_batch_assignment_with_no_candidates(dispatcher, company_id):
    assert dispatcher.assign_drivers_to_routes(company_id, [RouteAssignmentRequest("V1", [], [])]) == {}


def test_quality_metrics(dispatcher, company_id):
    results = dispatcher.assign_drivers_to_routes(company_id, [
        RouteAssignmentRequest("V1", [RouteStopRef("O1")], ["alice"]),
        RouteAssignmentRequest("V2", [RouteStopRef("O2")], ["dave"]),
    ])

    metrics = assignment_quality_metrics(results.values())

    assert metrics["total_assignments"] == 2
    assert metrics["assignments_with_errors"] == 1
    assert metrics["assignments_with_warnings"] == 1
    # alice 100, dave (0 + 100 + 0 + 100 + 100) / 5 = 60
    assert metrics["average_score"] == 80
    assert metrics["license_compliance"] == 50
    assert assignment_quality_metrics([])["average_score"] == 0


def test_validate_assignment_happy_path(dispatcher, company_id):
    result = dispatcher.validate_assignment(company_id, "alice", "V2", [RouteStopRef("O2")])

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_validate_assignment_is_stricter_than_scoring(dispatcher, company_id):
    """
    Category mismatch and any missing skill are errors for a manual pick.
    """
    result = dispatcher.validate_assignment(company_id, "bob", "V2", [RouteStopRef("O1")])

    assert not result.is_valid
    assert result.errors == ["missing license category: C2", "missing required skills: B"]


@pytest.mark.parametrize("driver_id, vehicle_id, expected", [
    ("carol", "V1", "driver is absent"),
    ("dave", "V1", "license expired"),
    ("ghost", "V1", "driver not found"),
    ("frank", "V1", "driver not found"),
    ("alice", "nope", "vehicle not found"),
    ("alice", "VX", "vehicle not found"),
])
def test_validate_assignment_errors(dispatcher, company_id, driver_id, vehicle_id, expected):
    result = dispatcher.validate_assignment(company_id, driver_id, vehicle_id, [])

    assert expected in result.errors


def test_validate_assignment_warnings(fleet_store, now, make_driver, make_skills, company_id):
    fleet_store.add_driver(make_driver(
        "hank",
        status=DriverStatus.IN_ROUTE,
        license_expiry=now + timedelta(days=12),
        skills=make_skills("A", expired=("A",)),
    ))
    dispatcher = Dispatcher(fleet_store, clock=lambda: now)

    result = dispatcher.validate_assignment(company_id, "hank", "V1", [])

    assert result.is_valid
    assert result.warnings == ["license expires in 12 days", 'skill "Alpha" expired', "driver status is IN_ROUTE"]


def test_drivers_available_at(dispatcher, company_id):
    """
    Weekly windows: alice Monday 08-17, bob Monday 08-12, nobody else has windows.
    """
    monday_10 = datetime(2025, 6, 2, 10, 0)
    monday_13 = datetime(2025, 6, 2, 13, 0)
    tuesday_10 = datetime(2025, 6, 3, 10, 0)

    assert sorted(dispatcher.drivers_available_at(company_id, None, monday_10)) == ["alice", "bob"]
    assert dispatcher.drivers_available_at(company_id, None, monday_13) == ["alice"]
    assert dispatcher.drivers_available_at(company_id, ["bob"], monday_10) == ["bob"]
    assert dispatcher.drivers_available_at(company_id, None, tuesday_10) == []
