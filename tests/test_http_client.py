import pytest
import requests

import gateway.http_client as http_client
from drivers.models import DriverStatus
from gateway.http_client import FleetApiClient, FleetApiError


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._body


class FakeSession:
    """
    Records GET calls and answers from a {path: response} table.
    """
    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        path = url.split("/api/v1/", 1)[1]
        return self.routes.get(path, FakeResponse(404))


def make_client(routes=None):
    session = FakeSession(routes)
    return FleetApiClient("http://fleet.test/api/v1/", session=session), session


def test_driver_fetch_passes_tenant_header():
    client, session = make_client({"drivers/d1": FakeResponse(body={"data": {
        "id": "d1",
        "name": "Ana",
        "company_id": "acme",
        "status": "in_route",
        "fleet_id": "F1",
        "license_categories": "B1,C2",
        "license_expiry": "2030-01-01T00:00:00Z",
    }})})

    driver = client.get_driver("acme", "d1")

    # 1. Request
    call = session.calls[0]
    assert call["url"] == "http://fleet.test/api/v1/drivers/d1"
    assert call["headers"]["X-Company-Id"] == "acme"
    assert call["timeout"] == 5

    # 2. Snapshot
    assert driver.status == DriverStatus.IN_ROUTE
    assert driver.primary_fleet_id == "F1"
    assert driver.license_categories == frozenset({"B1", "C2"})


def test_not_found_is_none():
    client, _ = make_client()

    assert client.get_vehicle("acme", "nope") is None
    assert client.get_driver("acme", "nope") is None
    assert client.list_fleets("acme") == []


def test_vehicle_batch_drops_other_tenants():
    client, session = make_client({"vehicles": FakeResponse(body={"data": [
        {"id": "V1", "company_id": "acme", "fleet_ids": ["F1", "F2"], "plate": "AAA-111"},
        {"id": "VX", "company_id": "globex", "fleet_ids": ["G1"]},
    ]})})

    vehicles = client.get_vehicles("acme", ["V1", "VX", "V1"])

    assert [v.id for v in vehicles] == ["V1"]
    assert vehicles[0].primary_fleet_id == "F1"
    assert session.calls[0]["params"] == {"ids": "V1,VX"}
    assert client.get_vehicles("acme", []) == []
    assert len(session.calls) == 1


def test_route_stops_query():
    client, session = make_client({"route-stops": FakeResponse(body={"data": [
        {"id": "S1", "company_id": "acme", "route_id": "R1", "vehicle_id": "V1", "order_id": "O1", "status": "pending"},
    ]})})

    stops = client.stops_for_driver("acme", "carol", job_id="J1")

    assert session.calls[0]["params"] == {"driver_id": "carol", "job_id": "J1"}
    assert stops[0].route_id == "R1"


def test_orders_parse_serialized_skills():
    client, _ = make_client({"orders": FakeResponse(body={"data": [
        {"id": "O1", "company_id": "acme", "required_skills": '["A", "B"]'},
    ]})})

    orders = client.get_orders("acme", ["O1"])

    assert orders[0].required_skills == frozenset({"A", "B"})


@pytest.mark.parametrize("response", [FakeResponse(500), FakeResponse(403), FakeResponse(200, invalid_json=True)])
def test_api_errors_raise(response):
    client, _ = make_client({"drivers": response})

    with pytest.raises(FleetApiError):
        client.list_drivers("acme")


def test_unreachable_api_raises():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    client = FleetApiClient("http://fleet.test/api/v1", session=session)

    with pytest.raises(FleetApiError, match="unreachable"):
        client.get_vehicle("acme", "V1")


def test_defaults_to_requests_module(monkeypatch):
    seen = {}

    def fake_get(url, **kwargs):
        seen["url"] = url
        return FakeResponse(body={"data": []})

    monkeypatch.setattr(requests, "get", fake_get)
    client = FleetApiClient("http://fleet.test/api/v1")

    assert client.list_fleets("acme") == []
    assert seen["url"] == "http://fleet.test/api/v1/fleets"


def test_base_url_is_required(monkeypatch):
    monkeypatch.setattr(http_client, "BASE_URL", None)

    with pytest.raises(ValueError):
        FleetApiClient()


@pytest.mark.parametrize("record", [
    {"id": "d1", "company_id": "acme", "license_expiry": "31/12/2027"},
    {"id": "d1", "company_id": "acme", "status": "ON_HOLIDAY"},
    {"name": "no id", "company_id": "acme"},
    "d1",
])
def test_malformed_driver_record_raises_api_error(record):
    client, _ = make_client({"drivers/d1": FakeResponse(body={"data": record})})

    with pytest.raises(FleetApiError, match="malformed record for drivers/d1"):
        client.get_driver("acme", "d1")


@pytest.mark.parametrize("path, call", [
    ("drivers", lambda c: c.list_drivers("acme")),
    ("vehicles", lambda c: c.get_vehicles("acme", ["V1"])),
    ("orders", lambda c: c.get_orders("acme", ["O1"])),
    ("fleets", lambda c: c.list_fleets("acme")),
    ("route-stops", lambda c: c.stops_for_driver("acme", "carol")),
])
def test_malformed_row_in_a_list_raises_api_error(path, call):
    """
    One record without an id fails the whole call with FleetApiError.
    """
    client, _ = make_client({path: FakeResponse(body={"data": [{"company_id": "acme"}]})})

    with pytest.raises(FleetApiError, match="malformed"):
        call(client)
