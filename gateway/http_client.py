#Purpose: The fleet API "adapter/client".
#Sole responsibility: talk to the fleet management REST API via HTTP and
#return normalized domain snapshots (Driver, Vehicle, Order, RouteStop...).
#Encapsulates API-specific details:
#URL construction (/drivers, /vehicles/{id}, /orders, /route-stops)
#tenant header (X-Company-Id)
#timeouts / error handling
#parsing response JSON into the domain models
#It should not contain assignment rules or scoring.

import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import requests
from dotenv import load_dotenv

from drivers.models import Driver
from fleets.models import Fleet, Vehicle
from orders.models import Order
from routing.models import RouteStop

from .base import EntityGateway, RouteStopGateway

# Read the fleet API base URL from environment
# Example in .env:
# FLEET_API_BASE_URL=http://localhost:8000/api/v1
load_dotenv()
BASE_URL = os.getenv("FLEET_API_BASE_URL")

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FleetApiError(Exception):
    """Raised when the fleet API cannot be reached or answers with an error."""
    pass


class FleetApiClient(EntityGateway, RouteStopGateway):
    """
    Fleet API Adapter / Client

    Sole responsibility:
    - Talk to the fleet API via HTTP
    - Pass the tenant explicitly on every call
    - Return domain snapshots
    """
    def __init__(self, base_url: Optional[str] = None, timeout: int = 5, session: Optional[Any] = None):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout  # seconds to wait for the API before giving up
        self.http = session or requests

        if not self.base_url:
            raise ValueError("Fleet API base URL not set. Please set FLEET_API_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def _get(self, company_id: str, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        GET `path` for the tenant. Returns the "data" member of the JSON body,
        or None on 404.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.http.get(
                url,
                params=params or {},
                headers={"X-Company-Id": company_id, "Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Fleet API request to {url} failed: {e}")
            raise FleetApiError(f"Fleet API unreachable: {e}") from e

        if response.status_code == 404:
            return None

        if response.status_code >= 400:
            raise FleetApiError(f"Fleet API error {response.status_code} for {path}")

        try:
            body = response.json()
        except ValueError as e:
            raise FleetApiError(f"Fleet API returned invalid JSON for {path}") from e

        return body.get("data") if isinstance(body, dict) else body

    def _get_list(self, company_id: str, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._get(company_id, path, params) or []

    def _parse(self, path: str, parse: Callable[[Any], T], payload: Any) -> T:
        """
        Maps one API record to a snapshot. A record that does not fit the
        model is an API failure like any other.
        """
        try:
            return parse(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Fleet API returned a malformed record for {path}: {e!r}")
            raise FleetApiError(f"Fleet API returned a malformed record for {path}: {e}") from e

    def _parse_rows(self, path: str, parse: Callable[[Any], T], rows: Iterable[Any]) -> List[T]:
        return [self._parse(path, parse, row) for row in rows]

    #----------------
    # EntityGateway
    #----------------
    def get_vehicle(self, company_id: str, vehicle_id: str) -> Optional[Vehicle]:
        path = f"vehicles/{vehicle_id}"
        payload = self._get(company_id, path)
        return self._parse(path, Vehicle.from_dict, payload) if payload else None

    def get_vehicles(self, company_id: str, vehicle_ids: Iterable[str]) -> List[Vehicle]:
        ids = list(dict.fromkeys(vehicle_ids))
        if not ids:
            return []
        vehicles = self._parse_rows("vehicles", Vehicle.from_dict, self._get_list(company_id, "vehicles", {"ids": ",".join(ids)}))
        return [v for v in vehicles if v.company_id == company_id]

    def get_driver(self, company_id: str, driver_id: str) -> Optional[Driver]:
        path = f"drivers/{driver_id}"
        payload = self._get(company_id, path)
        return self._parse(path, Driver.from_dict, payload) if payload else None

    def list_drivers(self, company_id: str) -> List[Driver]:
        return self._parse_rows("drivers", Driver.from_dict, self._get_list(company_id, "drivers", {"active": "true"}))

    def get_orders(self, company_id: str, order_ids: Iterable[str]) -> List[Order]:
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            return []
        return self._parse_rows("orders", Order.from_dict, self._get_list(company_id, "orders", {"ids": ",".join(ids)}))

    def list_fleets(self, company_id: str) -> List[Fleet]:
        return self._parse_rows("fleets", Fleet.from_dict, self._get_list(company_id, "fleets"))

    #----------------
    # RouteStopGateway
    #----------------
    def stops_for_driver(self, company_id: str, driver_id: str, job_id: Optional[str] = None) -> List[RouteStop]:
        params = {"driver_id": driver_id}
        if job_id:
            params["job_id"] = job_id
        return self._parse_rows("route-stops", RouteStop.from_dict, self._get_list(company_id, "route-stops", params))
