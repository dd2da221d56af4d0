"""
Purpose: Route plan records as produced by the external optimizer.
What it does:
- RouteStop: one stop of a planned route, with the driver/vehicle carrying it
- StopStatus: PENDING | IN_PROGRESS | COMPLETED | FAILED | CANCELLED | SKIPPED
- AffectedRoute: a route of an absent driver that still has work left

Distances, durations and geometry are opaque here; the engine only needs
which stops still have to be served and by whom.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from drivers.models import to_utc


class StopStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self not in (StopStatus.PENDING, StopStatus.IN_PROGRESS)


@dataclass(frozen=True)
class RouteStop:
    id: str
    company_id: str
    route_id: str
    vehicle_id: str
    order_id: str
    driver_id: Optional[str] = None
    job_id: Optional[str] = None
    sequence: int = 0
    status: StopStatus = StopStatus.PENDING
    address: str = ""
    time_window_start: Optional[datetime] = None
    time_window_end: Optional[datetime] = None
    estimated_arrival: Optional[datetime] = None

    @property
    def is_window_compromised(self) -> bool:
        """
        True when the planned arrival falls after the end of the stop's time window.
        """
        if not (self.time_window_start and self.time_window_end and self.estimated_arrival):
            return False
        return to_utc(self.estimated_arrival) > to_utc(self.time_window_end)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> RouteStop:
        return cls(
            id=str(payload["id"]),
            company_id=str(payload["company_id"]),
            route_id=str(payload["route_id"]),
            vehicle_id=str(payload["vehicle_id"]),
            order_id=str(payload["order_id"]),
            driver_id=payload.get("driver_id"),
            job_id=payload.get("job_id"),
            sequence=int(payload.get("sequence") or 0),
            status=StopStatus(str(payload.get("status") or "PENDING").upper()),
            address=payload.get("address") or "",
            time_window_start=to_utc(payload.get("time_window_start")),
            time_window_end=to_utc(payload.get("time_window_end")),
            estimated_arrival=to_utc(payload.get("estimated_arrival")),
        )


@dataclass
class AffectedRoute:
    """
    A route assigned to an absent driver with at least one non-terminal stop.
    `stops` holds every stop of the route for that driver, terminal ones included.
    """
    route_id: str
    vehicle_id: str
    vehicle_plate: str = "Unknown"
    stops: List[RouteStop] = field(default_factory=list)

    @property
    def total_stops(self) -> int:
        return len(self.stops)

    @property
    def pending_stops(self) -> int:
        return sum(1 for s in self.stops if s.status == StopStatus.PENDING)

    @property
    def in_progress_stops(self) -> int:
        return sum(1 for s in self.stops if s.status == StopStatus.IN_PROGRESS)

    @property
    def active_stops(self) -> List[RouteStop]:
        return [s for s in self.stops if not s.status.is_terminal]

    def summary(self) -> Dict[str, Any]:
        return {
            "route_id": self.route_id,
            "vehicle_id": self.vehicle_id,
            "vehicle_plate": self.vehicle_plate,
            "pending_stops": self.pending_stops,
            "in_progress_stops": self.in_progress_stops,
        }
