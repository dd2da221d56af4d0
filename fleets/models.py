"""
Purpose: Domain models for fleets and vehicles.
What it does:
- Fleet (id, company, name, type)
- Vehicle (id, company, plate, ordered fleet memberships, required license category)

A vehicle may belong to several fleets; the first one is its primary fleet
when matching drivers.

Rule: No scoring logic here. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class Fleet:
    id: str
    company_id: str
    name: str = ""
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Fleet:
        return cls(
            id=str(payload["id"]),
            company_id=str(payload["company_id"]),
            name=payload.get("name") or "",
            type=payload.get("type"),
        )


@dataclass(frozen=True)
class Vehicle:
    """
    Snapshot of a vehicle and the fleets it is attached to.
    """
    id: str
    company_id: str
    fleet_ids: Tuple[str, ...] = ()
    plate: str = ""
    license_required: Optional[str] = None
    active: bool = True

    @property
    def primary_fleet_id(self) -> Optional[str]:
        return self.fleet_ids[0] if self.fleet_ids else None

    @staticmethod
    def new(
        vehicle_id: str,
        company_id: str,
        fleet_ids: Iterable[str] = (),
        *,
        plate: str = "",
        license_required: Optional[str] = None,
        active: bool = True,
    ) -> Vehicle:
        # keep membership order, drop duplicates
        ordered = tuple(dict.fromkeys(str(f) for f in fleet_ids))
        return Vehicle(
            id=vehicle_id,
            company_id=company_id,
            fleet_ids=ordered,
            plate=plate,
            license_required=(license_required or "").strip() or None,
            active=active,
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Vehicle:
        return cls.new(
            str(payload["id"]),
            str(payload["company_id"]),
            payload.get("fleet_ids") or [],
            plate=payload.get("plate") or "",
            license_required=payload.get("license_required"),
            active=bool(payload.get("active", True)),
        )
