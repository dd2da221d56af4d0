"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the structure of a Driver, their skills, availability windows and status
without relying on Django ORM constraints. The engine only ever reads these
snapshots; any change produces a new instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

DateLike = Union[date, datetime, str]


class DriverStatus(str, Enum):
    """
    Operational state of a driver as reported by the status-transition service.
    """
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    IN_ROUTE = "IN_ROUTE"
    ON_PAUSE = "ON_PAUSE"
    COMPLETED = "COMPLETED"
    UNAVAILABLE = "UNAVAILABLE"
    ABSENT = "ABSENT"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Normalizes dates, naive datetimes and ISO strings to aware UTC datetimes
    so expiry comparisons never mix naive and aware values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_license_categories(raw: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """
    Categories arrive either as a comma separated string ("B1, C2") or as a list.
    """
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        raw = raw.split(",")
    return frozenset(code.strip() for code in raw if code and code.strip())


@dataclass(frozen=True)
class SkillAssignment:
    """
    A skill held by a driver. Expired assignments are still on file and are
    reported by the scorer rather than silently dropped.
    """
    skill_id: str
    name: str = ""
    expires_at: Optional[datetime] = None
    active: bool = True

    def is_expired(self, now: datetime) -> bool:
        expires_at = to_utc(self.expires_at)
        return expires_at is not None and expires_at < to_utc(now)

    def is_effective(self, now: datetime) -> bool:
        return self.active and not self.is_expired(now)

    @property
    def label(self) -> str:
        return self.name or self.skill_id

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> SkillAssignment:
        return cls(
            skill_id=str(payload["skill_id"]),
            name=payload.get("name") or "",
            expires_at=to_utc(payload.get("expires_at")),
            active=bool(payload.get("active", True)),
        )


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    Weekly working window, e.g. MONDAY 08:00-17:00.
    """
    day_of_week: str
    start_time: time
    end_time: time
    is_day_off: bool = False
    active: bool = True

    def covers(self, moment: time) -> bool:
        if self.is_day_off or not self.active:
            return False
        return self.start_time <= moment <= self.end_time

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> AvailabilityWindow:
        return cls(
            day_of_week=str(payload["day_of_week"]).upper(),
            start_time=_parse_time(payload["start_time"]),
            end_time=_parse_time(payload["end_time"]),
            is_day_off=bool(payload.get("is_day_off", False)),
            active=bool(payload.get("active", True)),
        )


def _parse_time(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(value[:5])


@dataclass(frozen=True)
class Driver:
    """
    A stateless snapshot of a driver at request time.

    Both historical shapes (users with a driver role, and the dedicated driver
    table that only knows a single fleet) map onto this one type.
    """
    id: str
    name: str
    company_id: str
    status: DriverStatus
    license_number: Optional[str] = None
    license_expiry: Optional[datetime] = None
    license_categories: FrozenSet[str] = frozenset()
    primary_fleet_id: Optional[str] = None
    secondary_fleet_ids: FrozenSet[str] = frozenset()
    skills: Tuple[SkillAssignment, ...] = ()
    availability: Tuple[AvailabilityWindow, ...] = ()
    identification: Optional[str] = None
    active: bool = True

    def belongs_to_any(self, fleet_ids: Iterable[str]) -> bool:
        fleet_ids = set(fleet_ids)
        return self.primary_fleet_id in fleet_ids or bool(self.secondary_fleet_ids & fleet_ids)

    def active_skill_ids(self) -> FrozenSet[str]:
        return frozenset(s.skill_id for s in self.skills if s.active)

    def effective_skill_ids(self, now: datetime) -> FrozenSet[str]:
        return frozenset(s.skill_id for s in self.skills if s.is_effective(now))

    def details(self) -> Dict[str, Any]:
        return {
            "identification": self.identification,
            "status": self.status.value,
            "fleet_id": self.primary_fleet_id,
            "license_number": self.license_number,
            "license_expiry": self.license_expiry.isoformat() if self.license_expiry else None,
        }

    @classmethod
    def new(
        cls,
        driver_id: str,
        name: str,
        company_id: str,
        status: Union[str, DriverStatus] = DriverStatus.AVAILABLE,
        *,
        license_number: Optional[str] = None,
        license_expiry: Optional[DateLike] = None,
        license_categories: Union[str, Iterable[str], None] = None,
        primary_fleet_id: Optional[str] = None,
        secondary_fleet_ids: Iterable[str] = (),
        skills: Iterable[SkillAssignment] = (),
        availability: Iterable[AvailabilityWindow] = (),
        identification: Optional[str] = None,
        active: bool = True,
    ) -> Driver:
        if isinstance(status, str):
            status = DriverStatus(status.upper())

        return cls(
            id=driver_id,
            name=name,
            company_id=company_id,
            status=status,
            license_number=license_number,
            license_expiry=to_utc(license_expiry),
            license_categories=parse_license_categories(license_categories),
            primary_fleet_id=primary_fleet_id,
            secondary_fleet_ids=frozenset(secondary_fleet_ids),
            skills=tuple(skills),
            availability=tuple(availability),
            identification=identification,
            active=active,
        )

    @classmethod
    def from_legacy(cls, driver_id: str, name: str, company_id: str, fleet_id: Optional[str], **kwargs) -> Driver:
        """
        Single-fleet driver records: the one fleet becomes the primary fleet and
        there are no secondary memberships.
        """
        kwargs.pop("secondary_fleet_ids", None)
        return cls.new(driver_id, name, company_id, primary_fleet_id=fleet_id, **kwargs)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Driver:
        # Legacy payloads carry "fleet_id" instead of "primary_fleet_id".
        primary_fleet_id = payload.get("primary_fleet_id", payload.get("fleet_id"))
        return cls.new(
            str(payload["id"]),
            payload.get("name") or "",
            str(payload["company_id"]),
            payload.get("status") or DriverStatus.AVAILABLE,
            license_number=payload.get("license_number"),
            license_expiry=payload.get("license_expiry"),
            license_categories=payload.get("license_categories"),
            primary_fleet_id=str(primary_fleet_id) if primary_fleet_id else None,
            secondary_fleet_ids=[str(f) for f in payload.get("secondary_fleet_ids") or []],
            skills=[SkillAssignment.from_dict(s) for s in payload.get("skills") or []],
            availability=[AvailabilityWindow.from_dict(a) for a in payload.get("availability") or []],
            identification=payload.get("identification"),
            active=bool(payload.get("active", True)),
        )
