"""
Purpose: Business rules for which drivers can be offered work at a given moment.
What it does:
Accepts a pool of drivers and a point in time and returns those whose
status and weekly availability windows allow them to start a route.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .models import Driver, DriverStatus

DAYS_OF_WEEK = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]


def day_of_week(moment: datetime) -> str:
    return DAYS_OF_WEEK[moment.weekday()]


def is_available_at(driver: Driver, moment: datetime) -> bool:
    """
    A driver is available when active, AVAILABLE, and the window for that
    weekday covers the time of day. No window for the day means not available.
    """
    if not driver.active or driver.status != DriverStatus.AVAILABLE:
        return False

    day = day_of_week(moment)
    window = next((w for w in driver.availability if w.active and w.day_of_week == day), None)
    if window is None:
        return False

    return window.covers(moment.time().replace(second=0, microsecond=0))


def filter_available_drivers(
    drivers: Iterable[Driver],
    moment: datetime,
    driver_ids: Optional[Iterable[str]] = None,
) -> List[Driver]:
    """
    Returns the drivers (optionally restricted to `driver_ids`) available at `moment`.
    """
    wanted = set(driver_ids) if driver_ids is not None else None

    available = []
    for driver in drivers:
        if wanted is not None and driver.id not in wanted:
            continue
        if is_available_at(driver, moment):
            available.append(driver)

    return available
