from dataclasses import replace
from typing import Dict, FrozenSet, Union

from drivers.models import Driver, DriverStatus


class DriverStateException(Exception):
    """Raised when an invalid driver transition is attempted."""
    pass


ALLOWED_TRANSITIONS: Dict[DriverStatus, FrozenSet[DriverStatus]] = {
    DriverStatus.AVAILABLE: frozenset({DriverStatus.ASSIGNED, DriverStatus.UNAVAILABLE, DriverStatus.ABSENT}),
    DriverStatus.ASSIGNED: frozenset({
        DriverStatus.IN_ROUTE, DriverStatus.AVAILABLE, DriverStatus.UNAVAILABLE, DriverStatus.ABSENT,
    }),
    DriverStatus.IN_ROUTE: frozenset({
        DriverStatus.ON_PAUSE, DriverStatus.COMPLETED, DriverStatus.UNAVAILABLE, DriverStatus.ABSENT,
    }),
    DriverStatus.ON_PAUSE: frozenset({
        DriverStatus.IN_ROUTE, DriverStatus.AVAILABLE, DriverStatus.UNAVAILABLE, DriverStatus.ABSENT,
    }),
    DriverStatus.COMPLETED: frozenset({DriverStatus.AVAILABLE, DriverStatus.ASSIGNED, DriverStatus.UNAVAILABLE}),
    DriverStatus.UNAVAILABLE: frozenset({DriverStatus.AVAILABLE}),
    DriverStatus.ABSENT: frozenset({DriverStatus.AVAILABLE, DriverStatus.UNAVAILABLE}),
}


def can_transition(current: DriverStatus, target: DriverStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition_driver_status(driver: Driver, target: Union[str, DriverStatus]) -> Driver:
    """
    Moves a driver to `target` if the status machine allows it.
    The assignment engine never calls this; the status service does.
    """
    if isinstance(target, str):
        target = DriverStatus(target.upper())

    if not can_transition(driver.status, target):
        raise DriverStateException(
            f"Cannot transition driver {driver.id} from {driver.status.value} to {target.value}"
        )

    # Driver is frozen
    return replace(driver, status=target)
