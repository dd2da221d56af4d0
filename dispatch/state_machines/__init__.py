from .driver_state import ALLOWED_TRANSITIONS, DriverStateException, can_transition, transition_driver_status

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DriverStateException",
    "can_transition",
    "transition_driver_status",
]
