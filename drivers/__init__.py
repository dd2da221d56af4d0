"""
Drivers domain package.

Public API:
- Domain models: Driver, DriverStatus, SkillAssignment, AvailabilityWindow
- Configuration: AssignmentPolicy, default_assignment_policy, policy_from_env
- Selection: filter_available_drivers
"""
from .models import AvailabilityWindow, Driver, DriverStatus, SkillAssignment
from .policy import AssignmentPolicy, default_assignment_policy, policy_from_env
from .selection import filter_available_drivers

__all__ = [
    "AvailabilityWindow",
    "Driver",
    "DriverStatus",
    "SkillAssignment",
    "AssignmentPolicy",
    "default_assignment_policy",
    "policy_from_env",
    "filter_available_drivers",
]
