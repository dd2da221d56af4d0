"""
Fleets domain package.

Public API:
- Domain models: Fleet, Vehicle
"""
from .models import Fleet, Vehicle

__all__ = ["Fleet", "Vehicle"]
