"""
Orders domain package.

Public API:
- Domain models: Order, RouteStopRef
- Requirement extraction: parse_required_skills, required_skills_for_stops
"""
from .models import Order, RouteStopRef
from .requirements import parse_required_skills, required_skills_for_stops

__all__ = [
    "Order",
    "RouteStopRef",
    "parse_required_skills",
    "required_skills_for_stops",
]
