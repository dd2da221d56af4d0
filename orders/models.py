"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, company, required skills)
- RouteStopRef (order reference + optional promised date) used as engine input

Required skills are stored upstream as a serialized list; they are parsed
into a frozenset on construction.

Rule: No scoring logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from .requirements import parse_required_skills


@dataclass(frozen=True)
class Order:
    """
    An order as far as driver assignment is concerned.
    """
    id: str
    company_id: str
    required_skills: FrozenSet[str] = frozenset()
    tracking_id: Optional[str] = None

    @staticmethod
    def new(order_id: str, company_id: str, required_skills: Any = None, tracking_id: Optional[str] = None) -> Order:
        return Order(
            id=order_id,
            company_id=company_id,
            required_skills=parse_required_skills(required_skills),
            tracking_id=tracking_id,
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Order:
        return cls.new(
            str(payload["id"]),
            str(payload["company_id"]),
            payload.get("required_skills"),
            payload.get("tracking_id"),
        )


@dataclass(frozen=True)
class RouteStopRef:
    """
    A stop of a planned route, referenced by its order.
    """
    order_id: str
    promised_date: Optional[datetime] = None
