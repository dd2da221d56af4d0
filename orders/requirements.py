"""
Purpose: Resolve which skills a set of route stops demands.
What it does:

- Parses the required-skills payload stored on an order. It may be a native
  list, a JSON-serialized list ('["REFRIGERATED", "HAZMAT"]') or missing.
- Unions the requirements of every order referenced by the stops.

Malformed payloads never fail a request: the order simply contributes no
requirement and a warning is logged.

Rule: No driver data here, only order -> skill resolution.
"""

from __future__ import annotations

import json
import logging
from typing import Any, FrozenSet, Iterable, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Order, RouteStopRef

logger = logging.getLogger(__name__)


def parse_required_skills(raw: Any) -> FrozenSet[str]:
    """
    Normalizes an order's required-skills payload into a set of skill ids.
    """
    if raw is None or raw == "":
        return frozenset()

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unparseable required skills payload: %r", raw)
            return frozenset()

    if not isinstance(raw, (list, tuple, set, frozenset)):
        logger.warning("Ignoring required skills payload of type %s", type(raw).__name__)
        return frozenset()

    skills: Set[str] = set()
    for item in raw:
        if isinstance(item, (str, int)) and not isinstance(item, bool) and str(item).strip():
            skills.add(str(item).strip())
        else:
            # a single bad entry poisons the whole order
            logger.warning("Ignoring required skills payload with invalid entry %r", item)
            return frozenset()

    return frozenset(skills)


def required_skills_for_stops(
    orders: Iterable[Order],
    route_stops: Iterable[RouteStopRef],
    company_id: str,
) -> FrozenSet[str]:
    """
    Union of the required skills of every tenant order referenced by the stops.
    Unknown orders and orders of other tenants contribute nothing.
    """
    wanted = {stop.order_id for stop in route_stops}
    if not wanted:
        return frozenset()

    required: Set[str] = set()
    for order in orders:
        if order.id not in wanted or order.company_id != company_id:
            continue
        required.update(order.required_skills)

    return frozenset(required)
