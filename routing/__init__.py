#Marks routing as a package.
#Re-exports the route plan records and the affected-route query so other
#modules import from routing without knowing internal file names.
#No business logic.

from .models import AffectedRoute, RouteStop, StopStatus
from .route_service import find_affected_routes

__all__ = [
    "AffectedRoute",
    "RouteStop",
    "StopStatus",
    "find_affected_routes",
]
