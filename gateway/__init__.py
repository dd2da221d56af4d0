#Marks gateway as a package.
#Re-exports the gateway interfaces and their implementations so callers
#import from gateway without knowing internal file names.
#No business logic.

from .base import EntityGateway, RouteStopGateway
from .http_client import FleetApiClient, FleetApiError
from .memory import InMemoryFleetStore

__all__ = [
    "EntityGateway",
    "RouteStopGateway",
    "FleetApiClient",
    "FleetApiError",
    "InMemoryFleetStore",
]
