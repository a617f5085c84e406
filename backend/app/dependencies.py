from fastapi import Request

from app.services.hazard_service import HazardService
from app.services.places_service import PlacesService
from app.services.route_service import RoutingService


def get_hazard_service(request: Request) -> HazardService:
    return request.app.state.hazard_service


def get_routing_service(request: Request) -> RoutingService:
    return request.app.state.routing_service


def get_places_service(request: Request) -> PlacesService:
    return request.app.state.places_service
