from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_places_service, get_routing_service
from app.schemas.route import (
    BikeType,
    GeocodeCandidate,
    Location,
    POI,
    ReverseGeocodeResponse,
    RouteResponse,
)
from app.services.places_service import AUTOCOMPLETE_LIMIT, DEFAULT_RADIUS_M, PlacesService
from app.services.route_service import RoutingService

router = APIRouter()


@router.get("/route", response_model=RouteResponse)
async def route_endpoint(
    from_lat: float = Query(..., ge=-90, le=90),
    from_lon: float = Query(..., ge=-180, le=180),
    to_lat: float = Query(..., ge=-90, le=90),
    to_lon: float = Query(..., ge=-180, le=180),
    bike_type: BikeType = "regular",
    service: RoutingService = Depends(get_routing_service),
):
    """
    Compute a cycling route between two points via Geoapify.
    Returns the normalized geometry plus distance, riding time and difficulty.
    found=false (with empty coordinates) means the router had no route.
    """
    return await service.plan_route(
        Location(lat=from_lat, lon=from_lon),
        Location(lat=to_lat, lon=to_lon),
        bike_type,
    )


@router.get("/pois", response_model=List[POI])
async def pois_endpoint(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius: float = Query(DEFAULT_RADIUS_M, gt=0),
    categories: Optional[str] = Query(None, description="Comma-separated Geoapify categories"),
    service: PlacesService = Depends(get_places_service),
):
    wanted = [c.strip() for c in categories.split(",") if c.strip()] if categories else None
    return await service.search_nearby_pois(Location(lat=lat, lon=lon), radius, wanted)


@router.get("/geocode/reverse", response_model=ReverseGeocodeResponse)
async def reverse_geocode_endpoint(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    service: PlacesService = Depends(get_places_service),
):
    return ReverseGeocodeResponse(address=await service.reverse_geocode(lat, lon))


@router.get("/geocode/search", response_model=List[GeocodeCandidate])
async def geocode_endpoint(
    text: str = Query(..., min_length=1),
    service: PlacesService = Depends(get_places_service),
):
    return await service.geocode_location(text)


@router.get("/geocode/autocomplete", response_model=List[GeocodeCandidate])
async def autocomplete_endpoint(
    text: str = Query(...),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    limit: int = Query(AUTOCOMPLETE_LIMIT, ge=1, le=20),
    service: PlacesService = Depends(get_places_service),
):
    """Type-ahead. lat/lon bias the ranking toward a focus point when both are given."""
    focus = Location(lat=lat, lon=lon) if lat is not None and lon is not None else None
    return await service.autocomplete_location(text, focus=focus, limit=limit)
