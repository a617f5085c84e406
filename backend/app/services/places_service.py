"""
Places service: nearby POIs, forward/reverse geocoding and autocomplete.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from app.core.errors import UpstreamError
from app.schemas.route import GeocodeCandidate, Location, POI
from app.services.geoapify import GeoapifyClient
from app.services.search_guard import SearchGuard

logger = logging.getLogger(__name__)

PLACES_PATH = "/v2/places"
REVERSE_PATH = "/v1/geocode/reverse"
SEARCH_PATH = "/v1/geocode/search"
AUTOCOMPLETE_PATH = "/v1/geocode/autocomplete"

DEFAULT_RADIUS_M = 3000
POI_LIMIT = 20
AUTOCOMPLETE_LIMIT = 5
MIN_QUERY_LENGTH = 3

DEFAULT_POI_CATEGORIES: List[str] = [
    "catering.restaurant",
    "catering.fast_food",
    "catering.cafe",
    "commercial.supermarket",
    "leisure.park",
]

# First match wins; anything else is drawn as a restaurant
_POI_ICONS = [
    ("commercial.supermarket", "🛒"),
    ("leisure.park", "🌳"),
    ("catering.cafe", "☕"),
    ("catering.fast_food", "🍔"),
]
_DEFAULT_ICON = "🍴"


def poi_icon(categories: Sequence[str]) -> str:
    for category, icon in _POI_ICONS:
        if category in categories:
            return icon
    return _DEFAULT_ICON


def parse_poi(properties: Dict[str, Any]) -> POI:
    categories = properties.get("categories") or []
    return POI(
        name=properties.get("name") or "Unnamed location",
        address=properties.get("address_line1") or None,
        categories=categories,
        category=categories[0] if categories else "poi",
        lat=properties.get("lat"),
        lon=properties.get("lon"),
        icon=poi_icon(categories),
    )


def parse_candidate(feature: Dict[str, Any]) -> GeocodeCandidate:
    """GeoJSON feature → candidate. Geometry is [lon, lat]; fall back to properties."""
    props = feature.get("properties") or {}
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if len(coords) >= 2:
        lon, lat = coords[0], coords[1]
    else:
        lon, lat = props.get("lon"), props.get("lat")
    return GeocodeCandidate(name=props.get("formatted"), lat=lat, lon=lon, properties=props)


def _features(data: Any, path: str) -> List[Dict[str, Any]]:
    if not isinstance(data, dict):
        raise UpstreamError(f"{path} returned a malformed payload")
    features = data.get("features") or []
    if not isinstance(features, list):
        raise UpstreamError(f"{path} returned a malformed payload")
    return [f for f in features if isinstance(f, dict)]


class PlacesService:
    def __init__(self, client: GeoapifyClient, api_key: str):
        self.client = client
        self.api_key = api_key

    async def search_nearby_pois(
        self,
        location: Location,
        radius: float = DEFAULT_RADIUS_M,
        categories: Optional[Sequence[str]] = None,
    ) -> List[POI]:
        lon = f"{location.lon:.6f}"
        lat = f"{location.lat:.6f}"
        params = {
            "categories": ",".join(categories or DEFAULT_POI_CATEGORIES),
            "filter": f"circle:{lon},{lat},{radius:g}",
            "bias": f"proximity:{lon},{lat}",
            "limit": POI_LIMIT,
        }
        data = await self.client.get_json(PLACES_PATH, params, self.api_key)
        try:
            return [parse_poi(f.get("properties") or {}) for f in _features(data, PLACES_PATH)]
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamError(f"{PLACES_PATH} returned an unreadable place: {e}") from e

    async def reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        data = await self.client.get_json(REVERSE_PATH, {"lat": lat, "lon": lon}, self.api_key)
        features = _features(data, REVERSE_PATH)
        props = features[0].get("properties") if features else None
        if not isinstance(props, dict):
            logger.debug("No address found for (%s, %s)", lat, lon)
            return None
        return props.get("formatted")

    async def geocode_location(self, query: str) -> List[GeocodeCandidate]:
        data = await self.client.get_json(SEARCH_PATH, {"text": query}, self.api_key)
        return self._candidates(data, SEARCH_PATH)

    async def autocomplete_location(
        self,
        query: str,
        focus: Optional[Location] = None,
        limit: int = AUTOCOMPLETE_LIMIT,
    ) -> List[GeocodeCandidate]:
        """Type-ahead search. Short queries are not sent upstream."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        params: Dict[str, Any] = {"text": query, "limit": limit}
        if focus is not None:
            params["bias"] = f"proximity:{focus.lon:.6f},{focus.lat:.6f}"
        data = await self.client.get_json(AUTOCOMPLETE_PATH, params, self.api_key)
        return self._candidates(data, AUTOCOMPLETE_PATH)

    def _candidates(self, data: Any, path: str) -> List[GeocodeCandidate]:
        try:
            return [parse_candidate(f) for f in _features(data, path)]
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamError(f"{path} returned an unreadable location: {e}") from e


class LocationSearch:
    """
    Autocomplete for a single search box.

    Each keystroke supersedes the previous query; a late response for an
    older query is dropped instead of replacing newer results.
    """

    def __init__(self, places: PlacesService, debounce_s: float = 0.3):
        self.places = places
        self.debounce_s = debounce_s
        self.guard = SearchGuard()

    async def search(
        self,
        query: str,
        focus: Optional[Location] = None,
        limit: int = AUTOCOMPLETE_LIMIT,
    ) -> Optional[List[GeocodeCandidate]]:
        """Returns None when a newer search superseded this one."""
        return await self.guard.run(
            lambda: self.places.autocomplete_location(query, focus=focus, limit=limit),
            delay=self.debounce_s,
        )
