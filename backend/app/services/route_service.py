"""
Route service: Geoapify bicycle routing + response normalization.

Geoapify has answered in two historical shapes (a GeoJSON FeatureCollection
and a ``results`` array).  Both are decoded into one RouteResult before any
other code touches the payload.
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from app.core.errors import UpstreamError
from app.schemas.route import (
    BikeType,
    Location,
    RouteResponse,
    RouteResult,
    RouteShape,
    RouteStep,
)
from app.services.difficulty import summarize_route
from app.services.geoapify import GeoapifyClient

logger = logging.getLogger(__name__)

ROUTING_PATH = "/v1/routing"

# Geoapify only offers a single cycling profile for now
BIKE_PROFILES: Dict[str, str] = {
    "road": "bicycle",
    "mountain": "bicycle",
    "regular": "bicycle",
    "electric": "bicycle",
}


# ──────────────────────────────────────────────
# Payload decoding
# ──────────────────────────────────────────────

class DecodedRoute(NamedTuple):
    shape: RouteShape
    properties: Dict[str, Any]
    coordinates: List[Any]


def _first(payload: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    items = payload.get(key)
    if not isinstance(items, list) or not items:
        return None
    if not isinstance(items[0], dict):
        raise UpstreamError(f"Malformed routing payload: {key}[0] is not an object")
    return items[0]


def _properties(item: Dict[str, Any]) -> Dict[str, Any]:
    props = item.get("properties")
    return props if isinstance(props, dict) else {}


def _decode_feature_collection(payload: Dict[str, Any]) -> Optional[DecodedRoute]:
    feature = _first(payload, "features")
    if feature is None:
        return None

    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        geometry = {}
    coords = geometry.get("coordinates") or []
    gtype = geometry.get("type")

    if gtype == "LineString":
        line = coords
    elif gtype == "MultiLineString":
        line = [point for part in coords for point in part]
    else:
        logger.warning("Unsupported route geometry type: %s", gtype)
        line = []

    return DecodedRoute("feature_collection", _properties(feature), line)


def _decode_results(payload: Dict[str, Any]) -> Optional[DecodedRoute]:
    result = _first(payload, "results")
    if result is None:
        return None

    geometry = result.get("geometry")
    if isinstance(geometry, dict) and "coordinates" in geometry:
        line = geometry["coordinates"] or []
    elif isinstance(geometry, list):
        # Some responses carry the coordinate list directly
        line = geometry
    else:
        line = []

    return DecodedRoute("results", _properties(result), line)


_DECODERS: List[Callable[[Dict[str, Any]], Optional[DecodedRoute]]] = [
    _decode_feature_collection,
    _decode_results,
]


def decode_route_payload(payload: Any) -> Optional[DecodedRoute]:
    """Try each known shape in order. None means the upstream found no route."""
    if not isinstance(payload, dict):
        raise UpstreamError("Malformed routing payload: expected a JSON object")
    for decoder in _DECODERS:
        decoded = decoder(payload)
        if decoded is not None:
            return decoded
    return None


# ──────────────────────────────────────────────
# Field extraction
# ──────────────────────────────────────────────

def _first_leg(props: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    legs = props.get("legs")
    if isinstance(legs, list) and legs and isinstance(legs[0], dict):
        return legs[0]
    return None


def extract_distance(props: Dict[str, Any]) -> float:
    """distance → legs[0].distance → length → 0 (zero falls through)."""
    leg = _first_leg(props)
    if props.get("distance"):
        return float(props["distance"])
    if leg is not None:
        return float(leg.get("distance") or 0)
    if props.get("length"):
        return float(props["length"])
    return 0.0


def extract_duration(props: Dict[str, Any]) -> float:
    """legs[0].time → time → duration → 0."""
    leg = _first_leg(props)
    if leg is not None and leg.get("time"):
        return float(leg["time"])
    return float(props.get("time") or props.get("duration") or 0)


def extract_steps(props: Dict[str, Any]) -> List[RouteStep]:
    leg = _first_leg(props)
    if leg is None or not isinstance(leg.get("steps"), list):
        return []
    return [
        RouteStep(
            distance=step.get("distance") or 0,
            time=step.get("time") or 0,
            elevation_gain=step.get("elevation_gain"),
            elevation_loss=step.get("elevation_loss"),
        )
        for step in leg["steps"]
        if isinstance(step, dict)
    ]


def extract_route_info(payload: Any) -> RouteResult:
    """Normalize a raw routing payload.  An empty coordinate list means "no route"."""
    try:
        decoded = decode_route_payload(payload)
        if decoded is None:
            return RouteResult()

        coordinates = [[float(p[0]), float(p[1])] for p in decoded.coordinates]
        return RouteResult(
            coordinates=coordinates,
            distance=extract_distance(decoded.properties),
            time=extract_duration(decoded.properties),
            steps=extract_steps(decoded.properties),
            shape=decoded.shape,
            properties=decoded.properties,
        )
    except (TypeError, ValueError, IndexError, KeyError, AttributeError) as e:
        raise UpstreamError(f"Malformed routing payload: {e}") from e


# ──────────────────────────────────────────────
# Upstream calls
# ──────────────────────────────────────────────

class RoutingService:
    def __init__(self, client: GeoapifyClient, api_key: str):
        self.client = client
        self.api_key = api_key

    async def fetch_route(
        self,
        source: Location,
        destination: Location,
        bike_type: BikeType = "regular",
    ) -> Dict[str, Any]:
        """One routing call; returns the raw upstream payload."""
        waypoints = (
            f"{source.lat:.6f},{source.lon:.6f}|"
            f"{destination.lat:.6f},{destination.lon:.6f}"
        )
        params = {"waypoints": waypoints, "mode": BIKE_PROFILES.get(bike_type, "bicycle")}
        return await self.client.get_json(ROUTING_PATH, params, self.api_key)

    async def plan_route(
        self,
        source: Location,
        destination: Location,
        bike_type: BikeType = "regular",
    ) -> RouteResponse:
        """fetch → decode → summarize."""
        raw = await self.fetch_route(source, destination, bike_type)
        route = extract_route_info(raw)
        if not route.found:
            logger.info("No route between %s and %s", source, destination)
        return RouteResponse(found=route.found, route=route, summary=summarize_route(route))
