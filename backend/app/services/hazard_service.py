"""
Hazard service: validate and store hazard reports, answer proximity queries.

Proximity is a bounding box, not a circle.  The radius in meters is turned
into independent latitude and longitude deltas with a flat-earth
approximation:

    d_lat = radius / 111320
    d_lon = radius / (111320 * cos(lat))

Points in the box corners lie farther than ``radius`` from the center, and
the approximation degrades toward the poles.  Existing clients depend on
exactly this matching rule, so no haversine post-filter is applied.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import MissingParameterError, ValidationError
from app.db.hazard_store import HazardStore
from app.schemas.hazard import HazardCreate, HazardReport

logger = logging.getLogger(__name__)

METERS_PER_DEGREE = 111_320
DEFAULT_RADIUS_M = 3000
MAX_RESULTS = 500

QueryValue = Union[str, float, int, None]


def bounding_box(lat: float, lon: float, radius_m: float) -> Tuple[float, float, float, float]:
    """(min_lat, max_lat, min_lon, max_lon) around a center point."""
    d_lat = radius_m / METERS_PER_DEGREE
    d_lon = radius_m / (METERS_PER_DEGREE * math.cos(math.radians(lat)))
    # cos() goes negative past ±90°; keep the box the right way round
    d_lon = abs(d_lon)
    return lat - d_lat, lat + d_lat, lon - d_lon, lon + d_lon


def flatten_errors(exc: PydanticValidationError) -> Dict[str, Any]:
    """Group pydantic errors per field: {"formErrors": [...], "fieldErrors": {field: [...]}}."""
    form_errors: List[str] = []
    field_errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        message = err.get("msg", "invalid")
        if loc:
            field_errors.setdefault(str(loc[0]), []).append(message)
        else:
            form_errors.append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def _is_blank(value: QueryValue) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: QueryValue, name: str) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number):
        raise ValidationError(
            f"{name} must be a number",
            code="invalid_query",
            details={"formErrors": [], "fieldErrors": {name: ["expected a finite number"]}},
        )
    return number


class HazardService:
    def __init__(self, store: HazardStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def create_hazard(self, payload: Any) -> HazardReport:
        try:
            hazard = HazardCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError("invalid hazard", details=flatten_errors(e)) from e

        doc: Dict[str, Any] = {
            "lat": hazard.lat,
            "lon": hazard.lon,
            "type": hazard.type,
            "createdAt": self._clock(),
        }
        if hazard.description is not None:
            doc["description"] = hazard.description
        if hazard.user_id is not None:
            doc["userId"] = hazard.user_id

        stored = self.store.insert(doc)
        logger.info("Hazard %s reported at (%.5f, %.5f): %s", stored["_id"], hazard.lat, hazard.lon, hazard.type)
        return HazardReport.model_validate(stored)

    def list_hazards_near(
        self,
        lat: QueryValue,
        lon: QueryValue,
        radius: QueryValue = DEFAULT_RADIUS_M,
    ) -> List[HazardReport]:
        if _is_blank(lat) or _is_blank(lon):
            raise MissingParameterError("lat and lon are required")

        clat = _to_number(lat, "lat")
        clon = _to_number(lon, "lon")
        r = DEFAULT_RADIUS_M if _is_blank(radius) else _to_number(radius, "radius")
        if r < 0:
            raise ValidationError(
                "radius must not be negative",
                code="invalid_query",
                details={"formErrors": [], "fieldErrors": {"radius": ["must be >= 0"]}},
            )

        min_lat, max_lat, min_lon, max_lon = bounding_box(clat, clon, r)
        docs = self.store.find_in_box(min_lat, max_lat, min_lon, max_lon, MAX_RESULTS)
        return [HazardReport.model_validate(d) for d in docs]
