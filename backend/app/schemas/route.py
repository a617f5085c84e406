from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


BikeType = Literal["road", "mountain", "regular", "electric"]
RouteShape = Literal["feature_collection", "results"]
Difficulty = Literal["Easy", "Moderate", "Challenging"]


class Location(BaseModel):
    lat: float
    lon: float


class RouteStep(BaseModel):
    distance: float = 0.0
    time: float = 0.0
    elevation_gain: Optional[float] = None
    elevation_loss: Optional[float] = None


class RouteResult(BaseModel):
    coordinates: List[List[float]] = []   # [[lon, lat], ...]
    distance: float = 0.0                 # meters
    time: float = 0.0                     # seconds
    steps: List[RouteStep] = []           # first leg only
    shape: Optional[RouteShape] = None    # None when no route was found
    properties: Dict[str, Any] = {}

    @property
    def found(self) -> bool:
        return bool(self.coordinates)


class RouteSummary(BaseModel):
    distance_text: str
    time_text: str
    difficulty: Difficulty


class RouteResponse(BaseModel):
    found: bool
    route: RouteResult
    summary: RouteSummary


class POI(BaseModel):
    name: str = "Unnamed location"
    address: Optional[str] = None
    categories: List[str] = []
    category: str = "poi"
    lat: Optional[float] = None
    lon: Optional[float] = None
    icon: str = Field("🍴", description="Map marker glyph picked from the categories")


class GeocodeCandidate(BaseModel):
    name: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    properties: Dict[str, Any] = {}


class ReverseGeocodeResponse(BaseModel):
    address: Optional[str] = None
