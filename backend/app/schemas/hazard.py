from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional
from datetime import datetime


class HazardCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lat: float = Field(..., strict=True)
    lon: float = Field(..., strict=True)
    type: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=500)
    user_id: Optional[str] = Field(None, alias="userId")

    @field_validator("lat")
    @classmethod
    def check_lat(cls, v: float) -> float:
        if not abs(v) <= 90:
            raise ValueError("invalid latitude")
        return v

    @field_validator("lon")
    @classmethod
    def check_lon(cls, v: float) -> float:
        if not abs(v) <= 180:
            raise ValueError("invalid longitude")
        return v

    # Optional means the key may be absent, not that it may be null
    @field_validator("description", "user_id", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must be a string")
        return v


class HazardReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    lat: float
    lon: float
    type: str
    description: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    user_id: Optional[str] = Field(None, alias="userId")


class HazardReportCompat(HazardReport):
    """Shape served on /addHazards and /getHazards: description is always a string."""

    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        return v or ""


class HazardView(BaseModel):
    """Client-side view of a hazard as drawn on the map. Returned by HazardApiClient."""

    lat: float
    lon: float
    type: str
    description: str = ""
