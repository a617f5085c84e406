from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from app.dependencies import get_hazard_service
from app.schemas.hazard import HazardReport, HazardReportCompat
from app.services.hazard_service import HazardService

router = APIRouter()


@router.post("/hazards", status_code=201, response_model=HazardReport, response_model_exclude_none=True)
def create_hazard(
    payload: Any = Body(None),
    service: HazardService = Depends(get_hazard_service),
):
    """
    Report a hazard at a point.
    Body: {lat, lon, type, description?, userId?}. 400 with per-field details on bad input.
    """
    return service.create_hazard(payload)


@router.get("/hazards", response_model=List[HazardReport], response_model_exclude_none=True)
def list_hazards(
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    radius: Optional[str] = Query(None, description="Half-width of the search box in meters (default 3000)"),
    service: HazardService = Depends(get_hazard_service),
):
    """
    Hazards inside the box around (lat, lon), newest first, at most 500.
    """
    return service.list_hazards_near(lat, lon, radius)


# Alternate deployment paths: same semantics, description always a string

@router.post("/addHazards", status_code=201, response_model=HazardReportCompat)
def add_hazard(
    payload: Any = Body(None),
    service: HazardService = Depends(get_hazard_service),
):
    report = service.create_hazard(payload)
    return HazardReportCompat.model_validate(report.model_dump(by_alias=True))


@router.get("/getHazards", response_model=List[HazardReportCompat])
def get_hazards(
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    service: HazardService = Depends(get_hazard_service),
):
    return [
        HazardReportCompat.model_validate(h.model_dump(by_alias=True))
        for h in service.list_hazards_near(lat, lon, radius)
    ]
