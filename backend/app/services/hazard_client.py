"""
HTTP client for a deployed hazard backend.

Client-side library entry point: the server never calls it. Map clients and
scripts import HazardApiClient to reach /getHazards and /addHazards, and get
back HazardView records.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.errors import UpstreamError
from app.schemas.hazard import HazardView

logger = logging.getLogger(__name__)


class HazardApiClient:
    """
    Client for a deployed hazard backend (the /getHazards, /addHazards paths).

    Used by map clients that talk to the backend over HTTP rather than
    importing the hazard service directly.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                resp = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                logger.warning("Hazard backend %s %s unreachable: %s", method, path, e)
                raise UpstreamError(f"{path} request failed") from e

        if not resp.is_success:
            raise UpstreamError(f"{path} failed: {resp.status_code}", status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"{path} returned malformed JSON", status=resp.status_code) from e

    async def fetch_hazards_near(self, lat: float, lon: float, radius: float = 3000) -> List[HazardView]:
        records = await self._request(
            "GET", "/getHazards", params={"lat": lat, "lon": lon, "radius": radius}
        )
        if not isinstance(records, list):
            raise UpstreamError("/getHazards returned a malformed payload")
        try:
            return [
                HazardView(
                    lat=r["lat"],
                    lon=r["lon"],
                    type=r["type"],
                    description=r.get("description") or "",
                )
                for r in records
            ]
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise UpstreamError(f"/getHazards returned an unreadable hazard: {e}") from e

    async def create_hazard(
        self,
        lat: float,
        lon: float,
        type: str,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"lat": lat, "lon": lon, "type": type}
        if description is not None:
            body["description"] = description
        return await self._request("POST", "/addHazards", json=body)
