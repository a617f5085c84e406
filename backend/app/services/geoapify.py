"""
Thin async HTTP wrapper around the Geoapify REST APIs.

One ``httpx.AsyncClient`` per call, no retries.  Every failure surfaces as
``UpstreamError``; the status code is kept when the upstream answered.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class GeoapifyClient:
    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = settings.GEOAPIFY_BASE_URL.rstrip("/")
        self.timeout = settings.UPSTREAM_TIMEOUT
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    async def get_json(self, path: str, params: Dict[str, Any], api_key: str) -> Any:
        url = f"{self.base_url}{path}"
        query = {**params, "apiKey": api_key}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.get(url, params=query)
            except httpx.HTTPError as e:
                logger.warning("Geoapify %s unreachable: %s", path, type(e).__name__)
                raise UpstreamError(f"{path} request failed") from e

        if not resp.is_success:
            logger.error("Geoapify %s failed with status %s: %s", path, resp.status_code, resp.text[:200])
            raise UpstreamError(f"{path} failed. Status: {resp.status_code}", status=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("Geoapify %s returned a non-JSON body", path)
            raise UpstreamError(f"{path} returned malformed JSON", status=resp.status_code) from e
