"""Metrics provider backed by the dashboard's fetch functions.

Calls ``fetchGA4Data`` (analytics) or ``fetchGSCData`` (search) over HTTP
and returns the summary aggregates as a flat bag.
"""

import logging
from datetime import date
from typing import Any

import httpx

from config.settings import settings
from kpi_pulse.errors import UpstreamDataError

logger = logging.getLogger(__name__)

_ENDPOINTS = {
    "analytics": "fetchGA4Data",
    "search": "fetchGSCData",
}


class HttpMetricsProvider:
    """MetricsProvider implementation using httpx.

    Args:
        base_url: Base URL of the fetch functions. Defaults to settings.
        token: Bearer token sent with each request. Defaults to settings.
        timeout: Request timeout in seconds.
        client: Optional pre-built AsyncClient (tests, connection reuse).
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.metrics_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.metrics_api_token
        self.timeout = timeout or settings.metrics_api_timeout_seconds
        self._client = client

    async def get_raw_metrics(
        self,
        source: str,
        property_id: str | None,
        start_date: date,
        end_date: date,
    ) -> dict[str, Any]:
        endpoint = _ENDPOINTS.get(source)
        if endpoint is None:
            raise UpstreamDataError(f"No metrics endpoint for source: {source}")
        if not property_id:
            raise UpstreamDataError(f"No property configured for {source} metrics")

        payload = {
            "data": {
                "siteId": property_id,
                "startDate": start_date.isoformat(),
                "endDate": end_date.isoformat(),
            }
        }
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        url = f"{self.base_url}/{endpoint}"

        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.exception("Metrics fetch failed: %s %s", endpoint, property_id)
            raise UpstreamDataError(f"{endpoint} request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamDataError(f"{endpoint} returned invalid JSON") from exc

        return _extract_summary(data, endpoint)


def _extract_summary(data: Any, endpoint: str) -> dict[str, Any]:
    """Pull the summary aggregates out of a callable-function response.

    Accepts ``{"result": {"summary": {...}}}``, ``{"summary": {...}}`` or a
    bare summary dict.
    """
    if not isinstance(data, dict):
        raise UpstreamDataError(f"{endpoint} returned an unexpected payload")
    body = data.get("result", data)
    if not isinstance(body, dict):
        raise UpstreamDataError(f"{endpoint} returned an unexpected payload")
    summary = body.get("summary", body)
    if not isinstance(summary, dict):
        raise UpstreamDataError(f"{endpoint} summary is not an object")
    return summary
