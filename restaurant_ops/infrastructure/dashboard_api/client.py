"""
Dashboard backend client.
Implements the read/save collaborators of the weekly entry workflow over HTTP.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import httpx

from restaurant_ops.config import settings
from restaurant_ops.domain.errors import RemoteFetchError, SubmissionError

logger = logging.getLogger(__name__)


def _error_text(response: httpx.Response) -> str:
    """Server error message as-is: `detail`, `message` or `error`, else the body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        for key in ("detail", "message", "error"):
            if body.get(key):
                return str(body[key])
    return response.text or f"HTTP {response.status_code}"


class DashboardApiClient:
    def __init__(
        self,
        api_base_url: Optional[str] = None,
        token: Optional[str] = None,
        restaurant_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base_url = (api_base_url or settings.DASHBOARD_API_BASE_URL).rstrip("/")
        self.token = (token if token is not None else settings.DASHBOARD_API_TOKEN or "").strip() or None
        self.restaurant_id = restaurant_id if restaurant_id is not None else settings.RESTAURANT_ID
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params = {key: value for key, value in extra.items() if value is not None}
        if self.restaurant_id:
            params["restaurant_id"] = self.restaurant_id
        return params

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers=self._headers(),
        )

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.debug("Dashboard API GET %s failed: %s", path, exc)
            raise RemoteFetchError(f"Request to {path} failed: {exc}") from exc

        if response.status_code != 200:
            logger.debug("Dashboard API %s %s: %s", path, response.status_code, response.text)
            raise RemoteFetchError(_error_text(response))
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteFetchError(f"Invalid JSON from {path}") from exc

    # ------------------------------------------------------------------
    # READS
    # ------------------------------------------------------------------

    async def fetch_category_summary(self, start_date: date, end_date: date) -> Dict[str, Any]:
        payload = await self._get_json(
            settings.CATEGORY_SUMMARY_PATH,
            params=self._params(start_date=start_date.isoformat(), end_date=end_date.isoformat()),
        )
        return payload if isinstance(payload, dict) else {"categories": [], "data": payload}

    async def fetch_dashboard_summary(
        self,
        start_date: date,
        end_date: date,
        group_by: str = "daily",
    ) -> Dict[str, Any]:
        payload = await self._get_json(
            settings.DASHBOARD_SUMMARY_PATH,
            params=self._params(
                group_by=group_by,
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
            ),
        )
        if not isinstance(payload, dict):
            raise RemoteFetchError("Unexpected dashboard summary shape")
        return payload

    async def get_restaurant_goals(self) -> Dict[str, Any]:
        payload = await self._get_json(settings.RESTAURANT_GOALS_PATH, params=self._params())
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise RemoteFetchError("Unexpected restaurant goals shape")
        return payload

    async def get_provider_config(self) -> List[Dict[str, Any]]:
        payload = await self._get_json(settings.PROVIDER_CONFIG_PATH, params=self._params())
        if isinstance(payload, dict):
            data = payload.get("data")
            nested = data.get("providers") if isinstance(data, dict) else None
            payload = payload.get("providers", nested)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RemoteFetchError("Unexpected provider config shape")
        return payload

    # ------------------------------------------------------------------
    # SAVE
    # ------------------------------------------------------------------

    async def save_weekly_data(self, payload: Dict[str, Any]) -> Any:
        body = dict(payload)
        if self.restaurant_id:
            body["restaurant_id"] = self.restaurant_id
        try:
            async with self._client() as client:
                response = await client.post(settings.DASHBOARD_SAVE_PATH, json=body)
        except httpx.HTTPError as exc:
            logger.error("Dashboard save request failed: %s", exc)
            raise SubmissionError(f"Failed to save sales data: {exc}") from exc

        if response.status_code not in (200, 201):
            message = _error_text(response)
            logger.error("Dashboard save rejected (%s): %s", response.status_code, message)
            raise SubmissionError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError:
            return {"status": "success"}
