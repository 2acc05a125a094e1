"""Cal.com booking provider.

Talks to the Cal.com REST API with httpx.  A fresh ``AsyncClient`` is
opened per call because the bearer token differs per equipment account.
Non-2xx replies raise ``httpx.HTTPStatusError``; network failures raise
``httpx.TransportError``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .base import BookingProvider, UpstreamResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.cal.com/v1"


class CalcomProvider(BookingProvider):
    """BookingProvider backed by the Cal.com API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self, api_key: str) -> httpx.AsyncClient:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    async def _send(
        self, api_key: str, method: str, path: str, payload: Optional[dict] = None
    ) -> UpstreamResponse:
        async with self._client(api_key) as client:
            resp = await client.request(method, path, json=payload)
            resp.raise_for_status()
            return UpstreamResponse(status=resp.status_code, data=_body(resp))

    # ------------------------------------------------------------------
    # BookingProvider interface
    # ------------------------------------------------------------------

    async def reschedule_booking(self, api_key: str, payload: dict) -> UpstreamResponse:
        return await self._send(api_key, "POST", "/bookings/reschedule", payload)

    async def cancel_booking(self, api_key: str, payload: dict) -> UpstreamResponse:
        return await self._send(api_key, "POST", "/bookings/cancel", payload)

    async def get_booking(self, api_key: str, booking_uid: str) -> UpstreamResponse:
        return await self._send(api_key, "GET", f"/bookings/{booking_uid}")

    async def list_bookings(self, api_key: str) -> list[dict]:
        """List the account's bookings (v1 answers ``{"bookings": [...]}``)."""
        result = await self._send(api_key, "GET", "/bookings")
        data = result.data
        if isinstance(data, dict):
            data = data.get("bookings")
        if not isinstance(data, list):
            return []
        return [b for b in data if isinstance(b, dict)]


def _body(resp: httpx.Response) -> Any:
    """Decoded JSON body, the raw text when it is not JSON, None when empty."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


async def _log_request(request: httpx.Request) -> None:
    logger.info("Cal.com API request: %s %s", request.method, request.url)


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    if response.is_success:
        logger.info(
            "Cal.com API response: %s %s -> %d",
            request.method, request.url, response.status_code,
        )
    else:
        await response.aread()
        logger.error(
            "Cal.com API error response: %s %s -> %d %s",
            request.method, request.url, response.status_code, response.text[:500],
        )
