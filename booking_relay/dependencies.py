"""FastAPI dependencies for the relay endpoints.

Services are created once by ``create_app`` and kept on ``app.state``;
these dependencies hand them to route handlers so tests can inject fakes.

Guard:
  require_configured_credentials()  -> 500 when no equipment key is set
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from booking_relay.booking_cache import BookingCache
from booking_relay.relay import BookingRelay

log = logging.getLogger("booking_relay.dependencies")


def get_relay(request: Request) -> BookingRelay:
    return request.app.state.relay


def get_booking_cache(request: Request) -> BookingCache:
    return request.app.state.booking_cache


async def require_configured_credentials(
    relay: BookingRelay = Depends(get_relay),
) -> None:
    """Refuse relay calls outright when the server has no Cal.com key at all."""
    if not relay.equipment_types:
        log.error("No CAL_API_KEY_* environment variable is configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error: API key not configured",
        )
