"""Booking relay service.

Resolves the equipment credential, forwards the call to the upstream
provider and folds every outcome into a ``RelayResult``.  Nothing here
raises to the caller: unknown equipment, upstream HTTP errors, transport
failures and unexpected exceptions each become a distinct result kind.
No call is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from booking_relay.credentials import EquipmentCredentials, UnknownEquipmentTypeError
from booking_relay.envelope import utc_timestamp
from booking_relay.models import UpcomingBooking
from booking_relay.providers.base import BookingProvider, UpstreamResponse
from booking_relay.validation import parse_datetime

log = logging.getLogger("booking_relay.relay")

UPSTREAM_ERROR_MESSAGES: dict[int, str] = {
    400: "Invalid request data provided to Cal.com API",
    401: "Unauthorized: Invalid or expired API key",
    403: "Forbidden: Insufficient permissions for this operation",
    404: "Booking not found or already processed",
    429: "Rate limit exceeded. Please try again later",
    500: "Cal.com API server error. Please try again later",
}

CONNECTIVITY_MESSAGE = (
    "Unable to connect to Cal.com API. Please check your internet connection and try again"
)
CONNECTIVITY_DETAILS = "Network timeout or connection refused"
UNEXPECTED_MESSAGE = "Unexpected error occurred while processing the request"
NO_DETAILS = "No additional details available"


def upstream_error_message(status: int) -> str:
    return UPSTREAM_ERROR_MESSAGES.get(status, f"Cal.com API error: {status}")


class ResultKind(str, Enum):
    OK = "ok"
    UNKNOWN_EQUIPMENT = "unknown_equipment"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    INTERNAL = "internal"


@dataclass
class RelayResult:
    """Outcome of one relayed call."""

    success: bool
    status: int
    kind: ResultKind = ResultKind.OK
    operation: str = ""
    data: Any = None
    error: Optional[dict] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def error_body(self) -> dict:
        """The error envelope returned to clients on failure."""
        return {
            "success": False,
            "operation": self.operation,
            "status": self.status,
            "error": self.error,
            "timestamp": self.timestamp,
        }


def normalize_error(exc: BaseException, operation: str) -> RelayResult:
    """Map an exception from a relay call onto the error envelope."""
    if isinstance(exc, UnknownEquipmentTypeError):
        return RelayResult(
            success=False,
            status=400,
            kind=ResultKind.UNKNOWN_EQUIPMENT,
            operation=operation,
            error={"message": str(exc), "details": {"validTypes": exc.valid_types}},
        )

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        details = _response_details(exc.response)
        return RelayResult(
            success=False,
            status=status,
            kind=ResultKind.UPSTREAM,
            operation=operation,
            error={"message": upstream_error_message(status), "details": details},
        )

    if isinstance(exc, httpx.TransportError):
        return RelayResult(
            success=False,
            status=503,
            kind=ResultKind.TRANSPORT,
            operation=operation,
            error={"message": CONNECTIVITY_MESSAGE, "details": CONNECTIVITY_DETAILS},
        )

    return RelayResult(
        success=False,
        status=500,
        kind=ResultKind.INTERNAL,
        operation=operation,
        error={"message": UNEXPECTED_MESSAGE, "details": str(exc)},
    )


def _response_details(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        body = response.text
    return body or NO_DETAILS


class BookingRelay:
    """Relays booking operations to the upstream provider per equipment type."""

    def __init__(self, provider: BookingProvider, credentials: EquipmentCredentials) -> None:
        self._provider = provider
        self._credentials = credentials

    @property
    def equipment_types(self) -> list[str]:
        return self._credentials.equipment_types

    async def reschedule_booking(
        self,
        booking_uid: str,
        start_time: str,
        end_time: str,
        rescheduled_by: str,
        reason: str,
        equipment_type: Optional[str] = None,
    ) -> RelayResult:
        payload = {
            "bookingUid": booking_uid,
            "startTime": start_time,
            "endTime": end_time,
            "rescheduledBy": rescheduled_by,
            "reschedulingReason": reason,
        }
        log.info(
            "Rescheduling booking %s to %s - %s (equipment=%s)",
            booking_uid, start_time, end_time, equipment_type,
        )
        return await self._call(
            "reschedule", booking_uid, equipment_type,
            lambda key: self._provider.reschedule_booking(key, payload),
        )

    async def cancel_booking(
        self, booking_uid: str, reason: str, equipment_type: Optional[str] = None
    ) -> RelayResult:
        payload = {"bookingUid": booking_uid, "cancellationReason": reason}
        log.info("Cancelling booking %s (equipment=%s)", booking_uid, equipment_type)
        return await self._call(
            "cancel", booking_uid, equipment_type,
            lambda key: self._provider.cancel_booking(key, payload),
        )

    async def get_booking(
        self, booking_uid: str, equipment_type: Optional[str] = None
    ) -> RelayResult:
        log.info("Fetching booking %s (equipment=%s)", booking_uid, equipment_type)
        return await self._call(
            "fetch", booking_uid, equipment_type,
            lambda key: self._provider.get_booking(key, booking_uid),
        )

    async def get_upcoming_bookings(self, now: Optional[datetime] = None) -> list[UpcomingBooking]:
        """Future bookings of every configured equipment, earliest first.

        An equipment type whose fetch fails is logged and skipped, as is
        any single booking record that does not fit ``UpcomingBooking``.
        """
        now = now or datetime.now(timezone.utc)
        upcoming: list[tuple[datetime, UpcomingBooking]] = []

        for equipment_type in self.equipment_types:
            try:
                _, api_key = self._credentials.resolve(equipment_type)
                raw_bookings = await self._provider.list_bookings(api_key)
            except Exception as exc:
                log.error("Failed to fetch bookings for %s: %s", equipment_type, exc)
                continue

            for raw in raw_bookings:
                start = parse_datetime(raw.get("startTime"))
                if start is None or start <= now:
                    continue
                try:
                    booking = _to_upcoming(raw, equipment_type)
                except ValidationError as exc:
                    log.warning(
                        "Skipping malformed %s booking %r: %s",
                        equipment_type, raw.get("uid"), exc.errors(include_url=False),
                    )
                    continue
                upcoming.append((start, booking))

        upcoming.sort(key=lambda item: item[0])
        return [booking for _, booking in upcoming]

    # ------------------------------------------------------------------

    async def _call(self, operation, booking_uid, equipment_type, send) -> RelayResult:
        try:
            _, api_key = self._credentials.resolve(equipment_type)
            response: UpstreamResponse = await send(api_key)
        except Exception as exc:
            result = normalize_error(exc, operation)
            log.error(
                "Failed to %s booking %s: %s (status=%d, kind=%s)",
                operation, booking_uid, exc, result.status, result.kind.value,
            )
            return result

        log.info("Booking %s %s succeeded (status=%d)", booking_uid, operation, response.status)
        return RelayResult(
            success=True,
            status=response.status,
            operation=operation,
            data=response.data,
        )


def _to_upcoming(raw: dict, equipment_type: str) -> UpcomingBooking:
    attendees = raw.get("attendees")
    first = {}
    if isinstance(attendees, list) and attendees and isinstance(attendees[0], dict):
        first = attendees[0]
    return UpcomingBooking(
        uid=raw.get("uid"),
        equipment_type=equipment_type,
        start_time=raw["startTime"],
        end_time=raw.get("endTime"),
        attendee_email=first.get("email") or "No email",
        title=raw.get("title") or "Equipment Booking",
        status=raw.get("status"),
    )
