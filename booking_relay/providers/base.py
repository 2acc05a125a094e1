"""Abstract base class for upstream booking providers.

Defines the calls the relay forwards.  Implementations raise on failure
(HTTP error status, transport failure) instead of returning error values;
the relay turns those exceptions into the response envelope.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class UpstreamResponse:
    """A successful (2xx) upstream reply."""

    status: int
    data: Any = None


class BookingProvider(ABC):
    """Abstract booking backend.

    Every call takes the API key of the equipment account it targets, so a
    single provider instance serves all equipment types.
    """

    @abstractmethod
    async def reschedule_booking(self, api_key: str, payload: dict) -> UpstreamResponse:
        """Move a booking to a new time.

        Args:
            api_key: Credential of the equipment account owning the booking.
            payload: ``bookingUid``, ``startTime``, ``endTime``,
                ``rescheduledBy`` and ``reschedulingReason``.
        """

    @abstractmethod
    async def cancel_booking(self, api_key: str, payload: dict) -> UpstreamResponse:
        """Cancel a booking (``bookingUid``, ``cancellationReason``)."""

    @abstractmethod
    async def get_booking(self, api_key: str, booking_uid: str) -> UpstreamResponse:
        """Fetch a single booking."""

    @abstractmethod
    async def list_bookings(self, api_key: str) -> list[dict]:
        """Return every booking of the account as raw dicts."""
