"""Pydantic models for cached and upcoming bookings.

Fields are snake_case in Python and camelCase on the wire, matching the
JSON Cal.com sends and the clients of this service expect.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BookingStatus(str, Enum):
    CREATED = "Created"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BookingRecord(_CamelModel):
    """A booking as last reported by a Cal.com webhook."""

    uid: str
    title: Optional[str] = None
    start_time: Optional[str] = None  # ISO 8601
    end_time: Optional[str] = None  # ISO 8601
    created_at: Optional[str] = None
    attendee_name: Optional[str] = None
    attendee_email: Optional[str] = None
    equipment_type: Optional[str] = None
    status: BookingStatus = BookingStatus.CREATED


class UpcomingBooking(_CamelModel):
    """One row of the aggregated upcoming-bookings listing."""

    uid: Optional[str] = None
    equipment_type: str
    start_time: str
    end_time: Optional[str] = None
    attendee_email: str = "No email"
    title: str = "Equipment Booking"
    status: Optional[str] = None
