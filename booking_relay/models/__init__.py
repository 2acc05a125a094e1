"""Data models for the booking relay."""

from .booking import BookingRecord, BookingStatus, UpcomingBooking

__all__ = ["BookingRecord", "BookingStatus", "UpcomingBooking"]
