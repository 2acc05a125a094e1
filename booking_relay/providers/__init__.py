"""Upstream scheduling provider abstractions and implementations."""

from .base import BookingProvider, UpstreamResponse

__all__ = ["BookingProvider", "UpstreamResponse"]
