"""Cal.com webhook parsing and application to the booking cache.

Cal.com posts ``{"triggerEvent": ..., "createdAt": ..., "payload": {...}}``.
Some senders flatten the booking onto the top level instead (including
``attendees.0.name`` style keys), so both shapes are read.

Event handling:

  BOOKING_CREATED      → cache record with status Created (replaces same uid)
  BOOKING_CANCELLED    → status Cancelled, if the uid is cached
  BOOKING_RESCHEDULED  → status Rescheduled (and new times), if cached
  anything else        → ignored

Events for uids that were never cached are dropped without error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from booking_relay.booking_cache import BookingCache
from booking_relay.models import BookingRecord, BookingStatus

log = logging.getLogger("booking_relay.webhooks")

BOOKING_CREATED = "BOOKING_CREATED"
BOOKING_CANCELLED = "BOOKING_CANCELLED"
BOOKING_RESCHEDULED = "BOOKING_RESCHEDULED"

_STATUS_EVENTS = {
    BOOKING_CANCELLED: BookingStatus.CANCELLED,
    BOOKING_RESCHEDULED: BookingStatus.RESCHEDULED,
}


@dataclass
class WebhookEvent:
    """Normalized webhook event."""

    trigger_event: str
    uid: Optional[str]
    booking: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None


def parse_event(body: Any) -> WebhookEvent:
    """Normalize a webhook body.  Non-dict bodies yield an empty event."""
    if not isinstance(body, dict):
        return WebhookEvent(trigger_event="", uid=None)

    nested = body.get("payload")
    booking = nested if isinstance(nested, dict) else body
    uid = booking.get("uid")

    return WebhookEvent(
        trigger_event=str(body.get("triggerEvent") or ""),
        uid=str(uid) if uid else None,
        booking=booking,
        created_at=_text(body.get("createdAt") or booking.get("createdAt")),
    )


def _text(value: Any) -> Optional[str]:
    """Webhook fields are stored as text whatever JSON type they arrive as."""
    return None if value is None else str(value)


def _attendee(booking: dict) -> tuple[Optional[str], Optional[str]]:
    attendees = booking.get("attendees")
    if isinstance(attendees, list) and attendees and isinstance(attendees[0], dict):
        first = attendees[0]
        return _text(first.get("name")), _text(first.get("email"))
    return _text(booking.get("attendees.0.name")), _text(booking.get("attendees.0.email"))


def _equipment_type(booking: dict) -> Optional[str]:
    value = booking.get("equipmentType")
    if not value:
        responses = booking.get("responses")
        if isinstance(responses, dict):
            value = responses.get("equipmentType")
    if isinstance(value, dict):
        value = value.get("value")
    return str(value).upper() if value else None


def apply_event(cache: BookingCache, event: WebhookEvent) -> str:
    """Apply one event to the cache.

    Returns what happened: ``"created"``, ``"updated"``, ``"dropped"``
    (status event for an unknown uid) or ``"ignored"``.
    """
    if event.trigger_event == BOOKING_CREATED:
        if not event.uid:
            log.warning("BOOKING_CREATED without uid ignored")
            return "ignored"
        name, email = _attendee(event.booking)
        cache.put(
            BookingRecord(
                uid=event.uid,
                title=_text(event.booking.get("title")),
                start_time=_text(event.booking.get("startTime")),
                end_time=_text(event.booking.get("endTime")),
                created_at=event.created_at,
                attendee_name=name,
                attendee_email=email,
                equipment_type=_equipment_type(event.booking),
                status=BookingStatus.CREATED,
            )
        )
        return "created"

    status = _STATUS_EVENTS.get(event.trigger_event)
    if status is None:
        log.info("Webhook event %r ignored", event.trigger_event)
        return "ignored"

    if not event.uid:
        return "dropped"

    start_time = end_time = None
    if status is BookingStatus.RESCHEDULED:
        start_time = _text(event.booking.get("startTime"))
        end_time = _text(event.booking.get("endTime"))

    updated = cache.update_status(event.uid, status, start_time, end_time)
    if updated is None:
        log.info("%s for unknown booking %s dropped", event.trigger_event, event.uid)
        return "dropped"
    return "updated"


def ingest(cache: BookingCache, body: Any) -> str:
    """Parse a raw webhook body and apply it to ``cache``."""
    event = parse_event(body)
    log.info("Webhook received: %s (uid=%s)", event.trigger_event or "<none>", event.uid)
    return apply_event(cache, event)
