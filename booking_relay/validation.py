"""Request validators for the relay endpoints.

Each validator is a pure function over the decoded JSON body and returns
every violated rule, in a stable order, so callers can report them all at
once. An empty list means the request is valid.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

_RESCHEDULE_REQUIRED = (
    "bookingUid",
    "startTime",
    "endTime",
    "rescheduledBy",
    "reschedulingReason",
)

_CANCEL_REQUIRED = ("bookingUid", "cancellationReason")

MIN_CANCELLATION_REASON_LENGTH = 3


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 date-time string into an aware datetime.

    Date-only strings are rejected; a time component (``T``) is required.
    Naive values are taken as UTC. Returns None when unparseable.
    """
    if not isinstance(value, str) or "T" not in value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_valid_datetime(value: Any) -> bool:
    return parse_datetime(value) is not None


def _as_body(body: Any) -> dict:
    return body if isinstance(body, dict) else {}


def _required_strings(body: dict, fields: tuple[str, ...]) -> list[str]:
    errors = []
    for name in fields:
        value = body.get(name)
        if not value or not isinstance(value, str):
            errors.append(f"{name} is required and must be a string")
    return errors


def _optional_equipment_type(body: dict) -> list[str]:
    value = body.get("equipmentType")
    if value is not None and not isinstance(value, str):
        return ["equipmentType must be a string"]
    return []


def validate_reschedule_request(body: Any, now: Optional[datetime] = None) -> list[str]:
    """Validate a reschedule body: required fields plus time-range sanity."""
    body = _as_body(body)
    errors = _required_strings(body, _RESCHEDULE_REQUIRED)
    errors += _optional_equipment_type(body)

    start_raw = body.get("startTime")
    end_raw = body.get("endTime")
    start = parse_datetime(start_raw)
    end = parse_datetime(end_raw)

    if start_raw and start is None:
        errors.append("startTime must be a valid ISO 8601 date string")
    if end_raw and end is None:
        errors.append("endTime must be a valid ISO 8601 date string")

    if start is not None and end is not None:
        if start >= end:
            errors.append("startTime must be before endTime")
        if start < (now or datetime.now(timezone.utc)):
            errors.append("startTime cannot be in the past")

    return errors


def validate_cancel_request(body: Any) -> list[str]:
    """Validate a cancel body."""
    body = _as_body(body)
    errors = _required_strings(body, _CANCEL_REQUIRED)
    errors += _optional_equipment_type(body)

    reason = body.get("cancellationReason")
    if isinstance(reason, str) and reason and len(reason) < MIN_CANCELLATION_REASON_LENGTH:
        errors.append(
            f"cancellationReason must be at least {MIN_CANCELLATION_REASON_LENGTH} characters long"
        )

    return errors
