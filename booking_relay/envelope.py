"""JSON response envelopes shared by every endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and ``Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_envelope(data: Any = None, message: str = "") -> dict:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    body["timestamp"] = utc_timestamp()
    return body


def error_envelope(message: str, **fields: Any) -> dict:
    """``{"success": false, "error": {"message": ..., **fields}}``."""
    return {"success": False, "error": {"message": message, **fields}}


def validation_failure(errors: list[str]) -> dict:
    return error_envelope("Validation failed", details=errors)
