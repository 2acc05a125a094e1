"""Tests for the reschedule and cancel request validators."""

from datetime import datetime, timedelta, timezone

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from booking_relay.validation import (
    is_valid_datetime,
    parse_datetime,
    validate_cancel_request,
    validate_reschedule_request,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _reschedule_body(**overrides):
    body = {
        "bookingUid": "abc123",
        "startTime": "2026-03-20T10:00:00Z",
        "endTime": "2026-03-20T11:00:00Z",
        "rescheduledBy": "ops@example.com",
        "reschedulingReason": "Room conflict",
    }
    body.update(overrides)
    return body


# ── Date parsing ────────────────────────────────────────────────────


class TestParseDatetime:
    def test_zulu_suffix(self):
        dt = parse_datetime("2026-03-20T10:00:00Z")
        assert dt == datetime(2026, 3, 20, 10, 0, tzinfo=timezone.utc)

    def test_offset(self):
        dt = parse_datetime("2026-03-20T10:00:00+02:00")
        assert dt == datetime(2026, 3, 20, 8, 0, tzinfo=timezone.utc)

    def test_fractional_seconds_zulu(self):
        dt = parse_datetime("2026-03-20T10:00:00.5Z")
        assert dt == datetime(2026, 3, 20, 10, 0, 0, 500000, tzinfo=timezone.utc)

    def test_millisecond_precision(self):
        dt = parse_datetime("2026-03-20T10:00:00.123Z")
        assert dt == datetime(2026, 3, 20, 10, 0, 0, 123000, tzinfo=timezone.utc)

    def test_offset_without_colon(self):
        dt = parse_datetime("2026-03-20T10:00:00+0200")
        assert dt == datetime(2026, 3, 20, 8, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        dt = parse_datetime("2026-03-20T10:00:00")
        assert dt.tzinfo == timezone.utc

    def test_date_only_rejected(self):
        assert parse_datetime("2026-03-20") is None

    def test_garbage_rejected(self):
        assert not is_valid_datetime("next Tuesday at ten")
        assert not is_valid_datetime("2026-13-45T99:00:00")

    def test_non_string_rejected(self):
        assert not is_valid_datetime(1742464800)
        assert not is_valid_datetime(None)


# ── Reschedule ──────────────────────────────────────────────────────


class TestValidateReschedule:
    def test_valid_request(self):
        assert validate_reschedule_request(_reschedule_body(), now=NOW) == []

    def test_valid_with_equipment_type(self):
        body = _reschedule_body(equipmentType="projector")
        assert validate_reschedule_request(body, now=NOW) == []

    def test_reports_every_missing_field(self):
        errors = validate_reschedule_request({}, now=NOW)
        assert errors == [
            "bookingUid is required and must be a string",
            "startTime is required and must be a string",
            "endTime is required and must be a string",
            "rescheduledBy is required and must be a string",
            "reschedulingReason is required and must be a string",
        ]

    def test_non_string_field(self):
        errors = validate_reschedule_request(_reschedule_body(bookingUid=42), now=NOW)
        assert errors == ["bookingUid is required and must be a string"]

    def test_empty_string_field(self):
        errors = validate_reschedule_request(_reschedule_body(rescheduledBy=""), now=NOW)
        assert errors == ["rescheduledBy is required and must be a string"]

    def test_non_dict_body(self):
        errors = validate_reschedule_request(["not", "an", "object"], now=NOW)
        assert len(errors) == 5

    def test_invalid_dates(self):
        body = _reschedule_body(startTime="2026-03-20", endTime="tomorrow")
        errors = validate_reschedule_request(body, now=NOW)
        assert "startTime must be a valid ISO 8601 date string" in errors
        assert "endTime must be a valid ISO 8601 date string" in errors

    def test_start_after_end(self):
        body = _reschedule_body(
            startTime="2026-03-20T12:00:00Z", endTime="2026-03-20T11:00:00Z"
        )
        assert validate_reschedule_request(body, now=NOW) == [
            "startTime must be before endTime"
        ]

    def test_mixed_iso_forms_compared(self):
        body = _reschedule_body(
            startTime="2026-03-20T10:00:00.5Z", endTime="2026-03-20T11:30:00+0200"
        )
        assert validate_reschedule_request(body, now=NOW) == [
            "startTime must be before endTime"
        ]

    def test_start_equal_end(self):
        body = _reschedule_body(
            startTime="2026-03-20T11:00:00Z", endTime="2026-03-20T11:00:00Z"
        )
        assert "startTime must be before endTime" in validate_reschedule_request(body, now=NOW)

    def test_start_in_past(self):
        body = _reschedule_body(
            startTime="2026-03-14T10:00:00Z", endTime="2026-03-14T11:00:00Z"
        )
        assert validate_reschedule_request(body, now=NOW) == [
            "startTime cannot be in the past"
        ]

    def test_start_exactly_now_allowed(self):
        body = _reschedule_body(
            startTime=NOW.isoformat(),
            endTime=(NOW + timedelta(hours=1)).isoformat(),
        )
        assert validate_reschedule_request(body, now=NOW) == []

    def test_past_and_inverted_both_reported(self):
        body = _reschedule_body(
            startTime="2026-03-14T12:00:00Z", endTime="2026-03-14T11:00:00Z"
        )
        errors = validate_reschedule_request(body, now=NOW)
        assert errors == [
            "startTime must be before endTime",
            "startTime cannot be in the past",
        ]

    def test_equipment_type_must_be_string(self):
        errors = validate_reschedule_request(_reschedule_body(equipmentType=7), now=NOW)
        assert errors == ["equipmentType must be a string"]

    def test_defaults_to_current_time(self):
        start = datetime.now(timezone.utc) + timedelta(days=1)
        body = _reschedule_body(
            startTime=start.isoformat(),
            endTime=(start + timedelta(hours=1)).isoformat(),
        )
        assert validate_reschedule_request(body) == []


# ── Cancel ──────────────────────────────────────────────────────────


class TestValidateCancel:
    def test_valid_request(self):
        body = {"bookingUid": "abc123", "cancellationReason": "No longer needed"}
        assert validate_cancel_request(body) == []

    def test_missing_fields(self):
        assert validate_cancel_request({}) == [
            "bookingUid is required and must be a string",
            "cancellationReason is required and must be a string",
        ]

    def test_reason_too_short(self):
        body = {"bookingUid": "abc123", "cancellationReason": "no"}
        assert validate_cancel_request(body) == [
            "cancellationReason must be at least 3 characters long"
        ]

    def test_equipment_type_must_be_string(self):
        body = {"bookingUid": "abc", "cancellationReason": "done", "equipmentType": ["x"]}
        assert validate_cancel_request(body) == ["equipmentType must be a string"]
