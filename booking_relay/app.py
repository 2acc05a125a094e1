"""FastAPI application: HTTP endpoints relaying bookings to Cal.com.

Endpoints:

  GET  /health                      Health check
  GET  /bookings, /api/bookings     Upcoming bookings across all equipment
  GET  /api/bookings/{uid}          Single booking (?equipmentType=)
  POST /reschedule, /api/reschedule Reschedule a booking
  POST /cancel, /api/cancel         Cancel a booking
  POST /webhook/calcom              Cal.com webhook receiver
  GET  /webhook/bookings            Bookings cached from webhooks

The relay flow:
  1. Body is validated; every violated rule is returned with a 400
  2. equipmentType selects the Cal.com API key
  3. The call is forwarded upstream and the outcome normalized
"""

from __future__ import annotations

# Load .env into os.environ before settings are read.
from dotenv import load_dotenv
load_dotenv()

import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_relay.booking_cache import BookingCache
from booking_relay.config import Settings, settings
from booking_relay.credentials import EquipmentCredentials
from booking_relay.dependencies import (
    get_booking_cache,
    get_relay,
    require_configured_credentials,
)
from booking_relay.envelope import (
    error_envelope,
    success_envelope,
    utc_timestamp,
    validation_failure,
)
from booking_relay.providers.calcom import CalcomProvider
from booking_relay.relay import BookingRelay, RelayResult
from booking_relay.validation import validate_cancel_request, validate_reschedule_request
from booking_relay.webhooks import ingest

LOG_FORMAT = "%(asctime)s %(name)-20s %(levelname)-7s %(message)s"

# Configure root logger early so every booking_relay logger has a handler
# when run via `uvicorn booking_relay.app:app`.
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=LOG_FORMAT,
)

log = logging.getLogger("booking_relay.app")

SERVICE_NAME = "Cal.com Integration API"
VERSION = "1.0.0"


def create_app(
    app_settings: Optional[Settings] = None,
    relay: Optional[BookingRelay] = None,
    booking_cache: Optional[BookingCache] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``relay`` and ``booking_cache`` default to instances built from
    ``app_settings``; tests pass their own.
    """
    app_settings = app_settings or settings

    for warning in app_settings.validate_startup():
        log.warning(warning)

    if relay is None:
        provider = CalcomProvider(
            base_url=app_settings.calcom_base_url,
            timeout=app_settings.calcom_timeout_seconds,
        )
        relay = BookingRelay(provider, EquipmentCredentials.from_settings(app_settings))

    app = FastAPI(
        title=SERVICE_NAME,
        description="Validates booking requests and relays them to Cal.com",
        version=VERSION,
    )
    app.state.relay = relay
    app.state.booking_cache = booking_cache if booking_cache is not None else BookingCache()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    # ── Request logging ────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        log.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    # ── Error handlers ─────────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            path = request.url.path
            if request.url.query:
                path = f"{path}?{request.url.query}"
            return JSONResponse(
                error_envelope("Endpoint not found", path=path, method=request.method),
                status_code=404,
            )
        return JSONResponse(
            error_envelope(str(exc.detail), timestamp=utc_timestamp()),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            error_envelope("Internal server error", timestamp=utc_timestamp()),
            status_code=500,
        )

    # ── Service info ───────────────────────────────────────────

    @app.get("/")
    async def root() -> JSONResponse:
        return JSONResponse({
            "message": "Cal.com Integration API Server",
            "version": VERSION,
            "endpoints": {
                "health": "GET /health",
                "bookings": "GET /bookings",
                "booking": "GET /api/bookings/{uid}",
                "reschedule": "POST /reschedule",
                "cancel": "POST /cancel",
                "webhook": "POST /webhook/calcom",
            },
            "supportedEquipment": app.state.relay.equipment_types,
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({
            "status": "OK",
            "timestamp": utc_timestamp(),
            "service": SERVICE_NAME,
        })

    # ── Bookings ───────────────────────────────────────────────

    @app.get("/bookings")
    @app.get("/api/bookings")
    async def upcoming_bookings(relay: BookingRelay = Depends(get_relay)) -> JSONResponse:
        """Upcoming bookings across every configured equipment type."""
        try:
            bookings = await relay.get_upcoming_bookings()
        except Exception:
            log.exception("Failed to fetch upcoming bookings")
            return JSONResponse(
                error_envelope("Failed to fetch upcoming bookings", timestamp=utc_timestamp()),
                status_code=500,
            )
        return JSONResponse(success_envelope({
            "bookings": [b.to_json() for b in bookings],
            "totalCount": len(bookings),
            "equipmentTypes": relay.equipment_types,
        }))

    @app.get("/api/bookings/{booking_uid}", dependencies=[Depends(require_configured_credentials)])
    async def booking_detail(
        booking_uid: str,
        equipment_type: Optional[str] = Query(default=None, alias="equipmentType"),
        relay: BookingRelay = Depends(get_relay),
    ) -> JSONResponse:
        result = await relay.get_booking(booking_uid, equipment_type)
        return _relay_response(result, "Booking fetched successfully")

    @app.post("/reschedule", dependencies=[Depends(require_configured_credentials)])
    @app.post("/api/reschedule", dependencies=[Depends(require_configured_credentials)])
    async def reschedule(request: Request, relay: BookingRelay = Depends(get_relay)) -> JSONResponse:
        body = await _read_json(request)
        errors = validate_reschedule_request(body)
        if errors:
            log.warning("Reschedule request validation failed: %s", errors)
            return JSONResponse(validation_failure(errors), status_code=400)

        try:
            result = await relay.reschedule_booking(
                booking_uid=body["bookingUid"],
                start_time=body["startTime"],
                end_time=body["endTime"],
                rescheduled_by=body["rescheduledBy"],
                reason=body["reschedulingReason"],
                equipment_type=body.get("equipmentType"),
            )
        except Exception:
            log.exception("Unexpected error in reschedule endpoint")
            return JSONResponse(
                error_envelope(
                    "Internal server error while processing reschedule request",
                    timestamp=utc_timestamp(),
                ),
                status_code=500,
            )
        return _relay_response(result, "Booking rescheduled successfully")

    @app.post("/cancel", dependencies=[Depends(require_configured_credentials)])
    @app.post("/api/cancel", dependencies=[Depends(require_configured_credentials)])
    async def cancel(request: Request, relay: BookingRelay = Depends(get_relay)) -> JSONResponse:
        body = await _read_json(request)
        errors = validate_cancel_request(body)
        if errors:
            log.warning("Cancel request validation failed: %s", errors)
            return JSONResponse(validation_failure(errors), status_code=400)

        try:
            result = await relay.cancel_booking(
                booking_uid=body["bookingUid"],
                reason=body["cancellationReason"],
                equipment_type=body.get("equipmentType"),
            )
        except Exception:
            log.exception("Unexpected error in cancel endpoint")
            return JSONResponse(
                error_envelope(
                    "Internal server error while processing cancellation request",
                    timestamp=utc_timestamp(),
                ),
                status_code=500,
            )
        return _relay_response(result, "Booking cancelled successfully")

    # ── Cal.com webhooks ───────────────────────────────────────

    @app.post("/webhook/calcom")
    async def calcom_webhook(
        request: Request, cache: BookingCache = Depends(get_booking_cache)
    ) -> JSONResponse:
        """Apply a Cal.com booking event to the cache.

        Always acknowledges, including events for unknown bookings; only an
        internal failure (e.g. an undecodable body) yields a 500.
        """
        try:
            body = await request.json()
            ingest(cache, body)
        except Exception as e:
            log.error("Webhook error: %s", e)
            return JSONResponse(
                error_envelope("Internal server error", timestamp=utc_timestamp()),
                status_code=500,
            )
        return JSONResponse({"received": True})

    @app.get("/webhook/bookings")
    async def cached_bookings(cache: BookingCache = Depends(get_booking_cache)) -> JSONResponse:
        records = cache.list()
        return JSONResponse(success_envelope({
            "bookings": [r.to_json() for r in records],
            "totalCount": len(records),
        }))

    return app


# ── Helper functions ──────────────────────────────────────────────

async def _read_json(request: Request) -> Any:
    """Decoded JSON body, or None when the body is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


def _mirrored_status(status: int) -> int:
    # A 204 reply cannot carry the JSON envelope.
    return 200 if status == 204 else status


def _relay_response(result: RelayResult, message: str) -> JSONResponse:
    if result.success:
        return JSONResponse(
            success_envelope(result.data, message),
            status_code=_mirrored_status(result.status or 200),
        )
    return JSONResponse(result.error_body(), status_code=result.status or 400)


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = LOG_FORMAT

    uvicorn.run(
        "booking_relay.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
