"""In-memory booking cache fed by Cal.com webhooks.

One record per booking uid, insertion-ordered.  Every read and
scan-then-mutate runs under a single lock so concurrent webhook
deliveries cannot interleave.  Contents live for the process lifetime
only.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from booking_relay.models import BookingRecord, BookingStatus

log = logging.getLogger("booking_relay.booking_cache")


class BookingCache:
    """Lock-guarded ``uid -> BookingRecord`` map."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, BookingRecord] = {}

    def put(self, record: BookingRecord) -> None:
        """Insert or replace the record for ``record.uid``."""
        with self._lock:
            replaced = record.uid in self._records
            self._records[record.uid] = record
        log.info(
            "Booking %s cached (status=%s%s)",
            record.uid, record.status.value, ", replaced" if replaced else "",
        )

    def update_status(
        self,
        uid: str,
        status: BookingStatus,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> Optional[BookingRecord]:
        """Set the status of a cached booking, optionally moving its times.

        Returns the updated record, or None when ``uid`` is not cached.
        """
        with self._lock:
            current = self._records.get(uid)
            if current is None:
                return None
            changes: dict = {"status": status}
            if start_time:
                changes["start_time"] = start_time
            if end_time:
                changes["end_time"] = end_time
            updated = current.model_copy(update=changes)
            self._records[uid] = updated
        log.info("Booking %s status -> %s", uid, status.value)
        return updated

    def get(self, uid: str) -> Optional[BookingRecord]:
        with self._lock:
            return self._records.get(uid)

    def list(self) -> list[BookingRecord]:
        with self._lock:
            return list(self._records.values())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
