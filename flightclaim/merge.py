"""
Deduplication of flight records across one or many emails.

The same flight shows up in the confirmation, the check-in reminder and the
boarding pass. Records are keyed by flight number and date, and the best
scoring record for each key is kept.
"""

import logging

from .config import DEFAULT_ACCEPTANCE_THRESHOLD
from .models import is_placeholder

logger = logging.getLogger(__name__)


def dedup_key(record):
    """Identify a flight: "U2 3847|2026-03-10", or "U2 3847" without a date."""
    if is_placeholder(record.departure_date):
        return record.flight_number
    return f"{record.flight_number}|{record.departure_date}"


def _route_missing(record):
    return is_placeholder(record.origin) or is_placeholder(record.destination)


def _fills_placeholder(new, old):
    """Check if new has real data where old only has a placeholder."""
    if is_placeholder(old.booking_ref) and not is_placeholder(new.booking_ref):
        return True
    if _route_missing(old) and not _route_missing(new):
        return True
    if is_placeholder(old.departure_date) and not is_placeholder(new.departure_date):
        return True
    return False


class FlightRecordMap:
    """Best record per flight, in insertion order.

    Not thread-safe; the batch driver adds records from one thread.
    """

    def __init__(self, threshold=DEFAULT_ACCEPTANCE_THRESHOLD):
        self.threshold = threshold
        self._records = {}

    def add(self, record):
        """Offer a record to the map.

        Returns:
            True if the record was inserted or replaced an existing one
        """
        if record.confidence < self.threshold:
            logger.debug(f"Dropping {record.flight_number}: confidence "
                         f"{record.confidence} below {self.threshold}")
            return False

        key = dedup_key(record)
        existing = self._records.get(key)
        if existing is None:
            self._records[key] = record
            return True

        if record.confidence > existing.confidence or (
                record.confidence == existing.confidence and _fills_placeholder(record, existing)):
            logger.debug(f"Replacing {key}: {existing.confidence} -> {record.confidence}")
            self._records[key] = record
            return True

        return False

    def extend(self, records):
        for record in records:
            self.add(record)

    def records(self):
        """All kept records, highest confidence first."""
        # sorted() is stable, so equal scores keep insertion order
        return sorted(self._records.values(), key=lambda r: -r.confidence)

    def __len__(self):
        return len(self._records)

    def __contains__(self, key):
        return key in self._records
