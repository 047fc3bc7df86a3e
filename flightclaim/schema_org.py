"""
Schema.org JSON-LD extraction (most reliable source).

Airlines that embed a FlightReservation block hand us the flight as data;
anything found here is taken at face value with confidence 100.
"""

import json
import logging
import re

from dateutil import parser as dateutil_parser

from .airlines import canonical_airline_code
from .config import DEFAULT_CONFIG
from .models import NO_BOOKING_REF, FlightRecord

logger = logging.getLogger(__name__)

STRUCTURED_CONFIDENCE = 100

# Attribute order and quoting vary between senders
_JSON_LD_PATTERN = re.compile(
    r'<script[^>]*type\s*=\s*["\']?application/ld\+json["\']?[^>]*>(.*?)</script\s*>',
    re.DOTALL | re.IGNORECASE
)

_FLIGHT_NUMBER_PATTERN = re.compile(r'^\s*([A-Z][A-Z0-9]|[A-Z]{3})?\s*-?\s*(\d{1,4})\s*$', re.IGNORECASE)


def find_json_ld_blocks(html_body):
    """Return the raw text of every JSON-LD script block in the HTML."""
    if not html_body:
        return []
    return [match.group(1).strip() for match in _JSON_LD_PATTERN.finditer(html_body)]


def _iter_objects(data):
    """Yield every dict in a JSON-LD document (top-level list, @graph)."""
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get('@graph')
        if isinstance(graph, list):
            yield from _iter_objects(graph)


def _is_flight_reservation(item):
    item_type = item.get('@type', '')
    if isinstance(item_type, list):
        return 'FlightReservation' in item_type
    return item_type == 'FlightReservation'


def _iata(value):
    if isinstance(value, dict):
        value = value.get('iataCode', '')
    return str(value or '').strip().upper()


def _flight_number(flight, config):
    """Combine airline.iataCode and flightNumber into ("U2", "3847")."""
    airline = flight.get('airline') or flight.get('provider') or {}
    airline_code = _iata(airline) if isinstance(airline, dict) else ''

    match = _FLIGHT_NUMBER_PATTERN.match(str(flight.get('flightNumber', '')))
    if not match:
        return None, None

    # "U23847" style numbers already carry their prefix
    prefix, number = match.group(1), match.group(2)
    code = canonical_airline_code(prefix or airline_code, config.airline_aliases)
    if not code:
        return None, None
    return code, number


def _departure_date(flight):
    departure_time = flight.get('departureTime')
    if not departure_time:
        return ""
    try:
        return dateutil_parser.isoparse(str(departure_time)).date().isoformat()
    except (ValueError, OverflowError):
        try:
            return dateutil_parser.parse(str(departure_time)).date().isoformat()
        except (ValueError, OverflowError):
            logger.debug(f"Unparseable departureTime {departure_time!r}")
            return ""


def _status(item):
    status = item.get('reservationStatus') or ''
    if isinstance(status, dict):
        status = status.get('@id') or status.get('name') or ''
    return str(status).rsplit('/', 1)[-1]


def parse_flight_reservation(item, config=None):
    """Turn one FlightReservation object into a FlightRecord.

    Returns:
        FlightRecord, or None when the reservation has no flight number
    """
    if config is None:
        config = DEFAULT_CONFIG

    flight = item.get('reservationFor') or {}
    if isinstance(flight, list):
        flight = flight[0] if flight else {}
    if not isinstance(flight, dict):
        return None

    code, number = _flight_number(flight, config)
    if not code:
        return None

    airline = flight.get('airline') or {}
    passenger = item.get('underName') or {}
    if isinstance(passenger, list):
        passenger = passenger[0] if passenger else {}

    return FlightRecord(
        flight_number=f"{code} {number}",
        airline_code=code,
        origin=_iata(flight.get('departureAirport')),
        destination=_iata(flight.get('arrivalAirport')),
        departure_date=_departure_date(flight),
        booking_ref=str(item.get('reservationNumber') or '').strip() or NO_BOOKING_REF,
        passenger_name=str(passenger.get('name', '') if isinstance(passenger, dict) else passenger).strip(),
        confidence=STRUCTURED_CONFIDENCE,
        source="structured",
        airline_name=str(airline.get('name', '')) if isinstance(airline, dict) else '',
        status=_status(item),
    )


def extract_structured_flights(html_body, config=None):
    """Extract FlightReservation records from every JSON-LD block.

    A block that fails to parse is skipped; the others still count.

    Args:
        html_body: Raw HTML body
        config: ExtractorConfig, defaults to DEFAULT_CONFIG

    Returns:
        List of FlightRecord with source "structured"
    """
    records = []

    for block in find_json_ld_blocks(html_body):
        try:
            data = json.loads(block)
            for item in _iter_objects(data):
                if not _is_flight_reservation(item):
                    continue
                record = parse_flight_reservation(item, config)
                if record:
                    records.append(record)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")
            continue

    if records:
        logger.debug(f"JSON-LD gave {len(records)} flight(s): "
                     + ", ".join(record.flight_number for record in records))
    return records
