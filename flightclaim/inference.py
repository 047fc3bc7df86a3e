"""
Return-flight inference.

A booking with an outbound and a return often prints the full route once
("MXP → SAW") and only the destination for the other leg ("→ MXP"), or
repeats the outbound route for both legs. With exactly two flights under
one booking reference the missing or repeated route can be rewritten as the
reverse of the other.
"""

import logging
from dataclasses import replace

from .airports import same_place
from .config import DEFAULT_CONFIG
from .models import is_placeholder

logger = logging.getLogger(__name__)


def _is_full_route(record):
    return bool(record.origin and record.destination)


def _is_partial_route(record):
    return bool(record.destination) and not record.origin


def _reverse(record):
    return replace(record, origin=record.destination, destination=record.origin,
                   route_inferred=True)


def _infer_pair(first, second, city_airports):
    """Return the (first, second) pair with the return leg's route fixed."""
    # Rule 1: "A → B" and "→ A" means the second leg is B → A
    for full, partial in ((first, second), (second, first)):
        if _is_full_route(full) and _is_partial_route(partial):
            if same_place(partial.destination, full.origin, city_airports):
                fixed = replace(partial, origin=full.destination, destination=full.origin,
                                route_inferred=True)
                logger.debug(f"Inferred return {fixed.flight_number}: {fixed.route_display}")
                return (full, fixed) if full is first else (fixed, full)

    # Rule 2: both legs print the outbound route; the later one is the return
    if (_is_full_route(first) and _is_full_route(second)
            and first.origin == second.origin and first.destination == second.destination
            and not is_placeholder(first.departure_date)
            and not is_placeholder(second.departure_date)
            and first.departure_date != second.departure_date):
        if first.departure_date > second.departure_date:
            first = _reverse(first)
            logger.debug(f"Inferred return {first.flight_number}: {first.route_display}")
        else:
            second = _reverse(second)
            logger.debug(f"Inferred return {second.flight_number}: {second.route_display}")

    return first, second


def infer_return_flights(records, config=None):
    """Fix the route of return legs that share a booking reference.

    Only heuristic records are considered and only bookings with exactly
    two flights. Records that have no route at all are left alone. The
    input is not modified; running the result through again changes
    nothing.

    Args:
        records: List of FlightRecord
        config: ExtractorConfig whose city table matches cities to airports

    Returns:
        New list of FlightRecord in the same order
    """
    if config is None:
        config = DEFAULT_CONFIG

    groups = {}
    for index, record in enumerate(records):
        if record.source != "heuristic" or is_placeholder(record.booking_ref):
            continue
        groups.setdefault(record.booking_ref, []).append(index)

    result = list(records)
    for booking_ref, indexes in groups.items():
        if len(indexes) != 2:
            continue
        first_index, second_index = indexes
        result[first_index], result[second_index] = _infer_pair(
            result[first_index], result[second_index], config.city_airports)

    return result
