"""
Confidence scoring for flight candidates.

Each piece of evidence found for a flight adds a fixed number of points;
the total, capped at 100, is the record's confidence.
"""

from typing import List, Tuple

from .airlines import is_known_sender
from .config import DEFAULT_CONFIG
from .models import ConfidenceBreakdown, FlightCandidate, is_placeholder

MAX_CONFIDENCE = 100


def _endpoint_points(endpoint, config):
    if not endpoint:
        return 0
    if endpoint in config.airport_codes:
        return config.weights['airport_valid']
    return config.weights['airport_unvalidated']


def score_candidate(candidate: FlightCandidate, from_addr: str,
                    config=None) -> Tuple[int, ConfidenceBreakdown, List[str]]:
    """Score a flight candidate.

    Args:
        candidate: FlightCandidate from the associator
        from_addr: Sender address of the email
        config: ExtractorConfig, defaults to DEFAULT_CONFIG

    Returns:
        Tuple of (score, breakdown, reasons)
    """
    if config is None:
        config = DEFAULT_CONFIG
    weights = config.weights
    breakdown = ConfidenceBreakdown()
    reasons = []

    breakdown.flight_number = weights['flight_number']
    reasons.append(f"Flight#: {candidate.flight}")

    if not is_placeholder(candidate.booking_ref):
        breakdown.booking_ref = weights['booking_ref']
        reasons.append(f"PNR: {candidate.booking_ref}")

    route = candidate.route
    if route:
        breakdown.departure_airport = _endpoint_points(route.origin, config)
        breakdown.arrival_airport = _endpoint_points(route.destination, config)
        reasons.append(f"Route: {route}")

    date = candidate.date
    if date:
        if date.year_inferred:
            breakdown.date = weights['date_inferred_year']
            reasons.append(f"Date: {date} (year from header)")
        else:
            breakdown.date = weights['date']
            reasons.append(f"Date: {date}")

    if candidate.passenger_name:
        breakdown.passenger_name = weights['passenger_name']
        reasons.append(f"Passenger: {candidate.passenger_name}")

    if is_known_sender(from_addr, config.sender_domains):
        breakdown.known_sender_domain = weights['known_sender_domain']
        reasons.append(f"From: {from_addr}")

    score = min(breakdown.total, MAX_CONFIDENCE)
    return score, breakdown, reasons
