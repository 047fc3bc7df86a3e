"""
Proximity association: attach a route and a date to each flight number.

Emails about several flights list them in blocks, so the route and date
that belong to a flight are the ones printed nearest to it. Booking
reference and passenger name are one per email and go to every flight.
"""

import logging
from typing import List, Optional

from .config import DEFAULT_CONFIG
from .facts import extract_route_facts, facts_of
from .models import Fact, FactCategory, FlightCandidate
from .rules import RuleContext

logger = logging.getLogger(__name__)


def nearest_fact(facts, position, window=None) -> Optional[Fact]:
    """Find the fact closest to a text position.

    Args:
        facts: Facts to search
        position: Offset in the normalized text
        window: Maximum distance, or None for no limit

    Returns:
        Closest Fact (the earlier one on a tie), or None
    """
    best = None
    best_distance = None

    for fact in facts:
        distance = abs(fact.position - position)
        if window is not None and distance > window:
            continue
        if (best is None or distance < best_distance
                or (distance == best_distance and fact.position < best.position)):
            best = fact
            best_distance = distance

    return best


def _route_for(text, position, route_facts, ctx):
    """Route nearest to a flight: re-run the tiers on its own window first.

    The window search matters when the email mixes layouts; the tier that
    won over the whole text may not be the one used around this flight.
    """
    window = ctx.config.context_window
    start = max(0, position - window)
    end = min(len(text), position + window)

    local = extract_route_facts(text[start:end], ctx, offset=start)
    fact = nearest_fact(local, position, window)
    if fact is None:
        fact = nearest_fact(route_facts, position)
    return fact


def associate(text, facts, config=None, email_year=None) -> List[FlightCandidate]:
    """Build one FlightCandidate per flight-number fact.

    Args:
        text: Normalized text the facts were extracted from
        facts: Output of extract_facts()
        config: ExtractorConfig, defaults to DEFAULT_CONFIG
        email_year: Year of the Date: header

    Returns:
        List of FlightCandidate in text order
    """
    if config is None:
        config = DEFAULT_CONFIG
    ctx = RuleContext(config, email_year)

    flights = facts_of(facts, FactCategory.FLIGHT_NUMBER)
    if not flights:
        return []

    routes = facts_of(facts, FactCategory.ROUTE)
    dates = facts_of(facts, FactCategory.DATE)
    booking = facts_of(facts, FactCategory.BOOKING_REF)
    passenger = facts_of(facts, FactCategory.PASSENGER_NAME)

    booking_ref = booking[0].value if booking else ""
    passenger_name = passenger[0].value if passenger else ""

    candidates = []
    for flight in sorted(flights, key=lambda f: f.position):
        route = _route_for(text, flight.position, routes, ctx)
        date = (nearest_fact(dates, flight.position, config.context_window)
                or nearest_fact(dates, flight.position))

        candidate = FlightCandidate(
            flight=flight.value,
            position=flight.position,
            route=route.value if route else None,
            date=date.value if date else None,
            booking_ref=booking_ref,
            passenger_name=passenger_name,
        )
        logger.debug(f"Candidate {candidate.flight}: route={candidate.route}, date={candidate.date}")
        candidates.append(candidate)

    return candidates
