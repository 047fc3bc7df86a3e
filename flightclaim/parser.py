"""
Flight record extraction pipeline.

Uses a tiered approach per email:
1. Schema.org JSON-LD (most reliable, short-circuits everything else)
2. Normalized text -> facts -> proximity association -> scoring
3. Deduplication and return-flight inference over the results

process_emails() runs the per-email pipeline over a batch, optionally on a
thread pool, and merges everything into one deduplicated list.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from .associator import associate
from .config import DEFAULT_CONFIG
from .email_handler import email_year
from .facts import extract_facts
from .inference import infer_return_flights
from .merge import FlightRecordMap
from .models import NO_BOOKING_REF, FlightRecord, RawEmail, is_placeholder
from .normalizer import normalize_email
from .schema_org import extract_structured_flights
from .scoring import score_candidate

logger = logging.getLogger(__name__)


def _as_raw_email(raw_email):
    if isinstance(raw_email, RawEmail):
        return raw_email
    if isinstance(raw_email, dict):
        return RawEmail.from_dict(raw_email)
    raise TypeError(f"Expected RawEmail or dict, got {type(raw_email).__name__}")


def _record_from_candidate(candidate, from_addr, config):
    score, breakdown, reasons = score_candidate(candidate, from_addr, config)
    logger.debug(f"  -> {candidate.flight} scored {score}: {', '.join(reasons)}")

    route = candidate.route
    code = candidate.flight.airline_code
    return FlightRecord(
        flight_number=candidate.flight.canonical,
        airline_code=code,
        origin=route.origin if route else "",
        destination=route.destination if route else "",
        departure_date=candidate.date.iso if candidate.date else "",
        booking_ref=NO_BOOKING_REF if is_placeholder(candidate.booking_ref) else candidate.booking_ref,
        passenger_name=candidate.passenger_name,
        confidence=score,
        breakdown=breakdown,
        airline_name=config.airline_codes.get(code, ""),
    )


def extract_flight_records(raw_email, config=None) -> List[FlightRecord]:
    """Extract all flight records from one email.

    Args:
        raw_email: RawEmail, or a dict with subject/from/dateHeader/htmlBody/plainBody
        config: ExtractorConfig, defaults to DEFAULT_CONFIG

    Returns:
        List of FlightRecord, highest confidence first. Empty when the email
        holds no flight.
    """
    if config is None:
        config = DEFAULT_CONFIG
    raw_email = _as_raw_email(raw_email)

    logger.debug(f"extract_flight_records: subject='{raw_email.subject[:50]}', from='{raw_email.from_address}'")

    # Try schema.org first (most reliable)
    structured = extract_structured_flights(raw_email.html_body or raw_email.plain_body, config)
    if structured:
        logger.debug(f"  -> Using {len(structured)} structured record(s)")
        return structured

    normalized = normalize_email(raw_email)
    if not normalized.text:
        logger.debug("  -> No body, nothing to extract")
        return []

    year = email_year(raw_email)
    facts = extract_facts(normalized.text, config, email_year=year, subject=raw_email.subject)

    candidates = associate(normalized.text, facts, config, email_year=year)
    if not candidates:
        logger.debug("  -> No flight numbers found")
        return []

    record_map = FlightRecordMap(config.acceptance_threshold)
    for candidate in candidates:
        record_map.add(_record_from_candidate(candidate, raw_email.from_address, config))

    records = infer_return_flights(record_map.records(), config)
    logger.debug(f"  -> {len(records)} record(s): " + ", ".join(
        f"{r.flight_number} {r.route_display} {r.departure_date}".strip() for r in records))
    return records


def extract_email(raw_email, config=None) -> List[FlightRecord]:
    """Alias of extract_flight_records() for single-email callers."""
    return extract_flight_records(raw_email, config)


def process_emails(emails, config=None, max_emails=None, max_workers=1) -> List[FlightRecord]:
    """Extract and deduplicate flight records from a batch of emails.

    Emails are processed independently (in parallel when max_workers > 1);
    the results are merged in input order on the calling thread, then
    return-flight inference runs over the whole batch so legs booked
    together but mailed separately are paired up.

    Args:
        emails: Iterable of RawEmail or dicts
        config: ExtractorConfig, defaults to DEFAULT_CONFIG
        max_emails: Stop after this many emails
        max_workers: Thread pool size (1 = process inline)

    Returns:
        List of FlightRecord, highest confidence first
    """
    if config is None:
        config = DEFAULT_CONFIG

    emails = list(emails)
    if max_emails is not None:
        emails = emails[:max(max_emails, 0)]

    logger.debug(f"Processing {len(emails)} email(s) with {max_workers} worker(s)")

    if max_workers > 1 and len(emails) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # map() yields results in input order
            results = list(executor.map(lambda e: extract_flight_records(e, config), emails))
    else:
        results = [extract_flight_records(e, config) for e in emails]

    record_map = FlightRecordMap(config.acceptance_threshold)
    for records in results:
        record_map.extend(records)

    return infer_return_flights(record_map.records(), config)
