#!/usr/bin/env python3
"""
FlightClaim - Developer Runner

Runs the extraction engine over saved emails and prints what it finds.

Usage:
    python3 run.py mail.eml                 # One .eml file
    python3 run.py *.eml --json             # Several files, JSON output
    python3 run.py body.html --from booking@easyjet.com
"""

import json
import logging
import sys
from pathlib import Path

from flightclaim import load_config, process_emails
from flightclaim.airports import get_airport_display
from flightclaim.email_handler import raw_email_from_bytes
from flightclaim.models import RawEmail

HELP = """
FlightClaim Runner

Usage:
    python3 run.py FILE... [options]

Files:
    .eml            Parsed as a full MIME message
    .html / .htm    Used as the HTML body
    anything else   Used as the plain-text body

Options:
    --from ADDR     Sender address for bare .html/.txt bodies
    --json          Print records as JSON
    --debug         Show debug logging from the pipeline
    --workers N     Process emails on N threads
    --max N         Stop after N emails
    --help          Show this help
"""


def _option_value(args, name, default=None):
    """Pop "--name VALUE" out of args and return VALUE."""
    if name not in args:
        return default
    index = args.index(name)
    if index + 1 >= len(args):
        print(f"Missing value for {name}")
        sys.exit(2)
    value = args[index + 1]
    del args[index:index + 2]
    return value


def _int_option(args, name, default=None):
    value = _option_value(args, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"{name} needs a number, got {value!r}")
        sys.exit(2)


def load_email_file(path, from_addr=""):
    """Read one saved email into a RawEmail."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".eml":
        raw_email = raw_email_from_bytes(path.read_bytes())
        if from_addr and not raw_email.from_address:
            raw_email = RawEmail(raw_email.subject, from_addr, raw_email.date_header,
                                 raw_email.html_body, raw_email.plain_body)
        return raw_email

    text = path.read_text(encoding="utf-8", errors="replace")
    if suffix in (".html", ".htm"):
        return RawEmail(subject=path.stem, from_address=from_addr, html_body=text)
    return RawEmail(subject=path.stem, from_address=from_addr, plain_body=text)


def _route_line(record, airport_names):
    origin = get_airport_display(record.origin, airport_names) if record.origin else ""
    destination = get_airport_display(record.destination, airport_names)
    line = f"{origin} → {destination}" if origin else f"→ {destination}"
    if record.route_inferred:
        line += " (inferred)"
    return line


def print_records(records, airport_names=None):
    if not records:
        print("No flights found.")
        return

    print("\n" + "=" * 60)
    print(f"  Found {len(records)} flight(s)")
    print("=" * 60)

    for record in records:
        print(f"\n  {record.flight_number}  [{record.source}, confidence {record.confidence}]")
        if record.has_route:
            print(f"    Route: {_route_line(record, airport_names)}")
        if record.departure_date:
            print(f"    Date: {record.departure_date}")
        print(f"    Booking: {record.booking_ref}")
        if record.passenger_name:
            print(f"    Passenger: {record.passenger_name}")
    print()


def main():
    args = sys.argv[1:]

    if not args or "--help" in args or "-h" in args:
        print(HELP)
        return

    if "--debug" in args:
        args.remove("--debug")
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    as_json = "--json" in args
    if as_json:
        args.remove("--json")

    from_addr = _option_value(args, "--from", "")
    workers = _int_option(args, "--workers", 1)
    max_emails = _int_option(args, "--max")

    emails = []
    for name in args:
        try:
            emails.append(load_email_file(name, from_addr))
        except OSError as e:
            print(f"Could not read {name}: {e}")

    config = load_config()
    records = process_emails(emails, config=config, max_emails=max_emails,
                             max_workers=workers)

    if as_json:
        print(json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False))
    else:
        print_records(records, config.airport_names)


if __name__ == "__main__":
    main()
