import pytest

from flightclaim.models import FlightRecord, RawEmail


@pytest.fixture
def make_email():
    """Build a RawEmail with only the parts a test cares about."""
    def _make(plain="", html="", subject="", from_addr="", date_header=""):
        return RawEmail(
            subject=subject,
            from_address=from_addr,
            date_header=date_header,
            html_body=html,
            plain_body=plain,
        )
    return _make


@pytest.fixture
def make_record():
    """Build a heuristic FlightRecord with sensible defaults."""
    def _make(flight_number="U2 3847", origin="LGW", destination="BCN",
              departure_date="2026-03-10", booking_ref="K5LN96D", confidence=60, **kwargs):
        return FlightRecord(
            flight_number=flight_number,
            airline_code=flight_number.split()[0],
            origin=origin,
            destination=destination,
            departure_date=departure_date,
            booking_ref=booking_ref,
            confidence=confidence,
            **kwargs,
        )
    return _make
