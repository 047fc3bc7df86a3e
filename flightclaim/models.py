"""
Data types passed between the extraction stages.

Everything here is a plain dataclass. Facts and candidates live for one
email only; FlightRecord is the engine output handed back to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

# Values that mean "nothing useful was found" for a record field
PLACEHOLDERS = ("", "-", "Check email")

# Booking reference sentinel used in output when none was found
NO_BOOKING_REF = "-"


def is_placeholder(value):
    """Check if a record field holds a placeholder rather than real data."""
    if value is None:
        return True
    return str(value).strip() in PLACEHOLDERS


@dataclass(frozen=True)
class RawEmail:
    """One email as handed over by the mail-retrieval side."""
    subject: str = ""
    from_address: str = ""
    date_header: str = ""
    html_body: str = ""
    plain_body: str = ""

    @classmethod
    def from_dict(cls, data):
        """Build from the mail collaborator's dict.

        Accepts the camelCase keys (subject, from, dateHeader, htmlBody,
        plainBody) as well as the attribute names.
        """
        def pick(*keys):
            for key in keys:
                value = data.get(key)
                if value:
                    return str(value)
            return ""

        return cls(
            subject=pick('subject'),
            from_address=pick('from', 'from_address', 'fromAddress'),
            date_header=pick('dateHeader', 'date_header', 'receivedAtHeader', 'date'),
            html_body=pick('htmlBody', 'html_body', 'html'),
            plain_body=pick('plainBody', 'plain_body', 'text'),
        )


@dataclass(frozen=True)
class NormalizedText:
    """Searchable text plus a map back into the pre-collapse source.

    offsets[i] is the index in the source string of text[i].
    """
    text: str
    offsets: List[int] = field(default_factory=list)

    def __len__(self):
        return len(self.text)

    def source_offset(self, position):
        """Map a position in text back to the source string."""
        if not self.offsets:
            return position
        if position >= len(self.offsets):
            return self.offsets[-1] + (position - len(self.offsets) + 1)
        return self.offsets[max(position, 0)]


class FactCategory(Enum):
    BOOKING_REF = "bookingRef"
    FLIGHT_NUMBER = "flightNumber"
    ROUTE = "route"
    DATE = "date"
    PASSENGER_NAME = "passengerName"


@dataclass(frozen=True)
class FlightNumber:
    airline_code: str
    number: str

    @property
    def canonical(self):
        return f"{self.airline_code} {self.number}"

    def __str__(self):
        return self.canonical


@dataclass(frozen=True)
class Route:
    """Origin/destination pair. An empty origin means "→ destination" only."""
    origin: str
    destination: str

    @property
    def is_partial(self):
        return not self.origin

    def __str__(self):
        if self.is_partial:
            return f"→ {self.destination}"
        return f"{self.origin} → {self.destination}"


@dataclass(frozen=True)
class DateValue:
    iso: str
    year_inferred: bool = False

    @property
    def display(self):
        """DD/MM/YYYY form used in human-facing output."""
        year, month, day = self.iso.split('-')
        return f"{day}/{month}/{year}"

    def __str__(self):
        return self.iso


FactValue = Union[str, FlightNumber, Route, DateValue]


@dataclass(frozen=True)
class Fact:
    category: FactCategory
    value: FactValue
    position: int
    raw_match: str = ""
    rule: str = ""


@dataclass
class FlightCandidate:
    """A flight number together with whatever was associated with it."""
    flight: FlightNumber
    position: int
    route: Optional[Route] = None
    date: Optional[DateValue] = None
    booking_ref: str = ""
    passenger_name: str = ""


@dataclass
class ConfidenceBreakdown:
    flight_number: int = 0
    booking_ref: int = 0
    departure_airport: int = 0
    arrival_airport: int = 0
    date: int = 0
    passenger_name: int = 0
    known_sender_domain: int = 0

    @property
    def total(self):
        return (self.flight_number + self.booking_ref + self.departure_airport
                + self.arrival_airport + self.date + self.passenger_name
                + self.known_sender_domain)

    def to_dict(self):
        return {
            'flightNumber': self.flight_number,
            'bookingRef': self.booking_ref,
            'departureAirport': self.departure_airport,
            'arrivalAirport': self.arrival_airport,
            'date': self.date,
            'passengerName': self.passenger_name,
            'knownSenderDomain': self.known_sender_domain,
        }


@dataclass
class FlightRecord:
    """Engine output: one flight with its confidence score."""
    flight_number: str
    airline_code: str
    origin: str = ""
    destination: str = ""
    departure_date: str = ""
    booking_ref: str = NO_BOOKING_REF
    passenger_name: str = ""
    confidence: int = 0
    breakdown: Optional[ConfidenceBreakdown] = None
    source: str = "heuristic"
    airline_name: str = ""
    status: str = ""
    route_inferred: bool = False

    @property
    def has_route(self):
        return bool(self.origin or self.destination)

    @property
    def route_display(self):
        if not self.has_route:
            return ""
        if not self.origin:
            return f"→ {self.destination}"
        return f"{self.origin} → {self.destination}"

    def to_dict(self):
        result = {
            'flightNumber': self.flight_number,
            'airline': self.airline_code,
            'from': self.origin,
            'to': self.destination,
            'departureDate': self.departure_date,
            'bookingRef': self.booking_ref or NO_BOOKING_REF,
        }
        if self.passenger_name:
            result['passengerName'] = self.passenger_name
        result['confidence'] = self.confidence
        result['source'] = self.source
        if self.breakdown is not None:
            result['breakdown'] = self.breakdown.to_dict()
        if self.airline_name:
            result['airlineName'] = self.airline_name
        if self.status:
            result['status'] = self.status
        if self.route_inferred:
            result['routeInferred'] = True
        return result
