import pytest

from flightclaim.config import DEFAULT_CONFIG
from flightclaim.facts import SUBJECT_POSITION, extract_facts, facts_of
from flightclaim.models import DateValue, FactCategory, FlightNumber, Route
from flightclaim.rules import is_valid_booking_ref, is_valid_passenger_name


def _values(text, category, **kwargs):
    return [fact.value for fact in facts_of(extract_facts(text, **kwargs), category)]


# ============================================================================
# BOOKING REFERENCE
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("Booking reference: K5LN96D", "K5LN96D"),
    ("Your confirmation number is ZK4T9P.", "ZK4T9P"),
    ("Booking number: BC-47829356", "BC-47829356"),
    ("Reservation code Y-2026-457821 confirmed", "Y-2026-457821"),
    ("Localizador: ZK4T9P", "ZK4T9P"),
    ("Номер бронирования: ZK4T9P", "ZK4T9P"),
    ("Buchungsnummer: ZK4T9P", "ZK4T9P"),
])
def test_booking_ref_keywords(text, expected):
    assert _values(text, FactCategory.BOOKING_REF) == [expected]


def test_booking_ref_first_wins():
    text = "Booking reference: K5LN96D. Previous booking reference: ZK4T9P"
    assert _values(text, FactCategory.BOOKING_REF) == ["K5LN96D"]


def test_booking_ref_bare_fallback_needs_letters_and_digits():
    assert _values("Flight U2 3847 ref K5LN96D", FactCategory.BOOKING_REF) == ["K5LN96D"]
    assert _values("Flight U2 3847 ABCDEF", FactCategory.BOOKING_REF) == []


def test_booking_ref_from_subject_only_as_last_resort():
    facts = extract_facts("Flight U2 3847", subject="Booking ref ZK4T9P")
    booking = facts_of(facts, FactCategory.BOOKING_REF)
    assert [f.value for f in booking] == ["ZK4T9P"]
    assert booking[0].position == SUBJECT_POSITION

    facts = extract_facts("Booking reference: K5LN96D", subject="Booking ref ZK4T9P")
    assert [f.value for f in facts_of(facts, FactCategory.BOOKING_REF)] == ["K5LN96D"]


@pytest.mark.parametrize("code, valid", [
    ("K5LN96D", True),
    ("BC-47829356", True),
    ("EASYJET", False),   # denylisted
    ("BOOKING", False),
    ("2026", False),      # year
    ("MAR2026", False),   # month + year
    ("AAAAAA", False),    # one character
    ("U23847", False),    # flight number
    ("WEDDING", False),   # English word ending
])
def test_is_valid_booking_ref(code, valid):
    assert is_valid_booking_ref(code, DEFAULT_CONFIG) is valid


# ============================================================================
# FLIGHT NUMBERS
# ============================================================================

def test_flight_numbers_are_canonicalized():
    flights = _values("Flights EZY8123 and EJU 4521", FactCategory.FLIGHT_NUMBER)
    assert flights == [FlightNumber("U2", "8123"), FlightNumber("U2", "4521")]
    assert [f.canonical for f in flights] == ["U2 8123", "U2 4521"]


def test_flight_number_recorded_once_at_first_occurrence():
    facts = extract_facts("Flight U2 3847 today. Reminder: U2-3847 and EZY3847 boarding.")
    flights = facts_of(facts, FactCategory.FLIGHT_NUMBER)
    assert len(flights) == 1
    assert flights[0].position == 7


def test_unknown_airline_codes_are_ignored():
    assert _values("Seat ZZ 1234 in row 12", FactCategory.FLIGHT_NUMBER) == []


def test_clock_times_are_not_flights():
    assert _values("Departs 10:30 AM 123 Main Street", FactCategory.FLIGHT_NUMBER) == []


def test_receipt_numbers_are_not_flights():
    assert _values("Order receipt CA 98765", FactCategory.FLIGHT_NUMBER) == []
    assert _values("Receipt number LA 4455 for your order", FactCategory.FLIGHT_NUMBER) == []


def test_outbound_return_pair():
    flights = _values("Pegasus PC 397/398", FactCategory.FLIGHT_NUMBER)
    assert [f.canonical for f in flights] == ["PC 397", "PC 398"]


# ============================================================================
# ROUTES
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("LGW → BCN", Route("LGW", "BCN")),
    ("LGW-BCN", Route("LGW", "BCN")),
    ("MXP to SAW", Route("MXP", "SAW")),
    ("London Gatwick (LGW) - Barcelona El Prat (BCN)", Route("LGW", "BCN")),
    ("From: Milan Malpensa (MXP) To: Istanbul (SAW)", Route("MXP", "SAW")),
    ("Departure airport FRA Arrival airport JFK", Route("FRA", "JFK")),
    ("Salida: Madrid (MAD) Llegada: Roma Fiumicino (FCO)", Route("MAD", "FCO")),
    ("Откуда: Москва (SVO) Куда: Стамбул (IST)", Route("SVO", "IST")),
    ("Partenza: Milano (MXP) Arrivo: Napoli (NAP)", Route("MXP", "NAP")),
    ("Wylot: Warszawa (WAW) Przylot: Londyn (STN)", Route("WAW", "STN")),
    ("Abflug: Frankfurt (FRA) Ankunft: Wien (VIE)", Route("FRA", "VIE")),
])
def test_route_shapes(text, expected):
    assert _values(text, FactCategory.ROUTE) == [expected]


def test_city_names_resolve_to_english():
    assert _values("Your trip Milano - Стамбул", FactCategory.ROUTE) == [Route("Milan", "Istanbul")]
    assert _values("Londyn → Rzym", FactCategory.ROUTE) == [Route("London", "Rome")]


@pytest.mark.parametrize("text", [
    "Arrive at Milan-Bergamo two hours early",
    "London - Gatwick North Terminal",
    "Paris Beauvais",
    "LGW → LGW",
])
def test_false_routes_are_rejected(text):
    assert _values(text, FactCategory.ROUTE) == []


def test_rejected_pair_does_not_hide_the_real_route():
    text = "Flight PC 1234 Milan-Bergamo → Istanbul on 10 March 2026"
    assert _values(text, FactCategory.ROUTE) == [Route("Bergamo", "Istanbul")]


@pytest.mark.parametrize("text", [
    "Return PC 398 (→ MXP)",
    "Flight PC 398 to MXP on 19 March 2026",
    "Flight PC 398 arriving at MXP at 21:40",
])
def test_destination_only_route(text):
    assert _values(text, FactCategory.ROUTE) == [Route("", "MXP")]


def test_destination_word_needs_no_origin_code():
    assert _values("LGW to LGW", FactCategory.ROUTE) == []
    assert _values("Flight U2 3847 to Barcelona", FactCategory.ROUTE) == []


def test_first_route_tier_wins():
    text = "Milan → Rome by train, then flight LGW → BCN"
    assert _values(text, FactCategory.ROUTE) == [Route("LGW", "BCN")]


def test_routes_accumulate_in_text_order():
    text = "Outbound LGW → BCN. Return BCN → LGW."
    assert _values(text, FactCategory.ROUTE) == [Route("LGW", "BCN"), Route("BCN", "LGW")]


# ============================================================================
# DATES
# ============================================================================

@pytest.mark.parametrize("text, iso", [
    ("Departure 2026-03-10T08:15", "2026-03-10"),
    ("on 10/03/2026", "2026-03-10"),
    ("on 10.03.2026", "2026-03-10"),
    ("on 03/25/2026", "2026-03-25"),
    ("on 10.03.26", "2026-03-10"),
    ("10MAR26 LGWBCN", "2026-03-10"),
    ("Tue 10 March 2026", "2026-03-10"),
    ("10th of Mar 26", "2026-03-10"),
    ("March 10, 2026", "2026-03-10"),
    ("10 марта 2026 г.", "2026-03-10"),
    ("10 marzo 2026", "2026-03-10"),
    ("12 de noviembre de 2026", "2026-11-12"),
    ("10 marca 2026", "2026-03-10"),
    ("10 Μαρτίου 2026", "2026-03-10"),
    ("10. März 2026", "2026-03-10"),
    ("2027年3月5日", "2027-03-05"),
    ("2027년 9월 25일", "2027-09-25"),
])
def test_date_formats(text, iso):
    assert _values(text, FactCategory.DATE) == [DateValue(iso)]


def test_yearless_date_takes_header_year():
    assert _values("Sun, 10 Mar", FactCategory.DATE, email_year=2026) == [
        DateValue("2026-03-10", year_inferred=True)]
    assert _values("вылет 10 марта", FactCategory.DATE, email_year=2026) == [
        DateValue("2026-03-10", year_inferred=True)]


def test_yearless_date_needs_header():
    assert _values("Sun, 10 Mar", FactCategory.DATE) == []


def test_year_must_be_near_header_year():
    assert _values("10 March 2031", FactCategory.DATE, email_year=2026) == []
    assert _values("10 March 2028", FactCategory.DATE, email_year=2026) == [DateValue("2028-03-10")]


def test_year_range_without_header():
    assert _values("10/03/1999", FactCategory.DATE) == []


def test_impossible_dates_are_dropped():
    assert _values("31/02/2026", FactCategory.DATE) == []


def test_dates_accumulate_without_overlaps():
    dates = _values("Out 10 March 2026, back 17 March 2026", FactCategory.DATE)
    assert dates == [DateValue("2026-03-10"), DateValue("2026-03-17")]


# ============================================================================
# PASSENGER NAME
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("Passenger: John Smith", "John Smith"),
    ("Passenger name: JOHN SMITH Flight U2 3847", "JOHN SMITH"),
    ("Dear Mr Smithson, thank you", "Smithson"),
    ("Пассажир: Иван Петров", "Иван Петров"),
    ("SMITH/JOHN MR", "SMITH/JOHN MR"),
])
def test_passenger_names(text, expected):
    assert _values(text, FactCategory.PASSENGER_NAME) == [expected]


@pytest.mark.parametrize("text", [
    "Dear Customer",
    "Dear Guest, welcome",
    "Route LGW/BCN",
])
def test_generic_names_are_discarded(text):
    assert _values(text, FactCategory.PASSENGER_NAME) == []


def test_is_valid_passenger_name():
    assert is_valid_passenger_name("Anna Kowalska")
    assert not is_valid_passenger_name("Al")
    assert not is_valid_passenger_name("John 2")
    assert not is_valid_passenger_name("Customer Service")


# ============================================================================
# WHOLE TEXT
# ============================================================================

def test_extract_facts_empty_text():
    assert extract_facts("") == []


def test_facts_are_ordered_by_category_then_position():
    text = ("Booking reference: K5LN96D. Passenger: John Smith. "
            "U2 3847 LGW → BCN on 10 March 2026. U2 3848 BCN → LGW on 17 March 2026.")
    categories = [fact.category for fact in extract_facts(text)]
    assert categories == [
        FactCategory.BOOKING_REF,
        FactCategory.FLIGHT_NUMBER, FactCategory.FLIGHT_NUMBER,
        FactCategory.ROUTE, FactCategory.ROUTE,
        FactCategory.DATE, FactCategory.DATE,
        FactCategory.PASSENGER_NAME,
    ]
