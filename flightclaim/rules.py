"""
Pattern rules for the fact extractor.

Every fact category is an ordered table of Rule rows. A row pairs a
compiled pattern with a builder that turns one match into a fact value, or
None to reject the match. Supporting a new vendor layout means appending a
row to the right table.

Route rules carry a tier: lower tiers are generic shapes, higher tiers are
vendor-specific or looser fallbacks that only run when every lower tier
came up empty.
"""

import re
from collections import namedtuple
from dataclasses import dataclass
from typing import Callable, Pattern, Tuple

from .airlines import RECEIPT_PRONE_CODES, TIME_LIKE_CODES, canonical_airline_code
from .airports import is_false_route, resolve_city_name
from .dates import expand_year, is_valid_flight_year, lookup_month, month_alternation, to_iso
from .models import DateValue, FactCategory, FlightNumber, Route

# What a builder gets besides the match: the active config and the year of
# the email's Date: header (None when unknown)
RuleContext = namedtuple('RuleContext', ['config', 'email_year'])


@dataclass(frozen=True)
class Rule:
    name: str
    category: FactCategory
    pattern: Pattern
    build: Callable
    tier: int = 1
    group: int = 0  # match group whose start is used as the fact position

    def position(self, match):
        return match.start(self.group)


@dataclass(frozen=True)
class RuleSet:
    booking_ref: Tuple[Rule, ...]
    flight_number: Tuple[Rule, ...]
    route: Tuple[Rule, ...]
    date: Tuple[Rule, ...]
    passenger_name: Tuple[Rule, ...]


# ============================================================================
# BOOKING REFERENCE RULES
# ============================================================================

# Words that fit the booking-reference shape but never are one
BOOKING_REF_DENYLIST = {
    'BOOKING', 'BOOKED', 'TICKET', 'TICKETS', 'FLIGHT', 'FLIGHTS', 'NUMBER',
    'DETAILS', 'CANCEL', 'PLEASE', 'TRAVEL', 'ONLINE', 'CHECKIN', 'CONFIRM',
    'CONFIRMED', 'RESERVATION', 'REFERENCE', 'PASSENGER', 'AIRLINE', 'AIRLINES',
    'AIRPORT', 'DEPARTURE', 'ARRIVAL', 'RETURN', 'ECONOMY', 'BUSINESS',
    'STATUS', 'RECEIPT', 'INVOICE', 'PAYMENT', 'BAGGAGE', 'LUGGAGE',
    'BOARDING', 'TERMINAL', 'MANAGE', 'LOGIN', 'EMAIL', 'HTTPS', 'CUSTOMER',
    'SUPPORT', 'SERVICE', 'THANKS', 'ITINERARY',
    # Airline and agency names
    'EASYJET', 'RYANAIR', 'WIZZAIR', 'WIZZ', 'VUELING', 'PEGASUS', 'LUFTHANSA',
    'EXPEDIA', 'EDREAMS', 'YANDEX', 'AIRBALTIC',
}

_MONTH_ABBREVIATIONS = 'JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC'

# "2026", "MAR2026": a year, maybe glued to a month
_YEAR_LIKE = re.compile(rf'(?:{_MONTH_ABBREVIATIONS})?(?:19|20)\d{{2}}')

_FLIGHT_SHAPE = re.compile(r'(EZY|EJU|[A-Z][A-Z0-9])(\d{1,4})')

_BOOKING_KEYWORDS = (
    r'booking\s*(?:reference|ref\.?|code|number|no\.?|id)?'
    r'|confirmation\s*(?:code|number|no\.?)?'
    r'|reservation\s*(?:code|number|no\.?)?'
    r'|record\s*locator|\bpnr|\breference'
    r'|localizador|c[oó]digo\s+de\s+reserva'
    r'|номер\s+бронирования|код\s+бронирования|бронировани[еяю]'
    r'|buchungsnummer|codice\s+(?:di\s+)?prenotazione|numer\s+rezerwacji'
)

# Either an OTA hyphenated reference (BC-47829356, Y-2026-457821) or a
# plain 5-8 character PNR. Keywords are case-insensitive, the token is not.
_BOOKING_TOKEN = r'([A-Z]{1,3}-(?:\d{4}-)?\d{5,10}|[A-Z0-9]{5,8})'


def _looks_like_english_word(code):
    """Check if a letters-only code reads like an English word.

    Real booking references are random; words have recognisable endings and
    consonant/vowel rhythm.
    """
    word_endings = ('ING', 'TED', 'LES', 'ERS', 'LLY', 'ARD', 'GHT', 'NCE', 'ION',
                    'EST', 'ANT', 'ENT', 'ALS', 'OWN', 'AIN', 'ICE', 'AGE', 'ATE',
                    'URE', 'BLE', 'OUS', 'MENT')
    if code.endswith(word_endings):
        return True

    pattern = ''.join('V' if c in 'AEIOU' else 'C' for c in code)
    english_patterns = {'CVCCVC', 'CVCVCV', 'CVCVCC', 'CCVCVC', 'CVVCVC',
                        'CCVCCV', 'CVCVC', 'CVCCV'}
    return pattern in english_patterns


def _looks_like_flight_number(code, config):
    match = _FLIGHT_SHAPE.fullmatch(code)
    if not match:
        return False
    airline = canonical_airline_code(match.group(1), config.airline_aliases)
    return airline in config.airline_codes


def is_valid_booking_ref(code, config):
    """Check if a token can be a booking reference.

    Rejects denylisted words, years, repeated characters, tokens shaped like
    a flight number and letters-only tokens that read like English.
    """
    if not code:
        return False
    code = code.upper()
    if '-' in code:
        # Hyphenated OTA reference, shape already checked by the pattern
        return True
    if len(code) < 5 or len(code) > 8:
        return False
    if code in config.booking_ref_denylist:
        return False
    if len(set(code)) == 1:
        return False
    if _YEAR_LIKE.fullmatch(code):
        return False
    if _looks_like_flight_number(code, config):
        return False
    if code.isalpha() and _looks_like_english_word(code):
        return False
    return True


def _build_booking_ref(match, ctx):
    code = match.group(1).upper()
    return code if is_valid_booking_ref(code, ctx.config) else None


def _build_bare_booking_ref(match, ctx):
    code = match.group(1)
    if not (any(c.isdigit() for c in code) and any(c.isalpha() for c in code)):
        return None
    return _build_booking_ref(match, ctx)


_BOOKING_RULES = (
    Rule('booking_keyword', FactCategory.BOOKING_REF,
         re.compile(rf'(?i:{_BOOKING_KEYWORDS})\s*(?:(?i:is)\s+)?[:#№\-\s]*{_BOOKING_TOKEN}(?![\w-])'),
         _build_booking_ref),
    # ABC123, AB1234
    Rule('booking_bare_letters_digits', FactCategory.BOOKING_REF,
         re.compile(r'\b([A-Z]{2,3}[0-9]{3,4})\b'),
         _build_bare_booking_ref, tier=2),
    # K5LN96D, A1B2C3
    Rule('booking_bare_mixed', FactCategory.BOOKING_REF,
         re.compile(r'\b([A-Z][0-9][A-Z0-9]{4,5})\b'),
         _build_bare_booking_ref, tier=2),
)


# ============================================================================
# FLIGHT NUMBER RULES
# ============================================================================

_FLIGHT_PREFIX = r'(EZY|EJU|[A-Z][A-Z0-9])'
_TIME_BEFORE = re.compile(r'\d[:.]?\d*\s*$')
_RECEIPT_WORDS = ('order', 'receipt', 'transaction', 'invoice', 'payment', 'charge')


def _flight_number(raw_code, number, match, ctx):
    code = canonical_airline_code(raw_code, ctx.config.airline_aliases)
    if code not in ctx.config.airline_codes:
        return None

    text = match.string
    start = match.start()

    # "10 AM 123" is a time, not Aeromexico
    if raw_code in TIME_LIKE_CODES and _TIME_BEFORE.search(text[max(0, start - 10):start]):
        return None

    # Long numbers next to receipt wording are order numbers
    if len(number) >= 4 and code in RECEIPT_PRONE_CODES:
        context = text[max(0, start - 50):match.end() + 20].lower()
        if any(word in context for word in _RECEIPT_WORDS):
            return None

    return FlightNumber(code, number)


def _build_flight_number(match, ctx):
    return _flight_number(match.group(1), match.group(2), match, ctx)


_FLIGHT_RULES = (
    # U2 3847, U2-3847, EZY3847
    Rule('flight_number', FactCategory.FLIGHT_NUMBER,
         re.compile(rf'\b{_FLIGHT_PREFIX}[ \-]?(\d{{1,4}})\b'),
         _build_flight_number),
    # "PC 397/398": second number of an outbound/return pair
    Rule('flight_number_pair', FactCategory.FLIGHT_NUMBER,
         re.compile(rf'\b{_FLIGHT_PREFIX}[ \-]?\d{{1,4}}/(\d{{1,4}})\b'),
         _build_flight_number, group=2),
)


# ============================================================================
# ROUTE RULES
# ============================================================================

_SEPARATOR = r'(?:to|TO|→|->|–|—|-|>)'
_LETTER = r'[^\W\d_]'


def _resolve_endpoint(value, config):
    value = ' '.join(value.split())
    if len(value) == 3 and value.isupper():
        return value if value in config.airport_codes else None
    return resolve_city_name(value, config.city_names)


def make_route(origin, destination, config):
    """Build a Route from two raw endpoints, or None if it is not a real route.

    Both endpoints must resolve to a known airport code or city name, and the
    pair must not be one airport's own compound name.
    """
    origin = _resolve_endpoint(origin, config)
    destination = _resolve_endpoint(destination, config)
    if not origin or not destination:
        return None
    if is_false_route(origin, destination, config.false_routes):
        return None
    return Route(origin, destination)


def _build_pair(match, ctx):
    return make_route(match.group(1), match.group(2), ctx.config)


def _build_labelled_pair(match, ctx):
    origin = match.group(1) or match.group(2)
    destination = match.group(3) or match.group(4)
    return make_route(origin, destination, ctx.config)


def _build_destination(match, ctx):
    destination = _resolve_endpoint(match.group(1), ctx.config)
    return Route("", destination) if destination else None


def _labelled_pair(departure_label, arrival_label):
    endpoint = r'\s*:?\s*(?:([A-Z]{3})\b|[^()]{0,60}?\(([A-Z]{3})\))'
    return re.compile(departure_label + endpoint + r'.{0,300}?' + arrival_label + endpoint)


# Vendor layouts that label the two airports separately
_LABELLED_ROUTES = (
    ('route_from_to', r'\b(?:From|FROM)\s*:', r'\b(?:To|TO)\s*:'),
    ('route_departure_arrival_airport', r'(?i:departure\s+airport)', r'(?i:arrival\s+airport)'),
    ('route_departure_arrival', r'(?i:\bdeparture)\s*:', r'(?i:\barrival)\s*:'),
    ('route_salida_llegada', r'(?i:\bsalida)', r'(?i:\bllegada)'),
    ('route_otkuda_kuda', r'(?i:\bоткуда)', r'(?i:\bкуда)'),
    ('route_partenza_arrivo', r'(?i:\bpartenza)', r'(?i:\barrivo)'),
    ('route_wylot_przylot', r'(?i:\bwylot)', r'(?i:\bprzylot)'),
    ('route_abflug_ankunft', r'(?i:\babflug)', r'(?i:\bankunft)'),
)

_GENERIC_ROUTE_RULES = (
    # LGW → BCN, LGW-BCN, LGW to BCN
    Rule('route_iata_pair', FactCategory.ROUTE,
         re.compile(rf'\b([A-Z]{{3}})\s?{_SEPARATOR}\s?([A-Z]{{3}})\b'),
         _build_pair, tier=1),
    # London Gatwick (LGW) → Barcelona (BCN)
    Rule('route_parenthesized_pair', FactCategory.ROUTE,
         re.compile(rf'\(([A-Z]{{3}})\)\s?{_SEPARATOR}\s?[^()]{{0,60}}?\(([A-Z]{{3}})\)'),
         _build_pair, tier=1),
) + tuple(
    Rule(name, FactCategory.ROUTE, _labelled_pair(departure, arrival), _build_labelled_pair, tier=2)
    for name, departure, arrival in _LABELLED_ROUTES
) + (
    # "(→ MXP)": destination only, origin left for the return-flight pass
    Rule('route_destination_code', FactCategory.ROUTE,
         re.compile(r'(?<![A-Z]{3})(?<![A-Z]{3} )(?:→|->)\s?([A-Z]{3})\b'),
         _build_destination, tier=4),
    # "PC 398 to MXP", "arriving at MXP"; never the tail of "LGW to MXP"
    Rule('route_destination_word', FactCategory.ROUTE,
         re.compile(r'(?<![A-Z]{3} )(?<![A-Z]{3}\) )\b(?:[Tt]o|[Aa]rriving(?:\s+(?:at|in))?)\s+([A-Z]{3})\b'),
         _build_destination, tier=4),
)


def _city_rules(config):
    names = sorted(config.city_names, key=lambda n: (-len(n), n))
    cities = '|'.join(re.escape(name) for name in names)
    return (
        # Milan → Istanbul, Москва - Стамбул
        Rule('route_city_pair', FactCategory.ROUTE,
             re.compile(rf'(?<!\w)({cities})\s?{_SEPARATOR}\s?({cities})(?!\w)', re.IGNORECASE),
             _build_pair, tier=3),
        Rule('route_destination_city', FactCategory.ROUTE,
             re.compile(rf'(?<!{_LETTER})(?<!{_LETTER} )(?:→|->)\s?({cities})(?!\w)', re.IGNORECASE),
             _build_destination, tier=4),
    )


# ============================================================================
# DATE RULES
# ============================================================================

def _date_value(year, month, day, ctx, year_inferred=False):
    if not is_valid_flight_year(year, ctx.email_year, ctx.config.year_tolerance):
        return None
    iso = to_iso(year, month, day)
    return DateValue(iso, year_inferred) if iso else None


def _build_named_date(match, ctx):
    parts = match.groupdict()
    month = parts['month']
    month = int(month) if month.isdigit() else lookup_month(month)
    if not month:
        return None
    day = int(parts['day'])

    if parts.get('year'):
        return _date_value(expand_year(parts['year']), month, day, ctx)

    # No year in the text: take it from the Date: header
    if ctx.email_year is None:
        return None
    return _date_value(ctx.email_year, month, day, ctx, year_inferred=True)


def _build_numeric_date(match, ctx):
    """DD/MM/YYYY, read as MM/DD/YYYY only when day-first is impossible."""
    day, month = int(match.group('day')), int(match.group('month'))
    year = expand_year(match.group('year'))
    value = _date_value(year, month, day, ctx)
    if value is None and to_iso(year, month, day) is None:
        value = _date_value(year, day, month, ctx)
    return value


def _month_rule(name, language, template):
    months = month_alternation(language)
    return Rule(name, FactCategory.DATE,
                re.compile(template.replace('MONTHS', months), re.IGNORECASE),
                _build_named_date)


# Stops a year-less rule from firing on text that does carry a year
_NO_YEAR_AFTER = r'(?!\.?,?\s?(?:de\s|del\s)?\d{2,4}(?![\d:]))'

_DAY_MONTH_YEAR = r'(?<!\w)(?P<day>\d{1,2})\s(?P<month>MONTHS)\.?\s(?P<year>\d{4})(?!\d)'

_DATE_RULES = (
    # 2026-03-10 (also the date part of 2026-03-10T08:15)
    Rule('date_iso', FactCategory.DATE,
         re.compile(r'(?<!\d)(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})(?!\d)'),
         _build_named_date),
    # 10/03/2026, 10.03.2026, 10-03-2026
    Rule('date_numeric', FactCategory.DATE,
         re.compile(r'(?<![\d./-])(?P<day>\d{1,2})(?P<sep>[./-])(?P<month>\d{1,2})(?P=sep)(?P<year>\d{4})(?!\d)'),
         _build_numeric_date),
    # 2027年3月5日
    Rule('date_japanese', FactCategory.DATE,
         re.compile(r'(?P<year>\d{4})\s?年\s?(?P<month>\d{1,2})\s?月\s?(?P<day>\d{1,2})\s?日'),
         _build_named_date),
    # 2027년 9월 25일
    Rule('date_korean', FactCategory.DATE,
         re.compile(r'(?P<year>\d{4})\s?년\s?(?P<month>\d{1,2})\s?월\s?(?P<day>\d{1,2})\s?일'),
         _build_named_date),
    # 10 March 2026, 10th of Mar 26, Sun 10 Mar, 2026
    _month_rule('date_english_day_month', 'en',
                r'(?<!\w)(?P<day>\d{1,2})(?:st|nd|rd|th)?\s(?:of\s)?(?P<month>MONTHS)\.?,?\s'
                r'(?P<year>\d{4}|\d{2})(?![\d:])'),
    # March 10, 2026
    _month_rule('date_english_month_day', 'en',
                r'(?<!\w)(?P<month>MONTHS)\.?\s(?P<day>\d{1,2})(?:st|nd|rd|th)?,?\s(?P<year>\d{4})(?!\d)'),
    # 10MAR26 (GDS itineraries)
    Rule('date_gds', FactCategory.DATE,
         re.compile(rf'(?<!\w)(?P<day>\d{{2}})(?P<month>{_MONTH_ABBREVIATIONS})(?P<year>\d{{2}})(?!\w)'),
         _build_named_date),
    # 10 марта 2026 г.
    _month_rule('date_russian', 'ru', _DAY_MONTH_YEAR),
    # 10 marzo 2026
    _month_rule('date_italian', 'it', _DAY_MONTH_YEAR),
    # 12 de noviembre de 2026
    _month_rule('date_spanish', 'es',
                r'(?<!\w)(?P<day>\d{1,2})\s(?:de\s)?(?P<month>MONTHS)\.?\s(?:de\s|del\s)?(?P<year>\d{4})(?!\d)'),
    # 10 marca 2026
    _month_rule('date_polish', 'pl', _DAY_MONTH_YEAR),
    # 10 Μαρτίου 2026
    _month_rule('date_greek', 'el', _DAY_MONTH_YEAR),
    # 10. März 2026
    _month_rule('date_german', 'de',
                r'(?<!\w)(?P<day>\d{1,2})\.\s?(?P<month>MONTHS)\s(?P<year>\d{4})(?!\d)'),
    # 10/03/26, 10.03.26
    Rule('date_numeric_short_year', FactCategory.DATE,
         re.compile(r'(?<![\d./-])(?P<day>\d{1,2})(?P<sep>[./])(?P<month>\d{1,2})(?P=sep)(?P<year>\d{2})(?![\d./-])'),
         _build_numeric_date),
    # Year-less forms, year taken from the Date: header: "Sun, 10 Mar", "10 марта"
    Rule('date_day_month_no_year', FactCategory.DATE,
         re.compile(rf'(?<![\w./-])(?P<day>\d{{1,2}})(?:st|nd|rd|th)?\s(?:de\s|of\s)?'
                    rf'(?P<month>{month_alternation()})(?!\w){_NO_YEAR_AFTER}', re.IGNORECASE),
         _build_named_date),
    # "March 10"
    Rule('date_month_day_no_year', FactCategory.DATE,
         re.compile(rf'(?<!\w)(?P<month>{month_alternation("en")})\.?\s(?P<day>\d{{1,2}})(?:st|nd|rd|th)?'
                    rf'(?!\w){_NO_YEAR_AFTER}', re.IGNORECASE),
         _build_named_date),
)


# ============================================================================
# PASSENGER NAME RULES
# ============================================================================

# Salutations that are not a name ("Dear Customer")
_GENERIC_NAMES = {
    'customer', 'passenger', 'passengers', 'sir', 'madam', 'guest', 'client',
    'traveller', 'traveler', 'member', 'friend', 'all', 'team',
    'details', 'information', 'name', 'names',
    'cliente', 'pasajero', 'passeggero', 'клиент', 'пассажир', 'kliencie',
}

# Words that end a name run ("JOHN SMITH Flight U2 3847")
_NAME_STOPWORDS = {
    'flight', 'booking', 'seat', 'date', 'from', 'to', 'your', 'thank',
    'thanks', 'we', 'the', 'reservation', 'confirmation', 'ticket', 'class',
    'adult', 'child', 'infant', 'departure', 'arrival', 'return',
}

_NAME_WORD = r"[A-ZА-ЯЁ][A-Za-zА-Яа-яЁё'\-]+"


def _clean_name(name):
    words = []
    for word in name.split():
        if word.lower().strip('.,:') in _NAME_STOPWORDS:
            break
        words.append(word)
    return ' '.join(words)


def is_valid_passenger_name(name):
    """A passenger name needs 4+ characters, no digits and a real name."""
    if not name or len(name) < 4:
        return False
    if any(c.isdigit() for c in name):
        return False
    first_word = name.split()[0].lower().strip('.,')
    return first_word not in _GENERIC_NAMES


def _build_passenger_name(match, ctx):
    name = _clean_name(match.group('name'))
    return name if is_valid_passenger_name(name) else None


def _build_itinerary_name(match, ctx):
    name = match.group('name')
    last, first = name.split()[0].split('/', 1)
    # LGW/BCN, EUR/USD
    if len(last) <= 3 and len(first) <= 3:
        return None
    return name if is_valid_passenger_name(name) else None


_PASSENGER_RULES = (
    # Passenger: John Smith / Пассажир: Иван Петров
    Rule('passenger_keyword', FactCategory.PASSENGER_NAME,
         re.compile(r'(?i:passenger\s*name|passengers?|pasajero|passager|passeggero|пассажир|travell?er)'
                    rf'\s*(?:\(s\))?\s*:?\s*(?P<name>{_NAME_WORD}(?:\s{_NAME_WORD}){{0,2}})'),
         _build_passenger_name),
    # Dear Mr Smith / Уважаемый Иван
    Rule('passenger_salutation', FactCategory.PASSENGER_NAME,
         re.compile(r'(?i:dear|уважаемый|уважаемая|estimado|estimada|gentile|szanowny|szanowna)\s+'
                    r'(?:(?i:mr|mrs|ms|miss|dr|sig|sr|sra|pan|pani)\.?\s+)?'
                    rf'(?P<name>{_NAME_WORD}(?:\s{_NAME_WORD})?)'),
         _build_passenger_name),
    # SMITH/JOHN MR
    Rule('passenger_itinerary', FactCategory.PASSENGER_NAME,
         re.compile(r'(?<![\w/])(?P<name>[A-Z]{2,}/[A-Z]{2,}(?:\s(?:MR|MRS|MS|MISS|MSTR))?)(?![\w/])'),
         _build_itinerary_name),
)


def build_rule_set(config):
    """Assemble the rule tables for a configuration.

    Only the city-name rules depend on the config (the alternation is built
    from its city table); everything else is compiled once at import.
    """
    route_rules = sorted(_GENERIC_ROUTE_RULES + _city_rules(config), key=lambda r: r.tier)
    return RuleSet(
        booking_ref=_BOOKING_RULES,
        flight_number=_FLIGHT_RULES,
        route=tuple(route_rules),
        date=_DATE_RULES,
        passenger_name=_PASSENGER_RULES,
    )
