"""
Airport codes and city names.

Handles loading the curated airport list and resolving the city names
(in several languages) that booking emails use instead of IATA codes.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Data file path (inside the package)
_DATA_DIR = Path(__file__).parent
AIRPORT_CODES_FILE = _DATA_DIR / "airport_codes.txt"

# Three-letter tokens that show up in email text but are never a route endpoint
EXCLUDED_CODES = {
    # Common words
    'THE', 'AND', 'FOR', 'ARE', 'BUT', 'NOT', 'YOU', 'ALL', 'CAN', 'HAD',
    'HER', 'WAS', 'ONE', 'OUR', 'OUT', 'DAY', 'GET', 'HAS', 'NEW', 'NOW',
    'AIR', 'FLY', 'VIA', 'PER', 'WEB', 'APP', 'URL', 'PDF', 'REF', 'TAX',
    # Days and months
    'MON', 'TUE', 'WED', 'THU', 'FRI', 'SAT', 'SUN',
    'JAN', 'FEB', 'MAR', 'APR', 'JUN', 'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC',
    # Currencies
    'EUR', 'USD', 'GBP', 'RUB', 'PLN', 'CHF', 'TRY',
}

# Used when the data file is missing
_FALLBACK_CODES = {
    'LHR', 'LGW', 'STN', 'LTN', 'MAN', 'DUB', 'FRA', 'MUC', 'BER', 'DUS',
    'FCO', 'MXP', 'BGY', 'LIN', 'VCE', 'NAP', 'MAD', 'BCN', 'PMI', 'AGP',
    'CDG', 'ORY', 'AMS', 'BRU', 'VIE', 'ZRH', 'PRG', 'BUD', 'WAW', 'CPH',
    'ARN', 'OSL', 'HEL', 'RIX', 'ATH', 'LIS', 'OPO', 'IST', 'SAW', 'AYT',
    'SVO', 'LED', 'DXB', 'DOH', 'BKK', 'HKT', 'USM', 'SIN', 'NRT', 'JFK',
    'SFO', 'ORD', 'LAX', 'EWR', 'ATL', 'LAS', 'PHX', 'FLL',
}

# City and airport names as written in emails -> canonical English name.
# Keys are lower case. Covers English, Russian, Italian, Spanish, Polish,
# Greek and German spellings.
CITY_NAMES = {
    # English
    'london': 'London', 'paris': 'Paris', 'berlin': 'Berlin', 'rome': 'Rome',
    'milan': 'Milan', 'madrid': 'Madrid', 'barcelona': 'Barcelona',
    'amsterdam': 'Amsterdam', 'frankfurt': 'Frankfurt', 'munich': 'Munich',
    'vienna': 'Vienna', 'prague': 'Prague', 'budapest': 'Budapest',
    'warsaw': 'Warsaw', 'dublin': 'Dublin', 'brussels': 'Brussels',
    'lisbon': 'Lisbon', 'porto': 'Porto', 'athens': 'Athens',
    'stockholm': 'Stockholm', 'copenhagen': 'Copenhagen', 'oslo': 'Oslo',
    'helsinki': 'Helsinki', 'riga': 'Riga', 'istanbul': 'Istanbul',
    'antalya': 'Antalya', 'moscow': 'Moscow', 'st petersburg': 'St Petersburg',
    'bangkok': 'Bangkok', 'phuket': 'Phuket', 'singapore': 'Singapore',
    'dubai': 'Dubai', 'doha': 'Doha', 'tokyo': 'Tokyo', 'venice': 'Venice',
    'naples': 'Naples', 'palma': 'Palma', 'malaga': 'Malaga',
    'manchester': 'Manchester', 'zurich': 'Zurich', 'geneva': 'Geneva',
    'new york': 'New York', 'san francisco': 'San Francisco',
    # Airport names that also read like places
    'gatwick': 'Gatwick', 'stansted': 'Stansted', 'luton': 'Luton',
    'heathrow': 'Heathrow', 'bergamo': 'Bergamo', 'malpensa': 'Malpensa',
    'linate': 'Linate', 'ciampino': 'Ciampino', 'fiumicino': 'Fiumicino',
    'beauvais': 'Beauvais', 'orly': 'Orly', 'charleroi': 'Charleroi',
    'hahn': 'Hahn', 'skavsta': 'Skavsta', 'treviso': 'Treviso',
    'reus': 'Reus', 'torp': 'Torp', 'sabiha gokcen': 'Sabiha Gokcen',
    # Russian
    'лондон': 'London', 'париж': 'Paris', 'берлин': 'Berlin', 'рим': 'Rome',
    'милан': 'Milan', 'мадрид': 'Madrid', 'барселона': 'Barcelona',
    'амстердам': 'Amsterdam', 'франкфурт': 'Frankfurt', 'мюнхен': 'Munich',
    'вена': 'Vienna', 'прага': 'Prague', 'будапешт': 'Budapest',
    'варшава': 'Warsaw', 'стамбул': 'Istanbul', 'анталья': 'Antalya',
    'москва': 'Moscow', 'санкт-петербург': 'St Petersburg',
    'бангкок': 'Bangkok', 'пхукет': 'Phuket', 'дубай': 'Dubai',
    'афины': 'Athens', 'лиссабон': 'Lisbon',
    # Italian
    'londra': 'London', 'parigi': 'Paris', 'roma': 'Rome', 'milano': 'Milan',
    'barcellona': 'Barcelona', 'monaco di baviera': 'Munich',
    'praga': 'Prague', 'varsavia': 'Warsaw',
    'bruxelles': 'Brussels', 'lisbona': 'Lisbon', 'atene': 'Athens',
    'venezia': 'Venice', 'napoli': 'Naples',
    # Spanish
    'londres': 'London', 'parís': 'Paris', 'milán': 'Milan',
    'ámsterdam': 'Amsterdam', 'fráncfort': 'Frankfurt', 'múnich': 'Munich',
    'viena': 'Vienna', 'varsovia': 'Warsaw', 'bruselas': 'Brussels',
    'lisboa': 'Lisbon', 'atenas': 'Athens', 'estambul': 'Istanbul',
    'moscú': 'Moscow', 'palma de mallorca': 'Palma', 'málaga': 'Malaga',
    # Polish
    'londyn': 'London', 'paryż': 'Paris', 'rzym': 'Rome', 'mediolan': 'Milan',
    'monachium': 'Munich', 'wiedeń': 'Vienna',
    'warszawa': 'Warsaw', 'kraków': 'Krakow', 'krakow': 'Krakow',
    'gdańsk': 'Gdansk', 'gdansk': 'Gdansk', 'ateny': 'Athens',
    # Greek
    'αθήνα': 'Athens', 'λονδίνο': 'London', 'παρίσι': 'Paris',
    'ρώμη': 'Rome', 'μιλάνο': 'Milan', 'θεσσαλονίκη': 'Thessaloniki',
    # German
    'mailand': 'Milan', 'rom': 'Rome', 'wien': 'Vienna', 'prag': 'Prague',
    'warschau': 'Warsaw', 'brüssel': 'Brussels', 'lissabon': 'Lisbon',
    'münchen': 'Munich', 'köln': 'Cologne',
}

# Canonical city name -> airports serving it
CITY_AIRPORTS = {
    'London': ('LHR', 'LGW', 'STN', 'LTN', 'LCY', 'SEN'),
    'Paris': ('CDG', 'ORY', 'BVA'),
    'Berlin': ('BER',),
    'Rome': ('FCO', 'CIA'),
    'Milan': ('MXP', 'LIN', 'BGY'),
    'Madrid': ('MAD',),
    'Barcelona': ('BCN',),
    'Amsterdam': ('AMS',),
    'Frankfurt': ('FRA', 'HHN'),
    'Munich': ('MUC',),
    'Vienna': ('VIE',),
    'Prague': ('PRG',),
    'Budapest': ('BUD',),
    'Warsaw': ('WAW', 'WMI'),
    'Dublin': ('DUB',),
    'Brussels': ('BRU', 'CRL'),
    'Lisbon': ('LIS',),
    'Porto': ('OPO',),
    'Athens': ('ATH',),
    'Stockholm': ('ARN', 'NYO', 'BMA'),
    'Copenhagen': ('CPH',),
    'Oslo': ('OSL', 'TRF'),
    'Helsinki': ('HEL',),
    'Riga': ('RIX',),
    'Istanbul': ('IST', 'SAW'),
    'Antalya': ('AYT',),
    'Moscow': ('SVO', 'DME', 'VKO'),
    'St Petersburg': ('LED',),
    'Bangkok': ('BKK', 'DMK'),
    'Phuket': ('HKT',),
    'Singapore': ('SIN',),
    'Dubai': ('DXB', 'DWC'),
    'Doha': ('DOH',),
    'Tokyo': ('NRT', 'HND'),
    'Venice': ('VCE', 'TSF'),
    'Naples': ('NAP',),
    'Palma': ('PMI',),
    'Malaga': ('AGP',),
    'Manchester': ('MAN',),
    'Zurich': ('ZRH',),
    'Geneva': ('GVA',),
    'Krakow': ('KRK',),
    'Gdansk': ('GDN',),
    'Thessaloniki': ('SKG',),
    'Cologne': ('CGN',),
    'New York': ('JFK', 'EWR', 'LGA'),
    'San Francisco': ('SFO',),
    'Gatwick': ('LGW',),
    'Stansted': ('STN',),
    'Luton': ('LTN',),
    'Heathrow': ('LHR',),
    'Bergamo': ('BGY',),
    'Malpensa': ('MXP',),
    'Linate': ('LIN',),
    'Ciampino': ('CIA',),
    'Fiumicino': ('FCO',),
    'Beauvais': ('BVA',),
    'Orly': ('ORY',),
    'Charleroi': ('CRL',),
    'Hahn': ('HHN',),
    'Skavsta': ('NYO',),
    'Treviso': ('TSF',),
    'Reus': ('REU',),
    'Torp': ('TRF',),
    'Sabiha Gokcen': ('SAW',),
}

# Airports whose own name reads like "City-Place" and would otherwise be
# picked up as a route (Milan-Bergamo, London-Gatwick, ...)
FALSE_ROUTES = frozenset(frozenset(pair) for pair in [
    ('Milan', 'Bergamo'), ('Milan', 'Malpensa'), ('Milan', 'Linate'),
    ('London', 'Gatwick'), ('London', 'Stansted'), ('London', 'Luton'),
    ('London', 'Heathrow'), ('Paris', 'Beauvais'), ('Paris', 'Orly'),
    ('Frankfurt', 'Hahn'), ('Stockholm', 'Skavsta'), ('Barcelona', 'Reus'),
    ('Venice', 'Treviso'), ('Oslo', 'Torp'), ('Brussels', 'Charleroi'),
    ('Rome', 'Ciampino'), ('Rome', 'Fiumicino'), ('Istanbul', 'Sabiha Gokcen'),
])


def resolve_city_name(name, city_names=None):
    """Resolve a city spelling (any supported language) to its English name.

    Args:
        name: City name string (case insensitive)
        city_names: Alias table, defaults to CITY_NAMES

    Returns:
        Canonical city name or None if not found
    """
    if not name:
        return None
    if city_names is None:
        city_names = CITY_NAMES
    normalized = ' '.join(name.lower().split())
    return city_names.get(normalized)


def is_false_route(origin, destination, false_routes=None):
    """Check if an origin/destination pair is really one airport's name."""
    if not origin or not destination:
        return False
    if origin.casefold() == destination.casefold():
        return True
    if false_routes is None:
        false_routes = FALSE_ROUTES
    return frozenset((origin, destination)) in false_routes


def same_place(a, b, city_airports=None):
    """Check if two route endpoints name the same place.

    Handles a city name on one side and one of its airport codes on the other
    ("Milan" vs "MXP").
    """
    if not a or not b:
        return False
    if a.casefold() == b.casefold():
        return True
    if city_airports is None:
        city_airports = CITY_AIRPORTS
    return a.upper() in city_airports.get(b, ()) or b.upper() in city_airports.get(a, ())


def load_airport_codes(codes_file=None):
    """Load valid airport codes and names from file.

    Args:
        codes_file: Path to airport codes file. Defaults to airport_codes.txt.

    Returns:
        Tuple of (codes set, names dict)
    """
    if codes_file is None:
        codes_file = AIRPORT_CODES_FILE

    codes = set()
    names = {}

    try:
        with open(codes_file, 'r', encoding='utf-8', errors='ignore') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#') or ',' not in line:
                    continue
                code, name = line.split(',', 1)
                code = code.strip().upper()
                if len(code) == 3 and code.isalpha():
                    codes.add(code)
                    if name.strip():
                        names[code] = name.strip()
    except OSError as e:
        logger.warning(f"Could not read airport codes from {codes_file}: {e}")

    # Fallback to common codes if the file is missing or empty
    if not codes:
        codes = _FALLBACK_CODES.copy()

    return codes, names


def _initialize():
    """Initialize module-level data."""
    all_codes, names = load_airport_codes()
    return frozenset(all_codes - EXCLUDED_CODES), names


# Module-level initialized data
VALID_AIRPORT_CODES, AIRPORT_NAMES = _initialize()


def get_airport_display(code, airport_names=None):
    """Get display string for airport code, e.g. "FRA (Frankfurt)"."""
    if airport_names is None:
        airport_names = AIRPORT_NAMES
    name = airport_names.get(code, "")
    if name:
        return f"{code} ({name})"
    return code
