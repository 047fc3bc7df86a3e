"""
Airline codes and sender domains.

Used to validate flight-number prefixes and to recognise mail that comes
straight from an airline or an online travel agency.
"""

# Airline IATA codes (2-character) accepted as flight-number prefixes
AIRLINE_CODES = {
    # European low-cost
    'FR': 'Ryanair',
    'U2': 'easyJet',
    'W6': 'Wizz Air',
    'W4': 'Wizz Air Malta',
    'VY': 'Vueling',
    'PC': 'Pegasus Airlines',
    'HV': 'Transavia',
    'DY': 'Norwegian',
    'D8': 'Norwegian Air International',
    'LS': 'Jet2',
    'BY': 'TUI Airways',
    'X3': 'TUIfly',
    'EW': 'Eurowings',
    'V7': 'Volotea',
    'I2': 'Iberia Express',
    'XQ': 'SunExpress',
    'BT': 'airBaltic',
    'FY': 'Firefly',
    # European full-service
    'LH': 'Lufthansa',
    'BA': 'British Airways',
    'AF': 'Air France',
    'KL': 'KLM',
    'IB': 'Iberia',
    'AZ': 'ITA Airways',
    'LX': 'Swiss',
    'OS': 'Austrian Airlines',
    'SN': 'Brussels Airlines',
    'SK': 'SAS',
    'AY': 'Finnair',
    'TP': 'TAP Air Portugal',
    'LO': 'LOT Polish Airlines',
    'OK': 'Czech Airlines',
    'A3': 'Aegean Airlines',
    'EI': 'Aer Lingus',
    'UX': 'Air Europa',
    'TK': 'Turkish Airlines',
    'PG': 'Bangkok Airways',
    # Russia / CIS
    'SU': 'Aeroflot',
    'S7': 'S7 Airlines',
    'DP': 'Pobeda',
    'U6': 'Ural Airlines',
    # Middle East
    'EK': 'Emirates',
    'QR': 'Qatar Airways',
    'EY': 'Etihad Airways',
    'FZ': 'flydubai',
    'G9': 'Air Arabia',
    # Asia
    'TG': 'Thai Airways',
    'SQ': 'Singapore Airlines',
    'CX': 'Cathay Pacific',
    'NH': 'ANA',
    'JL': 'Japan Airlines',
    'KE': 'Korean Air',
    'OZ': 'Asiana Airlines',
    'CA': 'Air China',
    'MU': 'China Eastern',
    'CZ': 'China Southern',
    'AI': 'Air India',
    'AK': 'AirAsia',
    # North America
    'UA': 'United',
    'AA': 'American Airlines',
    'DL': 'Delta',
    'WN': 'Southwest',
    'B6': 'JetBlue',
    'AS': 'Alaska Airlines',
    'AC': 'Air Canada',
    'WS': 'WestJet',
    'AM': 'Aeromexico',
    # Other
    'LA': 'LATAM',
    'QF': 'Qantas',
    'ET': 'Ethiopian Airlines',
    'MS': 'EgyptAir',
    'AT': 'Royal Air Maroc',
}

# Prefixes that appear in emails but are not the IATA code
AIRLINE_ALIASES = {
    'EZY': 'U2',  # easyJet ICAO
    'EJU': 'U2',  # easyJet Europe ICAO
}

# Airline and OTA domains that send genuine booking confirmations
KNOWN_SENDER_DOMAINS = [
    # Airlines
    'ryanair.com', 'easyjet.com', 'wizzair.com', 'lufthansa.com',
    'vueling.com', 'flypgs.com', 'airfrance.com', 'airfrance.fr',
    'klm.com', 'britishairways.com', 'iberia.com', 'turkishairlines.com',
    'aegeanair.com', 'transavia.com', 'norwegian.com', 'united.com',
    # Booking sites
    'trip.com', 'booking.com', 'expedia.com', 'kiwi.com', 'edreams.com',
    'opodo.com', 'lastminute.com',
    # Russian OTAs
    'travel.yandex.ru', 'aviasales.ru',
]

# Codes that share their shape with clock times ("10 AM", "7 PM")
TIME_LIKE_CODES = frozenset({'AM', 'PM'})

# Codes whose long "flight numbers" are usually order/receipt numbers
RECEIPT_PRONE_CODES = frozenset({'CA', 'AM', 'LA', 'AD'})


def canonical_airline_code(code, aliases=None):
    """Resolve a flight-number prefix to its 2-character IATA code.

    Args:
        code: Prefix as it appeared in the email ("EZY", "u2", "LH")
        aliases: Alias table, defaults to AIRLINE_ALIASES

    Returns:
        Upper-case canonical code (may still be unknown to AIRLINE_CODES)
    """
    if not code:
        return ""
    if aliases is None:
        aliases = AIRLINE_ALIASES
    code = code.strip().upper()
    return aliases.get(code, code)


def sender_domain(from_addr):
    """Pull the domain out of a From: header value.

    "easyJet <booking@mail.easyjet.com>" -> "mail.easyjet.com"
    """
    if not from_addr:
        return ""
    addr = from_addr.strip()
    if '<' in addr and '>' in addr:
        addr = addr[addr.rfind('<') + 1:addr.rfind('>')]
    if '@' not in addr:
        return ""
    return addr.rsplit('@', 1)[1].strip().strip('>').lower()


def is_known_sender(from_addr, domains=None):
    """Check if the sender's domain is (a subdomain of) a listed domain."""
    domain = sender_domain(from_addr)
    if not domain:
        return False
    if domains is None:
        domains = KNOWN_SENDER_DOMAINS
    for known in domains:
        if domain == known or domain.endswith('.' + known):
            return True
    return False
