"""
Month-name tables and date helpers for the date rules.

Every date rule ends up here to turn (year, month, day) into the one
canonical YYYY-MM-DD string, whatever language the email was written in.
"""

from datetime import date

# Month names per language, lower case, including the genitive forms used
# after a day number ("10 марта", "10 marca") and common abbreviations.
MONTH_NAMES = {
    'en': {
        'january': 1, 'jan': 1, 'february': 2, 'feb': 2, 'march': 3, 'mar': 3,
        'april': 4, 'apr': 4, 'may': 5, 'june': 6, 'jun': 6, 'july': 7, 'jul': 7,
        'august': 8, 'aug': 8, 'september': 9, 'sept': 9, 'sep': 9,
        'october': 10, 'oct': 10, 'november': 11, 'nov': 11,
        'december': 12, 'dec': 12,
    },
    'ru': {
        'января': 1, 'янв': 1, 'февраля': 2, 'фев': 2, 'марта': 3, 'мар': 3,
        'апреля': 4, 'апр': 4, 'мая': 5, 'май': 5, 'июня': 6, 'июн': 6,
        'июля': 7, 'июл': 7, 'августа': 8, 'авг': 8, 'сентября': 9, 'сент': 9,
        'сен': 9, 'октября': 10, 'окт': 10, 'ноября': 11, 'нояб': 11, 'ноя': 11,
        'декабря': 12, 'дек': 12,
    },
    'it': {
        'gennaio': 1, 'gen': 1, 'febbraio': 2, 'feb': 2, 'marzo': 3, 'mar': 3,
        'aprile': 4, 'apr': 4,
        'maggio': 5, 'mag': 5, 'giugno': 6, 'giu': 6, 'luglio': 7, 'lug': 7,
        'agosto': 8, 'ago': 8, 'settembre': 9, 'sett': 9,
        'ottobre': 10, 'ott': 10, 'novembre': 11, 'nov': 11, 'dicembre': 12,
        'dic': 12,
    },
    'es': {
        'enero': 1, 'ene': 1, 'febrero': 2, 'feb': 2, 'marzo': 3, 'mar': 3,
        'abril': 4, 'abr': 4, 'mayo': 5, 'may': 5, 'junio': 6, 'jun': 6,
        'julio': 7, 'jul': 7, 'agosto': 8, 'ago': 8, 'septiembre': 9,
        'setiembre': 9, 'sep': 9, 'octubre': 10, 'oct': 10, 'noviembre': 11,
        'nov': 11, 'diciembre': 12, 'dic': 12,
    },
    'pl': {
        'stycznia': 1, 'lutego': 2, 'marca': 3, 'kwietnia': 4, 'maja': 5,
        'czerwca': 6, 'lipca': 7, 'sierpnia': 8, 'września': 9,
        'października': 10, 'listopada': 11, 'grudnia': 12,
    },
    'el': {
        'ιανουαρίου': 1, 'φεβρουαρίου': 2, 'μαρτίου': 3, 'απριλίου': 4,
        'μαΐου': 5, 'ιουνίου': 6, 'ιουλίου': 7, 'αυγούστου': 8,
        'σεπτεμβρίου': 9, 'οκτωβρίου': 10, 'νοεμβρίου': 11, 'δεκεμβρίου': 12,
    },
    'de': {
        'januar': 1, 'februar': 2, 'märz': 3, 'april': 4, 'mai': 5, 'juni': 6,
        'juli': 7, 'august': 8, 'september': 9, 'oktober': 10, 'november': 11,
        'dezember': 12,
    },
}

_ALL_MONTHS = {}
for _table in MONTH_NAMES.values():
    _ALL_MONTHS.update(_table)


def month_alternation(*languages):
    """Regex alternation of month names for the given languages.

    Longest names come first so "sept" wins over "sep".
    """
    if not languages:
        languages = tuple(MONTH_NAMES)
    names = set()
    for lang in languages:
        names.update(MONTH_NAMES[lang])
    return '|'.join(sorted(names, key=lambda n: (-len(n), n)))


def lookup_month(name):
    """Month number for a month name in any supported language, or None."""
    if not name:
        return None
    return _ALL_MONTHS.get(name.lower().rstrip('.'))


def expand_year(year_text):
    """Turn a 2- or 4-digit year string into a full year (26 -> 2026)."""
    year = int(year_text)
    if len(year_text) <= 2:
        year += 2000
    return year


def to_iso(year, month, day):
    """Return YYYY-MM-DD, or None when the parts are not a real date."""
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except (ValueError, TypeError):
        return None


def is_valid_flight_year(year, email_year=None, tolerance=2):
    """Check if a year is reasonable for a flight date.

    Must be within ±tolerance years of when the email was sent. Without a
    Date: header any year in 2000-2099 is accepted.
    """
    if email_year is None:
        return 2000 <= year <= 2099
    return (email_year - tolerance) <= year <= (email_year + tolerance)
