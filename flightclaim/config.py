"""
Extractor configuration.

Lookup tables and tunables are bundled into one immutable ExtractorConfig
that is built once at import (DEFAULT_CONFIG) and handed to every stage.
Tests and callers can build their own with build_config() or load
overrides from a JSON file with load_config().
"""

import json
import logging
from dataclasses import dataclass, field, replace
from functools import cached_property
from pathlib import Path
from typing import FrozenSet, Mapping, Tuple

from .airlines import AIRLINE_ALIASES, AIRLINE_CODES, KNOWN_SENDER_DOMAINS
from .airports import (AIRPORT_NAMES, CITY_AIRPORTS, CITY_NAMES, FALSE_ROUTES,
                       VALID_AIRPORT_CODES)
from .rules import BOOKING_REF_DENYLIST, build_rule_set

logger = logging.getLogger(__name__)

# Default override file (can be overridden)
_DATA_DIR = Path(__file__).parent.parent
CONFIG_FILE = _DATA_DIR / "flightclaim.json"

# Confidence points per piece of evidence
SCORE_WEIGHTS = {
    'flight_number': 15,         # Candidate exists
    'booking_ref': 20,           # Email-scoped booking reference
    'airport_valid': 10,         # Endpoint is a known IATA code (per endpoint)
    'airport_unvalidated': 5,    # Endpoint is a bare city name (per endpoint)
    'date': 20,                  # Date with an explicit year
    'date_inferred_year': 15,    # Date whose year came from the Date: header
    'passenger_name': 5,
    'known_sender_domain': 10,
}

DEFAULT_CONTEXT_WINDOW = 800
DEFAULT_ACCEPTANCE_THRESHOLD = 30
DEFAULT_YEAR_TOLERANCE = 2


class ConfigError(ValueError):
    """Raised when an extractor configuration is not usable."""


@dataclass(frozen=True)
class ExtractorConfig:
    airline_codes: Mapping[str, str]
    airline_aliases: Mapping[str, str]
    airport_codes: FrozenSet[str]
    airport_names: Mapping[str, str]
    city_names: Mapping[str, str]
    city_airports: Mapping[str, Tuple[str, ...]]
    false_routes: FrozenSet[FrozenSet[str]]
    sender_domains: Tuple[str, ...]
    booking_ref_denylist: FrozenSet[str]
    weights: Mapping[str, int] = field(default_factory=lambda: dict(SCORE_WEIGHTS))
    context_window: int = DEFAULT_CONTEXT_WINDOW
    acceptance_threshold: int = DEFAULT_ACCEPTANCE_THRESHOLD
    year_tolerance: int = DEFAULT_YEAR_TOLERANCE

    @cached_property
    def rules(self):
        """Compiled rule tables for this configuration (built on first use)."""
        return build_rule_set(self)


def _validate(config):
    unknown = set(config.weights) - set(SCORE_WEIGHTS)
    if unknown:
        raise ConfigError(f"Unknown weight keys: {', '.join(sorted(unknown))}")
    for key, value in config.weights.items():
        if not isinstance(value, int) or value < 0:
            raise ConfigError(f"Weight '{key}' must be a non-negative integer, got {value!r}")
    if not isinstance(config.context_window, int) or config.context_window <= 0:
        raise ConfigError(f"context_window must be a positive integer, got {config.context_window!r}")
    if not isinstance(config.acceptance_threshold, int) or config.acceptance_threshold < 0:
        raise ConfigError(f"acceptance_threshold must be >= 0, got {config.acceptance_threshold!r}")
    if not isinstance(config.year_tolerance, int) or config.year_tolerance < 0:
        raise ConfigError(f"year_tolerance must be >= 0, got {config.year_tolerance!r}")
    return config


def _default_config():
    return ExtractorConfig(
        airline_codes=dict(AIRLINE_CODES),
        airline_aliases=dict(AIRLINE_ALIASES),
        airport_codes=frozenset(VALID_AIRPORT_CODES),
        airport_names=dict(AIRPORT_NAMES),
        city_names=dict(CITY_NAMES),
        city_airports=dict(CITY_AIRPORTS),
        false_routes=FALSE_ROUTES,
        sender_domains=tuple(KNOWN_SENDER_DOMAINS),
        booking_ref_denylist=frozenset(BOOKING_REF_DENYLIST),
    )


DEFAULT_CONFIG = _default_config()


def build_config(base=None, **overrides):
    """Return a new config with some fields replaced.

    Weight overrides are merged into the base weights rather than replacing
    the whole table.

    Args:
        base: Config to start from. Defaults to DEFAULT_CONFIG.
        **overrides: ExtractorConfig field values

    Returns:
        Validated ExtractorConfig

    Raises:
        ConfigError: On unknown fields or out-of-range values
    """
    if base is None:
        base = DEFAULT_CONFIG

    valid_fields = set(ExtractorConfig.__dataclass_fields__)
    unknown = set(overrides) - valid_fields
    if unknown:
        raise ConfigError(f"Unknown config fields: {', '.join(sorted(unknown))}")

    if 'weights' in overrides:
        overrides['weights'] = {**base.weights, **overrides['weights']}

    return _validate(replace(base, **overrides))


def _overrides_from_json(data):
    """Translate the JSON file layout into build_config() keyword arguments."""
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    overrides = {}
    for key in ('weights', 'context_window', 'acceptance_threshold', 'year_tolerance'):
        if key in data:
            overrides[key] = data[key]

    base = DEFAULT_CONFIG
    extra_airlines = data.get('extra_airline_codes')
    if extra_airlines:
        if isinstance(extra_airlines, list):
            extra_airlines = {code: code for code in extra_airlines}
        overrides['airline_codes'] = {
            **base.airline_codes,
            **{code.upper(): name for code, name in extra_airlines.items()},
        }

    extra_airports = data.get('extra_airport_codes')
    if extra_airports:
        overrides['airport_codes'] = base.airport_codes | {code.upper() for code in extra_airports}

    extra_domains = data.get('extra_sender_domains')
    if extra_domains:
        overrides['sender_domains'] = base.sender_domains + tuple(d.lower() for d in extra_domains)

    return overrides


def load_config(config_file=None):
    """Load configuration overrides from file with error handling.

    Args:
        config_file: Path to JSON config file. Defaults to flightclaim.json.

    Returns:
        ExtractorConfig. DEFAULT_CONFIG when the file is missing or invalid.
    """
    if config_file is None:
        config_file = CONFIG_FILE

    config_path = Path(config_file)
    if not config_path.exists():
        return DEFAULT_CONFIG

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        config = build_config(**_overrides_from_json(data))
        logger.debug(f"Loaded config overrides from {config_path}")
        return config

    except json.JSONDecodeError as e:
        logger.warning(f"{config_path} is corrupted, using defaults: {e}")
        return DEFAULT_CONFIG
    except (ConfigError, TypeError, AttributeError) as e:
        logger.warning(f"Invalid config in {config_path}, using defaults: {e}")
        return DEFAULT_CONFIG
    except OSError as e:
        logger.warning(f"Error loading config {config_path}: {e}")
        return DEFAULT_CONFIG
