"""
FlightClaim - flight details from airline and travel-agency emails.
"""

from .config import DEFAULT_CONFIG, ConfigError, ExtractorConfig, build_config, load_config
from .models import FlightRecord, RawEmail
from .parser import extract_email, extract_flight_records, process_emails

__version__ = "1.0.0"

__all__ = [
    'DEFAULT_CONFIG', 'ConfigError', 'ExtractorConfig', 'build_config', 'load_config',
    'FlightRecord', 'RawEmail',
    'extract_email', 'extract_flight_records', 'process_emails',
]
