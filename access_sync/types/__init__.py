"""Data models and fixed catalogs."""

from .catalogs import COUNTRIES, SUBSTANCES, parse_codes, unknown_countries
from .records import AccessRecord, AccessStatus, PersistedRow, utc_now

__all__ = [
    # Catalogs
    "COUNTRIES",
    "SUBSTANCES",
    "parse_codes",
    "unknown_countries",
    # Records
    "AccessRecord",
    "AccessStatus",
    "PersistedRow",
    "utc_now",
]
