"""
Zones Core - Time Zone Selection.

Lists selectable zones and maps a country to a zone, the last step of
location based zone detection (location -> country code -> zone).
"""

import logging

import pytz

from clock.angle_mapper import resolve_zone

logger = logging.getLogger(__name__)


def available_zones() -> list[str]:
    """Returns all known zone identifiers, sorted."""
    return sorted(pytz.all_timezones)


def validate_zone(zone_id: str) -> str:
    """
    Returns the trimmed zone id if it resolves.

    Raises:
        InvalidZoneError: The zone is unknown
    """
    resolve_zone(zone_id)
    return zone_id.strip()


def zone_for_country(country_code: str) -> str | None:
    """
    Returns the first zone listed for an ISO 3166 country code.

    Returns:
        Zone identifier, or None for an unknown code
    """
    code = (country_code or "").strip().upper()
    if len(code) != 2:
        return None
    try:
        zones = pytz.country_timezones[code]
    except KeyError:
        logger.debug(f"No time zones for country code {code!r}")
        return None
    return zones[0] if zones else None
