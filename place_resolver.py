# Turns a free-text place name into a single coordinate using the geocoding adapter.

import logging
import re

from api_adapters import ApiAdapter, TransportError
from api_structures import (FailureReason, GeocodeMatch, GeoPoint, ResolutionFailure,
                            ResolvedPlace, is_valid_coordinate)

logger = logging.getLogger(__name__)

PREFERRED_KIND = "city"


def pick_match(matches: list[GeocodeMatch]) -> GeocodeMatch | None:
    """Prefers the first city-typed match, falling back to the first match overall."""
    if not matches:
        return None
    for match in matches:
        if match.kind == PREFERRED_KIND:
            return match
    return matches[0]


# Plain decimal or exponent notation, as parseFloat would read a whole string.
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_coordinate(raw) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str) and not _NUMBER.fullmatch(raw):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_point(match: GeocodeMatch) -> GeoPoint | None:
    lat = _parse_coordinate(match.raw_lat)
    lon = _parse_coordinate(match.raw_lon)
    if lat is None or lon is None or not is_valid_coordinate(lat, lon):
        return None
    return GeoPoint(lat=lat, lon=lon)


def resolve(query: str, api_adapter: ApiAdapter) -> ResolvedPlace | ResolutionFailure:
    """
    Resolves one place name. Never raises: every failure comes back as a
    ResolutionFailure so the session can collect the outcome for each place.
    """
    try:
        matches = api_adapter.search_places(query)
    except TransportError as e:
        logger.warning("Geocoding '%s' failed: %s", query, e)
        return ResolutionFailure(query=query, reason=FailureReason.TRANSPORT)

    match = pick_match(matches)
    if match is None:
        logger.info("No geocoding matches for '%s'", query)
        return ResolutionFailure(query=query, reason=FailureReason.NO_MATCH)

    point = parse_point(match)
    if point is None:
        logger.warning("Invalid coordinates for '%s': %r", query, match)
        return ResolutionFailure(query=query, reason=FailureReason.MALFORMED)

    return ResolvedPlace(query=query, point=point)
