# Defines the standardized, internal data structures for the application.

import math
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class GeoPoint:
    """A standardized representation of geographic coordinates."""
    lat: float
    lon: float

    def __post_init__(self):
        if not is_valid_coordinate(self.lat, self.lon):
            raise ValueError(
                f"Coordinates out of range: lat={self.lat}, lon={self.lon}")

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lon)


def is_valid_coordinate(lat, lon) -> bool:
    """True when both values are finite numbers inside the WGS84 range."""
    for value in (lat, lon):
        # bool is an int subclass, but never a coordinate.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
    try:
        lat, lon = float(lat), float(lon)
    except OverflowError:
        # JSON integers can be too large for a float.
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


@dataclass(frozen=True)
class GeocodeMatch:
    """One candidate returned by the geocoding service, still in raw form."""
    kind: str
    raw_lat: str | None
    raw_lon: str | None


@dataclass(frozen=True)
class ResolvedPlace:
    query: str
    point: GeoPoint


class FailureReason(str, Enum):
    NO_MATCH = "no_match"
    MALFORMED = "malformed"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class ResolutionFailure:
    """A place name that could not be turned into coordinates."""
    query: str
    reason: FailureReason = FailureReason.NO_MATCH


@dataclass(frozen=True)
class RouteRequestParams:
    """The ordered parameter set sent to the routing backend."""
    start: GeoPoint
    end: GeoPoint
    waypoints: tuple[GeoPoint, ...] = ()

    def to_query_params(self) -> list[tuple[str, str]]:
        # A list of pairs keeps the order, and lets 'via' repeat.
        params = [
            ('lat1', repr(self.start.lat)),
            ('lon1', repr(self.start.lon)),
            ('lat2', repr(self.end.lat)),
            ('lon2', repr(self.end.lon)),
        ]
        for point in self.waypoints:
            params.append(('via', f"{point.lat!r},{point.lon!r}"))
        return params


@dataclass(frozen=True)
class CandidateRoute:
    """One normalized, renderable route taken from a single response feature."""
    points: tuple[GeoPoint, ...]
    source_feature_index: int

    def __post_init__(self):
        if not self.points:
            raise ValueError("A candidate route needs at least one point.")


@dataclass(frozen=True)
class RouteSet:
    """All candidates from one routing response, plus the best/selected choice."""
    candidates: tuple[CandidateRoute, ...]
    best_index: int
    selected_index: int
    distance_meters: float | None = None
    travel_time_seconds: float | None = None

    @property
    def best(self) -> CandidateRoute:
        return self.candidates[self.best_index]

    @property
    def selected(self) -> CandidateRoute:
        return self.candidates[self.selected_index]


class SessionState(str, Enum):
    IDLE = "idle"
    RESOLVING_PLACES = "resolving_places"
    REQUESTING_ROUTE = "requesting_route"
    READY = "ready"
    FAILED = "failed"


class ErrorKind(str, Enum):
    INVALID_PLACE = "invalid_place"
    NO_ROUTE = "no_route"
    TRANSPORT = "transport"
    INDEX_OUT_OF_RANGE = "index_out_of_range"

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    ErrorKind.INVALID_PLACE: "Invalid place names. Try again!",
    ErrorKind.NO_ROUTE: "No valid route found. Try again!",
    ErrorKind.TRANSPORT: "Could not reach the map service. Try again later!",
    ErrorKind.INDEX_OUT_OF_RANGE: "That route option does not exist.",
}


@dataclass(frozen=True)
class RouteView:
    """The read-only snapshot handed to the rendering layer after every transition."""
    state: SessionState
    route_set: RouteSet | None = None
    error_kind: ErrorKind | None = None
    last_error: ErrorKind | None = None
    validation_message: str | None = None
    markers: tuple[tuple[str, GeoPoint], ...] = field(default_factory=tuple)

    @property
    def candidate_polylines(self) -> list[list[GeoPoint]]:
        if self.route_set is None:
            return []
        return [list(c.points) for c in self.route_set.candidates]

    @property
    def selected_polyline(self) -> list[tuple[float, float]]:
        if self.route_set is None:
            return []
        return [p.as_tuple() for p in self.route_set.selected.points]
