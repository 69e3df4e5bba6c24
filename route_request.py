# Assembles the routing request from resolved coordinates.

from collections.abc import Iterable

from api_structures import GeoPoint, RouteRequestParams


def build_route_request(start: GeoPoint, end: GeoPoint,
                        waypoints: Iterable[GeoPoint] = ()) -> RouteRequestParams:
    """Waypoints keep the order they were given in. No limit on their number is enforced here."""
    return RouteRequestParams(start=start, end=end, waypoints=tuple(waypoints))
