import pytest

from api_adapters import ApiAdapter, TransportError
from api_structures import GeocodeMatch


def city(lat: float, lon: float) -> GeocodeMatch:
    return GeocodeMatch(kind="city", raw_lat=str(lat), raw_lon=str(lon))


def line_feature(count: int, lon0: float = 2.35, lat0: float = 48.85) -> dict:
    coords = [[lon0 + i * 0.1, lat0 + i * 0.1] for i in range(count)]
    return {"type": "Feature", "geometry": {"type": "LineString", "coordinates": coords}}


class FakeAdapter(ApiAdapter):
    """In-memory stand-in for the geocoding and routing services."""

    def __init__(self, places=None, route=None, route_error=False):
        self.places = places or {}
        self.route = route if route is not None else {"features": [line_feature(5)]}
        self.route_error = route_error
        self.searched = []
        self.route_requests = []

    def search_places(self, query):
        self.searched.append(query)
        result = self.places.get(query, [])
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_route(self, params):
        self.route_requests.append(params)
        if self.route_error:
            raise TransportError("timed out")
        return self.route


@pytest.fixture
def paris_berlin():
    return {
        "Paris": [city(48.8566, 2.3522)],
        "Berlin": [city(52.52, 13.405)],
    }


@pytest.fixture
def make_adapter():
    return FakeAdapter
