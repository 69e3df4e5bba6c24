# Contains the adapter classes for communicating with external mapping APIs.

import logging
import os
from abc import ABC, abstractmethod

import requests
from dotenv import load_dotenv

from api_structures import GeocodeMatch, RouteRequestParams

logger = logging.getLogger(__name__)

# --- API Configuration ---
# Endpoints are read from environment variables so a self-hosted backend can be used.
load_dotenv()
GEOCODER_URL = os.getenv(
    "GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
ROUTING_URL = os.getenv(
    "ROUTING_URL", "https://shortest-path-backend-iyb8.onrender.com/api/route")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
# Nominatim's usage policy requires an identifying User-Agent.
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "route-finder/0.1")


class TransportError(Exception):
    """The remote call failed at the network or protocol level."""
    pass


class ApiAdapter(ABC):
    """
    Abstract Base Class (blueprint) for all API clients.
    It ensures every adapter we create has the same public methods.
    """
    @abstractmethod
    def search_places(self, query: str) -> list[GeocodeMatch]:
        """Returns the geocoding matches for a place name, best first. May be empty."""
        pass

    @abstractmethod
    def fetch_route(self, params: RouteRequestParams) -> dict:
        """Requests a route and returns the raw GeoJSON-like payload."""
        pass


class OpenStreetMapAdapter(ApiAdapter):
    """The adapter for Nominatim geocoding plus a GeoJSON routing backend."""

    def __init__(self, geocoder_url: str = GEOCODER_URL, routing_url: str = ROUTING_URL,
                 timeout: float = HTTP_TIMEOUT_SECONDS, user_agent: str = HTTP_USER_AGENT):
        if not geocoder_url:
            raise ValueError(
                "FATAL ERROR: The GEOCODER_URL environment variable is empty.")
        if not routing_url:
            raise ValueError(
                "FATAL ERROR: The ROUTING_URL environment variable is empty.")
        self.geocoder_url = geocoder_url
        self.routing_url = routing_url
        self.timeout = timeout
        self.headers = {'User-Agent': user_agent}

    def _get_json(self, url: str, params):
        try:
            response = requests.get(
                url, params=params, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            # Covers timeouts, connection errors and HTTP error statuses.
            logger.warning("Request to %s failed: %s", url, e)
            raise TransportError(str(e)) from e
        except ValueError as e:
            logger.warning("Response from %s was not valid JSON", url)
            raise TransportError(f"Invalid JSON from {url}") from e

    def search_places(self, query: str) -> list[GeocodeMatch]:
        logger.debug("[Nominatim] Geocoding place: '%s'", query)
        data = self._get_json(self.geocoder_url, {'format': 'json', 'q': query})
        if not isinstance(data, list):
            raise TransportError(
                f"Unexpected geocoding response for '{query}': {type(data).__name__}")

        matches = []
        for item in data:
            if not isinstance(item, dict):
                continue
            # *** NORMALIZATION to our standard GeocodeMatch object ***
            matches.append(GeocodeMatch(
                kind=str(item.get('type', 'other')),
                raw_lat=item.get('lat'),
                raw_lon=item.get('lon'),
            ))
        return matches

    def fetch_route(self, params: RouteRequestParams) -> dict:
        query_params = params.to_query_params()
        logger.debug("[Routing] Requesting route with %s", query_params)
        data = self._get_json(self.routing_url, query_params)
        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected routing response: {type(data).__name__}")
        return data
