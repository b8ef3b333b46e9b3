# Contains the adapter classes for communicating with external mapping APIs.

import logging
from abc import ABC, abstractmethod

import requests

from api_structures import Coordinates, Location, ProviderMode

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A provider call failed or returned something we cannot use."""


class ApiAdapter(ABC):
    """
    Abstract Base Class (blueprint) for all API clients.
    It ensures every adapter we create has the same public methods.
    """
    @abstractmethod
    def get_location(self, address: str) -> Location | None:
        """Converts a free-text address into our standard Location object."""
        pass

    @abstractmethod
    def get_route(self, start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> dict:
        """Returns the raw routing response; raises ProviderError when there is no usable route."""
        pass

    @abstractmethod
    def get_route_geometry(self, start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> dict | None:
        """Returns the GeoJSON geometry of the primary route, or None if the provider has none."""
        pass


class GeoapifyAdapter(ApiAdapter):
    """The adapter for the Geoapify API."""
    GEOCODE_URL = "https://api.geoapify.com/v1/geocode/search"
    ROUTING_URL = "https://api.geoapify.com/v1/routing"

    def __init__(self, api_key: str, timeout: float = 10.0):
        if not api_key:
            raise ValueError("A Geoapify API key is required.")
        self.api_key = api_key.strip()
        self.timeout = timeout

    def get_location(self, address: str) -> Location | None:
        logger.debug("[Geoapify] Geocoding address: '%s'", address)
        params = {
            'text': address,
            'format': 'json',
            'limit': 1,
            'apiKey': self.api_key,
        }
        try:
            response = requests.get(self.GEOCODE_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if data and data.get('results'):
                # *** NORMALIZATION to our standard Location object ***
                return Location.from_geoapify(data['results'][0])
            logger.warning("Could not find coordinates for address: %s", address)
            return None
        except requests.exceptions.RequestException as e:
            logger.warning("Error connecting to Geoapify Geocoding API: %s", e)
            return None
        except (KeyError, IndexError, ValueError):
            logger.warning("Error parsing Geoapify Geocoding API response for: %s", address)
            return None

    def _request_route(self, start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> dict:
        params = {
            'waypoints': f"{start_coords.lat},{start_coords.lon}|{end_coords.lat},{end_coords.lon}",
            'mode': ProviderMode(mode).value,
            'apiKey': self.api_key,
        }
        logger.debug("[Geoapify] GET %s waypoints=%s mode=%s",
                     self.ROUTING_URL, params['waypoints'], params['mode'])
        try:
            response = requests.get(self.ROUTING_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"[Geoapify] A network error occurred for {params['mode']} routing: {e}") from e
        except ValueError as e:
            raise ProviderError(f"[Geoapify] Response for {params['mode']} routing is not JSON") from e
        if not isinstance(data, dict):
            raise ProviderError(f"[Geoapify] Unexpected payload for {params['mode']} routing")
        return data

    def get_route(self, start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> dict:
        data = self._request_route(start_coords, end_coords, mode)
        if not isinstance(data.get('features'), list) or not data['features']:
            raise ProviderError(f"[Geoapify] No {ProviderMode(mode).value} route found")
        return data

    def get_route_geometry(self, start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> dict | None:
        data = self._request_route(start_coords, end_coords, mode)
        features = data.get('features') or []
        if not isinstance(features, list):
            raise ProviderError(f"[Geoapify] Unexpected features in {ProviderMode(mode).value} routing response")
        if not features or not isinstance(features[0], dict):
            return None
        return features[0].get('geometry')
