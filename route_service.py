# Fetches, normalizes and enriches route options for an origin/destination pair.

import asyncio
import logging
import time

from api_adapters import ApiAdapter, ProviderError
from api_structures import Coordinates, DisplayMode, Location, ProviderMode, RouteOption, Segment, display_mode_for
from geo_utils import haversine_km, km_from_meters, minutes_from_seconds, parse_coordinates, round_half_up
from pricing import estimate_price

logger = logging.getLogger(__name__)

# Air travel is never returned by the routing provider, so it is added for long trips.
PLANE_MIN_DISTANCE_KM = 300
PLANE_OVERHEAD_MIN = 30  # boarding and taxiing
PLANE_CRUISE_KMH = 800


def _route_id(mode_key: str) -> str:
    # Only needs to be unique within one result set.
    return f"{mode_key}-{int(time.time() * 1000)}"


def normalize_route(data: dict, mode: ProviderMode | str, origin: Location, destination: Location) -> RouteOption:
    """
    Converts one Geoapify routing response into a RouteOption.

    Only the first (primary) feature is used. Times arrive in seconds and
    distances in metres; they leave as whole minutes and kilometres with one
    decimal. Legs without from/to names take the origin/destination names.
    """
    mode_key = getattr(mode, "value", mode)
    display_mode = display_mode_for(mode)
    try:
        properties = data['features'][0]['properties']
        duration = minutes_from_seconds(float(properties['time']))
        distance = km_from_meters(float(properties['distance']))
        # *** NORMALIZATION of every leg into our standard Segment object ***
        segments = [
            Segment(
                mode=display_mode,
                from_name=leg.get('from') or origin.formatted,
                to_name=leg.get('to') or destination.formatted,
                duration=minutes_from_seconds(float(leg['time'])),
                distance=km_from_meters(float(leg['distance'])),
            )
            for leg in properties.get('legs') or []
        ]
    except (KeyError, IndexError, TypeError, ValueError, AttributeError, OverflowError) as e:
        raise ProviderError(f"Malformed {mode_key} route response: {e!r}") from e

    if duration < 0 or distance < 0 or any(s.duration < 0 or s.distance < 0 for s in segments):
        raise ProviderError(f"Negative duration or distance in {mode_key} route response")

    return RouteOption(
        id=_route_id(mode_key),
        mode=display_mode,
        duration=duration,
        distance=distance,
        price=estimate_price(display_mode, distance),
        segments=segments,
    )


class RouteFetcher:
    """Queries every provider mode concurrently and keeps whichever succeed."""
    MODES = (ProviderMode.DRIVE, ProviderMode.TRANSIT, ProviderMode.WALK, ProviderMode.BICYCLE)

    def __init__(self, adapter: ApiAdapter, modes: tuple[ProviderMode, ...] = MODES):
        self.adapter = adapter
        self.modes = modes

    async def _fetch_mode(self, origin: Location, destination: Location,
                          start_coords: Coordinates, end_coords: Coordinates, mode: ProviderMode) -> RouteOption:
        # requests is blocking; run it off the event loop so the modes overlap.
        data = await asyncio.to_thread(self.adapter.get_route, start_coords, end_coords, mode)
        return normalize_route(data, mode, origin, destination)

    async def fetch_all(self, origin: Location, destination: Location) -> list[RouteOption]:
        """
        Returns one RouteOption per mode that produced a route, in mode order.
        A failing mode is logged and left out; if every mode fails the
        result is an empty list. Invalid coordinates raise InvalidLocationError.
        """
        start_coords = parse_coordinates(origin)
        end_coords = parse_coordinates(destination)
        results = await asyncio.gather(
            *(self._fetch_mode(origin, destination, start_coords, end_coords, mode) for mode in self.modes),
            return_exceptions=True,
        )

        routes = []
        for mode, result in zip(self.modes, results):
            if isinstance(result, Exception):
                logger.warning("Skipping %s route: %s", mode.value, result)
            elif isinstance(result, BaseException):
                raise result
            else:
                routes.append(result)

        logger.debug("Fetched %d of %d modes", len(routes), len(self.modes))
        return routes


def add_extra_transport_modes(routes: list[RouteOption], origin: Location, destination: Location) -> list[RouteOption]:
    """
    Adds transport modes the routing provider does not offer.

    Trips longer than PLANE_MIN_DISTANCE_KM in a straight line get a plane
    option appended; shorter trips get the input list back untouched.
    """
    distance = haversine_km(parse_coordinates(origin), parse_coordinates(destination))
    if distance <= PLANE_MIN_DISTANCE_KM:
        return routes

    flight_duration = PLANE_OVERHEAD_MIN + int(round_half_up(distance / PLANE_CRUISE_KMH * 60))
    flight_distance = round_half_up(distance, 1)
    plane = RouteOption(
        id=_route_id(DisplayMode.PLANE.value),
        mode=DisplayMode.PLANE,
        duration=flight_duration,
        distance=flight_distance,
        price=estimate_price(DisplayMode.PLANE, distance),
        segments=[
            Segment(
                mode=DisplayMode.PLANE,
                from_name=origin.formatted,
                to_name=destination.formatted,
                duration=flight_duration,
                distance=flight_distance,
            )
        ],
        synthesized=True,
    )
    return [*routes, plane]


class RouteAggregator:
    """The single entry point the UI calls to get route options."""

    def __init__(self, fetcher: RouteFetcher):
        self.fetcher = fetcher

    async def search(self, origin: Location, destination: Location) -> list[RouteOption]:
        # Bad coordinates are the caller's problem and the only error raised here.
        parse_coordinates(origin)
        parse_coordinates(destination)

        routes = await self.fetcher.fetch_all(origin, destination)
        return add_extra_transport_modes(routes, origin, destination)
