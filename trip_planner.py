# Main script to compare travel options between two places and map them.

import argparse
import asyncio
import logging
import sys

from api_adapters import GeoapifyAdapter
from api_structures import DisplayMode, Location, RouteOption
from config import Settings
from geo_utils import InvalidLocationError
from logging_config import configure
from map_renderer import FoliumMapSurface, MapRouteRenderer
from route_service import RouteAggregator, RouteFetcher

logger = logging.getLogger(__name__)

TRANSPORT_ICONS = {
    DisplayMode.TRAIN: "🚆",
    DisplayMode.BUS: "🚌",
    DisplayMode.CAR: "🚗",
    DisplayMode.PLANE: "✈️",
    DisplayMode.FERRY: "⛴️",
    DisplayMode.WALK: "🚶",
    DisplayMode.BIKE: "🚲",
}


def format_duration(minutes: int) -> str:
    """Converts minutes into a readable '1h 5m' format."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    elif mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_distance(distance_km: float) -> str:
    return f"{distance_km:.1f} km"


def transport_icon(mode: DisplayMode | str) -> str:
    try:
        return TRANSPORT_ICONS[DisplayMode(getattr(mode, "value", mode).lower())]
    except (ValueError, AttributeError):
        return "🚩"


# --- Core Logic ---

async def plan_trip(
    origin: Location,
    destination: Location,
    aggregator: RouteAggregator,
    renderer: MapRouteRenderer | None = None,
) -> list[RouteOption]:
    """
    Searches all modes between the two places and, if a renderer is given,
    draws both places and any routes found on its map.
    """
    routes = await aggregator.search(origin, destination)
    if renderer is not None:
        # Endpoint markers are drawn even when no route was found.
        await renderer.render_routes(origin, destination, routes)
    return routes


def display_results(routes: list[RouteOption], origin: Location, destination: Location):
    """Formats and prints the results table and the fastest option."""
    if not routes:
        print("\nNo routes found between these places.")
        return

    print(f"\nRoutes from {origin.formatted} to {destination.formatted}\n")

    header = "| Mode       | Duration  | Distance    | Price        |"
    divider = "-" * len(header)
    print(header)
    print(divider)

    for route in routes:
        label = f"{transport_icon(route.mode)} {route.mode.value}"
        print(f"| {label:<10} | "
              f"{format_duration(route.duration):<9} | "
              f"{format_distance(route.distance):<11} | "
              f"{route.price:<12} |")
        for segment in route.segments:
            print(f"|   {segment.from_name} → {segment.to_name} "
                  f"({format_duration(segment.duration)}, {format_distance(segment.distance)})")

    print(divider)

    fastest = min(routes, key=lambda r: r.duration)
    print("\n✨ Fastest Option ✨")
    print(f"Go by {fastest.mode.value}: {format_duration(fastest.duration)} "
          f"for about {fastest.price}.")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Trip Planner: compare driving, transit, walking, cycling and flying.")
    parser.add_argument('origin', nargs='?', help="Where the trip starts (free text).")
    parser.add_argument('destination', nargs='?', help="Where the trip ends (free text).")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    parser.add_argument('--map', default="routes.html",
                        help="Where to write the HTML map [default: routes.html].")
    parser.add_argument('--no-map', action='store_true', help="Skip drawing the map.")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(e)
        return 1

    configure("DEBUG" if args.verbose else settings.log_level)

    origin_text = args.origin or input("From [Default: Paris, France]: ") or "Paris, France"
    destination_text = args.destination or input("To [Default: Rome, Italy]: ") or "Rome, Italy"

    adapter = GeoapifyAdapter(settings.api_key, timeout=settings.timeout)
    origin = adapter.get_location(origin_text)
    destination = adapter.get_location(destination_text)
    if not origin or not destination:
        print("\nCould not proceed without valid coordinates for both places.")
        return 1

    aggregator = RouteAggregator(RouteFetcher(adapter))
    surface = None
    renderer = None
    if not args.no_map:
        surface = FoliumMapSurface(settings.api_key)
        renderer = MapRouteRenderer(adapter, surface)

    try:
        routes = asyncio.run(plan_trip(origin, destination, aggregator, renderer))
    except InvalidLocationError as e:
        logger.error("%s", e)
        print("Failed to fetch routes. Please try again.")
        return 1

    display_results(routes, origin, destination)

    if surface is not None:
        surface.save(args.map)
        print(f"\nMap written to {args.map}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
