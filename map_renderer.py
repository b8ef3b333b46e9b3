# Draws route options on an interactive map, one line per route.

import asyncio
import html
import itertools
import logging
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import folium

from api_adapters import ApiAdapter, ProviderError
from api_structures import Coordinates, DisplayMode, Location, RouteOption, geometry_mode_for
from geo_utils import haversine_km, parse_coordinates

logger = logging.getLogger(__name__)

LatLon = tuple[float, float]

MODE_COLORS = {
    DisplayMode.TRAIN: "#0077cc",
    DisplayMode.BUS: "#5cb85c",
    DisplayMode.CAR: "#f0ad4e",
    DisplayMode.PLANE: "#d9534f",
    DisplayMode.WALK: "#5bc0de",
    DisplayMode.BIKE: "#28a745",
    DisplayMode.FERRY: "#17a2b8",
}
DEFAULT_COLOR = "#777"

SINGLE_POINT_ZOOM = 12
FIT_PADDING = (50, 50)


@dataclass(frozen=True)
class LineStyle:
    color: str
    weight: int
    opacity: float
    dash_array: str | None = None


FALLBACK_STYLE = LineStyle(color=DEFAULT_COLOR, weight=3, opacity=0.5, dash_array="5, 10")


def route_style(mode: DisplayMode) -> LineStyle:
    return LineStyle(color=MODE_COLORS.get(mode, DEFAULT_COLOR), weight=5, opacity=0.7)


@runtime_checkable
class MapSurface(Protocol):
    """
    Responsibilities:
      • Hold line and marker overlays, addressed by the handle add_* returns.
      • Keep the viewport, either fitted to bounds or centred with a zoom.
    Coordinates are (lat, lon).
    """

    def add_line(self, points: Sequence[LatLon], style: LineStyle, tooltip: str | None = None) -> Hashable: ...
    def add_marker(self, point: LatLon, popup: str) -> Hashable: ...
    def remove(self, handle: Hashable) -> None: ...
    def fit_bounds(self, bounds: Sequence[LatLon], padding: tuple[int, int] = FIT_PADDING) -> None: ...
    def set_view(self, center: LatLon, zoom: int) -> None: ...


@dataclass(frozen=True)
class RouteLine:
    route_id: str
    mode: DisplayMode
    points: tuple[LatLon, ...]
    style: LineStyle
    fallback: bool = False


@dataclass(frozen=True)
class MapOverlay:
    """Everything drawn for one search. Replaced as a whole, never edited."""
    markers: tuple[Hashable, ...] = ()
    lines: tuple[RouteLine, ...] = ()
    line_handles: tuple[Hashable, ...] = ()


def to_lat_lon(geometry: dict | None) -> list[LatLon]:
    """GeoJSON positions are [lon, lat]; map layers want (lat, lon)."""
    if not geometry:
        return []
    try:
        kind = geometry['type']
        if kind == 'LineString':
            lines = [geometry['coordinates']]
        elif kind == 'MultiLineString':
            # Geoapify returns one line per leg.
            lines = geometry['coordinates']
        else:
            return []
        return [(float(position[1]), float(position[0])) for line in lines for position in line]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise ProviderError(f"Malformed route geometry: {e!r}") from e


class MapRouteRenderer:
    """Fetches line geometry for each route and draws it on a MapSurface."""

    def __init__(self, adapter: ApiAdapter, surface: MapSurface):
        self.adapter = adapter
        self.surface = surface
        self.overlay = MapOverlay()

    def _straight_line(self, route: RouteOption, start: Coordinates, end: Coordinates) -> RouteLine:
        return RouteLine(
            route_id=route.id,
            mode=route.mode,
            points=((start.lat, start.lon), (end.lat, end.lon)),
            style=FALLBACK_STYLE,
            fallback=True,
        )

    async def _route_line(self, route: RouteOption, start: Coordinates, end: Coordinates) -> RouteLine:
        if route.synthesized:
            # No provider can route these, so the straight line is the route.
            return RouteLine(
                route_id=route.id,
                mode=route.mode,
                points=((start.lat, start.lon), (end.lat, end.lon)),
                style=route_style(route.mode),
            )

        mode = geometry_mode_for(route.mode)
        try:
            geometry = await asyncio.to_thread(self.adapter.get_route_geometry, start, end, mode)
            points = to_lat_lon(geometry)
        except ProviderError as e:
            logger.warning("Error fetching %s route geometry, drawing a straight line: %s", route.mode.value, e)
            return self._straight_line(route, start, end)

        if not points:
            logger.warning("No geometry returned for %s route, drawing a straight line", route.mode.value)
            return self._straight_line(route, start, end)

        return RouteLine(route_id=route.id, mode=route.mode, points=tuple(points), style=route_style(route.mode))

    def clear(self) -> None:
        """Removes everything the previous render drew."""
        for handle in (*self.overlay.markers, *self.overlay.line_handles):
            self.surface.remove(handle)
        self.overlay = MapOverlay()

    async def render_routes(self, origin: Location, destination: Location, routes: Sequence[RouteOption]) -> MapOverlay:
        """
        Replaces the map contents with markers for both endpoints and one
        line per route. Raises InvalidLocationError before touching the map
        if either endpoint has unusable coordinates.
        """
        start = parse_coordinates(origin)
        end = parse_coordinates(destination)

        lines = await asyncio.gather(*(self._route_line(route, start, end) for route in routes))

        self.clear()
        markers = (
            self.surface.add_marker(
                (start.lat, start.lon), f"<strong>Origin:</strong> {html.escape(origin.formatted)}"),
            self.surface.add_marker(
                (end.lat, end.lon), f"<strong>Destination:</strong> {html.escape(destination.formatted)}"),
        )

        if haversine_km(start, end) > 0:
            self.surface.fit_bounds([(start.lat, start.lon), (end.lat, end.lon)], padding=FIT_PADDING)
        else:
            self.surface.set_view((start.lat, start.lon), SINGLE_POINT_ZOOM)

        line_handles = tuple(
            self.surface.add_line(list(line.points), line.style, tooltip=line.mode.value) for line in lines
        )
        self.overlay = MapOverlay(markers=markers, lines=tuple(lines), line_handles=line_handles)
        return self.overlay


class FoliumMapSurface:
    """
    MapSurface that keeps overlays in memory and builds a fresh folium.Map
    from them on demand, so removed layers never linger in the output.
    """
    TILE_URL = "https://maps.geoapify.com/v1/tile/osm-bright/{{z}}/{{x}}/{{y}}.png?apiKey={api_key}"
    ATTRIBUTION = 'Powered by <a href="https://www.geoapify.com/" target="_blank">Geoapify</a>'

    def __init__(self, api_key: str, center: LatLon = (51.505, -0.09), zoom: int = 13):
        self.tiles = self.TILE_URL.format(api_key=api_key)
        self.center = center
        self.zoom = zoom
        self.bounds: list[LatLon] | None = None
        self.padding = FIT_PADDING
        self._layers = {}
        self._handles = itertools.count(1)

    def _add(self, factory) -> int:
        handle = next(self._handles)
        self._layers[handle] = factory
        return handle

    def add_line(self, points: Sequence[LatLon], style: LineStyle, tooltip: str | None = None) -> int:
        options = {'color': style.color, 'weight': style.weight, 'opacity': style.opacity}
        if style.dash_array:
            options['dash_array'] = style.dash_array
        locations = [list(p) for p in points]
        return self._add(lambda: folium.PolyLine(locations, tooltip=tooltip, **options))

    def add_marker(self, point: LatLon, popup: str) -> int:
        return self._add(lambda: folium.Marker(list(point), popup=folium.Popup(popup, max_width=300)))

    def remove(self, handle: Hashable) -> None:
        self._layers.pop(handle, None)

    def fit_bounds(self, bounds: Sequence[LatLon], padding: tuple[int, int] = FIT_PADDING) -> None:
        self.bounds = [tuple(p) for p in bounds]
        self.padding = padding

    def set_view(self, center: LatLon, zoom: int) -> None:
        self.center = center
        self.zoom = zoom
        self.bounds = None

    def __len__(self) -> int:
        return len(self._layers)

    def build(self) -> folium.Map:
        m = folium.Map(location=list(self.center), zoom_start=self.zoom, tiles=None)
        folium.TileLayer(tiles=self.tiles, attr=self.ATTRIBUTION, name="Geoapify", max_zoom=20).add_to(m)
        for factory in self._layers.values():
            factory().add_to(m)
        if self.bounds:
            m.fit_bounds([list(p) for p in self.bounds], padding=self.padding)
        return m

    def save(self, path: str) -> None:
        self.build().save(path)
