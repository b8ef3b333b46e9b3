import asyncio

import folium
import pytest

from api_adapters import ProviderError
from api_structures import DisplayMode, Location, ProviderMode, RouteOption
from geo_utils import InvalidLocationError
from map_renderer import (
    DEFAULT_COLOR,
    FALLBACK_STYLE,
    MODE_COLORS,
    FoliumMapSurface,
    LineStyle,
    MapRouteRenderer,
    MapSurface,
    to_lat_lon,
)
from tests.stubs import RecordingSurface, StubAdapter

PARIS = Location("Paris, France", 48.8566, 2.3522)
VERSAILLES = Location("Versailles, France", 48.8049, 2.1204)


def route(mode, synthesized=False):
    return RouteOption(id=f"{mode.value}-1", mode=mode, duration=30, distance=20.0, price="€1-2",
                       synthesized=synthesized)


TRANSIT_LINE = {"type": "LineString", "coordinates": [[2.3522, 48.8566], [2.25, 48.83], [2.1204, 48.8049]]}


def test_recording_surface_satisfies_protocol():
    assert isinstance(RecordingSurface(), MapSurface)
    assert isinstance(FoliumMapSurface("key"), MapSurface)


def test_to_lat_lon_swaps_axis_order():
    assert to_lat_lon(TRANSIT_LINE) == [(48.8566, 2.3522), (48.83, 2.25), (48.8049, 2.1204)]


def test_to_lat_lon_flattens_multilinestring():
    geometry = {"type": "MultiLineString", "coordinates": [[[1, 2], [3, 4]], [[3, 4], [5, 6]]]}
    assert to_lat_lon(geometry) == [(2, 1), (4, 3), (4, 3), (6, 5)]


def test_to_lat_lon_empty_and_unsupported():
    assert to_lat_lon(None) == []
    assert to_lat_lon({"type": "Point", "coordinates": [1, 2]}) == []


def test_to_lat_lon_malformed():
    with pytest.raises(ProviderError):
        to_lat_lon({"type": "LineString", "coordinates": [[1]]})


def test_failed_geometry_fetch_draws_dashed_straight_line():
    adapter = StubAdapter(geometries={
        ProviderMode.DRIVE: ProviderError("500 Server Error"),
        ProviderMode.TRANSIT: TRANSIT_LINE,
    })
    surface = RecordingSurface()
    renderer = MapRouteRenderer(adapter, surface)

    overlay = asyncio.run(renderer.render_routes(PARIS, VERSAILLES, [route(DisplayMode.CAR), route(DisplayMode.TRAIN)]))

    car_line, train_line = overlay.lines
    assert car_line.fallback
    assert car_line.style == FALLBACK_STYLE
    assert car_line.style.color == DEFAULT_COLOR == "#777"
    assert car_line.style.dash_array == "5, 10"
    assert car_line.points == ((48.8566, 2.3522), (48.8049, 2.1204))

    assert not train_line.fallback
    assert train_line.style == LineStyle(color="#0077cc", weight=5, opacity=0.7)
    assert len(train_line.points) == 3

    assert len(surface.lines) == 2
    assert len(surface.markers) == 2


def test_missing_geometry_draws_straight_line():
    adapter = StubAdapter(geometries={ProviderMode.WALK: None})
    overlay = asyncio.run(MapRouteRenderer(adapter, RecordingSurface()).render_routes(
        PARIS, VERSAILLES, [route(DisplayMode.WALK)]))

    assert overlay.lines[0].fallback


def test_modes_are_translated_for_the_geometry_provider():
    adapter = StubAdapter(geometries={})
    routes = [route(DisplayMode.BUS), route(DisplayMode.FERRY), route(DisplayMode.BIKE)]
    asyncio.run(MapRouteRenderer(adapter, RecordingSurface()).render_routes(PARIS, VERSAILLES, routes))

    assert sorted(adapter.geometry_calls) == sorted([ProviderMode.DRIVE, ProviderMode.TRANSIT, ProviderMode.BICYCLE])


def test_synthesized_routes_skip_geometry_fetch():
    adapter = StubAdapter(geometries={})
    overlay = asyncio.run(MapRouteRenderer(adapter, RecordingSurface()).render_routes(
        PARIS, VERSAILLES, [route(DisplayMode.PLANE, synthesized=True)]))

    assert adapter.geometry_calls == []
    plane_line = overlay.lines[0]
    assert not plane_line.fallback
    assert plane_line.style.color == MODE_COLORS[DisplayMode.PLANE] == "#d9534f"
    assert plane_line.style.dash_array is None


def test_markers_and_viewport():
    surface = RecordingSurface()
    asyncio.run(MapRouteRenderer(StubAdapter(geometries={}), surface).render_routes(PARIS, VERSAILLES, []))

    popups = sorted(popup for _, popup in surface.markers.values())
    assert popups == ["<strong>Destination:</strong> Versailles, France", "<strong>Origin:</strong> Paris, France"]
    assert surface.view == ("bounds", [(48.8566, 2.3522), (48.8049, 2.1204)], (50, 50))


def test_same_endpoints_centre_on_origin():
    surface = RecordingSurface()
    asyncio.run(MapRouteRenderer(StubAdapter(geometries={}), surface).render_routes(PARIS, PARIS, []))

    assert surface.view == ("center", (48.8566, 2.3522), 12)


def test_rerender_replaces_previous_overlay():
    adapter = StubAdapter(geometries={ProviderMode.TRANSIT: TRANSIT_LINE})
    surface = RecordingSurface()
    renderer = MapRouteRenderer(adapter, surface)

    first = asyncio.run(renderer.render_routes(PARIS, VERSAILLES, [route(DisplayMode.TRAIN), route(DisplayMode.CAR)]))
    second = asyncio.run(renderer.render_routes(VERSAILLES, PARIS, [route(DisplayMode.TRAIN)]))

    assert sorted(surface.removed) == sorted([*first.markers, *first.line_handles])
    assert len(surface.markers) == 2
    assert len(surface.lines) == 1
    assert renderer.overlay is second


def test_invalid_coordinates_abort_before_drawing():
    adapter = StubAdapter(geometries={})
    surface = RecordingSurface()

    with pytest.raises(InvalidLocationError):
        asyncio.run(MapRouteRenderer(adapter, surface).render_routes(
            Location("Paris", 48.85, "east"), VERSAILLES, [route(DisplayMode.CAR)]))

    assert adapter.geometry_calls == []
    assert surface.lines == {} and surface.markers == {}


def test_popup_names_are_escaped():
    surface = RecordingSurface()
    asyncio.run(MapRouteRenderer(StubAdapter(geometries={}), surface).render_routes(
        Location("<b>Paris</b>", 48.8566, 2.3522), VERSAILLES, []))

    assert any("&lt;b&gt;Paris&lt;/b&gt;" in popup for _, popup in surface.markers.values())


# ------------------ FOLIUM SURFACE ------------------


def test_folium_surface_builds_map_from_current_layers():
    surface = FoliumMapSurface("key")
    solid = surface.add_line([(48.85, 2.35), (48.80, 2.12)], LineStyle("#0077cc", 5, 0.7))
    surface.add_line([(48.85, 2.35), (48.80, 2.12)], FALLBACK_STYLE)
    surface.add_marker((48.85, 2.35), "<strong>Origin:</strong> Paris")
    surface.remove(solid)
    surface.fit_bounds([(48.85, 2.35), (48.80, 2.12)])

    assert len(surface) == 2
    m = surface.build()
    assert isinstance(m, folium.Map)
    assert "5, 10" in m.get_root().render()


def test_folium_surface_set_view_drops_bounds():
    surface = FoliumMapSurface("key")
    surface.fit_bounds([(48.85, 2.35), (48.80, 2.12)])
    surface.set_view((48.85, 2.35), 12)

    assert surface.bounds is None
    assert surface.build().location == [48.85, 2.35]
