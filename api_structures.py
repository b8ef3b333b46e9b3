# Defines the standardized, internal data structures for the application.

from dataclasses import dataclass, field
from enum import Enum


class DisplayMode(str, Enum):
    """Transport modes as shown to the user and used for colour/icon lookup."""
    CAR = "car"
    TRAIN = "train"
    WALK = "walk"
    BIKE = "bike"
    PLANE = "plane"
    BUS = "bus"
    FERRY = "ferry"


class ProviderMode(str, Enum):
    """Transport modes accepted by the Geoapify routing API."""
    DRIVE = "drive"
    TRANSIT = "transit"
    WALK = "walk"
    BICYCLE = "bicycle"


# --- Mode mapping tables ---
# Each table covers every member of its source enum. Unrecognized strings
# fall back to the car/drive entry.

PROVIDER_TO_DISPLAY = {
    ProviderMode.DRIVE: DisplayMode.CAR,
    ProviderMode.TRANSIT: DisplayMode.TRAIN,
    ProviderMode.WALK: DisplayMode.WALK,
    ProviderMode.BICYCLE: DisplayMode.BIKE,
}

DISPLAY_TO_ROUTING = {
    DisplayMode.CAR: ProviderMode.DRIVE,
    DisplayMode.TRAIN: ProviderMode.TRANSIT,
    DisplayMode.WALK: ProviderMode.WALK,
    DisplayMode.BIKE: ProviderMode.BICYCLE,
    DisplayMode.BUS: ProviderMode.DRIVE,
    DisplayMode.PLANE: ProviderMode.DRIVE,
    DisplayMode.FERRY: ProviderMode.DRIVE,
}

# The line-geometry lookup keeps its own table: bus and ferry are
# approximated differently there, and plane has no air routing at all.
DISPLAY_TO_GEOMETRY = {
    DisplayMode.CAR: ProviderMode.DRIVE,
    DisplayMode.BUS: ProviderMode.DRIVE,
    DisplayMode.TRAIN: ProviderMode.TRANSIT,
    DisplayMode.PLANE: ProviderMode.DRIVE,
    DisplayMode.WALK: ProviderMode.WALK,
    DisplayMode.BIKE: ProviderMode.BICYCLE,
    DisplayMode.FERRY: ProviderMode.TRANSIT,
}


def _coerce(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        return default


def display_mode_for(provider_mode: ProviderMode | str) -> DisplayMode:
    """Maps a provider mode key to its display mode; unknown keys become car."""
    mode = _coerce(ProviderMode, provider_mode, ProviderMode.DRIVE)
    return PROVIDER_TO_DISPLAY[mode]


def routing_mode_for(display_mode: DisplayMode | str) -> ProviderMode:
    """Maps a display mode to the routing provider's mode key."""
    mode = _coerce(DisplayMode, display_mode, DisplayMode.CAR)
    return DISPLAY_TO_ROUTING[mode]


def geometry_mode_for(display_mode: DisplayMode | str) -> ProviderMode:
    """Maps a display mode to the line-geometry provider's mode key."""
    mode = _coerce(DisplayMode, display_mode, DisplayMode.CAR)
    return DISPLAY_TO_GEOMETRY[mode]


@dataclass(frozen=True)
class Coordinates:
    """A standardized representation of geographic coordinates."""
    lat: float
    lon: float


@dataclass(frozen=True)
class Location:
    """
    A geocoded place as handed over by the geocoding step.
    lat/lon are kept as supplied and only validated when a search or a
    render needs them (see geo_utils.parse_coordinates).
    """
    formatted: str
    lat: float | str
    lon: float | str

    @classmethod
    def from_geoapify(cls, properties: dict) -> "Location":
        return cls(
            formatted=properties.get("formatted", ""),
            lat=properties.get("lat"),
            lon=properties.get("lon"),
        )


@dataclass
class Segment:
    """One leg of a route. Duration in minutes, distance in km."""
    mode: DisplayMode
    from_name: str
    to_name: str
    duration: int
    distance: float


@dataclass
class RouteOption:
    """A complete route for a single transport mode."""
    id: str
    mode: DisplayMode
    duration: int
    distance: float
    price: str
    segments: list[Segment] = field(default_factory=list)
    synthesized: bool = False
