# Rough price-range estimates per transport mode. Not a fare lookup.

from api_structures import DisplayMode, ProviderMode, display_mode_for
from geo_utils import round_half_up

# (min €/km, max €/km) for the linear tiers.
PER_KM_RATES = {
    DisplayMode.CAR: (0.15, 0.30),    # fuel
    DisplayMode.TRAIN: (0.15, 0.40),
}
DEFAULT_RATES = (0.10, 0.25)

BIKE_RENTAL_THRESHOLD_KM = 20
PLANE_BASE_FARE = (50, 100)
PLANE_RATES = (0.10, 0.25)

_DISPLAY_KEYS = {m.value for m in DisplayMode}
_PROVIDER_KEYS = {m.value for m in ProviderMode}


def _euro_range(low: float, high: float) -> str:
    return f"€{int(round_half_up(low))}-{int(round_half_up(high))}"


def _priced_mode(mode: DisplayMode | ProviderMode | str) -> DisplayMode | None:
    """Accepts display or provider keys ('car' or 'drive'); None for anything else."""
    key = str(getattr(mode, "value", mode)).strip().lower()
    if key in _DISPLAY_KEYS:
        return DisplayMode(key)
    if key in _PROVIDER_KEYS:
        return display_mode_for(key)
    return None


def estimate_price(mode: DisplayMode | ProviderMode | str, distance_km: float) -> str:
    """Returns a price range like '€2-4', or 'Free' / 'Free-€5' for zero-cost modes."""
    mode = _priced_mode(mode)

    if mode == DisplayMode.WALK:
        return "Free"

    if mode == DisplayMode.BIKE:
        # Free on your own bike, minor rental cost for long rides.
        if distance_km > BIKE_RENTAL_THRESHOLD_KM:
            return _euro_range(distance_km * 0.05, distance_km * 0.10)
        return "Free-€5"

    if mode == DisplayMode.PLANE:
        return _euro_range(
            PLANE_BASE_FARE[0] + distance_km * PLANE_RATES[0],
            PLANE_BASE_FARE[1] + distance_km * PLANE_RATES[1],
        )

    low_rate, high_rate = PER_KM_RATES.get(mode, DEFAULT_RATES)
    return _euro_range(distance_km * low_rate, distance_km * high_rate)
