"""Shared fixtures: an in-memory solar position service with a scripted sky."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import pytest

from salahtimes.models import AsrMethod, CalculationParameters, Location
from salahtimes.solar import (
    STANDARD_HORIZON_DEGREES,
    AllDay,
    AllNight,
    DayResult,
    RegularDay,
    SolarPosition,
    SolarPositionError,
)


@dataclass
class FakeSolarPositionService:
    """Sun that transits at 13:13:20 local and ranges between two altitudes.

    A crossing of elevation ``h`` happens ``6 - h/15`` hours either side of
    transit, so lower elevations are reached earlier in the morning and later
    in the evening.

    Elevations outside (-90°, 90°) are rejected as a backend failure.
    """

    min_altitude: float = -30.0  # Lowest solar altitude of the day (degrees)
    max_altitude: float = 60.0  # Highest solar altitude of the day (degrees)
    noon_zenith: float = 30.0  # Zenith angle returned by solar_position
    delta_t: float = 69.2
    failing_elevations: set = field(default_factory=set)  # None = standard horizon
    fail_delta_t: bool = False
    fail_position: bool = False
    delta_t_calls: list = field(default_factory=list)
    queries: list = field(default_factory=list)
    positions: list = field(default_factory=list)

    def transit_on(self, day_start: datetime) -> datetime:
        return day_start.replace(hour=13, minute=13, second=20)

    def estimate_delta_t(self, day: date) -> float:
        self.delta_t_calls.append(day)
        if self.fail_delta_t:
            raise SolarPositionError("ΔT table unavailable")
        return self.delta_t

    def sunrise_transit_set(
        self, day_start, latitude, longitude, delta_t, elevation_angle=None
    ) -> DayResult:
        self.queries.append((elevation_angle, delta_t))
        if elevation_angle in self.failing_elevations:
            raise SolarPositionError(f"no convergence at {elevation_angle}")
        h = STANDARD_HORIZON_DEGREES if elevation_angle is None else elevation_angle
        if not -90.0 < h < 90.0:
            raise SolarPositionError(f"no crossing search possible at {h}°")
        transit = self.transit_on(day_start)
        if h > self.max_altitude:
            return AllNight(transit=transit)
        if h < self.min_altitude:
            return AllDay(transit=transit)
        half = timedelta(hours=6 - h / 15)
        return RegularDay(sunrise=transit - half, transit=transit, sunset=transit + half)

    def solar_position(
        self, when, latitude, longitude, elevation, delta_t, pressure, temperature
    ) -> SolarPosition:
        self.positions.append(when)
        if self.fail_position:
            raise SolarPositionError("refraction model diverged")
        return SolarPosition(zenith_angle=self.noon_zenith, azimuth=180.0)


@pytest.fixture
def fake_service():
    return FakeSolarPositionService()


@pytest.fixture
def polar_day_service():
    # Tromsø around the June solstice: the sun bottoms out at about +3°
    return FakeSolarPositionService(min_altitude=3.1, max_altitude=43.8, noon_zenith=46.2)


@pytest.fixture
def polar_night_service():
    # Near the pole in late December: the sun stays below about -23°
    return FakeSolarPositionService(min_altitude=-24.0, max_altitude=-23.0, noon_zenith=113.0)


@pytest.fixture
def berlin():
    return Location(52.52, 13.405, elevation=34, timezone="Europe/Berlin")


@pytest.fixture
def tromso():
    return Location(69.6492, 18.9553, timezone="Europe/Oslo")


@pytest.fixture
def june_first():
    return date(2025, 6, 1)


@pytest.fixture
def params():
    return (
        CalculationParameters.builder()
        .fajr_angle(18.0)
        .ishaa_angle(12.0)
        .asr_method(AsrMethod.SHAFII)
        .use_aqrab_al_bilad(True)
        .build()
    )


@pytest.fixture
def params_no_fallback():
    return (
        CalculationParameters.builder()
        .fajr_angle(18.0)
        .ishaa_angle(18.0)
        .use_aqrab_al_bilad(False)
        .build()
    )


@pytest.fixture
def sunless_noon_service():
    # Tromsø in late November: the sun peaks just below the horizon
    return FakeSolarPositionService(min_altitude=-43.0, max_altitude=-0.7, noon_zenith=90.1)
