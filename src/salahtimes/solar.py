"""Solar position service, the narrow astronomy interface the policy engine consumes.

``SkyfieldSolarPositionService`` answers the three queries with skyfield:
ΔT estimation, transit plus horizon crossings at an arbitrary elevation, and
apparent solar zenith/azimuth.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Protocol, Union

import numpy as np
from skyfield import almanac
from skyfield.api import Loader, wgs84

from salahtimes.config import load_settings

logger = logging.getLogger(__name__)

# Sun's centre at the standard sunrise/sunset: semi-diameter 16' plus refraction 34'
STANDARD_HORIZON_DEGREES = -0.8333


class SolarPositionError(Exception):
    """Astronomy backend failure (missing data files, numerical trouble)."""


class DayCategory(Enum):
    REGULAR = "regular"
    ALL_DAY = "all day"  # Sun stays above the queried elevation
    ALL_NIGHT = "all night"  # Sun stays below the queried elevation


@dataclass(frozen=True)
class RegularDay:
    """The queried elevation is crossed on both sides of transit."""

    sunrise: datetime  # Rising crossing before transit (aware, local)
    transit: datetime  # Meridian transit (aware, local)
    sunset: datetime  # Setting crossing after transit (aware, local)

    @property
    def category(self) -> DayCategory:
        return DayCategory.REGULAR


@dataclass(frozen=True)
class AllDay:
    """Polar-day-like: the sun never drops to the queried elevation."""

    transit: datetime

    @property
    def category(self) -> DayCategory:
        return DayCategory.ALL_DAY


@dataclass(frozen=True)
class AllNight:
    """Polar-night-like: the sun never climbs to the queried elevation."""

    transit: datetime

    @property
    def category(self) -> DayCategory:
        return DayCategory.ALL_NIGHT


DayResult = Union[RegularDay, AllDay, AllNight]


@dataclass(frozen=True)
class SolarPosition:
    zenith_angle: float  # Degrees, refraction-corrected
    azimuth: float  # Degrees, 0=N, 90=E


class SolarPositionService(Protocol):
    def estimate_delta_t(self, day: date) -> float:
        """ΔT (TT − UT) in seconds for ``day``."""
        ...

    def sunrise_transit_set(
        self,
        day_start: datetime,
        latitude: float,
        longitude: float,
        delta_t: float,
        elevation_angle: float | None = None,
    ) -> DayResult:
        """Transit and crossings of ``elevation_angle`` (standard horizon if None)."""
        ...

    def solar_position(
        self,
        when: datetime,
        latitude: float,
        longitude: float,
        elevation: float,
        delta_t: float,
        pressure: float,
        temperature: float,
    ) -> SolarPosition:
        """Apparent solar zenith/azimuth at an aware timestamp."""
        ...


@lru_cache(maxsize=4)
def _bodies(data_dir: Path, ephemeris: str):
    """Load the ephemeris once per (directory, file) and return (earth, sun)."""
    logger.debug("Loading ephemeris %s from %s", ephemeris, data_dir)
    eph = Loader(str(data_dir))(ephemeris)
    return eph["earth"], eph["sun"]


@lru_cache(maxsize=64)
def _timescale(data_dir: Path, delta_t: float | None):
    """Timescale with a fixed ΔT, or skyfield's own ΔT model when None."""
    return Loader(str(data_dir)).timescale(delta_t=delta_t)


def _altitude(observer, sun, t) -> float:
    """Geometric altitude of the sun's centre in degrees."""
    alt, _, _ = observer.at(t).observe(sun).apparent().altaz()
    return float(alt.degrees)


class SkyfieldSolarPositionService:
    """SolarPositionService backed by skyfield and a JPL ephemeris."""

    def __init__(self, data_dir: Path | None = None, ephemeris: str | None = None):
        settings = load_settings()
        self.data_dir = Path(data_dir) if data_dir is not None else settings.data_dir
        self.ephemeris = ephemeris or settings.ephemeris

    def estimate_delta_t(self, day: date) -> float:
        ts = _timescale(self.data_dir, None)
        try:
            delta_t = float(ts.utc(day.year, day.month, day.day).delta_t)
        except (ValueError, ArithmeticError) as exc:
            raise SolarPositionError(f"ΔT estimation failed for {day}: {exc}") from exc
        logger.debug("ΔT for %s: %.2fs", day, delta_t)
        return delta_t

    def sunrise_transit_set(
        self,
        day_start: datetime,
        latitude: float,
        longitude: float,
        delta_t: float,
        elevation_angle: float | None = None,
    ) -> DayResult:
        horizon = (
            STANDARD_HORIZON_DEGREES if elevation_angle is None else elevation_angle
        )
        try:
            return self._sunrise_transit_set(
                day_start, latitude, longitude, delta_t, horizon
            )
        except (ValueError, ArithmeticError, OSError) as exc:
            raise SolarPositionError(
                f"Crossing of {horizon:.4f}° failed for {day_start.date()}: {exc}"
            ) from exc

    def _sunrise_transit_set(
        self,
        day_start: datetime,
        latitude: float,
        longitude: float,
        delta_t: float,
        horizon: float,
    ) -> DayResult:
        ts = _timescale(self.data_dir, delta_t)
        earth, sun = _bodies(self.data_dir, self.ephemeris)
        observer = earth + wgs84.latlon(
            latitude_degrees=latitude, longitude_degrees=longitude
        )
        tz = day_start.tzinfo

        t0 = ts.from_datetime(day_start)
        t1 = ts.from_datetime(day_start + timedelta(days=1))
        transits = almanac.find_transits(observer, sun, t0, t1)
        if len(transits) == 0:
            raise SolarPositionError(f"No solar transit found on {day_start.date()}")
        transit = transits[0]
        transit_local = transit.astimezone(tz)

        # Polar cases are classified from the day's extremes, without a crossing search
        highest = _altitude(observer, sun, transit)
        if highest < horizon:
            logger.debug(
                "Sun peaks at %.2f° below %.2f° on %s", highest, horizon, day_start
            )
            return AllNight(transit=transit_local)
        lowest = min(
            _altitude(observer, sun, ts.tt_jd(transit.tt + offset))
            for offset in (-0.5, 0.5)
        )
        if lowest > horizon:
            logger.debug(
                "Sun bottoms out at %.2f° above %.2f° on %s", lowest, horizon, day_start
            )
            return AllDay(transit=transit_local)

        # Windows straddle the transit instead of starting or ending on it
        rise_t, rise_y = almanac.find_risings(
            observer,
            sun,
            ts.tt_jd(transit.tt - 1.0),
            ts.tt_jd(transit.tt + 0.5),
            horizon_degrees=horizon,
        )
        set_t, set_y = almanac.find_settings(
            observer,
            sun,
            ts.tt_jd(transit.tt - 0.5),
            ts.tt_jd(transit.tt + 1.0),
            horizon_degrees=horizon,
        )
        before = np.flatnonzero((rise_t.tt < transit.tt) & rise_y)
        after = np.flatnonzero((set_t.tt > transit.tt) & set_y)

        if len(before) and len(after):
            return RegularDay(
                sunrise=rise_t[before[-1]].astimezone(tz),
                transit=transit_local,
                sunset=set_t[after[0]].astimezone(tz),
            )
        logger.debug("No %.2f° crossing around transit on %s", horizon, day_start)
        return AllDay(transit=transit_local)

    def solar_position(
        self,
        when: datetime,
        latitude: float,
        longitude: float,
        elevation: float,
        delta_t: float,
        pressure: float,
        temperature: float,
    ) -> SolarPosition:
        try:
            ts = _timescale(self.data_dir, delta_t)
            earth, sun = _bodies(self.data_dir, self.ephemeris)
            ground = earth + wgs84.latlon(
                latitude_degrees=latitude,
                longitude_degrees=longitude,
                elevation_m=elevation,
            )
            apparent = ground.at(ts.from_datetime(when)).observe(sun).apparent()
            alt, az, _ = apparent.altaz(
                temperature_C=temperature, pressure_mbar=pressure
            )
        except (ValueError, ArithmeticError, OSError) as exc:
            raise SolarPositionError(f"Solar position failed at {when}: {exc}") from exc
        return SolarPosition(
            zenith_angle=90.0 - float(alt.degrees), azimuth=float(az.degrees)
        )
