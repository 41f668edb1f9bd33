"""Prayer policy engine: jurisprudential rules mapped onto solar-event queries.

Each prayer function is a pure function of (day, location, parameters, ΔT,
service). Non-regular days become ``PolarConditionError`` unless Fajr's
Aqrab al-Bilad fallback applies; backend failures become ``CalculationError``.
"""

import logging
import math
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import assert_never

from salahtimes.errors import CalculationError, PolarConditionError
from salahtimes.models import CalculationParameters, Location, Prayer, PrayerTime
from salahtimes.solar import (
    AllDay,
    AllNight,
    DayCategory,
    DayResult,
    RegularDay,
    SolarPosition,
    SolarPositionError,
    SolarPositionService,
)

logger = logging.getLogger(__name__)

DHUHR_OFFSET = timedelta(minutes=1)
SOLAR_MIDNIGHT_OFFSET = timedelta(hours=12)

_CATEGORY_WORDING: dict[DayCategory, str] = {
    DayCategory.ALL_DAY: "polar day",
    DayCategory.ALL_NIGHT: "polar night",
}

# What fails to happen, per prayer, for a non-regular day
_MISSING_EVENT: dict[Prayer, str] = {
    Prayer.FAJR: "the sun never reaches the Fajr depression angle",
    Prayer.SUNRISE: "the sun does not cross the horizon",
    Prayer.DHUHR: "no solar transit is available",
    Prayer.ASR: "the sun never reaches the Asr elevation",
    Prayer.MAGHRIB: "the sun does not cross the horizon",
    Prayer.ISHAA: "the sun never reaches the Ishaa depression angle",
}

_GUIDANCE: dict[Prayer, str] = {
    Prayer.FAJR: " Consider enabling the Aqrab al-Bilad method.",
    Prayer.ISHAA: " Aqrab al-Bilad does not apply to Ishaa.",
}


def polar_condition(
    prayer: Prayer, day: date, category: DayCategory
) -> PolarConditionError:
    """Build the error for a prayer whose event does not occur on ``day``."""
    message = (
        f"Cannot calculate {prayer.value} on {day.isoformat()} during "
        f"{_CATEGORY_WORDING[category]}: {_MISSING_EVENT[prayer]}."
        f"{_GUIDANCE.get(prayer, '')}"
    )
    return PolarConditionError(message, prayer=prayer, day=day, category=category)


def _wall_clock(moment: datetime, offset: timedelta = timedelta()) -> datetime:
    """Shift an aware local time by ``offset`` on the wall clock, dropping tzinfo."""
    return moment.replace(tzinfo=None) + offset


def _crossing(
    prayer: Prayer,
    day: date,
    location: Location,
    delta_t: float,
    service: SolarPositionService,
    elevation_angle: float | None = None,
) -> DayResult:
    try:
        return service.sunrise_transit_set(
            location.start_of_day(day),
            location.latitude,
            location.longitude,
            delta_t,
            elevation_angle,
        )
    except SolarPositionError as exc:
        raise CalculationError(
            f"Failed to calculate {prayer.value} time: {exc}", prayer=prayer, cause=exc
        ) from exc


def _position(
    prayer: Prayer,
    when: datetime,
    location: Location,
    delta_t: float,
    service: SolarPositionService,
) -> SolarPosition:
    try:
        return service.solar_position(
            when,
            location.latitude,
            location.longitude,
            location.elevation,
            delta_t,
            location.pressure,
            location.temperature,
        )
    except SolarPositionError as exc:
        raise CalculationError(
            f"Failed to calculate {prayer.value} time: {exc}", prayer=prayer, cause=exc
        ) from exc


def _astronomical(angle: float) -> str:
    return f"astronomical ({angle:.1f}°)"


def fajr(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Fajr: the morning crossing of the Fajr depression angle.

    Falls back to Aqrab al-Bilad on a non-regular day when enabled.

    Raises:
        PolarConditionError: Non-regular day and the fallback is disabled.
        CalculationError: The solar backend failed.
    """
    result = _crossing(
        Prayer.FAJR, day, location, delta_t, service, -parameters.fajr_angle
    )
    if isinstance(result, RegularDay):
        return PrayerTime(
            Prayer.FAJR,
            result.sunrise.time(),
            method=_astronomical(parameters.fajr_angle),
        )
    elif isinstance(result, (AllDay, AllNight)):
        if parameters.use_aqrab_al_bilad:
            return aqrab_al_bilad_fajr(day, location, delta_t, service)
        raise polar_condition(Prayer.FAJR, day, result.category)
    else:
        assert_never(result)


def aqrab_al_bilad_fajr(
    day: date,
    location: Location,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Fajr at solar midnight: the day's transit plus twelve wall-clock hours."""
    result = _crossing(Prayer.FAJR, day, location, delta_t, service)
    fajr_time = _wall_clock(result.transit, SOLAR_MIDNIGHT_OFFSET).time()
    logger.info(
        "Fajr on %s at (%.4f, %.4f) falls back to Aqrab al-Bilad: %s",
        day,
        location.latitude,
        location.longitude,
        fajr_time,
    )
    return PrayerTime(
        Prayer.FAJR, fajr_time, is_aqrab_al_bilad=True, method="Aqrab al-Bilad"
    )


def sunrise(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Sunrise: the morning crossing of the standard horizon.

    Raises:
        PolarConditionError: The sun does not rise or set on this day.
        CalculationError: The solar backend failed.
    """
    result = _crossing(Prayer.SUNRISE, day, location, delta_t, service)
    if isinstance(result, RegularDay):
        return PrayerTime(Prayer.SUNRISE, result.sunrise.time(), method="sunrise")
    elif isinstance(result, (AllDay, AllNight)):
        raise polar_condition(Prayer.SUNRISE, day, result.category)
    else:
        assert_never(result)


def _dhuhr_moment(
    prayer: Prayer,
    day: date,
    location: Location,
    delta_t: float,
    service: SolarPositionService,
) -> datetime:
    """Local wall-clock Dhuhr: transit plus one minute. Defined on polar days too."""
    result = _crossing(prayer, day, location, delta_t, service)
    return _wall_clock(result.transit, DHUHR_OFFSET)


def dhuhr(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Dhuhr: one minute after solar transit. Defined on polar days and nights.

    Raises:
        CalculationError: The solar backend failed.
    """
    moment = _dhuhr_moment(Prayer.DHUHR, day, location, delta_t, service)
    return PrayerTime(Prayer.DHUHR, moment.time(), method="solar transit + 1 minute")


def asr_elevation(noon_zenith_angle: float, shadow_factor: float) -> float:
    """Solar elevation (degrees) at which a shadow is ``shadow_factor`` object
    heights longer than the noon shadow."""
    base_shadow = math.tan(math.radians(noon_zenith_angle))
    target_shadow = shadow_factor + base_shadow
    return 90.0 - math.degrees(math.atan(target_shadow))


def asr(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Asr: the afternoon crossing of the elevation given by ``asr_elevation``.

    The noon zenith is sampled at the Dhuhr moment.

    Raises:
        PolarConditionError: The sun is below the horizon at noon, or the
            Asr elevation is never crossed.
        CalculationError: The solar backend failed.
    """
    noon = location.tzinfo.localize(
        _dhuhr_moment(Prayer.ASR, day, location, delta_t, service)
    )
    position = _position(Prayer.ASR, noon, location, delta_t, service)
    if position.zenith_angle >= 90.0:
        # Sun below the horizon at noon: no shadow, so no Asr elevation
        raise polar_condition(Prayer.ASR, day, DayCategory.ALL_NIGHT)
    elevation = asr_elevation(
        position.zenith_angle, parameters.asr_method.shadow_factor
    )
    logger.debug(
        "Asr on %s: noon zenith %.3f°, target elevation %.3f° (%s)",
        day,
        position.zenith_angle,
        elevation,
        parameters.asr_method.value,
    )

    result = _crossing(Prayer.ASR, day, location, delta_t, service, elevation)
    if isinstance(result, RegularDay):
        return PrayerTime(
            Prayer.ASR,
            result.sunset.time(),
            method=(
                f"shadow length ({parameters.asr_method.value} method, "
                f"{elevation:.1f}° elevation)"
            ),
        )
    elif isinstance(result, (AllDay, AllNight)):
        raise polar_condition(Prayer.ASR, day, result.category)
    else:
        assert_never(result)


def maghrib(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Maghrib: the evening crossing of the standard horizon.

    Raises:
        PolarConditionError: The sun does not rise or set on this day.
        CalculationError: The solar backend failed.
    """
    result = _crossing(Prayer.MAGHRIB, day, location, delta_t, service)
    if isinstance(result, RegularDay):
        return PrayerTime(Prayer.MAGHRIB, result.sunset.time(), method="sunset")
    elif isinstance(result, (AllDay, AllNight)):
        raise polar_condition(Prayer.MAGHRIB, day, result.category)
    else:
        assert_never(result)


def ishaa(
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Ishaa: the evening crossing of the Ishaa depression angle.

    Raises:
        PolarConditionError: Non-regular day. There is no fallback for Ishaa.
        CalculationError: The solar backend failed.
    """
    # No Aqrab al-Bilad fallback here, even when it is enabled for Fajr
    result = _crossing(
        Prayer.ISHAA, day, location, delta_t, service, -parameters.ishaa_angle
    )
    if isinstance(result, RegularDay):
        return PrayerTime(
            Prayer.ISHAA,
            result.sunset.time(),
            method=_astronomical(parameters.ishaa_angle),
        )
    elif isinstance(result, (AllDay, AllNight)):
        raise polar_condition(Prayer.ISHAA, day, result.category)
    else:
        assert_never(result)


PrayerPolicy = Callable[
    [date, Location, CalculationParameters, float, SolarPositionService], PrayerTime
]

POLICIES: dict[Prayer, PrayerPolicy] = {
    Prayer.FAJR: fajr,
    Prayer.SUNRISE: sunrise,
    Prayer.DHUHR: dhuhr,
    Prayer.ASR: asr,
    Prayer.MAGHRIB: maghrib,
    Prayer.ISHAA: ishaa,
}


def calculate(
    prayer: Prayer,
    day: date,
    location: Location,
    parameters: CalculationParameters,
    delta_t: float,
    service: SolarPositionService,
) -> PrayerTime:
    """Run the policy for one prayer with a precomputed ΔT."""
    return POLICIES[prayer](day, location, parameters, delta_t, service)
