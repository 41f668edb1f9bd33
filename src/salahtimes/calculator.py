"""Calculator facade: input validation, shared ΔT, and whole-day assembly."""

import logging
from datetime import date, datetime
from typing import Protocol

from salahtimes import policy
from salahtimes.errors import CalculationError, InvalidInputError
from salahtimes.models import (
    CalculationParameters,
    Location,
    Prayer,
    PrayerTime,
    PrayerTimes,
)
from salahtimes.solar import (
    SkyfieldSolarPositionService,
    SolarPositionError,
    SolarPositionService,
)

logger = logging.getLogger(__name__)


class PrayerTimeCalculator(Protocol):
    """Anything that can produce a day's prayer times (astronomical, observed, ...)."""

    def calculate_all(
        self, day: date, location: Location, parameters: CalculationParameters
    ) -> PrayerTimes: ...

    def calculate_one(
        self,
        prayer: Prayer,
        day: date,
        location: Location,
        parameters: CalculationParameters,
    ) -> PrayerTime: ...


def _validate(
    day: object, location: object, parameters: object
) -> tuple[date, Location, CalculationParameters]:
    if day is None:
        raise InvalidInputError("Date cannot be None")
    if location is None:
        raise InvalidInputError("Location cannot be None")
    if parameters is None:
        raise InvalidInputError("Parameters cannot be None")
    if not isinstance(day, date):
        raise InvalidInputError(f"Date must be a datetime.date, got {day!r}")
    if not isinstance(location, Location):
        raise InvalidInputError(f"Location must be a Location, got {location!r}")
    if not isinstance(parameters, CalculationParameters):
        raise InvalidInputError(
            f"Parameters must be CalculationParameters, got {parameters!r}"
        )
    if isinstance(day, datetime):
        day = day.date()
    return day, location, parameters


class AstronomicalCalculator:
    """Prayer times from solar geometry.

    Args:
        service: Solar position backend. Defaults to the skyfield adapter.
    """

    def __init__(self, service: SolarPositionService | None = None):
        self.service = service if service is not None else SkyfieldSolarPositionService()

    def _delta_t(self, day: date) -> float:
        try:
            return self.service.estimate_delta_t(day)
        except SolarPositionError as exc:
            raise CalculationError(
                f"Failed to estimate ΔT for {day}: {exc}", prayer=None, cause=exc
            ) from exc

    def calculate_all(
        self, day: date, location: Location, parameters: CalculationParameters
    ) -> PrayerTimes:
        """Compute all six prayers for one day, sharing a single ΔT estimate.

        Raises:
            InvalidInputError: On missing or ill-typed inputs.
            PolarConditionError: When any prayer's event does not occur.
            CalculationError: When the solar backend fails.
        """
        day, location, parameters = _validate(day, location, parameters)
        delta_t = self._delta_t(day)
        logger.debug("Calculating %s at %s with ΔT=%.2fs", day, location, delta_t)

        times = {
            prayer: policy.calculate(
                prayer, day, location, parameters, delta_t, self.service
            )
            for prayer in Prayer
        }
        return PrayerTimes(day=day, location=location, times=times)

    def calculate_one(
        self,
        prayer: Prayer | str,
        day: date,
        location: Location,
        parameters: CalculationParameters,
    ) -> PrayerTime:
        """Compute a single prayer. ΔT is estimated for this call alone."""
        if prayer is None:
            raise InvalidInputError("Prayer cannot be None")
        prayer = Prayer.parse(prayer)
        day, location, parameters = _validate(day, location, parameters)
        delta_t = self._delta_t(day)
        return policy.calculate(prayer, day, location, parameters, delta_t, self.service)


_default: AstronomicalCalculator | None = None


def _default_calculator() -> AstronomicalCalculator:
    global _default
    if _default is None:
        _default = AstronomicalCalculator()
    return _default


def calculate_all(
    day: date, location: Location, parameters: CalculationParameters
) -> PrayerTimes:
    """Top-level entry point: one day's PrayerTimes with the skyfield backend."""
    return _default_calculator().calculate_all(day, location, parameters)


def calculate_one(
    prayer: Prayer | str,
    day: date,
    location: Location,
    parameters: CalculationParameters,
) -> PrayerTime:
    """Top-level entry point: a single PrayerTime with the skyfield backend."""
    return _default_calculator().calculate_one(prayer, day, location, parameters)
