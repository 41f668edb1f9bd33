"""Exception taxonomy shared by the value model, policy engine, and calculator."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from salahtimes.models import Prayer
    from salahtimes.solar import DayCategory


class PrayerTimeError(Exception):
    """Base class for every error raised by salahtimes."""


class InvalidInputError(PrayerTimeError, ValueError):
    """Missing, ill-typed, or out-of-range input. Never retried."""


class PolarConditionError(PrayerTimeError):
    """The solar event a prayer needs does not occur on this date and location.

    Attributes:
        prayer: Prayer whose event is missing.
        day: Local calendar date of the calculation.
        category: Which non-regular day (ALL_DAY or ALL_NIGHT) caused it.
    """

    def __init__(
        self, message: str, prayer: Prayer, day: date, category: DayCategory
    ) -> None:
        super().__init__(message)
        self.prayer = prayer
        self.day = day
        self.category = category


class CalculationError(PrayerTimeError):
    """The solar position service failed for a reason other than a polar day.

    ``prayer`` is None when the failure is not tied to one prayer (ΔT estimation).
    """

    def __init__(
        self, message: str, prayer: Prayer | None, cause: BaseException
    ) -> None:
        super().__init__(message)
        self.prayer = prayer
        self.cause = cause
