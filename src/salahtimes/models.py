"""Value model: immutable, validated inputs and results of a prayer-time calculation."""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from datetime import tzinfo as TzInfo
from enum import Enum
from types import MappingProxyType

import pytz

from salahtimes.errors import InvalidInputError


class Prayer(Enum):
    """The six daily markers, in chronological order."""

    FAJR = "Fajr"
    SUNRISE = "Sunrise"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHAA = "Ishaa"

    @classmethod
    def parse(cls, value: "Prayer | str") -> "Prayer":
        """Accept a Prayer, its name ("FAJR") or its display value ("Fajr")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise InvalidInputError(f"Unknown prayer: {value!r}")


class AsrMethod(Enum):
    """Schools of jurisprudence for the start of Asr."""

    SHAFII = "Shafii"  # Shafii/Maliki/Hanbali: shadow = 1 × object height + noon shadow
    HANAFI = "Hanafi"  # Hanafi: shadow = 2 × object height + noon shadow

    @property
    def shadow_factor(self) -> float:
        return 2.0 if self is AsrMethod.HANAFI else 1.0

    @classmethod
    def parse(cls, value: "AsrMethod | str") -> "AsrMethod":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise InvalidInputError(f"Asr method must be SHAFII or HANAFI, got {value!r}")


def _real(name: str, value: object) -> float:
    """Coerce a finite int/float to float. bool and NaN/inf are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return value


def _in_range(name: str, value: object, low: float, high: float, unit: str) -> float:
    number = _real(name, value)
    if not low <= number <= high:
        raise InvalidInputError(f"{name} must be between {low:g} and {high:g} {unit}")
    return number


def _check_angle(name: str, value: object) -> float:
    angle = _real(name, value)
    if angle <= 0 or angle >= 90:
        raise InvalidInputError(f"{name} must be between 0 and 90 degrees (exclusive)")
    return angle


@dataclass(frozen=True)
class Location:
    """Observer position and atmosphere. Validated at construction."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]
    elevation: float = 0.0  # Meters above sea level
    pressure: float = 1010.0  # Atmospheric pressure (hPa), [0, 3000]
    temperature: float = 15.0  # Air temperature (°C), [-273, 273]
    timezone: str = "UTC"  # IANA identifier ("Europe/Berlin")

    def __post_init__(self) -> None:
        checked = {
            "latitude": _in_range("Latitude", self.latitude, -90, 90, "degrees"),
            "longitude": _in_range("Longitude", self.longitude, -180, 180, "degrees"),
            "elevation": _real("Elevation", self.elevation),
            "pressure": _in_range("Pressure", self.pressure, 0, 3000, "hPa"),
            "temperature": _in_range(
                "Temperature", self.temperature, -273, 273, "degrees Celsius"
            ),
        }
        if not isinstance(self.timezone, str) or not self.timezone:
            raise InvalidInputError("Timezone must be a non-empty IANA identifier")
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise InvalidInputError(f"Unknown timezone: {self.timezone}") from exc
        for name, value in checked.items():
            object.__setattr__(self, name, value)

    @property
    def tzinfo(self) -> TzInfo:
        return pytz.timezone(self.timezone)

    def start_of_day(self, day: date) -> datetime:
        """Aware local midnight of ``day`` in this location's timezone."""
        return self.tzinfo.localize(datetime.combine(day, time()))

    def __str__(self) -> str:
        return (
            f"Location(lat={self.latitude:.6f}, lon={self.longitude:.6f}, "
            f"elevation={self.elevation:.1f}m, pressure={self.pressure:.1f}hPa, "
            f"temp={self.temperature:.1f}°C, timezone={self.timezone})"
        )


@dataclass(frozen=True)
class CalculationParameters:
    """Jurisprudential settings. Build through ``CalculationParameters.builder()``."""

    fajr_angle: float = 18.0  # Sun depression at Fajr (degrees), (0, 90)
    ishaa_angle: float = 18.0  # Sun depression at Ishaa (degrees), (0, 90)
    asr_method: AsrMethod = AsrMethod.SHAFII
    use_aqrab_al_bilad: bool = True  # Solar-midnight Fajr when the angle is never reached

    def __post_init__(self) -> None:
        object.__setattr__(self, "fajr_angle", _check_angle("Fajr angle", self.fajr_angle))
        object.__setattr__(
            self, "ishaa_angle", _check_angle("Ishaa angle", self.ishaa_angle)
        )
        object.__setattr__(self, "asr_method", AsrMethod.parse(self.asr_method))
        if not isinstance(self.use_aqrab_al_bilad, bool):
            raise InvalidInputError("use_aqrab_al_bilad must be a bool")

    @staticmethod
    def builder() -> "CalculationParametersBuilder":
        return CalculationParametersBuilder()

    @classmethod
    def create_default(cls) -> "CalculationParameters":
        """Recommended preset: Fajr 18°, Ishaa 12°, Shafii Asr, Aqrab al-Bilad on."""
        return (
            cls.builder()
            .fajr_angle(18.0)
            .ishaa_angle(12.0)
            .asr_method(AsrMethod.SHAFII)
            .use_aqrab_al_bilad(True)
            .build()
        )

    def __str__(self) -> str:
        return (
            f"CalculationParameters(fajr={self.fajr_angle:.1f}°, "
            f"ishaa={self.ishaa_angle:.1f}°, asr={self.asr_method.value}, "
            f"aqrab_al_bilad={self.use_aqrab_al_bilad})"
        )


class CalculationParametersBuilder:
    """Staged builder. Each setter validates its value before storing it."""

    def __init__(self) -> None:
        self._fajr_angle = 18.0
        self._ishaa_angle = 18.0
        self._asr_method = AsrMethod.SHAFII
        self._use_aqrab_al_bilad = True

    def fajr_angle(self, angle: float) -> "CalculationParametersBuilder":
        self._fajr_angle = _check_angle("Fajr angle", angle)
        return self

    def ishaa_angle(self, angle: float) -> "CalculationParametersBuilder":
        self._ishaa_angle = _check_angle("Ishaa angle", angle)
        return self

    def asr_method(self, method: AsrMethod | str) -> "CalculationParametersBuilder":
        self._asr_method = AsrMethod.parse(method)
        return self

    def use_aqrab_al_bilad(self, use: bool) -> "CalculationParametersBuilder":
        if not isinstance(use, bool):
            raise InvalidInputError("use_aqrab_al_bilad must be a bool")
        self._use_aqrab_al_bilad = use
        return self

    def build(self) -> CalculationParameters:
        return CalculationParameters(
            fajr_angle=self._fajr_angle,
            ishaa_angle=self._ishaa_angle,
            asr_method=self._asr_method,
            use_aqrab_al_bilad=self._use_aqrab_al_bilad,
        )


@dataclass(frozen=True)
class PrayerTime:
    """One prayer's local wall-clock time and how it was obtained."""

    prayer: Prayer
    time: time  # Local wall-clock time in the location's timezone
    is_aqrab_al_bilad: bool = False  # True when produced by the Aqrab al-Bilad fallback
    method: str | None = None  # Human-readable provenance ("sunset", "Aqrab al-Bilad")

    def __post_init__(self) -> None:
        if not isinstance(self.prayer, Prayer):
            raise InvalidInputError(f"prayer must be a Prayer, got {self.prayer!r}")
        if not isinstance(self.time, time):
            raise InvalidInputError(f"time must be a datetime.time, got {self.time!r}")

    def __str__(self) -> str:
        text = f"{self.prayer.value} at {self.time.strftime('%H:%M:%S')}"
        if self.is_aqrab_al_bilad:
            text += " (Aqrab al-Bilad)"
        if self.method is not None:
            text += f" [{self.method}]"
        return text


@dataclass(frozen=True)
class PrayerTimes:
    """A complete day: all six prayers for one date and location.

    A partial day is not a valid instance.
    """

    day: date
    location: Location
    times: Mapping[Prayer, PrayerTime] = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.day, date):
            raise InvalidInputError("day must be a datetime.date")
        if not isinstance(self.location, Location):
            raise InvalidInputError("location must be a Location")
        if not isinstance(self.times, Mapping):
            raise InvalidInputError("times must be a mapping of Prayer to PrayerTime")
        for prayer in Prayer:
            entry = self.times.get(prayer)
            if entry is None:
                raise InvalidInputError(f"Missing prayer time for {prayer.value}")
            if entry.prayer is not prayer:
                raise InvalidInputError(
                    f"Entry for {prayer.value} holds {entry.prayer.value}"
                )
        ordered = {prayer: self.times[prayer] for prayer in Prayer}
        object.__setattr__(self, "times", MappingProxyType(ordered))

    def __hash__(self) -> int:
        return hash((self.day, self.location, tuple(self.times.values())))

    def __getitem__(self, prayer: Prayer) -> PrayerTime:
        return self.times[prayer]

    def __iter__(self) -> Iterator[PrayerTime]:
        return iter(self.times.values())

    @property
    def fajr(self) -> PrayerTime:
        return self.times[Prayer.FAJR]

    @property
    def sunrise(self) -> PrayerTime:
        return self.times[Prayer.SUNRISE]

    @property
    def dhuhr(self) -> PrayerTime:
        return self.times[Prayer.DHUHR]

    @property
    def asr(self) -> PrayerTime:
        return self.times[Prayer.ASR]

    @property
    def maghrib(self) -> PrayerTime:
        return self.times[Prayer.MAGHRIB]

    @property
    def ishaa(self) -> PrayerTime:
        return self.times[Prayer.ISHAA]
