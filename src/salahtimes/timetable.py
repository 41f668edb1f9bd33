"""CLI entry point for a single day's prayer timetable.

    uv run salahtimes 52.52 13.405 --elevation 34 --timezone Europe/Berlin --ishaa-angle 12
"""

import argparse
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from salahtimes.calculator import calculate_all, calculate_one
from salahtimes.errors import PrayerTimeError
from salahtimes.models import CalculationParameters, Location, Prayer, PrayerTimes


def render_timetable(prayer_times: PrayerTimes) -> str:
    """Plain-text table: one line per prayer, Aqrab al-Bilad entries marked."""
    loc = prayer_times.location
    lines = [
        f"{prayer_times.day.isoformat()}  "
        f"({loc.latitude:.4f}, {loc.longitude:.4f})  {loc.timezone}"
    ]
    for entry in prayer_times:
        marker = "*" if entry.is_aqrab_al_bilad else " "
        lines.append(
            f"  {entry.prayer.value:<8} {entry.time.strftime('%H:%M')}{marker} "
            f"{entry.method or ''}".rstrip()
        )
    if any(entry.is_aqrab_al_bilad for entry in prayer_times):
        lines.append("  * Aqrab al-Bilad")
    return "\n".join(lines)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salahtimes", description=__doc__)
    parser.add_argument("latitude", type=float)
    parser.add_argument("longitude", type=float)
    parser.add_argument("--elevation", type=float, default=0.0)
    parser.add_argument("--timezone", default="UTC")
    parser.add_argument("--date", type=date.fromisoformat, default=None)
    parser.add_argument("--fajr-angle", type=float, default=18.0)
    parser.add_argument("--ishaa-angle", type=float, default=18.0)
    parser.add_argument("--asr", choices=["shafii", "hanafi"], default="shafii")
    parser.add_argument("--no-aqrab-al-bilad", action="store_true")
    parser.add_argument("--prayer", choices=[p.name.lower() for p in Prayer])
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        location = Location(
            args.latitude,
            args.longitude,
            elevation=args.elevation,
            timezone=args.timezone,
        )
        parameters = (
            CalculationParameters.builder()
            .fajr_angle(args.fajr_angle)
            .ishaa_angle(args.ishaa_angle)
            .asr_method(args.asr)
            .use_aqrab_al_bilad(not args.no_aqrab_al_bilad)
            .build()
        )
        day = args.date or date.today()
        if args.prayer:
            print(calculate_one(args.prayer, day, location, parameters))
        else:
            print(render_timetable(calculate_all(day, location, parameters)))
    except PrayerTimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
