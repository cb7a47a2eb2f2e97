# tempus/core/calendar.py
# -----------------------------------------------------------------------------
# Gregorian calendar <-> two-part Julian Date
#
# Precision Guarantees:
#   • Two-part Julian Dates are never collapsed internally
#   • jd_to_calendar uses compensated summation of the day fractions and
#     integer-only Gregorian decomposition (agrees with ERFA jd2cal)
#   • J2000 day numbers: day 0 is 2000-01-01, calendar_to_jd returns the
#     Julian Date of noon of the given day
#
# Public API:
#   calendar_to_jd(y, m, d) -> TwoPartJD
#   calendar_hms_to_jd(y, m, d, h, mi, s) -> TwoPartJD
#   jd_to_calendar(jd1, jd2) -> (y, m, d, fd)
#   jd_to_calendar_hms(jd1, jd2) -> (y, m, d, h, mi, s)
#   hms_to_fraction / fraction_to_hms / fraction_to_hms_with_subsecond
#   j2000 / j2000s / j2000c
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
import sys
from typing import NamedTuple, Tuple, Union

from .duration import Duration, split_seconds
from .errors import CalendarRangeError

__all__ = [
    "DJ2000",
    "DMJD",
    "DJM0",
    "DAY2SEC",
    "CENTURY2DAY",
    "YEAR2SEC",
    "CENTURY2SEC",
    "JD_MIN",
    "JD_MAX",
    "TwoPartJD",
    "CalendarDate",
    "TimeOfDay",
    "CalendarDateTime",
    "is_leap_year",
    "find_day_in_year",
    "last_j2000_day_of_year",
    "find_year",
    "find_month",
    "find_day",
    "calendar_to_jd",
    "calendar_hms_to_jd",
    "jd_to_calendar",
    "jd_to_calendar_hms",
    "hms_to_fraction",
    "fraction_to_hms",
    "fraction_to_hms_with_subsecond",
    "j2000",
    "j2000s",
    "j2000c",
]

# ───────────────────────────── Constants ─────────────────────────────

DJ2000 = 2451545.0        # JD of 2000-01-01T12:00:00
DMJD = 51544.5            # MJD of J2000
DJM0 = 2400000.5          # JD of MJD zero
DAY2SEC = 86400
CENTURY2DAY = 36525
YEAR2SEC = 365.25 * DAY2SEC
CENTURY2SEC = CENTURY2DAY * DAY2SEC

JD_MIN = -68569.5
JD_MAX = 1e9

MIN_YEAR = 1583

_DBL_EPSILON = sys.float_info.epsilon

_MONTH_LENGTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
_MONTH_LENGTH_LEAP = (31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Days elapsed before the first of each month (index 1..12)
_PREVIOUS_MONTH_END_DAY = (0, 0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)
_PREVIOUS_MONTH_END_DAY_LEAP = (0, 0, 31, 60, 91, 121, 152, 182, 213, 244, 274, 305, 335)

# ───────────────────────────── Data Structures ─────────────────────────────

class TwoPartJD(NamedTuple):
    """Two-part Julian Date for maximum precision arithmetic."""
    jd1: float
    jd2: float

    @property
    def jd(self) -> float:
        """Collapsed single Julian Date (with minor precision loss)."""
        return math.fsum((self.jd1, self.jd2))

    def __add__(self, days) -> "TwoPartJD":
        """Add days to the second part."""
        return TwoPartJD(self.jd1, self.jd2 + days)

    def __sub__(self, other: "TwoPartJD") -> float:
        """Difference in days."""
        return (self.jd1 - other.jd1) + (self.jd2 - other.jd2)


class CalendarDate(NamedTuple):
    year: int
    month: int
    day: int

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


class TimeOfDay(NamedTuple):
    hour: int
    minute: int
    second: float

    def isoformat(self, digits: int = 4) -> str:
        width = 3 + digits if digits > 0 else 2
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:0{width}.{digits}f}"


class CalendarDateTime(NamedTuple):
    """Calendar date and time of day, with no time scale attached."""
    date: CalendarDate
    time: TimeOfDay

    @classmethod
    def from_j2000_seconds(cls, seconds: Union[Duration, float]) -> "CalendarDateTime":
        """Decompose seconds since J2000 without going through a floating Julian Date."""
        if isinstance(seconds, Duration):
            seconds = seconds.normalized()
            whole, frac = seconds.seconds, seconds.fraction
        else:
            whole, frac = split_seconds(seconds)

        # seconds since 2000-01-01T00:00:00
        days, rem = divmod(whole + DAY2SEC // 2, DAY2SEC)
        year = find_year(days)
        leap = is_leap_year(year)
        doy = days - last_j2000_day_of_year(year - 1)
        month = find_month(doy, leap)
        day = find_day(doy, month, leap)

        hour, rem = divmod(rem, 3600)
        minute, sec = divmod(rem, 60)
        return cls(CalendarDate(year, month, day), TimeOfDay(hour, minute, sec + frac))

    def isoformat(self, digits: int = 4) -> str:
        return f"{self.date.isoformat()}T{self.time.isoformat(digits)}"

    def to_jd(self) -> TwoPartJD:
        return calendar_hms_to_jd(*self.date, *self.time)

    def j2000s(self) -> float:
        """Seconds since J2000 as a float."""
        _, d = calendar_to_jd(*self.date)
        h, m, s = self.time
        return (int(d) * DAY2SEC - DAY2SEC // 2 + h * 3600 + m * 60) + s

# ───────────────────────────── Calendar Helpers ─────────────────────────────

def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def find_day_in_year(month: int, day: int, leap: bool) -> int:
    """1-based day of the year."""
    table = _PREVIOUS_MONTH_END_DAY_LEAP if leap else _PREVIOUS_MONTH_END_DAY
    return table[month] + day


def last_j2000_day_of_year(year: int) -> int:
    """J2000 day number of December 31 of ``year``."""
    return 365 * year + year // 4 - year // 100 + year // 400 - 730120


def find_year(d: int) -> int:
    """Gregorian year containing J2000 day number ``d``."""
    year = (400 * d + 292194288) // 146097
    if d <= last_j2000_day_of_year(year - 1):
        year -= 1
    return year


def find_month(doy: int, leap: bool) -> int:
    """Month containing the 1-based day of year ``doy``."""
    if doy < 32:
        return 1
    return (10 * doy + (313 if leap else 323)) // 306


def find_day(doy: int, month: int, leap: bool) -> int:
    table = _PREVIOUS_MONTH_END_DAY_LEAP if leap else _PREVIOUS_MONTH_END_DAY
    return doy - table[month]

# ───────────────────────────── Calendar -> Julian Date ─────────────────────────────

def _check_date(year: int, month: int, day: int) -> bool:
    if year < MIN_YEAR:
        raise CalendarRangeError(
            f"Year {year} is outside the Gregorian range (year >= {MIN_YEAR})",
            year=year,
        )
    if not 1 <= month <= 12:
        raise CalendarRangeError(f"Invalid month: {month} (must be 1-12)", month=month)
    leap = is_leap_year(year)
    length = (_MONTH_LENGTH_LEAP if leap else _MONTH_LENGTH)[month - 1]
    if not 1 <= day <= length:
        raise CalendarRangeError(
            f"Invalid day {day} for {year}-{month:02d} (must be 1-{length})",
            year=year, month=month, day=day,
        )
    return leap


def calendar_to_jd(year: int, month: int, day: int) -> TwoPartJD:
    """Julian Date of noon of a Gregorian date, as ``(DJ2000, days since J2000)``.

    >>> calendar_to_jd(2000, 1, 1)
    TwoPartJD(jd1=2451545.0, jd2=0.0)
    """
    leap = _check_date(year, month, day)
    d = last_j2000_day_of_year(year - 1) + find_day_in_year(month, day, leap)
    return TwoPartJD(DJ2000, float(d))


def calendar_hms_to_jd(year: int, month: int, day: int,
                       hour: int = 0, minute: int = 0, second: float = 0.0) -> TwoPartJD:
    jd1, d = calendar_to_jd(year, month, day)
    fd = hms_to_fraction(hour, minute, second)
    return TwoPartJD(jd1, d + fd - 0.5)

# ───────────────────────────── Julian Date -> Calendar ─────────────────────────────

def _dnint(x: float) -> float:
    # nearest integer, halves away from zero
    return math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5)


def jd_to_calendar(jd1: float, jd2: float = 0.0) -> Tuple[int, int, int, float]:
    """Gregorian year, month, day and fraction of day for a two-part Julian Date.

    The parts may be split in any way (``jd1 + jd2`` is the Julian Date).
    The returned fraction satisfies ``0 <= fd < 1``.
    """
    dj1, dj2 = float(jd1), float(jd2)
    total = dj1 + dj2
    if not JD_MIN <= total <= JD_MAX:
        raise CalendarRangeError(
            f"Julian Date {total} outside the supported range [{JD_MIN}, {JD_MAX:g}]",
            jd1=jd1, jd2=jd2,
        )

    d1 = _dnint(dj1)
    d2 = _dnint(dj2)
    jd = int(d1) + int(d2)
    f1 = dj1 - d1
    f2 = dj2 - d2

    # compensated summation of 0.5 + f1 + f2
    s = 0.5
    cs = 0.0
    for x in (f1, f2):
        t = s + x
        cs += (s - t) + x if abs(s) >= abs(x) else (x - t) + s
        s = t
        if s >= 1.0:
            jd += 1
            s -= 1.0
    f = s + cs
    cs = f - s

    if f < 0.0:
        f = s + 1.0
        cs += (1.0 - f) + s
        s = f
        f = s + cs
        cs = f - s
        jd -= 1

    # f is 1.0 or more once rounded to double
    if (f - 1.0) >= -_DBL_EPSILON / 4.0:
        t = s - 1.0
        cs += (s - t) - 1.0
        s = t
        f = s + cs
        if -_DBL_EPSILON / 2.0 < f:
            jd += 1
            f = max(f, 0.0)

    l = jd + 68569
    n = (4 * l) // 146097
    l -= (146097 * n + 3) // 4
    i = (4000 * (l + 1)) // 1461001
    l -= (1461 * i) // 4 - 31
    k = (80 * l) // 2447
    day = l - (2447 * k) // 80
    l = k // 11
    month = k + 2 - 12 * l
    year = 100 * (n - 49) + i + l

    return year, month, day, f


def jd_to_calendar_hms(jd1: float, jd2: float = 0.0) -> Tuple[int, int, int, int, int, float]:
    year, month, day, fd = jd_to_calendar(jd1, jd2)
    hour, minute, second = fraction_to_hms(fd)
    return year, month, day, hour, minute, second

# ───────────────────────────── Time of Day ─────────────────────────────

def hms_to_fraction(hour: int, minute: int, second: float) -> float:
    """Fraction of day for a time of day."""
    if not 0 <= hour <= 23:
        raise CalendarRangeError(f"Invalid hour: {hour} (must be 0-23)", hour=hour)
    if not 0 <= minute <= 59:
        raise CalendarRangeError(f"Invalid minute: {minute} (must be 0-59)", minute=minute)
    if not 0 <= second < 60:
        raise CalendarRangeError(f"Invalid second: {second} (must be 0 <= s < 60)", second=second)
    return (60 * (60 * hour + minute) + second) / DAY2SEC


def fraction_to_hms(fd: float) -> Tuple[int, int, float]:
    secs = fd * DAY2SEC
    if not 0 <= secs <= DAY2SEC:
        raise CalendarRangeError(f"Fraction of day {fd} outside [0, 1]", fraction=fd)
    hour = int(secs // 3600)
    secs -= hour * 3600
    minute = int(secs // 60)
    secs -= minute * 60
    return hour, minute, secs


def fraction_to_hms_with_subsecond(fd: float) -> Tuple[int, int, int, float]:
    """Like fraction_to_hms, with the seconds split into integer and fraction."""
    hour, minute, secs = fraction_to_hms(fd)
    whole = int(math.floor(secs))
    return hour, minute, whole, secs - whole

# ───────────────────────────── J2000 Offsets ─────────────────────────────

def j2000(jd1: float, jd2: float = 0.0) -> float:
    """Days since J2000, subtracting from the larger part first."""
    if abs(jd1) > abs(jd2):
        return (jd1 - DJ2000) + jd2
    return (jd2 - DJ2000) + jd1


def j2000s(jd1: float, jd2: float = 0.0) -> float:
    """Seconds since J2000."""
    return j2000(jd1, jd2) * DAY2SEC


def j2000c(jd1: float, jd2: float = 0.0) -> float:
    """Julian centuries since J2000."""
    return j2000(jd1, jd2) / CENTURY2DAY
