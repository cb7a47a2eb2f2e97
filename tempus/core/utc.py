# tempus/core/utc.py
# -----------------------------------------------------------------------------
# UTC <-> TAI bridge on two-part Julian Dates
#
# On a day that ends with a leap second the UTC day is 86400 + dleap SI
# seconds long; the fraction of day is stretched over the whole day, so
# 23:59:60.5 UTC maps to a TAI instant inside the inserted second.
# Results keep the caller's part ordering (the larger part is never touched).
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from .calendar import DAY2SEC, DJ2000, TwoPartJD, calendar_to_jd, jd_to_calendar
from .config import get_config
from .leapseconds import LeapSecondTable, leapseconds

__all__ = [
    "utc_to_tai",
    "tai_to_utc",
]


def utc_to_tai(utc1: float, utc2: float, table: Optional[LeapSecondTable] = None) -> TwoPartJD:
    """Convert a two-part UTC Julian Date to TAI."""
    big1 = abs(utc1) >= abs(utc2)
    u1, u2 = (utc1, utc2) if big1 else (utc2, utc1)

    iy, im, iday, fd = jd_to_calendar(u1, u2)
    _, d0 = calendar_to_jd(iy, im, iday)
    dat0 = leapseconds(d0 - 0.5, table)

    # TAI-UTC at 0h tomorrow
    iyt, imt, idt, _ = jd_to_calendar(u1 + 1.5, u2 - fd)
    _, d1 = calendar_to_jd(iyt, imt, idt)
    dat24 = leapseconds(d1 - 0.5, table)

    dleap = dat24 - dat0
    if dleap:
        fd *= (DAY2SEC + dleap) / DAY2SEC

    a2 = DJ2000 - u1
    a2 += d0 - 0.5
    a2 += fd + dat0 / DAY2SEC

    return TwoPartJD(u1, a2) if big1 else TwoPartJD(a2, u1)


def tai_to_utc(tai1: float, tai2: float, table: Optional[LeapSecondTable] = None,
               iterations: Optional[int] = None) -> TwoPartJD:
    """Convert a two-part TAI Julian Date to UTC by fixed-point iteration of utc_to_tai."""
    if iterations is None:
        iterations = get_config().tai_utc_iterations
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")

    big1 = abs(tai1) >= abs(tai2)
    a1, a2 = (tai1, tai2) if big1 else (tai2, tai1)

    u1, u2 = a1, a2
    for _ in range(iterations):
        g1, g2 = utc_to_tai(u1, u2, table)
        u2 += a1 - g1
        u2 += a2 - g2

    return TwoPartJD(u1, u2) if big1 else TwoPartJD(u2, u1)
