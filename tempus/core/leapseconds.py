# tempus/core/leapseconds.py
# -----------------------------------------------------------------------------
# TAI-UTC leap second table
#
# The table maps days since J2000 (0h UTC of the day a value takes effect)
# to TAI-UTC in seconds. It is immutable once built and safe to share.
#
# Sources, in order of precedence for default_leap_seconds():
#   1. TEMPUS_LEAPSECONDS_JSON  list of {"mjd": ..., "delta_at": ...}
#   2. TEMPUS_LEAPSECONDS_TLS   NAIF leap seconds kernel (DELTA_AT block)
#   3. Built-in table (IERS, through 2017-01-01)
#
# Public API:
#   LeapSecondTable.from_records / from_json / from_tls
#   default_leap_seconds() -> LeapSecondTable
#   leapseconds(day, table=None) -> float
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Tuple

import numpy as np

from .calendar import DMJD, CalendarDateTime, calendar_to_jd
from .config import get_config
from .errors import CalendarRangeError, LeapSecondTableError

log = logging.getLogger(__name__)

__all__ = [
    "LEAP_SECOND_RECORDS",
    "LeapSecondTable",
    "default_leap_seconds",
    "leapseconds",
]

# ───────────────────────────── Built-in Data ─────────────────────────────

# (MJD of 0h UTC, TAI-UTC seconds, reference)
LEAP_SECOND_RECORDS: Tuple[Tuple[float, float, str], ...] = (
    (41317.0, 10.0, "IERS-1972-01-01"),
    (41499.0, 11.0, "IERS-1972-07-01"),
    (41683.0, 12.0, "IERS-1973-01-01"),
    (42048.0, 13.0, "IERS-1974-01-01"),
    (42413.0, 14.0, "IERS-1975-01-01"),
    (42778.0, 15.0, "IERS-1976-01-01"),
    (43144.0, 16.0, "IERS-1977-01-01"),
    (43509.0, 17.0, "IERS-1978-01-01"),
    (43874.0, 18.0, "IERS-1979-01-01"),
    (44239.0, 19.0, "IERS-1980-01-01"),
    (44786.0, 20.0, "IERS-1981-07-01"),
    (45151.0, 21.0, "IERS-1982-07-01"),
    (45516.0, 22.0, "IERS-1983-07-01"),
    (46247.0, 23.0, "IERS-1985-07-01"),
    (47161.0, 24.0, "IERS-1988-01-01"),
    (47892.0, 25.0, "IERS-1990-01-01"),
    (48257.0, 26.0, "IERS-1991-01-01"),
    (48804.0, 27.0, "IERS-1992-07-01"),
    (49169.0, 28.0, "IERS-1993-07-01"),
    (49534.0, 29.0, "IERS-1994-07-01"),
    (50083.0, 30.0, "IERS-1996-01-01"),
    (50630.0, 31.0, "IERS-1997-07-01"),
    (51179.0, 32.0, "IERS-1999-01-01"),
    (53736.0, 33.0, "IERS-2006-01-01"),
    (54832.0, 34.0, "IERS-2009-01-01"),
    (56109.0, 35.0, "IERS-2012-07-01"),
    (57204.0, 36.0, "IERS-2015-07-01"),
    (57754.0, 37.0, "IERS-2017-01-01"),  # last known leap second
)

_MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

_TLS_BLOCK_RE = re.compile(r"DELTA_AT\s*=\s*\((?P<body>[^)]*)\)", re.IGNORECASE)
_TLS_ENTRY_RE = re.compile(
    r"(?P<value>[-+]?\d+(?:\.\d*)?)\s*,\s*@(?P<y>\d{4})-(?P<m>[A-Za-z]{3})-(?P<d>\d{1,2})"
)

# ───────────────────────────── Table ─────────────────────────────

@dataclass(frozen=True, eq=False)
class LeapSecondTable:
    """Read-only TAI-UTC table keyed by days since J2000."""
    jd2000: np.ndarray
    leap: np.ndarray
    last_update: str
    source: str

    def __post_init__(self):
        jd2000 = np.array(self.jd2000, dtype=np.float64)
        leap = np.array(self.leap, dtype=np.float64)
        if jd2000.ndim != 1 or jd2000.shape != leap.shape:
            raise LeapSecondTableError(
                "Leap second table columns must be 1-D and of equal length",
                source=self.source,
            )
        if jd2000.size == 0:
            raise LeapSecondTableError("Empty leap second table", source=self.source)
        if np.any(np.diff(jd2000) <= 0):
            raise LeapSecondTableError(
                "Leap second dates must be strictly increasing", source=self.source
            )
        jd2000.setflags(write=False)
        leap.setflags(write=False)
        object.__setattr__(self, "jd2000", jd2000)
        object.__setattr__(self, "leap", leap)

    # ── constructors ──

    @classmethod
    def from_records(cls, records: Iterable[Any], source: str = "records") -> "LeapSecondTable":
        """Build from ``(mjd, delta_at[, reference])`` tuples or ``{"mjd", "delta_at"}`` dicts."""
        steps: List[Tuple[float, float]] = []
        try:
            for row in records:
                if isinstance(row, dict):
                    steps.append((float(row["mjd"]), float(row["delta_at"])))
                else:
                    steps.append((float(row[0]), float(row[1])))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LeapSecondTableError(f"Malformed leap second record: {e}", source=source) from e

        steps.sort(key=lambda t: t[0])
        mjd = np.array([s[0] for s in steps], dtype=np.float64)
        leap = np.array([s[1] for s in steps], dtype=np.float64)
        last_update = _mjd_isoformat(mjd[-1]) if mjd.size else ""
        return cls(jd2000=mjd - DMJD, leap=leap, last_update=last_update, source=source)

    @classmethod
    def from_json(cls, path: str) -> "LeapSecondTable":
        """Load the ``[{"mjd": 57754, "delta_at": 37}, ...]`` format."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LeapSecondTableError(f"Cannot read leap second JSON {path}: {e}", source=path) from e
        if not isinstance(data, list):
            raise LeapSecondTableError("Leap second JSON must be a list of records", source=path)
        return cls.from_records(data, source=path)

    @classmethod
    def from_tls(cls, path: str) -> "LeapSecondTable":
        """Load the DELTA_AT block of a NAIF leap seconds kernel."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise LeapSecondTableError(f"Cannot read leap seconds kernel {path}: {e}", source=path) from e
        return cls.from_tls_text(text, source=path)

    @classmethod
    def from_tls_text(cls, text: str, source: str = "tls") -> "LeapSecondTable":
        block = _TLS_BLOCK_RE.search(text)
        if block is None:
            raise LeapSecondTableError("No DELTA_AT assignment in leap seconds kernel", source=source)

        records = []
        for m in _TLS_ENTRY_RE.finditer(block.group("body")):
            month = _MONTHS.get(m.group("m").upper())
            if month is None:
                raise LeapSecondTableError(f"Unknown month {m.group('m')!r}", source=source)
            try:
                _, d = calendar_to_jd(int(m.group("y")), month, int(m.group("d")))
            except CalendarRangeError as e:
                raise LeapSecondTableError(f"Invalid leap second date: {e}", source=source) from e
            # d is the J2000 day number, MJD of its 0h is DMJD + d - 0.5
            records.append((DMJD + d - 0.5, float(m.group("value"))))
        if not records:
            raise LeapSecondTableError("DELTA_AT block has no entries", source=source)
        return cls.from_records(records, source=source)

    # ── queries ──

    def lookup(self, day: float) -> float:
        """TAI-UTC in effect on ``day`` (days since J2000); 0 before the first entry."""
        idx = int(np.searchsorted(self.jd2000, day, side="right")) - 1
        if idx < 0:
            log.warning(
                "Date %.1f days from J2000 precedes the leap second table (%s); using TAI-UTC = 0",
                day, self.source,
            )
            return 0.0
        return float(self.leap[idx])

    def __len__(self) -> int:
        return int(self.jd2000.size)

    def __eq__(self, other):
        if not isinstance(other, LeapSecondTable):
            return NotImplemented
        return np.array_equal(self.jd2000, other.jd2000) and np.array_equal(self.leap, other.leap)

    __hash__ = None


def _mjd_isoformat(mjd: float) -> str:
    # J2000 seconds of 0h of that MJD
    seconds = int(round((mjd - DMJD) * 86400))
    return CalendarDateTime.from_j2000_seconds(seconds).date.isoformat()

# ───────────────────────────── Defaults ─────────────────────────────

@lru_cache(maxsize=1)
def default_leap_seconds() -> LeapSecondTable:
    """Process-wide table, built once from configuration or the built-in data."""
    cfg = get_config()
    if cfg.leap_seconds_json:
        log.warning("Loading leap second override table from %s", cfg.leap_seconds_json)
        return LeapSecondTable.from_json(cfg.leap_seconds_json)
    if cfg.leap_seconds_tls:
        log.warning("Loading leap seconds kernel from %s", cfg.leap_seconds_tls)
        return LeapSecondTable.from_tls(cfg.leap_seconds_tls)
    return LeapSecondTable.from_records(LEAP_SECOND_RECORDS, source="builtin")


def leapseconds(day: float, table: Optional[LeapSecondTable] = None) -> float:
    """TAI-UTC in seconds for ``day`` days since J2000."""
    return (table if table is not None else default_leap_seconds()).lookup(day)
