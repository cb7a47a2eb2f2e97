# tempus/core/epoch.py
# -----------------------------------------------------------------------------
# Epoch: an instant as a split-precision Duration since J2000 in a time scale
#
# Conversions evaluate the graph's accumulated offset at the instant and add
# it to the Duration, so the integer seconds never pass through a float sum.
# An Epoch built from a JAX value stays traced through convert and seconds,
# so jax.grad of a converted epoch gives the scale rate.
#
# Public API:
#   Epoch(seconds | Duration, scale)
#   Epoch.from_calendar / from_datetime / from_jd / parse / range
#   epoch.convert(scale), arithmetic, ordering, accessors
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from numbers import Real
from typing import Iterator, Optional, Union

from .calendar import (
    CENTURY2SEC,
    DAY2SEC,
    DJ2000,
    DMJD,
    CalendarDateTime,
    TwoPartJD,
    calendar_to_jd,
    hms_to_fraction,
    last_j2000_day_of_year,
)
from .config import get_config
from .duration import Duration, is_traced
from .errors import ScaleMismatchError
from .parsing import parse_epoch, resolve_scale
from .timescales import Scale, ScaleTag, TimeScaleGraph, default_graph

__all__ = [
    "Epoch",
]

_HALF_DAY = DAY2SEC // 2


def _check_same_scale(a: "Epoch", b: "Epoch", operation: str) -> None:
    if a.scale.id != b.scale.id:
        raise ScaleMismatchError(
            f"Cannot {operation} epochs in {a.scale.name} and {b.scale.name}",
            left=a.scale.name, right=b.scale.name,
        )


class Epoch:
    """An instant: seconds since J2000 (2000-01-01T12:00:00) in a time scale.

    >>> e = Epoch.from_calendar(2004, 5, 14, 16, 43, 0.0, scale="UTC")
    >>> str(e.convert("TAI"))
    '2004-05-14T16:43:32.0000 TAI'
    """

    __slots__ = ("_scale", "_duration")

    def __init__(self, seconds: Union[Duration, Real], scale: Optional[ScaleTag] = None,
                 graph: Optional[TimeScaleGraph] = None):
        if scale is None:
            scale = get_config().default_scale
        self._scale = resolve_scale(scale, graph)
        duration = seconds if isinstance(seconds, Duration) else Duration(seconds)
        self._duration = duration.normalized()

    # ───────────────────────────── Constructors ─────────────────────────────

    @classmethod
    def from_calendar(cls, year: int, month: int, day: int, hour: int = 0, minute: int = 0,
                      second: float = 0.0, scale: Optional[ScaleTag] = None,
                      graph: Optional[TimeScaleGraph] = None) -> "Epoch":
        """Epoch from calendar fields; integer parts are assembled exactly."""
        _, d = calendar_to_jd(year, month, day)
        hms_to_fraction(hour, minute, second)
        whole = int(d) * DAY2SEC - _HALF_DAY + hour * 3600 + minute * 60
        return cls(Duration(whole) + Duration(second), scale, graph)

    @classmethod
    def from_datetime(cls, dt: CalendarDateTime, scale: Optional[ScaleTag] = None,
                      graph: Optional[TimeScaleGraph] = None) -> "Epoch":
        return cls.from_calendar(*dt.date, *dt.time, scale=scale, graph=graph)

    @classmethod
    def from_jd(cls, jd1: float, jd2: float = 0.0, scale: Optional[ScaleTag] = None,
                graph: Optional[TimeScaleGraph] = None) -> "Epoch":
        """Epoch from a two-part Julian Date in ``scale``."""
        if abs(jd1) < abs(jd2):
            jd1, jd2 = jd2, jd1
        days1 = jd1 - DJ2000
        n1 = math.floor(days1)
        n2 = math.floor(jd2)
        # whole days are exact; fractions carry the rest
        duration = (Duration((n1 + n2) * DAY2SEC)
                    + (days1 - n1) * DAY2SEC
                    + (jd2 - n2) * DAY2SEC)
        return cls(duration, scale, graph)

    @classmethod
    def parse(cls, text: str, scale: Optional[ScaleTag] = None,
              graph: Optional[TimeScaleGraph] = None) -> "Epoch":
        """Epoch from ``'2004-05-14T16:43:00 UTC'``, ``'JD 2451545.0 TT'``,
        ``'MJD 51544.5'`` or ``'0.5 TDB'`` (days since J2000)."""
        default = scale if scale is not None else get_config().default_scale
        parsed = parse_epoch(text, default, graph)
        if parsed.calendar is not None:
            return cls.from_datetime(parsed.calendar, parsed.scale)
        return cls.from_jd(parsed.jd1, parsed.jd2, parsed.scale)

    @classmethod
    def range(cls, start: "Epoch", stop: "Epoch",
              step: Union[Duration, Real] = DAY2SEC) -> Iterator["Epoch"]:
        """Epochs from ``start`` to ``stop`` inclusive, ``step`` seconds apart.

        The direction follows ``start`` and ``stop``; only the magnitude of
        ``step`` is used. Each epoch is ``start + i * step``, so rounding does
        not accumulate.
        """
        _check_same_scale(start, stop, "range between")
        if isinstance(step, Duration):
            step = step.value()
        if step == 0:
            raise ValueError("step must not be zero")
        span = stop - start
        step = abs(step) if span >= 0 else -abs(step)
        for i in range(math.floor(float(span) / step) + 1):
            yield start + i * step

    # ───────────────────────────── Accessors ─────────────────────────────

    @property
    def scale(self) -> Scale:
        return self._scale

    @property
    def duration(self) -> Duration:
        return self._duration

    @property
    def seconds(self):
        """Seconds since J2000 as a single float, or a JAX value when traced."""
        value = self._duration.value()
        return value if is_traced(value) else float(self._duration)

    def j2000s(self) -> float:
        return float(self._duration)

    def j2000(self) -> float:
        """Days since J2000."""
        days, rem = divmod(self._duration.seconds, DAY2SEC)
        return days + (rem + float(self._duration.fraction)) / DAY2SEC

    def j2000c(self) -> float:
        """Julian centuries since J2000."""
        return float(self._duration) / CENTURY2SEC

    def jd(self) -> TwoPartJD:
        days, rem = divmod(self._duration.seconds, DAY2SEC)
        return TwoPartJD(DJ2000 + days, (rem + float(self._duration.fraction)) / DAY2SEC)

    def mjd(self) -> float:
        days, rem = divmod(self._duration.seconds, DAY2SEC)
        return (DMJD + days) + (rem + float(self._duration.fraction)) / DAY2SEC

    def to_datetime(self) -> CalendarDateTime:
        return CalendarDateTime.from_j2000_seconds(self._duration)

    def doy(self) -> int:
        """1-based day of the year."""
        date = self.to_datetime().date
        _, d = calendar_to_jd(*date)
        return int(d) - last_j2000_day_of_year(date.year - 1)

    # ───────────────────────────── Conversion ─────────────────────────────

    def convert(self, scale: ScaleTag, graph: Optional[TimeScaleGraph] = None) -> "Epoch":
        """The same instant expressed in ``scale``."""
        graph = graph if graph is not None else default_graph()
        target = resolve_scale(scale, graph)
        if target.id == self._scale.id:
            return self
        duration = self._duration
        value = duration.value()
        if is_traced(value):
            return Epoch(duration + graph.offset(value, self._scale, target), target)
        delta = float(graph.offset(float(duration), self._scale, target))
        if not isinstance(duration.fraction, (int, float)):
            # Decimal and Fraction parts take the offset in their own type
            delta = duration.ftype(delta)
        return Epoch(duration + delta, target)

    # ───────────────────────────── Arithmetic ─────────────────────────────

    def __add__(self, other):
        if isinstance(other, (Duration, Real)):
            return Epoch(self._duration + other, self._scale)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Epoch):
            _check_same_scale(self, other, "subtract")
            return self._duration - other._duration
        if isinstance(other, (Duration, Real)):
            return Epoch(self._duration - other, self._scale)
        return NotImplemented

    # ───────────────────────────── Comparison ─────────────────────────────

    def __eq__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self._scale.id == other._scale.id and self._duration == other._duration

    def __hash__(self):
        return hash((self._scale.id, self._duration))

    def __lt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        _check_same_scale(self, other, "compare")
        return self._duration < other._duration

    def __le__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        _check_same_scale(self, other, "compare")
        return self._duration <= other._duration

    def __gt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        _check_same_scale(self, other, "compare")
        return self._duration > other._duration

    def __ge__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        _check_same_scale(self, other, "compare")
        return self._duration >= other._duration

    def isclose(self, other: "Epoch", *, rel_tol: float = 0.0, abs_tol: float = 1e-9) -> bool:
        """Same-scale closeness; tolerances in seconds."""
        _check_same_scale(self, other, "compare")
        return self._duration.isclose(other._duration, rel_tol=rel_tol, abs_tol=abs_tol)

    # ───────────────────────────── Formatting ─────────────────────────────

    def __str__(self) -> str:
        d = self._duration
        # round to 0.1 ms before splitting into fields
        rounded = Duration(d.seconds) + round(float(d.fraction) * 10000) / 10000
        return f"{CalendarDateTime.from_j2000_seconds(rounded).isoformat(4)} {self._scale.name}"

    def __repr__(self) -> str:
        return f"Epoch({str(self)!r})"
