# tempus/core/parsing.py
# -----------------------------------------------------------------------------
# Epoch text forms
#
#   2004-05-14T16:43:00.5 UTC     ISO calendar date, optional time and scale
#   JD 2451545.0 TT               Julian Date
#   MJD 51544.5 TAI               Modified Julian Date
#   12.5 TDB                      days since J2000
#
# Scale names are looked up in a graph's name index or the built-in enum,
# never evaluated. Numbers are split at the decimal point so the fraction of
# a Julian Date keeps full double precision.
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import NamedTuple, Optional, Tuple

from .calendar import (
    DJ2000,
    DJM0,
    CalendarDate,
    CalendarDateTime,
    TimeOfDay,
    calendar_hms_to_jd,
)
from .errors import CalendarRangeError, ParseError, UnknownScaleError
from .timescales import Scale, ScaleTag, TimeScale, TimeScaleGraph

__all__ = [
    "ParsedEpoch",
    "ParseError",
    "parse_epoch",
    "resolve_scale",
]

_SCALE = r"(?:\s+(?P<scale>[A-Za-z][A-Za-z0-9_]*))?"

_ISO_RE = re.compile(
    r"^(?P<y>\d{4})-(?P<mo>\d{2})-(?P<d>\d{2})"
    r"(?:[T ](?P<h>\d{2}):(?P<mi>\d{2})(?::(?P<s>\d{2})(?:\.(?P<f>\d+))?)?)?"
    + _SCALE + r"$"
)

_NUMBER = r"(?P<value>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"

_JD_RE = re.compile(r"^(?P<kind>JD|MJD)\s+" + _NUMBER + _SCALE + r"$", re.IGNORECASE)
_DAYS_RE = re.compile(r"^" + _NUMBER + _SCALE + r"$")


class ParsedEpoch(NamedTuple):
    jd1: float
    jd2: float
    scale: Scale
    calendar: Optional[CalendarDateTime] = None


def resolve_scale(tag: ScaleTag, graph: Optional[TimeScaleGraph] = None) -> Scale:
    """Scale object for a tag; names go through the graph first, then the enum."""
    if isinstance(tag, str):
        if graph is not None:
            return graph.resolve(tag)
        try:
            return TimeScale[tag.upper()]
        except KeyError:
            raise UnknownScaleError(f"Unknown time scale {tag!r}", scale=tag) from None
    if isinstance(tag, int) and not isinstance(tag, TimeScale):
        if graph is not None:
            return graph.node(tag).scale
        try:
            return TimeScale(tag)
        except ValueError:
            raise UnknownScaleError(f"Unknown time scale id {tag}", scale=tag) from None
    return tag


def _split_number(text: str) -> Tuple[float, float]:
    # "2451545.123456789" -> (2451545.0, 0.123456789)
    if "e" in text.lower():
        return float(text), 0.0
    sign = -1.0 if text.startswith("-") else 1.0
    digits = text.lstrip("+-")
    whole, _, frac = digits.partition(".")
    return sign * float(whole or "0"), sign * float("0." + (frac or "0"))


def parse_epoch(text: str, default_scale: ScaleTag = TimeScale.TDB,
                graph: Optional[TimeScaleGraph] = None) -> ParsedEpoch:
    """Resolve epoch text to a two-part Julian Date and a scale."""
    if not isinstance(text, str):
        raise TypeError(f"text must be string, got {type(text)}")
    stripped = text.strip()

    if m := _ISO_RE.match(stripped):
        hour = int(m.group("h") or 0)
        minute = int(m.group("mi") or 0)
        second = int(m.group("s") or 0)
        if m.group("f"):
            second += float("0." + m.group("f"))
        try:
            jd1, jd2 = calendar_hms_to_jd(
                int(m.group("y")), int(m.group("mo")), int(m.group("d")), hour, minute, second
            )
        except CalendarRangeError as e:
            raise ParseError(f"Invalid epoch {text!r}: {e}", text=text) from e
        calendar = CalendarDateTime(
            CalendarDate(int(m.group("y")), int(m.group("mo")), int(m.group("d"))),
            TimeOfDay(hour, minute, second),
        )
        return ParsedEpoch(jd1, jd2, _scale_of(m, default_scale, graph, text), calendar)

    if m := _JD_RE.match(stripped):
        whole, frac = _split_number(m.group("value"))
        if m.group("kind").upper() == "MJD":
            return ParsedEpoch(DJM0 + whole, frac, _scale_of(m, default_scale, graph, text))
        return ParsedEpoch(whole, frac, _scale_of(m, default_scale, graph, text))

    if m := _DAYS_RE.match(stripped):
        whole, frac = _split_number(m.group("value"))
        return ParsedEpoch(DJ2000 + whole, frac, _scale_of(m, default_scale, graph, text))

    raise ParseError(
        f"Invalid epoch {text!r}: expected 'YYYY-MM-DD[THH:MM[:SS[.f]]] [SCALE]', "
        "'JD x [SCALE]', 'MJD x [SCALE]' or 'days [SCALE]'",
        text=text,
    )


def _scale_of(m: re.Match, default_scale: ScaleTag, graph: Optional[TimeScaleGraph],
              text: str) -> Scale:
    try:
        return resolve_scale(m.group("scale") or default_scale, graph)
    except UnknownScaleError as e:
        raise ParseError(f"Invalid epoch {text!r}: {e}", text=text) from e
