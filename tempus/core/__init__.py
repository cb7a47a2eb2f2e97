"""
Core time modules: split-precision durations, calendar conversion, the
leap second table, the UTC/TAI bridge, the time scale graph and epochs.
"""

from .calendar import (
    DJ2000,
    DJM0,
    DMJD,
    CalendarDate,
    CalendarDateTime,
    TimeOfDay,
    TwoPartJD,
    calendar_hms_to_jd,
    calendar_to_jd,
    jd_to_calendar,
    jd_to_calendar_hms,
)
from .config import TempusConfig, get_config, reset_config
from .duration import Duration
from .epoch import Epoch
from .errors import (
    ErrorClass,
    NoPathError,
    ParseError,
    ScaleMismatchError,
    TempusError,
    UnknownScaleError,
    WrongDirectionError,
)
from .leapseconds import LeapSecondTable, default_leap_seconds, leapseconds
from .offsets import Offset, Representation, ZERO_OFFSET, dut1_offsets
from .parsing import parse_epoch
from .timescales import (
    CustomTimeScale,
    TimeScale,
    TimeScaleGraph,
    build_default_graph,
    default_graph,
)
from .utc import tai_to_utc, utc_to_tai
from .validation import ValidationReport, cross_validate_epoch, cross_validate_utc

__all__ = [
    "DJ2000",
    "DJM0",
    "DMJD",
    "CalendarDate",
    "CalendarDateTime",
    "TimeOfDay",
    "TwoPartJD",
    "calendar_hms_to_jd",
    "calendar_to_jd",
    "jd_to_calendar",
    "jd_to_calendar_hms",
    "TempusConfig",
    "get_config",
    "reset_config",
    "Duration",
    "Epoch",
    "ErrorClass",
    "NoPathError",
    "ParseError",
    "ScaleMismatchError",
    "TempusError",
    "UnknownScaleError",
    "WrongDirectionError",
    "LeapSecondTable",
    "default_leap_seconds",
    "leapseconds",
    "Offset",
    "Representation",
    "ZERO_OFFSET",
    "dut1_offsets",
    "parse_epoch",
    "CustomTimeScale",
    "TimeScale",
    "TimeScaleGraph",
    "build_default_graph",
    "default_graph",
    "tai_to_utc",
    "utc_to_tai",
    "ValidationReport",
    "cross_validate_epoch",
    "cross_validate_utc",
]
