# tempus/core/errors.py
# -----------------------------------------------------------------------------
# Exception hierarchy for the time library
#
# Every error carries an ErrorClass tag and free-form context so callers can
# discriminate "not registered" from "registered but unreachable" without
# parsing messages.
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorClass",
    "TempusError",
    "CalendarRangeError",
    "ParseError",
    "LeapSecondTableError",
    "ScaleRegistrationError",
    "DuplicateScaleError",
    "UnknownParentError",
    "UnknownScaleError",
    "NoPathError",
    "WrongDirectionError",
    "ScaleMismatchError",
    "UnsupportedRepresentationError",
    "ValidationError",
]


class ErrorClass(Enum):
    RANGE = "range"
    PARSE = "parse"
    LEAP_SECOND_TABLE = "leap_second_table"
    GRAPH_CONFIGURATION = "graph_configuration"
    UNKNOWN_SCALE = "unknown_scale"
    NO_PATH = "no_path"
    SCALE_MISMATCH = "scale_mismatch"
    REPRESENTATION = "representation"
    VALIDATION_FAILURE = "validation_failure"


# ───────────────────────────── Exception Hierarchy ─────────────────────────────

class TempusError(Exception):
    """Base exception for time computations."""
    def __init__(self, message: str, error_class: ErrorClass, **context):
        super().__init__(message)
        self.error_class = error_class
        self.context = context


class CalendarRangeError(TempusError, ValueError):
    """Calendar field, time of day or Julian Date outside the supported span."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.RANGE, **context)


class ParseError(TempusError, ValueError):
    """Epoch text could not be resolved."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.PARSE, **context)


class LeapSecondTableError(TempusError, ValueError):
    """Leap second data is malformed."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.LEAP_SECOND_TABLE, **context)


class ScaleRegistrationError(TempusError, ValueError):
    """A time scale cannot be added to the graph."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.GRAPH_CONFIGURATION, **context)


class DuplicateScaleError(ScaleRegistrationError):
    """A scale with the same id or name is already registered."""


class UnknownParentError(ScaleRegistrationError):
    """The requested parent scale is not registered."""


class UnknownScaleError(TempusError, KeyError):
    """The scale is not registered in the graph."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.UNKNOWN_SCALE, **context)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class NoPathError(TempusError):
    """Both scales are registered but no directed path connects them."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.NO_PATH, **context)


class WrongDirectionError(NoPathError):
    """A route exists, but at least one edge on it only goes the other way."""


class ScaleMismatchError(TempusError, TypeError):
    """An operation requires epochs in the same time scale."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.SCALE_MISMATCH, **context)


class UnsupportedRepresentationError(TempusError, TypeError):
    """An offset function has no implementation for the given numeric type."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.REPRESENTATION, **context)


class ValidationError(TempusError):
    """Cross-validation against the reference library failed."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.VALIDATION_FAILURE, **context)
