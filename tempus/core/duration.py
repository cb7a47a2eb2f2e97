# tempus/core/duration.py
# -----------------------------------------------------------------------------
# Split-precision duration: integer seconds plus a fractional remainder
#
# Convention: every Duration produced by the library satisfies
# 0 <= fraction < 1 and seconds == floor(value). Negative totals borrow,
# they are never truncated toward zero (-1.75 s is (-2, 0.25)).
#
# Fractions are summed with an error-free two-sum and the rounding error is
# folded back after the integer carry, when the fraction has its smallest
# magnitude and the finest ulp.
#
# JAX arrays and tracers are split with jnp.floor and keep both parts as
# arrays, so a Duration can sit inside jax.grad / jax.jvp. The whole part
# then carries a zero tangent and the fraction carries the derivative.
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction
from numbers import Rational, Real
from typing import Any, Tuple, Union

import jax
import jax.numpy as jnp

__all__ = [
    "Duration",
    "is_traced",
    "split_seconds",
    "two_sum",
]

Number = Union[int, float, Real, Decimal]

_NUMERIC = (Real, Decimal, jax.Array)


def is_traced(x) -> bool:
    """True for JAX arrays and tracers."""
    return isinstance(x, jax.Array)


def two_sum(a, b) -> Tuple[Any, Any]:
    """Knuth's error-free sum: returns (s, e) with s = fl(a + b) and a + b == s + e."""
    s = a + b
    bp = s - a
    e = (a - (s - bp)) + (b - bp)
    return s, e


def split_seconds(x) -> Tuple[Any, Any]:
    """Split a real number into (floor(x), x - floor(x))."""
    if isinstance(x, int):
        return x, 0
    if is_traced(x):
        whole = jnp.floor(x)
        return whole, x - whole
    whole = math.floor(x)
    return int(whole), x - whole


def _normalize_traced(seconds, s, e) -> Tuple[Any, Any]:
    whole = seconds + jnp.floor(s)
    frac = (s - jnp.floor(s)) + e
    # at most one carry or borrow, then a rounded-away borrow
    for _ in range(2):
        step = jnp.floor(frac)
        whole, frac = whole + step, frac - step
    return whole, frac


def _normalize(seconds, s, e) -> Tuple[Any, Any]:
    # s is the rounded fraction sum, e its rounding error
    if is_traced(seconds) or is_traced(s) or is_traced(e):
        return _normalize_traced(seconds, s, e)
    carry = math.floor(s)
    frac = (s - carry) + e
    whole = seconds + int(carry)
    if frac >= 1:
        whole += 1
        frac -= 1
    elif frac < 0:
        whole -= 1
        frac += 1
        if frac >= 1:
            # a tiny negative remainder rounded away
            whole += 1
            frac -= 1
    return whole, frac


def _exact(x) -> Fraction:
    if isinstance(x, (Rational, float, Decimal)):
        return Fraction(x)
    return Fraction(float(x))


class Duration:
    """A period of time split into integer seconds and a fraction of a second.

    ``Duration(5.75)`` splits a raw number; ``Duration(5, 0.75)`` takes the
    parts as given. The fraction's numeric type is kept through arithmetic.
    With a JAX value the whole part is a float array holding an integer.
    """

    __slots__ = ("_seconds", "_fraction")

    def __init__(self, seconds: Number, fraction: Any = None):
        if fraction is None:
            whole, frac = split_seconds(seconds)
        elif is_traced(seconds):
            whole, frac = jnp.floor(seconds), fraction
        else:
            if int(seconds) != seconds:
                raise ValueError(
                    f"seconds must be integral when a fraction is given, got {seconds!r}"
                )
            whole, frac = int(seconds), fraction
        self._seconds = whole
        self._fraction = frac

    @classmethod
    def _from_parts(cls, seconds: int, fraction) -> "Duration":
        obj = object.__new__(cls)
        obj._seconds = seconds
        obj._fraction = fraction
        return obj

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def fraction(self):
        return self._fraction

    @property
    def ftype(self) -> type:
        """Numeric type of the fractional part."""
        return type(self._fraction)

    def value(self):
        """Full value, ``seconds + fraction``, in the fraction's type."""
        return self._seconds + self._fraction

    def astype(self, numeric_type: type) -> "Duration":
        """Return the same duration with the fraction converted to ``numeric_type``."""
        return Duration._from_parts(self._seconds, numeric_type(self._fraction))

    def normalized(self) -> "Duration":
        """Parts rewritten so that ``0 <= fraction < 1``."""
        whole, frac = _normalize(self._seconds, self._fraction, 0 * self._fraction)
        return Duration._from_parts(whole, frac)

    def isclose(self, other: Union["Duration", Number], *, rel_tol: float = 1e-9,
                abs_tol: float = 0.0) -> bool:
        diff = float(self - other)
        if abs(diff) <= abs_tol:
            return True
        other_value = other.value() if isinstance(other, Duration) else other
        ref = max(abs(float(self.value())), abs(float(other_value)))
        return abs(diff) <= rel_tol * ref

    # ───────────────────────────── Arithmetic ─────────────────────────────

    def _parts_of(self, other) -> Tuple[int, Any]:
        if isinstance(other, Duration):
            return other._seconds, other._fraction
        return split_seconds(other)

    def __add__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        s2, f2 = self._parts_of(other)
        s, e = two_sum(self._fraction, f2)
        whole, frac = _normalize(self._seconds + s2, s, e)
        return Duration._from_parts(whole, frac)

    __radd__ = __add__

    def __sub__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        s2, f2 = self._parts_of(other)
        s, e = two_sum(self._fraction, -f2)
        whole, frac = _normalize(self._seconds - s2, s, e)
        return Duration._from_parts(whole, frac)

    def __rsub__(self, other):
        if isinstance(other, _NUMERIC):
            return Duration(other) - self
        return NotImplemented

    def __neg__(self):
        return Duration._from_parts(0, 0 * self._fraction) - self

    def __pos__(self):
        return self

    def __abs__(self):
        return -self if self < 0 else self

    def __float__(self) -> float:
        return float(self._seconds) + float(self._fraction)

    # ───────────────────────────── Comparison ─────────────────────────────
    # The difference is always normalized, so its sign is the sign of seconds.

    def __eq__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        d = self - other
        return d._seconds == 0 and d._fraction == 0

    def __lt__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        return (self - other)._seconds < 0

    def __le__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        d = self - other
        return d._seconds < 0 or (d._seconds == 0 and d._fraction == 0)

    def __gt__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        return not self.__le__(other)

    def __ge__(self, other):
        if not isinstance(other, (Duration,) + _NUMERIC):
            return NotImplemented
        return not self.__lt__(other)

    def __hash__(self):
        # equal to the hash of the same exact value as int, float, Fraction or Decimal
        d = self.normalized()
        return hash(d._seconds + _exact(d._fraction))

    def __repr__(self) -> str:
        return f"Duration(seconds={self._seconds}, fraction={self._fraction!r})"
