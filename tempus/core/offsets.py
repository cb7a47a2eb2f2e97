# tempus/core/offsets.py
# -----------------------------------------------------------------------------
# Offset functions between neighbouring time scales
#
# An offset maps seconds since J2000 in the source scale to the difference
# (target - source) in seconds. Each Offset holds one implementation per
# numeric representation:
#
#   PLAIN  Python / numpy real numbers
#   DUAL   JAX arrays and tracers; nesting jax.jvp or jax.jacfwd gives the
#          first and second derivative tiers through the same code
#
# Built-in offsets:
#   TAI <-> TT    32.184 s
#   TAI <-> GPS   19 s
#   TT  <-> TDB   two-term periodic approximation, inverse by fixed point
#   TT  <-> TCG   IAU 2000 Resolution B1.9 (L_G)
#   TDB <-> TCB   IAU 2006 Resolution B3 (L_B, TDB0)
#   TAI <-> UTC   leap second table, piecewise constant (zero derivative)
#   TT  -> TDBH   ERFA dtdb series, forward only
#   UTC <-> UT1   user supplied DUT1
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from enum import Enum
from numbers import Real
from typing import Callable, Dict, FrozenSet, Optional, Tuple

import erfa
import jax
import jax.numpy as jnp
import numpy as np

from .calendar import DAY2SEC, DJ2000
from .config import get_config
from .errors import UnsupportedRepresentationError
from .leapseconds import LeapSecondTable
from .utc import tai_to_utc, utc_to_tai

log = logging.getLogger(__name__)

if get_config().jax_enable_x64:
    jax.config.update("jax_enable_x64", True)

__all__ = [
    "Representation",
    "representation_of",
    "Offset",
    "ZERO_OFFSET",
    "OFFSET_TT_TAI",
    "OFFSET_TAI_GPS",
    "LG_RATE",
    "LB_RATE",
    "TDB0",
    "JD77_SEC",
    "DUT1_MAX_SECONDS",
    "tai_to_tt", "tt_to_tai",
    "tai_to_gps", "gps_to_tai",
    "tt_to_tdb", "tdb_to_tt",
    "tt_to_tcg", "tcg_to_tt",
    "tdb_to_tcb", "tcb_to_tdb",
    "tt_to_tdbh",
    "utc_offsets",
    "dut1_offsets",
]

# ───────────────────────────── Constants ─────────────────────────────

OFFSET_TT_TAI = 32.184
OFFSET_TAI_GPS = 19.0

# TDB - TT periodic approximation
_K = 1.657e-3
_EB = 1.671e-2
_M0 = 6.239996
_M1 = 1.99096871e-7

LG_RATE = 6.969290134e-10
LB_RATE = 1.550519768e-8
TDB0 = -6.55e-5
# 1977-01-01T00:00:32.184 TT in seconds since J2000
JD77_SEC = -725803167.816

DUT1_MAX_SECONDS = 0.9
_DUT1_EPSILON = 1e-12

# ───────────────────────────── Representations ─────────────────────────────

class Representation(Enum):
    PLAIN = "plain"
    DUAL = "dual"


def representation_of(value) -> Representation:
    """Numeric representation of an offset argument."""
    # jax tracers are instances of jax.Array
    if isinstance(value, jax.Array):
        return Representation.DUAL
    # Decimal is not a Real and has no float arithmetic
    if isinstance(value, (Real, np.ndarray, np.generic)):
        return Representation.PLAIN
    raise UnsupportedRepresentationError(
        f"No numeric representation for {type(value).__name__}",
        value_type=type(value).__name__,
    )


class Offset:
    """Offset function with one implementation per representation."""

    __slots__ = ("name", "_impls")

    def __init__(self, plain: Optional[Callable] = None, dual: Optional[Callable] = None,
                 name: str = ""):
        impls: Dict[Representation, Callable] = {}
        if plain is not None:
            impls[Representation.PLAIN] = plain
        if dual is not None:
            impls[Representation.DUAL] = dual
        if not impls:
            raise ValueError("Offset needs at least one implementation")
        self.name = name or getattr(plain or dual, "__name__", "offset")
        self._impls = impls

    @classmethod
    def generic(cls, fn: Callable, name: str = "") -> "Offset":
        """One duck-typed function serving every representation."""
        return cls(plain=fn, dual=fn, name=name)

    @property
    def representations(self) -> FrozenSet[Representation]:
        return frozenset(self._impls)

    def supports(self, representation: Representation) -> bool:
        return representation in self._impls

    def __call__(self, seconds):
        rep = representation_of(seconds)
        fn = self._impls.get(rep)
        if fn is None:
            raise UnsupportedRepresentationError(
                f"Offset {self.name!r} has no {rep.value} implementation",
                offset=self.name, representation=rep.value,
            )
        return fn(seconds)

    def __repr__(self) -> str:
        reps = ", ".join(sorted(r.value for r in self._impls))
        return f"Offset({self.name!r}, [{reps}])"


def _zero_offset(seconds):
    log.error("Zero offset invoked: a root or forward-only edge was walked (programmer error)")
    return 0.0 * seconds


ZERO_OFFSET = Offset.generic(_zero_offset, name="zero")

# ───────────────────────────── Host Functions in Traced Code ─────────────────────────────

def _traced(plain_fn: Callable) -> Callable:
    """Run a host function on traced values; its derivative is taken as zero.

    Used for offsets that are piecewise constant (leap seconds) or that are
    only available as compiled series (ERFA).
    """
    vectorized = np.vectorize(plain_fn, otypes=[np.float64])

    def host(x):
        x = np.asarray(x)
        return np.asarray(vectorized(x), dtype=x.dtype)

    @jax.custom_jvp
    def fn(seconds):
        seconds = jnp.asarray(seconds)
        shape = jax.ShapeDtypeStruct(seconds.shape, seconds.dtype)
        return jax.pure_callback(host, shape, seconds, vmap_method="sequential")

    @fn.defjvp
    def fn_jvp(primals, tangents):
        (seconds,), (dseconds,) = primals, tangents
        return fn(seconds), dseconds * 0.0

    return fn

# ───────────────────────────── Atomic ─────────────────────────────

def _tai_to_tt(seconds):
    return OFFSET_TT_TAI


def _tt_to_tai(seconds):
    return -OFFSET_TT_TAI


def _tai_to_gps(seconds):
    return -OFFSET_TAI_GPS


def _gps_to_tai(seconds):
    return OFFSET_TAI_GPS


tai_to_tt = Offset.generic(_tai_to_tt, name="TAI->TT")
tt_to_tai = Offset.generic(_tt_to_tai, name="TT->TAI")
tai_to_gps = Offset.generic(_tai_to_gps, name="TAI->GPS")
gps_to_tai = Offset.generic(_gps_to_tai, name="GPS->TAI")

# ───────────────────────────── Dynamical ─────────────────────────────

def _tdb_minus_tt(xp, seconds):
    g = _M0 + _M1 * seconds
    return _K * xp.sin(g + _EB * xp.sin(g))


def _tt_minus_tdb(xp, seconds):
    # TT = TDB - f(TT), three fixed-point steps
    tt = seconds
    for _ in range(3):
        tt = seconds - _tdb_minus_tt(xp, tt)
    return tt - seconds


tt_to_tdb = Offset(
    plain=lambda s: _tdb_minus_tt(np, s),
    dual=lambda s: _tdb_minus_tt(jnp, s),
    name="TT->TDB",
)
tdb_to_tt = Offset(
    plain=lambda s: _tt_minus_tdb(np, s),
    dual=lambda s: _tt_minus_tdb(jnp, s),
    name="TDB->TT",
)


def _tdbh_minus_tt(seconds):
    # geocentric observer: no topocentric terms
    return erfa.dtdb(DJ2000, seconds / DAY2SEC, 0.0, 0.0, 0.0, 0.0)


tt_to_tdbh = Offset(
    plain=_tdbh_minus_tt,
    dual=_traced(lambda s: float(_tdbh_minus_tt(float(s)))),
    name="TT->TDBH",
)

# ───────────────────────────── Coordinate ─────────────────────────────

def _tt_to_tcg(seconds):
    return LG_RATE / (1.0 - LG_RATE) * (seconds - JD77_SEC)


def _tcg_to_tt(seconds):
    return -LG_RATE * (seconds - JD77_SEC)


def _tdb_to_tcb(seconds):
    return -TDB0 + LB_RATE / (1.0 - LB_RATE) * (seconds - JD77_SEC - TDB0)


def _tcb_to_tdb(seconds):
    return -LB_RATE * (seconds - JD77_SEC) + TDB0


tt_to_tcg = Offset.generic(_tt_to_tcg, name="TT->TCG")
tcg_to_tt = Offset.generic(_tcg_to_tt, name="TCG->TT")
tdb_to_tcb = Offset.generic(_tdb_to_tcb, name="TDB->TCB")
tcb_to_tdb = Offset.generic(_tcb_to_tdb, name="TCB->TDB")

# ───────────────────────────── Civil ─────────────────────────────

def _split_day(seconds: float) -> Tuple[float, float]:
    # whole days and remaining seconds, so the Julian Date keeps its resolution
    days = math.floor(seconds / DAY2SEC)
    return float(days), seconds - days * DAY2SEC


def utc_offsets(table: Optional[LeapSecondTable] = None) -> Tuple[Offset, Offset]:
    """(TAI->UTC, UTC->TAI) offsets bound to a leap second table."""

    def tai_minus_utc_from_utc(seconds):
        days, rem = _split_day(float(seconds))
        jd1 = DJ2000 + days
        _, tai2 = utc_to_tai(jd1, rem / DAY2SEC, table)
        return tai2 * DAY2SEC - rem

    def utc_minus_tai_from_tai(seconds):
        days, rem = _split_day(float(seconds))
        jd1 = DJ2000 + days
        _, utc2 = tai_to_utc(jd1, rem / DAY2SEC, table)
        return utc2 * DAY2SEC - rem

    def plain(fn):
        def offset(seconds):
            if np.ndim(seconds):
                return np.vectorize(fn, otypes=[np.float64])(seconds)
            return fn(seconds)
        return offset

    forward = Offset(plain(utc_minus_tai_from_tai), _traced(utc_minus_tai_from_tai), name="TAI->UTC")
    backward = Offset(plain(tai_minus_utc_from_utc), _traced(tai_minus_utc_from_utc), name="UTC->TAI")
    return forward, backward


def dut1_offsets(dut1: float) -> Tuple[Offset, Offset]:
    """(UTC->UT1, UT1->UTC) offsets for a constant DUT1 = UT1 - UTC."""
    if not abs(dut1) <= DUT1_MAX_SECONDS + _DUT1_EPSILON:
        raise ValueError(f"|DUT1| must be <= {DUT1_MAX_SECONDS} s, got {dut1}")

    def utc_to_ut1(seconds):
        return dut1

    def ut1_to_utc(seconds):
        return -dut1

    return Offset.generic(utc_to_ut1, name="UTC->UT1"), Offset.generic(ut1_to_utc, name="UT1->UTC")
