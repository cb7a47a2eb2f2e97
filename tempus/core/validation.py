# tempus/core/validation.py
# -----------------------------------------------------------------------------
# Cross-validation against ERFA (pyerfa)
#
#   cross_validate_utc(jd1, jd2)  utc_to_tai / tai_to_utc vs erfa.utctai / taiutc
#   cross_validate_epoch(epoch)   graph conversions vs the ERFA TT chain
#
# The TT->TDB edge uses a two-term approximation; it is compared with ERFA's
# full dtdb series under its own, wider tolerance.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import erfa

from .calendar import DAY2SEC, TwoPartJD
from .config import get_config
from .epoch import Epoch
from .errors import ValidationError
from .leapseconds import LeapSecondTable
from .timescales import TimeScale, TimeScaleGraph, default_graph
from .utc import tai_to_utc, utc_to_tai

log = logging.getLogger(__name__)

__all__ = [
    "ValidationReport",
    "TDB_SERIES_TOLERANCE",
    "cross_validate_utc",
    "cross_validate_epoch",
]

# two-term TDB-TT approximation vs the full series, seconds
TDB_SERIES_TOLERANCE = 5e-5


@dataclass(frozen=True)
class ValidationReport:
    """Cross-validation results against a reference implementation."""
    reference_source: str
    differences: Dict[str, float]      # seconds, ours - reference
    tolerance_seconds: float
    passed: bool
    validation_timestamp: str
    notes: List[str] = field(default_factory=list)

    @property
    def max_difference(self) -> float:
        return max((abs(v) for v in self.differences.values()), default=0.0)


def _diff_seconds(ours: TwoPartJD, ref1: float, ref2: float) -> float:
    return float(((ours[0] - ref1) + (ours[1] - ref2)) * DAY2SEC)


def _finish(differences: Dict[str, float], tolerances: Dict[str, float], tolerance: float,
            strict: bool, subject: str) -> ValidationReport:
    notes = [
        f"{name}: |{diff:.3e}| s exceeds {tolerances[name]:.1e} s"
        for name, diff in differences.items()
        if not abs(diff) <= tolerances[name]
    ]
    report = ValidationReport(
        reference_source=f"ERFA {erfa.__version__}",
        differences=differences,
        tolerance_seconds=tolerance,
        passed=not notes,
        validation_timestamp=datetime.now(timezone.utc).isoformat(),
        notes=notes,
    )
    if notes:
        log.warning("Cross-validation of %s failed: %s", subject, "; ".join(notes))
        if strict:
            raise ValidationError(
                f"Cross-validation of {subject} failed: {'; '.join(notes)}",
                differences=differences,
            )
    return report


def cross_validate_utc(jd1: float, jd2: float, table: Optional[LeapSecondTable] = None,
                       tolerance: Optional[float] = None, strict: bool = False) -> ValidationReport:
    """Compare the UTC<->TAI bridge with ERFA at a two-part UTC Julian Date."""
    tolerance = tolerance if tolerance is not None else get_config().validation_tolerance_seconds

    tai = utc_to_tai(jd1, jd2, table)
    ref_tai1, ref_tai2 = erfa.utctai(jd1, jd2)
    utc = tai_to_utc(ref_tai1, ref_tai2, table)
    ref_utc1, ref_utc2 = erfa.taiutc(ref_tai1, ref_tai2)

    differences = {
        "TAI": _diff_seconds(tai, ref_tai1, ref_tai2),
        "UTC": _diff_seconds(utc, ref_utc1, ref_utc2),
    }
    tolerances = {name: tolerance for name in differences}
    return _finish(differences, tolerances, tolerance, strict, f"UTC JD {jd1} + {jd2}")


def cross_validate_epoch(epoch: Epoch, graph: Optional[TimeScaleGraph] = None,
                         tolerance: Optional[float] = None,
                         strict: bool = False) -> ValidationReport:
    """Compare the epoch's TAI, TCG, TDB, TCB and TDBH with the ERFA chain from its TT."""
    tolerance = tolerance if tolerance is not None else get_config().validation_tolerance_seconds
    graph = graph if graph is not None else default_graph()

    tt = epoch.convert(TimeScale.TT, graph).jd()

    ref_tai = erfa.tttai(*tt)
    ref_tcg = erfa.tttcg(*tt)
    dtr = erfa.dtdb(tt[0], tt[1], 0.0, 0.0, 0.0, 0.0)
    ref_tdb = erfa.tttdb(tt[0], tt[1], dtr)

    differences: Dict[str, float] = {}
    tolerances: Dict[str, float] = {}

    def compare(scale: TimeScale, ref, scale_tolerance: float) -> Optional[Epoch]:
        if not graph.has_scale(scale):
            return None
        ours = epoch.convert(scale, graph)
        differences[scale.name] = _diff_seconds(ours.jd(), *ref)
        tolerances[scale.name] = scale_tolerance
        return ours

    compare(TimeScale.TAI, ref_tai, tolerance)
    compare(TimeScale.TCG, ref_tcg, tolerance)
    compare(TimeScale.TDBH, ref_tdb, tolerance)
    tdb = compare(TimeScale.TDB, ref_tdb, max(tolerance, TDB_SERIES_TOLERANCE))
    if tdb is not None:
        # the linear TDB->TCB rate, checked from our own TDB
        compare(TimeScale.TCB, erfa.tdbtcb(*tdb.jd()), tolerance)

    return _finish(differences, tolerances, tolerance, strict, str(epoch))
