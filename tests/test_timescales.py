# tests/test_timescales.py
from __future__ import annotations
import logging
from decimal import Decimal
import math
import erfa
import jax
import jax.numpy as jnp
import pytest

from tempus.core.calendar import DJ2000
from tempus.core.errors import (
    DuplicateScaleError,
    NoPathError,
    ScaleRegistrationError,
    UnknownParentError,
    UnknownScaleError,
    UnsupportedRepresentationError,
    WrongDirectionError,
)
from tempus.core.offsets import (
    JD77_SEC,
    LB_RATE,
    LG_RATE,
    TDB0,
    ZERO_OFFSET,
    Offset,
    Representation,
    dut1_offsets,
    representation_of,
    tdb_to_tt,
    tt_to_tdb,
)
from tempus.core.timescales import (
    CustomTimeScale,
    TimeScale,
    TimeScaleGraph,
    build_default_graph,
    default_graph,
)

EPS = 1e-9  # seconds

# 2004-05-14T16:43:00 in seconds since J2000
SECONDS = 137824980.0

def _near(a, b, eps: float = EPS) -> bool:
    return abs(float(a) - float(b)) <= eps

def _jd(seconds):
    days = math.floor(seconds / 86400)
    return DJ2000 + days, (seconds - days * 86400) / 86400

def _seconds(jd1, jd2):
    return ((jd1 - DJ2000) + jd2) * 86400

# ───────────────────────────── Registration ─────────────────────────────

def _small_graph():
    g = TimeScaleGraph()
    g.register(TimeScale.TAI)
    g.register(TimeScale.TT, lambda s: 32.184, lambda s: -32.184, parent=TimeScale.TAI)
    return g

def test_ids_and_names():
    assert TimeScale.TT.id == 1
    assert TimeScale.GPS.id == 9
    assert TimeScale.TDB.full_name == "Barycentric Dynamical Time"
    assert [s.name for s in TimeScale] == [
        "TT", "TAI", "UTC", "TCG", "TCB", "TDB", "UT1", "TDBH", "GPS"
    ]

def test_first_registered_scale_is_root():
    g = _small_graph()
    assert g.root is TimeScale.TAI
    assert g.node(TimeScale.TAI).is_root
    assert g.node("tt").parent_id == TimeScale.TAI.id
    assert g.scales() == [TimeScale.TAI, TimeScale.TT]
    assert g.resolve("tai") is TimeScale.TAI
    assert TimeScale.TT in g and TimeScale.UTC not in g

def test_registration_errors():
    g = _small_graph()
    with pytest.raises(DuplicateScaleError):
        g.register(TimeScale.TT, lambda s: 0.0, parent=TimeScale.TAI)
    with pytest.raises(DuplicateScaleError):
        g.register(CustomTimeScale("tt", 100), lambda s: 0.0, parent=TimeScale.TAI)
    with pytest.raises(DuplicateScaleError):
        g.register(CustomTimeScale("XYZ", TimeScale.TT.id), lambda s: 0.0, parent=TimeScale.TAI)
    with pytest.raises(UnknownParentError):
        g.register(TimeScale.TDB, lambda s: 0.0, parent=TimeScale.UTC)
    with pytest.raises(ScaleRegistrationError):
        g.register(TimeScale.TDB, lambda s: 0.0)
    with pytest.raises(ScaleRegistrationError):
        g.register(TimeScale.TDB, parent=TimeScale.TT)
    assert TimeScale.TDB not in g
    assert isinstance(DuplicateScaleError("x"), ValueError)

def test_root_takes_no_offsets():
    with pytest.raises(ScaleRegistrationError):
        TimeScaleGraph().register(TimeScale.TAI, lambda s: 1.0)

def test_offsets_must_cover_graph_representations():
    g = _small_graph()
    plain_only = Offset(plain=lambda s: 1.0)
    with pytest.raises(UnsupportedRepresentationError):
        g.register(TimeScale.GPS, plain_only, parent=TimeScale.TAI)
    h = TimeScaleGraph(representations=[Representation.PLAIN])
    h.register(TimeScale.TAI)
    h.register(TimeScale.GPS, plain_only, parent=TimeScale.TAI)
    assert h.convert(0.0, TimeScale.TAI, TimeScale.GPS) == 1.0
    with pytest.raises(UnsupportedRepresentationError):
        plain_only(jnp.array(0.0))

def test_unknown_scale_errors():
    g = _small_graph()
    with pytest.raises(UnknownScaleError):
        g.convert(0.0, TimeScale.TAI, TimeScale.UTC)
    with pytest.raises(KeyError):
        g.resolve("XYZ")
    assert not g.has_scale("XYZ")
    # same scale is returned without lookup
    assert g.convert(5.0, TimeScale.UT1, TimeScale.UT1) == 5.0

def test_forward_only_edge():
    g = build_default_graph()
    assert g.convert(0.0, TimeScale.TT, TimeScale.TDBH) != 0.0
    with pytest.raises(WrongDirectionError):
        g.convert(0.0, TimeScale.TDBH, TimeScale.TT)
    with pytest.raises(NoPathError):
        g.path(TimeScale.TDBH, TimeScale.TAI)

def test_zero_offset_logs_error(caplog):
    with caplog.at_level(logging.ERROR, logger="tempus.core.offsets"):
        assert ZERO_OFFSET(12.5) == 0.0
    assert any("programmer error" in r.message for r in caplog.records)

def test_custom_scale_multi_hop():
    g = _small_graph()
    ab = CustomTimeScale("AB", 101, "Test scale")
    g.register(ab, lambda s: 0.5 + 1e-3 * s, lambda s: -(0.5 + 1e-3 * s) / (1 + 1e-3), parent="TT")
    assert [s.name for s in g.path(TimeScale.TAI, ab)] == ["TAI", "TT", "AB"]
    x = g.convert(1000.0, TimeScale.TAI, ab)
    assert _near(x, 1032.184 + 0.5 + 1e-3 * 1032.184)
    assert _near(g.convert(x, ab, TimeScale.TAI), 1000.0)
    assert _near(g.offset(1000.0, "TAI", "AB"), x - 1000.0)
    assert g.resolve("ab") == ab

# ───────────────────────────── Built-in offsets ─────────────────────────────

def test_default_graph_layout():
    g = default_graph()
    assert g is default_graph()
    assert g.root is TimeScale.TAI
    parents = {g.node(s).name: g.node(g.node(s).parent_id).name for s in g.scales()}
    assert parents == {
        "TAI": "TAI", "TT": "TAI", "UTC": "TAI", "GPS": "TAI",
        "TDB": "TT", "TCG": "TT", "TDBH": "TT", "TCB": "TDB",
    }
    assert not g.has_scale(TimeScale.UT1)

def test_atomic_offsets():
    g = default_graph()
    assert _near(g.convert(SECONDS, TimeScale.TAI, TimeScale.TT), SECONDS + 32.184)
    assert _near(g.convert(SECONDS, TimeScale.TAI, TimeScale.GPS), SECONDS - 19.0)
    assert _near(g.offset(SECONDS, TimeScale.GPS, TimeScale.TT), 51.184)

def test_utc_offset_matches_erfa():
    g = default_graph()
    tai = g.convert(SECONDS, TimeScale.UTC, TimeScale.TAI)
    assert _near(tai - SECONDS, 32.0, 1e-6)
    ref = erfa.taiutc(*_jd(tai))
    assert _near(_seconds(*ref), g.convert(tai, TimeScale.TAI, TimeScale.UTC), 1e-6)

def test_tdb_inverse_and_erfa_agreement():
    g = default_graph()
    tdb = g.convert(SECONDS, TimeScale.TT, TimeScale.TDB)
    assert _near(g.convert(tdb, TimeScale.TDB, TimeScale.TT), SECONDS, 1e-6)
    tt1, tt2 = _jd(SECONDS)
    dtr = erfa.dtdb(tt1, tt2, 0.0, 0.0, 0.0, 0.0)
    assert abs((tdb - SECONDS) - dtr) < 5e-5

def test_tdbh_uses_erfa_series():
    g = default_graph()
    tt1, tt2 = _jd(SECONDS)
    dtr = erfa.dtdb(tt1, tt2, 0.0, 0.0, 0.0, 0.0)
    assert _near(g.offset(SECONDS, TimeScale.TT, TimeScale.TDBH), dtr, 1e-12)

def test_tcg_matches_erfa():
    g = default_graph()
    tcg = g.convert(SECONDS, TimeScale.TT, TimeScale.TCG)
    ref = _seconds(*erfa.tttcg(*_jd(SECONDS)))
    assert _near(tcg, ref, 1e-6)
    assert _near(g.convert(tcg, TimeScale.TCG, TimeScale.TT), SECONDS, 1e-6)

def test_tcb_matches_erfa():
    g = default_graph()
    tcb = g.convert(SECONDS, TimeScale.TDB, TimeScale.TCB)
    ref = _seconds(*erfa.tdbtcb(*_jd(SECONDS)))
    assert _near(tcb, ref, 1e-6)
    assert _near(g.convert(tcb, TimeScale.TCB, TimeScale.TDB), SECONDS, 1e-6)

def test_coordinate_rates():
    # d(TCG)/d(TT) = 1 / (1 - LG) and TCB - TDB at the 1977 reference
    f = lambda s: default_graph().convert(s, TimeScale.TT, TimeScale.TCG)
    rate = jax.grad(f)(jnp.float64(SECONDS))
    assert _near(rate, 1.0 / (1.0 - LG_RATE), 1e-15)
    g = default_graph()
    at77 = g.offset(JD77_SEC + TDB0, TimeScale.TDB, TimeScale.TCB)
    assert _near(at77, -TDB0, 1e-12)
    assert LB_RATE > LG_RATE

def test_ut1_registration():
    g = build_default_graph(dut1=0.3)
    assert _near(g.offset(SECONDS, TimeScale.UTC, TimeScale.UT1), 0.3)
    assert _near(g.offset(SECONDS, TimeScale.UT1, TimeScale.TAI), 31.7, 1e-6)
    with pytest.raises(ValueError):
        dut1_offsets(0.9000001)
    with pytest.raises(ValueError):
        dut1_offsets(-0.9000001)
    dut1_offsets(0.9)

# ───────────────────────────── Differentiable values ─────────────────────────────

def test_representation_dispatch():
    assert representation_of(1.0) is Representation.PLAIN
    assert representation_of(jnp.float64(1.0)) is Representation.DUAL
    with pytest.raises(UnsupportedRepresentationError):
        representation_of("1.0")

def test_tdb_derivatives_match_analytic_formula():
    k, eb, m0, m1 = 1.657e-3, 1.671e-2, 6.239996, 1.99096871e-7
    g = default_graph()

    def tdb(s):
        return g.convert(s, TimeScale.TT, TimeScale.TDB)

    def analytic_first(s):
        x = m0 + m1 * s
        return 1.0 + k * math.cos(x + eb * math.sin(x)) * (1.0 + eb * math.cos(x)) * m1

    def analytic_second(s):
        x = m0 + m1 * s
        u = x + eb * math.sin(x)
        du = 1.0 + eb * math.cos(x)
        return k * m1 * m1 * (-math.sin(u) * du * du - math.cos(u) * eb * math.sin(x))

    s = jnp.float64(SECONDS)
    assert _near(float(tdb(s)), g.convert(SECONDS, TimeScale.TT, TimeScale.TDB), 1e-6)
    first = jax.grad(tdb)(s)
    second = jax.grad(jax.grad(tdb))(s)
    assert _near(first, analytic_first(SECONDS), 1e-15)
    assert _near(second, analytic_second(SECONDS), 1e-22)
    _, tangent = jax.jvp(tdb, (s,), (jnp.float64(1.0),))
    assert _near(tangent, first, 1e-15)

def test_tdb_inverse_derivative():
    s = jnp.float64(SECONDS)
    forward = lambda x: x + tt_to_tdb(x)
    backward = lambda x: x + tdb_to_tt(x)
    d = jax.grad(lambda x: backward(forward(x)))(s)
    assert _near(d, 1.0, 1e-12)

def test_utc_has_zero_tangent():
    g = default_graph()
    f = lambda s: g.convert(s, TimeScale.TT, TimeScale.UTC)
    s = jnp.float64(SECONDS)
    assert _near(f(s), g.convert(SECONDS, TimeScale.TT, TimeScale.UTC), 1e-6)
    assert _near(jax.grad(f)(s), 1.0, 0.0)
    assert _near(jax.grad(jax.grad(f))(s), 0.0, 0.0)

def test_dual_values_through_jit_and_vmap():
    g = default_graph()
    f = jax.jit(lambda s: g.convert(s, TimeScale.UTC, TimeScale.TDB))
    xs = jnp.array([SECONDS, SECONDS + 86400.0])
    out = jax.vmap(f)(xs)
    for x, y in zip([SECONDS, SECONDS + 86400.0], out):
        assert _near(y, g.convert(x, TimeScale.UTC, TimeScale.TDB), 1e-6)

def test_forward_only_chain_has_no_way_back():
    g = TimeScaleGraph()
    a = CustomTimeScale("A", 301)
    b = CustomTimeScale("B", 302)
    c = CustomTimeScale("C", 303)
    g.register(a)
    g.register(b, lambda s: 1.0, parent=a)
    g.register(c, lambda s: 2.0, parent=b)
    assert g.convert(10.0, a, c) == 13.0
    assert [s.name for s in g.path("A", "C")] == ["A", "B", "C"]
    for source, target in ((c, a), (c, b), (b, a)):
        with pytest.raises(NoPathError):
            g.convert(10.0, source, target)
        with pytest.raises(NoPathError):
            g.offset(10.0, source, target)

def test_decimal_values_have_no_representation():
    g = default_graph()
    with pytest.raises(UnsupportedRepresentationError):
        g.convert(Decimal("100.5"), TimeScale.TAI, TimeScale.TDB)
    with pytest.raises(UnsupportedRepresentationError):
        representation_of(Decimal("1.0"))
