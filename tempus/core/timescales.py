# tempus/core/timescales.py
# -----------------------------------------------------------------------------
# Time scales and the directed graph of offsets between them
#
# Every scale except the root hangs under a parent. The parent->child edge
# always exists (the child's forward offset); the child->parent edge exists
# only when a backward offset was given. Paths between every ordered pair of
# scales are recomputed on each registration, so conversions are pure reads
# and a fully built graph can be shared between threads.
#
# Default graph (root TAI):
#
#   TAI ─┬─ TT ─┬─ TDB ── TCB
#        │      ├─ TCG
#        │      └─ TDBH   (forward only)
#        ├─ UTC ── [UT1]  (registered when a DUT1 is supplied)
#        └─ GPS
#
# Public API:
#   TimeScaleGraph.register / convert / offset / path / resolve
#   default_graph() -> TimeScaleGraph
#   build_default_graph(table, dut1) -> TimeScaleGraph
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .errors import (
    DuplicateScaleError,
    NoPathError,
    ScaleRegistrationError,
    UnknownParentError,
    UnknownScaleError,
    UnsupportedRepresentationError,
    WrongDirectionError,
)
from .leapseconds import LeapSecondTable, default_leap_seconds
from .offsets import (
    ZERO_OFFSET,
    Offset,
    Representation,
    dut1_offsets,
    gps_to_tai,
    tai_to_gps,
    tai_to_tt,
    tcb_to_tdb,
    tcg_to_tt,
    tdb_to_tcb,
    tdb_to_tt,
    tt_to_tai,
    tt_to_tcg,
    tt_to_tdb,
    tt_to_tdbh,
    utc_offsets,
)

log = logging.getLogger(__name__)

__all__ = [
    "TimeScale",
    "CustomTimeScale",
    "TimeScaleNode",
    "TimeScaleGraph",
    "ScaleTag",
    "default_graph",
    "build_default_graph",
]

# ───────────────────────────── Scales ─────────────────────────────

class TimeScale(IntEnum):
    """Built-in time scales with fixed ids."""
    TT = 1
    TAI = 2
    UTC = 3
    TCG = 4
    TCB = 5
    TDB = 6
    UT1 = 7
    TDBH = 8
    GPS = 9

    @property
    def id(self) -> int:
        return int(self)

    @property
    def full_name(self) -> str:
        return _FULL_NAMES[self]


_FULL_NAMES = {
    TimeScale.TT: "Terrestrial Time",
    TimeScale.TAI: "International Atomic Time",
    TimeScale.UTC: "Coordinated Universal Time",
    TimeScale.TCG: "Geocentric Coordinate Time",
    TimeScale.TCB: "Barycentric Coordinate Time",
    TimeScale.TDB: "Barycentric Dynamical Time",
    TimeScale.UT1: "Universal Time",
    TimeScale.TDBH: "Barycentric Dynamical Time (ERFA series)",
    TimeScale.GPS: "GPS Time",
}


@dataclass(frozen=True)
class CustomTimeScale:
    """User-defined scale; ids must not collide with registered scales."""
    name: str
    id: int
    full_name: str = ""

    def __str__(self) -> str:
        return self.name


Scale = Union[TimeScale, CustomTimeScale]
ScaleTag = Union[TimeScale, CustomTimeScale, str, int]


@dataclass(frozen=True)
class TimeScaleNode:
    scale: Scale
    parent_id: int
    forward: Offset
    backward: Offset
    has_backward: bool

    @property
    def name(self) -> str:
        return self.scale.name

    @property
    def id(self) -> int:
        return self.scale.id

    @property
    def is_root(self) -> bool:
        return self.parent_id == self.scale.id

# ───────────────────────────── Graph ─────────────────────────────

def _as_offset(fn: Union[Offset, Callable, None]) -> Optional[Offset]:
    if fn is None or isinstance(fn, Offset):
        return fn
    return Offset.generic(fn)


class TimeScaleGraph:
    """Directed tree of time scales connected by offset functions."""

    def __init__(self, representations: Iterable[Representation] = (
            Representation.PLAIN, Representation.DUAL)):
        self.representations = frozenset(representations)
        if not self.representations:
            raise ValueError("A graph needs at least one representation")
        self._nodes: Dict[int, TimeScaleNode] = {}
        self._names: Dict[str, int] = {}
        self._adjacency: Dict[int, List[int]] = {}
        self._paths: Dict[Tuple[int, int], Tuple[int, ...]] = {}

    # ── registration ──

    def register(self, scale: Scale, forward: Union[Offset, Callable, None] = None,
                 backward: Union[Offset, Callable, None] = None,
                 parent: Optional[ScaleTag] = None) -> TimeScaleNode:
        """Add a scale. The first one registered becomes the root."""
        key = scale.name.upper()
        if scale.id in self._nodes or key in self._names:
            raise DuplicateScaleError(
                f"Time scale {scale.name} (id {scale.id}) is already registered",
                scale=scale.name, id=scale.id,
            )

        forward = _as_offset(forward)
        backward = _as_offset(backward)

        if not self._nodes:
            if forward is not None or backward is not None:
                raise ScaleRegistrationError(
                    f"Root scale {scale.name} takes no offsets", scale=scale.name
                )
            node = TimeScaleNode(scale, scale.id, ZERO_OFFSET, ZERO_OFFSET, False)
        else:
            if parent is None:
                raise ScaleRegistrationError(
                    f"Time scale {scale.name} needs a parent", scale=scale.name
                )
            try:
                parent_id = self._lookup(parent)
            except UnknownScaleError as e:
                raise UnknownParentError(
                    f"Parent of {scale.name} is not registered: {e}",
                    scale=scale.name, parent=str(parent),
                ) from e
            if forward is None:
                raise ScaleRegistrationError(
                    f"Time scale {scale.name} needs a forward offset from its parent",
                    scale=scale.name,
                )
            for offset in (forward, backward):
                if offset is None:
                    continue
                missing = self.representations - offset.representations
                if missing:
                    raise UnsupportedRepresentationError(
                        f"Offset {offset.name!r} lacks {sorted(r.value for r in missing)}",
                        scale=scale.name, offset=offset.name,
                    )
            node = TimeScaleNode(
                scale, parent_id, forward,
                backward if backward is not None else ZERO_OFFSET,
                backward is not None,
            )
            self._adjacency[parent_id].append(scale.id)

        self._nodes[scale.id] = node
        self._names[key] = scale.id
        self._adjacency[scale.id] = [node.parent_id] if node.has_backward else []
        self._rebuild_paths()
        log.debug("Registered time scale %s under %s", scale.name,
                  self._nodes[node.parent_id].name)
        return node

    def _rebuild_paths(self) -> None:
        paths: Dict[Tuple[int, int], Tuple[int, ...]] = {}
        for source in self._nodes:
            previous = {source: None}
            queue = deque([source])
            while queue:
                current = queue.popleft()
                for nxt in self._adjacency[current]:
                    if nxt not in previous:
                        previous[nxt] = current
                        queue.append(nxt)
            for target in previous:
                hops = [target]
                while hops[-1] != source:
                    hops.append(previous[hops[-1]])
                paths[(source, target)] = tuple(reversed(hops))
        self._paths = paths

    # ── queries ──

    def _lookup(self, scale: ScaleTag) -> int:
        if isinstance(scale, str):
            sid = self._names.get(scale.upper())
            if sid is None:
                raise UnknownScaleError(f"Unknown time scale {scale!r}", scale=scale)
            return sid
        sid = getattr(scale, "id", scale)
        if sid not in self._nodes:
            raise UnknownScaleError(f"Time scale {scale} is not registered", scale=str(scale))
        return sid

    def has_scale(self, scale: ScaleTag) -> bool:
        try:
            self._lookup(scale)
        except UnknownScaleError:
            return False
        return True

    def node(self, scale: ScaleTag) -> TimeScaleNode:
        return self._nodes[self._lookup(scale)]

    def resolve(self, name: str) -> Scale:
        """Registered scale object for a name (case-insensitive)."""
        return self._nodes[self._lookup(name)].scale

    def scales(self) -> List[Scale]:
        return [node.scale for node in self._nodes.values()]

    @property
    def root(self) -> Optional[Scale]:
        for node in self._nodes.values():
            return node.scale
        return None

    def _path_ids(self, from_scale: ScaleTag, to_scale: ScaleTag) -> Tuple[int, ...]:
        a = self._lookup(from_scale)
        b = self._lookup(to_scale)
        path = self._paths.get((a, b))
        if path is None:
            src, dst = self._nodes[a].name, self._nodes[b].name
            if self._connected(a, b):
                raise WrongDirectionError(
                    f"No path from {src} to {dst}: an edge on the route is forward-only",
                    source=src, target=dst,
                )
            raise NoPathError(f"No path from {src} to {dst}", source=src, target=dst)
        return path

    def _connected(self, a: int, b: int) -> bool:
        # undirected reachability through parent links
        def ancestors(sid):
            chain = [sid]
            while not self._nodes[chain[-1]].is_root:
                chain.append(self._nodes[chain[-1]].parent_id)
            return chain
        return ancestors(a)[-1] == ancestors(b)[-1]

    def path(self, from_scale: ScaleTag, to_scale: ScaleTag) -> List[Scale]:
        """Scales visited from ``from_scale`` to ``to_scale``, both ends included."""
        return [self._nodes[sid].scale for sid in self._path_ids(from_scale, to_scale)]

    def _hops(self, path: Tuple[int, ...]):
        for a, b in zip(path, path[1:]):
            node_a = self._nodes[a]
            if node_a.parent_id == b and not node_a.is_root:
                yield node_a.backward
            else:
                yield self._nodes[b].forward

    # ── conversion ──

    def convert(self, value, from_scale: ScaleTag, to_scale: ScaleTag):
        """Seconds since J2000 in ``from_scale`` -> seconds since J2000 in ``to_scale``."""
        if from_scale == to_scale:
            return value
        for offset in self._hops(self._path_ids(from_scale, to_scale)):
            value = value + offset(value)
        return value

    def offset(self, value, from_scale: ScaleTag, to_scale: ScaleTag):
        """Accumulated ``to - from`` difference in seconds at ``value``."""
        total = 0.0 * value
        if from_scale == to_scale:
            return total
        for offset in self._hops(self._path_ids(from_scale, to_scale)):
            delta = offset(value)
            value = value + delta
            total = total + delta
        return total

    def __contains__(self, scale) -> bool:
        return self.has_scale(scale)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        names = ", ".join(node.name for node in self._nodes.values())
        return f"TimeScaleGraph([{names}])"

# ───────────────────────────── Default Graph ─────────────────────────────

def build_default_graph(table: Optional[LeapSecondTable] = None,
                        dut1: Optional[float] = None,
                        representations: Iterable[Representation] = (
                            Representation.PLAIN, Representation.DUAL),
                        ) -> TimeScaleGraph:
    """Graph of the built-in scales, UTC bound to ``table``."""
    graph = TimeScaleGraph(representations)
    tai_to_utc, utc_to_tai = utc_offsets(table)

    graph.register(TimeScale.TAI)
    graph.register(TimeScale.TT, tai_to_tt, tt_to_tai, parent=TimeScale.TAI)
    graph.register(TimeScale.UTC, tai_to_utc, utc_to_tai, parent=TimeScale.TAI)
    graph.register(TimeScale.GPS, tai_to_gps, gps_to_tai, parent=TimeScale.TAI)
    graph.register(TimeScale.TDB, tt_to_tdb, tdb_to_tt, parent=TimeScale.TT)
    graph.register(TimeScale.TCG, tt_to_tcg, tcg_to_tt, parent=TimeScale.TT)
    graph.register(TimeScale.TDBH, tt_to_tdbh, parent=TimeScale.TT)
    graph.register(TimeScale.TCB, tdb_to_tcb, tcb_to_tdb, parent=TimeScale.TDB)
    if dut1 is not None:
        graph.register(TimeScale.UT1, *dut1_offsets(dut1), parent=TimeScale.UTC)
    return graph


@lru_cache(maxsize=1)
def default_graph() -> TimeScaleGraph:
    """Process-wide graph over the default leap second table, built once."""
    return build_default_graph(default_leap_seconds())
