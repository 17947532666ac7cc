# graph.py

from vertex import Vertex
from edge import Edge
from snapshot import GraphSnapshot
from physics import PhysicsEngine, PhysicsOptions
from hierarchy import HierarchicalLayout, HierarchicalOptions, strategy_for
from energy_layout import EnergyConfig, EnergyLayout, EnergyLayoutResult
from utils_geom import v_dist, v_from_polar
from qtcore_shim import QPointF
from typing import Dict, Optional
import math
import secrets
import random
import dataclasses
from dataclasses import dataclass, field

DEFAULT_DRAG_DT = 1.0 / 60.0

MODE_PHYSICS = "physics"
MODE_ENERGY = "energy"
MODE_HIERARCHICAL = "hierarchical"


@dataclass
class GraphConfig:
    physics: PhysicsOptions = field(default_factory=PhysicsOptions)
    hierarchy: HierarchicalOptions = field(default_factory=HierarchicalOptions)
    energy: EnergyConfig = field(default_factory=EnergyConfig)

    # New nodes appear on the annulus spawn_radius/2 .. spawn_radius around the origin
    spawn_radius: float = 50.0


class Graph:
    def __init__(self, config: Optional[GraphConfig] = None, seed: Optional[int] = None,
                 debug: bool = False):
        self.config = config or GraphConfig()
        self.vertices: Dict = {}
        self.edges: Dict = {}
        self.dropped_edges = 0
        self._snapshot: Optional[GraphSnapshot] = None
        self._edge_seq = 0

        self.physics = PhysicsEngine(self.config.physics)
        self.mode = MODE_PHYSICS
        self.curve_type: Optional[str] = None
        self.last_energy_result: Optional[EnergyLayoutResult] = None
        self._running = True
        self._drag = None
        self._level_pinned = set()

        # Robust randomness (seedable for reproducible spawns)
        self._rng = random.Random(secrets.randbits(64) if seed is None else seed)

        # UI callback hook: on_layout_changed(bbox, center)
        self.on_layout_changed = None

        self._debug = False
        self.debug = debug

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    def debug(self, enabled: bool):
        self._debug = bool(enabled)
        self.physics.debug = self._debug

    # --------------------------
    # Small helpers
    # --------------------------
    def _spawn_position(self) -> QPointF:
        R = max(float(self.config.spawn_radius), 1e-3)
        ang = self._rng.uniform(0.0, 2.0 * math.pi)
        r = self._rng.uniform(0.5 * R, R)
        return v_from_polar(r, ang)

    def _next_edge_id(self):
        while True:
            self._edge_seq += 1
            eid = f"e{self._edge_seq}"
            if eid not in self.edges:
                return eid

    def _changed(self):
        self._snapshot = None

    def _notify(self):
        if self.on_layout_changed:
            self.on_layout_changed(self.get_bounding_box(), self.get_center())

    # --------------------------
    # Structure
    # --------------------------
    def clear(self):
        self.vertices = {}
        self.edges = {}
        self.dropped_edges = 0
        self._drag = None
        self._level_pinned = set()
        self.mode = MODE_PHYSICS
        self.curve_type = None
        self._changed()

    def sync(self, nodes, edges):
        """
        Apply a full node/edge listing as a diff.
        - surviving ids keep position, velocity and pinned state
        - new ids spawn near the origin
        - edges whose endpoints are not in `nodes` are dropped
        """
        new_vertices = {}
        for rec in nodes:
            vid = rec["id"]
            label = str(rec.get("label", ""))
            disp = str(rec.get("displayProperty", ""))
            v = self.vertices.get(vid)
            if v is None:
                v = Vertex(vid, self._spawn_position(), label=label, displayProperty=disp)
            else:
                v.setLabel(label)
                v.setDisplayProperty(disp)
            new_vertices[vid] = v

        new_edges = {}
        dropped = 0
        for rec in edges:
            s = rec["sourceId"]
            t = rec["targetId"]
            if s not in new_vertices or t not in new_vertices:
                dropped += 1
                continue
            eid = rec.get("id")
            if eid is None or eid in new_edges:
                eid = self._next_edge_id()
            new_edges[eid] = Edge(eid, s, t, str(rec.get("label", "")))

        self.vertices = new_vertices
        self.edges = new_edges
        self.dropped_edges = dropped
        self._level_pinned &= set(new_vertices)
        if self._drag and self._drag["id"] not in new_vertices:
            self._drag = None
        if self.debug and dropped:
            print(f"[sync] dropped {dropped} edge(s) with unknown endpoints.")
        self._changed()

    def add_node(self, vid, label: str = "", displayProperty: str = "",
                 position: Optional[QPointF] = None) -> Vertex:
        v = self.vertices.get(vid)
        if v is not None:
            v.setLabel(label)
            v.setDisplayProperty(displayProperty)
            return v
        v = Vertex(vid, position if position is not None else self._spawn_position(),
                   label=label, displayProperty=displayProperty)
        self.vertices[vid] = v
        self._changed()
        return v

    def remove_node(self, vid) -> bool:
        if vid not in self.vertices:
            return False
        del self.vertices[vid]
        for eid in [eid for eid, e in self.edges.items()
                    if e.getSourceId() == vid or e.getTargetId() == vid]:
            del self.edges[eid]
        self._level_pinned.discard(vid)
        if self._drag and self._drag["id"] == vid:
            self._drag = None
        self._changed()
        return True

    def add_edge(self, sourceId, targetId, eid=None, label: str = "") -> Edge:
        for vid in (sourceId, targetId):
            if vid not in self.vertices:
                raise KeyError(f"unknown node id {vid!r}")
        if eid is None:
            eid = self._next_edge_id()
        e = Edge(eid, sourceId, targetId, label)
        self.edges[eid] = e
        self._changed()
        return e

    def remove_edge(self, eid) -> bool:
        if self.edges.pop(eid, None) is None:
            return False
        self._changed()
        return True

    def snapshot(self) -> GraphSnapshot:
        """Current immutable view; rebuilt (and physics re-sized and woken) after any change."""
        if self._snapshot is None:
            snap = GraphSnapshot(self.vertices.values(), self.edges.values())
            self.physics.applyNodeModel(snap)
            self.physics.wake_all(snap)
            self._snapshot = snap
        return self._snapshot

    # --------------------------
    # One-shot layouts
    # --------------------------
    def release_hierarchy(self):
        """Unpin nodes pinned by the last hierarchical layout and return to free layout."""
        for vid in self._level_pinned:
            v = self.vertices.get(vid)
            if v is None:
                continue
            if self._drag and self._drag["id"] == vid:
                # Stays fixed while held; end_drag must then leave it free
                self._drag["was_fixed"] = False
            else:
                v.setFixed(False)
            v.setLockedAxis(None)
            v.setSettled(False)
            v.setLevel(None)
        self._level_pinned = set()
        self.curve_type = None
        self.mode = MODE_PHYSICS

    def energy_layout(self) -> EnergyLayoutResult:
        self.release_hierarchy()
        snap = self.snapshot()
        result = EnergyLayout(snap, self.config.energy, debug=self.debug).run()
        for v in snap.vertices:
            if not v.isFixed():
                v.setVelocity(QPointF(0.0, 0.0))
        self.physics.wake_all(snap)
        self.mode = MODE_ENERGY
        self.last_energy_result = result
        if self.debug:
            print(f"[energy_layout] {result.iterations} iterations, {result.moves} moves, "
                  f"{result.skipped} skipped, max gradient {result.max_energy:.4g}.")
        self._notify()
        return result

    def hierarchical_layout(self) -> Dict:
        self.release_hierarchy()
        snap = self.snapshot()
        layout = HierarchicalLayout(snap, self.config.hierarchy)
        levels = layout.run()
        for v in snap.vertices:
            v.setVelocity(QPointF(0.0, 0.0))
        self._level_pinned = set(levels)
        if self.config.hierarchy.run_physics_after:
            self.physics.wake_all(snap)
            if self.debug and self.config.physics.solver != "hierarchical":
                print(f"[hierarchical_layout] physics runs after the layout with solver "
                      f"{self.config.physics.solver!r}; 'hierarchical' keeps levels apart.")
        self.mode = MODE_HIERARCHICAL
        self.curve_type = layout.strategy.getCurveType()
        if self.debug:
            depth = max(levels.values()) + 1 if levels else 0
            print(f"[hierarchical_layout] {len(levels)} nodes on {depth} level(s), "
                  f"direction {self.config.hierarchy.direction}.")
        self._notify()
        return levels

    # --------------------------
    # Simulation
    # --------------------------
    def is_running(self) -> bool:
        return self._running

    def start_simulation(self):
        self._running = True
        if self._snapshot is not None:
            self.physics.wake_all(self._snapshot)

    def stop_simulation(self):
        self._running = False

    def tick(self, dt: float) -> bool:
        """One physics frame. Returns True when the layout is at rest (or stopped)."""
        if not self._running:
            return True
        return self.physics.update(self.snapshot(), dt)

    # --------------------------
    # Drag / hit-test
    # --------------------------
    def begin_drag(self, vid) -> bool:
        v = self.vertices.get(vid)
        if v is None:
            return False
        if self._drag:
            self.end_drag()
        self._drag = {"id": vid, "was_fixed": v.isFixed(), "velocity": QPointF(0.0, 0.0)}
        v.setFixed(True)
        v.setVelocity(QPointF(0.0, 0.0))
        return True

    def drag_by(self, dx: float, dy: float, dt: float = DEFAULT_DRAG_DT) -> bool:
        if not self._drag:
            return False
        v = self.vertices[self._drag["id"]]
        p = v.getPosition()
        v.setPosition(QPointF(p.x() + dx, p.y() + dy))
        if not (dt and dt > 0.0):
            dt = DEFAULT_DRAG_DT
        # Per simulation-unit velocity, the unit PhysicsEngine integrates in
        h = dt * self.config.physics.time_scale
        if h > 0.0:
            self._drag["velocity"] = QPointF(dx / h, dy / h)
        self.physics.wake_all(self.snapshot())
        return True

    def end_drag(self) -> bool:
        if not self._drag:
            return False
        drag = self._drag
        self._drag = None
        v = self.vertices.get(drag["id"])
        if v is None:
            return False
        v.setFixed(drag["was_fixed"])
        if not drag["was_fixed"]:
            self.physics.inject(v, drag["velocity"])
        self.physics.wake_all(self.snapshot())
        return True

    def dragged_id(self):
        return self._drag["id"] if self._drag else None

    def find_vertex_at(self, point, radius: Optional[float] = None) -> Optional[Vertex]:
        """Nearest vertex within `radius` (default: each vertex's own radius)."""
        if isinstance(point, (tuple, list)):
            point = QPointF(point[0], point[1])
        self.snapshot()
        best = None
        best_d = math.inf
        for v in self.vertices.values():
            d = v_dist(point, v.getPosition())
            limit = v.getRadius() if radius is None else radius
            if d <= limit and d < best_d:
                best = v
                best_d = d
        return best

    # --------------------------
    # Options
    # --------------------------
    def _replace(self, current, kw):
        names = {f.name for f in dataclasses.fields(current)}
        unknown = sorted(set(kw) - names)
        if unknown:
            raise ValueError(f"unknown option(s): {', '.join(unknown)}")
        return dataclasses.replace(current, **kw)

    def set_physics_options(self, **kw) -> PhysicsOptions:
        opts = self._replace(self.config.physics, kw)
        self.config.physics = opts
        self.physics.options = opts
        snap = self.snapshot()
        self.physics.applyNodeModel(snap)
        self.physics.wake_all(snap)
        return opts

    def set_hierarchy_options(self, **kw) -> HierarchicalOptions:
        opts = self._replace(self.config.hierarchy, kw)
        strategy_for(opts)  # validates direction
        self.config.hierarchy = opts
        return opts

    def set_energy_config(self, **kw) -> EnergyConfig:
        self.config.energy = self._replace(self.config.energy, kw)
        return self.config.energy

    # --------------------------
    # Queries (used by UI / bridge)
    # --------------------------
    def getVertices(self):
        return list(self.vertices.values())

    def getEdges(self):
        return list(self.edges.values())

    def positions(self) -> Dict:
        return {vid: (v.getPosition().x(), v.getPosition().y()) for vid, v in self.vertices.items()}

    def levels(self) -> Dict:
        return {vid: v.getLevel() for vid, v in self.vertices.items() if v.getLevel() is not None}

    def get_stats(self):
        snap = self.snapshot()
        return {
            "nodes": snap.size(),
            "edges": len(snap.edges),
            "dropped_edges": self.dropped_edges + snap.dropped,
            "fixed": sum(1 for v in snap.vertices if v.isFixed()),
            "settled": sum(1 for v in snap.vertices if v.isSettled()),
            "frames": self.physics.frames,
            "mode": self.mode,
            "running": self._running,
        }

    def get_bounding_box(self):
        xs = []; ys = []
        for v in self.vertices.values():
            p = v.getPosition()
            xs.append(p.x()); ys.append(p.y())
        if not xs:
            return (0.0, 0.0, 0.0, 0.0)
        return (min(xs), min(ys), max(xs), max(ys))

    def get_center(self) -> QPointF:
        n = len(self.vertices)
        if n == 0:
            return QPointF(0.0, 0.0)
        sx = sum(v.getPosition().x() for v in self.vertices.values())
        sy = sum(v.getPosition().y() for v in self.vertices.values())
        return QPointF(sx / n, sy / n)
