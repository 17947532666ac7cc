# physics.py
import math
from dataclasses import dataclass
from typing import List, Tuple

from barnes_hut import compute_repulsion, repulsion_force
from qtcore_shim import QPointF
from snapshot import GraphSnapshot

# "barnes_hut": quadtree repulsion; "repel": exact pairwise sum;
# "hierarchical": exact sum between nodes of the same level only
SOLVERS = ("barnes_hut", "repel", "hierarchical")


@dataclass
class PhysicsOptions:
    solver: str = "barnes_hut"

    # Forces
    gravity: float = 0.02            # pull towards the origin, per unit mass and distance
    repulsion: float = 200.0         # |F| = repulsion * m_i * m_j / d
    spring: float = 0.04             # edge spring constant
    spring_length: float = 80.0      # rest length between node rims
    damping: float = 0.09            # fraction of velocity removed every frame
    theta: float = 0.5               # Barnes–Hut opening criterion
    min_distance: float = 10.0       # distance floor for repulsion

    # Settling / integration
    tolerance: float = 0.1           # speed below which a node is settled
    max_delta_time: float = 0.032    # seconds; frame hitches are clamped to this
    time_scale: float = 60.0         # simulation units per second (1 unit ~ one 60 FPS frame)
    max_velocity: float = 50.0

    # Node size model
    node_base_radius: float = 20.0
    node_radius_edge_factor: float = 2.0

    def __post_init__(self):
        if self.solver not in SOLVERS:
            raise ValueError(f"Unknown physics solver {self.solver!r}; expected one of {SOLVERS}")

    def radiusFor(self, degree: int) -> float:
        return self.node_base_radius + degree * self.node_radius_edge_factor

    def massFor(self, degree: int) -> float:
        return float(degree + 1)


class PhysicsEngine:
    """
    One damped, explicit timestep per animation frame.
    - gravity to the origin, repulsion from the selected solver, edge springs
    - an axis-locked node only moves along its other axis
    - fixed nodes get no force and never move
    - settled nodes skip integration until their frame impulse exceeds the tolerance
    Single-threaded; the caller owns the frame loop and its stop flag.
    """

    def __init__(self, options: PhysicsOptions = None, debug: bool = False):
        self.options = options or PhysicsOptions()
        self.debug = debug
        self.frames = 0
        self.last_moved = 0

    def applyNodeModel(self, snapshot: GraphSnapshot):
        """mass = degree + 1; radius grows with the number of incident edges."""
        for i, v in enumerate(snapshot.vertices):
            deg = snapshot.degree[i]
            v.setMass(self.options.massFor(deg))
            v.setRadius(self.options.radiusFor(deg))

    def wake_all(self, snapshot: GraphSnapshot):
        for v in snapshot.vertices:
            v.setSettled(False)

    def isStable(self, snapshot: GraphSnapshot) -> bool:
        return all(v.isFixed() or v.isSettled() for v in snapshot.vertices)

    # --------------------------
    # Forces
    # --------------------------
    def _repulsion(self, snapshot: GraphSnapshot, xs, ys, masses, fixed):
        opts = self.options
        if opts.solver == "barnes_hut":
            return compute_repulsion(xs, ys, masses, opts.repulsion, opts.theta,
                                     opts.min_distance, skip=fixed)
        if opts.solver == "repel":
            return compute_repulsion(xs, ys, masses, opts.repulsion, 0.0,
                                     opts.min_distance, skip=fixed)

        n = len(xs)
        fx = [0.0] * n
        fy = [0.0] * n
        levels = [v.getLevel() for v in snapshot.vertices]
        for i in range(n):
            if fixed[i]:
                continue
            for j in range(n):
                if j == i or levels[j] != levels[i]:
                    continue
                ax, ay = repulsion_force(xs[i] - xs[j], ys[i] - ys[j], masses[i], masses[j],
                                         opts.repulsion, opts.min_distance, i, j)
                fx[i] += ax
                fy[i] += ay
        return fx, fy

    def compute_forces(self, snapshot: GraphSnapshot) -> Tuple[List[float], List[float]]:
        opts = self.options
        xs, ys = snapshot.positions()
        verts = snapshot.vertices
        masses = [v.getMass() for v in verts]
        fixed = [v.isFixed() for v in verts]

        fx, fy = self._repulsion(snapshot, xs, ys, masses, fixed)

        g = opts.gravity
        if g != 0.0:
            for i in range(len(verts)):
                if fixed[i]:
                    continue
                fx[i] -= g * masses[i] * xs[i]
                fy[i] -= g * masses[i] * ys[i]

        k = opts.spring
        if k != 0.0:
            index = snapshot.index
            for e in snapshot.edges:
                if e.isSelfLoop():
                    continue
                i = index[e.getSourceId()]
                j = index[e.getTargetId()]
                dx = xs[j] - xs[i]
                dy = ys[j] - ys[i]
                d = math.hypot(dx, dy)
                if d < 1e-9:
                    continue
                rest = opts.spring_length + verts[i].getRadius() + verts[j].getRadius()
                f = k * (d - rest) / d
                if not fixed[i]:
                    fx[i] += dx * f
                    fy[i] += dy * f
                if not fixed[j]:
                    fx[j] -= dx * f
                    fy[j] -= dy * f
        return fx, fy

    # --------------------------
    # Integration
    # --------------------------
    def update(self, snapshot: GraphSnapshot, dt: float) -> bool:
        """Advance one frame. Returns True when every node is settled or fixed."""
        if snapshot.size() < 2:
            return True
        opts = self.options
        dt = float(dt)
        if not math.isfinite(dt):
            dt = 0.0
        dt = min(max(dt, 0.0), opts.max_delta_time)
        h = dt * opts.time_scale
        self.frames += 1
        self.last_moved = 0
        if h <= 0.0:
            return self.isStable(snapshot)

        fx, fy = self.compute_forces(snapshot)
        keep = 1.0 - min(max(opts.damping, 0.0), 1.0)
        tol = opts.tolerance
        vmax = opts.max_velocity

        for i, v in enumerate(snapshot.vertices):
            if v.isFixed():
                continue
            m = v.getMass()
            ax = fx[i] / m
            ay = fy[i] / m
            if not (math.isfinite(ax) and math.isfinite(ay)):
                if self.debug:
                    print(f"[physics] non-finite force on {v.getId()!r}; ignored this frame.")
                ax = ay = 0.0

            locked = v.getLockedAxis()
            if locked == "x":
                ax = 0.0
            elif locked == "y":
                ay = 0.0

            if v.isSettled():
                if math.hypot(ax, ay) * h * keep < tol:
                    continue
                v.setSettled(False)

            vel = v.getVelocity()
            vx = 0.0 if locked == "x" else (vel.x() + ax * h) * keep
            vy = 0.0 if locked == "y" else (vel.y() + ay * h) * keep
            speed = math.hypot(vx, vy)
            if speed > vmax:
                s = vmax / speed
                vx *= s
                vy *= s
                speed = vmax
            if speed < tol:
                v.setVelocity(QPointF(0.0, 0.0))
                v.setSettled(True)
                continue

            p = v.getPosition()
            v.setVelocity(QPointF(vx, vy))
            v.setPosition(QPointF(p.x() + vx * h, p.y() + vy * h))
            self.last_moved += 1

        return self.last_moved == 0 and self.isStable(snapshot)

    def inject(self, v, velocity: QPointF):
        """Give a released node its drag velocity so it keeps moving."""
        vx, vy = velocity.x(), velocity.y()
        speed = math.hypot(vx, vy)
        if speed > self.options.max_velocity:
            s = self.options.max_velocity / speed
            vx *= s
            vy *= s
        v.setVelocity(QPointF(vx, vy))
        v.setSettled(False)
