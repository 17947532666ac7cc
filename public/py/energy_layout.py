# energy_layout.py
"""
Static spring/energy layout after Kamada & Kawai, "An algorithm for drawing
general undirected graphs" (1989).

Every node pair (i, j) is joined by a spring of ideal length
L[i,j] = spring_length * hops(i, j) and stiffness K[i,j] = spring_constant / hops(i, j)^2.
Nodes are moved one at a time (largest gradient first) with a 2x2 Newton step.
The pairwise gradient contributions are cached so a single move costs O(V).
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from qtcore_shim import QPointF
from shortest_path import DistanceMatrix, all_pairs_hops
from snapshot import GraphSnapshot

DET_EPS = 1e-12


@dataclass
class EnergyConfig:
    spring_length: float = 95.0
    spring_constant: float = 0.05
    # Both thresholds are per unit spring_constant (multiplied by it before use)
    threshold: float = 0.01        # outer stop: global max gradient
    inner_threshold: float = 1.0   # keep moving the same node while above this
    max_inner_iterations: int = 5
    use_scipy: Optional[bool] = None


@dataclass
class EnergyLayoutResult:
    iterations: int = 0
    moves: int = 0
    skipped: int = 0
    max_energy: float = 0.0
    converged: bool = True


def iteration_cap(n: int) -> int:
    return max(1000, min(10 * n, 6000))


def effective_thresholds(config: EnergyConfig) -> Tuple[float, float]:
    """(outer, inner) gradient thresholds in the units of the spring energy."""
    k = abs(config.spring_constant)
    return config.threshold * k, config.inner_threshold * k


class EnergyLayout:
    def __init__(self, snapshot: GraphSnapshot, config: Optional[EnergyConfig] = None,
                 distances: Optional[DistanceMatrix] = None, debug: bool = False):
        self.snapshot = snapshot
        self.config = config or EnergyConfig()
        self.debug = debug
        self._distances = distances

        xs, ys = snapshot.positions()
        self._x = np.array(xs, dtype=float)
        self._y = np.array(ys, dtype=float)
        self._fixed = np.array([v.isFixed() for v in snapshot.vertices], dtype=bool)
        # Nodes without a finite position take no part: no springs, never moved
        self._invalid = ~(np.isfinite(self._x) & np.isfinite(self._y))
        self._x[self._invalid] = 0.0
        self._y[self._invalid] = 0.0

        n = snapshot.size()
        self._L = np.zeros((n, n))
        self._K = np.zeros((n, n))
        self._ex = np.zeros((n, n))
        self._ey = np.zeros((n, n))
        self._gx = np.zeros(n)
        self._gy = np.zeros(n)
        self._result = EnergyLayoutResult()

    # --------------------------
    # Setup
    # --------------------------
    def _build_springs(self, hops: np.ndarray):
        d = hops.astype(float)
        self._L = self.config.spring_length * d
        d2 = d * d
        self._K = np.divide(self.config.spring_constant, d2, out=np.zeros_like(d2), where=d2 > 0)
        self._K[self._invalid, :] = 0.0
        self._K[:, self._invalid] = 0.0

    def _build_gradients(self):
        DX = self._x[:, None] - self._x[None, :]
        DY = self._y[:, None] - self._y[None, :]
        D = np.hypot(DX, DY)
        inv = np.divide(1.0, D, out=np.zeros_like(D), where=D > 0)
        # ex[m, i]: contribution of the (m, i) spring to dE/dx_m
        self._ex = self._K * (DX - self._L * DX * inv)
        self._ey = self._K * (DY - self._L * DY * inv)
        self._gx = self._ex.sum(axis=1)
        self._gy = self._ey.sum(axis=1)

    # --------------------------
    # Energy queries
    # --------------------------
    def _energy(self, m: int) -> float:
        return math.hypot(self._gx[m], self._gy[m])

    def _highest_energy_node(self):
        mags = np.hypot(self._gx, self._gy)
        mags[self._fixed | self._invalid] = -1.0
        mags[~np.isfinite(mags)] = -1.0
        m = int(np.argmax(mags))
        if mags[m] < 0.0:
            return -1, 0.0
        return m, float(mags[m])

    def max_energy(self) -> float:
        return self._highest_energy_node()[1]

    # --------------------------
    # Moves
    # --------------------------
    def _pair_row(self, m: int):
        dx = self._x[m] - self._x
        dy = self._y[m] - self._y
        d = np.hypot(dx, dy)
        inv = np.divide(1.0, d, out=np.zeros_like(d), where=d > 0)
        km = self._K[m]
        lm = self._L[m]
        return km * (dx - lm * dx * inv), km * (dy - lm * dy * inv)

    def _move_node(self, m: int) -> bool:
        """One Newton step for node m. Returns False when the move was skipped."""
        dx = self._x[m] - self._x
        dy = self._y[m] - self._y
        d2 = dx * dx + dy * dy
        inv3 = np.divide(1.0, d2 * np.sqrt(d2), out=np.zeros_like(d2), where=d2 > 0)
        km = self._K[m]
        lm = self._L[m]

        a = float(np.sum(km * (1.0 - lm * dy * dy * inv3)))
        b = float(np.sum(km * (lm * dx * dy * inv3)))
        c = float(np.sum(km * (1.0 - lm * dx * dx * inv3)))
        gx = float(self._gx[m])
        gy = float(self._gy[m])

        if not all(math.isfinite(t) for t in (a, b, c, gx, gy)):
            if self.debug:
                print(f"[energy_layout] NaN detected for node {self.snapshot.ids[m]!r}; move skipped.")
            self._result.skipped += 1
            return False

        mag = math.hypot(gx, gy)
        if mag == 0.0:
            return False

        det = a * c - b * b
        if abs(det) < DET_EPS:
            step_x, step_y = -gx / mag, -gy / mag
        else:
            step_x = (-gx * c + gy * b) / det
            step_y = (-gy * a + gx * b) / det

        if not (math.isfinite(step_x) and math.isfinite(step_y)):
            if self.debug:
                print(f"[energy_layout] non-finite step for node {self.snapshot.ids[m]!r}; move skipped.")
            self._result.skipped += 1
            return False

        self._x[m] += step_x
        self._y[m] += step_y
        self._update_gradients(m)
        self._result.moves += 1
        return True

    def _update_gradients(self, m: int):
        """Refresh row/column m of the pair cache and patch every gradient sum (O(V))."""
        ex, ey = self._pair_row(m)
        self._gx += -ex - self._ex[:, m]
        self._gy += -ey - self._ey[:, m]
        self._ex[:, m] = -ex
        self._ey[:, m] = -ey
        self._ex[m, :] = ex
        self._ey[m, :] = ey
        self._gx[m] = ex.sum()
        self._gy[m] = ey.sum()

    # --------------------------
    # Driver
    # --------------------------
    def prepare(self):
        """Build the springs and the gradient cache; run() calls this first."""
        dist = self._distances
        if dist is None:
            dist = all_pairs_hops(self.snapshot, use_scipy=self.config.use_scipy)
        self._build_springs(dist.matrix)
        self._build_gradients()

    def run(self) -> EnergyLayoutResult:
        cfg = self.config
        result = self._result
        n = self.snapshot.size()
        if n < 2:
            return result

        bad = int(np.count_nonzero(self._invalid))
        if bad:
            result.skipped += bad
            if self.debug:
                print(f"[energy_layout] {bad} node(s) without a finite position left out.")
        self.prepare()

        threshold, inner_threshold = effective_thresholds(cfg)
        cap = iteration_cap(n)
        max_energy = math.inf
        while max_energy > threshold and result.iterations < cap:
            result.iterations += 1
            m, max_energy = self._highest_energy_node()
            if m < 0:
                break
            # Nothing above the inner threshold: no node would move again
            if max_energy <= inner_threshold:
                break
            delta = max_energy
            sub = 0
            while delta > inner_threshold and sub < cfg.max_inner_iterations:
                sub += 1
                if not self._move_node(m):
                    break
                delta = self._energy(m)

        result.max_energy = self.max_energy()
        result.converged = result.max_energy <= inner_threshold
        if self.debug and not result.converged:
            print(f"[energy_layout] stopped at cap after {result.iterations} iterations "
                  f"(max gradient {result.max_energy:.4g}).")
        self._write_back()
        return result

    def _write_back(self):
        for i, v in enumerate(self.snapshot.vertices):
            if self._fixed[i] or self._invalid[i]:
                continue
            v.setPosition(QPointF(float(self._x[i]), float(self._y[i])))


def energy_layout(snapshot: GraphSnapshot, config: Optional[EnergyConfig] = None,
                  debug: bool = False) -> EnergyLayoutResult:
    """Position all non-fixed vertices of the snapshot in place."""
    return EnergyLayout(snapshot, config=config, debug=debug).run()
