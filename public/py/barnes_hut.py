# barnes_hut.py
"""
Barnes–Hut quadtree for the pairwise repulsion sum.
Internal branches carry aggregate mass and center of mass; a branch is used as a
single body when size / distance < theta, otherwise its children are visited.
theta = 0 degenerates to the exact O(V^2) sum.
"""
import math
from typing import List, Sequence, Tuple

MINIMUM_TREE_SIZE = 1e-5
MAX_DEPTH = 32
# Golden angle: spreads separation directions of coincident pairs
_GOLDEN = math.pi * (3.0 - math.sqrt(5.0))


class Branch:
    __slots__ = ("cx", "cy", "size", "mass", "comx", "comy", "children", "bodies")

    def __init__(self, cx: float, cy: float, size: float):
        self.cx = cx
        self.cy = cy
        self.size = size
        self.mass = 0.0
        self.comx = 0.0
        self.comy = 0.0
        self.children = None   # None for a leaf, else [SW, SE, NW, NE]
        self.bodies = []       # body indices held by a leaf

    def isLeaf(self) -> bool:
        return self.children is None

    def _split(self):
        q = 0.25 * self.size
        h = 0.5 * self.size
        self.children = [
            Branch(self.cx - q, self.cy - q, h),
            Branch(self.cx + q, self.cy - q, h),
            Branch(self.cx - q, self.cy + q, h),
            Branch(self.cx + q, self.cy + q, h),
        ]


def separation_direction(i: int, j: int) -> Tuple[float, float]:
    """Unit vector pushing body i away from a body j at the same position (antisymmetric in i, j)."""
    lo, hi = (i, j) if i < j else (j, i)
    ang = _GOLDEN * (lo * 31 + hi)
    ux, uy = math.cos(ang), math.sin(ang)
    return (ux, uy) if i < j else (-ux, -uy)


def repulsion_force(dx: float, dy: float, m_self: float, m_other: float,
                    strength: float, min_distance: float, i: int = 0, j: int = 1):
    """
    Force on a body from another body (or aggregate) at offset (-dx, -dy).
    |F| = strength * m_self * m_other / max(d, min_distance), directed away from the other.
    """
    d = math.hypot(dx, dy)
    floor = max(min_distance, 1e-6)
    if d < 1e-9:
        ux, uy = separation_direction(i, j)
    else:
        ux, uy = dx / d, dy / d
    f = strength * m_self * m_other / max(d, floor)
    return ux * f, uy * f


class QuadTree:
    def __init__(self, xs: Sequence[float], ys: Sequence[float], masses: Sequence[float]):
        self.xs = xs
        self.ys = ys
        self.masses = masses
        self.root = self._make_root()
        for i in range(len(xs)):
            if masses[i] > 0:
                self._insert(self.root, i, 0)

    def _make_root(self) -> Branch:
        if len(self.xs) == 0:
            return Branch(0.0, 0.0, MINIMUM_TREE_SIZE)
        min_x = min(self.xs); max_x = max(self.xs)
        min_y = min(self.ys); max_y = max(self.ys)
        size = max(MINIMUM_TREE_SIZE, max_x - min_x, max_y - min_y)
        # Small pad so points on the max edge stay strictly inside
        size *= 1.0 + 1e-9
        return Branch(0.5 * (min_x + max_x), 0.5 * (min_y + max_y), size)

    def _quadrant(self, node: Branch, i: int) -> int:
        return (1 if self.xs[i] >= node.cx else 0) + (2 if self.ys[i] >= node.cy else 0)

    def _add_mass(self, node: Branch, i: int):
        m = self.masses[i]
        total = node.mass + m
        node.comx = (node.comx * node.mass + self.xs[i] * m) / total
        node.comy = (node.comy * node.mass + self.ys[i] * m) / total
        node.mass = total

    def _insert(self, node: Branch, i: int, depth: int):
        self._add_mass(node, i)
        if not node.isLeaf():
            self._insert(node.children[self._quadrant(node, i)], i, depth + 1)
            return
        if not node.bodies:
            node.bodies.append(i)
            return
        j = node.bodies[0]
        coincident = self.xs[j] == self.xs[i] and self.ys[j] == self.ys[i]
        if coincident or depth >= MAX_DEPTH or node.size <= MINIMUM_TREE_SIZE:
            node.bodies.append(i)
            return
        existing = node.bodies
        node.bodies = []
        node._split()
        for k in existing:
            self._insert(node.children[self._quadrant(node, k)], k, depth + 1)
        self._insert(node.children[self._quadrant(node, i)], i, depth + 1)

    def forceOn(self, i: int, strength: float, theta: float, min_distance: float):
        xi, yi, mi = self.xs[i], self.ys[i], self.masses[i]
        fx = fy = 0.0
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.mass <= 0.0:
                continue
            if node.isLeaf():
                for j in node.bodies:
                    if j == i:
                        continue
                    ax, ay = repulsion_force(xi - self.xs[j], yi - self.ys[j], mi, self.masses[j],
                                             strength, min_distance, i, j)
                    fx += ax; fy += ay
                continue
            dx = xi - node.comx
            dy = yi - node.comy
            d = math.hypot(dx, dy)
            half = 0.5 * node.size
            # A branch holding body i is always opened: its aggregate includes i itself
            inside = abs(xi - node.cx) <= half and abs(yi - node.cy) <= half
            if d > 0.0 and not inside and node.size < theta * d:
                ax, ay = repulsion_force(dx, dy, mi, node.mass, strength, min_distance)
                fx += ax; fy += ay
            else:
                stack.extend(node.children)
        return fx, fy


def compute_repulsion(xs: Sequence[float], ys: Sequence[float], masses: Sequence[float],
                      strength: float, theta: float, min_distance: float,
                      skip: Sequence[bool] = None) -> Tuple[List[float], List[float]]:
    """Repulsion on every body (bodies flagged in `skip` get zero force but still repel others)."""
    n = len(xs)
    fx = [0.0] * n
    fy = [0.0] * n
    if n < 2 or strength == 0.0:
        return fx, fy
    tree = QuadTree(xs, ys, masses)
    for i in range(n):
        if skip is not None and skip[i]:
            continue
        fx[i], fy[i] = tree.forceOn(i, strength, theta, min_distance)
    return fx, fy
