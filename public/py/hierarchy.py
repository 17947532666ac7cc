# hierarchy.py
from collections import deque
from dataclasses import dataclass
from typing import Dict, List

from qtcore_shim import QPointF
from snapshot import GraphSnapshot
from vertex import Vertex

DIRECTIONS = ("UD", "DU", "LR", "RL")


@dataclass
class HierarchicalOptions:
    direction: str = "UD"          # "UD" | "DU" (levels on y) or "LR" | "RL" (levels on x)
    level_separation: float = 150.0
    node_separation: float = 100.0
    parent_centralization: bool = True
    # Leave nodes free along the free axis (level axis locked) so physics keeps running
    run_physics_after: bool = False


class DirectionStrategy:
    """
    Maps the abstract (level axis, free axis) pair onto x/y.
    Exactly two implementations exist: VerticalStrategy and HorizontalStrategy.
    """

    def __init__(self, options: HierarchicalOptions):
        self.level_separation = float(options.level_separation)
        # DU / RL grow levels towards negative coordinates
        self.sign = -1.0 if options.direction in ("DU", "RL") else 1.0

    def _level_coord(self, level: int) -> float:
        return self.sign * self.level_separation * level

    def getPosition(self, v: Vertex) -> float:
        raise NotImplementedError

    def setPosition(self, v: Vertex, value: float):
        raise NotImplementedError

    def fix(self, v: Vertex, level: int, pin: bool = True):
        raise NotImplementedError

    def getLevelAxis(self) -> str:
        raise NotImplementedError

    def getCurveType(self) -> str:
        raise NotImplementedError


class VerticalStrategy(DirectionStrategy):
    """Levels fix y; x is free."""

    def getPosition(self, v: Vertex) -> float:
        return v.getPosition().x()

    def setPosition(self, v: Vertex, value: float):
        v.setPosition(QPointF(value, v.getPosition().y()))

    def fix(self, v: Vertex, level: int, pin: bool = True):
        v.setPosition(QPointF(v.getPosition().x(), self._level_coord(level)))
        if pin:
            v.setFixed(True)
        else:
            v.setLockedAxis(self.getLevelAxis())

    def getLevelAxis(self) -> str:
        return "y"

    def getCurveType(self) -> str:
        return "horizontal"


class HorizontalStrategy(DirectionStrategy):
    """Levels fix x; y is free."""

    def getPosition(self, v: Vertex) -> float:
        return v.getPosition().y()

    def setPosition(self, v: Vertex, value: float):
        v.setPosition(QPointF(v.getPosition().x(), value))

    def fix(self, v: Vertex, level: int, pin: bool = True):
        v.setPosition(QPointF(self._level_coord(level), v.getPosition().y()))
        if pin:
            v.setFixed(True)
        else:
            v.setLockedAxis(self.getLevelAxis())

    def getLevelAxis(self) -> str:
        return "x"

    def getCurveType(self) -> str:
        return "vertical"


def strategy_for(options: HierarchicalOptions) -> DirectionStrategy:
    if options.direction in ("UD", "DU"):
        return VerticalStrategy(options)
    if options.direction in ("LR", "RL"):
        return HorizontalStrategy(options)
    raise ValueError(f"Unknown hierarchical direction {options.direction!r}; expected one of {DIRECTIONS}")


class HierarchicalLayout:
    """
    Single deterministic pass, O(V+E):
    1) BFS levels from parentless nodes (self-loops ignored); leftovers (cycles) get level 0
    2) place each level evenly along the free axis, fix the level axis
       (pinned, or only axis-locked when physics runs after the layout)
    3) optionally move each parent to the mean of its children one level below (bottom-up)
    """

    def __init__(self, snapshot: GraphSnapshot, options: HierarchicalOptions = None):
        self.snapshot = snapshot
        self.options = options or HierarchicalOptions()
        self.strategy = strategy_for(self.options)
        self.levels: Dict = {}
        self.distribution: Dict[int, List] = {}

    def run(self) -> Dict:
        self._assign_levels()
        self._place_nodes()
        if self.options.parent_centralization:
            self._centralize_parents()
        for vid, level in self.levels.items():
            self.snapshot.vertex(vid).setLevel(level)
        return dict(self.levels)

    def _assign_levels(self):
        snap = self.snapshot
        queue = deque()
        for vid in snap.ids:
            if not snap.parents[vid]:
                self.levels[vid] = 0
                queue.append(vid)

        while queue:
            vid = queue.popleft()
            level = self.levels[vid]
            for child in snap.children[vid]:
                if child not in self.levels:
                    self.levels[child] = level + 1
                    queue.append(child)

        for vid in snap.ids:
            if vid not in self.levels:
                self.levels[vid] = 0

    def _place_nodes(self):
        # self.levels is in assignment order; group without reordering within a level
        for vid, level in self.levels.items():
            self.distribution.setdefault(level, []).append(vid)

        sep = float(self.options.node_separation)
        pin = not self.options.run_physics_after
        for level in sorted(self.distribution):
            members = self.distribution[level]
            half = len(members) // 2
            for k, vid in enumerate(members):
                v = self.snapshot.vertex(vid)
                self.strategy.fix(v, level, pin)
                self.strategy.setPosition(v, (k - half) * sep)

    def _centralize_parents(self):
        if not self.distribution:
            return
        max_level = max(self.distribution)
        for level in range(max_level - 1, -1, -1):
            for vid in self.distribution.get(level, []):
                kids = []
                for child in self.snapshot.children[vid]:
                    if self.levels.get(child) == level + 1 and child not in kids:
                        kids.append(child)
                if not kids:
                    continue
                mean = sum(self.strategy.getPosition(self.snapshot.vertex(c)) for c in kids) / len(kids)
                # No collision handling: parents sharing children may coincide
                self.strategy.setPosition(self.snapshot.vertex(vid), mean)


def hierarchical_layout(snapshot: GraphSnapshot, options: HierarchicalOptions = None) -> Dict:
    return HierarchicalLayout(snapshot, options).run()
