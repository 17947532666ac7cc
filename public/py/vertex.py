# vertex.py
from typing import Optional

from qtcore_shim import QPointF


class Vertex:
    """
    Mutable layout state of one graph node.
    - position/velocity are QPointF values (replaced, never mutated in place)
    - fixed: excluded from every force update (dragged, or pinned by hierarchical layout)
    - settled: physics skips integration until the node is perturbed again
    - lockedAxis: "x" or "y" is held still by physics (hierarchical layout with physics after)
    """

    def __init__(self, vid, position: QPointF, label: str = "", displayProperty: str = "",
                 mass: float = 1.0, radius: float = 20.0):
        self._id = vid
        self._label = label
        self._displayProperty = displayProperty
        self._pos = QPointF(position.x(), position.y())
        self._vel = QPointF(0.0, 0.0)
        self._mass = float(mass)
        self._radius = float(radius)
        self._fixed = False
        self._settled = False
        self._level: Optional[int] = None
        self._lockedAxis: Optional[str] = None

    def getId(self):
        return self._id

    def getLabel(self) -> str:
        return self._label

    def setLabel(self, label: str):
        self._label = label

    def getDisplayProperty(self) -> str:
        return self._displayProperty

    def setDisplayProperty(self, value: str):
        self._displayProperty = value

    def getPosition(self) -> QPointF:
        return self._pos

    def setPosition(self, pos: QPointF):
        self._pos = QPointF(pos.x(), pos.y())

    def getVelocity(self) -> QPointF:
        return self._vel

    def setVelocity(self, vel: QPointF):
        self._vel = QPointF(vel.x(), vel.y())

    def getMass(self) -> float:
        return self._mass

    def setMass(self, mass: float):
        if mass <= 0:
            raise ValueError(f"mass must be positive, got {mass}")
        self._mass = float(mass)

    def getRadius(self) -> float:
        return self._radius

    def setRadius(self, radius: float):
        self._radius = max(0.0, float(radius))

    def getDiameter(self) -> float:
        return 2.0 * self._radius

    def isFixed(self) -> bool:
        return self._fixed

    def setFixed(self, fixed: bool):
        self._fixed = bool(fixed)

    def isSettled(self) -> bool:
        return self._settled

    def setSettled(self, settled: bool):
        self._settled = bool(settled)

    def getLevel(self) -> Optional[int]:
        return self._level

    def setLevel(self, level: Optional[int]):
        self._level = None if level is None else int(level)

    def getLockedAxis(self) -> Optional[str]:
        return self._lockedAxis

    def setLockedAxis(self, axis: Optional[str]):
        if axis not in (None, "x", "y"):
            raise ValueError(f"locked axis must be 'x', 'y' or None, got {axis!r}")
        self._lockedAxis = axis

    def __repr__(self):
        return f"Vertex({self._id!r}, {self._pos!r}{', fixed' if self._fixed else ''})"
