import math


class QPointF:
    """Minimal stand-in for QtCore.QPointF so layout code runs without Qt (browser worker, tests)."""
    __slots__ = ("_x", "_y")
    def __init__(self, x=0.0, y=0.0):
        self._x = float(x); self._y = float(y)
    def x(self): return self._x
    def y(self): return self._y
    def __add__(self, o): return QPointF(self._x + o.x(), self._y + o.y())
    def __sub__(self, o): return QPointF(self._x - o.x(), self._y - o.y())
    def __eq__(self, o):
        return isinstance(o, QPointF) and self._x == o._x and self._y == o._y
    def __hash__(self): return hash((self._x, self._y))
    def isFinite(self): return math.isfinite(self._x) and math.isfinite(self._y)
    def __repr__(self): return f"QPointF({self._x:.3f}, {self._y:.3f})"
