# utils_geom.py
import math

from qtcore_shim import QPointF


def v_sub(a: QPointF, b: QPointF) -> QPointF:
    return QPointF(a.x() - b.x(), a.y() - b.y())


def v_len(a: QPointF) -> float:
    return math.hypot(a.x(), a.y())


def v_dist(a: QPointF, b: QPointF) -> float:
    return v_len(v_sub(a, b))


def v_from_polar(r: float, ang_rad: float) -> QPointF:
    return QPointF(r * math.cos(ang_rad), r * math.sin(ang_rad))
