import math

import pytest

from edge import Edge
from qtcore_shim import QPointF
from snapshot import GraphSnapshot
from vertex import Vertex


def _circle(ids, r=100.0):
    n = max(1, len(ids))
    return {vid: (r * math.cos(2 * math.pi * k / n), r * math.sin(2 * math.pi * k / n))
            for k, vid in enumerate(ids)}


@pytest.fixture
def make_snapshot():
    """make_snapshot(ids, pairs, positions=None, fixed=()) -> GraphSnapshot"""
    def _make(ids, pairs=(), positions=None, fixed=()):
        pos = positions or _circle(ids)
        verts = []
        for vid in ids:
            v = Vertex(vid, QPointF(*pos[vid]))
            v.setFixed(vid in fixed)
            verts.append(v)
        edges = [Edge(f"e{k}", s, t) for k, (s, t) in enumerate(pairs)]
        return GraphSnapshot(verts, edges)
    return _make
