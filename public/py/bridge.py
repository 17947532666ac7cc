# public/py/bridge.py
import json

from graph import Graph
from qtcore_shim import QPointF

_g = Graph()


def _pt(p):
    return {"x": float(p.x()), "y": float(p.y())}


def _state_dict():
    snap = _g.snapshot()
    nodes = []
    for v in _g.getVertices():
        p = v.getPosition()
        nodes.append(
            {
                "id": v.getId(),
                "label": v.getLabel(),
                "displayProperty": v.getDisplayProperty(),
                "x": float(p.x()),
                "y": float(p.y()),
                "radius": float(v.getRadius()),
                "fixed": bool(v.isFixed()),
                "level": v.getLevel(),
            }
        )
    edges = [
        {
            "id": e.getId(),
            "sourceId": e.getSourceId(),
            "targetId": e.getTargetId(),
            "label": e.getLabel(),
        }
        for e in snap.edges
    ]
    x0, y0, x1, y1 = _g.get_bounding_box()
    return {
        "nodes": nodes,
        "edges": edges,
        "curveType": _g.curve_type,
        "bbox": [x0, y0, x1, y1],
        "center": _pt(_g.get_center()),
        "meta": _g.get_stats(),
    }


def _parse_options(s: str) -> dict:
    data = json.loads(s) if isinstance(s, str) else s
    if not isinstance(data, dict):
        raise ValueError("Options must be a JSON object.")
    return data


def reset(seed=None):
    """Drop the current graph (the host calls this when switching documents)."""
    global _g
    _g = Graph(seed=seed)
    return json.dumps(_state_dict())


# ------------- Commands exported to the worker -------------
def load_json_string(s: str):
    data = json.loads(s)
    if not isinstance(data, dict):
        raise ValueError("JSON root must be an object.")

    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        raise ValueError("JSON missing 'nodes' list.")
    edges = data.get("edges", [])
    if not isinstance(edges, list):
        edges = []

    node_recs = []
    for rec in nodes:
        if isinstance(rec, dict) and "id" in rec:
            node_recs.append(rec)
        elif isinstance(rec, (str, int)):
            node_recs.append({"id": rec})
        else:
            raise ValueError(f"Bad node record: {rec!r}")

    edge_recs = []
    for rec in edges:
        if isinstance(rec, dict) and "sourceId" in rec and "targetId" in rec:
            edge_recs.append(rec)
        elif isinstance(rec, (list, tuple)) and len(rec) == 2:
            edge_recs.append({"sourceId": rec[0], "targetId": rec[1]})
        # anything else is a malformed edge: dropped like one with unknown endpoints

    _g.sync(node_recs, edge_recs)
    return json.dumps(_state_dict())


def get_state():
    return json.dumps(_state_dict())


def tick(dt: float):
    stable = _g.tick(float(dt))
    return json.dumps({"stable": bool(stable), "positions": {str(k): v for k, v in _g.positions().items()}})


def layout_energy():
    res = _g.energy_layout()
    return json.dumps(
        {
            "iterations": res.iterations,
            "moves": res.moves,
            "skipped": res.skipped,
            "maxEnergy": res.max_energy,
            "converged": res.converged,
            "state": _state_dict(),
        }
    )


def layout_hierarchical(direction: str = None):
    if direction:
        _g.set_hierarchy_options(direction=str(direction).upper())
    levels = _g.hierarchical_layout()
    return json.dumps({"levels": {str(k): v for k, v in levels.items()}, "state": _state_dict()})


def drag_start(node_id):
    return json.dumps({"ok": _g.begin_drag(node_id)})


def drag_move(dx: float, dy: float, dt: float = 1.0 / 60.0):
    ok = _g.drag_by(float(dx), float(dy), float(dt))
    return json.dumps({"ok": ok, "positions": {str(k): v for k, v in _g.positions().items()}})


def drag_end():
    return json.dumps({"ok": _g.end_drag()})


def hit_test(x: float, y: float, radius: float = None):
    v = _g.find_vertex_at(QPointF(float(x), float(y)), None if radius is None else float(radius))
    return json.dumps({"id": None if v is None else v.getId()})


def set_physics(options):
    _g.set_physics_options(**_parse_options(options))
    return json.dumps({"ok": True})


def set_hierarchy(options):
    _g.set_hierarchy_options(**_parse_options(options))
    return json.dumps({"ok": True})


def start():
    _g.start_simulation()
    return json.dumps({"running": _g.is_running()})


def stop():
    _g.stop_simulation()
    return json.dumps({"running": _g.is_running()})
