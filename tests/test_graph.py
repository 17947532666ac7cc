import math

import pytest

from graph import MODE_ENERGY, MODE_HIERARCHICAL, Graph, GraphConfig
from qtcore_shim import QPointF

FRAME = 1.0 / 60.0


def _nodes(*ids):
    return [{"id": vid, "label": vid.upper()} for vid in ids]


def _edges(*pairs):
    return [{"id": f"{s}-{t}", "sourceId": s, "targetId": t} for s, t in pairs]


@pytest.fixture
def graph():
    g = Graph(seed=42)
    g.sync(_nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c")))
    return g


def test_new_nodes_spawn_on_annulus(graph):
    R = graph.config.spawn_radius
    for v in graph.getVertices():
        r = math.hypot(v.getPosition().x(), v.getPosition().y())
        assert 0.5 * R - 1e-9 <= r <= R + 1e-9


def test_sync_keeps_surviving_positions(graph):
    graph.vertices["a"].setPosition(QPointF(300.0, -20.0))
    graph.vertices["b"].setFixed(True)
    graph.sync(_nodes("a", "b", "d"), _edges(("a", "b"), ("b", "d")))
    assert set(graph.vertices) == {"a", "b", "d"}
    assert graph.vertices["a"].getPosition() == QPointF(300.0, -20.0)
    assert graph.vertices["b"].isFixed()
    assert graph.positions()["a"] == (300.0, -20.0)


def test_sync_drops_edges_with_unknown_endpoints(graph):
    graph.sync(_nodes("a", "b"), _edges(("a", "b"), ("a", "ghost")))
    stats = graph.get_stats()
    assert stats["nodes"] == 2
    assert stats["edges"] == 1
    assert stats["dropped_edges"] == 1


def test_snapshot_is_cached_until_change(graph):
    snap = graph.snapshot()
    assert graph.snapshot() is snap
    graph.add_node("z")
    assert graph.snapshot() is not snap
    assert graph.snapshot().size() == 4


def test_node_model_applied_on_rebuild(graph):
    graph.snapshot()
    b = graph.vertices["b"]
    opts = graph.config.physics
    assert b.getMass() == 3.0
    assert b.getRadius() == opts.node_base_radius + 2 * opts.node_radius_edge_factor


def test_edit_helpers(graph):
    e = graph.add_edge("a", "c", label="shortcut")
    assert graph.snapshot().degreeOf("c") == 2
    assert graph.remove_edge(e.getId())
    assert not graph.remove_edge(e.getId())
    with pytest.raises(KeyError):
        graph.add_edge("a", "nope")

    assert graph.remove_node("b")
    assert not graph.remove_node("b")
    assert graph.getEdges() == []


def test_drag_pins_moves_and_releases(graph):
    graph.snapshot()
    b = graph.vertices["b"]
    start = b.getPosition()
    assert graph.begin_drag("b")
    assert b.isFixed()
    assert graph.dragged_id() == "b"

    graph.drag_by(15.0, -5.0, FRAME)
    p = b.getPosition()
    assert (p.x(), p.y()) == pytest.approx((start.x() + 15.0, start.y() - 5.0))

    graph.tick(FRAME)
    assert b.getPosition() == p

    assert graph.end_drag()
    assert not b.isFixed()
    vel = b.getVelocity()
    assert vel.x() > 0.0 and vel.y() < 0.0
    assert not graph.end_drag()


def test_drag_of_pinned_node_stays_pinned(graph):
    graph.hierarchical_layout()
    b = graph.vertices["b"]
    graph.begin_drag("b")
    graph.drag_by(30.0, 0.0)
    graph.end_drag()
    assert b.isFixed()
    assert b.getVelocity() == QPointF(0.0, 0.0)


def test_begin_drag_unknown_id(graph):
    assert not graph.begin_drag("missing")
    assert not graph.drag_by(1.0, 1.0)


def test_find_vertex_at(graph):
    graph.snapshot()
    graph.vertices["a"].setPosition(QPointF(0.0, 0.0))
    graph.vertices["b"].setPosition(QPointF(30.0, 0.0))
    graph.vertices["c"].setPosition(QPointF(500.0, 500.0))

    assert graph.find_vertex_at(QPointF(20.0, 0.0)).getId() == "b"
    assert graph.find_vertex_at((5.0, 0.0)).getId() == "a"
    assert graph.find_vertex_at(QPointF(250.0, 250.0)) is None
    assert graph.find_vertex_at(QPointF(480.0, 500.0), radius=5.0) is None
    assert graph.find_vertex_at(QPointF(480.0, 500.0), radius=25.0).getId() == "c"


def test_stop_flag_freezes_ticks(graph):
    before = graph.positions()
    graph.stop_simulation()
    assert not graph.is_running()
    for _ in range(10):
        assert graph.tick(FRAME) is True
    assert graph.positions() == before

    graph.start_simulation()
    graph.tick(FRAME)
    assert graph.positions() != before


def test_hierarchical_layout_reports_levels_and_notifies(graph):
    seen = []
    graph.on_layout_changed = lambda bbox, center: seen.append((bbox, center))
    levels = graph.hierarchical_layout()
    assert levels == {"a": 0, "b": 1, "c": 2}
    assert graph.levels() == levels
    assert graph.mode == MODE_HIERARCHICAL
    assert graph.curve_type == "horizontal"
    assert len(seen) == 1
    bbox, center = seen[0]
    assert bbox == graph.get_bounding_box()
    assert center == graph.get_center()


def test_energy_layout_releases_hierarchy_pins(graph):
    graph.hierarchical_layout()
    res = graph.energy_layout()
    assert graph.mode == MODE_ENERGY
    assert graph.levels() == {}
    assert not any(v.isFixed() for v in graph.getVertices())
    assert res.moves >= 0
    assert graph.last_energy_result is res


def test_option_updates(graph):
    graph.set_physics_options(node_base_radius=5.0, node_radius_edge_factor=1.0)
    assert graph.vertices["b"].getRadius() == 7.0
    with pytest.raises(ValueError):
        graph.set_physics_options(warp_speed=9)

    graph.set_hierarchy_options(direction="LR")
    assert graph.config.hierarchy.direction == "LR"
    with pytest.raises(ValueError):
        graph.set_hierarchy_options(direction="XY")
    assert graph.config.hierarchy.direction == "LR"

    graph.set_energy_config(spring_length=50.0)
    assert graph.config.energy.spring_length == 50.0


def test_seeded_spawns_are_reproducible():
    g1 = Graph(seed=9)
    g2 = Graph(seed=9)
    g1.sync(_nodes("x", "y"), [])
    g2.sync(_nodes("x", "y"), [])
    assert g1.positions() == g2.positions()


def test_bounding_box_and_center_of_empty_graph():
    g = Graph(GraphConfig())
    assert g.get_bounding_box() == (0.0, 0.0, 0.0, 0.0)
    assert g.get_center() == QPointF(0.0, 0.0)
    assert g.tick(FRAME) is True


def test_release_during_drag_leaves_node_free_after_drop(graph):
    graph.hierarchical_layout()
    b = graph.vertices["b"]
    assert graph.begin_drag("b")
    graph.drag_by(5.0, 0.0, FRAME)
    graph.energy_layout()
    assert b.isFixed()

    assert graph.end_drag()
    assert not b.isFixed()
    assert not any(v.isFixed() for v in graph.getVertices())
    assert b.getVelocity().x() > 0.0


def test_hierarchy_with_physics_after_keeps_levels(graph):
    graph.sync(_nodes("a", "b", "c", "d"), _edges(("a", "b"), ("b", "c"), ("a", "d")))
    graph.set_physics_options(solver="hierarchical")
    graph.set_hierarchy_options(run_physics_after=True, parent_centralization=False)
    levels = graph.hierarchical_layout()
    ys = {vid: graph.vertices[vid].getPosition().y() for vid in levels}
    assert not any(v.isFixed() for v in graph.getVertices())
    assert all(v.getLockedAxis() == "y" for v in graph.getVertices())

    before = graph.positions()
    for _ in range(30):
        graph.tick(FRAME)
    assert graph.positions() != before
    for vid, y in ys.items():
        assert graph.vertices[vid].getPosition().y() == y

    graph.release_hierarchy()
    assert all(v.getLockedAxis() is None for v in graph.getVertices())


def test_unknown_solver_leaves_options_unchanged(graph):
    with pytest.raises(ValueError):
        graph.set_physics_options(solver="nope")
    assert graph.config.physics.solver == "barnes_hut"
