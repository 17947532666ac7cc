import numpy as np
import pytest

from shortest_path import UNREACHABLE, _SENTINEL, all_pairs_hops


@pytest.mark.parametrize("use_scipy", [False, True])
def test_path_graph_end_to_end_distance(make_snapshot, use_scipy):
    n = 7
    snap = make_snapshot(list(range(n)), [(i, i + 1) for i in range(n - 1)])
    dist = all_pairs_hops(snap, use_scipy=use_scipy)
    assert dist.get(0, n - 1) == n - 1
    assert dist.get(n - 1, 0) == n - 1
    assert dist.get(2, 5) == 3


@pytest.mark.parametrize("use_scipy", [False, True])
def test_symmetric_and_triangle_inequality(make_snapshot, use_scipy):
    ids = list("abcdefgh")
    pairs = [("a", "b"), ("b", "c"), ("c", "a"), ("c", "d"), ("d", "e"),
             ("f", "g")]  # h isolated, {f, g} separate component
    dist = all_pairs_hops(make_snapshot(ids, pairs), use_scipy=use_scipy)
    m = dist.matrix.tolist()
    n = len(ids)
    for i in range(n):
        assert m[i][i] == 0
        for j in range(n):
            assert m[i][j] == m[j][i]
            for k in range(n):
                if m[i][k] != UNREACHABLE and m[k][j] != UNREACHABLE:
                    assert m[i][j] <= m[i][k] + m[k][j]


@pytest.mark.parametrize("use_scipy", [False, True])
def test_unreachable_pairs_report_max_value(make_snapshot, use_scipy):
    snap = make_snapshot(["a", "b", "c"], [("a", "b")])
    dist = all_pairs_hops(snap, use_scipy=use_scipy)
    assert dist.get("a", "c") == UNREACHABLE
    assert not dist.isReachable("b", "c")
    assert dist.isReachable("a", "b")
    assert _SENTINEL not in dist.matrix


def test_edges_count_as_undirected_unit_hops(make_snapshot):
    snap = make_snapshot(["a", "b", "c"], [("a", "b"), ("c", "b"), ("a", "b"), ("c", "c")])
    dist = all_pairs_hops(snap)
    assert dist.row("b") == {"a": 1, "b": 0, "c": 1}
    assert dist.get("a", "c") == 2


def test_backends_agree(make_snapshot):
    rng = np.random.default_rng(7)
    ids = list(range(30))
    pairs = [(int(a), int(b)) for a, b in rng.integers(0, 30, size=(40, 2))]
    snap = make_snapshot(ids, pairs)
    fw = all_pairs_hops(snap, use_scipy=False).matrix
    sc = all_pairs_hops(snap, use_scipy=True).matrix
    assert np.array_equal(fw, sc)


def test_single_and_empty_graph(make_snapshot):
    one = all_pairs_hops(make_snapshot(["x"]))
    assert one.matrix.shape == (1, 1)
    assert one.get("x", "x") == 0

    empty = all_pairs_hops(make_snapshot([]))
    assert empty.matrix.shape == (0, 0)
    assert len(empty) == 0
