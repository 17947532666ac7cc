import math
import random

import pytest

from barnes_hut import QuadTree, compute_repulsion, repulsion_force, separation_direction


def _exact(xs, ys, ms, strength, min_distance):
    n = len(xs)
    fx = [0.0] * n
    fy = [0.0] * n
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            ax, ay = repulsion_force(xs[i] - xs[j], ys[i] - ys[j], ms[i], ms[j],
                                     strength, min_distance, i, j)
            fx[i] += ax
            fy[i] += ay
    return fx, fy


def _cloud(n, seed):
    rng = random.Random(seed)
    xs = [rng.uniform(-500, 500) for _ in range(n)]
    ys = [rng.uniform(-500, 500) for _ in range(n)]
    ms = [float(rng.randint(1, 5)) for _ in range(n)]
    return xs, ys, ms


def test_theta_zero_is_exact():
    xs, ys, ms = _cloud(40, seed=3)
    fx, fy = compute_repulsion(xs, ys, ms, 100.0, 0.0, 10.0)
    ex, ey = _exact(xs, ys, ms, 100.0, 10.0)
    assert fx == pytest.approx(ex, rel=1e-9, abs=1e-9)
    assert fy == pytest.approx(ey, rel=1e-9, abs=1e-9)


def test_approximation_stays_close_to_exact():
    xs, ys, ms = _cloud(120, seed=11)
    fx, fy = compute_repulsion(xs, ys, ms, 100.0, 0.5, 10.0)
    ex, ey = _exact(xs, ys, ms, 100.0, 10.0)
    err = sum(math.hypot(fx[i] - ex[i], fy[i] - ey[i]) for i in range(len(xs)))
    total = sum(math.hypot(ex[i], ey[i]) for i in range(len(xs)))
    assert err / total < 0.1


def test_exact_forces_balance():
    xs, ys, ms = _cloud(25, seed=5)
    fx, fy = compute_repulsion(xs, ys, ms, 50.0, 0.0, 10.0)
    assert sum(fx) == pytest.approx(0.0, abs=1e-6)
    assert sum(fy) == pytest.approx(0.0, abs=1e-6)


@pytest.mark.parametrize("gap", [0.0, 1e-12, 1e-3, 5.0])
def test_close_bodies_are_bounded_by_min_distance(gap):
    fx, fy = compute_repulsion([0.0, gap], [0.0, 0.0], [2.0, 3.0], 100.0, 0.5, 10.0)
    mag0 = math.hypot(fx[0], fy[0])
    mag1 = math.hypot(fx[1], fy[1])
    assert math.isfinite(mag0)
    assert mag0 == pytest.approx(100.0 * 2.0 * 3.0 / 10.0)
    assert mag1 == pytest.approx(mag0)
    assert fx[0] == pytest.approx(-fx[1])
    assert fy[0] == pytest.approx(-fy[1])


def test_skipped_bodies_get_no_force_but_still_repel():
    fx, fy = compute_repulsion([0.0, 100.0], [0.0, 0.0], [1.0, 1.0], 100.0, 0.5, 10.0,
                               skip=[True, False])
    assert (fx[0], fy[0]) == (0.0, 0.0)
    assert fx[1] > 0.0


def test_separation_direction_is_antisymmetric_unit():
    ux, uy = separation_direction(2, 9)
    vx, vy = separation_direction(9, 2)
    assert math.hypot(ux, uy) == pytest.approx(1.0)
    assert (ux, uy) == pytest.approx((-vx, -vy))


def test_tree_aggregates_mass():
    tree = QuadTree([0.0, 10.0, 10.0], [0.0, 0.0, 10.0], [1.0, 2.0, 1.0])
    assert tree.root.mass == pytest.approx(4.0)
    assert tree.root.comx == pytest.approx(7.5)
    assert tree.root.comy == pytest.approx(2.5)


def test_fewer_than_two_bodies():
    assert compute_repulsion([], [], [], 1.0, 0.5, 1.0) == ([], [])
    assert compute_repulsion([3.0], [4.0], [1.0], 1.0, 0.5, 1.0) == ([0.0], [0.0])


@pytest.mark.parametrize("theta", [0.8, 1.0, 2.0, 10.0])
def test_body_never_repels_itself_through_its_own_branch(theta):
    xs, ys, ms = [0.0, 100.0], [0.0, 100.0], [100.0, 1.0]
    fx, fy = compute_repulsion(xs, ys, ms, 1.0, theta, 10.0)
    ex, ey = _exact(xs, ys, ms, 1.0, 10.0)
    assert fx == pytest.approx(ex, rel=1e-9)
    assert fy == pytest.approx(ey, rel=1e-9)
