import numpy as np

from surf3tikz.core.ordering import resolve_order


def test_first_two_points_differ_in_both_coordinates():
    order, ok = resolve_order(np.array([[0.0, 0.0], [0.0, 5.0], [3.0, 0.0], [3.0, 5.0]]))
    assert ok
    assert order == [0, 3, 1, 2]


def test_good_order_is_kept():
    order, ok = resolve_order(np.array([[0.0, 0.0], [1.0, 2.0], [0.0, 2.0]]))
    assert ok
    assert order == [0, 1, 2]


def test_order_is_a_permutation():
    pos = np.array([[1.0, 1.0], [1.0, 4.0], [1.0, 7.0], [2.0, 7.0]])
    order, ok = resolve_order(pos)
    assert ok
    assert sorted(order) == [0, 1, 2, 3]
    a, b = pos[order[0]], pos[order[1]]
    assert a[0] != b[0] and a[1] != b[1]


def test_collinear_points_keep_original_order():
    order, ok = resolve_order(np.array([[2.0, 0.0], [2.0, 1.0], [2.0, 3.0], [2.0, 9.0]]))
    assert not ok
    assert order == [0, 1, 2, 3]


def test_random_positions_with_a_valid_pair():
    rng = np.random.default_rng(3)
    for _ in range(200):
        pos = rng.integers(0, 4, size=(4, 2)).astype(np.float64)
        has_pair = any(
            pos[i, 0] != pos[j, 0] and pos[i, 1] != pos[j, 1] for i in range(4) for j in range(4) if i != j
        )
        order, ok = resolve_order(pos)
        assert ok == has_pair
        if ok:
            a, b = pos[order[0]], pos[order[1]]
            assert a[0] != b[0] and a[1] != b[1]
