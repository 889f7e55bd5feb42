import pytest

from rockfind.fast3tree import MARKED, Fast3Tree
from rockfind.tree_periodic import (
    find_next_closest_distance,
    find_sphere_marked,
    find_sphere_periodic,
)

A = (0.5, 5.0, 5.0)
B = (9.5, 5.0, 5.0)


def _box_points():
    pts = [(0.0, 0.0, 0.0), (10.0, 10.0, 10.0), A, B]
    pts += [(5.0, float(y), float(z)) for y in range(1, 10) for z in range(1, 10)]
    return pts


def _found(tree, indices):
    return sorted(tree.points[i] for i in indices)


def test_periodic_search_wraps_across_box():
    tree = Fast3Tree(_box_points())
    result = find_sphere_periodic(tree, (0.2, 5.0, 5.0), 1.0)
    assert _found(tree, result) == sorted([A, B])


def test_periodic_search_inside_box_matches_plain_search():
    tree = Fast3Tree(_box_points())
    center = (5.0, 5.0, 5.0)
    result = find_sphere_periodic(tree, center, 1.5)
    assert _found(tree, result) == _found(tree, tree.find_sphere(center, 1.5))
    assert (5.0, 5.0, 5.0) in _found(tree, result)


def test_periodic_search_radius_too_large():
    tree = Fast3Tree(_box_points())
    with pytest.raises(ValueError):
        find_sphere_periodic(tree, (0.2, 5.0, 5.0), 6.0)
    with pytest.raises(ValueError):
        find_sphere_marked(tree, (0.2, 5.0, 5.0), 6.0, True, False)


def test_marked_non_periodic_does_not_wrap():
    tree = Fast3Tree(_box_points())
    result = find_sphere_marked(tree, (0.2, 5.0, 5.0), 1.0, False, False)
    assert _found(tree, result) == [A]


def test_marked_periodic_wraps():
    tree = Fast3Tree(_box_points())
    result = find_sphere_marked(tree, (0.2, 5.0, 5.0), 1.0, True, False)
    assert _found(tree, result) == sorted([A, B])


def test_marked_empty_tree():
    tree = Fast3Tree([])
    assert find_sphere_marked(tree, (1.0, 1.0, 1.0), 0.5, True, True) == []


def _cluster():
    pts = [(i / 4, j / 4, k / 4) for i in range(5) for j in range(5) for k in range(5)]
    return pts, pts + [(20.0, 20.0, 20.0)]


def test_marking_collapses_later_results():
    cluster, pts = _cluster()
    tree = Fast3Tree(pts)
    center = (0.5, 0.5, 0.5)
    first = find_sphere_marked(tree, center, 5.0, False, True)
    assert sorted(tree.points[i] for i in first) == sorted(cluster)
    assert any(node.flags & MARKED for node in tree.nodes)
    second = find_sphere_marked(tree, center, 5.0, False, False)
    assert len(second) == 1
    assert set(second) <= set(first)


def test_without_marking_results_repeat():
    _, pts = _cluster()
    tree = Fast3Tree(pts)
    center = (0.5, 0.5, 0.5)
    first = find_sphere_marked(tree, center, 5.0, False, False)
    second = find_sphere_marked(tree, center, 5.0, False, False)
    assert sorted(first) == sorted(second)
    assert not any(node.flags & MARKED for node in tree.nodes)


def _line():
    return [(float(i), 0.0, 0.0) for i in range(100)]


def test_next_closest_distance_from_point():
    tree = Fast3Tree(_line())
    assert find_next_closest_distance(tree, (50.0, 0.0, 0.0)) == pytest.approx(1.0)


def test_next_closest_distance_between_points():
    tree = Fast3Tree(_line())
    assert find_next_closest_distance(tree, (50.25, 0.0, 0.0)) == pytest.approx(0.25)