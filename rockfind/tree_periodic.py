"""Periodic, marked and nearest-neighbour queries on a Fast3Tree.

Periodicity is taken over the extent of the tree's root node: a query that
reaches past one face of the root box also searches near the opposite face.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from rockfind.fast3tree import (
    MARKED,
    Fast3Tree,
    TreeNode,
    _box_inside_sphere,
    _box_not_intersect_sphere,
    _distance2,
    _sphere_inside_box,
)


def _center(tree: Fast3Tree, center: Sequence[float]) -> tuple:
    if len(center) < tree.dim:
        raise ValueError(f"center needs {tree.dim} values")
    return tuple(float(x) for x in center[: tree.dim])


def _find_sphere_offset(
    tree: Fast3Tree,
    node: TreeNode,
    c: Sequence[float],
    c2: Sequence[float],
    o: Sequence[float],
    r: float,
    marked: bool,
    do_marking: bool,
    results: List[int],
) -> None:
    """Search around the shifted centre ``c2``, measuring distance across ``o``.

    Distances are computed from the unshifted centre ``c`` as
    ``o[j] - |c[j] - x[j]|``, which is stable against round-off.
    """
    onlyone = marked and bool(node.flags & MARKED)

    if _box_not_intersect_sphere(node, c2, r * 1.01):
        return
    if _box_inside_sphere(node, c2, r * 0.99):
        if do_marking:
            node.flags |= MARKED
        if onlyone:
            results.append(node.start)
        else:
            results.extend(range(node.start, node.start + node.count))
        return

    if node.div_dim < 0:
        r2 = r * r
        for i in range(node.start, node.start + node.count):
            pos = tree.positions[i]
            dist = sum((oj - abs(cj - xj)) ** 2 for oj, cj, xj in zip(o, c, pos))
            if dist < r2:
                results.append(i)
                if onlyone:
                    return
        return

    before = len(results)
    _find_sphere_offset(tree, node.left, c, c2, o, r, marked, do_marking, results)
    if onlyone and len(results) > before:
        return
    _find_sphere_offset(tree, node.right, c, c2, o, r, marked, do_marking, results)


def _find_sphere_periodic_dim(
    tree: Fast3Tree,
    c: Sequence[float],
    c2: Sequence[float],
    o: List[float],
    r: float,
    dims: Sequence[float],
    dim: int,
    marked: bool,
    do_marking: bool,
    results: List[int],
) -> None:
    if dim < 0:
        _find_sphere_offset(tree, tree.root, c, c2, o, r, marked, do_marking, results)
        return
    c3 = list(c2)
    o[dim] = 0.0
    _find_sphere_periodic_dim(tree, c, c3, o, r, dims, dim - 1, marked, do_marking, results)
    if c[dim] + r > tree.root.max[dim]:
        c3[dim] = c[dim] - dims[dim]
        o[dim] = dims[dim]
        _find_sphere_periodic_dim(
            tree, c, c3, o, r, dims, dim - 1, marked, do_marking, results
        )
    if c[dim] - r < tree.root.min[dim]:
        c3[dim] = c[dim] + dims[dim]
        o[dim] = dims[dim]
        _find_sphere_periodic_dim(
            tree, c, c3, o, r, dims, dim - 1, marked, do_marking, results
        )


def _periodic_dims(tree: Fast3Tree, r: float) -> List[float]:
    dims = [hi - lo for lo, hi in zip(tree.root.min, tree.root.max)]
    if any(r * 2.0 > d for d in dims):
        raise ValueError("search radius is too large for a periodic search")
    return dims


def _periodic_search(tree, c, r, marked, do_marking) -> List[int]:
    dims = _periodic_dims(tree, r)
    results: List[int] = []
    _find_sphere_periodic_dim(
        tree, c, c, [0.0] * tree.dim, r, dims, tree.dim - 1, marked, do_marking, results
    )
    return results


def find_sphere_periodic(tree: Fast3Tree, center: Sequence[float], r: float) -> List[int]:
    """Indices of points within ``r`` of ``center``, wrapping around the root box.

    Raises ValueError if the sphere is wider than half the box in any dimension.
    """
    c = _center(tree, center)
    if _sphere_inside_box(tree.root, c, r):
        return tree.find_sphere(c, r)
    return _periodic_search(tree, c, r, marked=False, do_marking=False)


def find_sphere_marked(
    tree: Fast3Tree,
    center: Sequence[float],
    r: float,
    periodic: bool,
    do_marking: bool,
) -> List[int]:
    """Sphere search in which a marked node contributes at most one point.

    With ``do_marking`` every node found to lie wholly inside the sphere is
    marked, so later searches report only one representative from it.
    """
    if not tree.num_points:
        return []
    c = _center(tree, center)
    if not periodic or _sphere_inside_box(tree.root, c, r):
        results: List[int] = []
        _find_sphere_offset(
            tree, tree.root, c, c, [0.0] * tree.dim, r, True, do_marking, results
        )
        return results
    return _periodic_search(tree, c, r, marked=True, do_marking=do_marking)


def _next_closest_dist(
    tree: Fast3Tree, node: TreeNode, c: Sequence[float], r: float, skip: TreeNode
) -> float:
    if node is skip or _box_not_intersect_sphere(node, c, r):
        return r
    if node.div_dim < 0:
        r2 = r * r
        for i in range(node.start, node.start + node.count):
            dist = _distance2(c, tree.positions[i])
            if dist < r2:
                r2 = dist
        return math.sqrt(r2)
    first, second = node.left, node.right
    d = node.div_dim
    if c[d] > 0.5 * (node.min[d] + node.max[d]):
        first, second = second, first
    r = _next_closest_dist(tree, first, c, r, skip)
    return _next_closest_dist(tree, second, c, r, skip)


def find_next_closest_distance(tree: Fast3Tree, center: Sequence[float]) -> float:
    """Distance from ``center`` to the nearest point at a non-zero distance.

    The starting guess comes from the leaf holding ``center``; points at
    distance zero inside that leaf are ignored.
    """
    c = _center(tree, center)
    node = tree.root
    while node.div_dim >= 0:
        d = node.div_dim
        node = node.left if c[d] <= node.left.max[d] else node.right

    while node is not tree.root and (
        node.min[node.parent.div_dim] == node.max[node.parent.div_dim]
    ):
        node = node.parent

    min_dist = sum((hi - lo) ** 2 for lo, hi in zip(node.min, node.max))
    for i in range(node.start, node.start + node.count):
        dist = _distance2(c, tree.positions[i])
        if dist and dist < min_dist:
            min_dist = dist

    return _next_closest_dist(tree, tree.root, c, math.sqrt(min_dist), node)