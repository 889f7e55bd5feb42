"""A binary space-partitioning tree over points in a few dimensions.

Points are either coordinate sequences or objects with a ``pos`` attribute.
The tree keeps its own list of the points, reordered so that every node owns
a contiguous run of them.  Queries return indices into ``tree.points``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

POINTS_PER_LEAF = 40
MARKED = 1


@dataclass(eq=False)
class TreeNode:
    """One tree node; it owns ``points[start:start + count]``."""

    min: List[float]
    max: List[float]
    start: int
    count: int
    div_dim: int = -1
    flags: int = 0
    left: Optional["TreeNode"] = field(default=None, repr=False)
    right: Optional["TreeNode"] = field(default=None, repr=False)
    parent: Optional["TreeNode"] = field(default=None, repr=False)


def _box_inside_box(node: TreeNode, box: Sequence[float], dim: int) -> bool:
    for i in range(dim):
        if node.max[i] > box[i + dim] or node.min[i] < box[i]:
            return False
    return True


def _box_intersect_box(node: TreeNode, box: Sequence[float], dim: int) -> bool:
    for i in range(dim):
        if node.max[i] < box[i] or node.min[i] > box[i + dim]:
            return False
    return True


def _box_not_intersect_sphere(node: TreeNode, c: Sequence[float], r: float) -> bool:
    d = 0.0
    r2 = r * r
    for lo, hi, x in zip(node.min, node.max, c):
        e = x - lo
        if e < 0:
            d += e * e
            if d >= r2:
                return True
        else:
            e = x - hi
            if e > 0:
                d += e * e
                if d >= r2:
                    return True
    return False


def _box_inside_sphere(node: TreeNode, c: Sequence[float], r: float) -> bool:
    if abs(c[0] - node.min[0]) > r:
        return False
    dist = 0.0
    r2 = r * r
    for lo, hi, x in zip(node.min, node.max, c):
        dist += max((lo - x) ** 2, (x - hi) ** 2)
        if dist > r2:
            return False
    return True


def _sphere_inside_box(node: TreeNode, c: Sequence[float], r: float) -> bool:
    for lo, hi, x in zip(node.min, node.max, c):
        if x - r < lo or x + r > hi:
            return False
    return True


def _distance2(a: Sequence[float], b: Sequence[float]) -> float:
    return sum((x - y) * (x - y) for x, y in zip(a, b))


class Fast3Tree:
    """Spatial tree supporting sphere and box queries."""

    def __init__(self, points: Iterable[Any] = (), dim: int = 3):
        if dim < 1:
            raise ValueError("dimension must be at least 1")
        self.dim = dim
        self.rebuild(points)

    def _position(self, point: Any) -> Tuple[float, ...]:
        pos = getattr(point, "pos", point)
        return tuple(float(x) for x in pos[: self.dim])

    def rebuild(self, points: Iterable[Any]) -> None:
        """Build the tree anew over ``points``.

        Points with non-finite coordinates are moved to the end of
        ``self.points`` and left out of the tree.
        """
        self.points = list(points)
        self.positions = [self._position(p) for p in self.points]
        self._build()

    def _swap(self, a: int, b: int) -> None:
        self.points[a], self.points[b] = self.points[b], self.points[a]
        self.positions[a], self.positions[b] = self.positions[b], self.positions[a]

    def _build(self) -> None:
        n = len(self.points)
        i = 0
        while i < n:
            if all(math.isfinite(x) for x in self.positions[i]):
                i += 1
            else:
                n -= 1
                self._swap(i, n)
        self.num_points = n

        root = TreeNode(min=[0.0] * self.dim, max=[0.0] * self.dim, start=0, count=n)
        if n:
            self._find_minmax(root)
        self.root = root
        self.nodes = [root]

        pending = [root] if root.count > POINTS_PER_LEAF else []
        while pending:
            node = pending.pop()
            for child in self._split_node(node):
                if child.count > POINTS_PER_LEAF:
                    pending.append(child)

    def _find_minmax(self, node: TreeNode) -> None:
        run = self.positions[node.start:node.start + node.count]
        node.min = [min(p[j] for p in run) for j in range(self.dim)]
        node.max = [max(p[j] for p in run) for j in range(self.dim)]

    def _largest_dim(self, node: TreeNode) -> int:
        best = self.dim - 1
        extent = node.max[best] - node.min[best]
        for i in range(self.dim - 1):
            d = node.max[i] - node.min[i]
            if d > extent:
                extent, best = d, i
        return best

    def _sort_dim_pos(self, node: TreeNode) -> int:
        dim = node.div_dim = self._largest_dim(node)
        if node.max[dim] == node.min[dim]:
            return node.count
        lim = 0.5 * (node.max[dim] + node.min[dim])
        pos = self.positions
        i = node.start
        j = node.start + node.count - 1
        while i < j:
            if pos[i][dim] > lim:
                self._swap(i, j)
                j -= 1
            else:
                i += 1
        if i == j and pos[i][dim] <= lim:
            i += 1
        return i - node.start

    def _split_node(self, node: TreeNode) -> Tuple[TreeNode, ...]:
        num_left = self._sort_dim_pos(node)
        if num_left in (0, node.count):
            node.div_dim = -1
            return ()
        left = TreeNode(min=[], max=[], start=node.start, count=num_left, parent=node)
        right = TreeNode(
            min=[], max=[], start=node.start + num_left,
            count=node.count - num_left, parent=node,
        )
        self._find_minmax(left)
        self._find_minmax(right)
        node.left, node.right = left, right
        self.nodes.extend((left, right))
        return left, right

    def maxmin_rebuild(self) -> None:
        """Recompute node bounds from current positions, keeping the structure."""
        self.positions[: self.num_points] = [
            self._position(p) for p in self.points[: self.num_points]
        ]
        self._maxmin_rebuild(self.root)

    def _maxmin_rebuild(self, node: TreeNode) -> None:
        if node.div_dim < 0:
            if node.count:
                self._find_minmax(node)
            return
        self._maxmin_rebuild(node.left)
        self._maxmin_rebuild(node.right)
        node.min = [min(a, b) for a, b in zip(node.left.min, node.right.min)]
        node.max = [max(a, b) for a, b in zip(node.left.max, node.right.max)]

    def _node_indices(self, node: TreeNode) -> range:
        return range(node.start, node.start + node.count)

    def find_sphere(self, center: Sequence[float], r: float) -> List[int]:
        """Indices of points strictly closer than ``r`` to ``center``."""
        c = tuple(float(x) for x in center[: self.dim])
        results: List[int] = []
        self._find_sphere(self.root, c, r, results)
        return results

    def _find_sphere(self, node: TreeNode, c, r: float, results: List[int]) -> None:
        if _box_not_intersect_sphere(node, c, r):
            return
        if self.dim < 6 and _box_inside_sphere(node, c, r):
            results.extend(self._node_indices(node))
            return
        if node.div_dim < 0:
            r2 = r * r
            results.extend(
                i for i in self._node_indices(node)
                if _distance2(c, self.positions[i]) < r2
            )
            return
        self._find_sphere(node.left, c, r, results)
        self._find_sphere(node.right, c, r, results)

    def find_sphere_skip(self, index: int, r: float) -> List[int]:
        """Neighbours within ``r`` of point ``index``, skipping earlier nodes.

        Nodes that lie wholly before ``index`` in tree order are not visited,
        so each pair of nearby points is found from one side only.
        """
        if not 0 <= index < self.num_points:
            raise IndexError("point index out of range")
        results: List[int] = []
        self._find_sphere_skip(self.root, self.positions[index], r, index, results)
        return results

    def _find_sphere_skip(self, node, c, r: float, index: int, results) -> None:
        if node.start + node.count <= index:
            return
        if _box_not_intersect_sphere(node, c, r):
            return
        if self.dim < 6 and _box_inside_sphere(node, c, r):
            results.extend(self._node_indices(node))
            return
        if node.div_dim < 0:
            r2 = r * r
            first = node.start
            if node.start < index:
                results.append(index)
                first = index + 1
            results.extend(
                i for i in range(first, node.start + node.count)
                if _distance2(c, self.positions[i]) < r2
            )
            return
        self._find_sphere_skip(node.left, c, r, index, results)
        self._find_sphere_skip(node.right, c, r, index, results)

    def _point_in_box(self, i: int, box: Sequence[float]) -> bool:
        pos = self.positions[i]
        return all(box[j] <= pos[j] <= box[j + self.dim] for j in range(self.dim))

    def find_inside_of_box(self, box: Sequence[float]) -> List[int]:
        """Indices of points inside the closed box (lower corner, upper corner)."""
        self._check_box(box)
        results: List[int] = []
        self._find_inside(self.root, box, results)
        return results

    def _find_inside(self, node: TreeNode, box, results: List[int]) -> None:
        if not _box_intersect_box(node, box, self.dim):
            return
        if _box_inside_box(node, box, self.dim):
            results.extend(self._node_indices(node))
        elif node.div_dim < 0:
            results.extend(i for i in self._node_indices(node) if self._point_in_box(i, box))
        else:
            self._find_inside(node.left, box, results)
            self._find_inside(node.right, box, results)

    def find_outside_of_box(self, box: Sequence[float]) -> List[int]:
        """Indices of points outside the closed box (lower corner, upper corner)."""
        self._check_box(box)
        results: List[int] = []
        self._find_outside(self.root, box, results)
        return results

    def _find_outside(self, node: TreeNode, box, results: List[int]) -> None:
        if _box_inside_box(node, box, self.dim):
            return
        if not _box_intersect_box(node, box, self.dim):
            results.extend(self._node_indices(node))
        elif node.div_dim < 0:
            results.extend(
                i for i in self._node_indices(node) if not self._point_in_box(i, box)
            )
        else:
            self._find_outside(node.left, box, results)
            self._find_outside(node.right, box, results)

    def _check_box(self, box: Sequence[float]) -> None:
        if len(box) < 2 * self.dim:
            raise ValueError(f"box needs {2 * self.dim} values")

    def set_minmax(self, lo: float, hi: float) -> None:
        """Set the root bounds to ``[lo, hi]`` in every dimension."""
        self.root.min = [float(lo)] * self.dim
        self.root.max = [float(hi)] * self.dim