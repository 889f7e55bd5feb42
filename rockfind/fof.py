"""Friends-of-friends grouping of particles with a union-find forest."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, MutableSequence, Sequence, Tuple


@dataclass
class FofGroup:
    """A group of particles, stored contiguously from ``start`` in the sorted list."""

    start: int
    num_p: int = 0
    particles: List[Any] = field(default_factory=list, repr=False)


def partition_sort_particles(
    particles: MutableSequence[Any],
    assignments: MutableSequence[int],
    lo: int,
    hi: int,
) -> None:
    """Sort ``particles[lo:hi]`` in place by their group assignment.

    Both sequences are permuted together so that each particle keeps its
    assignment; assignments end up in ascending order.
    """
    if hi - lo < 2:
        return
    window = assignments[lo:hi]
    low, high = min(window), max(window)
    if low == high:
        return
    pivot = low + (high - low) // 2
    i, si = lo, hi - 1
    while i < si:
        if assignments[i] > pivot:
            particles[i], particles[si] = particles[si], particles[i]
            assignments[i], assignments[si] = assignments[si], assignments[i]
            si -= 1
        else:
            i += 1
    if i == si and assignments[si] <= pivot:
        si += 1
    partition_sort_particles(particles, assignments, lo, si)
    partition_sort_particles(particles, assignments, si, hi)


class FofBuilder:
    """Links particles (given by index) into groups and extracts them.

    The particle list passed in is reordered in place when groups are built.
    """

    def __init__(self, particles: MutableSequence[Any]):
        self.particles = particles
        self._reset()

    def _reset(self) -> None:
        self.assignments: List[int] = [-1] * len(self.particles)
        self._roots: List[int] = []
        self.fofs: List[FofGroup] = []
        self.num_boundary_fofs = 0

    def _new_smallfof(self) -> int:
        self._roots.append(len(self._roots))
        return len(self._roots) - 1

    def _collapse(self, f: int) -> None:
        roots = self._roots
        r = roots[f]
        if roots[r] == r:
            return
        while roots[r] != r:
            r = roots[r]
        while f != r:
            nxt = roots[f]
            roots[f] = r
            f = nxt

    def _merge(self, f1: int, f2: int) -> None:
        roots = self._roots
        if roots[f2] == roots[f1]:
            return
        self._collapse(f1)
        if roots[f2] == f2:
            roots[f2] = roots[f1]
            return
        f1root = roots[f1]
        r = None
        while r != f1root:
            r = roots[f2]
            roots[f2] = f1root
            f2 = r

    def link_particle_to_fof(self, p: int, links: Sequence[int]) -> None:
        """Put ``p`` and its neighbours ``links`` into one group."""
        if len(links) < 2:
            return
        f = self.assignments[p]
        if f < 0:
            f = next(
                (self.assignments[i] for i in links if self.assignments[i] != -1), -1
            )
            if f < 0:
                f = self._new_smallfof()
        for i in links:
            if self.assignments[i] == -1:
                self.assignments[i] = f
            else:
                self._merge(self.assignments[i], f)

    def link_fof_to_fof(self, p: int, links: Sequence[int]) -> None:
        """Merge the group of ``p`` with the groups of already-grouped ``links``."""
        f = self.assignments[p]
        if len(links) < 2 or f < 0:
            return
        for i in links:
            g = self.assignments[i]
            if g == -1 or g == f:
                continue
            self._merge(g, f)

    def tag_boundary_particle(self, p: int) -> int:
        """Mark the group of ``p`` as a boundary group; return its boundary index."""
        f = self.assignments[p]
        if f < 0:
            self.assignments[p] = self._new_smallfof()
            self.num_boundary_fofs += 1
            return self.num_boundary_fofs - 1
        self._collapse(f)
        threshold = len(self._roots) - self.num_boundary_fofs
        root = self._roots[f]
        if root >= threshold:
            return root - threshold
        self._roots[root] = self._new_smallfof()
        self.num_boundary_fofs += 1
        return self.num_boundary_fofs - 1

    def _collapse_all(self) -> None:
        for i in range(len(self._roots)):
            self._collapse(i)
        self.assignments = [
            self._roots[a] if a >= 0 else a for a in self.assignments
        ]

    def build_fullfofs(self, min_halo_particles: int) -> List[FofGroup]:
        """Sort the particles by group and collect the groups.

        Groups smaller than ``min_halo_particles`` are dropped unless they
        are boundary groups.  Returns the groups added by this call.
        """
        self._collapse_all()
        n = len(self.particles)
        partition_sort_particles(self.particles, self.assignments, 0, n)
        threshold = len(self._roots) - self.num_boundary_fofs
        groups = self.fofs
        first_new = len(groups)
        current = None
        last_sf = sf = -1
        for i, value in enumerate(self.assignments):
            if value < 0:
                continue
            sf = value
            if sf == last_sf:
                continue
            if current is not None:
                current.num_p = i - current.start
            if (
                current is None
                or current.num_p >= min_halo_particles
                or last_sf >= threshold
            ):
                current = FofGroup(start=i)
                groups.append(current)
            else:
                current.start = i
            last_sf = sf
        if current is not None:
            current.num_p = n - current.start
            if current.num_p < min_halo_particles and sf < threshold:
                groups.pop()
        for group in groups[first_new:]:
            group.particles = list(self.particles[group.start:group.start + group.num_p])
        self._roots = []
        return groups[first_new:]

    def return_fullfofs(self) -> Tuple[List[FofGroup], int]:
        """Hand over the groups and boundary count, and reset the builder."""
        result = (self.fofs, self.num_boundary_fofs)
        self._reset()
        return result

    def copy_fullfofs(self, base: Sequence[FofGroup]) -> List[FofGroup]:
        """Return ``base`` followed by the built groups, which are then cleared."""
        combined = [*base, *self.fofs]
        self.fofs = []
        self.num_boundary_fofs = 0
        return combined