"""Axis-aligned bounding boxes in a possibly periodic cubic volume.

Bounds are six numbers: the three lower corners followed by the three upper.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

Vector = Tuple[float, float, float]
Bounds = Tuple[float, float, float, float, float, float]


def check_bounds(
    pos: Sequence[float], bounds: Sequence[float], box_size: float, periodic: bool
) -> Optional[Vector]:
    """Return ``pos`` moved by one box length where needed to lie in ``bounds``.

    Returns None if the position does not fall inside the bounds.
    """
    result = []
    for i in range(3):
        lo, hi = bounds[i], bounds[i + 3]
        x = pos[i]
        if x > hi:
            if not (lo < 0 and periodic):
                return None
            x -= box_size
            if x > hi or x < lo:
                return None
        elif x < lo:
            if not (hi > box_size and periodic):
                return None
            x += box_size
            if x > hi or x < lo:
                return None
        result.append(x)
    return tuple(result)


def check_bounds_raw(pos: Sequence[float], bounds: Sequence[float]) -> bool:
    """True if ``pos`` lies in the half-open box ``[lower, upper)``."""
    return all(bounds[i] <= pos[i] < bounds[i + 3] for i in range(3))


def bounds_overlap(
    b1: Sequence[float],
    b2: Sequence[float],
    overlap: float,
    box_size: float,
    periodic: bool,
) -> Optional[Bounds]:
    """Test ``b1`` against ``b2`` grown by ``overlap`` on every side.

    Returns the grown ``b2`` if the boxes overlap, otherwise None.
    """
    grown = [0.0] * 6
    for i in range(3):
        lo = grown[i] = b2[i] - overlap
        hi = grown[i + 3] = b2[i + 3] + overlap
        first = -1 if (lo < 0 and periodic) else 0
        last = 2 if (hi > box_size and periodic) else 1
        if not any(
            b1[i] + wrap * box_size < hi and b1[i + 3] + wrap * box_size > lo
            for wrap in range(first, last)
        ):
            return None
    return tuple(grown)


def wrap_into_box(pos: Sequence[float], box_size: float, periodic: bool) -> Vector:
    """Bring a position that lies one box length outside back into the box."""
    if not periodic or not box_size:
        return tuple(pos[:3])
    wrapped = []
    for x in pos[:3]:
        if x > box_size:
            x -= box_size
        elif x < 0:
            x += box_size
        wrapped.append(x)
    return tuple(wrapped)