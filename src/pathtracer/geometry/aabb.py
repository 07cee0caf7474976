"""Axis-aligned bounding boxes for scene primitives.

Bounding boxes are computed on the host when a scene is built. They describe
the spatial extent of primitives and of the whole scene; no hierarchy is
built from them, every intersection query still visits each primitive.

Example:
    >>> from pathtracer.geometry.aabb import Aabb
    >>> box = Aabb((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    >>> box.hit((0.5, 0.5, -1.0), (0.0, 0.0, 1.0), 0.0, 10.0)
    True
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

Vec3Tuple = tuple[float, float, float]


@dataclass(frozen=True)
class Aabb:
    """An axis-aligned box spanning [minimum, maximum] on every axis.

    Attributes:
        minimum: The corner with the smallest coordinates.
        maximum: The corner with the largest coordinates.
    """

    minimum: Vec3Tuple
    maximum: Vec3Tuple

    def __post_init__(self) -> None:
        for axis in range(3):
            if self.minimum[axis] > self.maximum[axis]:
                raise ValueError(
                    f"Bounding box minimum {self.minimum} exceeds maximum "
                    f"{self.maximum} on axis {axis}."
                )

    @property
    def extent(self) -> Vec3Tuple:
        """Size of the box along each axis."""
        return (
            self.maximum[0] - self.minimum[0],
            self.maximum[1] - self.minimum[1],
            self.maximum[2] - self.minimum[2],
        )

    def combine(self, other: Aabb) -> Aabb:
        """Return the smallest box enclosing both boxes."""
        return Aabb(
            (
                min(self.minimum[0], other.minimum[0]),
                min(self.minimum[1], other.minimum[1]),
                min(self.minimum[2], other.minimum[2]),
            ),
            (
                max(self.maximum[0], other.maximum[0]),
                max(self.maximum[1], other.maximum[1]),
                max(self.maximum[2], other.maximum[2]),
            ),
        )

    def hit(
        self,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float,
        t_max: float,
    ) -> bool:
        """Slab test: does the ray overlap the box for some t in [t_min, t_max]?

        Args:
            origin: The ray origin.
            direction: The ray direction (need not be unit length).
            t_min: Lower bound of the ray interval.
            t_max: Upper bound of the ray interval.

        Returns:
            True if the ray interval intersects the box.
        """
        o = np.asarray(origin, dtype=np.float64)
        d = np.asarray(direction, dtype=np.float64)
        lo = np.asarray(self.minimum, dtype=np.float64)
        hi = np.asarray(self.maximum, dtype=np.float64)

        for axis in range(3):
            if d[axis] == 0.0:
                # Parallel to this slab: inside it or never
                if o[axis] < lo[axis] or o[axis] > hi[axis]:
                    return False
                continue
            inv_d = 1.0 / d[axis]
            t0 = (lo[axis] - o[axis]) * inv_d
            t1 = (hi[axis] - o[axis]) * inv_d
            if inv_d < 0.0:
                t0, t1 = t1, t0
            t_min = max(t0, t_min)
            t_max = min(t1, t_max)
            if t_max < t_min:
                return False
        return True


def union(boxes: Iterable[Aabb]) -> Aabb | None:
    """Combine boxes into one enclosing box, or None for no boxes."""
    result: Aabb | None = None
    for box in boxes:
        result = box if result is None else result.combine(box)
    return result
