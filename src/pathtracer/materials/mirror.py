"""Perfect mirror material.

A mirror reflects the incoming ray exactly, without perturbation or tint,
and never absorbs it.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti

from pathtracer.core.vector import reflect, safe_normalize, vec3
from pathtracer.materials.base import Material, MaterialType


@dataclass(frozen=True)
class Mirror(Material):
    """Ideal specular reflector. Has no parameters."""

    kind: ClassVar[MaterialType] = MaterialType.MIRROR

    def to_dict(self) -> dict[str, Any]:
        return {"type": "mirror"}


@ti.func
def scatter_mirror(incident_direction: vec3, normal: vec3):
    """Reflect the incoming direction about the normal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) with white
        attenuation and did_scatter always 1.
    """
    reflected = reflect(incident_direction, normal)
    return safe_normalize(reflected, normal), vec3(1.0, 1.0, 1.0), 1
