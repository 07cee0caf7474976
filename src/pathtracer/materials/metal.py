"""Metal (fuzzy specular) material.

The incident direction is mirrored about the normal and then perturbed by a
random unit vector scaled by ``fuzz``. A perturbation that pushes the ray
below the surface absorbs the path.
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_unit_vector
from pathtracer.core.vector import reflect, safe_normalize, vec3
from pathtracer.materials.base import Color, Material, MaterialType, validate_color


@dataclass(frozen=True)
class Metal(Material):
    """Reflective metal.

    Attributes:
        albedo: The reflective tint (RGB, each component in [0, 1]).
        fuzz: Perturbation radius in [0, 1]. 0 = polished, 1 = very rough.
    """

    kind: ClassVar[MaterialType] = MaterialType.METAL

    albedo: Color = (0.8, 0.8, 0.8)
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_color("albedo", self.albedo))
        if not math.isfinite(self.fuzz) or self.fuzz < 0.0 or self.fuzz > 1.0:
            raise ValueError(f"Fuzz = {self.fuzz} is outside [0, 1].")
        object.__setattr__(self, "fuzz", float(self.fuzz))

    @property
    def albedo_value(self) -> Color:
        return self.albedo

    @property
    def fuzz_value(self) -> float:
        return self.fuzz

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo), "fuzz": self.fuzz}


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.template(),
):
    """Compute a scattered ray direction for a metal surface.

    Args:
        albedo: The reflective tint.
        fuzz: The perturbation radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        rng: Per-pixel generator state, advanced in place.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The perturbed unit reflection, or the zero
          vector when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    unit_incident = safe_normalize(incident_direction, -normal)
    reflected = reflect(unit_incident, normal)

    # Always draw so every hit consumes the same amount of randomness
    offset = random_unit_vector(rng)
    scattered = reflected + fuzz * offset

    did_scatter = 1
    direction = vec3(0.0, 0.0, 0.0)
    if tm.dot(scattered, normal) <= 0.0:
        did_scatter = 0
    else:
        direction = safe_normalize(scattered, normal)

    return direction, albedo, did_scatter
