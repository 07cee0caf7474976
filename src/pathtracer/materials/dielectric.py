"""Dielectric (glass-like) material with reflection and refraction.

At every hit the ray either reflects or refracts. Which one is chosen is a
random draw weighted by Schlick's approximation of the Fresnel reflectance;
total internal reflection forces a reflection. Glass does not tint, so the
attenuation is always white.

The refraction ratio depends on which side of the surface the ray arrives
from:
    front_face = 1 (entering):  eta = 1 / refractive_index
    front_face = 0 (exiting):   eta = refractive_index

Common refractive indices: water 1.33, glass 1.5, diamond 2.4.
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import next_float
from pathtracer.core.vector import reflect, refract, safe_normalize, schlick_reflectance, vec3
from pathtracer.materials.base import Material, MaterialType


@dataclass(frozen=True)
class Dielectric(Material):
    """Clear dielectric.

    Attributes:
        refractive_index: Index of refraction relative to the surrounding
            medium (must be > 0; 1.0 is invisible).
    """

    kind: ClassVar[MaterialType] = MaterialType.DIELECTRIC

    refractive_index: float = 1.5

    def __post_init__(self) -> None:
        if not math.isfinite(self.refractive_index) or self.refractive_index <= 0.0:
            raise ValueError(
                f"Refractive index = {self.refractive_index} must be a finite "
                "positive number."
            )
        object.__setattr__(self, "refractive_index", float(self.refractive_index))

    @property
    def ior_value(self) -> float:
        return self.refractive_index

    def to_dict(self) -> dict[str, Any]:
        return {"type": "dielectric", "refractive_index": self.refractive_index}


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.template(),
):
    """Compute a scattered ray direction for a dielectric surface.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray arrives from outside, 0 from inside.
        rng: Per-pixel generator state, advanced in place.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The unit reflected or refracted direction.
        - attenuation: White.
        - did_scatter: Always 1; dielectrics never absorb.
    """
    refraction_ratio = 1.0 / refractive_index
    if front_face == 0:
        refraction_ratio = refractive_index

    unit_incident = safe_normalize(incident_direction, -normal)
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)

    # R0 is identical for eta and 1 / eta, so the ratio can stand in for the index
    reflectance = schlick_reflectance(cos_theta, refraction_ratio)

    refracted, did_refract = refract(unit_incident, normal, refraction_ratio)

    # Always draw so every hit consumes the same amount of randomness
    u = next_float(rng)

    direction = refracted
    if did_refract == 0 or u < reflectance:
        direction = reflect(unit_incident, normal)

    return safe_normalize(direction, normal), vec3(1.0, 1.0, 1.0), 1
