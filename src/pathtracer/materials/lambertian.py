"""Lambertian (ideal diffuse) material.

Scattered directions are drawn as ``normal + random_unit_vector()``, which
distributes them with density proportional to cos(theta) about the normal.
The sampling pdf cancels the cosine term of the rendering equation, so the
path throughput is simply multiplied by the albedo.

Example:
    >>> from pathtracer.materials import Lambertian
    >>> matte_red = Lambertian(albedo=(0.65, 0.05, 0.05))
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti

from pathtracer.core.sampler import random_unit_vector
from pathtracer.core.vector import near_zero, safe_normalize, vec3
from pathtracer.materials.base import Color, Material, MaterialType, validate_color


@dataclass(frozen=True)
class Lambertian(Material):
    """Diffuse material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    kind: ClassVar[MaterialType] = MaterialType.LAMBERTIAN

    albedo: Color = (0.5, 0.5, 0.5)

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_color("albedo", self.albedo))

    @property
    def albedo_value(self) -> Color:
        return self.albedo

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo)}


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.template()):
    """Compute a scattered ray direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal, facing the incoming ray.
        rng: Per-pixel generator state, advanced in place.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: Unit direction on the normal's hemisphere.
        - attenuation: The albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb a path outright.
    """
    direction = normal + random_unit_vector(rng)

    # The random vector can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal

    return safe_normalize(direction, normal), albedo, 1
