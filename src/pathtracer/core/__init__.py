"""Core module containing fundamental ray tracing components.

Components:
    vector: Vector and color helpers (reflect, refract, Schlick reflectance)
    ray: Ray dataclass
    sampler: Per-pixel random number generation
    integrator: Path tracing integrator (import pathtracer.core.integrator)
"""

from .ray import Ray, make_ray, ray_at
from .sampler import next_float, pixel_seed, random_in_unit_disk, random_unit_vector
from .vector import reflect, refract, safe_normalize, schlick_reflectance, vec3

__all__ = [
    "vec3",
    "reflect",
    "refract",
    "safe_normalize",
    "schlick_reflectance",
    "Ray",
    "make_ray",
    "ray_at",
    "pixel_seed",
    "next_float",
    "random_unit_vector",
    "random_in_unit_disk",
]
